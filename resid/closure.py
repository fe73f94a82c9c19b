"""Closure Engine — entailment over class and property relations.

Given the direct facts of an OntologyFacts, compute:

  type_strata(seeds)   layered closure: seeds + equivalents, then their
                       super-classes (or sub-classes) + equivalents, ...
  predicate_set(seeds) flat closure over equivalent and sub-properties
  type_is(t, ref)      index of the first stratum of t that meets ref
  symmetric(p)         whether p is (transitively) an owl:SymmetricProperty

All walks are explicit worklists with an owned seen-set, so cyclic
hierarchies terminate without relying on recursion depth.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Iterable

from rdflib import URIRef
from rdflib.namespace import OWL
from rdflib.term import Node

from .ontology import OntologyFacts
from .types import TypeStrata, check_term, dedupe, sort_terms
from .vocab import BASE_CLASSES


def as_terms(value: Any) -> list[Node]:
    """Coerce a single term or an iterable of terms into a list of terms."""
    if value is None:
        return []
    if isinstance(value, Node):
        return [check_term(value)]
    if isinstance(value, (str, bytes)):
        # a bare string is not a term
        check_term(value)
    if isinstance(value, (set, frozenset)):
        return sort_terms(check_term(v) for v in value)
    return [check_term(v) for v in value]


class Closure:
    """Transitive closures over an OntologyFacts."""

    def __init__(self, facts: OntologyFacts):
        self.facts = facts

    def _resolve_all(self, seeds: Iterable[Node]) -> list[URIRef]:
        resolved = (self.facts.resolve(s) for s in seeds)
        return dedupe(r for r in resolved if r is not None)

    # -----------------------------------------------------------------------
    # Classes
    # -----------------------------------------------------------------------

    def type_strata(self, seeds: Any, descend: bool = False) -> TypeStrata | list[URIRef]:
        """Layer the seeds' class hierarchy, most specific first.

        Layer 0 holds the seeds and their direct equivalents; layer n holds
        the direct super-classes (sub-classes when descend is set) of layer
        n-1 plus their equivalents, minus everything seen before. A term
        lives in exactly one layer.

        In descend mode the layers are flattened into one list. Callers of
        that mode only want "everything below", in no particular order.
        """
        frontier = self._resolve_all(as_terms(seeds))
        if not frontier:
            return []

        neighbours = self.facts.sub_classes if descend else self.facts.super_classes
        strata: TypeStrata = []
        seen: set[URIRef] = set()
        queue = deque([frontier])

        while queue:
            current = queue.popleft()

            layer: list[URIRef] = []
            for term in current:
                for t in [term, *sort_terms(self.facts.equivalent_classes(term))]:
                    t = self.facts.resolve(t)
                    if t is not None and t not in seen and t not in layer:
                        layer.append(t)
            seen.update(layer)
            if layer:
                strata.append(layer)

            following: list[URIRef] = []
            for term in layer:
                for t in sort_terms(neighbours(term)):
                    t = self.facts.resolve(t)
                    if t is not None and t not in seen and t not in following:
                        following.append(t)
            if following:
                queue.append(following)

        if descend:
            return [t for layer in strata for t in layer]
        return strata

    def type_is(self, types: Any, reference_types: Any) -> int | None:
        """Distance from types to the nearest of reference_types, or None.

        The universal base classes are appended as a final layer when the
        strata do not already reach them, so every resource is at least an
        rdfs:Resource. Note that 0 is a match: test with `is not None`.
        """
        strata = list(self.type_strata(types))
        reached = {t for layer in strata for t in layer}
        bases = [b for b in BASE_CLASSES if b not in reached]
        if bases:
            strata.append(bases)

        reference = set(as_terms(reference_types))
        for i, layer in enumerate(strata):
            if reference.intersection(layer):
                return i
        return None

    def all_related(self, rdftype: Any) -> list[URIRef]:
        """The type, its equivalents and everything below it."""
        return self.type_strata(rdftype, descend=True)

    # -----------------------------------------------------------------------
    # Properties
    # -----------------------------------------------------------------------

    def predicate_set(self, seeds: Any) -> set[URIRef]:
        """Seeds plus every equivalent and sub-property reachable from them.

        Unordered: callers use it to ask whether any of these holds.
        """
        out: set[URIRef] = set()
        queue = deque(self._resolve_all(as_terms(seeds)))
        while queue:
            prop = queue.popleft()
            if prop in out:
                continue
            out.add(prop)
            related = self.facts.equivalent_properties(prop) | self.facts.sub_properties(prop)
            for r in sort_terms(related):
                r = self.facts.resolve(r)
                if r is not None and r not in out:
                    queue.append(r)
        return out

    def symmetric(self, prop: Node) -> bool:
        """True if the property's closed type set includes owl:SymmetricProperty."""
        prop = self.facts.resolve(check_term(prop))
        if prop is None:
            return False
        if self.facts.is_symmetric(prop):
            return True
        strata = self.type_strata(sort_terms(self.facts.types(prop)))
        return any(OWL.SymmetricProperty in layer for layer in strata)

    def inverses(self, prop: Node) -> list[URIRef]:
        """Direct inverses of prop, plus prop itself when it is symmetric."""
        found = sort_terms(self.facts.inverse_properties(prop))
        if self.symmetric(prop) and prop not in found:
            found.append(prop)
        return found
