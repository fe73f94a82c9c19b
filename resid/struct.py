"""Struct Projector — predicate-indexed views of a resource's neighbourhood.

A struct maps each predicate to the sorted, duplicate-free list of terms
it connects the subject to: the objects of the subject, or in reverse mode
the subjects pointing at it. Label resolution, identity resolution and
rendering all read from structs instead of re-querying the graph.

The Projector also answers entailed neighbour questions (subjects_for,
objects_for): which terms are reachable through a predicate, any of its
equivalents or sub-properties, and its inverse or symmetric counterparts.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable

from rdflib import Graph, Literal, URIRef
from rdflib.namespace import RDF
from rdflib.term import Node

from .closure import Closure, as_terms
from .types import (
    Incidence,
    MalformedInputError,
    NodeKind,
    Struct,
    check_term,
    coerce_node_spec,
    dedupe,
    is_resource,
    node_matches,
    sort_terms,
    term_key,
)

Normalizer = Callable[[Node], "Node | None"]


def _predicates(value: Any) -> list[URIRef]:
    preds = as_terms(value)
    for p in preds:
        if not isinstance(p, URIRef):
            raise MalformedInputError(f"Predicate must be an IRI, not {p!r}")
    return preds


def _normalized(node: Node, normalize: Normalizer | None) -> Node:
    if normalize is None or not is_resource(node):
        return node
    out = normalize(node)
    return node if out is None else out


def _finish(found: dict[Node, tuple[set, set]]) -> dict[Node, Incidence]:
    ordered = sorted(found.items(), key=lambda kv: term_key(kv[0]))
    return {n: Incidence(frozenset(f), frozenset(r)) for n, (f, r) in ordered}


class Projector:
    """Structural queries over one graph, entailed through one Closure."""

    def __init__(self, graph: Graph, closure: Closure):
        self.graph = graph
        self.closure = closure

    @property
    def facts(self):
        return self.closure.facts

    def has_subject(self, term: Node) -> bool:
        return next(iter(self.graph.triples((term, None, None))), None) is not None

    # -----------------------------------------------------------------------
    # Structs
    # -----------------------------------------------------------------------

    def struct_for(
        self,
        subject: Node,
        reverse: bool = False,
        only: Any = None,
        normalize: Normalizer | None = None,
        inverses: bool = False,
    ) -> Struct:
        """Group the subject's neighbours by predicate.

        reverse   collect subjects of (?, p, subject) instead of objects
        only      node-kind filter (see coerce_node_spec)
        normalize replaces every resource neighbour by its canonical form;
                  a None result keeps the original term
        inverses  also file neighbours from the opposite direction under
                  the inverse (or, if symmetric, the same) predicate
        """
        check_term(subject)
        kinds = coerce_node_spec(only)
        found: dict[URIRef, set[Node]] = {}

        pattern = (None, None, subject) if reverse else (subject, None, None)
        for s, p, o in self.graph.triples(pattern):
            node = s if reverse else o
            if not node_matches(node, kinds):
                continue
            found.setdefault(p, set()).add(_normalized(node, normalize))

        if inverses and kinds != {NodeKind.LITERAL} and not isinstance(subject, Literal):
            pattern = (subject, None, None) if reverse else (None, None, subject)
            for s, p, o in self.graph.triples(pattern):
                node = o if reverse else s
                if not node_matches(node, kinds):
                    continue
                for inverse in self.closure.inverses(p):
                    found.setdefault(inverse, set()).add(_normalized(node, normalize))

        return {p: sort_terms(found[p]) for p in sort_terms(found)}

    def find_in_struct(
        self, struct: Struct, predicates: Any, entail: bool = False, invert: bool = False
    ) -> dict:
        """The part of a struct keyed by the given predicates.

        With invert, the result maps each value to the set of predicates
        it appears under instead.
        """
        preds = set(_predicates(predicates))
        if entail:
            preds = self.closure.predicate_set(preds)
        selected = {p: v for p, v in struct.items() if p in preds}
        return invert_struct(selected) if invert else selected

    # -----------------------------------------------------------------------
    # Entailed neighbours
    # -----------------------------------------------------------------------

    def _expand(self, predicates: Any, entail: bool) -> list[URIRef]:
        preds = _predicates(predicates)
        if entail:
            return sort_terms(self.closure.predicate_set(preds))
        return dedupe(preds)

    def _reverse_predicates(self, preds: Iterable[URIRef], entail: bool) -> list[URIRef]:
        revp: list[URIRef] = []
        for p in preds:
            revp.extend(self.closure.inverses(p))
        if entail:
            return sort_terms(self.closure.predicate_set(revp))
        return sort_terms(revp)

    def subjects_for(
        self, predicates: Any, obj: Node, entail: bool = True, only: Any = None
    ) -> dict[Node, Incidence]:
        """Resources related to obj through any of predicates.

        Forward incidences come from (s, p, obj); reverse incidences from
        (obj, q, s) where q is an inverse or symmetric counterpart of p.
        """
        check_term(obj)
        kinds = coerce_node_spec(only, reverse=True)
        preds = self._expand(predicates, entail)
        found: dict[Node, tuple[set, set]] = {}

        for p in preds:
            for s in self.graph.subjects(p, obj):
                if node_matches(s, kinds):
                    found.setdefault(s, (set(), set()))[0].add(p)

        if not isinstance(obj, Literal):
            for p in self._reverse_predicates(preds, entail):
                for o in self.graph.objects(obj, p):
                    if node_matches(o, kinds):
                        found.setdefault(o, (set(), set()))[1].add(p)

        return _finish(found)

    def objects_for(
        self,
        subject: Node,
        predicates: Any,
        entail: bool = True,
        only: Any = None,
        datatype: Any = None,
    ) -> dict[Node, Incidence]:
        """Terms the subject relates to through any of predicates.

        datatype, when given, restricts literal objects to those datatypes.
        """
        check_term(subject)
        if not is_resource(subject):
            raise MalformedInputError(f"Subject must be a resource, not {subject!r}")
        kinds = coerce_node_spec(only)
        datatypes = set(as_terms(datatype))
        preds = self._expand(predicates, entail)
        found: dict[Node, tuple[set, set]] = {}

        for p in preds:
            for o in self.graph.objects(subject, p):
                if not node_matches(o, kinds):
                    continue
                if isinstance(o, Literal) and datatypes and o.datatype not in datatypes:
                    continue
                found.setdefault(o, (set(), set()))[0].add(p)

        if kinds != {NodeKind.LITERAL}:
            for p in self._reverse_predicates(preds, entail):
                for s in self.graph.subjects(p, subject):
                    if node_matches(s, kinds):
                        found.setdefault(s, (set(), set()))[1].add(p)

        return _finish(found)

    # -----------------------------------------------------------------------
    # Types and lists
    # -----------------------------------------------------------------------

    def asserted_types(
        self, subject: Node, types: Any = None, struct: Struct | None = None
    ) -> list[URIRef]:
        """The rdf:types asserted on the subject, or the override given.

        Explicit types keep the caller's order; types read from the graph
        or a struct come back in term order.
        """
        if types is not None:
            candidates = as_terms(types)
        elif struct is not None:
            candidates = sort_terms(struct.get(RDF.type, []))
        else:
            candidates = sort_terms(self.graph.objects(subject, RDF.type))

        resolved = (self.facts.resolve(t) for t in candidates)
        return dedupe(t for t in resolved if t is not None)

    def rdf_type(self, subject: Node, types: Any, struct: Struct | None = None) -> bool:
        """Whether the subject is, transitively, any of the given types."""
        asserted = self.asserted_types(subject, struct=struct)
        return self.closure.type_is(asserted, types) is not None

    def list_head(self, node: Node) -> Node:
        """Walk rdf:rest links backwards to the first cell of an RDF list."""
        seen = {node}
        while True:
            previous = [
                s for s in sort_terms(self.graph.subjects(RDF.rest, node))
                if not isinstance(s, URIRef) and s not in seen
            ]
            if not previous:
                return node
            node = previous[0]
            seen.add(node)


def invert_struct(struct: Struct) -> dict[Node, set[URIRef]]:
    """Map each value in a struct to the predicates it appears under."""
    nodes: dict[Node, set[URIRef]] = {}
    for p, values in struct.items():
        for v in values:
            nodes.setdefault(v, set()).add(p)
    return nodes
