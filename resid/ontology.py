"""OntologyFacts — the direct class and property facts the closure engine consumes.

The engine never invents these facts; it only closes over them. Facts are
read from RDFS/OWL assertions in one or more rdflib graphs:

  equivalent classes    owl:equivalentClass (either direction)
  super/sub classes     rdfs:subClassOf
  equivalent properties owl:equivalentProperty (either direction)
  super/sub properties  rdfs:subPropertyOf
  inverse properties    owl:inverseOf (either direction)
  symmetric flag        rdf:type owl:SymmetricProperty

Only IRIs come back: blank-node class expressions (restrictions, unions)
are not named classes and contribute nothing.
"""

from __future__ import annotations

import logging
from typing import Any

from rdflib import Graph, URIRef
from rdflib.namespace import OWL, RDF, RDFS
from rdflib.term import Node

from .types import check_term
from .vocab import DEFAULT_AXIOMS

logger = logging.getLogger(__name__)


class OntologyFacts:
    """Direct equivalence, hierarchy and inverse facts over one or more graphs.

    With strict=True a seed term is only usable if the ontology mentions
    it; otherwise any IRI may seed a closure, contributing at least itself.
    """

    def __init__(self, *graphs: Graph, strict: bool = False):
        self.graph = Graph()
        for g in graphs:
            self.graph += g
        self.strict = strict
        self._mentioned: set[Node] | None = None

    @classmethod
    def default(cls, *extra: Graph, strict: bool = False) -> OntologyFacts:
        """Bundled axioms plus any extra graphs (often the data graph itself)."""
        axioms = Graph().parse(data=DEFAULT_AXIOMS, format="turtle")
        facts = cls(axioms, *extra, strict=strict)
        logger.debug(f"Loaded ontology facts: {len(facts.graph)} triples")
        return facts

    def add(self, graph: Graph) -> None:
        """Merge more facts. Closures computed earlier are not revisited."""
        self.graph += graph
        self._mentioned = None

    # -----------------------------------------------------------------------
    # Term resolution
    # -----------------------------------------------------------------------

    def resolve(self, term: Any) -> URIRef | None:
        """Return term if it can seed a closure, else None (silently dropped)."""
        check_term(term)
        if not isinstance(term, URIRef):
            return None
        if self.strict and term not in self._terms():
            return None
        return term

    def knows(self, term: Node) -> bool:
        return term in self._terms()

    def _terms(self) -> set[Node]:
        if self._mentioned is None:
            mentioned: set[Node] = set()
            for s, p, o in self.graph:
                mentioned.update((s, p, o))
            self._mentioned = mentioned
        return self._mentioned

    # -----------------------------------------------------------------------
    # Classes
    # -----------------------------------------------------------------------

    def equivalent_classes(self, cls: Node) -> set[URIRef]:
        return self._both_ways(cls, OWL.equivalentClass)

    def super_classes(self, cls: Node) -> set[URIRef]:
        return self._iris(self.graph.objects(cls, RDFS.subClassOf), cls)

    def sub_classes(self, cls: Node) -> set[URIRef]:
        return self._iris(self.graph.subjects(RDFS.subClassOf, cls), cls)

    # -----------------------------------------------------------------------
    # Properties
    # -----------------------------------------------------------------------

    def equivalent_properties(self, prop: Node) -> set[URIRef]:
        return self._both_ways(prop, OWL.equivalentProperty)

    def super_properties(self, prop: Node) -> set[URIRef]:
        return self._iris(self.graph.objects(prop, RDFS.subPropertyOf), prop)

    def sub_properties(self, prop: Node) -> set[URIRef]:
        return self._iris(self.graph.subjects(RDFS.subPropertyOf, prop), prop)

    def inverse_properties(self, prop: Node) -> set[URIRef]:
        return self._both_ways(prop, OWL.inverseOf)

    def is_symmetric(self, prop: Node) -> bool:
        return (prop, RDF.type, OWL.SymmetricProperty) in self.graph

    def types(self, term: Node) -> set[URIRef]:
        """Directly asserted rdf:type of a vocabulary term."""
        return self._iris(self.graph.objects(term, RDF.type))

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    def _both_ways(self, term: Node, predicate: URIRef) -> set[URIRef]:
        found = set(self.graph.objects(term, predicate))
        found.update(self.graph.subjects(predicate, term))
        return self._iris(found, term)

    @staticmethod
    def _iris(nodes, exclude: Node | None = None) -> set[URIRef]:
        return {n for n in nodes if isinstance(n, URIRef) and n != exclude}

    def __repr__(self) -> str:
        mode = ", strict" if self.strict else ""
        return f"OntologyFacts({len(self.graph)} triples{mode})"
