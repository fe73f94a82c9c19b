"""Resolver — one object wiring a graph, its ontology, policies and cache.

  resolver = Resolver(graph, config=ResolverConfig(base=URIRef("https://ex.org/")))
  resolver.canonical_uri(subject)
  resolver.canonical_uuid("https://ex.org/some-slug")
  resolver.label_for(subject)

The resolver owns its ResolutionCache. The graph is assumed not to change
underneath it; after writing to the graph, call invalidate().
"""

from __future__ import annotations

import logging
from typing import Any

from rdflib import Graph, URIRef
from rdflib.namespace import RDF
from rdflib.term import Node

from .cache import ResolutionCache
from .closure import Closure
from .config import ResolverConfig
from .identity import FragmentPolicy, IdentityResolver
from .labels import LabelPolicy, authors_for, label_for
from .ontology import OntologyFacts
from .publication import dates_for, published
from .struct import Projector
from .types import LabelPair, Struct, TypeStrata, sort_terms

logger = logging.getLogger(__name__)


class Resolver:
    """Identity and label resolution over one graph snapshot."""

    def __init__(
        self,
        graph: Graph,
        ontology: OntologyFacts | None = None,
        config: ResolverConfig | None = None,
        label_policy: LabelPolicy | None = None,
        fragment_policy: FragmentPolicy | None = None,
        cache: ResolutionCache | None = None,
    ):
        self.graph = graph
        self.config = config or ResolverConfig()
        # the data graph's own schema statements count as ontology facts
        self.ontology = ontology or OntologyFacts.default(
            graph, strict=self.config.strict_ontology
        )
        self.closure = Closure(self.ontology)
        self.projector = Projector(graph, self.closure)
        self.cache = cache if cache is not None else ResolutionCache()
        self.label_policy = label_policy or LabelPolicy.default(self.ontology)
        self.identity = IdentityResolver(
            self.projector, self.config, self.cache, fragment_policy
        )
        logger.debug(f"Resolver ready: {len(graph)} triples, {self.ontology!r}")

    # -----------------------------------------------------------------------
    # Identity
    # -----------------------------------------------------------------------

    def canonical_uri(self, subject: Any, **kwargs):
        return self.identity.canonical_uri(subject, **kwargs)

    def canonical_uuid(self, uri: Any, **kwargs):
        return self.identity.canonical_uuid(uri, **kwargs)

    def replacements_for(self, subject: Any, published_only: bool = True) -> list[Node]:
        return self.identity.replacements_for(subject, published_only)

    def host_for(self, subject: Node) -> Node | None:
        return self.identity.host_for(subject)

    # -----------------------------------------------------------------------
    # Structure and types
    # -----------------------------------------------------------------------

    def struct_for(
        self,
        subject: Node,
        reverse: bool = False,
        only: Any = None,
        canonical: bool = False,
        inverses: bool = False,
    ) -> Struct:
        """Predicate-indexed neighbours of subject.

        canonical=True replaces each resource neighbour by its canonical
        UUID where one exists.
        """
        normalize = None
        if canonical:
            normalize = self.identity.canonical_uuid
        return self.projector.struct_for(
            subject, reverse=reverse, only=only, normalize=normalize, inverses=inverses
        )

    def type_strata(self, seeds: Any, descend: bool = False) -> TypeStrata | list[URIRef]:
        return self.closure.type_strata(seeds, descend=descend)

    def predicate_set(self, seeds: Any) -> set[URIRef]:
        return self.closure.predicate_set(seeds)

    def all_of_type(self, rdftype: Any, exclude: Any = None) -> list[Node]:
        """Subjects asserted to be rdftype or any of its sub-classes."""
        excluded = set(self.closure.all_related(exclude)) if exclude is not None else set()
        found = set()
        for t in self.closure.all_related(rdftype):
            if t in excluded:
                continue
            found.update(self.graph.subjects(RDF.type, t))
        return sort_terms(found)

    # -----------------------------------------------------------------------
    # Labels and publication
    # -----------------------------------------------------------------------

    def label_for(self, subject: Node, **kwargs) -> LabelPair | list[LabelPair] | None:
        return label_for(self.projector, subject, self.label_policy, **kwargs)

    def authors_for(self, subject: Node, unique: bool = False, contrib: bool = False):
        return authors_for(
            self.projector, subject, self.label_policy, unique=unique, contrib=contrib
        )

    def published(self, subject: Node, **kwargs) -> bool:
        return published(self.projector, subject, self.config.status, **kwargs)

    def dates_for(self, subject: Node, **kwargs):
        return dates_for(self.projector, subject, **kwargs)

    # -----------------------------------------------------------------------
    # Cache
    # -----------------------------------------------------------------------

    def invalidate(self) -> None:
        """Forget every memoized resolution. Call after changing the graph."""
        self.cache.clear()
        logger.info("Resolver cache invalidated")
