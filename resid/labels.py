"""Label Resolver — a type-ranked predicate cascade for labels and descriptions.

A LabelPolicy maps a class to predicate stacks:

  label: [main, alt]    which predicates name an instance
  desc:  [main, alt]    which predicates describe it

label_for() walks the subject's type strata from most specific to most
general and, for every class with an entry, collects the (predicate,
literal) pairs the subject actually carries, in stack order. The first
pair is "the" label.

Policies are checked and expanded once, when loaded: each stack gets the
direct equivalents of its predicates spliced in after them, an unset alt
stack is a copy of main, and equivalent classes share their entry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from rdflib import Literal, URIRef
from rdflib.collection import Collection
from rdflib.namespace import DC, DCTERMS, FOAF, OWL, PROV, RDF, RDFS, SKOS
from rdflib.term import Node

from .ontology import OntologyFacts
from .struct import Projector
from .types import LabelPair, PolicyError, Struct, check_term, dedupe, is_resource, term_key
from .vocab import BIBO, PAV

logger = logging.getLogger(__name__)

Stack = tuple[URIRef, ...]


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LabelSpec:
    """Main and alt predicate stacks for labels and for descriptions."""
    label: tuple[Stack, Stack] = ((), ())
    desc: tuple[Stack, Stack] = ((), ())

    def stack(self, description: bool = False, alt: bool = False) -> Stack:
        pair = self.desc if description else self.label
        return pair[1 if alt else 0]


def _splice_equivalents(stack: Sequence[URIRef], facts: OntologyFacts) -> Stack:
    out: list[URIRef] = []
    for pred in stack:
        if pred not in out:
            out.append(pred)
        for equiv in sorted(facts.equivalent_properties(pred), key=term_key):
            if equiv not in stack and equiv not in out:
                out.append(equiv)
    return tuple(out)


def _load_stacks(cls: Any, key: str, stacks: Any, facts: OntologyFacts) -> tuple[Stack, Stack]:
    if isinstance(stacks, (str, URIRef)) or not isinstance(stacks, Sequence):
        raise PolicyError(f"{cls} {key}: expected a list of predicate stacks")
    if not 1 <= len(stacks) <= 2:
        raise PolicyError(
            f"{cls} {key}: expected 1 or 2 predicate stacks, got {len(stacks)}"
        )

    loaded = []
    for stack in stacks:
        if isinstance(stack, (str, URIRef)) or not isinstance(stack, Sequence) or not stack:
            raise PolicyError(f"{cls} {key}: a predicate stack must be a non-empty list")
        for pred in stack:
            if not isinstance(pred, URIRef):
                raise PolicyError(f"{cls} {key}: {pred!r} is not a predicate IRI")
        loaded.append(_splice_equivalents(stack, facts))

    if len(loaded) == 1:
        loaded.append(loaded[0])
    return loaded[0], loaded[1]


@dataclass(frozen=True)
class LabelPolicy:
    """Immutable class -> LabelSpec table."""
    entries: Mapping[URIRef, LabelSpec] = field(default_factory=dict)

    def get(self, cls: URIRef) -> LabelSpec | None:
        return self.entries.get(cls)

    def __contains__(self, cls: object) -> bool:
        return cls in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def merged(self, other: LabelPolicy) -> LabelPolicy:
        """A new policy with other's entries layered over these."""
        return LabelPolicy({**self.entries, **other.entries})

    @classmethod
    def from_mapping(cls, mapping: Mapping, facts: OntologyFacts) -> LabelPolicy:
        """Build a policy from {class: {"label": [main, alt?], "desc": [main, alt?]}}.

        Raises PolicyError for anything that could not be used at query time.
        """
        entries: dict[URIRef, LabelSpec] = {}
        for rdftype, spec in mapping.items():
            if not isinstance(rdftype, URIRef):
                raise PolicyError(f"Label policy key {rdftype!r} is not a class IRI")
            if not isinstance(spec, Mapping):
                raise PolicyError(f"{rdftype}: entry must map 'label'/'desc' to stacks")
            unknown = set(spec) - {"label", "desc"}
            if unknown:
                raise PolicyError(f"{rdftype}: unknown keys {sorted(unknown)}")
            if not spec:
                raise PolicyError(f"{rdftype}: entry has no predicate stacks")

            stacks = {
                key: _load_stacks(rdftype, key, spec[key], facts)
                for key in ("label", "desc")
                if key in spec
            }
            entries[rdftype] = LabelSpec(**stacks)

        for rdftype in list(entries):
            for equiv in sorted(facts.equivalent_classes(rdftype), key=term_key):
                entries.setdefault(equiv, entries[rdftype])

        logger.debug(f"Label policy loaded: {len(entries)} classes")
        return cls(entries)

    @classmethod
    def default(cls, facts: OntologyFacts) -> LabelPolicy:
        """Generic resources, documents and agents."""
        resource = {
            "label": [
                [SKOS.prefLabel, RDFS.label, DCTERMS.title, DC.title, RDF.value],
                [SKOS.altLabel, DCTERMS.alternative],
            ],
            "desc": [
                [DCTERMS.abstract, DCTERMS.description, DC.description,
                 RDFS.comment, SKOS.note],
            ],
        }
        return cls.from_mapping(
            {
                RDFS.Resource: resource,
                OWL.Thing: resource,
                FOAF.Document: {
                    "label": [
                        [DCTERMS.title, DC.title],
                        [BIBO.shortTitle, DCTERMS.alternative],
                    ],
                    "desc": [
                        [BIBO.abstract, DCTERMS.abstract, DCTERMS.description,
                         DC.description],
                        [BIBO.shortDescription],
                    ],
                },
                FOAF.Agent: {
                    "label": [[FOAF.name]],
                    "desc": [[FOAF.status]],
                },
            },
            facts,
        )


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def label_for(
    projector: Projector,
    subject: Node,
    policy: LabelPolicy,
    struct: Struct | None = None,
    types: Any = None,
    unique: bool = True,
    description: bool = False,
    alt: bool = False,
) -> LabelPair | list[LabelPair] | None:
    """Best (predicate, literal) label or description for subject.

    types overrides the asserted rdf:types; struct reuses a literal struct
    the caller already has. Returns None (or []) when nothing applies.
    """
    check_term(subject)
    if not is_resource(subject):
        return None if unique else []

    asserted = projector.asserted_types(subject, types)
    strata = list(projector.closure.type_strata(asserted))
    if not any(RDFS.Resource in layer for layer in strata):
        strata.append([RDFS.Resource])

    if struct is None:
        struct = projector.struct_for(subject, only="literal")

    accum: list[LabelPair] = []
    seen: set[LabelPair] = set()
    for layer in strata:
        for rdftype in layer:
            spec = policy.get(rdftype)
            if spec is None:
                continue
            for pred in spec.stack(description, alt):
                for value in struct.get(pred, []):
                    pair = LabelPair(pred, value)
                    if pair not in seen:
                        seen.add(pair)
                        accum.append(pair)

    if unique:
        return accum[0] if accum else None
    return accum


# ---------------------------------------------------------------------------
# Authors
# ---------------------------------------------------------------------------

AUTHOR = (PAV.authoredBy, DCTERMS.creator, DC.creator, PROV.wasAttributedTo)
CONTRIB = (PAV.contributedBy, DCTERMS.contributor, DC.contributor)


def authors_for(
    projector: Projector,
    subject: Node,
    policy: LabelPolicy,
    unique: bool = False,
    contrib: bool = False,
) -> Node | list[Node] | None:
    """Authors (or contributors) of subject.

    An explicit bibo:authorList (bibo:contributorList) comes first, in list
    order; the remaining authors follow sorted by label, unlabelled last.
    """
    check_term(subject)
    graph = projector.graph
    facts = projector.facts

    ordered: list[Node] = []
    list_pred = BIBO.contributorList if contrib else BIBO.authorList
    for pred in _splice_equivalents([list_pred], facts):
        head = graph.value(subject, pred)
        if head is not None:
            ordered.extend(Collection(graph, head))

    unsorted: list[Node] = []
    for pred in _splice_equivalents(CONTRIB if contrib else AUTHOR, facts):
        unsorted.extend(graph.objects(subject, pred))

    def by_label(node: Node):
        if isinstance(node, Literal):
            return (0, str(node), term_key(node))
        label = label_for(projector, node, policy)
        if label is None:
            return (1, "", term_key(node))
        return (0, str(label), term_key(node))

    authors = dedupe(ordered + sorted(set(unsorted), key=by_label))
    if unique:
        return authors[0] if authors else None
    return authors
