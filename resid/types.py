"""Core types for resid — the term and graph contract.

Terms are rdflib terms:

  Iri       = rdflib.URIRef
  BlankNode = rdflib.BNode
  Literal   = rdflib.Literal

Every ordering in the engine bottoms out in term_key(), the lexical order
of a term's N-Triples serialization, so that redundant or contradictory
data still yields exactly one answer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, NamedTuple

from rdflib import BNode, Literal, URIRef
from rdflib.term import Node


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class MalformedInputError(ValueError):
    """An unparsable URI, or a non-term where a term is required."""


class PolicyError(ValueError):
    """A label or fragment policy that cannot be used, raised at load time."""


# ---------------------------------------------------------------------------
# Node kinds
# ---------------------------------------------------------------------------

class NodeKind(Enum):
    """The kind of an RDF term, used to filter neighbours."""
    URI = "uri"
    BLANK = "blank"
    LITERAL = "literal"


RESOURCE = frozenset({NodeKind.URI, NodeKind.BLANK})
ALL_KINDS = frozenset(NodeKind)

_KIND_NAMES = {
    "uri": (NodeKind.URI,),
    "iri": (NodeKind.URI,),
    "blank": (NodeKind.BLANK,),
    "bnode": (NodeKind.BLANK,),
    "literal": (NodeKind.LITERAL,),
    "resource": (NodeKind.URI, NodeKind.BLANK),
}


def coerce_node_spec(spec: Any = None, reverse: bool = False) -> frozenset[NodeKind]:
    """Turn a node-kind specification into a set of NodeKinds.

    Accepts None, a name ("resource", "uri", "iri", "blank", "bnode",
    "literal"), a NodeKind, or an iterable of those. An empty spec means
    every kind. In reverse (subject) position literals are impossible, so
    they are dropped from the default and rejected when asked for.
    """
    if spec is None:
        items: list = []
    elif isinstance(spec, (str, NodeKind)):
        items = [spec]
    else:
        items = list(spec)

    kinds: set[NodeKind] = set()
    for item in items:
        if isinstance(item, NodeKind):
            kinds.add(item)
            continue
        names = _KIND_NAMES.get(str(item).lower())
        if names is None:
            raise MalformedInputError(f"Unknown node kind: {item!r}")
        kinds.update(names)

    if reverse:
        if NodeKind.LITERAL in kinds:
            raise MalformedInputError("Subjects are never literals")
        return frozenset(kinds) if kinds else RESOURCE

    return frozenset(kinds) if kinds else ALL_KINDS


def node_kind(node: Node) -> NodeKind | None:
    if isinstance(node, URIRef):
        return NodeKind.URI
    if isinstance(node, BNode):
        return NodeKind.BLANK
    if isinstance(node, Literal):
        return NodeKind.LITERAL
    return None


def node_matches(node: Node, kinds: frozenset[NodeKind]) -> bool:
    return node_kind(node) in kinds


def is_resource(node: Any) -> bool:
    return isinstance(node, (URIRef, BNode))


# ---------------------------------------------------------------------------
# Deterministic term order
# ---------------------------------------------------------------------------

def check_term(value: Any) -> Node:
    """Return value if it is an RDF term, otherwise raise MalformedInputError."""
    if node_kind(value) is None:
        raise MalformedInputError(
            f"Expected an RDF term, not {type(value).__name__}: {value!r}"
        )
    return value


def term_key(term: Node) -> str:
    """Total order over terms: lexical order of the N-Triples form."""
    kind = node_kind(check_term(term))
    if kind is NodeKind.URI:
        # URIRef.n3() raises on IRIs with illegal characters; ordering never does
        return f"<{term}>"
    return term.n3()


def sort_terms(terms: Iterable[Node]) -> list[Node]:
    """Sort and de-duplicate terms by term_key()."""
    return sorted(set(terms), key=term_key)


def dedupe(items: Iterable) -> list:
    """Drop repeats, keeping first-seen order."""
    seen: set = set()
    out = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        out.append(item)
    return out


# ---------------------------------------------------------------------------
# Struct: predicate-indexed neighbourhood
# ---------------------------------------------------------------------------

Struct = dict[URIRef, list[Node]]
TypeStrata = list[list[URIRef]]


class Incidence(NamedTuple):
    """Predicates by which a neighbour was reached.

    forward holds predicates asserted in the queried direction; reverse
    holds inverse or symmetric predicates found in the opposite direction.
    """
    forward: frozenset[URIRef]
    reverse: frozenset[URIRef]


class LabelPair(NamedTuple):
    """A (predicate, literal) pair chosen as a label or description."""
    predicate: URIRef
    value: Literal

    def __str__(self) -> str:
        return str(self.value)


# ---------------------------------------------------------------------------
# CandidateResolution: transient, one identity-resolution call
# ---------------------------------------------------------------------------

EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class CandidateResolution:
    """A candidate subject during canonical-UUID resolution.

    rank runs 0..3, lower is better. mtime is the latest modification
    date recorded for the candidate, or EPOCH when it has none.
    """
    term: Node
    rank: int = 0b11
    published: bool = False
    mtime: datetime = field(default=EPOCH)
    replaced: bool = False

    def absorb(self, rank: int, mtime: datetime) -> None:
        """Keep the better rank; take mtime only if strictly later."""
        if rank < self.rank:
            self.rank = rank
        if mtime > self.mtime:
            self.mtime = mtime

    def __repr__(self) -> str:
        flags = []
        if self.published:
            flags.append("published")
        if self.replaced:
            flags.append("replaced")
        extra = f", {', '.join(flags)}" if flags else ""
        return f"Candidate({self.term}, rank={self.rank}{extra})"
