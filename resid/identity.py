"""Identity Resolver — canonical URIs, canonical UUIDs and replacement chains.

Three questions, each with exactly one deterministic answer:

  canonical_uri(s)     the preferred dereferenceable address of s
  canonical_uuid(u)    the urn:uuid: subject an address u stands for
  replacements_for(s)  the current resource(s) at the end of s's
                       dct:replaces / dct:isReplacedBy chain

Canonical URIs come from explicit ci:canonical links first, then slugs,
aliases and finally the UUID itself. Resources that are not documents may
live inside a host document, in which case their address is a fragment of
the host's address.

Canonical UUIDs are ranked candidates:

  rank 0  exact slug match on ci:canonical-slug (or a ci:canonical link)
  rank 1  exact match on ci:slug (or an alias / owl:sameAs link)
  rank 2  inexact match on ci:canonical-slug
  rank 3  inexact match on ci:slug

Lower rank wins, then the newer modification date.
"""

from __future__ import annotations

import logging
import re
from collections import deque
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any, Callable, Mapping, NamedTuple, Sequence

from rdflib import Literal, URIRef
from rdflib.namespace import DCTERMS, OWL, RDF, XSD
from rdflib.term import Node

from .cache import ResolutionCache
from .config import ResolverConfig
from .publication import latest_mtime, published
from .struct import Projector
from .types import (
    CandidateResolution,
    PolicyError,
    check_term,
    dedupe,
    sort_terms,
    term_key,
)
from .uris import (
    UUID_RE,
    coerce_resource,
    directory_of,
    has_fragment,
    is_uuid_urn,
    normalize_uri,
    split_pp,
    split_uri,
    terminal_slug,
    uri_pp,
    uuid_of,
    uuid_to_ncname,
    with_fragment,
    with_path,
    with_path_params,
)
from .vocab import ALIAS, CANONICAL, CANONICAL_SLUG, FRAGMENT_OF, SLUG

logger = logging.getLogger(__name__)

SLUG_DATATYPES = (None, XSD.string, XSD.token)


# ---------------------------------------------------------------------------
# Resource comparator
# ---------------------------------------------------------------------------

SCHEME_RANK = {"https": 0, "http": 1}

_WWW = re.compile(r"^(?:(www)\.)?(.*?)$")
_LOCAL = re.compile(r"^.*?//.*?(/.*)$")


def _cmp(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def cmp_resource(a: Node, b: Node, www: bool | None = None) -> int:
    """Order two terms by how good they are as a public address.

    IRIs beat everything else; https beats http beats other schemes. With
    a www preference, http(s) IRIs compare by host (sans "www."), then by
    whether they match the preference, then by path. Anything still tied
    falls back to term order.
    """
    check_term(a)
    check_term(b)

    if not isinstance(a, URIRef):
        return 1 if isinstance(b, URIRef) else _cmp(term_key(a), term_key(b))
    if not isinstance(b, URIRef):
        return -1

    sa = split_uri(str(a)).scheme.lower()
    sb = split_uri(str(b)).scheme.lower()
    cmp = _cmp(SCHEME_RANK.get(sa, 2), SCHEME_RANK.get(sb, 2))
    if cmp:
        return cmp

    if sa in SCHEME_RANK and www is not None:
        ha = _WWW.match((split_uri(str(a)).hostname or ""))
        hb = _WWW.match((split_uri(str(b)).hostname or ""))

        cmp = _cmp(ha.group(2), hb.group(2))
        if cmp:
            return cmp

        # the preferred form sorts first
        pa = 0 if bool(ha.group(1)) == www else 1
        pb = 0 if bool(hb.group(1)) == www else 1
        cmp = _cmp(pa, pb)
        if cmp:
            return cmp

        la = _LOCAL.match(str(a))
        lb = _LOCAL.match(str(b))
        cmp = _cmp(la.group(1) if la else "", lb.group(1) if lb else "")
        if cmp:
            return cmp

    return _cmp(term_key(a), term_key(b))


def resource_key(www: bool | None = None) -> Callable[[Node], Any]:
    """Sort key form of cmp_resource()."""
    return cmp_to_key(lambda a, b: cmp_resource(a, b, www=www))


# ---------------------------------------------------------------------------
# Fragment policy
# ---------------------------------------------------------------------------

class FragmentRule(NamedTuple):
    """Follow predicate from a fragment to its host (backwards if reverse)."""
    predicate: URIRef
    reverse: bool = False


@dataclass(frozen=True)
class FragmentPolicy:
    """Immutable class -> host-discovery rules table."""
    entries: Mapping[URIRef, tuple[FragmentRule, ...]] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, mapping: Mapping) -> FragmentPolicy:
        """Build a policy from {class: [predicate | (predicate, reverse), ...]}."""
        entries: dict[URIRef, tuple[FragmentRule, ...]] = {}
        for rdftype, rules in mapping.items():
            if not isinstance(rdftype, URIRef):
                raise PolicyError(f"Fragment policy key {rdftype!r} is not a class IRI")
            if isinstance(rules, (str, URIRef)) or (
                isinstance(rules, Sequence) and len(rules) == 2 and isinstance(rules[1], bool)
            ):
                rules = [rules]
            if not isinstance(rules, Sequence) or not rules:
                raise PolicyError(f"{rdftype}: expected a non-empty list of rules")

            loaded = []
            for rule in rules:
                if isinstance(rule, URIRef):
                    rule = (rule, False)
                if (
                    isinstance(rule, str)
                    or not isinstance(rule, Sequence)
                    or len(rule) != 2
                    or not isinstance(rule[0], URIRef)
                    or not isinstance(rule[1], bool)
                ):
                    raise PolicyError(
                        f"{rdftype}: rule {rule!r} is not a predicate or (predicate, reverse)"
                    )
                loaded.append(FragmentRule(rule[0], rule[1]))
            entries[rdftype] = tuple(dedupe(loaded))
        return cls(entries)

    def rules_for(self, types: Any, closure) -> list[FragmentRule]:
        """Rules of every class the types fall under, nearest class first."""
        scored = []
        for rdftype, rules in self.entries.items():
            distance = closure.type_is(types, rdftype)
            if distance is not None:
                scored.append((distance, term_key(rdftype), rules))
        scored.sort(key=lambda x: (x[0], x[1]))
        return dedupe(rule for _, _, rules in scored for rule in rules)

    def __len__(self) -> int:
        return len(self.entries)


# ---------------------------------------------------------------------------
# Replacement chains
# ---------------------------------------------------------------------------

@dataclass
class _ChainEntry:
    published: bool
    replaces: set[Node] = field(default_factory=set)
    replaced_by: set[Node] = field(default_factory=set)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

class IdentityResolver:
    """Canonical URI and UUID resolution over one Projector."""

    def __init__(
        self,
        projector: Projector,
        config: ResolverConfig | None = None,
        cache: ResolutionCache | None = None,
        fragment_policy: FragmentPolicy | None = None,
    ):
        self.projector = projector
        self.config = config or ResolverConfig()
        self.cache = cache if cache is not None else ResolutionCache()
        self.fragment_policy = fragment_policy or FragmentPolicy()

    @property
    def closure(self):
        return self.projector.closure

    def _published(self, subject: Node) -> bool:
        return published(self.projector, subject, self.config.status)

    def _sorted(self, terms) -> list[Node]:
        return sorted(sort_terms(terms), key=resource_key(self.config.www))

    # -----------------------------------------------------------------------
    # Host documents
    # -----------------------------------------------------------------------

    def host_for(self, subject: Node) -> Node | None:
        """The document a non-document subject is a fragment of, if any."""
        p = self.projector
        explicit = p.objects_for(subject, FRAGMENT_OF, only="resource")
        if explicit:
            return self._sorted(explicit)[0]

        types = p.asserted_types(subject)
        documents = self.config.document_types
        if self.closure.type_is(types, documents) is not None:
            return None

        rules = self.fragment_policy.rules_for(types, self.closure)
        if not rules:
            return None

        head = None
        cells = sort_terms(
            s for s in p.subjects_for(RDF.first, subject, only="blank")
        )
        if cells:
            head = p.list_head(cells[0])

        hosts: list[Node] = []
        for rule in rules:
            if rule.reverse:
                hosts.extend(p.subjects_for(rule.predicate, subject, only="resource"))
                if head is not None:
                    hosts.extend(p.subjects_for(rule.predicate, head, only="resource"))
            else:
                hosts.extend(p.objects_for(subject, rule.predicate, only="resource"))

        for h in dedupe(hosts):
            if h != subject and p.rdf_type(h, documents) and self._published(h):
                logger.debug(f"Host of {subject} is {h}")
                return h
        return None

    # -----------------------------------------------------------------------
    # Canonical URI
    # -----------------------------------------------------------------------

    def canonical_uri(
        self,
        subject: Any,
        unique: bool = True,
        include_fragments: bool = True,
        allow_slugs: bool = False,
        rdf: bool = True,
        base: Any = None,
    ):
        """The preferred address of subject (or every candidate, best first).

        With rdf=False the result is plain strings rather than URIRefs.
        """
        base = coerce_resource(base) if base is not None else self.config.base
        subject = coerce_resource(subject, base)
        out = self._canonical_uri(subject, unique, include_fragments, allow_slugs, base, set())

        if not rdf:
            out = [uri_pp(u) for u in out]
        return out[0] if unique else dedupe(out)

    def _canonical_uri(
        self,
        subject: Node,
        unique: bool,
        include_fragments: bool,
        allow_slugs: bool,
        base: URIRef | None,
        visiting: set[Node],
    ) -> list[Node]:
        p = self.projector
        visiting = visiting | {subject}

        host = self.host_for(subject)
        hosturi = None
        if host is not None:
            if host in visiting:
                logger.warning(f"Host document cycle at {subject} -> {host}; ignoring host")
                host = None
            else:
                hosturi = self._canonical_uri(host, True, True, False, base, visiting)[0]

        def slug_uris(predicate: URIRef, entail: bool) -> list[Node]:
            found = []
            for lit in p.objects_for(subject, predicate, entail=entail, only="literal"):
                if hosturi is not None and isinstance(hosturi, URIRef):
                    found.append(with_fragment(hosturi, str(lit)))
                elif base is not None:
                    found.append(coerce_resource(str(lit), directory_of(base)))
            return self._sorted(found)

        use_slugs = isinstance(subject, URIRef) and (allow_slugs or host is not None)

        primary = self._sorted(p.objects_for(subject, CANONICAL, only="resource"))
        if use_slugs and (not primary or not unique):
            primary += slug_uris(CANONICAL_SLUG, True)

        secondary: list[Node] = []
        if not primary or not unique:
            secondary = self._sorted(
                p.objects_for(subject, [OWL.sameAs, ALIAS], entail=False, only="resource")
            )
            if use_slugs:
                secondary += slug_uris(SLUG, False)

            uuid = uuid_of(subject) if isinstance(subject, URIRef) else None
            if uuid and base is not None:
                if isinstance(hosturi, URIRef):
                    secondary.append(with_fragment(hosturi, uuid_to_ncname(uuid)))
                else:
                    secondary.append(with_path(base, "/" + uuid))
            else:
                secondary.append(subject)

        out = primary + secondary
        if not include_fragments:
            whole = [u for u in out if not has_fragment(u)]
            if whole:
                out = whole
        return out

    # -----------------------------------------------------------------------
    # Canonical UUID
    # -----------------------------------------------------------------------

    def canonical_uuid(
        self,
        uri: Any,
        unique: bool = True,
        published_only: bool = False,
        base: Any = None,
    ):
        """The urn:uuid: subject uri identifies (or every candidate, best first)."""
        base = coerce_resource(base) if base is not None else self.config.base
        orig = uri = coerce_resource(uri, base)

        if isinstance(uri, URIRef):
            uri = URIRef(normalize_uri(uri))
            parts = split_uri(str(uri))
            bare = parts.path[1:] if parts.path.startswith("/") else parts.path
            if is_uuid_urn(URIRef(str(uri).lower())):
                uri = URIRef(str(uri).lower())
            elif parts.path and not parts.fragment and UUID_RE.match(bare):
                uri = URIRef("urn:uuid:" + bare.lower())

            if is_uuid_urn(uri) and self.cache.has_subject(uri, self.projector.has_subject):
                logger.debug(f"{orig} is a known UUID subject")
                return uri if unique else [uri]

        key = (orig, published_only, base)
        out = self.cache.get_uuids(key)
        if out is not None:
            logger.debug(f"Resolution cache hit for {orig}")
            return (out[0] if out else None) if unique else out

        candidates = self._link_candidates(uri)
        self._slug_candidates(uri, base, candidates)

        candidates = {s: c for s, c in candidates.items() if is_uuid_urn(s)}
        self._apply_replacements(candidates, published_only)

        survivors = [
            c for c in candidates.values()
            if not c.replaced and (c.published or not published_only)
        ]
        survivors.sort(key=lambda c: term_key(c.term))
        survivors.sort(key=lambda c: c.mtime, reverse=True)
        survivors.sort(key=lambda c: (published_only and not c.published, c.rank))
        out = [c.term for c in survivors]

        logger.debug(f"Resolved {orig} to {len(out)} candidate(s): {survivors}")
        self.cache.put_uuids(key, out)
        return (out[0] if out else None) if unique else out

    def _candidate(self, subject: Node, rank: int = 0b11) -> CandidateResolution:
        return CandidateResolution(
            term=subject,
            rank=rank,
            published=self._published(subject),
            mtime=latest_mtime(self.projector, subject),
        )

    def _tiers(self, uri: Node) -> list[Node]:
        """uri with its path parameters, most specific first."""
        if not isinstance(uri, URIRef) or not split_uri(str(uri)).path.startswith("/"):
            return [uri]
        bare, params = split_pp(uri)
        if not params:
            return [uri]
        return [with_path_params(bare, params[:i]) for i in range(len(params), -1, -1)]

    def _link_candidates(self, uri: Node) -> dict[Node, CandidateResolution]:
        links = self.closure.predicate_set([CANONICAL, ALIAS, OWL.sameAs])
        for tier in self._tiers(uri):
            found = self.projector.subjects_for(links, tier, entail=False)
            if found:
                logger.debug(f"{len(found)} subject(s) linked to {tier}")
                return {
                    s: self._candidate(s, 0 if CANONICAL in inc.forward else 1)
                    for s, inc in found.items()
                }
        return {}

    def _slug_candidates(
        self, uri: Node, base: URIRef | None, candidates: dict[Node, CandidateResolution]
    ) -> None:
        slug = terminal_slug(uri, base)
        if not slug:
            return
        exact = base is not None and uri == coerce_resource(slug, directory_of(base))

        for datatype in SLUG_DATATYPES:
            value = Literal(slug, datatype=datatype)
            for s, inc in self.projector.subjects_for([CANONICAL_SLUG, SLUG], value).items():
                rank = ((int(exact) << 1) | int(CANONICAL_SLUG in inc.forward)) ^ 0b11
                entry = candidates.get(s)
                if entry is None:
                    candidates[s] = self._candidate(s, rank)
                else:
                    entry.absorb(rank, latest_mtime(self.projector, s))

    def _apply_replacements(
        self, candidates: dict[Node, CandidateResolution], published_only: bool
    ) -> None:
        # successors added below are checked in turn
        pending = deque(sort_terms(candidates))
        checked: set[Node] = set()
        while pending:
            subject = pending.popleft()
            if subject in checked:
                continue
            checked.add(subject)
            current = candidates[subject]
            successors = [
                r for r in self.replacements_for(subject, published_only) if r != subject
            ]
            if not successors:
                continue
            current.replaced = True
            for r in successors:
                successor = candidates.get(r)
                if successor is None:
                    successor = candidates[r] = CandidateResolution(
                        term=r,
                        rank=current.rank,
                        published=self._published(r),
                        mtime=latest_mtime(self.projector, r, default=current.mtime),
                    )
                successor.absorb(current.rank, current.mtime)
                if r not in checked:
                    pending.append(r)

    # -----------------------------------------------------------------------
    # Replacement chains
    # -----------------------------------------------------------------------

    def replacements_for(self, subject: Any, published_only: bool = True) -> list[Node]:
        """Terminal replacements of subject, empty if it was never replaced.

        Walks dct:replaces / dct:isReplacedBy forward from subject. With
        published_only, prefer the latest published resources in the
        chain, walking back from the terminals until some are found.
        """
        subject = coerce_resource(subject, self.config.base)
        p = self.projector

        seen: dict[Node, _ChainEntry] = {subject: _ChainEntry(self._published(subject))}
        queue = deque([subject])
        while queue:
            test = queue.popleft()
            entry = seen[test]
            successors = list(p.subjects_for(DCTERMS.replaces, test, only="resource"))
            successors += p.objects_for(test, DCTERMS.isReplacedBy, only="resource")
            for r in sort_terms(successors):
                entry.replaced_by.add(r)
                if r in seen:
                    seen[r].replaces.add(test)
                    continue
                seen[r] = _ChainEntry(self._published(r), replaces={test})
                queue.append(r)

        out = [k for k, v in seen.items() if not v.replaced_by and k != subject]
        if not published_only:
            return out

        visited = set(out)
        while out:
            latest = [o for o in out if seen[o].published]
            if latest:
                return latest
            earlier = set()
            for o in out:
                earlier |= seen[o].replaces
            out = [o for o in sort_terms(earlier) if o not in visited and o != subject]
            visited.update(out)
        return []
