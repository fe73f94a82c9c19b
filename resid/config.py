"""Resolver configuration, with environment variable loaders.

  RESID_BASE             base URI for slug and UUID addresses
  RESID_DOCUMENT_TYPES   comma-separated class IRIs that count as documents
  RESID_WWW              "true"/"false": prefer www or bare hosts; unset = no preference
  RESID_STRICT_ONTOLOGY  "true" drops closure seeds the ontology does not mention
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Final

from rdflib import URIRef
from rdflib.namespace import FOAF

from .publication import DEFAULT_STATUS, PublicationStatus
from .types import MalformedInputError
from .uris import coerce_resource

DEFAULT_DOCUMENT_TYPES: Final[tuple[URIRef, ...]] = (FOAF.Document,)

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


class ConfigurationError(ValueError):
    """Raised when configuration values are invalid."""


@dataclass(frozen=True, slots=True)
class ResolverConfig:
    base: URIRef | None = None
    document_types: tuple[URIRef, ...] = DEFAULT_DOCUMENT_TYPES
    status: PublicationStatus = field(default=DEFAULT_STATUS)
    www: bool | None = None
    strict_ontology: bool = False

    def __post_init__(self) -> None:
        if self.base is not None and not isinstance(self.base, URIRef):
            raise ConfigurationError(f"base must be a URIRef, not {self.base!r}")
        if not self.document_types:
            raise ConfigurationError("document_types must name at least one class")

    def with_base(self, base: str | URIRef | None) -> ResolverConfig:
        return replace(self, base=_parse_base(base) if base is not None else None)


def _parse_base(value: str) -> URIRef:
    try:
        base = coerce_resource(value)
    except MalformedInputError as e:
        raise ConfigurationError(f"Invalid base URI {value!r}") from e
    if not isinstance(base, URIRef) or ":" not in base:
        raise ConfigurationError(f"Base URI must be absolute: {value!r}")
    return base


def _parse_flag(name: str, value: str) -> bool:
    text = value.strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be true or false, got {value!r}")


def _parse_types(value: str) -> tuple[URIRef, ...]:
    types = []
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        types.append(_parse_base(item))
    if not types:
        raise ConfigurationError("RESID_DOCUMENT_TYPES names no classes")
    return tuple(types)


def get_resolver_config() -> ResolverConfig:
    base = os.getenv("RESID_BASE")
    types = os.getenv("RESID_DOCUMENT_TYPES")
    www = os.getenv("RESID_WWW")
    strict = os.getenv("RESID_STRICT_ONTOLOGY")

    return ResolverConfig(
        base=_parse_base(base) if base and base.strip() else None,
        document_types=_parse_types(types) if types else DEFAULT_DOCUMENT_TYPES,
        www=_parse_flag("RESID_WWW", www) if www and www.strip() else None,
        strict_ontology=_parse_flag("RESID_STRICT_ONTOLOGY", strict) if strict else False,
    )
