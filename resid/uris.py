"""URI utilities: minimal escaping, path parameters, slugs, UUIDs.

uri_pp() repairs stray percent signs and escapes only what RFC 3986 does
not allow in each component, leaving structural separators alone. Every
other helper here goes through it, so two spellings of the same address
compare equal after coercion.
"""

from __future__ import annotations

import base64
import re
import uuid
from typing import Any
from urllib.parse import SplitResult, urljoin, urlsplit, urlunsplit

from rdflib import BNode, Literal, URIRef

from .types import MalformedInputError

UUID_RE = re.compile(
    r"^(?:urn:uuid:)?([0-9a-f]{8}(?:-[0-9a-f]{4}){4}[0-9a-f]{8})$", re.IGNORECASE
)
UUID_URN_RE = re.compile(r"^urn:uuid:[0-9a-f]{8}(?:-[0-9a-f]{4}){3}-[0-9a-f]{12}$")

# base32 UUID-NCName: version letter, 24 base32 digits, variant letter
NCNAME_RE = re.compile(r"^[A-P][2-7A-Z]{24}[A-P]$", re.IGNORECASE)

_RFC3986 = re.compile(
    r"^(?:([^:/?#]+):)?(?://([^/?#]*))?([^?#]+)?(?:\?([^#]*))?(?:#(.*))?$", re.DOTALL
)
_SEPS = (("", ":"), ("//", ""), ("", ""), ("?", ""), ("#", ""))
_SAFE = frozenset(
    b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
    b"/?%@!$&'()*+,:;=._~-[]"
)
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_HEX_ESCAPE = re.compile(r"%[0-9A-Fa-f]{2}")


# ---------------------------------------------------------------------------
# Escaping
# ---------------------------------------------------------------------------

def _escape(part: str) -> str:
    return "".join(
        chr(b) if b in _SAFE else f"%{b:02X}" for b in part.encode("utf-8")
    )


def uri_pp(uri: Any, extra: str = "") -> str:
    """Make a URI string safe to parse with the minimum of escaping.

    Stray '%' signs become '%25', characters in `extra` are escaped
    unconditionally, each component is escaped separately so that the
    separators between them survive, and hex escapes are upper-cased.
    """
    text = _BAD_ESCAPE.sub("%25", str(uri))
    if extra:
        text = re.sub(
            f"[{re.escape(extra)}]", lambda m: f"%{ord(m.group()):02X}", text
        )

    out = []
    for (before, after), part in zip(_SEPS, _RFC3986.match(text).groups()):
        if part is None:
            continue
        out.append(before + _escape(part) + after)

    return _HEX_ESCAPE.sub(lambda m: m.group().upper(), "".join(out))


def split_uri(uri: str) -> SplitResult:
    """urlsplit(), raising MalformedInputError instead of ValueError."""
    try:
        return urlsplit(uri)
    except ValueError as e:
        raise MalformedInputError(f"Unparsable URI {uri!r}: {e}") from e


def normalize_uri(uri: Any) -> str:
    """uri_pp() plus lower-case scheme and host, and '/' for an empty http path."""
    parts = split_uri(uri_pp(uri))
    scheme = parts.scheme.lower()
    path = parts.path
    if scheme in ("http", "https") and parts.netloc and not path:
        path = "/"
    return urlunsplit(parts._replace(scheme=scheme, netloc=parts.netloc.lower(), path=path))


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------

def coerce_resource(arg: Any, base: Any = None) -> URIRef | BNode:
    """Coerce a string into a URIRef (or BNode for '_:' labels).

    Existing URIRefs and BNodes pass through untouched. A relative string
    is resolved against base when one is given.
    """
    if isinstance(arg, (URIRef, BNode)):
        return arg
    if isinstance(arg, Literal) or not isinstance(arg, str):
        raise MalformedInputError(
            f"Cannot coerce {type(arg).__name__} to a resource: {arg!r}"
        )

    text = arg.strip()
    if text.startswith("_:"):
        return BNode(text[2:])
    if not text and base is None:
        raise MalformedInputError("Cannot coerce an empty string to a resource")

    resolved = uri_pp(text)
    if base is not None:
        try:
            resolved = urljoin(uri_pp(str(base).strip()), resolved)
        except ValueError as e:
            raise MalformedInputError(f"Cannot resolve {arg!r} against {base!r}: {e}") from e
    split_uri(resolved)
    return URIRef(resolved)


def directory_of(base: URIRef) -> URIRef:
    """base with a trailing '/' on its path, so slugs resolve beneath it."""
    parts = split_uri(str(base))
    path = parts.path if parts.path.endswith("/") else parts.path + "/"
    return URIRef(urlunsplit(parts._replace(path=path, query="", fragment="")))


def uuid_of(term: Any) -> str | None:
    """The lower-case UUID a urn:uuid: term (or bare UUID string) denotes."""
    if isinstance(term, (BNode, Literal)) or not isinstance(term, str):
        return None
    m = UUID_RE.match(term)
    return m.group(1).lower() if m else None


def is_uuid_urn(term: Any) -> bool:
    return isinstance(term, URIRef) and bool(UUID_URN_RE.match(str(term).lower()))


def coerce_uuid_urn(arg: Any) -> URIRef:
    """Coerce a UUID, urn:uuid: URN, or UUID-NCName into a urn:uuid: URIRef."""
    if not isinstance(arg, str) or isinstance(arg, (BNode, Literal)):
        raise MalformedInputError(f"Not a UUID: {arg!r}")

    text = str(arg).strip()
    if not isinstance(arg, URIRef) and NCNAME_RE.match(text):
        text = ncname_to_uuid(text)
    text = text.lower()
    if not text.startswith("urn:uuid:"):
        text = "urn:uuid:" + text

    if not UUID_URN_RE.match(text):
        raise MalformedInputError(f"Not a UUID: {arg!r}")
    return URIRef(text)


# ---------------------------------------------------------------------------
# Paths, slugs, fragments
# ---------------------------------------------------------------------------

def split_pp(uri: Any) -> tuple[URIRef, list[str]]:
    """Split path parameters off the last path segment.

    Returns the URI without them and the parameters in order, e.g.
    https://ex.org/a/b;v=1;x -> (https://ex.org/a/b, ["v=1", "x"]).
    """
    text = normalize_uri(uri)
    parts = split_uri(text)
    if not parts.path:
        return URIRef(text), []

    segments = parts.path.split("/")
    params = segments.pop().split(";")
    base_path = "/".join(segments + [params.pop(0)])
    return URIRef(urlunsplit(parts._replace(path=base_path))), params


def with_path_params(uri: URIRef, params: list[str]) -> URIRef:
    parts = split_uri(str(uri))
    return URIRef(urlunsplit(parts._replace(path=";".join([parts.path, *params]))))


def terminal_slug(uri: Any, base: Any = None) -> str | None:
    """Last non-empty path segment, path parameters dropped, colons escaped.

    None for blank nodes; the empty string when there is no such segment.
    """
    term = coerce_resource(uri, base)
    if not isinstance(term, URIRef):
        return None

    m = re.match(r"^/+(.*?)/*$", split_uri(str(term)).path, re.DOTALL)
    if not m or not m.group(1):
        return ""
    last = re.split(r"/+", m.group(1))[-1]
    slug = re.split(r";+", last)[0]
    # a colon would make the slug look like an absolute URI
    return uri_pp(slug, ":")


def has_fragment(term: Any) -> bool:
    return isinstance(term, URIRef) and "#" in term


def with_fragment(uri: URIRef, fragment: str) -> URIRef:
    parts = split_uri(str(uri))
    return URIRef(urlunsplit(parts._replace(fragment=_escape(fragment))))


def with_path(uri: URIRef, path: str) -> URIRef:
    """Replace the path of uri, dropping any query and fragment."""
    parts = split_uri(str(uri))
    return URIRef(urlunsplit(parts._replace(path=path, query="", fragment="")))


# ---------------------------------------------------------------------------
# UUID-NCName
# ---------------------------------------------------------------------------

def uuid_to_ncname(value: Any) -> str:
    """Render a UUID as an XML NCName usable as a fragment identifier.

    The version nibble becomes a leading letter A-P, the variant nibble a
    trailing letter A-P, and the remaining 120 bits 24 base32 digits.
    """
    n = uuid.UUID(uuid_of(value) or str(value)).int
    version = (n >> 76) & 0xF
    variant = (n >> 60) & 0xF
    content = ((n >> 80) << 72) | (((n >> 64) & 0xFFF) << 60) | (n & ((1 << 60) - 1))
    body = base64.b32encode(content.to_bytes(15, "big")).decode("ascii").lower()
    return chr(ord("A") + version) + body + chr(ord("A") + variant)


def ncname_to_uuid(ncname: str) -> str:
    """Inverse of uuid_to_ncname()."""
    if not NCNAME_RE.match(ncname):
        raise MalformedInputError(f"Not a UUID-NCName: {ncname!r}")
    version = ord(ncname[0].upper()) - ord("A")
    variant = ord(ncname[-1].upper()) - ord("A")
    content = int.from_bytes(base64.b32decode(ncname[1:-1].upper()), "big")
    n = (
        ((content >> 72) << 80)
        | (version << 76)
        | (((content >> 60) & 0xFFF) << 64)
        | (variant << 60)
        | (content & ((1 << 60) - 1))
    )
    return str(uuid.UUID(int=n))
