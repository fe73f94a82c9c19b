"""Tests for URI escaping, path parameters, slugs and UUID forms."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from rdflib import BNode, Literal, URIRef

from resid.types import MalformedInputError
from resid.uris import (
    NCNAME_RE,
    coerce_resource,
    coerce_uuid_urn,
    directory_of,
    has_fragment,
    is_uuid_urn,
    ncname_to_uuid,
    normalize_uri,
    split_pp,
    terminal_slug,
    uri_pp,
    uuid_of,
    uuid_to_ncname,
    with_fragment,
    with_path,
    with_path_params,
)

UUID = "3e4b1a52-9c0f-4d6b-8a2e-5f7c6d8e9a0b"


class TestEscaping:
    def test_space_escaped(self):
        assert uri_pp("http://ex.org/a b") == "http://ex.org/a%20b"

    def test_stray_percent_repaired(self):
        assert uri_pp("http://ex.org/100%") == "http://ex.org/100%25"

    def test_hex_upper_cased(self):
        assert uri_pp("http://ex.org/%7e") == "http://ex.org/%7E"

    def test_separators_kept(self):
        uri = "https://user@ex.org:8443/a/b;v=1?q=1&r=2#frag"
        assert uri_pp(uri) == uri

    def test_extra_characters(self):
        assert uri_pp("a:b", ":") == "a%3Ab"

    def test_non_ascii(self):
        assert uri_pp("http://ex.org/café") == "http://ex.org/caf%C3%A9"

    def test_normalize(self):
        assert normalize_uri("HTTPS://Ex.Org") == "https://ex.org/"
        assert normalize_uri("https://ex.org/Path") == "https://ex.org/Path"


class TestCoercion:
    def test_passthrough(self):
        uri = URIRef("http://ex.org/a")
        node = BNode()
        assert coerce_resource(uri) is uri
        assert coerce_resource(node) is node

    def test_blank_label(self):
        assert coerce_resource("_:b1") == BNode("b1")

    def test_relative_against_base(self):
        assert coerce_resource("foo", "https://ex.org/") == URIRef("https://ex.org/foo")

    def test_absolute_ignores_base(self):
        assert coerce_resource("https://other.org/x", "https://ex.org/") == URIRef(
            "https://other.org/x"
        )

    def test_literal_rejected(self):
        with pytest.raises(MalformedInputError, match="Literal"):
            coerce_resource(Literal("x"))

    def test_non_string_rejected(self):
        with pytest.raises(MalformedInputError, match="int"):
            coerce_resource(42)

    def test_empty_rejected(self):
        with pytest.raises(MalformedInputError, match="empty"):
            coerce_resource("  ")

    def test_unparsable_rejected(self):
        with pytest.raises(MalformedInputError, match="Unparsable"):
            coerce_resource("http://[::1")


class TestUuids:
    def test_uuid_of(self):
        assert uuid_of(URIRef("urn:uuid:" + UUID.upper())) == UUID
        assert uuid_of(UUID) == UUID
        assert uuid_of(URIRef("http://ex.org/" + UUID)) is None
        assert uuid_of(Literal(UUID)) is None

    def test_is_uuid_urn(self):
        assert is_uuid_urn(URIRef("urn:uuid:" + UUID))
        assert not is_uuid_urn(URIRef("http://ex.org/a"))
        assert not is_uuid_urn("urn:uuid:" + UUID)

    def test_coerce_uuid_urn(self):
        expected = URIRef("urn:uuid:" + UUID)
        assert coerce_uuid_urn(UUID) == expected
        assert coerce_uuid_urn(UUID.upper()) == expected
        assert coerce_uuid_urn("urn:uuid:" + UUID) == expected
        assert coerce_uuid_urn(uuid_to_ncname(UUID)) == expected

    def test_coerce_uuid_urn_rejects(self):
        with pytest.raises(MalformedInputError, match="Not a UUID"):
            coerce_uuid_urn("not-a-uuid")
        with pytest.raises(MalformedInputError, match="Not a UUID"):
            coerce_uuid_urn(BNode())

    def test_ncname_shape(self):
        ncname = uuid_to_ncname(UUID)
        assert NCNAME_RE.match(ncname)
        assert ncname[0] == "E"     # version 4
        assert ncname[-1] == "I"    # variant nibble 8
        assert ncname_to_uuid(ncname) == UUID

    def test_ncname_rejects(self):
        with pytest.raises(MalformedInputError, match="NCName"):
            ncname_to_uuid("nope")


class TestPaths:
    def test_split_pp(self):
        uri, params = split_pp("https://ex.org/a/b;v=1;x")
        assert uri == URIRef("https://ex.org/a/b")
        assert params == ["v=1", "x"]

    def test_split_pp_without_params(self):
        assert split_pp("https://ex.org/a") == (URIRef("https://ex.org/a"), [])

    def test_with_path_params(self):
        base = URIRef("https://ex.org/a/b")
        assert with_path_params(base, ["v=1"]) == URIRef("https://ex.org/a/b;v=1")
        assert with_path_params(base, []) == base

    def test_terminal_slug(self):
        assert terminal_slug("https://ex.org/a/b/") == "b"
        assert terminal_slug("https://ex.org/a;v=2") == "a"
        assert terminal_slug("https://ex.org/") == ""
        assert terminal_slug(BNode()) is None

    def test_terminal_slug_escapes_colon(self):
        assert terminal_slug("https://ex.org/x:y") == "x%3Ay"

    def test_fragments(self):
        doc = URIRef("https://ex.org/doc")
        assert with_fragment(doc, "sec 1") == URIRef("https://ex.org/doc#sec%201")
        assert has_fragment(with_fragment(doc, "a"))
        assert not has_fragment(doc)
        assert not has_fragment(BNode())

    def test_with_path(self):
        assert with_path(URIRef("https://ex.org/x?q#f"), "/" + UUID) == URIRef(
            "https://ex.org/" + UUID
        )

    def test_directory_of(self):
        assert directory_of(URIRef("https://ex.org/site")) == URIRef("https://ex.org/site/")
        assert directory_of(URIRef("https://ex.org/site/")) == URIRef("https://ex.org/site/")
        assert directory_of(URIRef("https://ex.org/a?q#f")) == URIRef("https://ex.org/a/")
        assert coerce_resource("foo", directory_of(URIRef("https://ex.org/site"))) == URIRef(
            "https://ex.org/site/foo"
        )
