"""Tests for the deterministic term order."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from rdflib import BNode, Literal, URIRef

from resid.types import MalformedInputError, sort_terms, term_key


class TestTermKey:
    def test_uri(self):
        assert term_key(URIRef("http://ex.org/a")) == "<http://ex.org/a>"

    def test_uri_with_illegal_characters(self):
        assert term_key(URIRef("http://ex.org/a b")) == "<http://ex.org/a b>"

    def test_literal_and_bnode(self):
        assert term_key(Literal("x")) == '"x"'
        assert term_key(BNode("b1")) == "_:b1"

    def test_not_a_term(self):
        with pytest.raises(MalformedInputError, match="Expected an RDF term"):
            term_key("http://ex.org/a")


class TestSortTerms:
    def test_order_and_dedupe(self):
        a, b = URIRef("http://ex.org/a"), URIRef("http://ex.org/b")
        terms = [BNode("z"), b, Literal("x"), a, b]
        assert sort_terms(terms) == [Literal("x"), a, b, BNode("z")]

    def test_illegal_iri_sorts(self):
        bad = URIRef("http://ex.org/a b")
        good = URIRef("http://ex.org/a")
        assert sort_terms([good, bad]) == [bad, good]
