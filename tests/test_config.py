"""Tests for resolver configuration and its environment loader."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from rdflib import URIRef
from rdflib.namespace import FOAF

from resid.config import ConfigurationError, ResolverConfig, get_resolver_config
from resid.vocab import BIBO

ENV = ("RESID_BASE", "RESID_DOCUMENT_TYPES", "RESID_WWW", "RESID_STRICT_ONTOLOGY")


@pytest.fixture
def env(monkeypatch):
    for name in ENV:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestResolverConfig:
    def test_defaults(self):
        config = ResolverConfig()
        assert config.base is None
        assert config.document_types == (FOAF.Document,)
        assert config.www is None
        assert not config.strict_ontology

    def test_base_must_be_uriref(self):
        with pytest.raises(ConfigurationError, match="URIRef"):
            ResolverConfig(base="https://ex.org/")

    def test_document_types_required(self):
        with pytest.raises(ConfigurationError, match="at least one"):
            ResolverConfig(document_types=())

    def test_with_base(self):
        config = ResolverConfig().with_base("https://ex.org/")
        assert config.base == URIRef("https://ex.org/")
        assert config.with_base(None).base is None

    def test_with_base_must_be_absolute(self):
        with pytest.raises(ConfigurationError, match="absolute"):
            ResolverConfig().with_base("ex.org")

    def test_frozen(self):
        with pytest.raises(AttributeError):
            ResolverConfig().www = True


class TestEnvironment:
    def test_empty_environment(self, env):
        assert get_resolver_config() == ResolverConfig()

    def test_all_set(self, env):
        env.setenv("RESID_BASE", "https://ex.org/")
        env.setenv("RESID_DOCUMENT_TYPES", f"{FOAF.Document}, {BIBO.Collection}")
        env.setenv("RESID_WWW", "no")
        env.setenv("RESID_STRICT_ONTOLOGY", "On")

        config = get_resolver_config()
        assert config.base == URIRef("https://ex.org/")
        assert config.document_types == (FOAF.Document, BIBO.Collection)
        assert config.www is False
        assert config.strict_ontology is True

    def test_blank_values_ignored(self, env):
        env.setenv("RESID_BASE", "  ")
        env.setenv("RESID_WWW", "")
        config = get_resolver_config()
        assert config.base is None
        assert config.www is None

    def test_bad_flag(self, env):
        env.setenv("RESID_WWW", "maybe")
        with pytest.raises(ConfigurationError, match="RESID_WWW"):
            get_resolver_config()

    def test_bad_base(self, env):
        env.setenv("RESID_BASE", "_:nope")
        with pytest.raises(ConfigurationError, match="absolute"):
            get_resolver_config()

    def test_no_document_types(self, env):
        env.setenv("RESID_DOCUMENT_TYPES", " , ")
        with pytest.raises(ConfigurationError, match="names no classes"):
            get_resolver_config()
