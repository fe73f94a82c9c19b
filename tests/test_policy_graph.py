"""Tests for label and fragment policies declared as RDF."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from rdflib import Graph
from rdflib.namespace import DCTERMS, FOAF, RDFS, SH, SKOS

from resid.identity import FragmentRule
from resid.ontology import OntologyFacts
from resid.policy_graph import load_policies, policy_shapes, validate_policy_graph
from resid.types import PolicyError
from resid.vocab import POLICY

PREFIXES = """
@prefix rdf:    <http://www.w3.org/1999/02/22-rdf-syntax-ns#> .
@prefix rdfs:   <http://www.w3.org/2000/01/rdf-schema#> .
@prefix dct:    <http://purl.org/dc/terms/> .
@prefix skos:   <http://www.w3.org/2004/02/skos/core#> .
@prefix foaf:   <http://xmlns.com/foaf/0.1/> .
@prefix policy: <http://resid.example.org/policy#> .
@prefix ex:     <http://example.org/> .
"""

GOOD = """
ex:people a policy:LabelRule ;
    policy:appliesTo foaf:Person ;
    policy:label ( foaf:name rdfs:label ) ;
    policy:altLabel ( foaf:nick ) ;
    policy:description ( foaf:status ) .

ex:concepts a policy:FragmentRule ;
    policy:appliesTo skos:Concept ;
    policy:hosts (
        [ policy:predicate skos:inScheme ]
        [ policy:predicate dct:hasPart ; policy:reverse true ]
    ) .
"""


def _graph(ttl: str) -> Graph:
    return Graph().parse(data=PREFIXES + ttl, format="turtle")


def _messages(ttl: str) -> list[str]:
    result = validate_policy_graph(_graph(ttl))
    assert not result.conforms
    return [v.message for v in result.violations]


# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------

class TestShapes:
    def test_targets_both_rule_kinds(self):
        sg = policy_shapes()
        targets = set(sg.objects(None, SH.targetClass))
        assert targets == {POLICY.LabelRule, POLICY.FragmentRule}

    def test_one_shape_set_per_stack(self):
        sg = policy_shapes()
        for stack in (POLICY.label, POLICY.altLabel, POLICY.description, POLICY.altDescription):
            assert len(set(sg.subjects(SH.path, stack))) >= 4


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TestValidation:
    def test_conforms(self):
        result = validate_policy_graph(_graph(GOOD))
        assert result.conforms
        assert result.violations == []
        assert "CONFORMS" in result.summary()
        assert "No violations found." in result.summary()

    def test_missing_class(self):
        assert _messages("""
            ex:r a policy:LabelRule ; policy:label ( rdfs:label ) .
        """) == ["expected exactly one class"]

    def test_violation_fields(self):
        result = validate_policy_graph(_graph("""
            ex:r a policy:LabelRule ; policy:label ( rdfs:label ) .
        """))
        v = result.violations[0]
        assert v.focus_node == "http://example.org/r"
        assert v.path == str(POLICY.appliesTo)
        assert v.severity == str(SH.Violation)
        assert "r.appliesTo" in repr(v)
        assert result.results_text
        assert "LabelRule" in result.shapes_as_turtle()

    def test_class_not_iri(self):
        assert _messages("""
            ex:r a policy:LabelRule ; policy:appliesTo "Person" ; policy:label ( rdfs:label ) .
        """) == ["class must be an IRI"]

    def test_empty_stack(self):
        assert _messages("""
            ex:r a policy:LabelRule ; policy:appliesTo foaf:Person ; policy:label () .
        """) == ["predicate stack is empty"]

    def test_two_main_stacks(self):
        assert "expected at most one label stack" in _messages("""
            ex:r a policy:LabelRule ;
                policy:appliesTo foaf:Person ;
                policy:label ( foaf:name ) , ( rdfs:label ) .
        """)

    def test_literal_in_stack(self):
        assert _messages("""
            ex:r a policy:LabelRule ; policy:appliesTo foaf:Person ; policy:label ( "name" ) .
        """) == ["stack members must be predicate IRIs"]

    def test_not_a_list(self):
        assert "not a well-formed RDF list" in _messages("""
            ex:r a policy:LabelRule ; policy:appliesTo foaf:Person ; policy:label foaf:name .
        """)

    def test_unterminated_list(self):
        assert "not a well-formed RDF list" in _messages("""
            ex:r a policy:LabelRule ; policy:appliesTo foaf:Person ; policy:label ex:cell .
            ex:cell rdf:first foaf:name ; rdf:rest ex:end .
        """)

    def test_alt_without_main(self):
        msgs = _messages("""
            ex:r a policy:LabelRule ; policy:appliesTo foaf:Person ; policy:altLabel ( foaf:nick ) .
        """)
        assert "alt label stack given without a main stack" in msgs
        assert "rule declares no predicate stacks" in msgs

    def test_alt_description_without_main(self):
        assert _messages("""
            ex:r a policy:LabelRule ;
                policy:appliesTo foaf:Person ;
                policy:label ( foaf:name ) ;
                policy:altDescription ( foaf:status ) .
        """) == ["alt description stack given without a main stack"]

    def test_duplicate_class(self):
        msgs = _messages(GOOD + """
            ex:again a policy:LabelRule ;
                policy:appliesTo foaf:Person ;
                policy:label ( foaf:nick ) .
        """)
        assert msgs == [f"{FOAF.Person} already has a LabelRule"]

    def test_same_class_different_kinds(self):
        result = validate_policy_graph(_graph(GOOD + """
            ex:people-fragments a policy:FragmentRule ;
                policy:appliesTo foaf:Person ;
                policy:hosts ( [ policy:predicate dct:isPartOf ] ) .
        """))
        assert result.conforms

    def test_fragment_hosts_required(self):
        assert _messages("""
            ex:r a policy:FragmentRule ; policy:appliesTo skos:Concept .
        """) == ["expected exactly one hosts list"]

    def test_fragment_hosts_empty(self):
        assert _messages("""
            ex:r a policy:FragmentRule ; policy:appliesTo skos:Concept ; policy:hosts () .
        """) == ["hosts list is empty"]

    def test_fragment_reverse_must_be_boolean(self):
        assert _messages("""
            ex:r a policy:FragmentRule ;
                policy:appliesTo skos:Concept ;
                policy:hosts ( [ policy:predicate dct:hasPart ; policy:reverse "yes" ] ) .
        """) == ["each host needs one predicate IRI and at most one xsd:boolean reverse flag"]

    def test_fragment_host_needs_predicate(self):
        assert _messages("""
            ex:r a policy:FragmentRule ;
                policy:appliesTo skos:Concept ;
                policy:hosts ( [ policy:reverse true ] ) .
        """) == ["each host needs one predicate IRI and at most one xsd:boolean reverse flag"]

    def test_all_problems_reported(self):
        result = validate_policy_graph(_graph("""
            ex:a a policy:LabelRule ; policy:label ( rdfs:label ) .
            ex:b a policy:FragmentRule ; policy:appliesTo skos:Concept .
        """))
        assert len(result.violations) == 2
        assert "Violations (2)" in result.summary()


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

class TestLoad:
    def test_load(self):
        graph = _graph(GOOD)
        labels, fragments = load_policies(graph, OntologyFacts.default())

        spec = labels.get(FOAF.Person)
        assert spec.label == ((FOAF.name, RDFS.label), (FOAF.nick,))
        assert spec.desc == ((FOAF.status,), (FOAF.status,))

        assert fragments.entries[SKOS.Concept] == (
            FragmentRule(SKOS.inScheme, False),
            FragmentRule(DCTERMS.hasPart, True),
        )

    def test_refuses_bad_graph(self):
        with pytest.raises(PolicyError, match="DOES NOT CONFORM"):
            load_policies(_graph("ex:r a policy:LabelRule ."), OntologyFacts.default())

    def test_refuses_looping_list(self):
        graph = _graph("""
            ex:r a policy:LabelRule ; policy:appliesTo foaf:Person ; policy:label ex:cell .
            ex:cell rdf:first foaf:name ; rdf:rest ex:cell .
        """)
        with pytest.raises(PolicyError, match="loops back on itself"):
            load_policies(graph, OntologyFacts.default())

    def test_empty_graph(self):
        labels, fragments = load_policies(Graph(), OntologyFacts.default())
        assert len(labels) == 0
        assert len(fragments) == 0
