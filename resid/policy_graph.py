"""Policy graphs: label and fragment policies declared in RDF.

A policy graph uses the POLICY vocabulary:

  [] a policy:LabelRule ;
     policy:appliesTo foaf:Person ;
     policy:label ( foaf:name rdfs:label ) ;       # main label stack
     policy:altLabel ( foaf:nick ) ;              # optional alt stack
     policy:description ( foaf:status ) ;         # main description stack
     policy:altDescription ( dct:abstract ) .     # optional alt stack

  [] a policy:FragmentRule ;
     policy:appliesTo skos:Concept ;
     policy:hosts (
       [ policy:predicate skos:inScheme ]
       [ policy:predicate dct:hasPart ; policy:reverse true ]
     ) .

The shape of each rule is declared as SHACL (policy_shapes()) and checked
with pySHACL. validate_policy_graph() reports every problem at once, plus
rules that claim a class another rule of the same kind already has.
load_policies() refuses a non-conforming graph with a PolicyError and
otherwise returns the two policy tables.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from rdflib import Graph, URIRef
from rdflib.namespace import RDF, SH
from rdflib.term import Node

from .identity import FragmentPolicy
from .labels import LabelPolicy
from .ontology import OntologyFacts
from .types import PolicyError, sort_terms
from .vocab import POLICY

logger = logging.getLogger(__name__)

_STACKS = (
    (POLICY.label, "label", 0),
    (POLICY.altLabel, "label", 1),
    (POLICY.description, "desc", 0),
    (POLICY.altDescription, "desc", 1),
)


# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------

_PREFIXES = f"""
@prefix rdf:    <http://www.w3.org/1999/02/22-rdf-syntax-ns#> .
@prefix xsd:    <http://www.w3.org/2001/XMLSchema#> .
@prefix sh:     <http://www.w3.org/ns/shacl#> .
@prefix policy: <{POLICY}> .
"""

_SHAPES = """
# --- RDF lists -------------------------------------------------------------

policy:ListCellShape a sh:NodeShape ;
    sh:or (
        [ sh:in ( rdf:nil ) ]
        [ sh:property [ sh:path rdf:first ; sh:minCount 1 ; sh:maxCount 1 ] ,
                      [ sh:path rdf:rest ; sh:minCount 1 ; sh:maxCount 1 ] ]
    ) .

policy:WellFormedListShape a sh:NodeShape ;
    sh:property [ sh:path [ sh:zeroOrMorePath rdf:rest ] ; sh:node policy:ListCellShape ] .

policy:PredicateMembersShape a sh:NodeShape ;
    sh:property [
        sh:path ( [ sh:zeroOrMorePath rdf:rest ] rdf:first ) ;
        sh:nodeKind sh:IRI
    ] .

policy:HostEntryShape a sh:NodeShape ;
    sh:property [ sh:path policy:predicate ; sh:minCount 1 ; sh:maxCount 1 ; sh:nodeKind sh:IRI ] ,
                [ sh:path policy:reverse ; sh:maxCount 1 ; sh:datatype xsd:boolean ] .

policy:HostMembersShape a sh:NodeShape ;
    sh:property [
        sh:path ( [ sh:zeroOrMorePath rdf:rest ] rdf:first ) ;
        sh:node policy:HostEntryShape
    ] .

# --- Label rules -----------------------------------------------------------

policy:LabelRuleShape a sh:NodeShape ;
    sh:targetClass policy:LabelRule ;
    sh:property [
        sh:path policy:appliesTo ; sh:minCount 1 ; sh:maxCount 1 ;
        sh:message "expected exactly one class"
    ] , [
        sh:path policy:appliesTo ; sh:nodeKind sh:IRI ;
        sh:message "class must be an IRI"
    ] .

policy:LabelRuleStacksShape a sh:NodeShape ;
    sh:targetClass policy:LabelRule ;
    sh:or (
        [ sh:path policy:label ; sh:minCount 1 ]
        [ sh:path policy:description ; sh:minCount 1 ]
    ) ;
    sh:message "rule declares no predicate stacks" .

policy:AltLabelShape a sh:NodeShape ;
    sh:targetClass policy:LabelRule ;
    sh:or (
        [ sh:path policy:altLabel ; sh:maxCount 0 ]
        [ sh:path policy:label ; sh:minCount 1 ]
    ) ;
    sh:message "alt label stack given without a main stack" .

policy:AltDescriptionShape a sh:NodeShape ;
    sh:targetClass policy:LabelRule ;
    sh:or (
        [ sh:path policy:altDescription ; sh:maxCount 0 ]
        [ sh:path policy:description ; sh:minCount 1 ]
    ) ;
    sh:message "alt description stack given without a main stack" .

# --- Fragment rules --------------------------------------------------------

policy:FragmentRuleShape a sh:NodeShape ;
    sh:targetClass policy:FragmentRule ;
    sh:property [
        sh:path policy:appliesTo ; sh:minCount 1 ; sh:maxCount 1 ;
        sh:message "expected exactly one class"
    ] , [
        sh:path policy:appliesTo ; sh:nodeKind sh:IRI ;
        sh:message "class must be an IRI"
    ] , [
        sh:path policy:hosts ; sh:minCount 1 ; sh:maxCount 1 ;
        sh:message "expected exactly one hosts list"
    ] , [
        sh:path policy:hosts ; sh:not [ sh:in ( rdf:nil ) ] ;
        sh:message "hosts list is empty"
    ] , [
        sh:path policy:hosts ; sh:nodeKind sh:BlankNodeOrIRI ;
        sh:node policy:WellFormedListShape ;
        sh:message "not a well-formed RDF list"
    ] , [
        sh:path policy:hosts ; sh:node policy:HostMembersShape ;
        sh:message "each host needs one predicate IRI and at most one xsd:boolean reverse flag"
    ] .
"""

_STACK_SHAPE = """
policy:LabelRuleShape sh:property [
        sh:path policy:{name} ; sh:maxCount 1 ;
        sh:message "expected at most one {name} stack"
    ] , [
        sh:path policy:{name} ; sh:not [ sh:in ( rdf:nil ) ] ;
        sh:message "predicate stack is empty"
    ] , [
        sh:path policy:{name} ; sh:nodeKind sh:BlankNodeOrIRI ;
        sh:node policy:WellFormedListShape ;
        sh:message "not a well-formed RDF list"
    ] , [
        sh:path policy:{name} ; sh:node policy:PredicateMembersShape ;
        sh:message "stack members must be predicate IRIs"
    ] .
"""


def policy_shapes() -> Graph:
    """The SHACL shapes every policy rule node must satisfy."""
    stacks = "".join(_STACK_SHAPE.format(name=path.fragment) for path, _, _ in _STACKS)
    sg = Graph()
    sg.bind("sh", SH)
    sg.bind("policy", POLICY)
    sg.parse(data=_PREFIXES + _SHAPES + stacks, format="turtle")
    return sg


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class PolicyViolation:
    """A single problem with a rule node."""
    focus_node: str
    path: str
    message: str
    severity: str = str(SH.Violation)

    def __repr__(self) -> str:
        path = self.path.split("#")[-1] if "#" in self.path else self.path
        return f"PolicyViolation({self.focus_node}.{path}: {self.message})"


@dataclass
class PolicyValidationResult:
    """Result of checking a policy graph."""
    conforms: bool
    violations: list[PolicyViolation] = field(default_factory=list)
    results_text: str = ""
    shapes_graph: Graph | None = None
    data_graph: Graph | None = None

    def summary(self) -> str:
        lines = []
        status = "CONFORMS" if self.conforms else "DOES NOT CONFORM"
        lines.append(f"Policy graph: {status}")
        lines.append("-" * 50)
        if self.violations:
            lines.append(f"  Violations ({len(self.violations)}):")
            for v in self.violations:
                path = v.path.split("#")[-1] if "#" in v.path else v.path
                lines.append(f"    - {v.focus_node}.{path}: {v.message}")
        else:
            lines.append("  No violations found.")
        return "\n".join(lines)

    def shapes_as_turtle(self) -> str:
        """Serialize the shapes graph as Turtle for inspection."""
        if self.shapes_graph is None:
            return ""
        return self.shapes_graph.serialize(format="turtle")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _duplicate_classes(graph: Graph) -> list[PolicyViolation]:
    """Rules claiming a class an earlier rule of the same kind already has."""
    violations = []
    for kind in (POLICY.LabelRule, POLICY.FragmentRule):
        claimed: set[URIRef] = set()
        for node in sort_terms(graph.subjects(RDF.type, kind)):
            classes = list(graph.objects(node, POLICY.appliesTo))
            if len(classes) != 1 or not isinstance(classes[0], URIRef):
                continue
            cls = classes[0]
            if cls in claimed:
                violations.append(PolicyViolation(
                    focus_node=str(node),
                    path=str(POLICY.appliesTo),
                    message=f"{cls} already has a {kind.fragment}",
                ))
            claimed.add(cls)
    return violations


def validate_policy_graph(graph: Graph) -> PolicyValidationResult:
    """Check every rule node in graph against policy_shapes().

    Returns a structured result with conformance status and violation details.
    """
    from pyshacl import validate as pyshacl_validate

    shapes_graph = policy_shapes()
    conforms, results_graph, results_text = pyshacl_validate(
        graph,
        shacl_graph=shapes_graph,
        inference="none",
        abort_on_first=False,
    )

    # Top-level results only; nested sh:node reports hang off sh:detail
    violations = []
    seen = set()
    for report in results_graph.subjects(RDF.type, SH.ValidationReport):
        for result in results_graph.objects(report, SH.result):
            focus = results_graph.value(result, SH.focusNode)
            path = results_graph.value(result, SH.resultPath)
            message = results_graph.value(result, SH.resultMessage)
            severity = results_graph.value(result, SH.resultSeverity)

            violation = PolicyViolation(
                focus_node=str(focus) if focus else "",
                path=str(path) if isinstance(path, URIRef) else "",
                message=str(message) if message else "",
                severity=str(severity) if severity else "",
            )
            key = (violation.focus_node, violation.path, violation.message)
            if key not in seen:
                seen.add(key)
                violations.append(violation)
    violations.sort(key=lambda v: (v.focus_node, v.path, v.message))

    duplicates = _duplicate_classes(graph)
    return PolicyValidationResult(
        conforms=bool(conforms) and not duplicates,
        violations=violations + duplicates,
        results_text=results_text,
        shapes_graph=shapes_graph,
        data_graph=graph,
    )


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def _read_list(graph: Graph, head: Node) -> list[Node]:
    items: list[Node] = []
    seen: set[Node] = set()
    node = head
    while node != RDF.nil:
        if node in seen:
            raise PolicyError(f"RDF list starting at {head} loops back on itself")
        seen.add(node)
        items.append(graph.value(node, RDF.first))
        node = graph.value(node, RDF.rest)
    return items


def load_policies(graph: Graph, facts: OntologyFacts) -> tuple[LabelPolicy, FragmentPolicy]:
    """Read the label and fragment policies a policy graph declares."""
    result = validate_policy_graph(graph)
    if not result.conforms:
        raise PolicyError(result.summary())

    labels: dict[URIRef, dict] = {}
    for node in sort_terms(graph.subjects(RDF.type, POLICY.LabelRule)):
        spec: dict[str, list] = {}
        for path, key, _ in _STACKS:
            head = graph.value(node, path)
            if head is not None:
                spec.setdefault(key, []).append(_read_list(graph, head))
        labels[graph.value(node, POLICY.appliesTo)] = spec

    fragments: dict[URIRef, list] = {}
    for node in sort_terms(graph.subjects(RDF.type, POLICY.FragmentRule)):
        hosts = []
        for item in _read_list(graph, graph.value(node, POLICY.hosts)):
            flag = graph.value(item, POLICY.reverse)
            reverse = flag is not None and flag.toPython() is True
            hosts.append((graph.value(item, POLICY.predicate), reverse))
        fragments[graph.value(node, POLICY.appliesTo)] = hosts

    label_policy = LabelPolicy.from_mapping(labels, facts)
    fragment_policy = FragmentPolicy.from_mapping(fragments)
    logger.info(
        f"Loaded policies: {len(label_policy)} label classes, "
        f"{len(fragment_policy)} fragment classes"
    )
    return label_policy, fragment_policy
