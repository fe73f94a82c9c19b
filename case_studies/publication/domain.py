"""Small publication site — data and policy graphs.

A site at https://example.com/ publishes articles, each a urn:uuid:
subject with slugs. One article was superseded by a revision, a figure
lives inside its article, and a concept scheme hosts its concepts as
fragments.
"""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../.."))

from rdflib import Graph, URIRef

from resid.config import ResolverConfig

BASE = URIRef("https://example.com/")

ARTICLE_V1 = URIRef("urn:uuid:9b1f0c2e-4d6a-4e8b-9c3d-1a2b3c4d5e6f")
ARTICLE_V2 = URIRef("urn:uuid:5c7e9a1b-2d4f-4a6c-8e0b-7f1e2d3c4b5a")
FIGURE = URIRef("urn:uuid:0d2c4e6a-8b1f-4c3e-a5d7-9e0f1a2b3c4d")
SCHEME = URIRef("urn:uuid:71a3c5e7-09b2-4d4f-b6a8-1c3e5f7a9b0d")
CONCEPT = URIRef("urn:uuid:2e4a6c8e-0a1c-4e3a-9c5e-7a9c1e3a5c7e")
AUTHOR = URIRef("urn:uuid:8f6d4b2a-1c3e-4f5a-b7c9-0e2d4f6a8c1e")

PREFIXES = """
@prefix rdfs:   <http://www.w3.org/2000/01/rdf-schema#> .
@prefix xsd:    <http://www.w3.org/2001/XMLSchema#> .
@prefix dct:    <http://purl.org/dc/terms/> .
@prefix foaf:   <http://xmlns.com/foaf/0.1/> .
@prefix skos:   <http://www.w3.org/2004/02/skos/core#> .
@prefix bibo:   <http://purl.org/ontology/bibo/> .
@prefix bs:     <http://purl.org/ontology/bibo/status/> .
@prefix ci:     <https://vocab.methodandstructure.com/content-inventory#> .
@prefix policy: <http://resid.example.org/policy#> .
"""

SITE = f"""
<{ARTICLE_V1}> a bibo:Article ;
    dct:title "Resolving identifiers" ;
    bibo:status bs:published ;
    ci:canonical-slug "resolving-identifiers" ;
    dct:created "2023-02-01"^^xsd:date ;
    dct:isReplacedBy <{ARTICLE_V2}> .

<{ARTICLE_V2}> a bibo:Article ;
    dct:title "Resolving identifiers, revised" ;
    bibo:shortTitle "Resolving identifiers" ;
    bibo:status bs:published ;
    ci:canonical-slug "resolving-identifiers-2" ;
    dct:modified "2024-06-10T09:30:00Z"^^xsd:dateTime ;
    dct:hasPart <{FIGURE}> ;
    bibo:authorList ( <{AUTHOR}> ) .

<{FIGURE}> a bibo:Image ;
    rdfs:label "Figure 1" ;
    ci:canonical-slug "fig-1" .

<{SCHEME}> a skos:ConceptScheme, bibo:Webpage ;
    skos:prefLabel "Topics" ;
    bibo:status bs:published ;
    ci:canonical <https://example.com/topics> .

<{CONCEPT}> a skos:Concept ;
    skos:inScheme <{SCHEME}> ;
    skos:prefLabel "Identity" .

<{AUTHOR}> a foaf:Person ;
    foaf:name "Dana Okafor" ;
    ci:canonical <https://example.com/people/dana> .
"""

POLICIES = """
[] a policy:FragmentRule ;
    policy:appliesTo bibo:Image ;
    policy:hosts ( [ policy:predicate dct:hasPart ; policy:reverse true ] ) .

[] a policy:FragmentRule ;
    policy:appliesTo skos:Concept ;
    policy:hosts ( [ policy:predicate skos:inScheme ] ) .

[] a policy:LabelRule ;
    policy:appliesTo skos:Concept ;
    policy:label ( skos:prefLabel ) ;
    policy:description ( skos:definition ) .
"""

BROKEN_POLICIES = """
[] a policy:LabelRule ;
    policy:appliesTo "Person" ;
    policy:altLabel ( foaf:nick ) .

[] a policy:FragmentRule ;
    policy:appliesTo skos:Concept ;
    policy:hosts ( [ policy:predicate skos:inScheme ; policy:reverse "sometimes" ] ) .
"""


def build_site() -> Graph:
    return Graph().parse(data=PREFIXES + SITE, format="turtle")


def build_policies(broken: bool = False) -> Graph:
    body = BROKEN_POLICIES if broken else POLICIES
    return Graph().parse(data=PREFIXES + body, format="turtle")


def build_config() -> ResolverConfig:
    return ResolverConfig(base=BASE)
