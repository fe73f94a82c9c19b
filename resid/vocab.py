"""Vocabularies used by the resolver, and the default ontology axioms.

The axioms below are the direct facts the closure engine needs out of the
box. They are deliberately small: equivalences, hierarchy and inverse
declarations for the predicates and classes the resolver itself consults.
Callers with richer vocabularies pass extra graphs to OntologyFacts.
"""

from __future__ import annotations

from rdflib import Namespace
from rdflib.namespace import OWL, RDFS

# Content inventory: canonical identifiers, slugs, aliases, fragments
CI = Namespace("https://vocab.methodandstructure.com/content-inventory#")
BIBO = Namespace("http://purl.org/ontology/bibo/")
BS = Namespace("http://purl.org/ontology/bibo/status/")
PAV = Namespace("http://purl.org/pav/")
SCHEMA = Namespace("http://schema.org/")

# Policy graphs (see resid.policy_graph)
POLICY = Namespace("http://resid.example.org/policy#")

# Classes every resource belongs to, appended when a type walk misses them
BASE_CLASSES = (RDFS.Resource, OWL.Thing, SCHEMA.Thing)

# Predicates carrying identity
CANONICAL = CI.canonical
CANONICAL_SLUG = CI["canonical-slug"]
SLUG = CI.slug
ALIAS = CI.alias
FRAGMENT_OF = CI["fragment-of"]


DEFAULT_AXIOMS = """
@prefix rdf:     <http://www.w3.org/1999/02/22-rdf-syntax-ns#> .
@prefix rdfs:    <http://www.w3.org/2000/01/rdf-schema#> .
@prefix owl:     <http://www.w3.org/2002/07/owl#> .
@prefix dc:      <http://purl.org/dc/elements/1.1/> .
@prefix dct:     <http://purl.org/dc/terms/> .
@prefix skos:    <http://www.w3.org/2004/02/skos/core#> .
@prefix foaf:    <http://xmlns.com/foaf/0.1/> .
@prefix bibo:    <http://purl.org/ontology/bibo/> .
@prefix prov:    <http://www.w3.org/ns/prov#> .
@prefix pav:     <http://purl.org/pav/> .
@prefix schema:  <http://schema.org/> .
@prefix ci:      <https://vocab.methodandstructure.com/content-inventory#> .

# --- universal classes ------------------------------------------------------

rdfs:Resource a rdfs:Class .
owl:Thing a owl:Class ; owl:equivalentClass rdfs:Resource .
schema:Thing a rdfs:Class ; rdfs:subClassOf rdfs:Resource .

# --- documents and agents ---------------------------------------------------

foaf:Document a owl:Class ; rdfs:subClassOf owl:Thing .
bibo:Document a owl:Class ; owl:equivalentClass foaf:Document .
bibo:Article rdfs:subClassOf bibo:Document .
bibo:Book rdfs:subClassOf bibo:Document .
bibo:Report rdfs:subClassOf bibo:Document .
bibo:Webpage rdfs:subClassOf bibo:Document .
bibo:Collection a owl:Class ; rdfs:subClassOf owl:Thing .

foaf:Agent a owl:Class ; rdfs:subClassOf owl:Thing .
foaf:Person rdfs:subClassOf foaf:Agent .
foaf:Organization rdfs:subClassOf foaf:Agent .
foaf:Group rdfs:subClassOf foaf:Agent .

skos:Concept a owl:Class ; rdfs:subClassOf owl:Thing .
skos:ConceptScheme a owl:Class ; rdfs:subClassOf owl:Thing .

# --- labels and descriptions ------------------------------------------------

dct:title rdfs:subPropertyOf dc:title .
dct:alternative rdfs:subPropertyOf dct:title .
dct:description rdfs:subPropertyOf dc:description .
dct:abstract rdfs:subPropertyOf dct:description .
bibo:shortTitle a owl:DatatypeProperty .
bibo:abstract a owl:DatatypeProperty .
bibo:shortDescription a owl:DatatypeProperty .
skos:prefLabel rdfs:subPropertyOf rdfs:label .
skos:altLabel rdfs:subPropertyOf rdfs:label .
skos:hiddenLabel rdfs:subPropertyOf rdfs:label .
skos:note a owl:AnnotationProperty .
foaf:name rdfs:subPropertyOf rdfs:label .
foaf:status a owl:DatatypeProperty .

# --- attribution ------------------------------------------------------------

dct:creator rdfs:subPropertyOf dc:creator .
dct:contributor rdfs:subPropertyOf dc:contributor .
pav:authoredBy rdfs:subPropertyOf dct:creator .
pav:contributedBy rdfs:subPropertyOf dct:contributor .
bibo:authorList a owl:ObjectProperty .
bibo:contributorList a owl:ObjectProperty .
prov:wasAttributedTo a owl:ObjectProperty .

# --- dates ------------------------------------------------------------------

dct:date rdfs:subPropertyOf dc:date .
dct:created rdfs:subPropertyOf dct:date .
dct:modified rdfs:subPropertyOf dct:date .
dct:issued rdfs:subPropertyOf dct:date .

# --- structure --------------------------------------------------------------

dct:replaces a owl:ObjectProperty ; owl:inverseOf dct:isReplacedBy .
dct:hasPart a owl:ObjectProperty ; owl:inverseOf dct:isPartOf .
skos:broader owl:inverseOf skos:narrower .
skos:hasTopConcept owl:inverseOf skos:topConceptOf .
skos:related a owl:ObjectProperty, owl:SymmetricProperty .
owl:sameAs a owl:ObjectProperty, owl:SymmetricProperty .

# --- identity and publication -----------------------------------------------

ci:canonical a owl:ObjectProperty .
ci:alias a owl:ObjectProperty .
ci:slug a owl:DatatypeProperty .
ci:canonical-slug a owl:DatatypeProperty ; rdfs:subPropertyOf ci:slug .
ci:fragment-of a owl:ObjectProperty .
ci:indexed a owl:DatatypeProperty .
ci:retired a owl:NamedIndividual .
ci:circulated a owl:NamedIndividual .
bibo:status a owl:ObjectProperty .
"""
