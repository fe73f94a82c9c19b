"""resid — deterministic identity and label resolution over RDF graphs.

Modules:
  types        — term contract, node kinds, deterministic order, errors
  vocab        — namespaces and the default ontology axioms
  ontology     — OntologyFacts: direct class/property facts from RDFS/OWL
  closure      — type strata, predicate sets, symmetric/inverse properties
  uris         — URI escaping, path parameters, slugs, UUID-NCNames
  struct       — predicate-indexed neighbourhoods of a resource
  publication  — publication status and dates
  labels       — label/description cascade, authors
  identity     — canonical URI, canonical UUID, replacement chains
  cache        — resolution cache with explicit invalidation
  policy_graph — label and fragment policies declared in RDF
  config       — resolver configuration from the environment
  resolver     — the facade tying it all together
"""
