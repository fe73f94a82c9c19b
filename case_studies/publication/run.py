"""Publication site — end-to-end identity and label resolution.

Walks a small site through the resolver:

  STEP 1 — Policies
    Check the policy graph, then load label and fragment policies from it.

  STEP 2 — Canonical URIs
    Addresses for articles, a figure inside an article and a concept
    inside its scheme.

  STEP 3 — Canonical UUIDs
    Map incoming addresses back to subjects, following replacements.

  STEP 4 — Labels, authors and dates

Run from the repository root:

  python -m case_studies.publication.run
"""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../.."))

import logging

from resid.labels import LabelPolicy
from resid.log import configure_logging
from resid.ontology import OntologyFacts
from resid.policy_graph import load_policies, validate_policy_graph
from resid.resolver import Resolver
from resid.types import PolicyError

from .domain import (
    ARTICLE_V1,
    ARTICLE_V2,
    CONCEPT,
    FIGURE,
    SCHEME,
    build_config,
    build_policies,
    build_site,
)


def print_header(title: str) -> None:
    print(f"\n{'=' * 60}")
    print(f"  {title}")
    print(f"{'=' * 60}")


def print_step(number: int, name: str) -> None:
    print(f"\n{'─' * 60}")
    print(f"  STEP {number}: {name}")
    print(f"{'─' * 60}")


# ===========================================================================
# STEP 1: Policies
# ===========================================================================

def run_policies(facts: OntologyFacts):
    print_step(1, "Policies")

    print("\n  A broken policy graph is reported in full:")
    result = validate_policy_graph(build_policies(broken=True))
    for line in result.summary().splitlines():
        print(f"    {line}")

    try:
        load_policies(build_policies(broken=True), facts)
    except PolicyError:
        print("\n  load_policies() refused it.")

    label_policy, fragment_policy = load_policies(build_policies(), facts)
    print(f"\n  Loaded {len(label_policy)} label classes, "
          f"{len(fragment_policy)} fragment classes.")
    return LabelPolicy.default(facts).merged(label_policy), fragment_policy


# ===========================================================================
# STEP 2: Canonical URIs
# ===========================================================================

def run_canonical_uris(resolver: Resolver):
    print_step(2, "Canonical URIs")

    for name, subject in [
        ("article v1", ARTICLE_V1),
        ("article v2", ARTICLE_V2),
        ("figure", FIGURE),
        ("scheme", SCHEME),
        ("concept", CONCEPT),
    ]:
        uri = resolver.canonical_uri(subject, allow_slugs=True)
        print(f"  {name:<12} {uri}")

    print("\n  Without slugs, the figure falls back to a UUID fragment:")
    print(f"    {resolver.canonical_uri(FIGURE)}")

    print("\n  Every candidate for article v2, best first:")
    for uri in resolver.canonical_uri(ARTICLE_V2, unique=False, allow_slugs=True):
        print(f"    {uri}")


# ===========================================================================
# STEP 3: Canonical UUIDs
# ===========================================================================

def run_canonical_uuids(resolver: Resolver):
    print_step(3, "Canonical UUIDs")

    for address in [
        "https://example.com/resolving-identifiers-2",
        "https://example.com/resolving-identifiers",
        "https://example.com/resolving-identifiers;draft",
        "https://example.com/" + str(ARTICLE_V2)[9:],
        "https://example.com/no-such-page",
    ]:
        print(f"  {address}")
        print(f"    -> {resolver.canonical_uuid(address)}")

    print(f"\n  Replacements for article v1: {resolver.replacements_for(ARTICLE_V1)}")


# ===========================================================================
# STEP 4: Labels, authors and dates
# ===========================================================================

def run_labels(resolver: Resolver):
    print_step(4, "Labels, authors and dates")

    for subject in (ARTICLE_V2, FIGURE, CONCEPT):
        label = resolver.label_for(subject)
        alt = resolver.label_for(subject, alt=True)
        print(f"  {subject}")
        print(f"    label: {label}   alt: {alt}")

    for author in resolver.authors_for(ARTICLE_V2):
        print(f"  author: {resolver.label_for(author)} <{resolver.canonical_uri(author)}>")

    dates = resolver.dates_for(ARTICLE_V2)
    print(f"  last modified: {dates[-1].isoformat() if dates else 'never'}")


def main():
    configure_logging(level=logging.WARNING)

    print("=" * 60)
    print("  resid — Publication Site")
    print("=" * 60)

    graph = build_site()
    facts = OntologyFacts.default(graph)
    label_policy, fragment_policy = run_policies(facts)

    resolver = Resolver(
        graph,
        ontology=facts,
        config=build_config(),
        label_policy=label_policy,
        fragment_policy=fragment_policy,
    )
    print(f"\n  Resolver over {len(graph)} triples")

    run_canonical_uris(resolver)
    run_canonical_uuids(resolver)
    run_labels(resolver)

    print_header("Publication Site Complete")


if __name__ == "__main__":
    main()
