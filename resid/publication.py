"""Publication status and dates, read from graph data.

What counts as "published" is configuration, not behaviour: the status
values are opaque constants carried in a PublicationStatus.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any

from rdflib import Literal, URIRef
from rdflib.namespace import DCTERMS, XSD
from rdflib.term import Node

from .struct import Projector
from .types import EPOCH
from .vocab import BIBO, BS, CI


@dataclass(frozen=True)
class PublicationStatus:
    """The status values and predicates that decide publication."""
    published: URIRef = BS.published
    retired: URIRef = CI.retired
    circulated: URIRef = CI.circulated
    status_predicate: URIRef = BIBO.status
    indexed_predicate: URIRef = CI.indexed


DEFAULT_STATUS = PublicationStatus()


def published(
    projector: Projector,
    subject: Node,
    status: PublicationStatus = DEFAULT_STATUS,
    circulated: bool = False,
    retired: bool = False,
    indexed: bool = False,
) -> bool:
    """Whether the subject carries a published status.

    A retired subject is unpublished unless retired=True. circulated=True
    also accepts the circulated status. indexed=True additionally rejects
    subjects explicitly marked as not indexed.
    """
    if indexed:
        flags = projector.objects_for(subject, status.indexed_predicate, only="literal")
        first = next(iter(flags), None)
        if first is not None and first.toPython() is False:
            return False

    statuses = set(projector.objects_for(subject, status.status_predicate, only="resource"))
    if not retired and status.retired in statuses:
        return False

    accepted = {status.published}
    if circulated:
        accepted.add(status.circulated)
    return bool(statuses & accepted)


def _as_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    # ill-typed lexical forms come back as the Literal itself
    return None


def dates_for(
    projector: Projector,
    subject: Node,
    predicate: Any = DCTERMS.date,
    datatype: Any = (XSD.date, XSD.dateTime),
) -> list[datetime]:
    """Sorted, distinct dates of the subject as timezone-aware datetimes.

    The predicate is entailed, so dct:date also picks up dct:created,
    dct:modified and dct:issued. Naive values are taken as UTC.
    """
    found = projector.objects_for(
        subject, predicate, only="literal", datatype=list(datatype)
    )
    out = set()
    for lit in found:
        if not isinstance(lit, Literal):
            continue
        when = _as_datetime(lit.toPython())
        if when is not None:
            out.add(when)
    return sorted(out)


def latest_mtime(projector: Projector, subject: Node, default: datetime = EPOCH) -> datetime:
    dates = dates_for(projector, subject)
    return dates[-1] if dates else default
