"""Resolution Cache — memoized UUID resolutions and subject-existence checks.

Entries are only valid for the graph snapshot they were computed from.
Nothing here watches the graph: after any write, call clear().
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Hashable

from rdflib.term import Node

logger = logging.getLogger(__name__)


class ResolutionCache:
    """Two memo tables behind one re-entrant lock.

    uuids     (input term, published_only, base) -> ordered candidate list
    subjects  term -> whether the graph has it as a subject
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._uuids: dict[Hashable, list[Node]] = {}
        self._subjects: dict[Node, bool] = {}

    def get_uuids(self, key: Hashable) -> list[Node] | None:
        with self._lock:
            found = self._uuids.get(key)
            return None if found is None else list(found)

    def put_uuids(self, key: Hashable, candidates: list[Node]) -> None:
        with self._lock:
            self._uuids[key] = list(candidates)

    def has_subject(self, term: Node, check: Callable[[Node], bool]) -> bool:
        """Memoized check(term)."""
        with self._lock:
            if term not in self._subjects:
                self._subjects[term] = bool(check(term))
            return self._subjects[term]

    def clear(self) -> None:
        with self._lock:
            logger.debug(
                f"Clearing resolution cache: {len(self._uuids)} resolutions, "
                f"{len(self._subjects)} subjects"
            )
            self._uuids.clear()
            self._subjects.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._uuids) + len(self._subjects)

    def __repr__(self) -> str:
        return f"ResolutionCache({len(self._uuids)} resolutions, {len(self._subjects)} subjects)"
