"""In-memory session history."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator

from devpilot.errors import HistoryEntryNotFound
from devpilot.schemas.history import HistoryEntry

logger = logging.getLogger(__name__)


class HistoryStore:
    """Append-only, insertion-ordered list of completed analyses.

    Lives for the process only and has no capacity bound.  Every access goes
    through one lock, so the interactive thread and background completion
    callbacks can share a store.
    """

    def __init__(self) -> None:
        self._entries: list[HistoryEntry] = []
        self._lock = threading.Lock()

    def append(self, entry: HistoryEntry) -> None:
        with self._lock:
            self._entries.append(entry)
            size = len(self._entries)
        logger.debug("History entry %d recorded (%s, %s)", size, entry.analysis_type, entry.model)

    def list(self) -> list[HistoryEntry]:
        """Snapshot of all entries, oldest first."""
        with self._lock:
            return list(self._entries)

    def get(self, index: int) -> HistoryEntry:
        """Return the entry at 0-based ``index``; negative indices are not accepted."""
        with self._lock:
            if not 0 <= index < len(self._entries):
                raise HistoryEntryNotFound(index, len(self._entries))
            return self._entries[index]

    def summary(self, index: int) -> str:
        """One-line listing for the entry at ``index``."""
        return self.get(index).summary(index + 1)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self.list())
