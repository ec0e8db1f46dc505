"""
SharedBooks Audit - Store Protocol and In-Memory Store
======================================================
Stores append and read. There is no update and no delete on the
protocol, and the in-memory store refuses a second write of an id.
"""

from __future__ import annotations

import threading
import uuid
from typing import Optional, Protocol

from sharedbooks.audit.models import AuditFilters, AuditLogEntry


class AuditStore(Protocol):
    def append(self, entry: AuditLogEntry) -> AuditLogEntry:
        ...

    def find(
        self,
        business_id: uuid.UUID,
        filters: AuditFilters,
        *,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> tuple[AuditLogEntry, ...]:
        """Matching entries, newest first."""
        ...

    def count(self, business_id: uuid.UUID, filters: AuditFilters) -> int:
        ...


class InMemoryAuditStore:
    """
    Append-only in-memory store used for tests.

    Ordering: created_at DESC, then insertion order DESC.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: list[AuditLogEntry] = []
        self._ids: set[uuid.UUID] = set()

    def append(self, entry: AuditLogEntry) -> AuditLogEntry:
        with self._lock:
            if entry.entry_id in self._ids:
                raise PermissionError(
                    f"Audit entry {entry.entry_id} already recorded. "
                    f"Audit entries are immutable."
                )
            self._ids.add(entry.entry_id)
            self._entries.append(entry)
        return entry

    def _matching(
        self,
        business_id: uuid.UUID,
        filters: AuditFilters,
    ) -> list[AuditLogEntry]:
        indexed = [
            (position, entry)
            for position, entry in enumerate(self._entries)
            if entry.business_id == business_id and filters.matches(entry)
        ]
        indexed.sort(key=lambda pair: (pair[1].created_at, pair[0]), reverse=True)
        return [entry for _, entry in indexed]

    def find(
        self,
        business_id: uuid.UUID,
        filters: AuditFilters,
        *,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> tuple[AuditLogEntry, ...]:
        matching = self._matching(business_id, filters)
        stop = None if limit is None else offset + limit
        return tuple(matching[offset:stop])

    def count(self, business_id: uuid.UUID, filters: AuditFilters) -> int:
        return len(self._matching(business_id, filters))

    @property
    def entry_count(self) -> int:
        return len(self._entries)
