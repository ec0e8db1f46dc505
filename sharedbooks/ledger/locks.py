"""
SharedBooks Ledger - Per-Member Write Locks
===========================================
Serializes settlement writes per (business_id, membership_id) within
one process. Two callers settling the same member queue up; callers
settling different members do not contend.
"""

from __future__ import annotations

import threading
import uuid
from contextlib import contextmanager
from typing import Iterator


class MemberLockRegistry:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[tuple[uuid.UUID, uuid.UUID], threading.RLock] = {}

    def _lock_for(
        self,
        business_id: uuid.UUID,
        membership_id: uuid.UUID,
    ) -> threading.RLock:
        with self._guard:
            key = (business_id, membership_id)
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(
        self,
        business_id: uuid.UUID,
        membership_id: uuid.UUID,
    ) -> Iterator[None]:
        with self._lock_for(business_id, membership_id):
            yield
