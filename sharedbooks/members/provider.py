"""
SharedBooks Members - Provider Protocol and In-Memory Provider
==============================================================
Membership lookup by (business_id, membership_id) plus the writes the
membership service needs. Lookups are tenant-scoped: a membership id
from another business resolves to None.
"""

from __future__ import annotations

import threading
import uuid
from contextlib import contextmanager
from typing import ContextManager, Iterable, Iterator, Protocol

from sharedbooks.members.models import Membership


class MembershipProvider(Protocol):
    def get_membership(
        self,
        business_id: uuid.UUID,
        membership_id: uuid.UUID,
    ) -> Membership | None:
        ...

    def find_membership_for_user(
        self,
        business_id: uuid.UUID,
        user_id: str,
    ) -> Membership | None:
        ...

    def list_active_memberships(
        self,
        business_id: uuid.UUID,
    ) -> tuple[Membership, ...]:
        ...

    def list_memberships_for_user(self, user_id: str) -> tuple[Membership, ...]:
        ...

    def save_membership(self, membership: Membership) -> Membership:
        ...

    def atomic(self) -> ContextManager[None]:
        ...


class InMemoryMembershipProvider:
    """
    Deterministic in-memory provider used for tests.

    ``atomic()`` restores the pre-block state if the block raises.
    """

    def __init__(self, memberships: Iterable[Membership] | None = None):
        self._lock = threading.RLock()
        self._memberships: dict[uuid.UUID, Membership] = {}
        for membership in memberships or ():
            if membership.membership_id in self._memberships:
                raise ValueError(
                    f"Duplicate membership_id '{membership.membership_id}'."
                )
            self._memberships[membership.membership_id] = membership

    def get_membership(
        self,
        business_id: uuid.UUID,
        membership_id: uuid.UUID,
    ) -> Membership | None:
        membership = self._memberships.get(membership_id)
        if membership is None or membership.business_id != business_id:
            return None
        return membership

    def find_membership_for_user(
        self,
        business_id: uuid.UUID,
        user_id: str,
    ) -> Membership | None:
        for membership in self._memberships.values():
            if membership.business_id == business_id and membership.user_id == user_id:
                return membership
        return None

    def list_active_memberships(
        self,
        business_id: uuid.UUID,
    ) -> tuple[Membership, ...]:
        return tuple(
            m
            for m in self._memberships.values()
            if m.business_id == business_id and m.is_active
        )

    def list_memberships_for_user(self, user_id: str) -> tuple[Membership, ...]:
        return tuple(m for m in self._memberships.values() if m.user_id == user_id)

    def save_membership(self, membership: Membership) -> Membership:
        with self._lock:
            self._memberships[membership.membership_id] = membership
        return membership

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            snapshot = dict(self._memberships)
            try:
                yield
            except BaseException:
                self._memberships = snapshot
                raise
