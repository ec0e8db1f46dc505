"""
SharedBooks Ledger - Repository Protocol and In-Memory Repository
=================================================================
Everything the ledger and analytics read from, and the one write the
ledger owns (settlement insert). Transaction CRUD belongs to the host
application; the in-memory repository exposes seeding helpers so tests
can build histories.

Transactional contract:
    snapshot()      reads inside the block see one consistent state
    atomic()        writes inside the block commit together or not at all
    lock_member()   serializes writes per member; call inside atomic()
"""

from __future__ import annotations

import threading
import uuid
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import replace
from decimal import Decimal
from typing import ContextManager, Iterable, Iterator, Optional, Protocol

from sharedbooks.ledger.locks import MemberLockRegistry
from sharedbooks.ledger.models import (
    Category,
    DateRange,
    GroupTotal,
    Settlement,
    SettlementDirection,
    Transaction,
    TransactionAggregate,
    TransactionKind,
)
from sharedbooks.money import ZERO


class LedgerRepository(Protocol):
    # ── transactions (non-deleted only) ──────────────────────
    def aggregate_transactions(
        self,
        business_id: uuid.UUID,
        kind: TransactionKind,
        *,
        member_id: Optional[uuid.UUID] = None,
        business_only: bool = False,
        date_range: Optional[DateRange] = None,
    ) -> TransactionAggregate:
        """
        Sum and count. ``member_id`` restricts to one member's
        attribution, ``business_only`` to business-attributed rows,
        neither means all rows.
        """
        ...

    def group_by_category(
        self,
        business_id: uuid.UUID,
        kind: TransactionKind,
        date_range: Optional[DateRange] = None,
    ) -> tuple[GroupTotal, ...]:
        ...

    def group_by_member(
        self,
        business_id: uuid.UUID,
        kind: TransactionKind,
        date_range: Optional[DateRange] = None,
    ) -> tuple[GroupTotal, ...]:
        """Member-attributed rows only, keyed by member id."""
        ...

    def list_transactions(
        self,
        business_id: uuid.UUID,
        kind: TransactionKind,
        *,
        member_id: Optional[uuid.UUID] = None,
        date_range: Optional[DateRange] = None,
        limit: Optional[int] = None,
    ) -> tuple[Transaction, ...]:
        """Newest first by transaction_date."""
        ...

    def get_categories(
        self,
        business_id: uuid.UUID,
        category_ids: Iterable[str],
    ) -> dict[str, Category]:
        ...

    # ── settlements ──────────────────────────────────────────
    def sum_settlements(
        self,
        business_id: uuid.UUID,
        member_id: uuid.UUID,
        direction: SettlementDirection,
    ) -> Decimal:
        ...

    def list_settlements(
        self,
        business_id: uuid.UUID,
        member_id: uuid.UUID,
        *,
        date_range: Optional[DateRange] = None,
        limit: Optional[int] = None,
    ) -> tuple[Settlement, ...]:
        """Newest first by settlement_date."""
        ...

    def add_settlement(self, settlement: Settlement) -> Settlement:
        ...

    # ── transactional boundaries ─────────────────────────────
    def snapshot(self) -> ContextManager[None]:
        ...

    def atomic(self) -> ContextManager[None]:
        ...

    def lock_member(
        self,
        business_id: uuid.UUID,
        membership_id: uuid.UUID,
    ) -> ContextManager[None]:
        ...


def _newest_first(transactions: Iterable[Transaction]) -> list[Transaction]:
    return sorted(
        transactions,
        key=lambda t: (t.transaction_date, str(t.transaction_id)),
        reverse=True,
    )


class InMemoryLedgerRepository:
    """
    Deterministic in-memory repository used for tests and bootstrap.

    One reentrant lock guards all state; ``snapshot()`` holds it for the
    block. ``atomic()`` journals settlement inserts made by the current
    thread and removes them if the block raises.
    """

    def __init__(
        self,
        *,
        transactions: Iterable[Transaction] | None = None,
        categories: Iterable[Category] | None = None,
        settlements: Iterable[Settlement] | None = None,
        lock_registry: MemberLockRegistry | None = None,
    ):
        self._lock = threading.RLock()
        self._local = threading.local()
        self._member_locks = lock_registry or MemberLockRegistry()
        self._transactions: dict[uuid.UUID, Transaction] = {}
        self._categories: dict[str, Category] = {}
        self._settlements: list[Settlement] = []

        for transaction in transactions or ():
            self.add_transaction(transaction)
        for category in categories or ():
            self.add_category(category)
        for settlement in settlements or ():
            self.add_settlement(settlement)

    # ── seeding helpers (host-owned CRUD stand-ins) ──────────
    def add_transaction(self, transaction: Transaction) -> Transaction:
        with self._lock:
            if transaction.transaction_id in self._transactions:
                raise ValueError(
                    f"Duplicate transaction_id '{transaction.transaction_id}'."
                )
            self._transactions[transaction.transaction_id] = transaction
        return transaction

    def soft_delete_transaction(self, transaction_id: uuid.UUID) -> Transaction:
        with self._lock:
            deleted = replace(self._transactions[transaction_id], is_deleted=True)
            self._transactions[transaction_id] = deleted
        return deleted

    def add_category(self, category: Category) -> Category:
        with self._lock:
            self._categories[category.category_id] = category
        return category

    # ── transaction reads ────────────────────────────────────
    def _live(
        self,
        business_id: uuid.UUID,
        kind: TransactionKind,
        date_range: Optional[DateRange],
    ) -> list[Transaction]:
        with self._lock:
            rows = list(self._transactions.values())
        return [
            t
            for t in rows
            if t.business_id == business_id
            and t.kind == kind
            and not t.is_deleted
            and (date_range is None or date_range.contains(t.transaction_date))
        ]

    def aggregate_transactions(
        self,
        business_id: uuid.UUID,
        kind: TransactionKind,
        *,
        member_id: Optional[uuid.UUID] = None,
        business_only: bool = False,
        date_range: Optional[DateRange] = None,
    ) -> TransactionAggregate:
        rows = self._live(business_id, kind, date_range)
        if member_id is not None:
            rows = [t for t in rows if t.member_id == member_id]
        elif business_only:
            rows = [t for t in rows if t.member_id is None]
        return TransactionAggregate(
            total=sum((t.amount for t in rows), ZERO),
            count=len(rows),
        )

    def _group(self, rows: Iterable[Transaction], key_of) -> tuple[GroupTotal, ...]:
        totals: dict[object, Decimal] = defaultdict(lambda: ZERO)
        counts: dict[object, int] = defaultdict(int)
        for t in rows:
            key = key_of(t)
            totals[key] += t.amount
            counts[key] += 1
        return tuple(
            GroupTotal(key=key, total=totals[key], count=counts[key])
            for key in totals
        )

    def group_by_category(
        self,
        business_id: uuid.UUID,
        kind: TransactionKind,
        date_range: Optional[DateRange] = None,
    ) -> tuple[GroupTotal, ...]:
        return self._group(
            self._live(business_id, kind, date_range),
            lambda t: t.category_id,
        )

    def group_by_member(
        self,
        business_id: uuid.UUID,
        kind: TransactionKind,
        date_range: Optional[DateRange] = None,
    ) -> tuple[GroupTotal, ...]:
        rows = [
            t for t in self._live(business_id, kind, date_range)
            if t.member_id is not None
        ]
        return self._group(rows, lambda t: t.member_id)

    def list_transactions(
        self,
        business_id: uuid.UUID,
        kind: TransactionKind,
        *,
        member_id: Optional[uuid.UUID] = None,
        date_range: Optional[DateRange] = None,
        limit: Optional[int] = None,
    ) -> tuple[Transaction, ...]:
        rows = self._live(business_id, kind, date_range)
        if member_id is not None:
            rows = [t for t in rows if t.member_id == member_id]
        ordered = _newest_first(rows)
        return tuple(ordered if limit is None else ordered[:limit])

    def get_categories(
        self,
        business_id: uuid.UUID,
        category_ids: Iterable[str],
    ) -> dict[str, Category]:
        wanted = set(category_ids)
        with self._lock:
            return {
                cid: c
                for cid, c in self._categories.items()
                if cid in wanted and c.business_id == business_id
            }

    # ── settlements ──────────────────────────────────────────
    def _member_settlements(
        self,
        business_id: uuid.UUID,
        member_id: uuid.UUID,
    ) -> list[Settlement]:
        with self._lock:
            return [
                s for s in self._settlements
                if s.business_id == business_id and s.member_id == member_id
            ]

    def sum_settlements(
        self,
        business_id: uuid.UUID,
        member_id: uuid.UUID,
        direction: SettlementDirection,
    ) -> Decimal:
        return sum(
            (
                s.amount
                for s in self._member_settlements(business_id, member_id)
                if s.direction == direction
            ),
            ZERO,
        )

    def list_settlements(
        self,
        business_id: uuid.UUID,
        member_id: uuid.UUID,
        *,
        date_range: Optional[DateRange] = None,
        limit: Optional[int] = None,
    ) -> tuple[Settlement, ...]:
        rows = [
            s for s in self._member_settlements(business_id, member_id)
            if date_range is None or date_range.contains(s.settlement_date)
        ]
        rows.sort(key=lambda s: (s.settlement_date, str(s.settlement_id)), reverse=True)
        return tuple(rows if limit is None else rows[:limit])

    def add_settlement(self, settlement: Settlement) -> Settlement:
        with self._lock:
            if any(s.settlement_id == settlement.settlement_id for s in self._settlements):
                raise PermissionError(
                    f"Settlement {settlement.settlement_id} already exists. "
                    f"Settlements are immutable."
                )
            self._settlements.append(settlement)
            journals = self._journals()
            if journals:
                journals[-1].append(settlement.settlement_id)
        return settlement

    @property
    def settlement_count(self) -> int:
        return len(self._settlements)

    # ── transactional boundaries ─────────────────────────────
    def _journals(self) -> list[list[uuid.UUID]]:
        journals = getattr(self._local, "journals", None)
        if journals is None:
            journals = []
            self._local.journals = journals
        return journals

    @contextmanager
    def snapshot(self) -> Iterator[None]:
        with self._lock:
            yield

    @contextmanager
    def atomic(self) -> Iterator[None]:
        journals = self._journals()
        journal: list[uuid.UUID] = []
        journals.append(journal)
        try:
            yield
        except BaseException:
            with self._lock:
                rolled_back = set(journal)
                self._settlements = [
                    s for s in self._settlements
                    if s.settlement_id not in rolled_back
                ]
            journal.clear()
            raise
        finally:
            journals.pop()
            if journals:
                journals[-1].extend(journal)

    def lock_member(
        self,
        business_id: uuid.UUID,
        membership_id: uuid.UUID,
    ) -> ContextManager[None]:
        return self._member_locks.hold(business_id, membership_id)
