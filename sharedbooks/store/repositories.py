"""
SharedBooks Store - DB Providers
================================
Django ORM implementations of the ledger repository, membership and
business providers, and the audit store.

Transactional mapping:
    snapshot()      transaction.atomic()
    atomic()        transaction.atomic()
    lock_member()   SELECT ... FOR UPDATE on the membership row
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from decimal import Decimal
from typing import ContextManager, Iterable, Iterator, Optional

from django.db import transaction
from django.db.models import Count, Sum

from sharedbooks.audit.models import (
    AuditAction,
    AuditFilters,
    AuditLogEntry,
    EntityType,
)
from sharedbooks.business.models import Business, BusinessState
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
from sharedbooks.members.models import Membership
from sharedbooks.money import ZERO
from sharedbooks.permissions.roles import BusinessRole
from sharedbooks.store import models as orm

logger = logging.getLogger("sharedbooks.store")


# ══════════════════════════════════════════════════════════════
# ROW MAPPERS
# ══════════════════════════════════════════════════════════════

def _transaction_from_row(row, kind: TransactionKind) -> Transaction:
    return Transaction(
        transaction_id=row.transaction_id,
        business_id=row.business_id,
        kind=kind,
        amount=row.amount,
        transaction_date=row.transaction_date,
        member_id=row.member_id,
        category_id=row.category_id,
        description=row.description,
        is_deleted=row.is_deleted,
    )


def _settlement_from_row(row: orm.Settlement) -> Settlement:
    return Settlement(
        settlement_id=row.settlement_id,
        business_id=row.business_id,
        member_id=row.member_id,
        direction=SettlementDirection(row.direction),
        amount=row.amount,
        settlement_date=row.settlement_date,
        created_by_id=row.created_by_id,
        note=row.note,
        created_at=row.created_at,
    )


def _membership_from_row(row: orm.Membership) -> Membership:
    return Membership(
        membership_id=row.membership_id,
        business_id=row.business_id,
        user_id=row.user_id,
        role=BusinessRole(row.role),
        permission_overrides=row.permission_overrides or {},
        is_active=row.is_active,
        user_name=row.user_name,
        user_email=row.user_email,
        joined_at=row.joined_at,
    )


def _business_from_row(row: orm.Business) -> Business:
    return Business(
        business_id=row.business_id,
        name=row.name,
        created_at=row.created_at,
        state=BusinessState.ARCHIVED if row.is_archived else BusinessState.ACTIVE,
        archived_at=row.archived_at,
    )


def _audit_from_row(row: orm.AuditLog) -> AuditLogEntry:
    return AuditLogEntry(
        entry_id=row.entry_id,
        business_id=row.business_id,
        action=AuditAction(row.action),
        entity_type=EntityType(row.entity_type),
        entity_id=row.entity_id,
        performed_by_id=row.performed_by_id,
        created_at=row.created_at,
        changes=row.changes or {},
        metadata=row.metadata or {},
    )


# ══════════════════════════════════════════════════════════════
# LEDGER REPOSITORY
# ══════════════════════════════════════════════════════════════

_TRANSACTION_MODELS = {
    TransactionKind.EXPENSE: orm.Expense,
    TransactionKind.INCOME: orm.Income,
}


class DbLedgerRepository:
    def _live(
        self,
        business_id: uuid.UUID,
        kind: TransactionKind,
        date_range: Optional[DateRange],
    ):
        query = _TRANSACTION_MODELS[kind].objects.filter(
            business_id=business_id,
            is_deleted=False,
        )
        if date_range is not None:
            if date_range.start is not None:
                query = query.filter(transaction_date__gte=date_range.start)
            if date_range.end is not None:
                query = query.filter(transaction_date__lte=date_range.end)
        return query

    def aggregate_transactions(
        self,
        business_id: uuid.UUID,
        kind: TransactionKind,
        *,
        member_id: Optional[uuid.UUID] = None,
        business_only: bool = False,
        date_range: Optional[DateRange] = None,
    ) -> TransactionAggregate:
        query = self._live(business_id, kind, date_range)
        if member_id is not None:
            query = query.filter(member_id=member_id)
        elif business_only:
            query = query.filter(member__isnull=True)
        result = query.aggregate(total=Sum("amount"), count=Count("transaction_id"))
        return TransactionAggregate(
            total=result["total"] if result["total"] is not None else ZERO,
            count=result["count"],
        )

    def _grouped(self, query, key_field: str) -> tuple[GroupTotal, ...]:
        rows = (
            query.order_by()
            .values(key_field)
            .annotate(total=Sum("amount"), count=Count("transaction_id"))
        )
        return tuple(
            GroupTotal(key=row[key_field], total=row["total"], count=row["count"])
            for row in rows
        )

    def group_by_category(
        self,
        business_id: uuid.UUID,
        kind: TransactionKind,
        date_range: Optional[DateRange] = None,
    ) -> tuple[GroupTotal, ...]:
        return self._grouped(self._live(business_id, kind, date_range), "category_id")

    def group_by_member(
        self,
        business_id: uuid.UUID,
        kind: TransactionKind,
        date_range: Optional[DateRange] = None,
    ) -> tuple[GroupTotal, ...]:
        query = self._live(business_id, kind, date_range).filter(member__isnull=False)
        return self._grouped(query, "member_id")

    def list_transactions(
        self,
        business_id: uuid.UUID,
        kind: TransactionKind,
        *,
        member_id: Optional[uuid.UUID] = None,
        date_range: Optional[DateRange] = None,
        limit: Optional[int] = None,
    ) -> tuple[Transaction, ...]:
        query = self._live(business_id, kind, date_range)
        if member_id is not None:
            query = query.filter(member_id=member_id)
        query = query.order_by("-transaction_date", "-transaction_id")
        if limit is not None:
            query = query[:limit]
        return tuple(_transaction_from_row(row, kind) for row in query)

    def get_categories(
        self,
        business_id: uuid.UUID,
        category_ids: Iterable[str],
    ) -> dict[str, Category]:
        rows = orm.Category.objects.filter(
            business_id=business_id,
            category_id__in=list(category_ids),
        )
        return {
            row.category_id: Category(
                category_id=row.category_id,
                business_id=row.business_id,
                name=row.name,
                kind=TransactionKind(row.kind),
                color=row.color,
            )
            for row in rows
        }

    def sum_settlements(
        self,
        business_id: uuid.UUID,
        member_id: uuid.UUID,
        direction: SettlementDirection,
    ) -> Decimal:
        total = orm.Settlement.objects.filter(
            business_id=business_id,
            member_id=member_id,
            direction=direction.value,
        ).aggregate(total=Sum("amount"))["total"]
        return total if total is not None else ZERO

    def list_settlements(
        self,
        business_id: uuid.UUID,
        member_id: uuid.UUID,
        *,
        date_range: Optional[DateRange] = None,
        limit: Optional[int] = None,
    ) -> tuple[Settlement, ...]:
        query = orm.Settlement.objects.filter(business_id=business_id, member_id=member_id)
        if date_range is not None:
            if date_range.start is not None:
                query = query.filter(settlement_date__gte=date_range.start)
            if date_range.end is not None:
                query = query.filter(settlement_date__lte=date_range.end)
        query = query.order_by("-settlement_date", "-settlement_id")
        if limit is not None:
            query = query[:limit]
        return tuple(_settlement_from_row(row) for row in query)

    def add_settlement(self, settlement: Settlement) -> Settlement:
        orm.Settlement.objects.create(
            settlement_id=settlement.settlement_id,
            business_id=settlement.business_id,
            member_id=settlement.member_id,
            direction=settlement.direction.value,
            amount=settlement.amount,
            settlement_date=settlement.settlement_date,
            note=settlement.note,
            created_by_id=settlement.created_by_id,
            created_at=settlement.created_at,
        )
        logger.debug(f"Stored settlement {settlement.settlement_id} for member {settlement.member_id}")
        return settlement

    def snapshot(self) -> ContextManager[None]:
        return transaction.atomic()

    def atomic(self) -> ContextManager[None]:
        return transaction.atomic()

    @contextmanager
    def lock_member(
        self,
        business_id: uuid.UUID,
        membership_id: uuid.UUID,
    ) -> Iterator[None]:
        with transaction.atomic():
            list(
                orm.Membership.objects.select_for_update().filter(
                    business_id=business_id,
                    membership_id=membership_id,
                )
            )
            yield


# ══════════════════════════════════════════════════════════════
# MEMBERSHIP / BUSINESS PROVIDERS
# ══════════════════════════════════════════════════════════════

class DbMembershipProvider:
    def get_membership(
        self,
        business_id: uuid.UUID,
        membership_id: uuid.UUID,
    ) -> Membership | None:
        row = orm.Membership.objects.filter(
            business_id=business_id,
            membership_id=membership_id,
        ).first()
        return _membership_from_row(row) if row is not None else None

    def find_membership_for_user(
        self,
        business_id: uuid.UUID,
        user_id: str,
    ) -> Membership | None:
        row = orm.Membership.objects.filter(business_id=business_id, user_id=user_id).first()
        return _membership_from_row(row) if row is not None else None

    def list_active_memberships(
        self,
        business_id: uuid.UUID,
    ) -> tuple[Membership, ...]:
        rows = orm.Membership.objects.filter(business_id=business_id, is_active=True)
        return tuple(_membership_from_row(row) for row in rows)

    def list_memberships_for_user(self, user_id: str) -> tuple[Membership, ...]:
        rows = orm.Membership.objects.filter(user_id=user_id)
        return tuple(_membership_from_row(row) for row in rows)

    def save_membership(self, membership: Membership) -> Membership:
        orm.Membership.objects.update_or_create(
            membership_id=membership.membership_id,
            defaults={
                "business_id": membership.business_id,
                "user_id": membership.user_id,
                "user_name": membership.user_name,
                "user_email": membership.user_email,
                "role": membership.role.value,
                "permission_overrides": dict(membership.permission_overrides),
                "is_active": membership.is_active,
                "joined_at": membership.joined_at,
            },
        )
        return membership

    def atomic(self) -> ContextManager[None]:
        return transaction.atomic()


class DbBusinessProvider:
    def get_business(self, business_id: uuid.UUID) -> Business | None:
        row = orm.Business.objects.filter(business_id=business_id).first()
        return _business_from_row(row) if row is not None else None


# ══════════════════════════════════════════════════════════════
# AUDIT STORE
# ══════════════════════════════════════════════════════════════

class DbAuditStore:
    """
    Append-only audit store. Ordering: created_at DESC, id DESC, so ties
    on created_at resolve newest insert first.
    """

    def append(self, entry: AuditLogEntry) -> AuditLogEntry:
        data = entry.to_dict()
        orm.AuditLog.objects.create(
            entry_id=entry.entry_id,
            business_id=entry.business_id,
            action=entry.action.value,
            entity_type=entry.entity_type.value,
            entity_id=entry.entity_id,
            performed_by_id=entry.performed_by_id,
            changes=data["changes"],
            metadata=data["metadata"],
            created_at=entry.created_at,
        )
        return entry

    def _filtered(self, business_id: uuid.UUID, filters: AuditFilters):
        query = orm.AuditLog.objects.filter(business_id=business_id)
        if filters.action is not None:
            query = query.filter(action=filters.action.value)
        if filters.entity_type is not None:
            query = query.filter(entity_type=filters.entity_type.value)
        if filters.entity_id is not None:
            query = query.filter(entity_id=filters.entity_id)
        if filters.performed_by_id is not None:
            query = query.filter(performed_by_id=filters.performed_by_id)
        if filters.start is not None:
            query = query.filter(created_at__gte=filters.start)
        if filters.end is not None:
            query = query.filter(created_at__lte=filters.end)
        return query

    def find(
        self,
        business_id: uuid.UUID,
        filters: AuditFilters,
        *,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> tuple[AuditLogEntry, ...]:
        query = self._filtered(business_id, filters).order_by("-created_at", "-id")
        query = query[offset:] if limit is None else query[offset:offset + limit]
        return tuple(_audit_from_row(row) for row in query)

    def count(self, business_id: uuid.UUID, filters: AuditFilters) -> int:
        return self._filtered(business_id, filters).count()
