"""
Tests for sharedbooks.store - Django-backed providers.

Covers the ledger repository aggregates, settlement writes through the
engine (including rollback when the audit write fails), write-once
guards on settlement and audit rows, and audit paging order.
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from sharedbooks.audit import AuditAction, AuditFilters, AuditTrail
from sharedbooks.audit.functions import audit_business_updated
from sharedbooks.errors import ReasonCode, ValidationError
from sharedbooks.ledger import (
    DateRange,
    LedgerEngine,
    SettlementDirection,
    TransactionKind,
)
from sharedbooks.members import Membership
from sharedbooks.permissions import BusinessRole
from sharedbooks.store import models as orm
from sharedbooks.store.repositories import (
    DbAuditStore,
    DbBusinessProvider,
    DbLedgerRepository,
    DbMembershipProvider,
)
from sharedbooks.time import FixedClock

pytestmark = pytest.mark.django_db(transaction=True)

BIZ_ID = uuid.uuid4()
NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)
JUNE = DateRange(date(2025, 6, 1), date(2025, 6, 30))


class ExplodingAuditStore(DbAuditStore):
    def append(self, entry):
        raise RuntimeError("audit store unavailable")


def _business(business_id=BIZ_ID, **kwargs):
    return orm.Business.objects.create(business_id=business_id, name="Acme", **kwargs)


def _membership(user_id="alice", role=BusinessRole.EMPLOYEE):
    membership = Membership(
        membership_id=uuid.uuid4(),
        business_id=BIZ_ID,
        user_id=user_id,
        role=role,
        user_name=user_id.title(),
    )
    return DbMembershipProvider().save_membership(membership)


def _expense(amount, day, member=None, category=None, is_deleted=False):
    return orm.Expense.objects.create(
        transaction_id=uuid.uuid4(),
        business_id=BIZ_ID,
        member_id=member.membership_id if member else None,
        category=category,
        amount=Decimal(amount),
        transaction_date=day,
        is_deleted=is_deleted,
    )


def _income(amount, day, member=None):
    return orm.Income.objects.create(
        transaction_id=uuid.uuid4(),
        business_id=BIZ_ID,
        member_id=member.membership_id if member else None,
        amount=Decimal(amount),
        transaction_date=day,
    )


def _engine(audit_store=None):
    trail = AuditTrail(audit_store or DbAuditStore(), clock=FixedClock(NOW))
    return LedgerEngine(
        DbLedgerRepository(),
        DbMembershipProvider(),
        trail,
        clock=FixedClock(NOW),
    )


class TestDbLedgerRepository:
    def test_aggregates_skip_deleted_and_respect_window(self):
        _business()
        alice = _membership()
        _expense("10.50", date(2025, 6, 1), member=alice)
        _expense("4.50", date(2025, 6, 2))
        _expense("100", date(2025, 6, 3), member=alice, is_deleted=True)
        _expense("7", date(2025, 7, 1), member=alice)

        repo = DbLedgerRepository()
        everything = repo.aggregate_transactions(BIZ_ID, TransactionKind.EXPENSE)
        assert everything.total == Decimal("22.00")
        assert everything.count == 3

        june = repo.aggregate_transactions(BIZ_ID, TransactionKind.EXPENSE, date_range=JUNE)
        assert june.total == Decimal("15.00")

        mine = repo.aggregate_transactions(
            BIZ_ID, TransactionKind.EXPENSE, member_id=alice.membership_id
        )
        assert mine.total == Decimal("17.50")

        business_only = repo.aggregate_transactions(
            BIZ_ID, TransactionKind.EXPENSE, business_only=True
        )
        assert business_only.total == Decimal("4.50")
        assert business_only.count == 1

    def test_empty_aggregate_is_zero(self):
        _business()
        result = DbLedgerRepository().aggregate_transactions(BIZ_ID, TransactionKind.INCOME)
        assert result.total == Decimal("0")
        assert result.count == 0

    def test_grouping(self):
        _business()
        alice = _membership()
        travel = orm.Category.objects.create(
            category_id="travel", business_id=BIZ_ID, name="Travel", kind="EXPENSE"
        )
        _expense("20", date(2025, 6, 1), member=alice, category=travel)
        _expense("5", date(2025, 6, 2), category=travel)
        _expense("3", date(2025, 6, 2))

        repo = DbLedgerRepository()
        by_category = {g.key: g for g in repo.group_by_category(BIZ_ID, TransactionKind.EXPENSE)}
        assert by_category["travel"].total == Decimal("25.00")
        assert by_category["travel"].count == 2
        assert by_category[None].total == Decimal("3.00")

        by_member = repo.group_by_member(BIZ_ID, TransactionKind.EXPENSE)
        assert [(g.key, g.total) for g in by_member] == [(alice.membership_id, Decimal("20.00"))]

        categories = repo.get_categories(BIZ_ID, ["travel", "missing"])
        assert list(categories) == ["travel"]
        assert categories["travel"].kind == TransactionKind.EXPENSE

    def test_list_transactions_newest_first(self):
        _business()
        _income("1", date(2025, 6, 1))
        _income("2", date(2025, 6, 3))
        _income("3", date(2025, 6, 2))
        rows = DbLedgerRepository().list_transactions(BIZ_ID, TransactionKind.INCOME, limit=2)
        assert [r.transaction_date for r in rows] == [date(2025, 6, 3), date(2025, 6, 2)]


class TestSettlementsThroughEngine:
    def test_create_settlement_persists_and_audits(self):
        _business()
        alice = _membership()
        _expense("300", date(2025, 6, 1), member=alice)

        result = _engine().create_settlement(
            BIZ_ID,
            alice.membership_id,
            SettlementDirection.BUSINESS_TO_MEMBER,
            Decimal("100"),
            "  partial  ",
            date(2025, 6, 10),
            "owner",
        )
        assert result.new_balance.balance == Decimal("200.00")

        row = orm.Settlement.objects.get(settlement_id=result.settlement.settlement_id)
        assert row.note == "partial"
        assert row.amount == Decimal("100.00")

        audit_rows = orm.AuditLog.objects.filter(business_id=BIZ_ID)
        assert audit_rows.count() == 1
        assert audit_rows[0].action == AuditAction.SETTLEMENT_CREATED.value
        assert audit_rows[0].metadata["member_id"] == str(alice.membership_id)

    def test_audit_failure_rolls_back_settlement(self):
        _business()
        alice = _membership()
        _expense("50", date(2025, 6, 1), member=alice)

        with pytest.raises(RuntimeError):
            _engine(ExplodingAuditStore()).create_settlement(
                BIZ_ID,
                alice.membership_id,
                SettlementDirection.BUSINESS_TO_MEMBER,
                Decimal("50"),
                None,
                date(2025, 6, 10),
                "owner",
            )
        assert orm.Settlement.objects.count() == 0
        balance = _engine().calculate_member_balance(BIZ_ID, alice.membership_id)
        assert balance.balance == Decimal("50.00")

    def test_sub_cent_settlement_rejected_before_write(self):
        _business()
        alice = _membership()
        _expense("100", date(2025, 6, 1), member=alice)
        engine = _engine()

        with pytest.raises(ValidationError) as exc_info:
            engine.create_settlement(
                BIZ_ID,
                alice.membership_id,
                SettlementDirection.BUSINESS_TO_MEMBER,
                Decimal("0.004"),
                None,
                date(2025, 6, 10),
                "owner",
            )
        assert exc_info.value.code == ReasonCode.INVALID_AMOUNT
        assert orm.Settlement.objects.count() == 0
        assert orm.AuditLog.objects.count() == 0

        history = engine.balance_history(BIZ_ID, alice.membership_id)
        assert history.settlements == ()
        assert engine.calculate_member_balance(BIZ_ID, alice.membership_id).balance == Decimal("100")

    def test_settle_balance_zeroes_member(self):
        _business()
        alice = _membership()
        _income("80", date(2025, 6, 1), member=alice)

        result = _engine().settle_balance(BIZ_ID, alice.membership_id, date(2025, 6, 2), "owner")
        assert result.settlement.direction == SettlementDirection.MEMBER_TO_BUSINESS
        assert result.new_balance.balance == Decimal("0")


class TestWriteOnceRows:
    def _settlement_row(self):
        _business()
        alice = _membership()
        _engine().create_settlement(
            BIZ_ID,
            alice.membership_id,
            SettlementDirection.MEMBER_TO_BUSINESS,
            Decimal("5"),
            None,
            date(2025, 6, 1),
            "owner",
        )
        return orm.Settlement.objects.get()

    def test_settlement_update_refused(self):
        row = self._settlement_row()
        row.amount = Decimal("1")
        with pytest.raises(PermissionError):
            row.save()

    def test_settlement_delete_refused(self):
        row = self._settlement_row()
        with pytest.raises(PermissionError):
            row.delete()
        assert orm.Settlement.objects.count() == 1

    def test_audit_row_update_and_delete_refused(self):
        row = self._settlement_row()
        audit_row = orm.AuditLog.objects.get(entity_id=str(row.settlement_id))
        audit_row.performed_by_id = "someone-else"
        with pytest.raises(PermissionError):
            audit_row.save()
        with pytest.raises(PermissionError):
            audit_row.delete()


class TestDbAuditStore:
    def test_paging_newest_first_on_tied_timestamps(self):
        trail = AuditTrail(DbAuditStore(), clock=FixedClock(NOW))
        for name in ("one", "two", "three"):
            audit_business_updated(
                trail, BIZ_ID, "owner", {"name": {"old_value": None, "new_value": name}}
            )

        page = trail.query(BIZ_ID, limit=2)
        assert page.total == 3
        assert page.has_more
        assert [e.changes["name"]["new_value"] for e in page.entries] == ["three", "two"]

        rest = trail.query(BIZ_ID, limit=2, offset=2)
        assert [e.changes["name"]["new_value"] for e in rest.entries] == ["one"]
        assert not rest.has_more

    def test_filters_and_tenant_scope(self):
        trail = AuditTrail(DbAuditStore(), clock=FixedClock(NOW))
        audit_business_updated(trail, BIZ_ID, "owner", {})
        audit_business_updated(trail, BIZ_ID, "admin", {})
        audit_business_updated(trail, uuid.uuid4(), "owner", {})

        page = trail.query(BIZ_ID, AuditFilters(performed_by_id="owner"))
        assert page.total == 1
        assert page.entries[0].performed_by_id == "owner"
        assert trail.query(BIZ_ID).total == 2


class TestDbProviders:
    def test_membership_round_trip(self):
        _business()
        saved = _membership("bob", BusinessRole.ACCOUNTANT)
        provider = DbMembershipProvider()

        loaded = provider.get_membership(BIZ_ID, saved.membership_id)
        assert loaded == saved
        assert provider.get_membership(uuid.uuid4(), saved.membership_id) is None

        provider.save_membership(
            loaded.with_overrides({"can_create_settlement": True}).with_role(BusinessRole.ADMIN)
        )
        reloaded = provider.find_membership_for_user(BIZ_ID, "bob")
        assert reloaded.role == BusinessRole.ADMIN
        assert reloaded.permission_overrides == {"can_create_settlement": True}

        provider.save_membership(reloaded.deactivated())
        assert provider.list_active_memberships(BIZ_ID) == ()
        assert len(provider.list_memberships_for_user("bob")) == 1

    def test_business_archived_state(self):
        archived_id = uuid.uuid4()
        _business()
        _business(archived_id, is_archived=True, archived_at=NOW)
        provider = DbBusinessProvider()

        assert not provider.get_business(BIZ_ID).is_archived
        assert provider.get_business(archived_id).is_archived
        assert provider.get_business(uuid.uuid4()) is None
