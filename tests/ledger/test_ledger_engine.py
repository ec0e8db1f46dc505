"""
Tests for sharedbooks.ledger - balances, summaries and settlements.
"""

import threading
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from sharedbooks.audit import AuditAction, AuditTrail, EntityType, InMemoryAuditStore
from sharedbooks.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ReasonCode,
    ValidationError,
)
from sharedbooks.ledger import (
    InMemoryLedgerRepository,
    LedgerEngine,
    SettlementDirection,
    Transaction,
    TransactionKind,
)
from sharedbooks.members import InMemoryMembershipProvider, Membership
from sharedbooks.permissions import BusinessRole
from sharedbooks.settings import LedgerSettings
from sharedbooks.time import FixedClock

BIZ_ID = uuid.uuid4()
OTHER_BIZ_ID = uuid.uuid4()
NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)
TODAY = date(2025, 6, 15)

B2M = SettlementDirection.BUSINESS_TO_MEMBER
M2B = SettlementDirection.MEMBER_TO_BUSINESS


def _membership(role=BusinessRole.EMPLOYEE, *, user_id="alice", business_id=BIZ_ID, **kwargs):
    return Membership(
        membership_id=uuid.uuid4(),
        business_id=business_id,
        user_id=user_id,
        role=role,
        user_name=user_id.title(),
        user_email=f"{user_id}@example.com",
        **kwargs,
    )


class Ledger:
    """Wires an engine over in-memory fakes."""

    def __init__(self, *members, settings=None, audit_store=None):
        self.repo = InMemoryLedgerRepository()
        self.memberships = InMemoryMembershipProvider(members)
        self.audit_store = audit_store or InMemoryAuditStore()
        self.audit = AuditTrail(self.audit_store, clock=FixedClock(NOW))
        self.engine = LedgerEngine(
            self.repo,
            self.memberships,
            self.audit,
            settings=settings,
            clock=FixedClock(NOW),
        )

    def expense(self, amount, member=None, day=TODAY, **kwargs):
        return self._add(TransactionKind.EXPENSE, amount, member, day, **kwargs)

    def income(self, amount, member=None, day=TODAY, **kwargs):
        return self._add(TransactionKind.INCOME, amount, member, day, **kwargs)

    def _add(self, kind, amount, member, day, business_id=BIZ_ID):
        return self.repo.add_transaction(
            Transaction(
                transaction_id=uuid.uuid4(),
                business_id=business_id,
                kind=kind,
                amount=Decimal(amount),
                transaction_date=day,
                member_id=member.membership_id if member else None,
            )
        )

    def settle(self, member, direction, amount, **kwargs):
        return self.engine.create_settlement(
            BIZ_ID, member.membership_id, direction, amount, None, TODAY, "owner-1", **kwargs
        )

    def balance(self, member):
        return self.engine.calculate_member_balance(BIZ_ID, member.membership_id).balance


# ── Worked examples ──────────────────────────────────────────

class TestBalanceScenarios:
    def test_out_of_pocket_expense_then_reimbursement(self):
        alice = _membership()
        ledger = Ledger(alice)
        ledger.expense("100", alice)

        assert ledger.balance(alice) == Decimal("100")
        suggestion = LedgerEngine.suggested_settlement(ledger.balance(alice))
        assert suggestion.direction == B2M
        assert suggestion.amount == Decimal("100")

        ledger.settle(alice, B2M, "100")
        assert ledger.balance(alice) == Decimal("0")
        assert LedgerEngine.suggested_settlement(ledger.balance(alice)) is None

    def test_personal_income_then_repayment(self):
        alice = _membership()
        ledger = Ledger(alice)
        ledger.income("200", alice)

        assert ledger.balance(alice) == Decimal("-200")
        suggestion = LedgerEngine.suggested_settlement(ledger.balance(alice))
        assert suggestion.direction == M2B
        assert suggestion.amount == Decimal("200")

        ledger.settle(alice, M2B, "200")
        assert ledger.balance(alice) == Decimal("0")

    def test_mixed_history(self):
        alice = _membership()
        ledger = Ledger(alice)
        ledger.expense("150", alice)
        ledger.income("50", alice)
        ledger.settle(alice, B2M, "30")
        assert ledger.balance(alice) == Decimal("70")

    @pytest.mark.parametrize("amount", ["0", "-10", 0, Decimal("-0.01")])
    def test_non_positive_settlement_rejected_without_audit(self, amount):
        alice = _membership()
        ledger = Ledger(alice)
        with pytest.raises(ValidationError) as exc_info:
            ledger.settle(alice, B2M, amount)
        assert exc_info.value.code == ReasonCode.INVALID_AMOUNT
        assert exc_info.value.field == "amount"
        assert ledger.audit_store.entry_count == 0
        assert ledger.repo.settlement_count == 0


class TestCalculateMemberBalance:
    def test_components(self):
        alice = _membership()
        ledger = Ledger(alice)
        ledger.expense("40.10", alice)
        ledger.expense("9.90", alice)
        ledger.income("5", alice)
        ledger.settle(alice, B2M, "10")
        ledger.settle(alice, M2B, "3")

        balance = ledger.engine.calculate_member_balance(BIZ_ID, alice.membership_id)
        assert balance.total_paid_out_of_pocket == Decimal("50.00")
        assert balance.total_received_personally == Decimal("5")
        assert balance.total_settlements_received == Decimal("10")
        assert balance.total_settlements_paid == Decimal("3")
        assert balance.balance == Decimal("38.00")
        assert balance.user_email == "alice@example.com"

    def test_business_attributed_and_deleted_rows_ignored(self):
        alice = _membership()
        ledger = Ledger(alice)
        ledger.expense("500")
        deleted = ledger.expense("70", alice)
        ledger.repo.soft_delete_transaction(deleted.transaction_id)
        ledger.expense("30", alice)
        assert ledger.balance(alice) == Decimal("30")

    def test_other_business_not_found(self):
        stranger = _membership(business_id=OTHER_BIZ_ID)
        ledger = Ledger(stranger)
        assert ledger.engine.calculate_member_balance(BIZ_ID, stranger.membership_id) is None
        assert ledger.engine.calculate_member_balance(BIZ_ID, uuid.uuid4()) is None

    def test_exact_decimal_arithmetic(self):
        alice = _membership()
        ledger = Ledger(alice)
        ledger.expense("0.1", alice)
        ledger.expense("0.2", alice)
        assert ledger.balance(alice) == Decimal("0.3")

    def test_to_dict_renders_strings(self):
        alice = _membership(BusinessRole.ADMIN)
        ledger = Ledger(alice)
        ledger.expense("12.50", alice)
        data = ledger.engine.calculate_member_balance(BIZ_ID, alice.membership_id).to_dict()
        assert data["balance"] == "12.50"
        assert data["role"] == "ADMIN"


class TestSuggestedSettlement:
    @pytest.mark.parametrize("balance", ["0", "0.00", 0])
    def test_zero_is_settled(self, balance):
        assert LedgerEngine.suggested_settlement(balance) is None

    def test_direction_follows_sign(self):
        assert LedgerEngine.suggested_settlement("12.34").direction == B2M
        negative = LedgerEngine.suggested_settlement("-12.34")
        assert negative.direction == M2B
        assert negative.amount == Decimal("12.34")

    def test_float_balance_rejected(self):
        with pytest.raises(ValidationError):
            LedgerEngine.suggested_settlement(1.5)

    def test_member_balance_suggestion(self):
        alice = _membership()
        ledger = Ledger(alice)
        ledger.income("7", alice)
        balance = ledger.engine.calculate_member_balance(BIZ_ID, alice.membership_id)
        assert balance.suggested_settlement().amount == Decimal("7")


class TestBusinessLedgerSummary:
    def test_totals(self):
        alice = _membership(user_id="alice")
        bob = _membership(user_id="bob")
        carol = _membership(user_id="carol")
        gone = _membership(user_id="gone", is_active=False)
        ledger = Ledger(alice, bob, carol, gone)
        ledger.expense("100", alice)
        ledger.income("40", bob)
        ledger.expense("999", gone)

        summary = ledger.engine.business_ledger_summary(BIZ_ID)
        assert {b.user_id for b in summary.member_balances} == {"alice", "bob", "carol"}
        assert summary.total_owed_to_members == Decimal("100")
        assert summary.total_owed_by_members == Decimal("40")
        assert summary.net_balance == Decimal("60")

    def test_empty_business(self):
        summary = Ledger().engine.business_ledger_summary(BIZ_ID)
        assert summary.member_balances == ()
        assert summary.net_balance == Decimal("0")


# ── Settlements ──────────────────────────────────────────────

class TestCreateSettlement:
    def test_records_audit_entry(self):
        alice = _membership()
        ledger = Ledger(alice)
        ledger.expense("100", alice)
        result = ledger.settle(alice, B2M, "100")

        entries = ledger.audit.entity_trail(
            BIZ_ID, EntityType.SETTLEMENT, result.settlement.settlement_id
        )
        assert len(entries) == 1
        assert entries[0].action == AuditAction.SETTLEMENT_CREATED
        assert entries[0].metadata["amount"] == "100"
        assert entries[0].metadata["type"] == "BUSINESS_TO_MEMBER"
        assert entries[0].performed_by_id == "owner-1"

    def test_returns_fresh_balance(self):
        alice = _membership()
        ledger = Ledger(alice)
        ledger.expense("100", alice)
        result = ledger.settle(alice, B2M, "60")
        assert result.new_balance.balance == Decimal("40")
        assert result.settlement.created_at == NOW

    def test_applied_exactly_once(self):
        alice = _membership()
        ledger = Ledger(alice)
        before = ledger.balance(alice)
        ledger.settle(alice, M2B, "25")
        assert ledger.balance(alice) - before == Decimal("25")
        assert ledger.repo.settlement_count == 1

    def test_unknown_member(self):
        ledger = Ledger()
        with pytest.raises(NotFoundError) as exc_info:
            ledger.engine.create_settlement(
                BIZ_ID, uuid.uuid4(), B2M, "10", None, TODAY, "owner-1"
            )
        assert exc_info.value.code == ReasonCode.MEMBER_NOT_FOUND
        assert ledger.audit_store.entry_count == 0

    def test_member_of_other_business(self):
        stranger = _membership(business_id=OTHER_BIZ_ID)
        ledger = Ledger(stranger)
        with pytest.raises(NotFoundError):
            ledger.settle(stranger, B2M, "10")

    def test_float_amount_rejected(self):
        alice = _membership()
        ledger = Ledger(alice)
        with pytest.raises(ValidationError) as exc_info:
            ledger.settle(alice, B2M, 10.5)
        assert exc_info.value.code == ReasonCode.INVALID_AMOUNT

    def test_sub_cent_amount_rejected_before_write(self):
        alice = _membership()
        ledger = Ledger(alice)
        ledger.expense("100", alice)
        with pytest.raises(ValidationError) as exc_info:
            ledger.settle(alice, B2M, Decimal("0.004"))
        assert exc_info.value.code == ReasonCode.INVALID_AMOUNT
        assert exc_info.value.field == "amount"
        assert ledger.repo.settlement_count == 0
        assert ledger.audit_store.entry_count == 0
        assert ledger.balance(alice) == Decimal("100")

    def test_places_follow_settings(self):
        alice = _membership()
        ledger = Ledger(alice, settings=LedgerSettings(money_places=0))
        with pytest.raises(ValidationError, match="decimal places"):
            ledger.settle(alice, B2M, "10.50")
        assert ledger.settle(alice, B2M, "10.00").settlement.amount == Decimal("10")

    def test_direction_string_accepted(self):
        alice = _membership()
        ledger = Ledger(alice)
        result = ledger.settle(alice, "MEMBER_TO_BUSINESS", "5")
        assert result.settlement.direction == M2B

    def test_unknown_direction_rejected(self):
        alice = _membership()
        ledger = Ledger(alice)
        with pytest.raises(ValidationError, match="direction"):
            ledger.settle(alice, "SIDEWAYS", "5")

    def test_note_is_stripped(self):
        alice = _membership()
        ledger = Ledger(alice)
        result = ledger.engine.create_settlement(
            BIZ_ID, alice.membership_id, B2M, "5", "   ", TODAY, "owner-1"
        )
        assert result.settlement.note is None

    def test_settlement_is_frozen(self):
        alice = _membership()
        ledger = Ledger(alice)
        result = ledger.settle(alice, B2M, "5")
        with pytest.raises(AttributeError):
            result.settlement.amount = Decimal("1")


class TestSettlementAtomicity:
    def test_audit_failure_rolls_back_settlement(self):
        class FailingStore(InMemoryAuditStore):
            def append(self, entry):
                raise RuntimeError("audit store down")

        alice = _membership()
        ledger = Ledger(alice, audit_store=FailingStore())
        ledger.expense("100", alice)

        with pytest.raises(RuntimeError, match="audit store down"):
            ledger.settle(alice, B2M, "100")

        assert ledger.repo.settlement_count == 0
        assert ledger.balance(alice) == Decimal("100")

    def test_audit_failure_is_logged(self, caplog):
        class FailingStore(InMemoryAuditStore):
            def append(self, entry):
                raise RuntimeError("audit store down")

        alice = _membership()
        ledger = Ledger(alice, audit_store=FailingStore())
        with caplog.at_level("ERROR", logger="sharedbooks.ledger"):
            with pytest.raises(RuntimeError):
                ledger.settle(alice, B2M, "1")
        assert "rolling back" in caplog.text


class TestOptimisticCheck:
    def test_matching_expected_balance(self):
        alice = _membership()
        ledger = Ledger(alice)
        ledger.expense("100", alice)
        result = ledger.settle(alice, B2M, "100", expected_balance="100")
        assert result.new_balance.balance == Decimal("0")

    def test_stale_expected_balance_refused(self):
        alice = _membership()
        ledger = Ledger(alice)
        ledger.expense("100", alice)
        ledger.settle(alice, B2M, "100")

        with pytest.raises(ConflictError) as exc_info:
            ledger.settle(alice, B2M, "100", expected_balance="100")
        assert exc_info.value.code == ReasonCode.BALANCE_CHANGED
        assert ledger.repo.settlement_count == 1
        assert ledger.audit_store.entry_count == 1


class TestSettleBalance:
    def test_zeroes_positive_balance(self):
        alice = _membership()
        ledger = Ledger(alice)
        ledger.expense("80", alice)
        result = ledger.engine.settle_balance(BIZ_ID, alice.membership_id, TODAY, "owner-1")
        assert result.settlement.direction == B2M
        assert result.settlement.amount == Decimal("80")
        assert result.new_balance.balance == Decimal("0")

    def test_zeroes_negative_balance(self):
        alice = _membership()
        ledger = Ledger(alice)
        ledger.income("15", alice)
        result = ledger.engine.settle_balance(BIZ_ID, alice.membership_id, TODAY, "owner-1")
        assert result.settlement.direction == M2B
        assert ledger.balance(alice) == Decimal("0")

    def test_already_settled_returns_none(self):
        alice = _membership()
        ledger = Ledger(alice)
        assert ledger.engine.settle_balance(BIZ_ID, alice.membership_id, TODAY, "owner-1") is None
        assert ledger.audit_store.entry_count == 0

    def test_concurrent_callers_settle_once(self):
        alice = _membership()
        ledger = Ledger(alice)
        ledger.expense("100", alice)
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(
                ledger.engine.settle_balance(BIZ_ID, alice.membership_id, TODAY, "owner-1")
            )

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len([r for r in results if r is not None]) == 1
        assert ledger.repo.settlement_count == 1
        assert ledger.balance(alice) == Decimal("0")


class TestRecordSettlement:
    def test_owner_may_record(self):
        owner = _membership(BusinessRole.OWNER, user_id="owner")
        alice = _membership()
        ledger = Ledger(owner, alice)
        ledger.expense("10", alice)
        result = ledger.engine.record_settlement(
            owner, alice.membership_id, B2M, "10", TODAY, note="cash"
        )
        assert result.settlement.created_by_id == "owner"
        assert result.settlement.note == "cash"

    def test_accountant_denied_before_any_write(self):
        accountant = _membership(BusinessRole.ACCOUNTANT, user_id="acc")
        alice = _membership()
        ledger = Ledger(accountant, alice)
        with pytest.raises(AuthorizationError) as exc_info:
            ledger.engine.record_settlement(accountant, alice.membership_id, B2M, "10", TODAY)
        assert exc_info.value.capability == "can_create_settlement"
        assert ledger.repo.settlement_count == 0
        assert ledger.audit_store.entry_count == 0

    def test_override_grants_capability(self):
        employee = _membership(
            BusinessRole.EMPLOYEE,
            user_id="emp",
            permission_overrides={"can_create_settlement": True},
        )
        alice = _membership()
        ledger = Ledger(employee, alice)
        result = ledger.engine.record_settlement(employee, alice.membership_id, M2B, "1", TODAY)
        assert result.settlement.amount == Decimal("1")


# ── History ──────────────────────────────────────────────────

class TestBalanceHistory:
    def test_filtered_to_member_and_newest_first(self):
        alice = _membership(user_id="alice")
        bob = _membership(user_id="bob")
        ledger = Ledger(alice, bob)
        ledger.expense("1", alice, day=date(2025, 1, 1))
        ledger.expense("2", alice, day=date(2025, 3, 1))
        ledger.expense("3", bob, day=date(2025, 2, 1))
        ledger.income("4", alice, day=date(2025, 2, 1))
        deleted = ledger.income("5", alice, day=date(2025, 2, 2))
        ledger.repo.soft_delete_transaction(deleted.transaction_id)
        ledger.settle(alice, B2M, "1")

        history = ledger.engine.balance_history(BIZ_ID, alice.membership_id)
        assert [t.amount for t in history.expenses] == [Decimal("2"), Decimal("1")]
        assert [t.amount for t in history.incomes] == [Decimal("4")]
        assert len(history.settlements) == 1

    def test_date_window_inclusive(self):
        alice = _membership()
        ledger = Ledger(alice)
        for month in (1, 2, 3, 4):
            ledger.expense("1", alice, day=date(2025, month, 1))
        history = ledger.engine.balance_history(
            BIZ_ID,
            alice.membership_id,
            start_date=date(2025, 2, 1),
            end_date=date(2025, 3, 1),
        )
        assert [t.transaction_date.month for t in history.expenses] == [3, 2]

    def test_limit(self):
        alice = _membership()
        ledger = Ledger(alice, settings=LedgerSettings(history_limit=2))
        for day in range(1, 6):
            ledger.expense("1", alice, day=date(2025, 1, day))
        assert len(ledger.engine.balance_history(BIZ_ID, alice.membership_id).expenses) == 2
        assert len(ledger.engine.balance_history(BIZ_ID, alice.membership_id, limit=4).expenses) == 4

    @pytest.mark.parametrize("limit", [0, -5, True])
    def test_bad_limit(self, limit):
        alice = _membership()
        ledger = Ledger(alice)
        with pytest.raises(ValidationError, match="limit"):
            ledger.engine.balance_history(BIZ_ID, alice.membership_id, limit=limit)

    def test_inverted_window(self):
        alice = _membership()
        ledger = Ledger(alice)
        with pytest.raises(ValidationError):
            ledger.engine.balance_history(
                BIZ_ID, alice.membership_id,
                start_date=date(2025, 3, 1), end_date=date(2025, 1, 1),
            )

    def test_unknown_member(self):
        with pytest.raises(NotFoundError):
            Ledger().engine.balance_history(BIZ_ID, uuid.uuid4())
