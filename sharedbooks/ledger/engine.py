"""
SharedBooks Ledger - Balance & Settlement Engine
================================================
Computes per-member balances from the full transaction and settlement
history, summarizes them business-wide, and records settlements.

Rules:
- Balances are derived on every read from source aggregates. Nothing is
  cached or incrementally maintained.
- The four aggregate reads behind one balance run in a single snapshot.
- A settlement and its SETTLEMENT_CREATED audit entry commit together.
  If the audit write fails the settlement is rolled back and the storage
  error propagates.
- Settlement writes are serialized per member. ``expected_balance``
  adds an optimistic check on top: the balance is re-read under the
  member lock and a mismatch is refused before any write.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sharedbooks.audit.functions import audit_settlement_created
from sharedbooks.audit.trail import AuditTrail
from sharedbooks.errors import (
    ConflictError,
    NotFoundError,
    ReasonCode,
    ValidationError,
)
from sharedbooks.ledger.models import (
    BalanceHistory,
    DateRange,
    LedgerSummary,
    MemberBalance,
    MemberTotals,
    Settlement,
    SettlementDirection,
    SettlementResult,
    SuggestedSettlement,
    TransactionKind,
    suggested_settlement,
)
from sharedbooks.ledger.repository import LedgerRepository
from sharedbooks.members.provider import MembershipProvider
from sharedbooks.money import ZERO, MoneyInput, check_places, money_str, to_decimal
from sharedbooks.permissions.constants import CAN_CREATE_SETTLEMENT
from sharedbooks.permissions.evaluator import PermissionEvaluator
from sharedbooks.settings import LedgerSettings, load_settings
from sharedbooks.time.clock import Clock, SystemClock

if TYPE_CHECKING:
    from sharedbooks.members.models import Membership

logger = logging.getLogger("sharedbooks.ledger")


def _coerce_direction(direction) -> SettlementDirection:
    if isinstance(direction, SettlementDirection):
        return direction
    try:
        return SettlementDirection(direction)
    except ValueError:
        raise ValidationError(
            f"Unknown settlement direction: {direction!r}.",
            field="direction",
        ) from None


def _coerce_amount(amount: MoneyInput, *, field_name: str = "amount") -> Decimal:
    try:
        return to_decimal(amount, field_name=field_name)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            str(exc), field=field_name, code=ReasonCode.INVALID_AMOUNT
        ) from exc


class LedgerEngine:
    def __init__(
        self,
        repository: LedgerRepository,
        memberships: MembershipProvider,
        audit: AuditTrail,
        *,
        settings: LedgerSettings | None = None,
        clock: Clock | None = None,
    ):
        self._repository = repository
        self._memberships = memberships
        self._audit = audit
        self._settings = settings or load_settings()
        self._clock = clock or SystemClock()

    # ══════════════════════════════════════════════════════════
    # BALANCES
    # ══════════════════════════════════════════════════════════

    def _member_totals(
        self,
        business_id: uuid.UUID,
        membership_id: uuid.UUID,
    ) -> MemberTotals:
        repo = self._repository
        return MemberTotals(
            paid_out_of_pocket=repo.aggregate_transactions(
                business_id, TransactionKind.EXPENSE, member_id=membership_id
            ).total,
            received_personally=repo.aggregate_transactions(
                business_id, TransactionKind.INCOME, member_id=membership_id
            ).total,
            settlements_received=repo.sum_settlements(
                business_id, membership_id, SettlementDirection.BUSINESS_TO_MEMBER
            ),
            settlements_paid=repo.sum_settlements(
                business_id, membership_id, SettlementDirection.MEMBER_TO_BUSINESS
            ),
        )

    def _member_balance(self, membership: "Membership") -> MemberBalance:
        totals = self._member_totals(membership.business_id, membership.membership_id)
        return MemberBalance(
            member_id=membership.membership_id,
            user_id=membership.user_id,
            user_name=membership.user_name,
            user_email=membership.user_email,
            role=membership.role,
            totals=totals,
        )

    def _require_membership(
        self,
        business_id: uuid.UUID,
        membership_id: uuid.UUID,
    ) -> "Membership":
        membership = self._memberships.get_membership(business_id, membership_id)
        if membership is None:
            raise NotFoundError(
                f"Membership {membership_id} not found in business {business_id}.",
                field="member_id",
            )
        return membership

    def calculate_member_balance(
        self,
        business_id: uuid.UUID,
        membership_id: uuid.UUID,
    ) -> Optional[MemberBalance]:
        """Current balance, or None when the membership is not in this business."""
        with self._repository.snapshot():
            membership = self._memberships.get_membership(business_id, membership_id)
            if membership is None:
                return None
            balance = self._member_balance(membership)
        logger.debug(
            f"Balance for member {membership_id} in business {business_id}: "
            f"{money_str(balance.balance)}"
        )
        return balance

    def business_ledger_summary(self, business_id: uuid.UUID) -> LedgerSummary:
        with self._repository.snapshot():
            balances = tuple(
                self._member_balance(m)
                for m in self._memberships.list_active_memberships(business_id)
            )

        owed_to_members = sum(
            (b.balance for b in balances if b.balance > ZERO), ZERO
        )
        owed_by_members = sum(
            (-b.balance for b in balances if b.balance < ZERO), ZERO
        )
        summary = LedgerSummary(
            business_id=business_id,
            member_balances=balances,
            total_owed_to_members=owed_to_members,
            total_owed_by_members=owed_by_members,
        )
        logger.debug(
            f"Ledger summary for business {business_id}: {len(balances)} members, "
            f"net {money_str(summary.net_balance)}"
        )
        return summary

    @staticmethod
    def suggested_settlement(balance: MoneyInput) -> Optional[SuggestedSettlement]:
        return suggested_settlement(_coerce_amount(balance, field_name="balance"))

    # ══════════════════════════════════════════════════════════
    # SETTLEMENTS
    # ══════════════════════════════════════════════════════════

    def create_settlement(
        self,
        business_id: uuid.UUID,
        member_id: uuid.UUID,
        direction: SettlementDirection,
        amount: MoneyInput,
        note: Optional[str],
        settlement_date: date,
        created_by_id: str,
        *,
        expected_balance: Optional[MoneyInput] = None,
    ) -> SettlementResult:
        direction = _coerce_direction(direction)
        amount = _coerce_amount(amount)
        if amount <= ZERO:
            raise ValidationError(
                "Settlement amount must be positive.",
                field="amount",
                code=ReasonCode.INVALID_AMOUNT,
            )
        try:
            check_places(amount, self._settings.money_places)
        except ValueError as exc:
            raise ValidationError(
                str(exc), field="amount", code=ReasonCode.INVALID_AMOUNT
            ) from exc
        if not created_by_id or not isinstance(created_by_id, str):
            raise ValidationError(
                "created_by_id must be a non-empty string.",
                field="created_by_id",
            )
        if not isinstance(settlement_date, date):
            raise ValidationError(
                "settlement_date must be a date.",
                field="settlement_date",
            )
        if expected_balance is not None:
            expected_balance = _coerce_amount(
                expected_balance, field_name="expected_balance"
            )
        note = (note or "").strip() or None

        repo = self._repository
        with repo.atomic(), repo.lock_member(business_id, member_id):
            membership = self._require_membership(business_id, member_id)

            if expected_balance is not None:
                with repo.snapshot():
                    current = self._member_totals(business_id, member_id).balance
                if current != expected_balance:
                    logger.info(
                        f"Settlement refused for member {member_id} in business "
                        f"{business_id}: balance is {money_str(current)}, "
                        f"caller expected {money_str(expected_balance)}"
                    )
                    raise ConflictError(
                        f"Balance changed: expected {money_str(expected_balance)}, "
                        f"found {money_str(current)}."
                    )

            settlement = repo.add_settlement(
                Settlement(
                    settlement_id=uuid.uuid4(),
                    business_id=business_id,
                    member_id=member_id,
                    direction=direction,
                    amount=amount,
                    settlement_date=settlement_date,
                    created_by_id=created_by_id,
                    note=note,
                    created_at=self._clock.now_utc(),
                )
            )

            try:
                audit_settlement_created(
                    self._audit,
                    business_id,
                    settlement.settlement_id,
                    created_by_id,
                    amount=money_str(settlement.amount),
                    direction=direction.value,
                    member_id=member_id,
                )
            except Exception:
                logger.error(
                    f"Audit write failed for settlement {settlement.settlement_id}; "
                    f"rolling back",
                    exc_info=True,
                )
                raise

            with repo.snapshot():
                new_balance = self._member_balance(membership)

        logger.info(
            f"Settlement {settlement.settlement_id} {direction.value} "
            f"{money_str(amount)} for member {member_id} in business "
            f"{business_id} by {created_by_id}"
        )
        return SettlementResult(settlement=settlement, new_balance=new_balance)

    def settle_balance(
        self,
        business_id: uuid.UUID,
        membership_id: uuid.UUID,
        settlement_date: date,
        created_by_id: str,
        note: Optional[str] = None,
    ) -> Optional[SettlementResult]:
        """
        Record the settlement that zeroes the member's current balance.

        The suggestion is computed and recorded under the member lock, so
        two concurrent callers cannot both settle the same balance. Returns
        None when the balance is already zero.
        """
        repo = self._repository
        with repo.atomic(), repo.lock_member(business_id, membership_id):
            self._require_membership(business_id, membership_id)
            with repo.snapshot():
                balance = self._member_totals(business_id, membership_id).balance
            suggestion = suggested_settlement(balance)
            if suggestion is None:
                logger.debug(
                    f"Member {membership_id} in business {business_id} already settled"
                )
                return None
            return self.create_settlement(
                business_id,
                membership_id,
                suggestion.direction,
                suggestion.amount,
                note,
                settlement_date,
                created_by_id,
                expected_balance=balance,
            )

    def record_settlement(
        self,
        actor: "Membership",
        member_id: uuid.UUID,
        direction: SettlementDirection,
        amount: MoneyInput,
        settlement_date: date,
        *,
        note: Optional[str] = None,
        expected_balance: Optional[MoneyInput] = None,
    ) -> SettlementResult:
        PermissionEvaluator.require(
            actor, CAN_CREATE_SETTLEMENT, business_id=actor.business_id
        )
        return self.create_settlement(
            actor.business_id,
            member_id,
            direction,
            amount,
            note,
            settlement_date,
            actor.user_id,
            expected_balance=expected_balance,
        )

    # ══════════════════════════════════════════════════════════
    # HISTORY
    # ══════════════════════════════════════════════════════════

    def balance_history(
        self,
        business_id: uuid.UUID,
        membership_id: uuid.UUID,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> BalanceHistory:
        if limit is None:
            limit = self._settings.history_limit
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValidationError("limit must be a positive integer.", field="limit")
        try:
            window = DateRange(start=start_date, end=end_date)
        except ValueError as exc:
            raise ValidationError(str(exc), field="start_date") from exc

        repo = self._repository
        with repo.snapshot():
            self._require_membership(business_id, membership_id)
            expenses = repo.list_transactions(
                business_id,
                TransactionKind.EXPENSE,
                member_id=membership_id,
                date_range=window,
                limit=limit,
            )
            incomes = repo.list_transactions(
                business_id,
                TransactionKind.INCOME,
                member_id=membership_id,
                date_range=window,
                limit=limit,
            )
            settlements = repo.list_settlements(
                business_id,
                membership_id,
                date_range=window,
                limit=limit,
            )
        return BalanceHistory(
            expenses=expenses,
            incomes=incomes,
            settlements=settlements,
        )
