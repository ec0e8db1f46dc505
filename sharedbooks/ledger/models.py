"""
SharedBooks Ledger - Value Objects
==================================
Transactions, settlements and the derived member balance.

Sign convention (single source of truth):

    balance = paid_out_of_pocket
            - received_personally
            - settlements_received   (business -> member)
            + settlements_paid       (member -> business)

Positive: the business owes the member. Negative: the member owes the
business. Balances are derived on every read, never stored.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from sharedbooks.money import ZERO, check_places, money_str, to_decimal
from sharedbooks.permissions.roles import BusinessRole


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class SettlementDirection(Enum):
    BUSINESS_TO_MEMBER = "BUSINESS_TO_MEMBER"
    MEMBER_TO_BUSINESS = "MEMBER_TO_BUSINESS"


class TransactionKind(Enum):
    EXPENSE = "EXPENSE"
    INCOME = "INCOME"


def _as_date(value: date, *, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if not isinstance(value, date):
        raise ValueError(f"{field_name} must be a date.")
    return value


# ══════════════════════════════════════════════════════════════
# DATE RANGE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DateRange:
    """Inclusive date window; either bound may be open."""

    start: Optional[date] = None
    end: Optional[date] = None

    def __post_init__(self) -> None:
        if self.start is not None:
            object.__setattr__(self, "start", _as_date(self.start, field_name="start"))
        if self.end is not None:
            object.__setattr__(self, "end", _as_date(self.end, field_name="end"))
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError("start must not be after end.")

    def contains(self, day: date) -> bool:
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False
        return True


# ══════════════════════════════════════════════════════════════
# SOURCE RECORDS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Category:
    category_id: str
    business_id: uuid.UUID
    name: str
    kind: TransactionKind
    color: Optional[str] = None


@dataclass(frozen=True)
class Transaction:
    """
    An expense or an income.

    ``member_id`` None means paid/received by the business itself;
    otherwise the member who paid out of pocket or received personally.
    """

    transaction_id: uuid.UUID
    business_id: uuid.UUID
    kind: TransactionKind
    amount: Decimal
    transaction_date: date
    member_id: Optional[uuid.UUID] = None
    category_id: Optional[str] = None
    description: str = ""
    is_deleted: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.kind, TransactionKind):
            raise ValueError(f"kind must be a TransactionKind, got {self.kind!r}.")
        amount = to_decimal(self.amount)
        if amount < ZERO:
            raise ValueError("Transaction amount is a magnitude and must be >= 0.")
        check_places(amount)
        object.__setattr__(self, "amount", amount)
        object.__setattr__(
            self,
            "transaction_date",
            _as_date(self.transaction_date, field_name="transaction_date"),
        )


@dataclass(frozen=True)
class Settlement:
    """
    Money moved between the business and a member to offset a balance.

    Immutable once created. Mistakes are offset by a new settlement,
    never edited.
    """

    settlement_id: uuid.UUID
    business_id: uuid.UUID
    member_id: uuid.UUID
    direction: SettlementDirection
    amount: Decimal
    settlement_date: date
    created_by_id: str
    note: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not isinstance(self.direction, SettlementDirection):
            raise ValueError(
                f"direction must be a SettlementDirection, got {self.direction!r}."
            )
        amount = to_decimal(self.amount)
        if amount <= ZERO:
            raise ValueError("Settlement amount must be positive.")
        check_places(amount)
        object.__setattr__(self, "amount", amount)
        object.__setattr__(
            self,
            "settlement_date",
            _as_date(self.settlement_date, field_name="settlement_date"),
        )
        if not self.created_by_id or not isinstance(self.created_by_id, str):
            raise ValueError("created_by_id must be a non-empty string.")

    def to_dict(self) -> dict[str, Any]:
        return {
            "settlement_id": str(self.settlement_id),
            "business_id": str(self.business_id),
            "member_id": str(self.member_id),
            "direction": self.direction.value,
            "amount": money_str(self.amount),
            "settlement_date": self.settlement_date.isoformat(),
            "created_by_id": self.created_by_id,
            "note": self.note,
        }


# ══════════════════════════════════════════════════════════════
# AGGREGATES
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TransactionAggregate:
    total: Decimal = ZERO
    count: int = 0


@dataclass(frozen=True)
class GroupTotal:
    """One grouped sum. ``key`` is a category id or a member id."""

    key: Any
    total: Decimal
    count: int


@dataclass(frozen=True)
class MemberTotals:
    paid_out_of_pocket: Decimal = ZERO
    received_personally: Decimal = ZERO
    settlements_received: Decimal = ZERO
    settlements_paid: Decimal = ZERO

    @property
    def balance(self) -> Decimal:
        return (
            self.paid_out_of_pocket
            - self.received_personally
            - self.settlements_received
            + self.settlements_paid
        )


# ══════════════════════════════════════════════════════════════
# BALANCES
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SuggestedSettlement:
    direction: SettlementDirection
    amount: Decimal


def suggested_settlement(balance: Decimal) -> Optional[SuggestedSettlement]:
    """Advisory only: the settlement that would bring ``balance`` to zero."""
    if balance == ZERO:
        return None
    if balance > ZERO:
        return SuggestedSettlement(SettlementDirection.BUSINESS_TO_MEMBER, balance)
    return SuggestedSettlement(SettlementDirection.MEMBER_TO_BUSINESS, -balance)


@dataclass(frozen=True)
class MemberBalance:
    member_id: uuid.UUID
    user_id: str
    user_name: str
    user_email: str
    role: BusinessRole
    totals: MemberTotals

    @property
    def balance(self) -> Decimal:
        return self.totals.balance

    @property
    def total_paid_out_of_pocket(self) -> Decimal:
        return self.totals.paid_out_of_pocket

    @property
    def total_received_personally(self) -> Decimal:
        return self.totals.received_personally

    @property
    def total_settlements_received(self) -> Decimal:
        return self.totals.settlements_received

    @property
    def total_settlements_paid(self) -> Decimal:
        return self.totals.settlements_paid

    def suggested_settlement(self) -> Optional[SuggestedSettlement]:
        return suggested_settlement(self.balance)

    def to_dict(self) -> dict[str, Any]:
        return {
            "member_id": str(self.member_id),
            "user_id": self.user_id,
            "user_name": self.user_name,
            "user_email": self.user_email,
            "role": self.role.value,
            "balance": money_str(self.balance),
            "total_paid_out_of_pocket": money_str(self.total_paid_out_of_pocket),
            "total_received_personally": money_str(self.total_received_personally),
            "total_settlements_received": money_str(self.total_settlements_received),
            "total_settlements_paid": money_str(self.total_settlements_paid),
        }


@dataclass(frozen=True)
class LedgerSummary:
    business_id: uuid.UUID
    member_balances: tuple[MemberBalance, ...]
    total_owed_to_members: Decimal
    total_owed_by_members: Decimal

    @property
    def net_balance(self) -> Decimal:
        return self.total_owed_to_members - self.total_owed_by_members


@dataclass(frozen=True)
class SettlementResult:
    settlement: Settlement
    new_balance: MemberBalance


@dataclass(frozen=True)
class BalanceHistory:
    expenses: tuple[Transaction, ...]
    incomes: tuple[Transaction, ...]
    settlements: tuple[Settlement, ...]
