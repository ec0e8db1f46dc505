"""
SharedBooks Analytics - Report Shapes
=====================================
Read-only rollups. Every amount is a Decimal; percentages are Decimals
in the 0..100 range and are zero when the grand total is zero.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Optional

from sharedbooks.ledger.models import DateRange, MemberBalance
from sharedbooks.money import ZERO, money_str
from sharedbooks.permissions.roles import BusinessRole

HUNDRED = Decimal("100")


def percentage(part: Decimal, total: Decimal, *, places: int = 2) -> Decimal:
    if total == ZERO:
        return ZERO
    return (part / total * HUNDRED).quantize(
        Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP
    )


class TimeBucket(Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class AttributionType(Enum):
    BUSINESS = "business"
    MEMBER = "member"


@dataclass(frozen=True)
class KPIs:
    total_revenue: Decimal = ZERO
    total_expenses: Decimal = ZERO
    expense_count: int = 0
    income_count: int = 0

    @property
    def net_profit(self) -> Decimal:
        return self.total_revenue - self.total_expenses

    @property
    def transaction_count(self) -> int:
        return self.expense_count + self.income_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_revenue": money_str(self.total_revenue),
            "total_expenses": money_str(self.total_expenses),
            "net_profit": money_str(self.net_profit),
            "transaction_count": self.transaction_count,
            "expense_count": self.expense_count,
            "income_count": self.income_count,
        }


@dataclass(frozen=True)
class CategoryBreakdown:
    category_id: Optional[str]
    category_name: str
    category_color: Optional[str]
    total: Decimal
    count: int
    percentage: Decimal


@dataclass(frozen=True)
class AttributionBreakdown:
    attribution: AttributionType
    total: Decimal
    count: int
    percentage: Decimal
    member_id: Optional[uuid.UUID] = None
    member_name: Optional[str] = None


@dataclass(frozen=True)
class TimeSeriesPoint:
    bucket_start: date
    revenue: Decimal
    expenses: Decimal

    @property
    def net_profit(self) -> Decimal:
        return self.revenue - self.expenses


@dataclass(frozen=True)
class BusinessAnalytics:
    business_id: uuid.UUID
    date_range: DateRange
    kpis: KPIs
    expenses_by_category: tuple[CategoryBreakdown, ...]
    incomes_by_category: tuple[CategoryBreakdown, ...]
    expenses_by_attribution: tuple[AttributionBreakdown, ...]
    incomes_by_attribution: tuple[AttributionBreakdown, ...]
    time_series: tuple[TimeSeriesPoint, ...]
    member_balances: tuple[MemberBalance, ...]


@dataclass(frozen=True)
class OwnAnalytics:
    """One member's own figures: all-time balance plus windowed personal totals."""

    business_id: uuid.UUID
    member_id: uuid.UUID
    date_range: DateRange
    balance: MemberBalance
    paid_out_of_pocket: Decimal = ZERO
    expense_count: int = 0
    received_personally: Decimal = ZERO
    income_count: int = 0


@dataclass(frozen=True)
class BusinessOverview:
    """One row of a user's cross-business view. ``kpis`` only when permitted."""

    business_id: uuid.UUID
    business_name: str
    role: BusinessRole
    can_view_full_analytics: bool
    kpis: Optional[KPIs] = None


@dataclass(frozen=True)
class UserContributions:
    total_paid_out_of_pocket: Decimal = ZERO
    total_received_personally: Decimal = ZERO
    total_owed_by_businesses: Decimal = ZERO
    total_owed_to_businesses: Decimal = ZERO


@dataclass(frozen=True)
class CrossBusinessAnalytics:
    user_id: str
    businesses: tuple[BusinessOverview, ...]
    contributions: UserContributions
