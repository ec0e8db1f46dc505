"""
SharedBooks Analytics - Aggregator
==================================
Read-only rollups over the transaction store and the ledger summary:
KPIs, category and attribution breakdowns, time series, and a user's
view across every business they belong to. Holds no state and writes
nothing, including audit entries.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sharedbooks.analytics.models import (
    AttributionBreakdown,
    AttributionType,
    BusinessAnalytics,
    BusinessOverview,
    CategoryBreakdown,
    CrossBusinessAnalytics,
    KPIs,
    OwnAnalytics,
    TimeBucket,
    TimeSeriesPoint,
    UserContributions,
    percentage,
)
from sharedbooks.business.provider import BusinessProvider
from sharedbooks.errors import NotFoundError, ReasonCode
from sharedbooks.ledger.engine import LedgerEngine
from sharedbooks.ledger.models import DateRange, TransactionKind
from sharedbooks.ledger.repository import LedgerRepository
from sharedbooks.members.provider import MembershipProvider
from sharedbooks.money import ZERO
from sharedbooks.permissions.constants import (
    CAN_VIEW_FULL_ANALYTICS,
    CAN_VIEW_OWN_ANALYTICS,
)
from sharedbooks.permissions.evaluator import PermissionEvaluator
from sharedbooks.settings import LedgerSettings, load_settings

if TYPE_CHECKING:
    from sharedbooks.members.models import Membership

logger = logging.getLogger("sharedbooks.analytics")

UNKNOWN_NAME = "Unknown"


class AnalyticsAggregator:
    def __init__(
        self,
        repository: LedgerRepository,
        ledger: LedgerEngine,
        memberships: MembershipProvider,
        businesses: BusinessProvider,
        *,
        settings: LedgerSettings | None = None,
    ):
        self._repository = repository
        self._ledger = ledger
        self._memberships = memberships
        self._businesses = businesses
        self._settings = settings or load_settings()

    def _percent(self, part: Decimal, total: Decimal) -> Decimal:
        return percentage(part, total, places=self._settings.money_places)

    # ══════════════════════════════════════════════════════════
    # KPIs
    # ══════════════════════════════════════════════════════════

    def kpis(self, business_id: uuid.UUID, date_range: DateRange) -> KPIs:
        with self._repository.snapshot():
            expenses = self._repository.aggregate_transactions(
                business_id, TransactionKind.EXPENSE, date_range=date_range
            )
            incomes = self._repository.aggregate_transactions(
                business_id, TransactionKind.INCOME, date_range=date_range
            )
        return KPIs(
            total_revenue=incomes.total,
            total_expenses=expenses.total,
            expense_count=expenses.count,
            income_count=incomes.count,
        )

    # ══════════════════════════════════════════════════════════
    # BREAKDOWNS
    # ══════════════════════════════════════════════════════════

    def by_category(
        self,
        business_id: uuid.UUID,
        kind: TransactionKind,
        date_range: DateRange,
    ) -> tuple[CategoryBreakdown, ...]:
        with self._repository.snapshot():
            groups = self._repository.group_by_category(business_id, kind, date_range)
            categories = self._repository.get_categories(
                business_id, [g.key for g in groups if g.key is not None]
            )

        total = sum((g.total for g in groups), ZERO)
        rows = []
        for group in groups:
            category = categories.get(group.key)
            rows.append(
                CategoryBreakdown(
                    category_id=group.key,
                    category_name=category.name if category else UNKNOWN_NAME,
                    category_color=category.color if category else None,
                    total=group.total,
                    count=group.count,
                    percentage=self._percent(group.total, total),
                )
            )
        rows.sort(key=lambda r: r.total, reverse=True)
        return tuple(rows)

    def expenses_by_category(self, business_id, date_range):
        return self.by_category(business_id, TransactionKind.EXPENSE, date_range)

    def incomes_by_category(self, business_id, date_range):
        return self.by_category(business_id, TransactionKind.INCOME, date_range)

    def by_attribution(
        self,
        business_id: uuid.UUID,
        kind: TransactionKind,
        date_range: DateRange,
    ) -> tuple[AttributionBreakdown, ...]:
        """One business row, always present, then one row per attributed member."""
        with self._repository.snapshot():
            business_part = self._repository.aggregate_transactions(
                business_id, kind, business_only=True, date_range=date_range
            )
            member_groups = self._repository.group_by_member(
                business_id, kind, date_range
            )

        total = business_part.total + sum((g.total for g in member_groups), ZERO)
        rows = [
            AttributionBreakdown(
                attribution=AttributionType.BUSINESS,
                total=business_part.total,
                count=business_part.count,
                percentage=self._percent(business_part.total, total),
            )
        ]
        for group in member_groups:
            member = self._memberships.get_membership(business_id, group.key)
            rows.append(
                AttributionBreakdown(
                    attribution=AttributionType.MEMBER,
                    member_id=group.key,
                    member_name=(member.user_name or UNKNOWN_NAME) if member else UNKNOWN_NAME,
                    total=group.total,
                    count=group.count,
                    percentage=self._percent(group.total, total),
                )
            )
        rows.sort(key=lambda r: r.total, reverse=True)
        return tuple(rows)

    def expenses_by_attribution(self, business_id, date_range):
        return self.by_attribution(business_id, TransactionKind.EXPENSE, date_range)

    def incomes_by_attribution(self, business_id, date_range):
        return self.by_attribution(business_id, TransactionKind.INCOME, date_range)

    # ══════════════════════════════════════════════════════════
    # TIME SERIES
    # ══════════════════════════════════════════════════════════

    def bucket_start(self, day: date, bucket: TimeBucket) -> date:
        if bucket == TimeBucket.DAY:
            return day
        if bucket == TimeBucket.WEEK:
            offset = (day.weekday() - self._settings.week_starts_on) % 7
            return day - timedelta(days=offset)
        return day.replace(day=1)

    def time_series(
        self,
        business_id: uuid.UUID,
        date_range: DateRange,
        bucket: TimeBucket = TimeBucket.DAY,
    ) -> tuple[TimeSeriesPoint, ...]:
        with self._repository.snapshot():
            expenses = self._repository.list_transactions(
                business_id, TransactionKind.EXPENSE, date_range=date_range
            )
            incomes = self._repository.list_transactions(
                business_id, TransactionKind.INCOME, date_range=date_range
            )

        revenue: dict[date, Decimal] = defaultdict(lambda: ZERO)
        spent: dict[date, Decimal] = defaultdict(lambda: ZERO)
        for t in expenses:
            spent[self.bucket_start(t.transaction_date, bucket)] += t.amount
        for t in incomes:
            revenue[self.bucket_start(t.transaction_date, bucket)] += t.amount

        return tuple(
            TimeSeriesPoint(bucket_start=key, revenue=revenue[key], expenses=spent[key])
            for key in sorted(set(revenue) | set(spent))
        )

    # ══════════════════════════════════════════════════════════
    # COMPOSED REPORTS
    # ══════════════════════════════════════════════════════════

    def business_analytics(
        self,
        business_id: uuid.UUID,
        date_range: DateRange,
        bucket: TimeBucket = TimeBucket.DAY,
    ) -> BusinessAnalytics:
        if self._businesses.get_business(business_id) is None:
            raise NotFoundError(
                f"Business {business_id} not found.",
                field="business_id",
                code=ReasonCode.BUSINESS_NOT_FOUND,
            )
        analytics = BusinessAnalytics(
            business_id=business_id,
            date_range=date_range,
            kpis=self.kpis(business_id, date_range),
            expenses_by_category=self.expenses_by_category(business_id, date_range),
            incomes_by_category=self.incomes_by_category(business_id, date_range),
            expenses_by_attribution=self.expenses_by_attribution(business_id, date_range),
            incomes_by_attribution=self.incomes_by_attribution(business_id, date_range),
            time_series=self.time_series(business_id, date_range, bucket),
            member_balances=self._ledger.business_ledger_summary(business_id).member_balances,
        )
        logger.debug(f"Built analytics for business {business_id}")
        return analytics

    def business_analytics_as(
        self,
        actor: "Membership",
        date_range: DateRange,
        bucket: TimeBucket = TimeBucket.DAY,
    ) -> BusinessAnalytics:
        PermissionEvaluator.require(
            actor, CAN_VIEW_FULL_ANALYTICS, business_id=actor.business_id
        )
        return self.business_analytics(actor.business_id, date_range, bucket)

    def own_analytics(
        self,
        actor: "Membership",
        date_range: Optional[DateRange] = None,
    ) -> OwnAnalytics:
        """
        The acting member's own view: their all-time balance plus what they
        paid out of pocket and received personally within ``date_range``.
        """
        PermissionEvaluator.require(
            actor, CAN_VIEW_OWN_ANALYTICS, business_id=actor.business_id
        )
        date_range = date_range or DateRange()
        business_id, member_id = actor.business_id, actor.membership_id

        with self._repository.snapshot():
            expenses = self._repository.aggregate_transactions(
                business_id,
                TransactionKind.EXPENSE,
                member_id=member_id,
                date_range=date_range,
            )
            incomes = self._repository.aggregate_transactions(
                business_id,
                TransactionKind.INCOME,
                member_id=member_id,
                date_range=date_range,
            )
        balance = self._ledger.calculate_member_balance(business_id, member_id)
        if balance is None:
            raise NotFoundError(
                f"Membership {member_id} not found in business {business_id}.",
                field="member_id",
            )
        return OwnAnalytics(
            business_id=business_id,
            member_id=member_id,
            date_range=date_range,
            balance=balance,
            paid_out_of_pocket=expenses.total,
            expense_count=expenses.count,
            received_personally=incomes.total,
            income_count=incomes.count,
        )

    def user_cross_business_analytics(
        self,
        user_id: str,
        date_range: Optional[DateRange] = None,
    ) -> CrossBusinessAnalytics:
        """
        A user's view across every active, non-archived membership.

        KPIs are included only where the membership's effective permission
        set grants full analytics. Personal totals honour ``date_range``;
        owed amounts are all-time balances.
        """
        date_range = date_range or DateRange()
        rows = []
        paid = received = owed_by = owed_to = ZERO

        for membership in self._memberships.list_memberships_for_user(user_id):
            if not membership.is_active:
                continue
            business = self._businesses.get_business(membership.business_id)
            if business is None or business.is_archived:
                continue

            can_view = membership.has_permission(CAN_VIEW_FULL_ANALYTICS)
            rows.append(
                BusinessOverview(
                    business_id=business.business_id,
                    business_name=business.name,
                    role=membership.role,
                    can_view_full_analytics=can_view,
                    kpis=self.kpis(business.business_id, date_range) if can_view else None,
                )
            )

            with self._repository.snapshot():
                paid += self._repository.aggregate_transactions(
                    business.business_id,
                    TransactionKind.EXPENSE,
                    member_id=membership.membership_id,
                    date_range=date_range,
                ).total
                received += self._repository.aggregate_transactions(
                    business.business_id,
                    TransactionKind.INCOME,
                    member_id=membership.membership_id,
                    date_range=date_range,
                ).total

            balance = self._ledger.calculate_member_balance(
                business.business_id, membership.membership_id
            )
            if balance is not None:
                if balance.balance > ZERO:
                    owed_by += balance.balance
                elif balance.balance < ZERO:
                    owed_to += -balance.balance

        return CrossBusinessAnalytics(
            user_id=user_id,
            businesses=tuple(rows),
            contributions=UserContributions(
                total_paid_out_of_pocket=paid,
                total_received_personally=received,
                total_owed_by_businesses=owed_by,
                total_owed_to_businesses=owed_to,
            ),
        )
