"""
SharedBooks Analytics - Public API
==================================
"""

from sharedbooks.analytics.aggregator import AnalyticsAggregator
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

__all__ = [
    "AnalyticsAggregator",
    "AttributionBreakdown",
    "AttributionType",
    "BusinessAnalytics",
    "BusinessOverview",
    "CategoryBreakdown",
    "CrossBusinessAnalytics",
    "KPIs",
    "OwnAnalytics",
    "TimeBucket",
    "TimeSeriesPoint",
    "UserContributions",
    "percentage",
]
