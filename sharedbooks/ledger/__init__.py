"""
SharedBooks Ledger - Public API
===============================
"""

from sharedbooks.ledger.engine import LedgerEngine
from sharedbooks.ledger.locks import MemberLockRegistry
from sharedbooks.ledger.models import (
    BalanceHistory,
    Category,
    DateRange,
    GroupTotal,
    LedgerSummary,
    MemberBalance,
    MemberTotals,
    Settlement,
    SettlementDirection,
    SettlementResult,
    SuggestedSettlement,
    Transaction,
    TransactionAggregate,
    TransactionKind,
    suggested_settlement,
)
from sharedbooks.ledger.repository import InMemoryLedgerRepository, LedgerRepository

__all__ = [
    "BalanceHistory",
    "Category",
    "DateRange",
    "GroupTotal",
    "InMemoryLedgerRepository",
    "LedgerEngine",
    "LedgerRepository",
    "LedgerSummary",
    "MemberBalance",
    "MemberLockRegistry",
    "MemberTotals",
    "Settlement",
    "SettlementDirection",
    "SettlementResult",
    "SuggestedSettlement",
    "Transaction",
    "TransactionAggregate",
    "TransactionKind",
    "suggested_settlement",
]
