"""
SharedBooks
===========
Shared-business bookkeeping core: who owes whom between a business and
its members, who may change what, and an append-only record of every
change.

Subpackages:
    permissions  role capability matrix and role-assignment guard
    audit        append-only audit trail
    ledger       member balances and settlements
    analytics    read-only rollups
    members      membership administration
    store        Django persistence adapters
"""

__version__ = "0.1.0"
