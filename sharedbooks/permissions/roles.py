"""
SharedBooks Permissions - Business Roles
========================================
Closed, strictly ranked role set. Rank drives the role-assignment guard.
"""

from __future__ import annotations

from enum import Enum


class BusinessRole(Enum):
    OWNER = "OWNER"
    CO_OWNER = "CO_OWNER"
    ADMIN = "ADMIN"
    ACCOUNTANT = "ACCOUNTANT"
    EMPLOYEE = "EMPLOYEE"

    @property
    def rank(self) -> int:
        return ROLE_RANK[self]

    @property
    def display_name(self) -> str:
        return ROLE_DISPLAY_NAMES[self]


ROLE_RANK: dict[BusinessRole, int] = {
    BusinessRole.OWNER: 5,
    BusinessRole.CO_OWNER: 4,
    BusinessRole.ADMIN: 3,
    BusinessRole.ACCOUNTANT: 2,
    BusinessRole.EMPLOYEE: 1,
}

ROLE_DISPLAY_NAMES: dict[BusinessRole, str] = {
    BusinessRole.OWNER: "Owner",
    BusinessRole.CO_OWNER: "Co-Owner",
    BusinessRole.ADMIN: "Admin",
    BusinessRole.ACCOUNTANT: "Accountant",
    BusinessRole.EMPLOYEE: "Employee",
}
