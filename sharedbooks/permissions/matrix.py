"""
SharedBooks Permissions - Role Capability Matrix
================================================
Hand-maintained default capabilities per role. The table is total:
every role defines every capability. ``validate_matrix`` runs at import
so a gap is a startup failure, never a runtime KeyError.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from sharedbooks.permissions.constants import (
    CAPABILITIES,
    CAN_ARCHIVE_BUSINESS,
    CAN_CHANGE_PERMISSIONS,
    CAN_CHANGE_ROLES,
    CAN_CREATE_EXPENSE,
    CAN_CREATE_INCOME,
    CAN_CREATE_SETTLEMENT,
    CAN_DELETE_BUSINESS,
    CAN_DELETE_EXPENSE,
    CAN_DELETE_INCOME,
    CAN_EDIT_ANY_EXPENSE,
    CAN_EDIT_ANY_INCOME,
    CAN_EXPORT_DATA,
    CAN_INVITE_MEMBERS,
    CAN_MANAGE_CATEGORIES,
    CAN_REMOVE_MEMBERS,
    CAN_UPDATE_BUSINESS,
    CAN_VIEW_ALL_EXPENSES,
    CAN_VIEW_ALL_INCOMES,
    CAN_VIEW_AUDIT_LOG,
    CAN_VIEW_FULL_ANALYTICS,
    CAN_VIEW_OWN_ANALYTICS,
    CAN_VIEW_OWN_EXPENSES,
    CAN_VIEW_OWN_INCOMES,
    CAN_VIEW_SALARY_INFO,
    CAN_VIEW_SETTLEMENTS,
)
from sharedbooks.permissions.roles import BusinessRole



# ══════════════════════════════════════════════════════════════
# DEFAULT MATRIX
# ══════════════════════════════════════════════════════════════

ROLE_PERMISSIONS: Mapping[BusinessRole, Mapping[str, bool]] = MappingProxyType({
    BusinessRole.OWNER: MappingProxyType({
        CAN_UPDATE_BUSINESS: True,
        CAN_ARCHIVE_BUSINESS: True,
        CAN_DELETE_BUSINESS: True,
        CAN_INVITE_MEMBERS: True,
        CAN_REMOVE_MEMBERS: True,
        CAN_CHANGE_ROLES: True,
        CAN_CHANGE_PERMISSIONS: True,
        CAN_MANAGE_CATEGORIES: True,
        CAN_CREATE_EXPENSE: True,
        CAN_VIEW_ALL_EXPENSES: True,
        CAN_VIEW_OWN_EXPENSES: True,
        CAN_EDIT_ANY_EXPENSE: True,
        CAN_DELETE_EXPENSE: True,
        CAN_CREATE_INCOME: True,
        CAN_VIEW_ALL_INCOMES: True,
        CAN_VIEW_OWN_INCOMES: True,
        CAN_EDIT_ANY_INCOME: True,
        CAN_DELETE_INCOME: True,
        CAN_CREATE_SETTLEMENT: True,
        CAN_VIEW_SETTLEMENTS: True,
        CAN_VIEW_FULL_ANALYTICS: True,
        CAN_VIEW_OWN_ANALYTICS: True,
        CAN_EXPORT_DATA: True,
        CAN_VIEW_AUDIT_LOG: True,
        CAN_VIEW_SALARY_INFO: True,
    }),
    BusinessRole.CO_OWNER: MappingProxyType({
        CAN_UPDATE_BUSINESS: True,
        CAN_ARCHIVE_BUSINESS: True,
        CAN_DELETE_BUSINESS: False,  # only the owner deletes
        CAN_INVITE_MEMBERS: True,
        CAN_REMOVE_MEMBERS: True,
        CAN_CHANGE_ROLES: True,
        CAN_CHANGE_PERMISSIONS: True,
        CAN_MANAGE_CATEGORIES: True,
        CAN_CREATE_EXPENSE: True,
        CAN_VIEW_ALL_EXPENSES: True,
        CAN_VIEW_OWN_EXPENSES: True,
        CAN_EDIT_ANY_EXPENSE: True,
        CAN_DELETE_EXPENSE: True,
        CAN_CREATE_INCOME: True,
        CAN_VIEW_ALL_INCOMES: True,
        CAN_VIEW_OWN_INCOMES: True,
        CAN_EDIT_ANY_INCOME: True,
        CAN_DELETE_INCOME: True,
        CAN_CREATE_SETTLEMENT: True,
        CAN_VIEW_SETTLEMENTS: True,
        CAN_VIEW_FULL_ANALYTICS: True,
        CAN_VIEW_OWN_ANALYTICS: True,
        CAN_EXPORT_DATA: True,
        CAN_VIEW_AUDIT_LOG: True,
        CAN_VIEW_SALARY_INFO: True,
    }),
    BusinessRole.ADMIN: MappingProxyType({
        CAN_UPDATE_BUSINESS: False,
        CAN_ARCHIVE_BUSINESS: False,
        CAN_DELETE_BUSINESS: False,
        CAN_INVITE_MEMBERS: True,
        CAN_REMOVE_MEMBERS: False,
        CAN_CHANGE_ROLES: False,
        CAN_CHANGE_PERMISSIONS: False,
        CAN_MANAGE_CATEGORIES: True,
        CAN_CREATE_EXPENSE: True,
        CAN_VIEW_ALL_EXPENSES: True,
        CAN_VIEW_OWN_EXPENSES: True,
        CAN_EDIT_ANY_EXPENSE: True,
        CAN_DELETE_EXPENSE: True,
        CAN_CREATE_INCOME: True,
        CAN_VIEW_ALL_INCOMES: True,
        CAN_VIEW_OWN_INCOMES: True,
        CAN_EDIT_ANY_INCOME: True,
        CAN_DELETE_INCOME: True,
        CAN_CREATE_SETTLEMENT: True,
        CAN_VIEW_SETTLEMENTS: True,
        CAN_VIEW_FULL_ANALYTICS: True,
        CAN_VIEW_OWN_ANALYTICS: True,
        CAN_EXPORT_DATA: True,
        CAN_VIEW_AUDIT_LOG: True,
        CAN_VIEW_SALARY_INFO: True,
    }),
    BusinessRole.ACCOUNTANT: MappingProxyType({
        CAN_UPDATE_BUSINESS: False,
        CAN_ARCHIVE_BUSINESS: False,
        CAN_DELETE_BUSINESS: False,
        CAN_INVITE_MEMBERS: False,
        CAN_REMOVE_MEMBERS: False,
        CAN_CHANGE_ROLES: False,
        CAN_CHANGE_PERMISSIONS: False,
        CAN_MANAGE_CATEGORIES: False,
        CAN_CREATE_EXPENSE: False,
        CAN_VIEW_ALL_EXPENSES: True,
        CAN_VIEW_OWN_EXPENSES: True,
        CAN_EDIT_ANY_EXPENSE: False,
        CAN_DELETE_EXPENSE: False,
        CAN_CREATE_INCOME: False,
        CAN_VIEW_ALL_INCOMES: True,
        CAN_VIEW_OWN_INCOMES: True,
        CAN_EDIT_ANY_INCOME: False,
        CAN_DELETE_INCOME: False,
        CAN_CREATE_SETTLEMENT: False,
        CAN_VIEW_SETTLEMENTS: True,
        CAN_VIEW_FULL_ANALYTICS: True,
        CAN_VIEW_OWN_ANALYTICS: True,
        CAN_EXPORT_DATA: True,
        CAN_VIEW_AUDIT_LOG: True,
        CAN_VIEW_SALARY_INFO: True,
    }),
    BusinessRole.EMPLOYEE: MappingProxyType({
        CAN_UPDATE_BUSINESS: False,
        CAN_ARCHIVE_BUSINESS: False,
        CAN_DELETE_BUSINESS: False,
        CAN_INVITE_MEMBERS: False,
        CAN_REMOVE_MEMBERS: False,
        CAN_CHANGE_ROLES: False,
        CAN_CHANGE_PERMISSIONS: False,
        CAN_MANAGE_CATEGORIES: False,
        CAN_CREATE_EXPENSE: False,
        CAN_VIEW_ALL_EXPENSES: False,
        CAN_VIEW_OWN_EXPENSES: True,
        CAN_EDIT_ANY_EXPENSE: False,
        CAN_DELETE_EXPENSE: False,
        CAN_CREATE_INCOME: False,
        CAN_VIEW_ALL_INCOMES: False,
        CAN_VIEW_OWN_INCOMES: True,
        CAN_EDIT_ANY_INCOME: False,
        CAN_DELETE_INCOME: False,
        CAN_CREATE_SETTLEMENT: False,
        CAN_VIEW_SETTLEMENTS: False,
        CAN_VIEW_FULL_ANALYTICS: False,
        CAN_VIEW_OWN_ANALYTICS: True,
        CAN_EXPORT_DATA: False,
        CAN_VIEW_AUDIT_LOG: False,
        CAN_VIEW_SALARY_INFO: True,
    }),
})


def validate_matrix(matrix: Mapping[BusinessRole, Mapping[str, bool]]) -> None:
    """Raise if any role is missing, or any role row is not total over CAPABILITIES."""
    missing_roles = [role.value for role in BusinessRole if role not in matrix]
    if missing_roles:
        raise ValueError(f"Role matrix missing roles: {missing_roles}")

    expected = set(CAPABILITIES)
    for role in BusinessRole:
        row = matrix[role]
        missing = sorted(expected - set(row))
        extra = sorted(set(row) - expected)
        if missing or extra:
            raise ValueError(
                f"Role matrix row {role.value} is not total: "
                f"missing={missing} extra={extra}"
            )
        non_bool = sorted(key for key, value in row.items() if not isinstance(value, bool))
        if non_bool:
            raise ValueError(
                f"Role matrix row {role.value} has non-boolean values: {non_bool}"
            )


validate_matrix(ROLE_PERMISSIONS)
