"""
SharedBooks Permissions - Public API
====================================
"""

from sharedbooks.permissions.constants import CAPABILITIES, VALID_CAPABILITIES
from sharedbooks.permissions.evaluator import PermissionEvaluator
from sharedbooks.permissions.matrix import ROLE_PERMISSIONS, validate_matrix
from sharedbooks.permissions.resolver import (
    PermissionOverrides,
    assignable_roles,
    can_assign_role,
    effective_permissions,
    has_permission,
)
from sharedbooks.permissions.roles import ROLE_RANK, BusinessRole


__all__ = [
    "CAPABILITIES",
    "VALID_CAPABILITIES",
    "ROLE_PERMISSIONS",
    "ROLE_RANK",
    "BusinessRole",
    "PermissionOverrides",
    "PermissionEvaluator",
    "assignable_roles",
    "can_assign_role",
    "effective_permissions",
    "has_permission",
    "validate_matrix",
]
