"""
SharedBooks Permissions - Deterministic Resolver
================================================
Pure functions over the role matrix. No storage, no domain errors.

Overrides are key-scoped: only capabilities explicitly present in the
override map (with a non-None value) replace the role default. Role
assignment is governed by rank alone and is NOT overridable.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from sharedbooks.permissions.constants import VALID_CAPABILITIES
from sharedbooks.permissions.matrix import ROLE_PERMISSIONS
from sharedbooks.permissions.roles import ROLE_RANK, BusinessRole

logger = logging.getLogger("sharedbooks.permissions")

PermissionOverrides = Mapping[str, Optional[bool]]


def effective_permissions(
    role: BusinessRole,
    overrides: Optional[PermissionOverrides] = None,
) -> dict[str, bool]:
    """Role default row with explicitly present overrides applied."""
    permissions = dict(ROLE_PERMISSIONS[role])

    for key, value in (overrides or {}).items():
        if value is None:
            continue
        if key not in VALID_CAPABILITIES:
            logger.debug(f"Ignoring unknown capability override '{key}'")
            continue
        permissions[key] = bool(value)

    return permissions


def has_permission(
    role: BusinessRole,
    overrides: Optional[PermissionOverrides],
    capability: str,
) -> bool:
    return effective_permissions(role, overrides)[capability]


def can_assign_role(assigner_role: BusinessRole, target_role: BusinessRole) -> bool:
    """
    Privilege-escalation guard.

    OWNER may assign any role, OWNER included. Everyone else may only
    assign roles ranked strictly below their own.
    """
    if assigner_role is BusinessRole.OWNER:
        return True
    return ROLE_RANK[assigner_role] > ROLE_RANK[target_role]


def assignable_roles(assigner_role: BusinessRole) -> frozenset[BusinessRole]:
    return frozenset(
        role for role in BusinessRole if can_assign_role(assigner_role, role)
    )
