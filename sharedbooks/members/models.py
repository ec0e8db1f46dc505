"""
SharedBooks Members - Membership Model
======================================
A person's role-scoped participation in one business. Memberships are
never hard-deleted; removal flips ``is_active``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from types import MappingProxyType
from typing import Mapping, Optional

from sharedbooks.permissions.constants import VALID_CAPABILITIES
from sharedbooks.permissions.resolver import effective_permissions, has_permission
from sharedbooks.permissions.roles import BusinessRole


@dataclass(frozen=True)
class Membership:
    membership_id: uuid.UUID
    business_id: uuid.UUID
    user_id: str
    role: BusinessRole
    permission_overrides: Mapping[str, bool] = field(default_factory=dict)
    is_active: bool = True
    user_name: str = ""
    user_email: str = ""
    joined_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not isinstance(self.membership_id, uuid.UUID):
            raise ValueError("membership_id must be UUID.")
        if not isinstance(self.business_id, uuid.UUID):
            raise ValueError("business_id must be UUID.")
        if not self.user_id or not isinstance(self.user_id, str):
            raise ValueError("user_id must be a non-empty string.")
        if not isinstance(self.role, BusinessRole):
            raise ValueError(
                f"role must be a BusinessRole, got {self.role!r}."
            )

        overrides = {
            key: value
            for key, value in (self.permission_overrides or {}).items()
            if value is not None
        }
        unknown = sorted(key for key in overrides if key not in VALID_CAPABILITIES)
        if unknown:
            raise ValueError(f"Unknown capability overrides: {unknown}")
        non_bool = sorted(key for key, value in overrides.items() if not isinstance(value, bool))
        if non_bool:
            raise ValueError(f"Capability overrides must be booleans: {non_bool}")
        object.__setattr__(self, "permission_overrides", MappingProxyType(overrides))

    def effective_permissions(self) -> dict[str, bool]:
        return effective_permissions(self.role, self.permission_overrides)

    def has_permission(self, capability: str) -> bool:
        return has_permission(self.role, self.permission_overrides, capability)

    def with_role(self, role: BusinessRole) -> "Membership":
        return replace(self, role=role)

    def with_overrides(self, overrides: Mapping[str, bool]) -> "Membership":
        return replace(self, permission_overrides=overrides)

    def deactivated(self) -> "Membership":
        return replace(self, is_active=False)
