"""
SharedBooks Permissions - Membership Gate
=========================================
Turns resolver answers into AuthorizationError for services that act on
behalf of a membership. Checked before any write.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sharedbooks.errors import AuthorizationError, ReasonCode
from sharedbooks.permissions.resolver import can_assign_role, has_permission
from sharedbooks.permissions.roles import BusinessRole

if TYPE_CHECKING:
    from sharedbooks.members.models import Membership

logger = logging.getLogger("sharedbooks.permissions")


class PermissionEvaluator:
    @staticmethod
    def require(
        actor: "Membership",
        capability: str,
        *,
        business_id: uuid.UUID,
    ) -> None:
        """Raise unless ``actor`` is an active member of ``business_id`` holding ``capability``."""
        if actor.business_id != business_id or not actor.is_active:
            logger.info(
                f"Denied {capability}: membership {actor.membership_id} "
                f"is not an active member of business {business_id}"
            )
            raise AuthorizationError(
                f"Membership {actor.membership_id} is not an active member "
                f"of business {business_id}.",
                capability=capability,
            )

        if not has_permission(actor.role, actor.permission_overrides, capability):
            logger.info(
                f"Denied {capability}: membership {actor.membership_id} "
                f"({actor.role.value}) in business {business_id}"
            )
            raise AuthorizationError(
                f"Missing permission '{capability}'.",
                capability=capability,
            )

    @staticmethod
    def require_role_assignment(
        actor: "Membership",
        target_role: BusinessRole,
    ) -> None:
        if not can_assign_role(actor.role, target_role):
            logger.info(
                f"Denied role assignment {actor.role.value} -> {target_role.value} "
                f"by membership {actor.membership_id}"
            )
            raise AuthorizationError(
                f"Role {actor.role.display_name} cannot assign role "
                f"{target_role.display_name}.",
                assigner_role=actor.role.value,
                target_role=target_role.value,
                code=ReasonCode.ROLE_ASSIGNMENT_DENIED,
            )

    @staticmethod
    def require_authority_over(
        actor: "Membership",
        target: "Membership",
    ) -> None:
        """Only an Owner, or a strictly higher-ranked role, may change another member's role."""
        if actor.role is BusinessRole.OWNER or actor.role.rank > target.role.rank:
            return
        logger.info(
            f"Denied role change of {target.role.value} membership "
            f"{target.membership_id} by {actor.role.value} membership {actor.membership_id}"
        )
        raise AuthorizationError(
            f"Role {actor.role.display_name} cannot change the role of a "
            f"{target.role.display_name}.",
            assigner_role=actor.role.value,
            target_role=target.role.value,
            code=ReasonCode.ROLE_ASSIGNMENT_DENIED,
        )
