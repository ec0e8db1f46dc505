"""
SharedBooks Members - Membership Administration
===============================================
Role changes, override updates and removals on behalf of an acting
membership. Each mutation is permission-gated before any write and is
committed together with its audit entry inside ``memberships.atomic()``.
"""

from __future__ import annotations

import logging
import uuid
from typing import Mapping, Optional

from sharedbooks.audit.functions import (
    audit_member_permissions_updated,
    audit_member_removed,
    audit_member_role_changed,
)
from sharedbooks.audit.trail import AuditTrail
from sharedbooks.errors import NotFoundError, ReasonCode, ValidationError
from sharedbooks.members.models import Membership
from sharedbooks.members.provider import MembershipProvider
from sharedbooks.permissions.constants import (
    CAN_CHANGE_PERMISSIONS,
    CAN_CHANGE_ROLES,
    CAN_INVITE_MEMBERS,
    CAN_REMOVE_MEMBERS,
    VALID_CAPABILITIES,
)
from sharedbooks.permissions.evaluator import PermissionEvaluator
from sharedbooks.permissions.roles import BusinessRole

logger = logging.getLogger("sharedbooks.members")


def _validate_overrides(overrides: Mapping[str, Optional[bool]]) -> dict[str, bool]:
    if not isinstance(overrides, Mapping):
        raise ValidationError("overrides must be a mapping.", field="overrides")
    cleaned: dict[str, bool] = {}
    for key, value in overrides.items():
        if key not in VALID_CAPABILITIES:
            raise ValidationError(f"Unknown capability '{key}'.", field="overrides")
        if value is None:
            continue
        if not isinstance(value, bool):
            raise ValidationError(
                f"Override for '{key}' must be a boolean.", field="overrides"
            )
        cleaned[key] = value
    return cleaned


class MembershipService:
    def __init__(self, memberships: MembershipProvider, audit: AuditTrail):
        self._memberships = memberships
        self._audit = audit

    def _target(self, actor: Membership, membership_id: uuid.UUID) -> Membership:
        target = self._memberships.get_membership(actor.business_id, membership_id)
        if target is None or not target.is_active:
            raise NotFoundError(
                f"Member {membership_id} not found in business {actor.business_id}.",
                field="membership_id",
            )
        return target

    def change_role(
        self,
        actor: Membership,
        membership_id: uuid.UUID,
        new_role: BusinessRole,
    ) -> Membership:
        PermissionEvaluator.require(actor, CAN_CHANGE_ROLES, business_id=actor.business_id)
        if not isinstance(new_role, BusinessRole):
            raise ValidationError(
                f"Invalid role: {new_role!r}.",
                field="role",
                code=ReasonCode.INVALID_ROLE_CHANGE,
            )

        with self._memberships.atomic():
            target = self._target(actor, membership_id)
            if target.membership_id == actor.membership_id:
                raise ValidationError(
                    "Cannot change your own role.",
                    field="membership_id",
                    code=ReasonCode.INVALID_ROLE_CHANGE,
                )
            PermissionEvaluator.require_role_assignment(actor, new_role)
            PermissionEvaluator.require_authority_over(actor, target)

            updated = self._memberships.save_membership(target.with_role(new_role))
            audit_member_role_changed(
                self._audit,
                actor.business_id,
                target.membership_id,
                actor.user_id,
                old_role=target.role.value,
                new_role=new_role.value,
            )

        logger.info(
            f"Member {target.membership_id} role {target.role.value} -> "
            f"{new_role.value} in business {actor.business_id} by {actor.user_id}"
        )
        return updated

    def update_permissions(
        self,
        actor: Membership,
        membership_id: uuid.UUID,
        overrides: Mapping[str, Optional[bool]],
    ) -> Membership:
        """Replace the member's override map. None values clear a key."""
        PermissionEvaluator.require(
            actor, CAN_CHANGE_PERMISSIONS, business_id=actor.business_id
        )
        cleaned = _validate_overrides(overrides)

        with self._memberships.atomic():
            target = self._target(actor, membership_id)
            old_overrides = dict(target.permission_overrides)
            updated = self._memberships.save_membership(target.with_overrides(cleaned))
            audit_member_permissions_updated(
                self._audit,
                actor.business_id,
                target.membership_id,
                actor.user_id,
                old_overrides=old_overrides,
                new_overrides=cleaned,
            )

        logger.info(
            f"Member {target.membership_id} overrides updated in business "
            f"{actor.business_id} by {actor.user_id}"
        )
        return updated

    def remove_member(self, actor: Membership, membership_id: uuid.UUID) -> Membership:
        PermissionEvaluator.require(actor, CAN_REMOVE_MEMBERS, business_id=actor.business_id)

        with self._memberships.atomic():
            target = self._target(actor, membership_id)
            if target.role == BusinessRole.OWNER:
                raise ValidationError("Cannot remove owner.", field="membership_id")
            if target.membership_id == actor.membership_id:
                raise ValidationError("Cannot remove yourself.", field="membership_id")

            removed = self._memberships.save_membership(target.deactivated())
            audit_member_removed(
                self._audit,
                actor.business_id,
                target.membership_id,
                actor.user_id,
                user_id=target.user_id,
                user_name=target.user_name,
            )

        logger.info(
            f"Member {target.membership_id} removed from business "
            f"{actor.business_id} by {actor.user_id}"
        )
        return removed

    @staticmethod
    def check_invite_role(actor: Membership, role: BusinessRole) -> None:
        PermissionEvaluator.require(actor, CAN_INVITE_MEMBERS, business_id=actor.business_id)
        PermissionEvaluator.require_role_assignment(actor, role)
