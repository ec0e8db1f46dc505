"""
SharedBooks Audit - Action Helpers
==================================
One thin shape-builder per domain action. Each builds an
AuditLogRequest and hands it to AuditTrail.record(); none carries
logic of its own.
"""

from __future__ import annotations

import uuid
from typing import Any, Mapping, Optional, Union

from sharedbooks.audit.models import (
    AuditAction,
    AuditLogEntry,
    AuditLogRequest,
    EntityType,
    field_change,
)
from sharedbooks.audit.trail import AuditTrail

EntityId = Union[uuid.UUID, str]
Changes = Mapping[str, Mapping[str, Any]]


def _record(
    trail: AuditTrail,
    *,
    business_id: uuid.UUID,
    action: AuditAction,
    entity_type: EntityType,
    entity_id: EntityId,
    performed_by_id: str,
    changes: Optional[Changes] = None,
    metadata: Optional[Mapping[str, Any]] = None,
) -> AuditLogEntry:
    return trail.record(
        AuditLogRequest(
            business_id=business_id,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            performed_by_id=performed_by_id,
            changes=changes or {},
            metadata=metadata or {},
        )
    )


# ══════════════════════════════════════════════════════════════
# BUSINESS
# ══════════════════════════════════════════════════════════════

def audit_business_created(
    trail: AuditTrail,
    business_id: uuid.UUID,
    performed_by_id: str,
    metadata: Optional[Mapping[str, Any]] = None,
) -> AuditLogEntry:
    return _record(
        trail,
        business_id=business_id,
        action=AuditAction.BUSINESS_CREATED,
        entity_type=EntityType.BUSINESS,
        entity_id=business_id,
        performed_by_id=performed_by_id,
        metadata=metadata,
    )


def audit_business_updated(
    trail: AuditTrail,
    business_id: uuid.UUID,
    performed_by_id: str,
    changes: Changes,
) -> AuditLogEntry:
    return _record(
        trail,
        business_id=business_id,
        action=AuditAction.BUSINESS_UPDATED,
        entity_type=EntityType.BUSINESS,
        entity_id=business_id,
        performed_by_id=performed_by_id,
        changes=changes,
    )


def audit_business_archived(
    trail: AuditTrail,
    business_id: uuid.UUID,
    performed_by_id: str,
) -> AuditLogEntry:
    return _record(
        trail,
        business_id=business_id,
        action=AuditAction.BUSINESS_ARCHIVED,
        entity_type=EntityType.BUSINESS,
        entity_id=business_id,
        performed_by_id=performed_by_id,
    )


# ══════════════════════════════════════════════════════════════
# MEMBERS & INVITES
# ══════════════════════════════════════════════════════════════

def audit_member_invited(
    trail: AuditTrail,
    business_id: uuid.UUID,
    invite_id: EntityId,
    performed_by_id: str,
    *,
    role: str,
    email: Optional[str] = None,
) -> AuditLogEntry:
    metadata: dict[str, Any] = {"role": role}
    if email is not None:
        metadata["email"] = email
    return _record(
        trail,
        business_id=business_id,
        action=AuditAction.MEMBER_INVITED,
        entity_type=EntityType.INVITE,
        entity_id=invite_id,
        performed_by_id=performed_by_id,
        metadata=metadata,
    )


def audit_member_accepted(
    trail: AuditTrail,
    business_id: uuid.UUID,
    membership_id: EntityId,
    performed_by_id: str,
    *,
    invite_id: EntityId,
    role: str,
) -> AuditLogEntry:
    return _record(
        trail,
        business_id=business_id,
        action=AuditAction.MEMBER_ACCEPTED,
        entity_type=EntityType.MEMBERSHIP,
        entity_id=membership_id,
        performed_by_id=performed_by_id,
        metadata={"invite_id": str(invite_id), "role": role},
    )


def audit_member_role_changed(
    trail: AuditTrail,
    business_id: uuid.UUID,
    membership_id: EntityId,
    performed_by_id: str,
    *,
    old_role: str,
    new_role: str,
) -> AuditLogEntry:
    return _record(
        trail,
        business_id=business_id,
        action=AuditAction.MEMBER_ROLE_CHANGED,
        entity_type=EntityType.MEMBERSHIP,
        entity_id=membership_id,
        performed_by_id=performed_by_id,
        changes={"role": field_change(old_role, new_role)},
    )


def audit_member_permissions_updated(
    trail: AuditTrail,
    business_id: uuid.UUID,
    membership_id: EntityId,
    performed_by_id: str,
    *,
    old_overrides: Mapping[str, bool],
    new_overrides: Mapping[str, bool],
) -> AuditLogEntry:
    return _record(
        trail,
        business_id=business_id,
        action=AuditAction.MEMBER_PERMISSIONS_UPDATED,
        entity_type=EntityType.MEMBERSHIP,
        entity_id=membership_id,
        performed_by_id=performed_by_id,
        changes={
            "permissions": field_change(dict(old_overrides), dict(new_overrides)),
        },
    )


def audit_member_removed(
    trail: AuditTrail,
    business_id: uuid.UUID,
    membership_id: EntityId,
    performed_by_id: str,
    *,
    user_id: str,
    user_name: str,
) -> AuditLogEntry:
    return _record(
        trail,
        business_id=business_id,
        action=AuditAction.MEMBER_REMOVED,
        entity_type=EntityType.MEMBERSHIP,
        entity_id=membership_id,
        performed_by_id=performed_by_id,
        metadata={"user_id": user_id, "user_name": user_name},
    )


def audit_invite_revoked(
    trail: AuditTrail,
    business_id: uuid.UUID,
    invite_id: EntityId,
    performed_by_id: str,
    *,
    email: Optional[str] = None,
) -> AuditLogEntry:
    return _record(
        trail,
        business_id=business_id,
        action=AuditAction.INVITE_REVOKED,
        entity_type=EntityType.INVITE,
        entity_id=invite_id,
        performed_by_id=performed_by_id,
        metadata={"email": email} if email is not None else None,
    )


# ══════════════════════════════════════════════════════════════
# CATEGORIES
# ══════════════════════════════════════════════════════════════

def audit_category_created(
    trail: AuditTrail,
    business_id: uuid.UUID,
    category_id: EntityId,
    performed_by_id: str,
    *,
    name: str,
    category_type: str,
) -> AuditLogEntry:
    return _record(
        trail,
        business_id=business_id,
        action=AuditAction.CATEGORY_CREATED,
        entity_type=EntityType.CATEGORY,
        entity_id=category_id,
        performed_by_id=performed_by_id,
        metadata={"name": name, "type": category_type},
    )


def audit_category_updated(
    trail: AuditTrail,
    business_id: uuid.UUID,
    category_id: EntityId,
    performed_by_id: str,
    changes: Changes,
) -> AuditLogEntry:
    return _record(
        trail,
        business_id=business_id,
        action=AuditAction.CATEGORY_UPDATED,
        entity_type=EntityType.CATEGORY,
        entity_id=category_id,
        performed_by_id=performed_by_id,
        changes=changes,
    )


# ══════════════════════════════════════════════════════════════
# EXPENSES & INCOME
# ══════════════════════════════════════════════════════════════

def audit_expense_created(
    trail: AuditTrail,
    business_id: uuid.UUID,
    expense_id: EntityId,
    performed_by_id: str,
    *,
    amount: str,
    category: str,
    paid_by: Optional[str] = None,
) -> AuditLogEntry:
    metadata: dict[str, Any] = {"amount": amount, "category": category}
    if paid_by is not None:
        metadata["paid_by"] = paid_by
    return _record(
        trail,
        business_id=business_id,
        action=AuditAction.EXPENSE_CREATED,
        entity_type=EntityType.EXPENSE,
        entity_id=expense_id,
        performed_by_id=performed_by_id,
        metadata=metadata,
    )


def audit_expense_updated(
    trail: AuditTrail,
    business_id: uuid.UUID,
    expense_id: EntityId,
    performed_by_id: str,
    changes: Changes,
) -> AuditLogEntry:
    return _record(
        trail,
        business_id=business_id,
        action=AuditAction.EXPENSE_UPDATED,
        entity_type=EntityType.EXPENSE,
        entity_id=expense_id,
        performed_by_id=performed_by_id,
        changes=changes,
    )


def audit_expense_deleted(
    trail: AuditTrail,
    business_id: uuid.UUID,
    expense_id: EntityId,
    performed_by_id: str,
    *,
    amount: str,
    category: str,
) -> AuditLogEntry:
    return _record(
        trail,
        business_id=business_id,
        action=AuditAction.EXPENSE_DELETED,
        entity_type=EntityType.EXPENSE,
        entity_id=expense_id,
        performed_by_id=performed_by_id,
        metadata={"amount": amount, "category": category},
    )


def audit_income_created(
    trail: AuditTrail,
    business_id: uuid.UUID,
    income_id: EntityId,
    performed_by_id: str,
    *,
    amount: str,
    category: str,
    received_by: Optional[str] = None,
) -> AuditLogEntry:
    metadata: dict[str, Any] = {"amount": amount, "category": category}
    if received_by is not None:
        metadata["received_by"] = received_by
    return _record(
        trail,
        business_id=business_id,
        action=AuditAction.INCOME_CREATED,
        entity_type=EntityType.INCOME,
        entity_id=income_id,
        performed_by_id=performed_by_id,
        metadata=metadata,
    )


def audit_income_updated(
    trail: AuditTrail,
    business_id: uuid.UUID,
    income_id: EntityId,
    performed_by_id: str,
    changes: Changes,
) -> AuditLogEntry:
    return _record(
        trail,
        business_id=business_id,
        action=AuditAction.INCOME_UPDATED,
        entity_type=EntityType.INCOME,
        entity_id=income_id,
        performed_by_id=performed_by_id,
        changes=changes,
    )


def audit_income_deleted(
    trail: AuditTrail,
    business_id: uuid.UUID,
    income_id: EntityId,
    performed_by_id: str,
    *,
    amount: str,
    category: str,
) -> AuditLogEntry:
    return _record(
        trail,
        business_id=business_id,
        action=AuditAction.INCOME_DELETED,
        entity_type=EntityType.INCOME,
        entity_id=income_id,
        performed_by_id=performed_by_id,
        metadata={"amount": amount, "category": category},
    )


# ══════════════════════════════════════════════════════════════
# SETTLEMENTS & ATTACHMENTS
# ══════════════════════════════════════════════════════════════

def audit_settlement_created(
    trail: AuditTrail,
    business_id: uuid.UUID,
    settlement_id: EntityId,
    performed_by_id: str,
    *,
    amount: str,
    direction: str,
    member_id: EntityId,
) -> AuditLogEntry:
    return _record(
        trail,
        business_id=business_id,
        action=AuditAction.SETTLEMENT_CREATED,
        entity_type=EntityType.SETTLEMENT,
        entity_id=settlement_id,
        performed_by_id=performed_by_id,
        metadata={
            "amount": amount,
            "type": direction,
            "member_id": str(member_id),
        },
    )


def audit_attachment_added(
    trail: AuditTrail,
    business_id: uuid.UUID,
    attachment_id: EntityId,
    performed_by_id: str,
    *,
    filename: str,
    entity_type: EntityType,
    entity_id: EntityId,
) -> AuditLogEntry:
    return _record(
        trail,
        business_id=business_id,
        action=AuditAction.ATTACHMENT_ADDED,
        entity_type=EntityType.ATTACHMENT,
        entity_id=attachment_id,
        performed_by_id=performed_by_id,
        metadata={
            "filename": filename,
            "entity_type": entity_type.value,
            "entity_id": str(entity_id),
        },
    )


def audit_attachment_removed(
    trail: AuditTrail,
    business_id: uuid.UUID,
    attachment_id: EntityId,
    performed_by_id: str,
    *,
    filename: str,
    entity_type: EntityType,
    entity_id: EntityId,
) -> AuditLogEntry:
    return _record(
        trail,
        business_id=business_id,
        action=AuditAction.ATTACHMENT_REMOVED,
        entity_type=EntityType.ATTACHMENT,
        entity_id=attachment_id,
        performed_by_id=performed_by_id,
        metadata={
            "filename": filename,
            "entity_type": entity_type.value,
            "entity_id": str(entity_id),
        },
    )
