"""
SharedBooks Audit - Public API
==============================
Immutable, append-only audit trail.
"""

from sharedbooks.audit.functions import (
    audit_attachment_added,
    audit_attachment_removed,
    audit_business_archived,
    audit_business_created,
    audit_business_updated,
    audit_category_created,
    audit_category_updated,
    audit_expense_created,
    audit_expense_deleted,
    audit_expense_updated,
    audit_income_created,
    audit_income_deleted,
    audit_income_updated,
    audit_invite_revoked,
    audit_member_accepted,
    audit_member_invited,
    audit_member_permissions_updated,
    audit_member_removed,
    audit_member_role_changed,
    audit_settlement_created,
)
from sharedbooks.audit.models import (
    AuditAction,
    AuditFilters,
    AuditLogEntry,
    AuditLogRequest,
    AuditPage,
    EntityType,
    field_change,
)
from sharedbooks.audit.store import AuditStore, InMemoryAuditStore
from sharedbooks.audit.trail import AuditTrail

__all__ = [
    "AuditAction",
    "AuditFilters",
    "AuditLogEntry",
    "AuditLogRequest",
    "AuditPage",
    "AuditStore",
    "AuditTrail",
    "EntityType",
    "InMemoryAuditStore",
    "field_change",
    "audit_attachment_added",
    "audit_attachment_removed",
    "audit_business_archived",
    "audit_business_created",
    "audit_business_updated",
    "audit_category_created",
    "audit_category_updated",
    "audit_expense_created",
    "audit_expense_deleted",
    "audit_expense_updated",
    "audit_income_created",
    "audit_income_deleted",
    "audit_income_updated",
    "audit_invite_revoked",
    "audit_member_accepted",
    "audit_member_invited",
    "audit_member_permissions_updated",
    "audit_member_removed",
    "audit_member_role_changed",
    "audit_settlement_created",
]
