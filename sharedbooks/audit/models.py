"""
SharedBooks Audit - Immutable Audit Models
==========================================
Append-only audit log entries. Frozen dataclasses: once created, never
modified. Deletion of audit records is forbidden.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional


# ══════════════════════════════════════════════════════════════
# CLOSED VOCABULARIES
# ══════════════════════════════════════════════════════════════

class AuditAction(Enum):
    BUSINESS_CREATED = "BUSINESS_CREATED"
    BUSINESS_UPDATED = "BUSINESS_UPDATED"
    BUSINESS_ARCHIVED = "BUSINESS_ARCHIVED"
    MEMBER_INVITED = "MEMBER_INVITED"
    MEMBER_ACCEPTED = "MEMBER_ACCEPTED"
    MEMBER_ROLE_CHANGED = "MEMBER_ROLE_CHANGED"
    MEMBER_PERMISSIONS_UPDATED = "MEMBER_PERMISSIONS_UPDATED"
    MEMBER_REMOVED = "MEMBER_REMOVED"
    CATEGORY_CREATED = "CATEGORY_CREATED"
    CATEGORY_UPDATED = "CATEGORY_UPDATED"
    EXPENSE_CREATED = "EXPENSE_CREATED"
    EXPENSE_UPDATED = "EXPENSE_UPDATED"
    EXPENSE_DELETED = "EXPENSE_DELETED"
    INCOME_CREATED = "INCOME_CREATED"
    INCOME_UPDATED = "INCOME_UPDATED"
    INCOME_DELETED = "INCOME_DELETED"
    SETTLEMENT_CREATED = "SETTLEMENT_CREATED"
    ATTACHMENT_ADDED = "ATTACHMENT_ADDED"
    ATTACHMENT_REMOVED = "ATTACHMENT_REMOVED"
    INVITE_REVOKED = "INVITE_REVOKED"


class EntityType(Enum):
    BUSINESS = "BUSINESS"
    MEMBERSHIP = "MEMBERSHIP"
    INVITE = "INVITE"
    CATEGORY = "CATEGORY"
    EXPENSE = "EXPENSE"
    INCOME = "INCOME"
    SETTLEMENT = "SETTLEMENT"
    ATTACHMENT = "ATTACHMENT"


def field_change(old_value: Any, new_value: Any) -> dict[str, Any]:
    """Shape of one entry in an audit ``changes`` map."""
    return {"old_value": old_value, "new_value": new_value}


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({str(k): _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


# ══════════════════════════════════════════════════════════════
# AUDIT LOG ENTRY
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AuditLogRequest:
    """What a caller asks to be recorded. Id and timestamp are assigned on record."""

    business_id: uuid.UUID
    action: AuditAction
    entity_type: EntityType
    performed_by_id: str
    entity_id: Optional[str] = None
    changes: Mapping[str, Any] = field(default_factory=dict)
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.business_id, uuid.UUID):
            raise ValueError("business_id must be UUID.")
        if not isinstance(self.action, AuditAction):
            raise ValueError(f"action must be an AuditAction, got {self.action!r}.")
        if not isinstance(self.entity_type, EntityType):
            raise ValueError(
                f"entity_type must be an EntityType, got {self.entity_type!r}."
            )
        if not self.performed_by_id or not isinstance(self.performed_by_id, str):
            raise ValueError("performed_by_id must be a non-empty string.")
        if self.entity_id is not None:
            object.__setattr__(self, "entity_id", str(self.entity_id))


@dataclass(frozen=True)
class AuditLogEntry:
    """
    Immutable record of one state mutation.

    ``changes`` and ``metadata`` are copied into read-only mappings so a
    caller holding the original dict cannot rewrite history.
    """

    entry_id: uuid.UUID
    business_id: uuid.UUID
    action: AuditAction
    entity_type: EntityType
    entity_id: Optional[str]
    performed_by_id: str
    created_at: datetime
    changes: Mapping[str, Any] = field(default_factory=dict)
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.created_at.tzinfo is None:
            raise ValueError("created_at must be timezone-aware.")
        object.__setattr__(self, "changes", _freeze(self.changes or {}))
        object.__setattr__(self, "metadata", _freeze(self.metadata or {}))

    @classmethod
    def from_request(
        cls,
        request: AuditLogRequest,
        *,
        entry_id: uuid.UUID,
        created_at: datetime,
    ) -> "AuditLogEntry":
        return cls(
            entry_id=entry_id,
            business_id=request.business_id,
            action=request.action,
            entity_type=request.entity_type,
            entity_id=request.entity_id,
            performed_by_id=request.performed_by_id,
            created_at=created_at,
            changes=request.changes,
            metadata=request.metadata,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry_id": str(self.entry_id),
            "business_id": str(self.business_id),
            "action": self.action.value,
            "entity_type": self.entity_type.value,
            "entity_id": self.entity_id,
            "performed_by_id": self.performed_by_id,
            "created_at": self.created_at.isoformat(),
            "changes": _thaw(self.changes),
            "metadata": _thaw(self.metadata),
        }


# ══════════════════════════════════════════════════════════════
# QUERY SHAPES
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AuditFilters:
    """All fields optional; date bounds are inclusive."""

    action: Optional[AuditAction] = None
    entity_type: Optional[EntityType] = None
    entity_id: Optional[str] = None
    performed_by_id: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError("start must not be after end.")

    def matches(self, entry: AuditLogEntry) -> bool:
        if self.action is not None and entry.action != self.action:
            return False
        if self.entity_type is not None and entry.entity_type != self.entity_type:
            return False
        if self.entity_id is not None and entry.entity_id != self.entity_id:
            return False
        if self.performed_by_id is not None and entry.performed_by_id != self.performed_by_id:
            return False
        if self.start is not None and entry.created_at < self.start:
            return False
        if self.end is not None and entry.created_at > self.end:
            return False
        return True


@dataclass(frozen=True)
class AuditPage:
    entries: tuple[AuditLogEntry, ...]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.entries) < self.total
