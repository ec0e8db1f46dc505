"""
SharedBooks Audit - Audit Trail Service
=======================================
The single write path for audit entries, plus filtered reads.

record() never swallows a store failure: a mutation whose audit entry
failed to write is not audited, and the caller's transaction must roll
back. Reads are newest first.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Optional

from sharedbooks.audit.models import (
    AuditFilters,
    AuditLogEntry,
    AuditLogRequest,
    AuditPage,
    EntityType,
)
from sharedbooks.audit.store import AuditStore
from sharedbooks.errors import ValidationError
from sharedbooks.permissions.constants import CAN_VIEW_AUDIT_LOG
from sharedbooks.permissions.evaluator import PermissionEvaluator
from sharedbooks.settings import LedgerSettings, load_settings
from sharedbooks.time.clock import Clock, SystemClock

if TYPE_CHECKING:
    from sharedbooks.members.models import Membership

logger = logging.getLogger("sharedbooks.audit")


class AuditTrail:
    def __init__(
        self,
        store: AuditStore,
        *,
        clock: Clock | None = None,
        settings: LedgerSettings | None = None,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._settings = settings or load_settings()

    def record(self, request: AuditLogRequest) -> AuditLogEntry:
        entry = AuditLogEntry.from_request(
            request,
            entry_id=uuid.uuid4(),
            created_at=self._clock.now_utc(),
        )
        stored = self._store.append(entry)
        logger.debug(
            f"Audit {stored.action.value} {stored.entity_type.value}:"
            f"{stored.entity_id} by {stored.performed_by_id} "
            f"in business {stored.business_id}"
        )
        return stored

    def query(
        self,
        business_id: uuid.UUID,
        filters: Optional[AuditFilters] = None,
        *,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> AuditPage:
        if limit is None:
            limit = self._settings.audit_page_size
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValidationError("limit must be a positive integer.", field="limit")
        if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
            raise ValidationError("offset must be a non-negative integer.", field="offset")
        limit = min(limit, self._settings.audit_max_page_size)
        filters = filters or AuditFilters()

        entries = self._store.find(business_id, filters, limit=limit, offset=offset)
        total = self._store.count(business_id, filters)
        return AuditPage(entries=entries, total=total, limit=limit, offset=offset)

    def query_as(
        self,
        actor: "Membership",
        filters: Optional[AuditFilters] = None,
        *,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> AuditPage:
        PermissionEvaluator.require(actor, CAN_VIEW_AUDIT_LOG, business_id=actor.business_id)
        return self.query(actor.business_id, filters, limit=limit, offset=offset)

    def entity_trail(
        self,
        business_id: uuid.UUID,
        entity_type: EntityType,
        entity_id: str | uuid.UUID,
    ) -> tuple[AuditLogEntry, ...]:
        filters = AuditFilters(entity_type=entity_type, entity_id=str(entity_id))
        return self._store.find(business_id, filters)
