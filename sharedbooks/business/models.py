"""
SharedBooks Business - Tenant Model
===================================
The business is the tenant boundary: every membership, transaction,
settlement and audit entry is scoped to one business_id.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class BusinessState(Enum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


@dataclass(frozen=True)
class Business:
    business_id: uuid.UUID
    name: str
    created_at: datetime
    state: BusinessState = BusinessState.ACTIVE
    archived_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not isinstance(self.business_id, uuid.UUID):
            raise ValueError("business_id must be UUID.")
        if not self.name or not isinstance(self.name, str):
            raise ValueError("name must be a non-empty string.")

    @property
    def is_archived(self) -> bool:
        return self.state == BusinessState.ARCHIVED
