"""
SharedBooks Business - Provider Protocol and In-Memory Provider
===============================================================
"""

from __future__ import annotations

import uuid
from typing import Iterable, Protocol

from sharedbooks.business.models import Business


class BusinessProvider(Protocol):
    def get_business(self, business_id: uuid.UUID) -> Business | None:
        ...


class InMemoryBusinessProvider:
    """Deterministic in-memory provider used for tests."""

    def __init__(self, businesses: Iterable[Business] | None = None):
        self._businesses: dict[uuid.UUID, Business] = {}
        for business in businesses or ():
            self.add(business)

    def add(self, business: Business) -> Business:
        if business.business_id in self._businesses:
            raise ValueError(f"Duplicate business_id '{business.business_id}'.")
        self._businesses[business.business_id] = business
        return business

    def get_business(self, business_id: uuid.UUID) -> Business | None:
        return self._businesses.get(business_id)
