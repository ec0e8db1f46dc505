"""
SharedBooks - Library Settings
==============================
Tunables for paging and history windows. Read from the Django
``SHAREDBOOKS`` setting when Django is configured, defaults otherwise.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

from sharedbooks.money import MONEY_PLACES


@dataclass(frozen=True)
class LedgerSettings:
    audit_page_size: int = 50
    audit_max_page_size: int = 500
    history_limit: int = 100
    money_places: int = 2
    week_starts_on: int = 6  # weekday(): Monday=0 ... Sunday=6

    def __post_init__(self) -> None:
        for name in ("audit_page_size", "audit_max_page_size", "history_limit"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ValueError(f"{name} must be a positive integer, got {value!r}.")
        if (
            isinstance(self.money_places, bool)
            or not isinstance(self.money_places, int)
            or not 0 <= self.money_places <= MONEY_PLACES
        ):
            raise ValueError(
                f"money_places must be an integer between 0 and {MONEY_PLACES}."
            )
        if self.audit_page_size > self.audit_max_page_size:
            raise ValueError("audit_page_size cannot exceed audit_max_page_size.")
        if self.week_starts_on not in range(7):
            raise ValueError("week_starts_on must be a weekday number 0-6.")

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Any]]) -> "LedgerSettings":
        if not mapping:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = sorted(
            key for key in mapping if key.lower() not in known
        )
        if unknown:
            raise ValueError(f"Unknown SHAREDBOOKS settings: {unknown}")
        return cls(**{key.lower(): value for key, value in mapping.items()})


def load_settings() -> LedgerSettings:
    """Build settings from ``django.conf.settings.SHAREDBOOKS`` if available."""
    from django.conf import settings as django_settings

    if not django_settings.configured:
        return LedgerSettings()
    return LedgerSettings.from_mapping(getattr(django_settings, "SHAREDBOOKS", None))
