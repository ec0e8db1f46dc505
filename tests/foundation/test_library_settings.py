"""
Tests for sharedbooks.settings - LedgerSettings.
"""

import uuid
from datetime import datetime, timezone

import pytest

from sharedbooks.audit import AuditTrail, InMemoryAuditStore
from sharedbooks.audit.functions import audit_business_updated
from sharedbooks.settings import LedgerSettings, load_settings
from sharedbooks.time import FixedClock

BIZ_ID = uuid.uuid4()
NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


class TestLedgerSettingsDefaults:
    def test_defaults(self):
        settings = LedgerSettings()
        assert settings.audit_page_size == 50
        assert settings.audit_max_page_size == 500
        assert settings.history_limit == 100
        assert settings.money_places == 2
        assert settings.week_starts_on == 6

    def test_frozen(self):
        with pytest.raises(AttributeError):
            LedgerSettings().history_limit = 5


class TestLedgerSettingsValidation:
    @pytest.mark.parametrize("value", [0, -1, True, "10"])
    def test_page_size_must_be_positive_int(self, value):
        with pytest.raises(ValueError, match="audit_page_size"):
            LedgerSettings(audit_page_size=value)

    def test_page_size_cannot_exceed_cap(self):
        with pytest.raises(ValueError, match="cannot exceed"):
            LedgerSettings(audit_page_size=600, audit_max_page_size=500)

    def test_week_start_range(self):
        with pytest.raises(ValueError, match="week_starts_on"):
            LedgerSettings(week_starts_on=7)

    def test_money_places_range(self):
        with pytest.raises(ValueError, match="money_places"):
            LedgerSettings(money_places=-1)


class TestFromMapping:
    def test_empty_mapping_gives_defaults(self):
        assert LedgerSettings.from_mapping(None) == LedgerSettings()
        assert LedgerSettings.from_mapping({}) == LedgerSettings()

    def test_keys_are_case_insensitive(self):
        settings = LedgerSettings.from_mapping({"HISTORY_LIMIT": 20, "audit_page_size": 10})
        assert settings.history_limit == 20
        assert settings.audit_page_size == 10

    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError, match="Unknown SHAREDBOOKS settings"):
            LedgerSettings.from_mapping({"PAGE": 1})


class TestLoadSettings:
    def test_reads_django_setting(self, settings):
        settings.SHAREDBOOKS = {"HISTORY_LIMIT": 7}
        assert load_settings().history_limit == 7

    def test_project_settings_are_valid(self):
        assert load_settings().audit_page_size == 50

    def test_components_default_to_django_setting(self, settings):
        settings.SHAREDBOOKS = {"AUDIT_PAGE_SIZE": 2}
        trail = AuditTrail(InMemoryAuditStore(), clock=FixedClock(NOW))
        for _ in range(3):
            audit_business_updated(trail, BIZ_ID, "owner", {})

        page = trail.query(BIZ_ID)
        assert page.limit == 2
        assert len(page.entries) == 2
        assert page.total == 3

    def test_explicit_settings_win_over_django_setting(self, settings):
        settings.SHAREDBOOKS = {"AUDIT_PAGE_SIZE": 2}
        trail = AuditTrail(
            InMemoryAuditStore(),
            clock=FixedClock(NOW),
            settings=LedgerSettings(audit_page_size=10),
        )
        assert trail.query(BIZ_ID).limit == 10
