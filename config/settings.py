"""
SharedBooks - Django Settings (Infrastructure Only)
===================================================
Django provides the ORM, migrations and settings container for the
persistence adapters in sharedbooks.store. The domain packages do not
depend on Django being configured.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get("SHAREDBOOKS_SECRET_KEY", "sharedbooks-dev-key")

DEBUG = os.environ.get("SHAREDBOOKS_DEBUG", "1") == "1"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "sharedbooks.store",
]

MIDDLEWARE = []

# ── Database ──────────────────────────────────────────────────
# SQLite for development. SHAREDBOOKS_DB_PATH overrides the file.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("SHAREDBOOKS_DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Logging ───────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
        },
    },
    "loggers": {
        "sharedbooks": {
            "handlers": ["console"],
            "level": os.environ.get("SHAREDBOOKS_LOG_LEVEL", "INFO"),
            "propagate": True,
        },
    },
}

# ── SharedBooks ───────────────────────────────────────────────
# Library tunables, read by sharedbooks.settings.load_settings().
SHAREDBOOKS = {
    "AUDIT_PAGE_SIZE": 50,
    "AUDIT_MAX_PAGE_SIZE": 500,
    "HISTORY_LIMIT": 100,
    "MONEY_PLACES": 2,
    "WEEK_STARTS_ON": 6,
}
