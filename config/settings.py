"""
TSC – Django Settings (Infrastructure Only)
============================================
Django serves as the persistence container for the settlement core.
Engines never read these settings directly; core.config.django_settings
turns the TSC_* values into policy objects.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get("TSC_SECRET_KEY", "tsc-dev-key-replace-before-deployment")

DEBUG = os.environ.get("TSC_DEBUG", "1") == "1"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    # ── TSC Modules ───────────────────────────────────────
    "adapters.django_store",
]

MIDDLEWARE = []

# ── Database ──────────────────────────────────────────────────
# SQLite for development. Production DB configured separately.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "es-ar"
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
        "tsc": {
            "handlers": ["console"],
            "level": os.environ.get("TSC_LOG_LEVEL", "INFO"),
            "propagate": True,
        },
    },
}

# ── Settlement Core Policies ──────────────────────────────────
# None: every close ends CLOSED. A value such as "500.00" sends closes
# whose |counted - expected| exceeds it to PENDING_REVIEW.
TSC_REVIEW_THRESHOLD = os.environ.get("TSC_REVIEW_THRESHOLD") or None
TSC_ONE_OPEN_SHIFT_PER_USER = True
TSC_CURRENCY = "ARS"
TSC_DEFAULT_PAYMENT_METHOD = None
# Promotion windows and shift numbering follow the store wall clock.
TSC_TIME_ZONE = os.environ.get("TSC_TIME_ZONE", "America/Argentina/Buenos_Aires")
