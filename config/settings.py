"""
Tillpoint – Django Settings (Infrastructure Only)
==================================================
Django is the configuration and logging container for Tillpoint.
The cart engine has no HTTP surface of its own; transport layers
that embed it bring their own URLs and middleware.

Engine tunables live in TILLPOINT_CART and are read through
core.config.CartEngineConfig.from_settings().
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get("TILLPOINT_SECRET_KEY", "tillpoint-dev-key-replace-before-deployment")

DEBUG = os.environ.get("TILLPOINT_DEBUG", "1") == "1"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
# Django infrastructure only; Tillpoint engines are plain packages.
INSTALLED_APPS = [
    "django.contrib.contenttypes",
]

# ── Database ──────────────────────────────────────────────────
# Sessions are held in memory; no tables are required.
DATABASES = {}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Cart Engine ───────────────────────────────────────────────
TILLPOINT_CART = {
    "default_currency": os.environ.get("TILLPOINT_DEFAULT_CURRENCY", "EUR"),
    "catalog_cache_ttl_seconds": 60,
    "catalog_cache_max_size": 1000,
    "catalog_timeout_seconds": None,
    "session_idle_ttl_seconds": None,
    "max_coupon_code_length": 50,
}

# ── Logging ───────────────────────────────────────────────────
TILLPOINT_LOG_LEVEL = os.environ.get("TILLPOINT_LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "loggers": {
        "tillpoint": {
            "handlers": ["console"],
            "level": TILLPOINT_LOG_LEVEL,
            "propagate": True,
        },
    },
}
