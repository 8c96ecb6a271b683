"""Django settings for the account onboarding API."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("ONBOARD_DJANGO_SECRET_KEY", "dev-insecure-secret-key")
DEBUG = os.environ.get("ONBOARD_DJANGO_DEBUG", "false").lower() in {"1", "true", "yes"}
ALLOWED_HOSTS = [host for host in os.environ.get("ONBOARD_ALLOWED_HOSTS", "*").split(",") if host]

INSTALLED_APPS = [
    "account_onboarding_app",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "account_onboarding_site.urls"
WSGI_APPLICATION = "account_onboarding_site.wsgi.application"
ASGI_APPLICATION = "account_onboarding_site.asgi.application"

# Account state lives in Redis; Django's ORM is unused.
DATABASES: dict = {}

USE_TZ = True
TIME_ZONE = "UTC"
APPEND_SLASH = False
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LOG_LEVEL = os.environ.get("ONBOARD_LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "standard"},
    },
    "loggers": {
        "account_onboarding": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "account_onboarding.audit": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "django": {"handlers": ["console"], "level": "WARNING"},
    },
}
