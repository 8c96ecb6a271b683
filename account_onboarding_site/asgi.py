"""ASGI config for the account onboarding Django project."""

from __future__ import annotations

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "account_onboarding_site.settings")

application = get_asgi_application()
