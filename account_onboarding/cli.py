"""CLI helpers exposed as console scripts."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Iterable

from django.core.management import execute_from_command_line


def _configure_django() -> None:
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "account_onboarding_site.settings")


def _manage_py() -> Path:
    return Path(__file__).resolve().parents[1] / "manage.py"


def _run_command(argv: Iterable[str]) -> None:
    args = list(argv)
    args[0] = str(_manage_py())
    sys.argv = args
    execute_from_command_line(args)


def run_dev_server() -> None:
    """Run Django's autoreloading development server."""
    _configure_django()
    host = os.environ.get("ONBOARD_DEV_HOST", "0.0.0.0")
    port = os.environ.get("ONBOARD_DEV_PORT", "8000")
    _run_command(["manage.py", "runserver", f"{host}:{port}"])


def run_prod_server() -> None:
    """Launch gunicorn for production-style serving."""
    _configure_django()
    from gunicorn.app.wsgiapp import WSGIApplication

    bind = os.environ.get("ONBOARD_GUNICORN_BIND", "0.0.0.0:8000")
    workers = os.environ.get("ONBOARD_GUNICORN_WORKERS", "4")

    sys.argv = [
        "gunicorn",
        "account_onboarding_site.wsgi:application",
        "--bind",
        bind,
        "--workers",
        workers,
    ]
    WSGIApplication().run()


def check_permissions() -> None:
    """Reconcile the permission status of every account once."""
    _configure_django()
    _run_command(["manage.py", "check_permissions", *sys.argv[1:]])


def create_user() -> None:
    _configure_django()
    _run_command(["manage.py", "create_user", *sys.argv[1:]])


__all__ = ["check_permissions", "create_user", "run_dev_server", "run_prod_server"]
