"""Create an API user and print the id callers pass as ``user_id``."""

from __future__ import annotations

import asyncio

from django.core.management.base import BaseCommand

from account_onboarding.app import service_lifespan
from account_onboarding.services.users import ADMIN_ROLE


class Command(BaseCommand):
    help = "Create a user record in Redis (admin by default) and print its id."

    def add_arguments(self, parser) -> None:  # pragma: no cover - Django wires parser.
        parser.add_argument("--role", default=ADMIN_ROLE, help="Role stored on the user (default: admin).")
        parser.add_argument("--inactive", action="store_true", help="Create the user disabled.")

    def handle(self, *args, **options) -> None:
        user = asyncio.run(self._run(options["role"], not options["inactive"]))
        self.stdout.write(user.user_id)
        self.stderr.write(f"Created {user.role} user {user.user_id} (active={user.active})")

    @staticmethod
    async def _run(role: str, active: bool):
        async with service_lifespan() as services:
            return await services.users.create_user(role=role, active=active)
