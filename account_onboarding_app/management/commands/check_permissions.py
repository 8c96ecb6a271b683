"""Reconcile the permission status of every onboarded account."""

from __future__ import annotations

import asyncio

from django.core.management.base import BaseCommand, CommandError

from account_onboarding.app import service_lifespan
from account_onboarding.errors import ServiceError
from account_onboarding.services import RequestContext


class Command(BaseCommand):
    help = "Check every account's deployed permission stack and store the resulting status."

    def add_arguments(self, parser) -> None:  # pragma: no cover - Django wires parser.
        parser.add_argument(
            "--batch-size",
            type=int,
            default=None,
            help="Accounts checked concurrently per round (defaults to ONBOARD_BATCH_SIZE).",
        )
        parser.add_argument(
            "--principal",
            default="system:permission-check",
            help="Principal id recorded on status updates and the audit event.",
        )

    def handle(self, *args, **options) -> None:
        context = RequestContext(principal_id=options["principal"], is_active=True, is_admin=True)
        try:
            result = asyncio.run(self._run(context, options.get("batch_size")))
        except ServiceError as exc:
            raise CommandError(exc.user_message or str(exc)) from exc

        for account_uid, status in sorted(result.status_by_account_id.items()):
            line = f"{account_uid}: {status.value}"
            error = result.errors_by_account_id.get(account_uid)
            if error:
                line = f"{line} ({error})"
            self.stdout.write(line)
        self.stdout.write(self.style.SUCCESS(f"Checked {len(result.status_by_account_id)} accounts"))

    @staticmethod
    async def _run(context: RequestContext, batch_size: int | None):
        async with service_lifespan() as services:
            return await services.permissions.batch_check_account_permissions(context, batch_size=batch_size)
