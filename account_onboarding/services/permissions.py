"""Reconciliation of deployed account permissions against the expected template.

Status decisions for a single account:

* no stack name, or still ``NEEDSONBOARD``: stays ``NEEDSONBOARD``, nothing is
  queried in the target account;
* deployed template equal to the expected one (ignoring comments and
  whitespace): ``CURRENT``, otherwise ``NEEDSUPDATE``; if the account is still
  missing stack outputs they are harvested before the status is final;
* any failure while checking: ``PENDING`` when the account was already
  ``PENDING`` (a stack being created answers "not found" for a while), else
  ``ERRORED``.

The batch operation never lets one account's failure abort the scan; errors are
collected per account and returned as data.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from account_onboarding.config import Settings, get_settings
from account_onboarding.errors import InternalError, NotFoundError, ValidationFailedError, safe_message
from account_onboarding.repos import AccountRecord, AccountRepository, AccountUpdate, PermissionStatus
from account_onboarding.services.audit import AuditEvent, AuditWriterService
from account_onboarding.services.authorization import AuthorizationService, RequestContext
from account_onboarding.services.cross_account import CfnStackClient, CrossAccountClientFactory
from account_onboarding.services.stack import ONBOARD_TEMPLATE_NAME
from account_onboarding.services.template_diff import compare_templates
from account_onboarding.services.templates import CfnTemplateService


logger = logging.getLogger(__name__)

NO_ISSUES = "No Issues."

# Stack output key -> account field
STACK_OUTPUTS = {
    "VPC": "vpc_id",
    "VpcPublicSubnet1": "subnet_id",
    "EncryptionKeyArn": "encryption_key_arn",
    "CrossAccountEnvMgmtRoleArn": "role_arn",
}


@dataclass
class PermissionCheckResult:
    status: PermissionStatus
    info: str = NO_ISSUES
    # Freshest copy of the account seen during the check.
    account: AccountRecord | None = field(default=None, repr=False)


@dataclass
class BatchCheckResult:
    status_by_account_id: dict[str, PermissionStatus] = field(default_factory=dict)
    errors_by_account_id: dict[str, str] = field(default_factory=dict)


class PermissionService:
    def __init__(
        self,
        *,
        accounts: AccountRepository,
        templates: CfnTemplateService,
        clients: CrossAccountClientFactory,
        authorization: AuthorizationService,
        audit: AuditWriterService,
        settings: Settings | None = None,
    ) -> None:
        self._accounts = accounts
        self._templates = templates
        self._clients = clients
        self._authorization = authorization
        self._audit = audit
        self._settings = settings or get_settings()

    async def _find_stack(self, account: AccountRecord) -> tuple[CfnStackClient, dict]:
        client = await self._clients.get_client_for(
            role_arn=account.role_arn,
            external_id=account.external_id or self._settings.default_external_id,
            region=self._settings.aws_region,
        )
        stack_name = account.cfn_stack_name
        stacks = await client.describe_stacks(stack_name)
        stack = next((item for item in stacks if item.get("StackName") == stack_name), None)
        if not stack:
            raise NotFoundError(f"stack {stack_name} not found", user_message=f"Stack '{stack_name}' not found")
        return client, stack

    async def get_stack_template(self, context: RequestContext, account: AccountRecord) -> str:
        """Return the template body deployed for ``account``'s onboarding stack.

        Raises :class:`NotFoundError` when the stack is not created yet, lives in
        another account/region, or was deployed under a different name.
        """
        await self._authorization.assert_authorized(context, account, action="query-aws-cfn-stack")
        client, _ = await self._find_stack(account)
        return await client.get_template_body(account.cfn_stack_name)

    async def check_account_permissions(self, context: RequestContext, account: AccountRecord) -> PermissionCheckResult:
        await self._authorization.assert_authorized(context, account, action="check-aws-permissions")

        if not account.cfn_stack_name:
            info = f"Account {account.account_id} has no CFN stack name specified."
            logger.info("permission_check_skipped", extra={"account": account.id, "reason": "no stack name"})
            return PermissionCheckResult(PermissionStatus.NEEDSONBOARD, info, account)
        if account.permission_status is PermissionStatus.NEEDSONBOARD:
            info = f"Account {account.account_id} has not been onboarded yet."
            logger.info("permission_check_skipped", extra={"account": account.id, "reason": "needs onboarding"})
            return PermissionCheckResult(PermissionStatus.NEEDSONBOARD, info, account)

        try:
            expected = await self._templates.get_template(ONBOARD_TEMPLATE_NAME)
            deployed = await self.get_stack_template(context, account)
            status = compare_templates(expected, deployed)
            if account.missing_onboarding_fields:
                account = await self.finish_onboarding(context, account.id)
        except Exception as exc:
            status = (
                PermissionStatus.PENDING
                if account.permission_status is PermissionStatus.PENDING
                else PermissionStatus.ERRORED
            )
            message = safe_message(exc)
            info = f"Error checking permissions for account {account.account_id}"
            if message:
                info = f"{info}. {message}"
            logger.warning(
                "permission_check_failed",
                extra={"account": account.id, "status": status.value, "error": str(exc)},
            )
            return PermissionCheckResult(status, info, account)

        return PermissionCheckResult(status, NO_ISSUES, account)

    async def reconcile_account(self, context: RequestContext, account_uid: str) -> PermissionCheckResult:
        """Check one account and persist its status if it changed."""
        account = await self._accounts.must_find(account_uid)
        result = await self.check_account_permissions(context, account)
        result.account = await self._persist_status(context, result.account or account, result.status)
        return result

    async def finish_onboarding(self, context: RequestContext, account_uid: str) -> AccountRecord:
        """Copy the onboarding stack's outputs onto the account record."""
        await self._authorization.assert_authorized(context, {"account_uid": account_uid}, action="finish-onboard-aws-account")
        account = await self._accounts.must_find(account_uid)
        _, stack = await self._find_stack(account)

        outputs = {item.get("OutputKey"): item.get("OutputValue") for item in stack.get("Outputs", [])}
        missing = [key for key in STACK_OUTPUTS if not outputs.get(key)]
        if missing:
            raise NotFoundError(
                f"stack {account.cfn_stack_name} is missing outputs {missing}",
                user_message=f"Stack '{account.cfn_stack_name}' is missing required outputs: {', '.join(missing)}",
            )

        harvested = {name: outputs[key] for key, name in STACK_OUTPUTS.items()}
        update = AccountUpdate(
            id=account.id,
            rev=account.rev,
            cfn_stack_id=stack.get("StackId"),
            external_id=account.external_id or self._settings.default_external_id,
            updated_by=context.principal_id,
            **harvested,
        )
        try:
            updated = await self._accounts.update(update)
        except Exception as exc:
            raise InternalError(
                f"failed to pull outputs from stack {account.cfn_stack_name}: {exc}",
                user_message=f"Failed to pull outputs from stack '{account.cfn_stack_name}'",
                cause=exc,
            ) from exc

        logger.info("onboarding_finished", extra={"account": account.id, "stack_id": update.cfn_stack_id})
        self._audit.write_and_forget(
            context, AuditEvent(action="finish-onboard-aws-account", body={"id": account.id})
        )
        return updated

    async def batch_check_account_permissions(
        self, context: RequestContext, batch_size: int | None = None
    ) -> BatchCheckResult:
        """Check every account, ``batch_size`` at a time.

        Accounts inside a batch are checked concurrently; the next batch starts
        only once every check of the current one has settled.
        """
        await self._authorization.assert_authorized(context, action="batch-check-aws-permissions")
        if batch_size is None:
            batch_size = self._settings.batch_size
        if batch_size < 1:
            raise ValidationFailedError("batch size must be a positive integer")

        accounts = await self._accounts.list()
        result = BatchCheckResult()
        for start in range(0, len(accounts), batch_size):
            batch = accounts[start : start + batch_size]
            await asyncio.gather(*(self._check_in_batch(context, account, result) for account in batch))

        logger.info(
            "batch_permission_check_finished",
            extra={"total": len(accounts), "errors": len(result.errors_by_account_id)},
        )
        try:
            self._audit.write_and_forget(
                context,
                AuditEvent(
                    action="batch-check-aws-permissions",
                    body={"totalAccountsProcessed": len(accounts), "errors": dict(result.errors_by_account_id)},
                ),
            )
        except Exception:
            logger.exception("audit_enqueue_failed", extra={"action": "batch-check-aws-permissions"})
        return result

    async def _check_in_batch(self, context: RequestContext, account: AccountRecord, result: BatchCheckResult) -> None:
        try:
            check = await asyncio.wait_for(
                self.check_account_permissions(context, account),
                timeout=self._settings.check_timeout_seconds,
            )
        except asyncio.TimeoutError:
            check = PermissionCheckResult(
                PermissionStatus.ERRORED,
                f"Error checking permissions for account {account.account_id}. Timed out",
                account,
            )
        except Exception as exc:
            message = safe_message(exc)
            info = f"Error checking permissions for account {account.account_id}"
            check = PermissionCheckResult(PermissionStatus.ERRORED, f"{info}. {message}" if message else info, account)

        result.status_by_account_id[account.id] = check.status
        if check.info != NO_ISSUES:
            result.errors_by_account_id[account.id] = check.info

        try:
            await self._persist_status(context, check.account or account, check.status)
        except Exception as exc:
            message = safe_message(exc)
            info = f"Failed to update permission status for account {account.account_id}"
            if message:
                info = f"{info}. {message}"
            # Keep the check error, if any, ahead of the write failure.
            previous = result.errors_by_account_id.get(account.id)
            result.errors_by_account_id[account.id] = f"{previous}; {info}" if previous else info
            logger.warning("permission_status_write_failed", extra={"account": account.id, "error": str(exc)})

    async def _persist_status(
        self, context: RequestContext, account: AccountRecord, status: PermissionStatus
    ) -> AccountRecord:
        if account.permission_status is status:
            return account
        return await self._accounts.update(
            AccountUpdate(
                id=account.id,
                rev=account.rev,
                role_arn=account.role_arn,
                external_id=account.external_id,
                permission_status=status,
                updated_by=context.principal_id,
            )
        )


__all__ = ["BatchCheckResult", "NO_ISSUES", "PermissionCheckResult", "PermissionService", "STACK_OUTPUTS"]
