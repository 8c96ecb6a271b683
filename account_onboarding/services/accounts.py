"""Admin-facing account metadata service."""

from __future__ import annotations

import logging
from typing import Any, Mapping, TypeVar

from pydantic import BaseModel, ValidationError

from account_onboarding.errors import ValidationFailedError
from account_onboarding.repos import AccountRecord, AccountRepository, AccountUpdate, NewAccount, PermissionStatus
from account_onboarding.schemas import AccountCreateRequest, AccountUpdateRequest
from account_onboarding.services.audit import AuditEvent, AuditWriterService
from account_onboarding.services.authorization import AuthorizationService, RequestContext


logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Changing either of these invalidates the last permission check.
_STACK_IDENTITY_FIELDS = ("cfn_stack_name", "role_arn")


def validate_payload(model: type[ModelT], payload: Mapping[str, Any] | ModelT) -> ModelT:
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ValidationFailedError(
            "Input has validation errors",
            errors=exc.errors(include_url=False, include_context=False),
            cause=exc,
        ) from exc


class AccountService:
    def __init__(
        self,
        *,
        accounts: AccountRepository,
        authorization: AuthorizationService,
        audit: AuditWriterService,
    ) -> None:
        self._accounts = accounts
        self._authorization = authorization
        self._audit = audit

    async def create_account(
        self, context: RequestContext, payload: Mapping[str, Any] | AccountCreateRequest
    ) -> AccountRecord:
        await self._authorization.assert_authorized(context, action="create-aws-account")
        request = validate_payload(AccountCreateRequest, payload)
        record = await self._accounts.create(
            NewAccount(
                account_id=request.account_id,
                name=request.name,
                description=request.description,
                external_id=request.external_id,
                cfn_stack_name=request.cfn_stack_name,
                role_arn=request.role_arn,
                created_by=context.principal_id,
            )
        )
        self._audit.write_and_forget(context, AuditEvent(action="create-aws-account", body={"id": record.id}))
        return record

    async def get_account(self, context: RequestContext, account_uid: str) -> AccountRecord:
        await self._authorization.assert_authorized(context, {"account_uid": account_uid}, action="read-aws-account")
        return await self._accounts.must_find(account_uid)

    async def list_accounts(self, context: RequestContext) -> list[AccountRecord]:
        await self._authorization.assert_authorized(context, action="list-aws-accounts")
        return await self._accounts.list()

    async def update_account(
        self, context: RequestContext, account_uid: str, payload: Mapping[str, Any] | AccountUpdateRequest
    ) -> AccountRecord:
        """Apply an admin edit, moving the account to ``PENDING`` when its stack identity changes."""
        await self._authorization.assert_authorized(context, {"account_uid": account_uid}, action="update-aws-account")
        request = validate_payload(AccountUpdateRequest, payload)
        account = await self._accounts.must_find(account_uid)

        submitted = request.model_dump(exclude_unset=True, exclude={"rev"})
        changes = {key: value for key, value in submitted.items() if value is not None}
        status = None
        if any(name in changes and changes[name] != getattr(account, name) for name in _STACK_IDENTITY_FIELDS):
            status = PermissionStatus.PENDING

        updated = await self._accounts.update(
            AccountUpdate(
                id=account_uid,
                rev=request.rev,
                permission_status=status,
                updated_by=context.principal_id,
                **changes,
            )
        )
        logger.info("account_updated", extra={"account": account_uid, "fields": sorted(changes)})
        self._audit.write_and_forget(
            context, AuditEvent(action="update-aws-account", body={"id": account_uid, "fields": sorted(changes)})
        )
        return updated


__all__ = ["AccountService", "validate_payload"]
