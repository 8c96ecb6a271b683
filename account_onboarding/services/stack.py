"""Provisioning of the onboarding CloudFormation stack for an account."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from urllib.parse import quote

import shortuuid

from account_onboarding.config import Settings, get_settings
from account_onboarding.repos import AccountRecord, AccountRepository, AccountUpdate, PermissionStatus
from account_onboarding.services.audit import AuditEvent, AuditWriterService
from account_onboarding.services.authorization import AuthorizationService, RequestContext
from account_onboarding.services.object_store import ObjectRef, S3Service
from account_onboarding.services.templates import CfnTemplateService


logger = logging.getLogger(__name__)

ONBOARD_TEMPLATE_NAME = "onboard-account"
CONSOLE_BASE_URL = "https://console.aws.amazon.com/cloudformation/home"

_stack_suffix = shortuuid.ShortUUID(alphabet="abcdefghijklmnopqrstuvwxyz0123456789")


@dataclass
class TemplateInfo:
    region: str
    stack_name: str
    template: str
    hash: str
    signed_url: str
    url_expiry: datetime
    create_stack_url: str
    cfn_console_url: str
    update_stack_url: str | None = None


def console_home_url(region: str) -> str:
    return f"{CONSOLE_BASE_URL}?region={region}"


def create_stack_url(
    *,
    region: str,
    signed_url: str,
    stack_name: str,
    namespace: str,
    central_account_id: str,
    external_id: str,
    api_handler_arn: str,
    workflow_role_arn: str,
) -> str:
    # Parameter order and the trailing "/?" are what the console's review page expects.
    return (
        f"{console_home_url(region)}#/stacks/create/review/"
        f"?templateURL={quote(signed_url, safe='')}"
        f"&stackName={stack_name}"
        f"&param_Namespace={namespace}"
        f"&param_CentralAccountId={central_account_id}"
        f"&param_ExternalId={external_id}"
        f"&param_ApiHandlerArn={api_handler_arn}"
        f"&param_WorkflowRoleArn={workflow_role_arn}"
    )


def update_stack_url(*, region: str, stack_id: str, signed_url: str) -> str:
    return (
        f"{console_home_url(region)}#/stacks/update/template"
        f"?stackId={quote(stack_id, safe='')}"
        f"&templateURL={quote(signed_url, safe='')}"
    )


class StackProvisioningService:
    """Publish the onboarding template for an account and hand back console links."""

    def __init__(
        self,
        *,
        accounts: AccountRepository,
        templates: CfnTemplateService,
        object_store: S3Service,
        authorization: AuthorizationService,
        audit: AuditWriterService | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._accounts = accounts
        self._templates = templates
        self._object_store = object_store
        self._authorization = authorization
        self._audit = audit
        self._settings = settings or get_settings()

    def new_stack_name(self) -> str:
        return f"{self._settings.namespace}-onboard-{_stack_suffix.random(length=12)}"

    def cross_account_role_arn(self, account_id: str) -> str:
        return f"arn:aws:iam::{account_id}:role/{self._settings.namespace}-cross-account-role"

    async def prepare_onboarding(self, context: RequestContext, account_uid: str) -> TemplateInfo:
        await self._authorization.assert_authorized(context, {"account_uid": account_uid}, action="onboard-aws-account")
        settings = self._settings
        account = await self._accounts.must_find(account_uid)
        template = await self._templates.get_template(ONBOARD_TEMPLATE_NAME)

        stack_name = account.cfn_stack_name or self.new_stack_name()
        first_time = stack_name != account.cfn_stack_name or not account.role_arn
        external_id = settings.default_external_id if first_time else (account.external_id or settings.default_external_id)

        content_hash = hashlib.sha256(template.encode("utf-8")).hexdigest()
        region = settings.aws_region
        key = f"{ONBOARD_TEMPLATE_NAME}/{account.id}/{region}/{content_hash}/{ONBOARD_TEMPLATE_NAME}.cfn.yml"
        await self._object_store.put_object(bucket=settings.template_bucket, key=key, body=template)

        expire_seconds = settings.signed_url_expiry_seconds
        url_expiry = datetime.now(timezone.utc) + timedelta(seconds=expire_seconds)
        [signed_url] = await self._object_store.sign(
            [ObjectRef(bucket=settings.template_bucket, key=key)], expire_seconds=expire_seconds
        )

        info = TemplateInfo(
            region=region,
            stack_name=stack_name,
            template=template,
            hash=content_hash,
            signed_url=signed_url,
            url_expiry=url_expiry,
            create_stack_url=create_stack_url(
                region=region,
                signed_url=signed_url,
                stack_name=stack_name,
                namespace=settings.namespace,
                central_account_id=settings.main_account_id,
                external_id=external_id,
                api_handler_arn=settings.api_handler_role_arn,
                workflow_role_arn=settings.workflow_role_arn,
            ),
            update_stack_url=(
                update_stack_url(region=region, stack_id=account.cfn_stack_id, signed_url=signed_url)
                if account.cfn_stack_id
                else None
            ),
            cfn_console_url=console_home_url(region),
        )

        if first_time:
            await self._record_stack(context, account, stack_name=stack_name, external_id=external_id)

        logger.info(
            "onboarding_prepared",
            extra={"account": account.id, "stack_name": stack_name, "template_hash": content_hash},
        )
        if self._audit is not None:
            self._audit.write_and_forget(
                context,
                AuditEvent(action="onboard-aws-account", body={"id": account.id, "stackName": stack_name}),
            )
        return info

    async def _record_stack(
        self, context: RequestContext, account: AccountRecord, *, stack_name: str, external_id: str
    ) -> AccountRecord:
        status = account.permission_status
        if status is PermissionStatus.NEEDSONBOARD:
            status = PermissionStatus.PENDING
        return await self._accounts.update(
            AccountUpdate(
                id=account.id,
                rev=account.rev,
                cfn_stack_name=stack_name,
                external_id=external_id,
                role_arn=self.cross_account_role_arn(account.account_id),
                permission_status=status,
                updated_by=context.principal_id,
            )
        )


__all__ = [
    "StackProvisioningService",
    "TemplateInfo",
    "console_home_url",
    "create_stack_url",
    "update_stack_url",
]
