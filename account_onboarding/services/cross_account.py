"""Cross-account CloudFormation access via STS AssumeRole."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from account_onboarding.config import Settings, get_settings
from account_onboarding.errors import ForbiddenError


logger = logging.getLogger(__name__)

ASSUME_ROLE_FAILED = "Could not assume a role to check the stack status"


def _stack_missing(exc: ClientError) -> bool:
    message = exc.response.get("Error", {}).get("Message", "")
    return "does not exist" in message


class CfnStackClient:
    """Thin async wrapper over a CloudFormation client bound to one target account."""

    def __init__(self, client) -> None:
        self._client = client

    async def describe_stacks(self, stack_name: str) -> list[dict[str, Any]]:
        """Return the stacks matching ``stack_name``; an unknown stack yields an empty list."""
        try:
            response = await asyncio.to_thread(self._client.describe_stacks, StackName=stack_name)
        except ClientError as exc:
            if _stack_missing(exc):
                return []
            raise
        return response.get("Stacks", [])

    async def get_template_body(self, stack_name: str) -> str:
        response = await asyncio.to_thread(self._client.get_template, StackName=stack_name)
        body = response["TemplateBody"]
        # JSON templates come back already parsed.
        if not isinstance(body, str):
            body = json.dumps(body, indent=2)
        return body


class CrossAccountClientFactory:
    def __init__(self, sts_client=None, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self._sts = sts_client or boto3.client("sts", region_name=self._settings.aws_region)

    def _session_name(self) -> str:
        timestamp_suffix = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        session_base = f"{self._settings.namespace}-permission-check"
        available = max(64 - (len(timestamp_suffix) + 1), 1)
        return f"{session_base[:available]}-{timestamp_suffix}"

    def _assume_role(self, role_arn: str, external_id: str) -> dict[str, Any]:
        response = self._sts.assume_role(
            RoleArn=role_arn,
            RoleSessionName=self._session_name(),
            ExternalId=external_id,
            DurationSeconds=3600,
        )
        return response["Credentials"]

    def _cfn_client(self, creds: dict[str, Any], region: str):
        return boto3.client(
            "cloudformation",
            region_name=region,
            aws_access_key_id=creds["AccessKeyId"],
            aws_secret_access_key=creds["SecretAccessKey"],
            aws_session_token=creds["SessionToken"],
        )

    async def get_client_for(self, *, role_arn: str | None, external_id: str | None, region: str) -> CfnStackClient:
        if not role_arn:
            raise ForbiddenError("no cross-account role arn on account", user_message=ASSUME_ROLE_FAILED)
        try:
            creds = await asyncio.to_thread(self._assume_role, role_arn, external_id or "")
        except (ClientError, BotoCoreError) as exc:
            logger.warning("assume_role_failed", extra={"role_arn": role_arn, "error": str(exc)})
            raise ForbiddenError(f"assume role {role_arn} failed", user_message=ASSUME_ROLE_FAILED, cause=exc) from exc
        return CfnStackClient(self._cfn_client(creds, region))


__all__ = ["CfnStackClient", "CrossAccountClientFactory"]
