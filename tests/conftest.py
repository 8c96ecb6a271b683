"""Shared fixtures: settings, request contexts and in-memory collaborators.

The collaborators below honour the same contracts as the Redis, S3 and STS
backed implementations (including rev checking on update) so the services can
be exercised without network access.
"""

from __future__ import annotations

import asyncio
import base64
import os
from dataclasses import replace

# Settings are read from the environment by anything that calls get_settings().
os.environ.setdefault("ONBOARD_ENCRYPTION_KEY", base64.b64encode(b"k" * 32).decode())
os.environ.setdefault("ONBOARD_TEMPLATE_BUCKET", "onboard-templates")
os.environ.setdefault("ONBOARD_MAIN_ACCOUNT_ID", "111122223333")
os.environ.setdefault("ONBOARD_API_HANDLER_ROLE_ARN", "arn:aws:iam::111122223333:role/onboard-api-handler")
os.environ.setdefault("ONBOARD_WORKFLOW_ROLE_ARN", "arn:aws:iam::111122223333:role/onboard-workflow")
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "account_onboarding_site.settings")

import pytest

from account_onboarding.config import Settings
from account_onboarding.errors import ConflictError, NotFoundError
from account_onboarding.repos import AccountRecord, AccountUpdate, NewAccount, PermissionStatus
from account_onboarding.services import (
    AccountService,
    AuthorizationService,
    PermissionService,
    RequestContext,
    StackProvisioningService,
)

EXPECTED_TEMPLATE = """\
# Onboarding template
AWSTemplateFormatVersion: 2010-09-09
Resources:
  Role:
    Type: AWS::IAM::Role   # cross-account role
"""

STACK_OUTPUTS = [
    {"OutputKey": "VPC", "OutputValue": "vpc-0123456789abcdef0"},
    {"OutputKey": "VpcPublicSubnet1", "OutputValue": "subnet-0123456789abcdef0"},
    {"OutputKey": "EncryptionKeyArn", "OutputValue": "arn:aws:kms:us-east-1:444455556666:key/abcd"},
    {"OutputKey": "CrossAccountEnvMgmtRoleArn", "OutputValue": "arn:aws:iam::444455556666:role/onboard-cross-account-role"},
]


class InMemoryAccountRepository:
    def __init__(self, records: list[AccountRecord] | None = None) -> None:
        self.records = {record.id: record for record in records or []}
        self.updates: list[AccountUpdate] = []
        self.fail_updates_with: Exception | None = None

    async def create(self, account: NewAccount) -> AccountRecord:
        record = AccountRecord(
            id=f"acc-{len(self.records) + 1}",
            rev=0,
            account_id=account.account_id,
            name=account.name,
            description=account.description,
            external_id=account.external_id,
            cfn_stack_name=account.cfn_stack_name,
            role_arn=account.role_arn,
            created_by=account.created_by,
        )
        self.records[record.id] = record
        return record

    async def find(self, account_uid: str) -> AccountRecord | None:
        record = self.records.get(account_uid)
        return replace(record) if record else None

    async def must_find(self, account_uid: str) -> AccountRecord:
        record = await self.find(account_uid)
        if record is None:
            raise NotFoundError(f"account {account_uid} does not exist", user_message="Account does not exist")
        return record

    async def list(self) -> list[AccountRecord]:
        return [replace(record) for record in self.records.values()]

    async def update(self, update: AccountUpdate) -> AccountRecord:
        self.updates.append(update)
        if self.fail_updates_with is not None:
            raise self.fail_updates_with
        current = await self.must_find(update.id)
        if current.rev != update.rev:
            raise ConflictError("stale rev", user_message="The account was just updated by another request")
        updated = replace(current, rev=current.rev + 1, **update.changes())
        self.records[update.id] = updated
        return replace(updated)


class FakeTemplates:
    def __init__(self, body: str = EXPECTED_TEMPLATE) -> None:
        self.body = body

    async def get_template(self, name: str) -> str:
        if name != "onboard-account":
            raise NotFoundError(f"template {name} not found", user_message=f"Template '{name}' not found")
        return self.body


class FakeStack:
    def __init__(self, name: str, template: str = EXPECTED_TEMPLATE, outputs=None, stack_id: str | None = None):
        self.name = name
        self.template = template
        self.outputs = STACK_OUTPUTS if outputs is None else outputs
        self.stack_id = stack_id or f"arn:aws:cloudformation:us-east-1:444455556666:stack/{name}/1"


class FakeStackClient:
    def __init__(self, factory: "FakeClientFactory") -> None:
        self._factory = factory

    async def _enter(self) -> None:
        factory = self._factory
        factory.calls += 1
        factory.in_flight += 1
        factory.max_in_flight = max(factory.max_in_flight, factory.in_flight)
        try:
            if factory.latency:
                await asyncio.sleep(factory.latency)
        finally:
            factory.in_flight -= 1

    async def describe_stacks(self, stack_name: str) -> list[dict]:
        await self._enter()
        if stack_name in self._factory.failures:
            raise self._factory.failures[stack_name]
        stack = self._factory.stacks.get(stack_name)
        if stack is None:
            return []
        return [{"StackName": stack.name, "StackId": stack.stack_id, "Outputs": stack.outputs}]

    async def get_template_body(self, stack_name: str) -> str:
        await self._enter()
        return self._factory.stacks[stack_name].template


class FakeClientFactory:
    def __init__(self, stacks: list[FakeStack] | None = None, latency: float = 0.0) -> None:
        self.stacks = {stack.name: stack for stack in stacks or []}
        self.failures: dict[str, Exception] = {}
        self.latency = latency
        self.calls = 0
        self.client_requests: list[dict] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def get_client_for(self, *, role_arn, external_id, region):
        self.client_requests.append({"role_arn": role_arn, "external_id": external_id, "region": region})
        return FakeStackClient(self)


class RecordingAudit:
    def __init__(self, fail: bool = False) -> None:
        self.events = []
        self.fail = fail

    def write_and_forget(self, context, event) -> None:
        if self.fail:
            raise RuntimeError("audit sink unavailable")
        self.events.append((context, event))


class FakeObjectStore:
    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], str] = {}
        self.sign_requests = []
        self.fail_put_with: Exception | None = None
        self.fail_sign_with: Exception | None = None

    async def put_object(self, *, bucket: str, key: str, body) -> None:
        if self.fail_put_with is not None:
            raise self.fail_put_with
        self.objects[(bucket, key)] = body

    async def sign(self, files, *, expire_seconds: int) -> list[str]:
        self.sign_requests.append((list(files), expire_seconds))
        if self.fail_sign_with is not None:
            raise self.fail_sign_with
        return [f"https://{ref.bucket}.s3.amazonaws.com/{ref.key}?X-Amz-Signature=abc&X-Amz-Expires={expire_seconds}" for ref in files]


def make_account(**overrides) -> AccountRecord:
    values = dict(
        id="a1",
        rev=1,
        account_id="444455556666",
        name="Research",
        external_id="workbench",
        cfn_stack_name="stk",
        cfn_stack_id="arn:aws:cloudformation:us-east-1:444455556666:stack/stk/1",
        role_arn="arn:aws:iam::444455556666:role/onboard-cross-account-role",
        vpc_id="vpc-0123456789abcdef0",
        subnet_id="subnet-0123456789abcdef0",
        encryption_key_arn="arn:aws:kms:us-east-1:444455556666:key/abcd",
        permission_status=PermissionStatus.CURRENT,
    )
    values.update(overrides)
    return AccountRecord(**values)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        encryption_key=base64.b64encode(b"k" * 32).decode(),
        template_bucket="onboard-templates",
        namespace="onboard",
        main_account_id="111122223333",
        api_handler_role_arn="arn:aws:iam::111122223333:role/onboard-api-handler",
        workflow_role_arn="arn:aws:iam::111122223333:role/onboard-workflow",
        aws_region="us-east-1",
        check_timeout_seconds=1.0,
    )


@pytest.fixture
def admin() -> RequestContext:
    return RequestContext(principal_id="u-admin", is_active=True, is_admin=True)


@pytest.fixture
def guest() -> RequestContext:
    return RequestContext(principal_id="u-guest", is_active=True, is_admin=False)


@pytest.fixture
def repo() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def clients() -> FakeClientFactory:
    return FakeClientFactory()


@pytest.fixture
def audit() -> RecordingAudit:
    return RecordingAudit()


@pytest.fixture
def object_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def permission_service(repo, clients, audit, settings) -> PermissionService:
    return PermissionService(
        accounts=repo,
        templates=FakeTemplates(),
        clients=clients,
        authorization=AuthorizationService(),
        audit=audit,
        settings=settings,
    )


@pytest.fixture
def stack_service(repo, object_store, audit, settings) -> StackProvisioningService:
    return StackProvisioningService(
        accounts=repo,
        templates=FakeTemplates(),
        object_store=object_store,
        authorization=AuthorizationService(),
        audit=audit,
        settings=settings,
    )


@pytest.fixture
def account_service(repo, audit) -> AccountService:
    return AccountService(accounts=repo, authorization=AuthorizationService(), audit=audit)
