"""Wiring of domain services for a unit of work (request or command run)."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from redis.asyncio import Redis

from account_onboarding.config import Settings, get_settings
from account_onboarding.repos import AccountRepository
from account_onboarding.services import (
    AccountService,
    AuditWriterService,
    AuthorizationService,
    CfnTemplateService,
    CrossAccountClientFactory,
    PermissionService,
    S3Service,
    StackProvisioningService,
    UserService,
)
from account_onboarding.storage import RedisFactory


@dataclass(frozen=True)
class Services:
    settings: Settings
    users: UserService
    accounts: AccountService
    stacks: StackProvisioningService
    permissions: PermissionService
    audit: AuditWriterService
    redis: Redis


def build_services(settings: Settings | None = None) -> Services:
    settings = settings or get_settings()
    redis = RedisFactory.client(settings)
    repository = AccountRepository(redis, settings)
    templates = CfnTemplateService()
    authorization = AuthorizationService()
    audit = AuditWriterService(redis)
    return Services(
        settings=settings,
        users=UserService(redis),
        accounts=AccountService(accounts=repository, authorization=authorization, audit=audit),
        stacks=StackProvisioningService(
            accounts=repository,
            templates=templates,
            object_store=S3Service(settings=settings),
            authorization=authorization,
            audit=audit,
            settings=settings,
        ),
        permissions=PermissionService(
            accounts=repository,
            templates=templates,
            clients=CrossAccountClientFactory(settings=settings),
            authorization=authorization,
            audit=audit,
            settings=settings,
        ),
        audit=audit,
        redis=redis,
    )


@asynccontextmanager
async def service_lifespan(settings: Settings | None = None) -> AsyncIterator[Services]:
    """Build services for one unit of work, then flush pending audit events and close Redis."""
    services = build_services(settings)
    try:
        yield services
    finally:
        await services.audit.close()
        await services.redis.aclose()
