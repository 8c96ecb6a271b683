"""Authorization gate for account operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Sequence

from account_onboarding.errors import ForbiddenError


logger = logging.getLogger(__name__)

ACCOUNT_EXTENSION_POINT = "aws-account-authz"


@dataclass(frozen=True)
class RequestContext:
    """Principal performing the current request."""

    principal_id: str
    is_active: bool = True
    is_admin: bool = False


@dataclass(frozen=True)
class AuthorizationResult:
    allowed: bool
    reason: str | None = None


ALLOW = AuthorizationResult(allowed=True)

Condition = Callable[[RequestContext, str, Sequence[Any]], AuthorizationResult]
Plugin = Callable[[RequestContext, str, AuthorizationResult, Sequence[Any]], Awaitable[AuthorizationResult]]


def allow_if_active(context: RequestContext, action: str, subjects: Sequence[Any]) -> AuthorizationResult:
    if not context.is_active:
        return AuthorizationResult(allowed=False, reason="principal is not active")
    return ALLOW


def allow_if_admin(context: RequestContext, action: str, subjects: Sequence[Any]) -> AuthorizationResult:
    if not context.is_admin:
        return AuthorizationResult(allowed=False, reason="principal is not an admin")
    return ALLOW


ADMIN_CONDITIONS: tuple[Condition, ...] = (allow_if_active, allow_if_admin)


@dataclass
class AuthorizationService:
    """Evaluate conditions, then give every plugin registered for the extension point a say.

    Plugins receive the decision reached so far and may override it either way.
    """

    plugins: dict[str, list[Plugin]] = field(default_factory=dict)

    def register(self, extension_point: str, plugin: Plugin) -> None:
        self.plugins.setdefault(extension_point, []).append(plugin)

    async def authorize(
        self,
        context: RequestContext,
        *,
        extension_point: str,
        action: str,
        conditions: Sequence[Condition],
        subjects: Sequence[Any] = (),
    ) -> AuthorizationResult:
        result = ALLOW
        for condition in conditions:
            result = condition(context, action, subjects)
            if not result.allowed:
                break
        for plugin in self.plugins.get(extension_point, []):
            result = await plugin(context, action, result, subjects)
        return result

    async def assert_authorized(
        self,
        context: RequestContext,
        *subjects: Any,
        action: str,
        conditions: Sequence[Condition] = ADMIN_CONDITIONS,
        extension_point: str = ACCOUNT_EXTENSION_POINT,
    ) -> None:
        result = await self.authorize(
            context,
            extension_point=extension_point,
            action=action,
            conditions=conditions,
            subjects=subjects,
        )
        if not result.allowed:
            logger.warning(
                "authorization_denied",
                extra={"principal": context.principal_id, "action": action, "reason": result.reason},
            )
            raise ForbiddenError(
                f"{context.principal_id} is not authorized to {action}: {result.reason}",
                user_message="You are not authorized to perform this operation",
            )


__all__ = [
    "ACCOUNT_EXTENSION_POINT",
    "ADMIN_CONDITIONS",
    "AuthorizationResult",
    "AuthorizationService",
    "RequestContext",
    "allow_if_active",
    "allow_if_admin",
]
