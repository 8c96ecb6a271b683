"""Service for resolving callers into request contexts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import shortuuid
from redis.asyncio import Redis

from account_onboarding.services.authorization import RequestContext
from account_onboarding.storage import RedisFactory

USER_KEY_PREFIX = "v1:users"
ADMIN_ROLE = "admin"


@dataclass
class UserRecord:
    user_id: str
    role: str
    active: bool = True


class UserService:
    def __init__(self, redis: Optional[Redis] = None) -> None:
        self._redis = redis or RedisFactory.client()

    async def create_user(self, *, role: str = "guest", active: bool = True) -> UserRecord:
        user_id = shortuuid.ShortUUID().random(length=12)
        key = f"{USER_KEY_PREFIX}:{user_id}"
        await self._redis.hset(key, mapping={"active": "1" if active else "0", "role": role})
        return UserRecord(user_id=user_id, role=role, active=active)

    async def get_context(self, user_id: str) -> RequestContext | None:
        raw = await self._redis.hgetall(f"{USER_KEY_PREFIX}:{user_id}")
        if not raw:
            return None
        role = raw.get(b"role", b"").decode()
        return RequestContext(
            principal_id=user_id,
            is_active=raw.get(b"active") == b"1",
            is_admin=role == ADMIN_ROLE,
        )
