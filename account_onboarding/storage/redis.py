"""Redis connection factory."""

from __future__ import annotations

from redis.asyncio import Redis

from account_onboarding.config import Settings, get_settings


class RedisFactory:
    """Provide Redis asyncio connections."""

    @classmethod
    def client(cls, settings: Settings | None = None) -> Redis:
        # One client per caller: asyncio connection pools are bound to the loop that created them.
        settings = settings or get_settings()
        return Redis.from_url(settings.redis_url, decode_responses=False)
