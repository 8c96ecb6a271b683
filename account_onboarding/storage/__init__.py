"""Storage backends."""

from .redis import RedisFactory

__all__ = ["RedisFactory"]
