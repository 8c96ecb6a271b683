"""Audit trail writer.

Events handed to :meth:`AuditWriterService.write_and_forget` are queued and
persisted by a dedicated background task, so callers never wait on (or fail
because of) audit storage.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

from redis.asyncio import Redis

from account_onboarding.services.authorization import RequestContext
from account_onboarding.storage import RedisFactory


logger = logging.getLogger("account_onboarding.audit")

AUDIT_LOG_KEY = "v1:audit"


@dataclass
class AuditEvent:
    action: str
    body: dict[str, Any] = field(default_factory=dict)


class AuditWriterService:
    def __init__(self, redis: Redis | None = None, *, max_pending: int = 1000) -> None:
        self._redis = redis
        self._max_pending = max_pending
        self._queue: asyncio.Queue | None = None
        self._worker: asyncio.Task | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def _client(self) -> Redis:
        if self._redis is None:
            self._redis = RedisFactory.client()
        return self._redis

    @staticmethod
    def _entry(context: RequestContext, event: AuditEvent) -> dict[str, Any]:
        return {
            "actor": context.principal_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **asdict(event),
        }

    async def write(self, context: RequestContext, event: AuditEvent) -> None:
        """Persist ``event`` now; failures propagate to the caller."""
        await self._persist(self._entry(context, event))

    def write_and_forget(self, context: RequestContext, event: AuditEvent) -> None:
        queue = self._ensure_worker()
        try:
            queue.put_nowait(self._entry(context, event))
        except asyncio.QueueFull:
            logger.warning("audit_event_dropped", extra={"action": event.action, "reason": "queue full"})

    async def drain(self) -> None:
        """Wait until every queued event has been handled (persisted or dropped)."""
        if self._queue is not None and self._loop is asyncio.get_running_loop():
            await self._queue.join()

    async def close(self) -> None:
        await self.drain()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._worker = None
        self._queue = None
        self._loop = None

    def _ensure_worker(self) -> asyncio.Queue:
        loop = asyncio.get_running_loop()
        if self._queue is None or self._loop is not loop or self._worker is None or self._worker.done():
            self._queue = asyncio.Queue(maxsize=self._max_pending)
            self._loop = loop
            self._worker = loop.create_task(self._run(self._queue), name="audit-writer")
        return self._queue

    async def _run(self, queue: asyncio.Queue) -> None:
        while True:
            entry = await queue.get()
            try:
                await self._persist(entry)
            except Exception:
                logger.exception("audit_write_failed", extra={"action": entry.get("action")})
            finally:
                queue.task_done()

    async def _persist(self, entry: dict[str, Any]) -> None:
        logger.info(entry["action"], extra={"actor": entry["actor"], "audit": entry["body"]})
        await self._client().lpush(AUDIT_LOG_KEY, json.dumps(entry, default=str))


__all__ = ["AuditEvent", "AuditWriterService"]
