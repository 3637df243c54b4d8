"""Durable Redis job queue with at-least-once delivery.

Layout under settings.JOB_QUEUE_KEY:
  <key>:ready                    jobs waiting for a worker (LPUSH in, BLMOVE out from the right)
  <key>:processing:<worker_id>   jobs handed to one worker and not yet acked
  <key>:heartbeat:<worker_id>    expiring key refreshed while that worker is alive
  <key>:workers                  set of worker ids that may own a processing list
  <key>:failed                   operator-visible failure records (JSON)

A job stays in its worker's processing list until ack() or fail(). Only lists
of workers whose heartbeat has expired are moved back to :ready, so a job in
flight on a live worker is never handed out twice.
"""
import json
import logging
import uuid
from typing import Any, Protocol

import redis.asyncio as aioredis

from config.settings import settings
from src.gx_common.datetime_utils import utc_now
from src.gx_common.redis_client import get_redis
from src.gx_pipeline.domain.jobs import Job

logger = logging.getLogger(__name__)


class JobQueueProtocol(Protocol):
    async def enqueue(self, job: Job) -> None: ...


class RedisJobQueue:
    def __init__(
        self,
        redis: aioredis.Redis,
        key: str | None = None,
        worker_id: str | None = None,
        heartbeat_ttl: int | None = None,
    ) -> None:
        self._redis = redis
        self._base = key or settings.JOB_QUEUE_KEY
        self.worker_id = worker_id or uuid.uuid4().hex[:12]
        self._heartbeat_ttl = heartbeat_ttl or settings.WORKER_HEARTBEAT_TTL_SECONDS
        self.ready_key = f"{self._base}:ready"
        self.failed_key = f"{self._base}:failed"
        self.workers_key = f"{self._base}:workers"
        self.processing_key = self._processing_key(self.worker_id)
        self.heartbeat_key = self._heartbeat_key(self.worker_id)

    def _processing_key(self, worker_id: str) -> str:
        return f"{self._base}:processing:{worker_id}"

    def _heartbeat_key(self, worker_id: str) -> str:
        return f"{self._base}:heartbeat:{worker_id}"

    async def enqueue(self, job: Job) -> None:
        await self._redis.lpush(self.ready_key, job.to_json())
        logger.debug("Enqueued %s job %s for order %s", job.kind, job.job_id, job.order_id)

    async def register(self) -> None:
        """Announce this worker; must run before the first dequeue."""
        await self._redis.sadd(self.workers_key, self.worker_id)
        await self.heartbeat()

    async def heartbeat(self) -> None:
        await self._redis.set(self.heartbeat_key, utc_now().isoformat(), ex=self._heartbeat_ttl)

    async def unregister(self) -> None:
        await self._redis.delete(self.heartbeat_key)
        await self._redis.srem(self.workers_key, self.worker_id)

    async def dequeue(self, timeout: float) -> str | None:
        """Block up to *timeout* seconds; returns the raw payload, now in this worker's list."""
        raw: str | None = await self._redis.blmove(
            self.ready_key, self.processing_key, timeout, "RIGHT", "LEFT"
        )
        return raw

    async def ack(self, raw: str) -> None:
        await self._redis.lrem(self.processing_key, 1, raw)

    async def fail(self, raw: str, context: dict[str, Any]) -> None:
        """Record the failure for operators, then drop the job from the processing list."""
        record = {"job": raw, "failed_at": utc_now().isoformat(), **context}
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.lpush(self.failed_key, json.dumps(record, default=str))
            pipe.lrem(self.processing_key, 1, raw)
            await pipe.execute()

    async def requeue_stale(self) -> int:
        """Move unacked jobs of dead workers back to :ready. Returns how many were moved."""
        moved = 0
        for worker_id in await self._redis.smembers(self.workers_key):
            if await self._redis.exists(self._heartbeat_key(worker_id)):
                continue
            source = self._processing_key(worker_id)
            count = 0
            while await self._redis.lmove(source, self.ready_key, "LEFT", "RIGHT"):
                count += 1
            await self._redis.srem(self.workers_key, worker_id)
            if count:
                logger.warning(
                    "Requeued %d unacknowledged jobs of dead worker %s", count, worker_id
                )
            moved += count
        return moved

    async def list_failed(self, limit: int = 100) -> list[dict[str, Any]]:
        rows = await self._redis.lrange(self.failed_key, 0, limit - 1)
        return [json.loads(r) for r in rows]


async def get_job_queue() -> RedisJobQueue:
    """FastAPI dependency / worker factory."""
    return RedisJobQueue(await get_redis())
