"""Visit recorder.

Each visit increments two independent counters, one in the current hour bucket
and one in the current day bucket. The HTTP path never waits for Redis: visits
are recorded on detached background tasks whose failures only reach the logs.
"""

import asyncio
import logging
import time
from typing import Any

from smol_analytics.keys import (
    VISIT_KEY_PREFIX,
    Granularity,
    daily_bucket,
    hourly_bucket,
    visit_key,
)

logger = logging.getLogger(__name__)


class VisitRecorder:
    """Writes per-route visit counters to Redis."""

    def __init__(
        self,
        redis_client: Any,
        *,
        key_prefix: str = VISIT_KEY_PREFIX,
        hourly_ttl_seconds: int = 0,
        daily_ttl_seconds: int = 0,
    ) -> None:
        self._redis = redis_client
        self._key_prefix = key_prefix
        self._ttls = {
            Granularity.HOURLY: max(0, hourly_ttl_seconds),
            Granularity.DAILY: max(0, daily_ttl_seconds),
        }
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Number of background recordings still in flight."""
        return len(self._tasks)

    async def record_visit(self, route: str, *, now: float | None = None) -> None:
        """Increment the hourly and daily counters for a route."""
        timestamp = time.time() if now is None else now
        buckets = {
            Granularity.HOURLY: hourly_bucket(timestamp),
            Granularity.DAILY: daily_bucket(timestamp),
        }

        # INCR is atomic per key; the two counters are not updated as a unit.
        pipe = self._redis.pipeline(transaction=False)
        for granularity, bucket in buckets.items():
            key = visit_key(granularity, bucket, route, key_prefix=self._key_prefix)
            pipe.incr(key)
            ttl = self._ttls[granularity]
            if ttl > 0:
                pipe.expire(key, ttl)
        await pipe.execute()

    def record_visit_in_background(self, route: str) -> asyncio.Task[None]:
        """Schedule record_visit() without waiting for it."""
        task = asyncio.create_task(self.record_visit(route))
        self._tasks.add(task)
        task.add_done_callback(lambda done: self._on_recorded(done, route))
        return task

    def _on_recorded(self, task: asyncio.Task[None], route: str) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(
                "Failed to record visit route=%s: %s",
                route,
                exc,
                extra={"route": route},
            )

    async def drain(self, timeout: float = 2.0) -> None:
        """Wait for in-flight recordings, cancelling any still running after timeout."""
        if not self._tasks:
            return

        pending = set(self._tasks)
        _, still_running = await asyncio.wait(pending, timeout=max(0.0, timeout))
        if not still_running:
            return

        for task in still_running:
            task.cancel()
        await asyncio.gather(*still_running, return_exceptions=True)
        logger.warning(
            "Dropped %d visit recording(s) still in flight at shutdown",
            len(still_running),
        )
