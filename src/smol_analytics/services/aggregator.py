"""Visit aggregator - reads one bucket of route counters and ranks them.

Pipeline per bucket:
    SCAN MATCH visit:{granularity}:{bucket}:*  -> counter keys
    MGET <keys>                                -> raw counts (one round trip)
    decode route from key, parse count         -> {route: count}
    sort by count descending                   -> ranked list
"""

import logging
import time
from typing import Any, NamedTuple

from pydantic import BaseModel, Field, ValidationError

from smol_analytics.keys import (
    VISIT_KEY_PREFIX,
    Granularity,
    daily_bucket,
    decode_route,
    hourly_bucket,
    visit_scan_pattern,
)

logger = logging.getLogger(__name__)

SCAN_BATCH_SIZE = 500


class VisitCount(NamedTuple):
    route: str
    count: int


class _CounterValue(BaseModel):
    """Typed scalar for a single counter read."""

    value: int = Field(ge=0)


def _decode_text(value: object) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, bytes):
        try:
            return value.decode()
        except UnicodeDecodeError:
            return None
    return None


def parse_count(raw_value: object) -> int:
    """Parse a raw counter value. Missing or malformed values count as zero."""
    if raw_value is None:
        return 0
    if isinstance(raw_value, bytes):
        text = _decode_text(raw_value)
        if text is None:
            return 0
        raw_value = text
    try:
        return _CounterValue.model_validate({"value": raw_value}).value
    except ValidationError:
        return 0


def rank_visits(counts: dict[str, int]) -> list[VisitCount]:
    """Sort routes by count, highest first. Ties keep insertion order."""
    ranked = [VisitCount(route, count) for route, count in counts.items() if count > 0]
    ranked.sort(key=lambda item: item.count, reverse=True)
    return ranked


class VisitAggregator:
    """Reads and ranks visit counters from Redis."""

    def __init__(self, redis_client: Any, *, key_prefix: str = VISIT_KEY_PREFIX) -> None:
        self._redis = redis_client
        self._key_prefix = key_prefix

    async def scan_visits(self, granularity: Granularity, bucket: int) -> list[VisitCount]:
        """Ranked visit list for one bucket. Empty when nothing was recorded."""
        pattern = visit_scan_pattern(granularity, bucket, key_prefix=self._key_prefix)

        keys: list[str] = []
        async for raw_key in self._redis.scan_iter(match=pattern, count=SCAN_BATCH_SIZE):
            key = _decode_text(raw_key)
            if key is not None:
                keys.append(key)

        if not keys:
            return []

        values = await self._redis.mget(keys)

        counts: dict[str, int] = {}
        for key, raw_value in zip(keys, values, strict=False):
            try:
                route = decode_route(key, key_prefix=self._key_prefix)
            except ValueError:
                logger.debug("Skipping malformed visit key %s", key)
                continue
            counts[route] = parse_count(raw_value)

        return rank_visits(counts)

    async def scan_hourly_visits(self, *, now: float | None = None) -> list[VisitCount]:
        """Ranked visits for the current hour."""
        timestamp = time.time() if now is None else now
        return await self.scan_visits(Granularity.HOURLY, hourly_bucket(timestamp))

    async def scan_daily_visits(
        self,
        use_previous_day: bool = False,
        *,
        now: float | None = None,
    ) -> list[VisitCount]:
        """Ranked visits for the current day, or the previous completed day."""
        timestamp = time.time() if now is None else now
        return await self.scan_visits(
            Granularity.DAILY,
            daily_bucket(timestamp, use_previous_day=use_previous_day),
        )
