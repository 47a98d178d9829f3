"""Visit counter bucket ids and Redis key helpers.

Redis key structure:
    visit:hourly:{hour_id}:{route} -> INT (hour_id = unix_seconds // 3600)
    visit:daily:{day_id}:{route}   -> INT (day_id = unix_seconds // 86400)

The route is always the last field and is stored verbatim, so a route may
itself contain ":" and still decode correctly.
"""

from enum import StrEnum

# Key prefix for all visit counter keys
VISIT_KEY_PREFIX = "visit"

KEY_DELIMITER = ":"

HOUR_SECONDS = 3_600
DAY_SECONDS = 86_400


class Granularity(StrEnum):
    HOURLY = "hourly"
    DAILY = "daily"

    @property
    def window_seconds(self) -> int:
        if self is Granularity.HOURLY:
            return HOUR_SECONDS
        return DAY_SECONDS


def hourly_bucket(timestamp: float) -> int:
    """Hour id for a unix timestamp in seconds."""
    return int(timestamp // HOUR_SECONDS)


def daily_bucket(timestamp: float, use_previous_day: bool = False) -> int:
    """Day id for a unix timestamp, optionally the previous completed day."""
    day_id = int(timestamp // DAY_SECONDS)
    if use_previous_day:
        day_id -= 1
    return day_id


def bucket_id(granularity: Granularity, timestamp: float) -> int:
    if granularity is Granularity.HOURLY:
        return hourly_bucket(timestamp)
    return daily_bucket(timestamp)


def visit_bucket_prefix(
    granularity: Granularity,
    bucket: int,
    *,
    key_prefix: str = VISIT_KEY_PREFIX,
) -> str:
    """Key prefix shared by every route counter in one bucket."""
    return KEY_DELIMITER.join([key_prefix, granularity.value, str(bucket), ""])


def visit_key(
    granularity: Granularity,
    bucket: int,
    route: str,
    *,
    key_prefix: str = VISIT_KEY_PREFIX,
) -> str:
    """Redis counter key for a route within a bucket."""
    return visit_bucket_prefix(granularity, bucket, key_prefix=key_prefix) + route


def visit_scan_pattern(
    granularity: Granularity,
    bucket: int,
    *,
    key_prefix: str = VISIT_KEY_PREFIX,
) -> str:
    """SCAN pattern for all route counters in a bucket."""
    return visit_bucket_prefix(granularity, bucket, key_prefix=key_prefix) + "*"


def decode_route(key: str, *, key_prefix: str = VISIT_KEY_PREFIX) -> str:
    """Recover the route from a counter key.

    Splits off the fixed fields (prefix, granularity, bucket) and returns the
    remainder untouched.
    """
    fixed_fields = key_prefix.count(KEY_DELIMITER) + 3
    parts = key.split(KEY_DELIMITER, fixed_fields)
    if len(parts) <= fixed_fields:
        raise ValueError(f"Not a visit counter key: {key!r}")
    return parts[fixed_fields]
