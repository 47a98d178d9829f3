"""Redis connection lifecycle for the counter store."""

import logging

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class StoreConnectionError(RuntimeError):
    """Raised when the counter store cannot be reached at startup."""


async def connect_redis(url: str, *, timeout_seconds: float = 5.0) -> redis.Redis:
    """
    Create a Redis client and verify it answers PING.

    The caller owns the returned client and must pass it to close_redis()
    on shutdown.

    Args:
        url: Redis URL.
        timeout_seconds: Socket connect/read timeout for every command.

    Raises:
        StoreConnectionError: if the server cannot be reached.
    """
    client = redis.from_url(
        url,
        decode_responses=True,
        socket_timeout=timeout_seconds,
        socket_connect_timeout=timeout_seconds,
    )
    try:
        await client.ping()
    except Exception as exc:
        await client.aclose()
        raise StoreConnectionError(f"Could not connect to Redis at {url}: {exc}") from exc

    logger.info("Redis connected")
    return client


async def close_redis(client: redis.Redis) -> None:
    """Close a client created by connect_redis()."""
    await client.aclose()
    logger.info("Redis disconnected")
