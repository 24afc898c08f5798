"""
Redis Client - async singleton backing the dashboard cache.

Connects and reads are bounded by REDIS_SOCKET_TIMEOUT_SECONDS so a slow cache
surfaces as a RedisError the cache layer can log, not a stalled settlement.
"""
import asyncio
from urllib.parse import urlparse

import redis.asyncio as aioredis

from thdrive.core.config import settings
from thdrive.core.logging import get_logger

logger = get_logger(__name__)

_redis_client: aioredis.Redis | None = None
_init_lock = asyncio.Lock()


def _mask_redis_url(url: str) -> str:
    """Hide the password in REDIS_URL before it reaches the logs"""
    parsed = urlparse(url)
    if parsed.password:
        return url.replace(f":{parsed.password}@", ":****@")
    return url


async def get_redis() -> aioredis.Redis:
    """
    Return the shared Redis client, connecting on first use.

    A client whose first ping fails is closed and not kept, so the next call
    tries again.
    """
    global _redis_client
    if _redis_client is not None:
        return _redis_client

    async with _init_lock:
        if _redis_client is not None:
            return _redis_client

        client = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
        )
        try:
            await client.ping()
        except Exception:
            await client.aclose()
            logger.warning("Redis unreachable", extra_data={
                "url": _mask_redis_url(settings.REDIS_URL),
            })
            raise
        _redis_client = client
        logger.info("Redis client initialized", extra_data={
            "url": _mask_redis_url(settings.REDIS_URL),
        })
    return _redis_client


async def close_redis() -> None:
    """Close the shared client on app shutdown and at the end of worker tasks"""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
        logger.info("Redis connection closed")
