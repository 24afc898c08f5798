"""
Dashboard Cache - Redis read-through cache for dashboard views

Settlements call invalidate() after they commit so the next dashboard read
refetches from the database. The cache is an optimisation only: a Redis
outage is logged and the caller falls back to the database.
"""
import enum
import json
from typing import Any, Optional

from redis.exceptions import RedisError

from thdrive.core import redis_client
from thdrive.core.config import settings
from thdrive.core.logging import get_logger

logger = get_logger(__name__)


class DashboardScope(str, enum.Enum):
    DRIVER = "driver"
    WALLET = "wallet"


class DashboardCache:
    """JSON blobs keyed by dashboard:<scope>:<user_id>"""

    KEY_PREFIX = "dashboard"

    def __init__(self, ttl_seconds: int | None = None):
        self.ttl_seconds = ttl_seconds or settings.DASHBOARD_CACHE_TTL_SECONDS

    @classmethod
    def key(cls, scope: DashboardScope, user_id: int) -> str:
        return f"{cls.KEY_PREFIX}:{DashboardScope(scope).value}:{user_id}"

    async def get(self, scope: DashboardScope, user_id: int) -> Optional[dict[str, Any]]:
        key = self.key(scope, user_id)
        try:
            client = await redis_client.get_redis()
            raw = await client.get(key)
        except (RedisError, OSError) as e:
            logger.warning(
                "Dashboard cache read failed",
                extra_data={"key": key, "error": str(e)}
            )
            return None
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, scope: DashboardScope, user_id: int, payload: dict[str, Any]) -> None:
        key = self.key(scope, user_id)
        try:
            client = await redis_client.get_redis()
            await client.set(key, json.dumps(payload, default=str), ex=self.ttl_seconds)
        except (RedisError, OSError) as e:
            logger.warning(
                "Dashboard cache write failed",
                extra_data={"key": key, "error": str(e)}
            )

    async def invalidate(self, scope: DashboardScope, *user_ids: int) -> None:
        """Drop cached views so dependent dashboards refetch after a settlement"""
        keys = [self.key(scope, user_id) for user_id in user_ids if user_id is not None]
        if not keys:
            return
        try:
            client = await redis_client.get_redis()
            await client.delete(*keys)
        except (RedisError, OSError) as e:
            logger.warning(
                "Dashboard cache invalidation failed",
                extra_data={"keys": keys, "error": str(e)}
            )
            return
        logger.debug("Dashboard cache invalidated", extra_data={"keys": keys})
