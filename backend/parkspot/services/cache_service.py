"""
Redis cache for geohash range candidates.

CACHING STRATEGY
================

What we cache:
  - The raw spot records returned by one geohash range scan
  - Cache key pattern: "spots:range:{start}:{end}"

Why:
  - Every nearby search fans out into up to nine range scans, and drivers
    around the same place issue the same ranges over and over
  - Range keys are independent of the caller's exact position, so one
    cached range serves everyone whose search box overlaps it

What we never cache:
  - distance / driving_distance / estimated_time. They are relative to the
    caller and are recomputed on every search

Invalidation strategy:
  - On booking create/finish/cancel: the availability flag of a spot changed
  - On spot insert: a range gained a member
  - Either way all "spots:range:*" keys are dropped (prefix SCAN)
  - TTL as safety net

Known staleness:
  - A search that read its rows before a booking committed can store its
    range after that booking's invalidation. Until the TTL expires the
    range shows the spot as available. Booking still refuses it, and
    SpotService.nearest_available re-reads the flag before offering a spot

Redis is optional: when disabled or unreachable the cache reports misses
and the database stays authoritative.
"""

import json
from typing import Optional

import redis.asyncio as redis

from parkspot.core.config import Settings, get_settings
from parkspot.core.logging import get_logger
from parkspot.core.metrics import record_cache_operation

logger = get_logger(__name__)

KEY_PREFIX = "spots:range:"


def make_range_key(start: str, end: str) -> str:
    return f"{KEY_PREFIX}{start}:{end}"


class SpotListingCache:
    """Constructed once at startup and shared through app.state."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[redis.Redis] = None):
        self.settings = settings or get_settings()
        self._client = client

    async def connect(self) -> Optional[redis.Redis]:
        """Get or create the Redis connection. Returns None if Redis is disabled."""
        if self._client is not None:
            return self._client
        if not self.settings.REDIS_ENABLED:
            return None

        try:
            client = redis.from_url(
                self.settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await client.ping()
            logger.info("redis_connected", url=self.settings.REDIS_URL)
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            return None

        self._client = client
        return client

    async def close(self) -> None:
        """Close Redis connection on shutdown."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get_range(self, start: str, end: str) -> Optional[list[dict]]:
        client = await self.connect()
        if client is None:
            return None

        key = make_range_key(start, end)
        try:
            data = await client.get(key)
        except Exception as e:
            logger.error("cache_get_error", key=key, error=str(e))
            return None

        record_cache_operation("get", data is not None)
        if data is None:
            logger.debug("cache_miss", key=key)
            return None
        logger.debug("cache_hit", key=key)
        return json.loads(data)

    async def set_range(self, start: str, end: str, records: list[dict]) -> None:
        client = await self.connect()
        if client is None:
            return

        key = make_range_key(start, end)
        try:
            await client.setex(key, self.settings.REDIS_CACHE_TTL, json.dumps(records, default=str))
            logger.debug("cache_set", key=key, ttl=self.settings.REDIS_CACHE_TTL)
        except Exception as e:
            logger.error("cache_set_error", key=key, error=str(e))

    async def invalidate(self) -> None:
        """Drop every cached range."""
        client = await self.connect()
        if client is None:
            return

        try:
            deleted = 0
            async for key in client.scan_iter(match=f"{KEY_PREFIX}*", count=100):
                await client.delete(key)
                deleted += 1
            logger.info("cache_invalidated", keys_deleted=deleted)
        except Exception as e:
            logger.error("cache_invalidation_error", error=str(e))

    async def stats(self) -> dict:
        """Redis cache statistics for the health endpoint."""
        client = await self.connect()
        if client is None:
            return {"status": "disabled"}

        try:
            info = await client.info("stats")
            hits = info.get("keyspace_hits", 0)
            misses = info.get("keyspace_misses", 0)
            return {
                "status": "connected",
                "hits": hits,
                "misses": misses,
                "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
            }
        except Exception as e:
            return {"status": "error", "error": str(e)}
