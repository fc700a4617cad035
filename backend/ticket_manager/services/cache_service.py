"""
Read-through Redis cache for the game schedule listing.

Only ``GET /api/games`` responses are cached, keyed by the listing filters
under the ``games:list:`` prefix. Ticket inventory, requests and
allocations always come from the database: an admin must never allocate
against a stale copy of inventory.

Every cached listing is dropped when the schedule feed is ingested; the
TTL covers anything that slips past that.

Redis is optional. When it is disabled or unreachable each call behaves as
a miss and the database answers.
"""

import json
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError
from ticket_manager.core.config import get_settings
from ticket_manager.core.logging import get_logger
from ticket_manager.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

GAME_LIST_PREFIX = "games:list:"

_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Lazily connect; None means caching is off for this call."""
    global _client

    if not settings.REDIS_ENABLED:
        return None
    if _client is not None:
        return _client

    candidate = redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )
    try:
        await candidate.ping()
    except (RedisError, OSError) as e:
        logger.warning("redis_unavailable", url=settings.REDIS_URL, error=str(e))
        await candidate.aclose()
        return None

    logger.info("redis_connected", url=settings.REDIS_URL)
    _client = candidate
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


def game_list_key(month: Optional[int], home_only: bool) -> str:
    month_part = month if month is not None else "all"
    return f"{GAME_LIST_PREFIX}month={month_part}&home={int(home_only)}"


async def get_cached_games(month: Optional[int], home_only: bool) -> Optional[list]:
    client = await get_redis()
    if client is None:
        return None

    key = game_list_key(month, home_only)
    try:
        raw = await client.get(key)
    except RedisError as e:
        logger.warning("cache_read_failed", key=key, error=str(e))
        return None

    record_cache_operation("get", hit=raw is not None)
    return json.loads(raw) if raw is not None else None


async def set_cached_games(month: Optional[int], home_only: bool, games: list) -> None:
    client = await get_redis()
    if client is None:
        return

    key = game_list_key(month, home_only)
    try:
        await client.set(key, json.dumps(games), ex=settings.REDIS_CACHE_TTL)
    except RedisError as e:
        logger.warning("cache_write_failed", key=key, error=str(e))
        return
    record_cache_operation("set", hit=False)


async def invalidate_schedule_cache() -> int:
    """Delete every cached listing. Returns the number of keys removed."""
    client = await get_redis()
    if client is None:
        return 0

    try:
        keys = [key async for key in client.scan_iter(match=f"{GAME_LIST_PREFIX}*", count=100)]
        removed = await client.delete(*keys) if keys else 0
    except RedisError as e:
        logger.warning("cache_invalidation_failed", error=str(e))
        return 0

    logger.info("schedule_cache_invalidated", keys_deleted=removed)
    return removed


async def get_cache_stats() -> dict:
    client = await get_redis()
    if client is None:
        return {"status": "disabled"}

    try:
        stats = await client.info("stats")
        listings = [key async for key in client.scan_iter(match=f"{GAME_LIST_PREFIX}*", count=100)]
    except RedisError as e:
        return {"status": "error", "error": str(e)}

    hits = stats.get("keyspace_hits", 0)
    misses = stats.get("keyspace_misses", 0)
    return {
        "status": "connected",
        "cached_listings": len(listings),
        "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
    }
