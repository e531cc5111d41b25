"""Redis client factory and the scheduler run lease.

The lease only keeps overlapping scheduler runs from duplicating oracle and
payout-rail traffic. PostgreSQL conditional writes stay the sole guard for
round and wager state.
"""

import uuid

import redis.asyncio as aioredis

from config.settings import settings

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Get or create the Redis connection pool."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
        )
    return _redis_pool


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is not None:
        await _redis_pool.close()
        _redis_pool = None


async def acquire_lease(redis: aioredis.Redis, key: str, ttl_seconds: int) -> str | None:
    """SET key NX with a TTL. Returns the lease token, or None if already held."""
    token = uuid.uuid4().hex
    acquired = await redis.set(key, token, nx=True, ex=ttl_seconds)
    return token if acquired else None


async def release_lease(redis: aioredis.Redis, key: str, token: str) -> None:
    """Delete the lease only if we still hold it (it may have expired and been re-taken)."""
    if await redis.get(key) == token:
        await redis.delete(key)
