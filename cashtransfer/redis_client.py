"""
Redis connection setup using redis-py async client.

Provides a shared redis instance used to hold fee quotes until they expire.
"""

import redis.asyncio as aioredis

from cashtransfer.config import settings

redis = aioredis.from_url(
    settings.REDIS_URL,
    decode_responses=True,
    ssl=settings.REDIS_SSL,
)


async def get_redis() -> aioredis.Redis:
    """FastAPI dependency that provides the Redis client."""
    return redis
