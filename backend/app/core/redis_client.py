"""
Redis client initialization and connection management.

Redis holds the revoked-token blacklist.
"""

import logging

import redis.asyncio as redis
from backend.app.core.config import settings

logger = logging.getLogger(__name__)

# Create async Redis client
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    """FastAPI dependency returning the shared Redis client."""
    return redis_client


async def ping_redis(client=None) -> bool:
    """
    Test Redis connection.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        return await (client or redis_client).ping()
    except Exception:
        logger.warning("Redis ping failed", exc_info=True)
        return False
