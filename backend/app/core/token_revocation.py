"""
Token Revocation System using Redis.

Implements token blacklisting so a JWT stops working as soon as the user
logs out, even before it expires.
"""

import logging

from backend.app.core.config import settings

logger = logging.getLogger(__name__)

# Redis key prefix for blacklisted tokens
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"


async def revoke_token(redis, token: str, user_id: int) -> bool:
    """
    Revoke a specific JWT token by adding it to the blacklist.

    Args:
        redis: Async Redis client
        token: The JWT token string to revoke
        user_id: User ID who owns the token

    Returns:
        True if successfully revoked, False otherwise
    """
    try:
        # Tokens expire on their own; the entry only has to outlive them
        ttl_seconds = settings.access_token_expire_minutes * 60
        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        await redis.setex(key, ttl_seconds, str(user_id))
        return True
    except Exception:
        logger.exception("Error revoking token for user %s", user_id)
        return False


async def is_token_revoked(redis, token: str) -> bool:
    """
    Check if a token has been revoked.

    If Redis is unreachable the request is allowed (fail-open).
    """
    try:
        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        exists = await redis.exists(key)
        return exists > 0
    except Exception:
        logger.exception("Error checking token revocation")
        return False
