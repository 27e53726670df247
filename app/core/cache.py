from typing import Optional

import redis

from app.core.config import settings

_redis_client = None


def get_redis_client() -> Optional[redis.Redis]:
    """Shared synchronous Redis client, or None when Redis is not configured."""
    global _redis_client
    if not settings.redis_url:
        return None
    if _redis_client is None:
        _redis_client = redis.Redis.from_url(settings.redis_url)
    return _redis_client
