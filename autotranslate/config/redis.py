"""
Shared redis client.

Only the settings propagation (``channel:settings``) talks to redis, so the
client is created lazily on first use and closed by the application lifespan.
"""
from typing import Optional
import redis.asyncio as redis
from autotranslate.config.settings import Settings, settings

_redis: Optional[redis.Redis] = None


def build_redis_url(config: Settings) -> str:
    auth = f":{config.REDIS_PASSWORD}@" if config.REDIS_PASSWORD else ""
    return f"redis://{auth}{config.REDIS_HOST}:{config.REDIS_PORT}/{config.REDIS_DB}"


async def get_redis() -> redis.Redis:
    global _redis
    if _redis is None:
        _redis = redis.Redis.from_url(build_redis_url(settings), decode_responses=True)
    return _redis


async def close_redis():
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None
