from redis import asyncio as aioredis
import json
from typing import Optional, Any
from massage_backend.config import Config

CACHE_EXPIRY = 300  # 5 minutes for general cache

token_blocklist = aioredis.from_url(Config.REDIS_URL)
cache = aioredis.from_url(Config.REDIS_URL, db=1)  # Use different DB for caching


async def token_in_blocklist(jti:str) -> bool:
    jti = await token_blocklist.get(jti)
    return jti is not None


# Cache functions
async def get_cache(key: str) -> Optional[Any]:
    """Get value from cache"""
    try:
        value = await cache.get(key)
        if value:
            return json.loads(value)
        return None
    except Exception:
        return None


async def set_cache(key: str, value: Any, expiry: int = CACHE_EXPIRY) -> None:
    """Set value in cache"""
    try:
        await cache.set(key, json.dumps(value, default=str), ex=expiry)
    except Exception:
        pass  # cache is optional


async def delete_cache(key: str) -> None:
    """Delete value from cache"""
    try:
        await cache.delete(key)
    except Exception:
        pass
