"""
Redis cache client with connection pooling and JSON serialization.
"""
import json
from typing import Optional, Any, List
from redis import asyncio as aioredis
from devevent.core.config import settings
from devevent.core.logging import logger


class RedisCache:
    """
    Async Redis cache client with connection pooling.

    Every failure is logged and reported as a miss; a disabled cache is a
    pass-through that never touches Redis.
    """
    
    def __init__(self, url: str = settings.REDIS_URL, enabled: bool = settings.CACHE_ENABLED):
        self.url = url
        self.enabled = enabled
        self._pool: Optional[aioredis.ConnectionPool] = None
        self._client: Optional[aioredis.Redis] = None
    
    def _get_client(self) -> aioredis.Redis:
        """Get or create Redis client with connection pooling."""
        if self._client is None:
            self._pool = aioredis.ConnectionPool.from_url(
                self.url,
                decode_responses=True,
                max_connections=20,
                socket_connect_timeout=2,
            )
            self._client = aioredis.Redis(connection_pool=self._pool)
            logger.info("Redis connection pool created")
        return self._client
    
    async def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache by key.
        
        Returns:
            Cached value or None if not found
        """
        if not self.enabled:
            return None
        try:
            client = self._get_client()
            value = await client.get(key)
            if value:
                return json.loads(value)
            return None
        except Exception as e:
            logger.error(f"Redis GET error for key {key}: {e}")
            return None
    
    async def set(self, key: str, value: Any, expire: int = settings.CACHE_TTL_SECONDS) -> bool:
        """
        Set value in cache with expiration.
        
        Args:
            key: Cache key
            value: Value to cache (will be JSON serialized)
            expire: Expiration time in seconds
            
        Returns:
            True if successful, False otherwise
        """
        if not self.enabled:
            return False
        try:
            client = self._get_client()
            serialized = json.dumps(value, default=str)
            await client.setex(key, expire, serialized)
            return True
        except Exception as e:
            logger.error(f"Redis SET error for key {key}: {e}")
            return False
    
    async def delete_pattern(self, pattern: str) -> int:
        """
        Delete all keys matching pattern.

        Keys are collected with SCAN so a large keyspace never stalls Redis.
        
        Args:
            pattern: Key pattern (e.g., 'events:feed:*')
            
        Returns:
            Number of keys deleted
        """
        if not self.enabled:
            return 0
        try:
            client = self._get_client()
            keys: List[str] = [key async for key in client.scan_iter(match=pattern)]
            if keys:
                return await client.delete(*keys)
            return 0
        except Exception as e:
            logger.error(f"Redis DELETE_PATTERN error for pattern {pattern}: {e}")
            return 0
    
    async def close(self):
        """Close Redis connection pool."""
        if self._client:
            client, pool = self._client, self._pool
            self._client = None
            self._pool = None
            await client.aclose()
            await pool.disconnect()
            logger.info("Redis connection pool closed")


cache = RedisCache()
