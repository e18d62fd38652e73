"""
Cache decorators for service-level read results.
"""
import hashlib
import json
from functools import wraps
from typing import Callable, Any
from devevent.cache.redis_client import cache
from devevent.core.config import settings
from devevent.core.logging import logger


def cached(key_prefix: str, expire: int = settings.CACHE_TTL_SECONDS):
    """
    Decorator to cache JSON-serializable results of async functions.
    
    Args:
        key_prefix: Prefix for the cache key
        expire: Expiration time in seconds
        
    Usage:
        @cached('events:feed')
        async def get_event_feed(self, page, limit):
            return feed
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            args_key = _generate_key_from_args(args, kwargs)
            cache_key = f"{key_prefix}:{args_key}"
            
            cached_value = await cache.get(cache_key)
            if cached_value is not None:
                logger.debug(f"Cache hit for key: {cache_key}")
                return cached_value
            
            logger.debug(f"Cache miss for key: {cache_key}")
            result = await func(*args, **kwargs)
            
            await cache.set(cache_key, result, expire)
            
            return result
        return wrapper
    return decorator


def _generate_key_from_args(args: tuple, kwargs: dict) -> str:
    """
    Generate a cache key from function arguments.
    
    Services and database sessions are skipped so the key depends only on
    the query itself.
    
    Returns:
        MD5 hash of the arguments
    """
    filtered_args = []
    for arg in args:
        arg_type = type(arg).__name__
        if 'Session' not in arg_type and 'Service' not in arg_type:
            filtered_args.append(arg)
    
    key_data = {
        'args': [str(arg) for arg in filtered_args],
        'kwargs': {k: str(v) for k, v in kwargs.items()}
    }
    key_string = json.dumps(key_data, sort_keys=True)
    
    return hashlib.md5(key_string.encode()).hexdigest()
