from cachetools import TTLCache
import redis
from .config import settings

# Counters live one rate-limit window plus slack
COUNTER_TTL_SECONDS = 120

# In-process store for local dev and single-worker deployments.
_local_cache = TTLCache(maxsize=4096, ttl=COUNTER_TTL_SECONDS)

class Cache:
    """
    Thin abstraction over Redis/in-memory so swapping is one flag away.
    """
    def __init__(self):
        self.backend = None
        if settings.USE_REDIS:
            self.backend = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)

    def incr(self, key: str) -> int:
        """Increment a counter and return its new value."""
        if self.backend:
            # INCR + EXPIRE in one round trip
            pipe = self.backend.pipeline()
            pipe.incr(key)
            pipe.expire(key, COUNTER_TTL_SECONDS)
            count, _ = pipe.execute()
            return int(count)
        count = _local_cache.get(key, 0) + 1
        _local_cache[key] = count
        return count

    def clear(self) -> None:
        """Drop the in-process entries (tests, local dev)."""
        _local_cache.clear()

cache = Cache()
