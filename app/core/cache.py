# app/core/cache.py
import json
import functools
import redis
from core.errors import UpstreamUnavailable


def _upstream(fn):
    @functools.wraps(fn)
    def wrap(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except redis.RedisError as e:
            raise UpstreamUnavailable("Cache is unavailable", meta={"backend": "redis"}) from e
    return wrap


class JsonCache:
    """Thin JSON read-through cache over a Redis client."""

    def __init__(self, client, ttl: int, prefix: str = "tenantgate"):
        self.client = client
        self.ttl = ttl
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    @_upstream
    def get(self, key: str):
        hit = self.client.get(self._key(key))
        return json.loads(hit) if hit is not None else None

    @_upstream
    def set(self, key: str, value) -> None:
        self.client.setex(self._key(key), self.ttl, json.dumps(value, default=str))

    @_upstream
    def invalidate(self, *keys: str) -> int:
        if not keys:
            return 0
        return self.client.delete(*(self._key(k) for k in keys))
