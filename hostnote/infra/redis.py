"""
Redis access for the tenant lookup cache.

Redis is optional. When it cannot be reached the cache reads as a miss,
writes are skipped, and tenant resolution falls through to the database.
"""

import json
import logging
from typing import Optional

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import RedisError

from hostnote.config import settings

logger = logging.getLogger(__name__)

# Namespace for all keys written by this service
APP_PREFIX = "hostnote:v1:"


class RedisClient:
    """Process-wide Redis connection, created on first use."""

    _client: Optional[Redis] = None

    @classmethod
    async def get_client(cls) -> Optional[Redis]:
        """Return the shared client, or None when Redis is unreachable."""
        if cls._client is not None:
            return cls._client

        client = redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=2.0,
            socket_timeout=2.0,
            retry=Retry(ExponentialBackoff(cap=1.0), retries=2),
        )
        try:
            await client.ping()
        except RedisError as e:
            logger.warning(f"Redis unavailable, tenant cache disabled | URL: {settings.redis_url} | Error: {e}")
            await client.aclose()
            return None

        cls._client = client
        return client

    @classmethod
    async def close(cls) -> None:
        if cls._client is None:
            return
        try:
            await cls._client.aclose()
        except RedisError as e:
            logger.warning(f"Error closing Redis connection: {e}")
        finally:
            cls._client = None


class TenantCache:
    """
    Resolved tenants keyed by API key hash.

    Key: hostnote:v1:tenant:{sha256 of api key}
    Value: JSON document of the tenant fields auth needs
    """

    PREFIX = f"{APP_PREFIX}tenant:"

    def __init__(self, client: Optional[Redis], ttl_seconds: int):
        self.client = client
        self.ttl_seconds = ttl_seconds

    def _key(self, key_hash: str) -> str:
        return f"{self.PREFIX}{key_hash}"

    async def get(self, key_hash: str) -> Optional[dict]:
        if self.client is None:
            return None
        try:
            raw = await self.client.get(self._key(key_hash))
        except RedisError as e:
            logger.warning(f"Tenant cache read failed: {e}")
            return None
        return json.loads(raw) if raw is not None else None

    async def put(self, key_hash: str, document: dict) -> None:
        if self.client is None:
            return
        try:
            await self.client.setex(self._key(key_hash), self.ttl_seconds, json.dumps(document))
        except RedisError as e:
            logger.warning(f"Tenant cache write failed: {e}")

    async def evict(self, key_hash: str) -> None:
        """Drop a cached tenant, e.g. after its key is rotated or it is suspended."""
        if self.client is None:
            return
        try:
            await self.client.delete(self._key(key_hash))
        except RedisError as e:
            logger.warning(f"Tenant cache evict failed: {e}")


async def get_tenant_cache() -> TenantCache:
    return TenantCache(await RedisClient.get_client(), settings.auth_cache_ttl)


async def check_redis_health() -> bool:
    client = await RedisClient.get_client()
    if client is None:
        return False
    try:
        await client.ping()
    except RedisError as e:
        logger.warning(f"Redis health check failed: {e}")
        return False
    return True
