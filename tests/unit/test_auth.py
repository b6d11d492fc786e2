"""Tests for API key helpers and the tenant cache."""

import json
import uuid
from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import RedisError

from hostnote.api.middleware.auth import (
    TenantContext,
    hash_api_key,
    lookup_tenant,
    mask_api_key,
)
from hostnote.infra.redis import TenantCache


@pytest.fixture
def context():
    return TenantContext(
        id=uuid.UUID("00000000-0000-0000-0000-00000000000a"),
        slug="club-a",
        status="active",
    )


@pytest.fixture
def mock_redis():
    mock = AsyncMock()
    mock.get = AsyncMock(return_value=None)
    mock.setex = AsyncMock()
    mock.delete = AsyncMock(return_value=1)
    return mock


class TestApiKeyHelpers:
    def test_hash_is_stable_sha256(self):
        assert hash_api_key("hn_live_abc") == hash_api_key("hn_live_abc")
        assert len(hash_api_key("hn_live_abc")) == 64

    def test_mask(self):
        assert mask_api_key("hn_live_abcdefghijklmnop") == "hn_live_abc...nop"
        assert mask_api_key("short") == "***"


class TestTenantContext:
    def test_document_round_trip(self, context):
        restored = TenantContext.from_document(json.loads(json.dumps(context.to_document())))
        assert restored == context

    def test_is_active(self, context):
        assert context.is_active
        assert not TenantContext(id=context.id, slug="c", status="suspended").is_active


class TestTenantCache:
    """Test cache reads and writes, including degraded mode."""

    @pytest.mark.asyncio
    async def test_miss_without_redis(self):
        cache = TenantCache(None, 300)

        assert await cache.get("hash") is None
        await cache.put("hash", {"id": "x"})

    @pytest.mark.asyncio
    async def test_hit(self, mock_redis, context):
        mock_redis.get = AsyncMock(return_value=json.dumps(context.to_document()))
        cache = TenantCache(mock_redis, 300)

        document = await cache.get("hash")

        assert document["slug"] == "club-a"
        mock_redis.get.assert_awaited_once_with("hostnote:v1:tenant:hash")

    @pytest.mark.asyncio
    async def test_read_error_is_a_miss(self, mock_redis):
        mock_redis.get = AsyncMock(side_effect=RedisError("down"))

        assert await TenantCache(mock_redis, 300).get("hash") is None

    @pytest.mark.asyncio
    async def test_put_uses_ttl(self, mock_redis, context):
        await TenantCache(mock_redis, 120).put("hash", context.to_document())

        key, ttl, payload = mock_redis.setex.call_args.args
        assert key == "hostnote:v1:tenant:hash"
        assert ttl == 120
        assert json.loads(payload)["status"] == "active"

    @pytest.mark.asyncio
    async def test_write_error_is_swallowed(self, mock_redis):
        mock_redis.setex = AsyncMock(side_effect=RedisError("down"))

        await TenantCache(mock_redis, 120).put("hash", {"id": "x"})

    @pytest.mark.asyncio
    async def test_evict(self, mock_redis):
        await TenantCache(mock_redis, 120).evict("hash")

        mock_redis.delete.assert_awaited_once_with("hostnote:v1:tenant:hash")


class TestLookupTenant:
    @pytest.mark.asyncio
    async def test_cache_hit_skips_database(self, mock_redis, context):
        mock_redis.get = AsyncMock(return_value=json.dumps(context.to_document()))
        db = AsyncMock()

        with patch(
            "hostnote.api.middleware.auth.get_tenant_cache",
            AsyncMock(return_value=TenantCache(mock_redis, 300)),
        ):
            resolved = await lookup_tenant("hash", db)

        assert resolved == context
        db.execute.assert_not_awaited()
