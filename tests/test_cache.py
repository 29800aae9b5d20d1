"""Tests for the network cache."""

import hashlib
import json
from datetime import timedelta
from unittest.mock import AsyncMock

import httpx
import pytest

from paper_network.cache import (
    HASH_LENGTH,
    MemoryNetworkStore,
    NetworkCache,
    NullNetworkStore,
    SupabaseNetworkStore,
    create_store,
    query_hash,
)
from paper_network.config import CacheSettings
from paper_network.errors import CacheConfigMissing, CacheUnavailable
from paper_network.models import NetworkEdge, NetworkNode, NetworkResult, PaperRecord


@pytest.fixture
def network():
    """Two-node network."""
    root = NetworkNode.from_record(PaperRecord(id="P0", title="Root"), is_root=True)
    ref = NetworkNode.from_record(PaperRecord(id="R1", title="Ref"), depth=1)
    return NetworkResult(nodes=[root, ref], edges=[NetworkEdge(source="P0", target="R1", type="reference")])


def _supabase_store(handler):
    store = SupabaseNetworkStore("https://project.supabase.co/", "service-key")
    store._client = httpx.AsyncClient(
        base_url="https://project.supabase.co/rest/v1",
        transport=httpx.MockTransport(handler),
    )
    return store


class TestQueryHash:
    """Tests for query_hash."""

    def test_matches_sha256_prefix(self):
        expected = hashlib.sha256(b"P0_1_200").hexdigest()[:16]

        assert query_hash("P0", 1, 200) == expected
        assert len(query_hash("P0", 1, 200)) == HASH_LENGTH

    def test_deterministic(self):
        assert query_hash("10.1038/nature14539", 2, 50) == query_hash("10.1038/nature14539", 2, 50)

    def test_parameters_change_key(self):
        keys = {query_hash("P0", 1, 200), query_hash("P0", 2, 200), query_hash("P0", 1, 100), query_hash("P1", 1, 200)}

        assert len(keys) == 4


class TestNetworkCache:
    """Tests for NetworkCache over the memory store."""

    @pytest.mark.asyncio
    async def test_put_then_get(self, network, test_config):
        cache = NetworkCache(store=MemoryNetworkStore(), config=test_config)

        assert await cache.put("k", "P0", network) is True
        cached = await cache.get("k")

        assert cached == network
        assert cached is not network

    @pytest.mark.asyncio
    async def test_miss(self, test_config):
        cache = NetworkCache(store=MemoryNetworkStore(), config=test_config)

        assert await cache.get("absent") is None

    @pytest.mark.asyncio
    async def test_store_holds_wire_format(self, network, test_config):
        store = MemoryNetworkStore()
        cache = NetworkCache(store=store, config=test_config)

        await cache.put("k", "P0", network)

        assert len(store) == 1
        data = await store.get("k")
        assert data["edges"][0] == {"from": "P0", "to": "R1", "type": "reference", "weight": 1.0}

    @pytest.mark.asyncio
    async def test_read_failure_is_a_miss(self, test_config):
        store = AsyncMock()
        store.get.side_effect = CacheUnavailable("down")
        cache = NetworkCache(store=store, config=test_config)

        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_write_failure_reported(self, network, test_config):
        store = AsyncMock()
        store.put.side_effect = CacheUnavailable("down")
        cache = NetworkCache(store=store, config=test_config)

        assert await cache.put("k", "P0", network) is False

    @pytest.mark.asyncio
    async def test_unreadable_entry_is_a_miss(self, test_config):
        store = MemoryNetworkStore()
        await store.put("k", "P0", {"nodes": "garbage"}, timedelta(hours=1))
        cache = NetworkCache(store=store, config=test_config)

        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_ttl_from_config(self, network, test_config):
        store = AsyncMock()
        store.get.return_value = None
        cache = NetworkCache(store=store, config=test_config)

        await cache.put("k", "P0", network)

        assert store.put.await_args.args[3] == timedelta(hours=24)

    @pytest.mark.asyncio
    async def test_null_store(self, network, test_config):
        cache = NetworkCache(store=NullNetworkStore(), config=test_config)

        assert await cache.put("k", "P0", network) is True
        assert await cache.get("k") is None


class TestCreateStore:
    """Tests for backend selection."""

    def test_memory(self):
        assert isinstance(create_store(CacheSettings()), MemoryNetworkStore)

    def test_none(self):
        assert isinstance(create_store(CacheSettings(backend="none")), NullNetworkStore)

    def test_supabase_without_credentials(self):
        with pytest.raises(CacheConfigMissing):
            create_store(CacheSettings(backend="supabase", supabase_url="https://project.supabase.co"))

    @pytest.mark.asyncio
    async def test_supabase(self):
        store = create_store(
            CacheSettings(backend="supabase", supabase_url="https://project.supabase.co", supabase_service_role_key="k")
        )

        assert isinstance(store, SupabaseNetworkStore)
        assert store._client.headers["apikey"] == "k"
        assert store._client.headers["Authorization"] == "Bearer k"
        await store.close()


class TestSupabaseNetworkStore:
    """Tests for the Supabase REST backend."""

    @pytest.mark.asyncio
    async def test_get_hit(self, network):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=[{"network_data": network.to_dict()}])

        store = _supabase_store(handler)

        data = await store.get("abc123")

        assert data == network.to_dict()
        assert seen["path"] == "/rest/v1/paper_networks"
        assert seen["params"]["query_hash"] == "eq.abc123"
        assert seen["params"]["expires_at"].startswith("gt.")
        await store.close()

    @pytest.mark.asyncio
    async def test_get_miss(self):
        store = _supabase_store(lambda request: httpx.Response(200, json=[]))

        assert await store.get("abc123") is None
        await store.close()

    @pytest.mark.asyncio
    async def test_put_row(self, network):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["prefer"] = request.headers.get("Prefer")
            seen["body"] = json.loads(request.content)
            return httpx.Response(201)

        store = _supabase_store(handler)

        await store.put("abc123", "P0", network.to_dict(), timedelta(hours=24))

        assert seen["method"] == "POST"
        assert seen["prefer"] == "resolution=merge-duplicates"
        assert seen["body"]["query_hash"] == "abc123"
        assert seen["body"]["root_paper_id"] == "P0"
        assert seen["body"]["node_count"] == 2
        assert seen["body"]["edge_count"] == 1
        assert "expires_at" in seen["body"]
        await store.close()

    @pytest.mark.asyncio
    async def test_server_error_raises_cache_unavailable(self):
        store = _supabase_store(lambda request: httpx.Response(500))

        with pytest.raises(CacheUnavailable):
            await store.get("abc123")
        with pytest.raises(CacheUnavailable):
            await store.put("abc123", "P0", {"nodes": [], "edges": []}, timedelta(hours=1))
        await store.close()

    @pytest.mark.asyncio
    async def test_cache_recovers_from_backend_failure(self, network, test_config):
        cache = NetworkCache(store=_supabase_store(lambda request: httpx.Response(503)), config=test_config)

        assert await cache.get("abc123") is None
        assert await cache.put("abc123", "P0", network) is False
        await cache.close()

    @pytest.mark.asyncio
    async def test_html_body_is_a_miss(self, test_config):
        """A gateway page served with 200 does not escape the cache."""
        store = _supabase_store(lambda request: httpx.Response(200, text="<html>gateway</html>"))
        cache = NetworkCache(store=store, config=test_config)

        assert await cache.get("abc") is None
        await cache.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [{"unexpected": "object"}, [{"network_data": "not a network"}], "rows"],
    )
    async def test_malformed_rows_raise_cache_unavailable(self, payload):
        store = _supabase_store(lambda request: httpx.Response(200, json=payload))

        with pytest.raises(CacheUnavailable):
            await store.get("abc")
        await store.close()
