"""Network cache for Paper-Network.

Built networks are stored under a content hash of the request parameters.
The cache is best effort: read failures count as misses and write failures
are logged, never raised.
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Protocol

import httpx
from cachetools import TTLCache

from paper_network.config import get_config
from paper_network.errors import CacheConfigMissing, CacheUnavailable
from paper_network.models import NetworkResult

if TYPE_CHECKING:
    from paper_network.config import CacheSettings, Config

logger = logging.getLogger(__name__)

HASH_LENGTH = 16


def query_hash(paper_id: str, depth: int, max_nodes: int) -> str:
    """Deterministic cache key for a network request."""
    query = f"{paper_id}_{depth}_{max_nodes}"
    return hashlib.sha256(query.encode()).hexdigest()[:HASH_LENGTH]


class NetworkStore(Protocol):
    """Key-value backend holding serialized networks with an expiry."""

    async def get(self, key: str) -> dict[str, Any] | None: ...

    async def put(self, key: str, root_id: str, network: dict[str, Any], ttl: timedelta) -> None: ...


class MemoryNetworkStore:
    """In-process store backed by a cachetools TTLCache."""

    def __init__(self, maxsize: int = 256, ttl: timedelta = timedelta(hours=24)):
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl.total_seconds())

    def __len__(self) -> int:
        return len(self._cache)

    async def get(self, key: str) -> dict[str, Any] | None:
        entry = self._cache.get(key)
        return entry["network_data"] if entry else None

    async def put(self, key: str, root_id: str, network: dict[str, Any], ttl: timedelta) -> None:
        # TTLCache applies its own ttl; entries share the store-wide expiry
        self._cache[key] = {"root_paper_id": root_id, "network_data": network}


class SupabaseNetworkStore:
    """Store backed by the ``paper_networks`` table of a Supabase project (PostgREST)."""

    def __init__(self, url: str | None, service_role_key: str | None, table: str = "paper_networks", timeout: float = 15):
        if not url or not service_role_key:
            raise CacheConfigMissing("Supabase URL and service role key are required for the cache")
        self.url = url.rstrip("/")
        self.table = table
        self._client = httpx.AsyncClient(
            base_url=f"{self.url}/rest/v1",
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {service_role_key}",
                "apikey": service_role_key,
            },
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def get(self, key: str) -> dict[str, Any] | None:
        now = datetime.now(timezone.utc).isoformat()
        try:
            response = await self._client.get(
                f"/{self.table}",
                params={
                    "query_hash": f"eq.{key}",
                    "expires_at": f"gt.{now}",
                    "select": "network_data",
                    "limit": 1,
                },
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise CacheUnavailable(f"Cache read failed: {e}") from e

        try:
            rows = response.json()
        except ValueError as e:
            raise CacheUnavailable(f"Cache read returned a malformed body: {e}") from e
        if not isinstance(rows, list):
            raise CacheUnavailable(f"Cache read returned {type(rows).__name__}, expected a list of rows")
        if not rows:
            return None
        row = rows[0]
        data = row.get("network_data") if isinstance(row, dict) else None
        if data is not None and not isinstance(data, dict):
            raise CacheUnavailable(f"Cache row for {key} holds no network object")
        return data

    async def put(self, key: str, root_id: str, network: dict[str, Any], ttl: timedelta) -> None:
        expires_at = datetime.now(timezone.utc) + ttl
        try:
            response = await self._client.post(
                f"/{self.table}",
                json={
                    "query_hash": key,
                    "root_paper_id": root_id,
                    "network_data": network,
                    "node_count": len(network.get("nodes", [])),
                    "edge_count": len(network.get("edges", [])),
                    "expires_at": expires_at.isoformat(),
                },
                headers={"Prefer": "resolution=merge-duplicates"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise CacheUnavailable(f"Cache write failed: {e}") from e


class NullNetworkStore:
    """Store that never holds anything (caching disabled)."""

    async def get(self, key: str) -> dict[str, Any] | None:
        return None

    async def put(self, key: str, root_id: str, network: dict[str, Any], ttl: timedelta) -> None:
        return None


def create_store(settings: CacheSettings, request_timeout: float = 15) -> NetworkStore:
    """Create the store selected by the ``cache`` config section.

    Raises:
        CacheConfigMissing: If the Supabase backend is selected without credentials.
    """
    if settings.backend == "supabase":
        return SupabaseNetworkStore(
            settings.supabase_url,
            settings.supabase_service_role_key,
            table=settings.table,
            timeout=request_timeout,
        )
    if settings.backend == "none":
        return NullNetworkStore()
    return MemoryNetworkStore(maxsize=settings.max_entries, ttl=timedelta(hours=settings.ttl_hours))


class NetworkCache:
    """Content-addressed cache of built networks."""

    def __init__(self, store: NetworkStore | None = None, ttl: timedelta | None = None, config: Config | None = None):
        config = config or get_config()
        self.store = store if store is not None else create_store(config.cache, config.request_timeout)
        self.ttl = ttl or timedelta(hours=config.cache.ttl_hours)

    async def close(self) -> None:
        close = getattr(self.store, "close", None)
        if close is not None:
            await close()

    async def get(self, key: str) -> NetworkResult | None:
        """Return the cached network for ``key``, or None on miss, expiry or failure."""
        try:
            data = await self.store.get(key)
        except CacheUnavailable as e:
            logger.warning(f"Cache lookup failed for {key}: {e}")
            return None
        if data is None:
            return None

        try:
            return NetworkResult.from_dict(data)
        except ValueError as e:
            logger.warning(f"Discarding unreadable cache entry {key}: {e}")
            return None

    async def put(self, key: str, root_id: str, result: NetworkResult) -> bool:
        """Store a network. Failures are logged and reported as False."""
        try:
            await self.store.put(key, root_id, result.to_dict(), self.ttl)
        except CacheUnavailable as e:
            logger.warning(f"Failed to cache network {key}: {e}")
            return False
        logger.debug(f"Cached network {key} for root {root_id}")
        return True
