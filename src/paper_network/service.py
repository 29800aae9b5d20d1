"""Network request handling for Paper-Network.

This is the entry point used by the HTTP/UI layer: it validates the request,
consults the cache, resolves the root paper, builds, ranks and labels the
network, and stores the result.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from paper_network.analysis.builder import NetworkBuilder
from paper_network.analysis.communities import label
from paper_network.analysis.ranking import rank
from paper_network.cache import NetworkCache, query_hash
from paper_network.config import get_config
from paper_network.errors import CacheConfigMissing, InvalidIdentifier, PaperNetworkError
from paper_network.models import (
    ErrorInfo,
    NetworkNode,
    NetworkRequest,
    NetworkResponse,
    NetworkResult,
    PaperRef,
)
from paper_network.source import PaperSource

if TYPE_CHECKING:
    from paper_network.config import Config
    from paper_network.source import PaperResolver

logger = logging.getLogger(__name__)

# Error codes surfaced at the boundary
MISSING_PAPER_ID = "MISSING_PAPER_ID"
PAPER_FETCH_FAILED = "PAPER_FETCH_FAILED"
NETWORK_BUILD_FAILED = "NETWORK_BUILD_FAILED"
INVALID_JSON = "INVALID_JSON"
SUPABASE_CONFIG_MISSING = "SUPABASE_CONFIG_MISSING"
INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


def error_response(code: str, message: str, status_code: int) -> NetworkResponse:
    return NetworkResponse(error=ErrorInfo(code=code, message=message), status_code=status_code)


def placeholder_network(paper_id: str) -> NetworkResult:
    """Single-node network standing in for a root that could not be built."""
    root = NetworkNode.from_ref(PaperRef(id=paper_id, title=paper_id), depth=0, is_root=True)
    return NetworkResult(nodes=[root], edges=[])


class NetworkService:
    """Builds (or loads from cache) the citation network for a request."""

    def __init__(
        self,
        config: Config | None = None,
        source: PaperResolver | None = None,
        cache: NetworkCache | None = None,
        resolution_interval: float | None = None,
    ):
        """Initialize the service.

        Args:
            config: Configuration; loaded from the default location if None.
            source: Paper resolver; a PaperSource is created if None.
            cache: Network cache; created from the ``cache`` config section if None.
            resolution_interval: Override of the minimum delay between resolutions.

        Raises:
            CacheConfigMissing: If the configured cache backend lacks credentials.
        """
        self.config = config or get_config()
        self.source = source if source is not None else PaperSource(self.config)
        self.cache = cache if cache is not None else NetworkCache(config=self.config)
        if resolution_interval is None:
            resolution_interval = self.config.resolution_interval
        self.builder = NetworkBuilder(self.source, resolution_interval=resolution_interval)

    async def close(self) -> None:
        close = getattr(self.source, "close", None)
        if close is not None:
            await close()
        await self.cache.close()

    async def __aenter__(self) -> NetworkService:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def fetch_network(self, payload: dict[str, Any] | str | bytes) -> NetworkResponse:
        """Handle a network request.

        Args:
            payload: Request body as a dict or raw JSON
                ``{"paper_id": ..., "depth": 1, "max_nodes": 200}``.

        Returns:
            NetworkResponse with data, or an error for malformed requests.
        """
        if isinstance(payload, (str, bytes)):
            try:
                payload = json.loads(payload)
            except ValueError as e:
                return error_response(INVALID_JSON, f"Request body is not valid JSON: {e}", 400)
        if not isinstance(payload, dict):
            return error_response(INVALID_JSON, "Request body must be a JSON object", 400)

        paper_id = payload.get("paper_id")
        if not isinstance(paper_id, str) or not paper_id.strip():
            return error_response(MISSING_PAPER_ID, "paper_id is required", 400)

        depth = payload.get("depth")
        max_nodes = payload.get("max_nodes")
        try:
            request = NetworkRequest(
                paper_id=paper_id,
                depth=self.config.default_depth if depth is None else depth,
                max_nodes=self.config.default_max_nodes if max_nodes is None else max_nodes,
            )
        except ValidationError as e:
            return error_response(NETWORK_BUILD_FAILED, f"Invalid network parameters: {e}", 400)

        try:
            return await self.handle(request)
        except InvalidIdentifier as e:
            return error_response(PAPER_FETCH_FAILED, e.message, 400)
        except Exception as e:
            logger.exception(f"Unexpected error handling network request for {request.paper_id}")
            return error_response(INTERNAL_SERVER_ERROR, str(e), 500)

    async def handle(self, request: NetworkRequest) -> NetworkResponse:
        """Serve a validated request.

        Raises:
            InvalidIdentifier: If the paper id cannot be classified.
        """
        key = query_hash(request.paper_id, request.depth, request.max_nodes)

        cached = await self.cache.get(key)
        if cached is not None:
            logger.info(f"Returning cached network for {request.paper_id} ({key})")
            return NetworkResponse(data=cached, cached=True)

        logger.info(
            f"Building network for {request.paper_id} "
            f"(depth={request.depth}, max_nodes={request.max_nodes})"
        )

        try:
            root = await self.source.resolve(request.paper_id)
        except InvalidIdentifier:
            raise
        except PaperNetworkError as e:
            logger.warning(f"Root paper {request.paper_id} could not be resolved: {e}")
            return NetworkResponse(
                data=placeholder_network(request.paper_id),
                warning=f"Root paper could not be fetched: {e}",
            )

        try:
            network = await self.builder.build(root, max_depth=request.depth, max_nodes=request.max_nodes)
        except Exception as e:
            logger.exception(f"Network build failed for {request.paper_id}")
            return NetworkResponse(
                data=placeholder_network(root.id),
                warning=f"Network build failed: {e}",
            )

        try:
            rank(network.nodes, network.edges)
        except Exception:
            logger.exception(f"Ranking failed for {root.id}, keeping default scores")

        try:
            label(network.nodes, network.edges)
        except Exception:
            logger.exception(f"Community labeling failed for {root.id}, keeping default clusters")

        await self.cache.put(key, root.id, network)

        logger.info(f"Network for {request.paper_id} has {len(network.nodes)} nodes and {len(network.edges)} edges")
        return NetworkResponse(data=network, cached=False)


async def fetch_paper_network(
    paper_id: str,
    depth: int = 1,
    max_nodes: int = 200,
    config: Config | None = None,
) -> NetworkResponse:
    """Convenience function to fetch one network with a fresh service.

    Returns:
        NetworkResponse; a SUPABASE_CONFIG_MISSING error if the cache backend
        is misconfigured.
    """
    try:
        service = NetworkService(config=config)
    except CacheConfigMissing as e:
        return error_response(SUPABASE_CONFIG_MISSING, e.message, 500)

    async with service:
        return await service.fetch_network({"paper_id": paper_id, "depth": depth, "max_nodes": max_nodes})
