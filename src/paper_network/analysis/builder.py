"""Citation network construction for Paper-Network.

This module expands a root paper into a bounded network of the papers it
references and the papers citing it, breadth first.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from paper_network.errors import PaperNetworkError
from paper_network.models import EdgeType, NetworkEdge, NetworkNode, NetworkResult
from paper_network.utils import RateLimiter

if TYPE_CHECKING:
    from paper_network.models import PaperRecord, PaperRef
    from paper_network.source import PaperResolver

logger = logging.getLogger(__name__)

# Per-paper fan-out caps, indexed by the depth of the paper being expanded
REFERENCE_CAPS: dict[int, int] = {0: 20, 1: 15, 2: 10}
REFERENCE_CAP_DEFAULT = 5
CITATION_CAPS: dict[int, int] = {0: 15, 1: 8, 2: 3}
CITATION_CAP_DEFAULT = 0

# Papers found through "cited by" lists are only expanded in the first levels
CITATION_EXPANSION_LEVELS = 2


def reference_cap(depth: int) -> int:
    return REFERENCE_CAPS.get(depth, REFERENCE_CAP_DEFAULT)


def citation_cap(depth: int) -> int:
    return CITATION_CAPS.get(depth, CITATION_CAP_DEFAULT)


@dataclass
class _Traversal:
    """Mutable state of a single build."""

    max_depth: int
    max_nodes: int
    nodes: dict[str, NetworkNode] = field(default_factory=dict)
    edges: list[NetworkEdge] = field(default_factory=list)
    edge_keys: set[tuple[str, str, str]] = field(default_factory=set)
    queue: deque[tuple[str, PaperRecord, int]] = field(default_factory=deque)
    resolved: int = 0
    degraded: int = 0

    @property
    def full(self) -> bool:
        return len(self.nodes) >= self.max_nodes

    def add_edge(self, source: str, target: str, edge_type: EdgeType) -> None:
        key = (source, target, edge_type)
        if key in self.edge_keys:
            return
        self.edge_keys.add(key)
        self.edges.append(NetworkEdge(source=source, target=target, type=edge_type))

    def result(self) -> NetworkResult:
        return NetworkResult(nodes=list(self.nodes.values()), edges=self.edges)


class NetworkBuilder:
    """Builds bounded citation networks around a root paper.

    Resolutions are issued one at a time, spaced by ``resolution_interval``
    seconds. A reference or citation that cannot be resolved still becomes
    a (degraded) node so that no recorded edge points at a missing node.
    """

    def __init__(self, source: PaperResolver, resolution_interval: float = 1.0):
        """Initialize the builder.

        Args:
            source: Resolver used for every newly discovered paper.
            resolution_interval: Minimum seconds between consecutive resolutions.
        """
        self.source = source
        self.resolution_interval = resolution_interval

    async def build(self, root: PaperRecord, max_depth: int = 1, max_nodes: int = 200) -> NetworkResult:
        """Build the network around an already resolved root paper.

        Args:
            root: The resolved root paper.
            max_depth: Maximum traversal depth (1 = direct neighbors only).
            max_nodes: Node budget, root included.

        Returns:
            NetworkResult with nodes in discovery order.
        """
        if max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {max_depth}")
        if max_nodes < 1:
            raise ValueError(f"max_nodes must be >= 1, got {max_nodes}")

        state = _Traversal(max_depth=max_depth, max_nodes=max_nodes)
        limiter = RateLimiter(self.resolution_interval, name="builder")

        state.nodes[root.id] = NetworkNode.from_record(root, depth=0, is_root=True)
        state.queue.append((root.id, root, 0))

        while state.queue and not state.full:
            paper_id, paper, depth = state.queue.popleft()
            if depth >= max_depth:
                continue

            for ref in paper.references[: reference_cap(depth)]:
                if state.full:
                    break
                state.add_edge(paper_id, ref.id, "reference")
                if ref.id not in state.nodes:
                    await self._discover(state, limiter, ref, depth + 1, expand_below=max_depth)

            citation_expand_below = min(max_depth, CITATION_EXPANSION_LEVELS)
            for cite in paper.citations[: citation_cap(depth)]:
                if state.full:
                    break
                state.add_edge(cite.id, paper_id, "citation")
                if cite.id not in state.nodes:
                    await self._discover(
                        state, limiter, cite, depth + 1, expand_below=citation_expand_below
                    )

            logger.debug(
                f"Expanded {paper_id} at depth {depth}: "
                f"{len(state.nodes)} nodes, {len(state.edges)} edges, {len(state.queue)} queued"
            )

        logger.info(
            f"Network for {root.id}: {len(state.nodes)} nodes, {len(state.edges)} edges "
            f"({state.resolved} resolved, {state.degraded} degraded)"
        )
        return state.result()

    async def _discover(
        self,
        state: _Traversal,
        limiter: RateLimiter,
        ref: PaperRef,
        depth: int,
        expand_below: int,
    ) -> None:
        """Resolve a newly seen paper and add it to the network.

        The node is queued for expansion only when ``depth < expand_below``.
        """
        await limiter.acquire()
        try:
            record = await self.source.resolve(ref.id)
        except PaperNetworkError as e:
            logger.warning(f"Could not resolve {ref.id}, keeping degraded node: {e}")
            state.nodes[ref.id] = NetworkNode.from_ref(ref, depth=depth)
            state.degraded += 1
            return

        # Keyed by the listing id so the edge just recorded always has its endpoint
        state.nodes[ref.id] = NetworkNode.from_record(record, depth=depth, node_id=ref.id)
        state.resolved += 1

        if depth < expand_below:
            state.queue.append((ref.id, record, depth))


async def build_network(
    root: PaperRecord,
    source: PaperResolver,
    max_depth: int = 1,
    max_nodes: int = 200,
    resolution_interval: float = 1.0,
) -> NetworkResult:
    """Convenience function to build a citation network.

    Args:
        root: Resolved root paper.
        source: Resolver for discovered papers.
        max_depth: Maximum traversal depth.
        max_nodes: Node budget.
        resolution_interval: Minimum seconds between resolutions.

    Returns:
        NetworkResult with the citation network.
    """
    builder = NetworkBuilder(source=source, resolution_interval=resolution_interval)
    return await builder.build(root, max_depth=max_depth, max_nodes=max_nodes)
