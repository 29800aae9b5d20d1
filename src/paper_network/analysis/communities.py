"""Community labeling for citation networks.

Communities are the connected components of the network with edge direction
ignored. A single bridging edge merges two otherwise separate groups.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from paper_network.models import NetworkEdge, NetworkNode

CLUSTER_PALETTE: tuple[str, ...] = (
    "#1e3a8a",
    "#dc2626",
    "#059669",
    "#7c3aed",
    "#ea580c",
    "#0891b2",
    "#be185d",
)


def cluster_color(cluster_id: int) -> str:
    return CLUSTER_PALETTE[cluster_id % len(CLUSTER_PALETTE)]


def connected_components(node_ids: Sequence[str], edges: Sequence[NetworkEdge]) -> dict[str, int]:
    """Assign a component id to every node.

    Components are numbered 0, 1, 2, ... in the order their first node
    appears in ``node_ids``.

    Args:
        node_ids: Node ids in visiting order.
        edges: Edges, treated as undirected; edges touching unknown ids are ignored.

    Returns:
        Dictionary mapping node ids to component ids.
    """
    adjacency: dict[str, list[str]] = {node_id: [] for node_id in node_ids}
    for edge in edges:
        if edge.source in adjacency and edge.target in adjacency:
            adjacency[edge.source].append(edge.target)
            adjacency[edge.target].append(edge.source)

    components: dict[str, int] = {}
    next_id = 0
    for start in node_ids:
        if start in components:
            continue
        stack = [start]
        components[start] = next_id
        while stack:
            current = stack.pop()
            for neighbor in adjacency[current]:
                if neighbor not in components:
                    components[neighbor] = next_id
                    stack.append(neighbor)
        next_id += 1

    return components


def label(nodes: Sequence[NetworkNode], edges: Sequence[NetworkEdge]) -> None:
    """Write cluster ids and palette colors onto nodes in place.

    The root keeps its own color and degraded nodes keep the neutral one.
    """
    components = connected_components([node.id for node in nodes], edges)
    for node in nodes:
        node.cluster_id = components[node.id]
        if not node.is_root and not node.degraded:
            node.color = cluster_color(node.cluster_id)


def cluster_sizes(nodes: Sequence[NetworkNode]) -> dict[int, int]:
    """Number of nodes per cluster id."""
    return dict(Counter(node.cluster_id for node in nodes))
