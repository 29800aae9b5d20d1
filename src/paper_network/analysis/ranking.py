"""Importance ranking for citation networks.

PageRank over the directed edge set, computed with a fixed number of power
iterations and written back onto the nodes.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from paper_network.models import NetworkEdge, NetworkNode

MIN_RANKED_SIZE = 15.0
SIZE_SCALE = 1000.0


def ranked_size(score: float) -> float:
    """Render size for a PageRank score, never below MIN_RANKED_SIZE."""
    return max(MIN_RANKED_SIZE, score * SIZE_SCALE)


def pagerank(
    node_ids: Sequence[str],
    edges: Sequence[NetworkEdge],
    damping: float = 0.85,
    iterations: int = 20,
) -> dict[str, float]:
    """Calculate PageRank scores.

    Both edge types contribute out-links the same way. Nodes without out-links
    do not pass their score on (dangling mass is dropped), and there is no
    convergence check: exactly ``iterations`` passes are run.

    Args:
        node_ids: Node ids; edges touching other ids are ignored.
        edges: Directed edges (from -> to).
        damping: Damping factor (typically 0.85).
        iterations: Number of power iterations.

    Returns:
        Dictionary mapping node ids to scores.
    """
    if not 0 <= damping <= 1:
        raise ValueError(f"damping must be within [0, 1], got {damping}")
    if iterations < 0:
        raise ValueError(f"iterations must be >= 0, got {iterations}")

    n = len(node_ids)
    if n == 0:
        return {}

    scores = dict.fromkeys(node_ids, 1.0 / n)
    out_links: dict[str, list[str]] = {node_id: [] for node_id in node_ids}
    for edge in edges:
        if edge.source in out_links and edge.target in out_links:
            out_links[edge.source].append(edge.target)

    base = (1 - damping) / n
    for _ in range(iterations):
        new_scores = dict.fromkeys(node_ids, base)
        for node_id, targets in out_links.items():
            if not targets:
                continue
            contribution = damping * scores[node_id] / len(targets)
            for target in targets:
                new_scores[target] += contribution
        scores = new_scores

    return scores


def rank(
    nodes: Sequence[NetworkNode],
    edges: Sequence[NetworkEdge],
    damping: float = 0.85,
    iterations: int = 20,
) -> None:
    """Write PageRank scores and derived render sizes onto nodes in place."""
    if not nodes:
        return

    scores = pagerank([node.id for node in nodes], edges, damping=damping, iterations=iterations)
    for node in nodes:
        node.page_rank_score = scores.get(node.id, 0.0)
        node.size = ranked_size(node.page_rank_score)


def top_ranked(nodes: Sequence[NetworkNode], k: int = 10) -> list[NetworkNode]:
    """Return the ``k`` highest-scoring nodes, ties broken by id."""
    return sorted(nodes, key=lambda node: (-node.page_rank_score, node.id))[:k]
