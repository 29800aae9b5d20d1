"""Citation network construction and analysis for Paper-Network."""

from paper_network.analysis.builder import (
    NetworkBuilder,
    build_network,
    citation_cap,
    reference_cap,
)
from paper_network.analysis.communities import (
    CLUSTER_PALETTE,
    cluster_sizes,
    connected_components,
    label,
)
from paper_network.analysis.ranking import pagerank, rank, top_ranked

__all__ = [
    "CLUSTER_PALETTE",
    "NetworkBuilder",
    "build_network",
    "citation_cap",
    "cluster_sizes",
    "connected_components",
    "label",
    "pagerank",
    "rank",
    "reference_cap",
    "top_ranked",
]
