"""Paper-Network: bounded citation networks around an academic paper."""

from paper_network.analysis import NetworkBuilder, build_network, label, rank
from paper_network.cache import NetworkCache, query_hash
from paper_network.config import Config, get_config, load_config
from paper_network.errors import (
    CacheUnavailable,
    InvalidIdentifier,
    NotFound,
    PaperNetworkError,
    RateLimited,
    UpstreamUnavailable,
)
from paper_network.models import (
    NetworkEdge,
    NetworkNode,
    NetworkResponse,
    NetworkResult,
    PaperRecord,
    PaperRef,
)
from paper_network.service import NetworkService, fetch_paper_network
from paper_network.source import PaperSource

__version__ = "0.1.0"

__all__ = [
    # Core functions
    "fetch_paper_network",
    "build_network",
    "rank",
    "label",
    "query_hash",
    # Classes
    "NetworkService",
    "NetworkBuilder",
    "NetworkCache",
    "PaperSource",
    "PaperRecord",
    "PaperRef",
    "NetworkNode",
    "NetworkEdge",
    "NetworkResult",
    "NetworkResponse",
    # Errors
    "PaperNetworkError",
    "NotFound",
    "RateLimited",
    "UpstreamUnavailable",
    "InvalidIdentifier",
    "CacheUnavailable",
    # Config
    "Config",
    "get_config",
    "load_config",
    # Version
    "__version__",
]
