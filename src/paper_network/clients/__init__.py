"""API client adapters for Paper-Network."""

from paper_network.clients.arxiv import ArxivClient
from paper_network.clients.base import BaseClient
from paper_network.clients.openalex import OpenAlexClient
from paper_network.clients.semantic_scholar import SemanticScholarClient

__all__ = [
    "BaseClient",
    "SemanticScholarClient",
    "OpenAlexClient",
    "ArxivClient",
]
