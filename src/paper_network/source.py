"""Paper source: resolve an identifier of unknown format into a PaperRecord."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from paper_network.clients.arxiv import ArxivClient
from paper_network.clients.openalex import OpenAlexClient
from paper_network.clients.semantic_scholar import SemanticScholarClient
from paper_network.config import get_config
from paper_network.errors import PaperNetworkError
from paper_network.identifiers import ClassifiedIdentifier, IdentifierKind, classify
from paper_network.retry import RetryPolicy

if TYPE_CHECKING:
    from paper_network.config import Config
    from paper_network.models import PaperRecord

logger = logging.getLogger(__name__)


class PaperResolver(Protocol):
    """Anything that turns an identifier into a PaperRecord."""

    async def resolve(self, identifier: str) -> PaperRecord: ...


class PaperSource:
    """Resolves papers through Semantic Scholar, with OpenAlex and arXiv helpers.

    Identifier routing:
        - DOI: ``DOI:<doi>`` lookup.
        - arXiv: ``ARXIV:<id>`` lookup, falling back to the arXiv API itself
          if the primary provider keeps failing.
        - OpenAlex work id: translated to a DOI through OpenAlex first; the
          work id is used verbatim when no DOI is found.
        - Anything else: Semantic Scholar native id.

    Every provider call goes through the same RetryPolicy.
    """

    def __init__(
        self,
        config: Config | None = None,
        retry_policy: RetryPolicy | None = None,
        semantic_scholar: SemanticScholarClient | None = None,
        openalex: OpenAlexClient | None = None,
        arxiv: ArxivClient | None = None,
    ):
        self.config = config or get_config()
        self.retry_policy = retry_policy or RetryPolicy.from_settings(self.config.retry)
        self.semantic_scholar = semantic_scholar or SemanticScholarClient(self.config)
        self.openalex = openalex or OpenAlexClient(self.config)
        self.arxiv = arxiv or ArxivClient(self.config)

    async def close(self) -> None:
        """Close all provider clients."""
        for client in (self.semantic_scholar, self.openalex, self.arxiv):
            await client.close()

    async def __aenter__(self) -> PaperSource:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def resolve(self, identifier: str) -> PaperRecord:
        """Resolve a paper and its reference/citation lists.

        Args:
            identifier: DOI, arXiv id, OpenAlex work id or Semantic Scholar id.

        Returns:
            The resolved paper.

        Raises:
            InvalidIdentifier: If the identifier cannot be classified.
            NotFound, RateLimited, UpstreamUnavailable: If resolution fails.
        """
        classified = classify(identifier)
        logger.debug(f"Resolving {classified.raw!r} as {classified.kind.value}")

        if classified.kind is IdentifierKind.OPENALEX:
            return await self._resolve_openalex(classified)
        if classified.kind is IdentifierKind.ARXIV:
            return await self._resolve_arxiv(classified)
        return await self._fetch(classified.lookup_id)

    async def _fetch(self, lookup_id: str) -> PaperRecord:
        return await self.retry_policy.execute(self.semantic_scholar.get_paper_record, lookup_id)

    async def _resolve_openalex(self, classified: ClassifiedIdentifier) -> PaperRecord:
        doi = await self.retry_policy.execute(self.openalex.find_doi, classified.value)
        if doi:
            logger.info(f"OpenAlex work {classified.value} maps to DOI {doi}")
            return await self._fetch(f"DOI:{doi}")
        return await self._fetch(classified.value)

    async def _resolve_arxiv(self, classified: ClassifiedIdentifier) -> PaperRecord:
        try:
            return await self._fetch(classified.lookup_id)
        except PaperNetworkError as primary_error:
            logger.warning(
                f"Primary lookup failed for arXiv {classified.value} ({primary_error}); "
                "falling back to the arXiv API"
            )
            try:
                return await self.retry_policy.execute(self.arxiv.get_record, classified.value)
            except PaperNetworkError as fallback_error:
                logger.warning(f"arXiv fallback failed for {classified.value}: {fallback_error}")
                raise primary_error from fallback_error
