"""Semantic Scholar API client for Paper-Network.

API Documentation: https://api.semanticscholar.org/api-docs/
- Paper details: https://api.semanticscholar.org/api-docs/#tag/Paper-Data/operation/get_graph_get_paper
"""

from __future__ import annotations

from typing import Any

from paper_network.clients.base import BaseClient
from paper_network.errors import NotFound, UpstreamUnavailable
from paper_network.models import UNKNOWN_TITLE, PaperRecord, PaperRef
from paper_network.utils import clean_html_text, extract_doi, normalize_doi


class SemanticScholarClient(BaseClient):
    """Client for the Semantic Scholar Graph API.

    Semantic Scholar is the primary provider: it is the only one that returns
    a paper together with its reference and citation lists in one call.
    Rate limit: 100 requests/5 minutes unauthenticated, 1 req/sec with API key.
    """

    name = "semantic_scholar"
    base_url = "https://api.semanticscholar.org/graph/v1"

    # Fields to request from the API
    PAPER_FIELDS = [
        "paperId",
        "externalIds",
        "title",
        "abstract",
        "year",
        "venue",
        "authors",
        "citationCount",
        "openAccessPdf",
        "url",
        "fieldsOfStudy",
    ]
    REF_FIELDS = ["paperId", "title", "year", "citationCount"]

    @property
    def api_key(self) -> str | None:
        """Get the Semantic Scholar API key from config."""
        return self.config.semantic_scholar_api_key

    def _get_headers(self) -> dict[str, str]:
        """Get headers with API key if configured."""
        headers = super()._get_headers()
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    @classmethod
    def fields_param(cls) -> str:
        fields = list(cls.PAPER_FIELDS)
        for relation in ("references", "citations"):
            fields.extend(f"{relation}.{field}" for field in cls.REF_FIELDS)
        return ",".join(fields)

    async def get_paper_record(self, lookup_id: str) -> PaperRecord:
        """Fetch a paper with its references and citations.

        Args:
            lookup_id: Paper id in any form the endpoint accepts:
                - Semantic Scholar paper ID
                - DOI (prefixed with "DOI:")
                - arXiv ID (prefixed with "ARXIV:")
                - Corpus ID (prefixed with "CorpusId:")

        Returns:
            The resolved paper.

        Raises:
            NotFound: If the paper does not exist or has no usable id.
            RateLimited, UpstreamUnavailable, InvalidIdentifier: On provider failures
                or a malformed response body.
        """
        response = await self._get(
            f"/paper/{lookup_id}",
            identifier=lookup_id,
            params={"fields": self.fields_param()},
        )
        data = self._json(response, lookup_id)
        if data is not None and not isinstance(data, dict):
            raise UpstreamUnavailable(f"[{self.name}] Unexpected payload for {lookup_id}", identifier=lookup_id)
        record = self._parse_record(data)
        if record is None:
            raise NotFound(f"Semantic Scholar returned no paper for {lookup_id}", identifier=lookup_id)
        return record

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _parse_record(self, data: dict[str, Any] | None) -> PaperRecord | None:
        """Parse a Semantic Scholar paper object into a PaperRecord.

        Args:
            data: Semantic Scholar paper JSON object.

        Returns:
            PaperRecord or None if the object has no paper id.
        """
        if not data or not data.get("paperId"):
            return None

        authors = [a.get("name", "") for a in data.get("authors") or [] if a.get("name")]

        external_ids = data.get("externalIds") or {}
        doi = normalize_doi(external_ids.get("DOI")) or normalize_doi(extract_doi(data.get("url")))

        pdf_url = None
        open_access_pdf = data.get("openAccessPdf")
        if open_access_pdf and isinstance(open_access_pdf, dict):
            pdf_url = open_access_pdf.get("url") or None

        fields = data.get("fieldsOfStudy") or []

        return PaperRecord(
            id=data["paperId"],
            title=clean_html_text(data.get("title")) or UNKNOWN_TITLE,
            abstract=clean_html_text(data.get("abstract")) or None,
            year=data.get("year"),
            citation_count=data.get("citationCount") or 0,
            authors=authors,
            venue=data.get("venue") or None,
            url=data.get("url"),
            pdf_url=pdf_url,
            doi=doi,
            fields_of_study=fields if isinstance(fields, list) else [],
            references=self._parse_refs(data.get("references")),
            citations=self._parse_refs(data.get("citations")),
            source=self.name,
        )

    def _parse_refs(self, items: list[dict[str, Any]] | None) -> list[PaperRef]:
        """Parse a reference or citation listing, skipping entries without an id."""
        refs = []
        for item in items or []:
            if not isinstance(item, dict) or not item.get("paperId"):
                continue
            refs.append(
                PaperRef(
                    id=item["paperId"],
                    title=clean_html_text(item.get("title")) or None,
                    year=item.get("year"),
                    citation_count=item.get("citationCount"),
                )
            )
        return refs
