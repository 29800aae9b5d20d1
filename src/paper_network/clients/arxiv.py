"""arXiv client for Paper-Network.

API Documentation: https://info.arxiv.org/help/api/index.html
- User's Manual: https://info.arxiv.org/help/api/user-manual.html

arXiv metadata carries no citation graph, so records built here have no
references, no citations and a zero citation count.
"""

from __future__ import annotations

from typing import Any

import feedparser

from paper_network.clients.base import BaseClient
from paper_network.errors import NotFound, UpstreamUnavailable
from paper_network.models import PaperRecord
from paper_network.utils import clean_html_text, extract_year_from_date, normalize_doi


class ArxivClient(BaseClient):
    """Client for the arXiv Atom query API.

    Note: arXiv API has a rate limit of 1 request per 3 seconds.
    """

    name = "arxiv"
    base_url = "https://export.arxiv.org/api"

    async def get_record(self, arxiv_id: str) -> PaperRecord:
        """Get a paper by arXiv ID.

        Args:
            arxiv_id: Normalized arXiv ID (e.g., "2301.07041", "hep-th/9901001v2").

        Returns:
            PaperRecord with empty reference and citation lists.

        Raises:
            NotFound: If arXiv has no entry for the id.
            UpstreamUnavailable: If the response is not an Atom feed.
        """
        response = await self._get(
            "/query",
            identifier=arxiv_id,
            params={"id_list": arxiv_id, "max_results": 1},
        )
        feed = feedparser.parse(response.text)
        if not feed.entries and (feed.bozo or not feed.get("version")):
            raise UpstreamUnavailable(f"[{self.name}] Unreadable feed for {arxiv_id}", identifier=arxiv_id)

        for entry in feed.entries:
            record = self._parse_entry(entry, arxiv_id)
            if record is not None:
                return record
        raise NotFound(f"arXiv has no entry for {arxiv_id}", identifier=arxiv_id)

    def _parse_entry(self, entry: dict[str, Any], requested_id: str) -> PaperRecord | None:
        """Parse an arXiv feed entry into a PaperRecord.

        Args:
            entry: feedparser entry object.
            requested_id: The id that was queried, used when the entry id is missing.

        Returns:
            PaperRecord or None if the entry has no title (arXiv error entries).
        """
        title = entry.get("title", "")
        if not title or title.strip().lower() == "error":
            return None

        arxiv_id = requested_id
        entry_id = entry.get("id", "")
        if "arxiv.org/abs/" in entry_id:
            arxiv_id = entry_id.split("/abs/")[-1]

        authors = [a.get("name", "") for a in entry.get("authors", []) if a.get("name")]

        abstract = clean_html_text(entry.get("summary", "").replace("\n", " "))

        categories = [tag.get("term", "") for tag in entry.get("tags", []) if tag.get("term")]

        doi = normalize_doi(entry.get("arxiv_doi"))
        primary_category = entry.get("arxiv_primary_category", {}).get("term", "")

        return PaperRecord(
            id=f"arXiv:{arxiv_id}",
            title=clean_html_text(title.replace("\n", " ")),
            abstract=abstract or None,
            year=extract_year_from_date(entry.get("published")),
            citation_count=0,
            authors=authors,
            venue=f"arXiv:{primary_category}" if primary_category else "arXiv",
            url=f"https://arxiv.org/abs/{arxiv_id}",
            pdf_url=f"https://arxiv.org/pdf/{arxiv_id}",
            doi=doi,
            fields_of_study=categories,
            source=self.name,
        )
