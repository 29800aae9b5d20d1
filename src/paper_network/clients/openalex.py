"""OpenAlex API client for Paper-Network.

API Documentation: https://docs.openalex.org/
- Works: https://docs.openalex.org/api-entities/works

OpenAlex is only used to translate OpenAlex work ids into DOIs, which the
primary provider can then resolve.
"""

from __future__ import annotations

import logging

from paper_network.clients.base import BaseClient
from paper_network.errors import UpstreamUnavailable
from paper_network.utils import normalize_doi

logger = logging.getLogger(__name__)


class OpenAlexClient(BaseClient):
    """Client for the OpenAlex works endpoint."""

    name = "openalex"
    base_url = "https://api.openalex.org"

    def _get_headers(self) -> dict[str, str]:
        # OpenAlex routes requests carrying a mailto into its polite pool
        headers = super()._get_headers()
        headers["From"] = self.config.contact_email
        return headers

    async def find_doi(self, work_id: str) -> str | None:
        """Look up the DOI of an OpenAlex work.

        Args:
            work_id: OpenAlex work id (W123456789).

        Returns:
            Normalized DOI, or None if the work has no DOI.

        Raises:
            NotFound, RateLimited, UpstreamUnavailable: On provider failures.
        """
        response = await self._get(
            f"/works/{work_id}",
            identifier=work_id,
            params={"select": "id,doi", "mailto": self.config.contact_email},
        )
        data = self._json(response, work_id) or {}
        if not isinstance(data, dict):
            raise UpstreamUnavailable(f"[{self.name}] Unexpected payload for {work_id}", identifier=work_id)
        doi = normalize_doi(data.get("doi"))
        if not doi:
            logger.info(f"[{self.name}] Work {work_id} has no DOI")
        return doi
