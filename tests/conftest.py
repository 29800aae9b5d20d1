"""Shared test fixtures for Paper-Network tests."""

from __future__ import annotations

import copy
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from paper_network.errors import NotFound, PaperNetworkError
from paper_network.models import PaperRecord, PaperRef
from paper_network.retry import RetryPolicy


# ============================================================================
# Sample Paper Fixtures
# ============================================================================


def make_record(
    paper_id: str,
    references: list[str] | None = None,
    citations: list[str] | None = None,
    **kwargs: Any,
) -> PaperRecord:
    """Build a PaperRecord whose references/citations are bare refs to the given ids."""
    data: dict[str, Any] = {
        "id": paper_id,
        "title": f"Paper {paper_id}",
        "year": 2020,
        "citation_count": 10,
        "authors": ["Ada Lovelace", "Alan Turing"],
    }
    data.update(kwargs)
    data["references"] = [PaperRef(id=r, title=f"Paper {r}", year=2019, citation_count=5) for r in references or []]
    data["citations"] = [PaperRef(id=c, title=f"Paper {c}", year=2021, citation_count=1) for c in citations or []]
    return PaperRecord(**data)


class FakeSource:
    """Deterministic in-memory paper source.

    Papers missing from ``records`` raise NotFound; ids in ``failing`` raise
    the configured error. Every call is recorded in ``calls``.
    """

    def __init__(
        self,
        records: dict[str, PaperRecord] | None = None,
        failing: dict[str, PaperNetworkError] | None = None,
    ):
        self.records = records or {}
        self.failing = failing or {}
        self.calls: list[str] = []

    def add(self, record: PaperRecord) -> PaperRecord:
        self.records[record.id] = record
        return record

    async def resolve(self, identifier: str) -> PaperRecord:
        self.calls.append(identifier)
        if identifier in self.failing:
            raise self.failing[identifier]
        if identifier not in self.records:
            raise NotFound(f"No paper {identifier}", identifier=identifier)
        return self.records[identifier]


@pytest.fixture
def sample_record() -> PaperRecord:
    """A fully populated PaperRecord."""
    return PaperRecord(
        id="204e3073870fae3d05bcbc2f6a8e263d9b72e776",
        title="Attention is All you Need",
        abstract="The dominant sequence transduction models are based on complex recurrent networks.",
        year=2017,
        citation_count=120000,
        authors=["Ashish Vaswani", "Noam Shazeer", "Niki Parmar"],
        venue="Neural Information Processing Systems",
        url="https://www.semanticscholar.org/paper/204e3073870fae3d05bcbc2f6a8e263d9b72e776",
        pdf_url="https://arxiv.org/pdf/1706.03762",
        doi="10.48550/arxiv.1706.03762",
        fields_of_study=["Computer Science"],
        references=[PaperRef(id="ref1", title="Sequence to Sequence Learning", year=2014, citation_count=20000)],
        citations=[PaperRef(id="cite1", title="BERT", year=2019, citation_count=90000)],
    )


@pytest.fixture
def make_paper():
    """Factory for PaperRecords with bare reference/citation listings."""
    return make_record


@pytest.fixture
def fake_source() -> FakeSource:
    """Empty deterministic paper source."""
    return FakeSource()


@pytest.fixture
def star_source() -> FakeSource:
    """P0 referencing R1, R2 and R3, nothing citing it."""
    source = FakeSource()
    source.add(make_record("P0", references=["R1", "R2", "R3"]))
    for ref_id in ("R1", "R2", "R3"):
        source.add(make_record(ref_id))
    return source


# ============================================================================
# Mock HTTP Response Fixtures
# ============================================================================


@pytest.fixture
def mock_httpx_response():
    """Factory for creating mock httpx responses."""

    def _make_response(
        status_code: int = 200,
        json_data: dict[str, Any] | list[Any] | None = None,
        text: str = "",
        headers: dict[str, str] | None = None,
    ) -> MagicMock:
        response = MagicMock()
        response.status_code = status_code
        response.json.return_value = json_data if json_data is not None else {}
        response.text = text
        response.content = text.encode() if text else b""
        response.headers = headers or {}
        return response

    return _make_response


@pytest.fixture
def mock_async_client(mock_httpx_response):
    """Factory for creating mock async HTTP clients."""

    def _make_client(responses: list[dict[str, Any]] | None = None) -> AsyncMock:
        client = AsyncMock()
        client.request = AsyncMock()
        if responses:
            client.request.side_effect = [mock_httpx_response(**r) for r in responses]
        return client

    return _make_client


# ============================================================================
# Mock API Response Data
# ============================================================================


MOCK_SEMANTIC_SCHOLAR_PAPER = {
    "paperId": "204e3073870fae3d05bcbc2f6a8e263d9b72e776",
    "externalIds": {"DOI": "10.48550/arXiv.1706.03762", "ArXiv": "1706.03762"},
    "title": "Attention is All you Need",
    "abstract": "The dominant sequence transduction models...",
    "year": 2017,
    "venue": "Neural Information Processing Systems",
    "authors": [
        {"authorId": "40348417", "name": "Ashish Vaswani"},
        {"authorId": "1846258", "name": "Noam Shazeer"},
    ],
    "citationCount": 120000,
    "openAccessPdf": {"url": "https://arxiv.org/pdf/1706.03762"},
    "url": "https://www.semanticscholar.org/paper/204e3073870fae3d05bcbc2f6a8e263d9b72e776",
    "fieldsOfStudy": ["Computer Science", "Computer Science"],
    "references": [
        {"paperId": "cea967b59209c6be22829699f05b8b1ac4dc092d", "title": "Sequence to Sequence Learning", "year": 2014, "citationCount": 20000},
        {"paperId": None, "title": "Unlinked reference", "year": None, "citationCount": None},
    ],
    "citations": [
        {"paperId": "df2b0e26d0599ce3e70df8a9da02e51594e0e992", "title": "BERT", "year": 2019, "citationCount": 90000},
    ],
}

MOCK_ARXIV_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom" xmlns:arxiv="http://arxiv.org/schemas/atom">
  <title>ArXiv Query</title>
  <entry>
    <id>http://arxiv.org/abs/1706.03762v7</id>
    <published>2017-06-12T17:57:34Z</published>
    <title>Attention Is All
  You Need</title>
    <summary>The dominant sequence transduction models are based on
complex recurrent or convolutional neural networks.</summary>
    <author><name>Ashish Vaswani</name></author>
    <author><name>Noam Shazeer</name></author>
    <arxiv:doi>10.48550/arXiv.1706.03762</arxiv:doi>
    <arxiv:primary_category term="cs.CL" scheme="http://arxiv.org/schemas/atom"/>
    <category term="cs.CL" scheme="http://arxiv.org/schemas/atom"/>
    <category term="cs.LG" scheme="http://arxiv.org/schemas/atom"/>
  </entry>
</feed>
"""

MOCK_ARXIV_EMPTY_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>ArXiv Query</title>
</feed>
"""


@pytest.fixture
def semantic_scholar_paper() -> dict[str, Any]:
    """Semantic Scholar paper payload with references and citations."""
    return copy.deepcopy(MOCK_SEMANTIC_SCHOLAR_PAPER)


@pytest.fixture
def arxiv_feed() -> str:
    return MOCK_ARXIV_FEED


@pytest.fixture
def arxiv_empty_feed() -> str:
    return MOCK_ARXIV_EMPTY_FEED


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def test_config():
    """Create a test configuration with caching in memory."""
    from paper_network.config import Config, RetrySettings

    return Config(
        semantic_scholar_api_key="test-s2-key",
        contact_email="test@example.com",
        retry=RetrySettings(max_attempts=3, base_delay=0.0),
        resolution_interval_with_key=0.0,
        resolution_interval_without_key=0.0,
    )


@pytest.fixture
def no_sleep_policy() -> RetryPolicy:
    """Retry policy whose sleeps are recorded instead of awaited."""
    return RetryPolicy(max_attempts=3, base_delay=1.0, sleep=AsyncMock())


# ============================================================================
# Async Test Helpers
# ============================================================================


@pytest.fixture
def anyio_backend():
    """Backend for anyio async tests."""
    return "asyncio"
