"""Utility functions for Paper-Network."""

from __future__ import annotations

import asyncio
import html
import logging
import re
import time

logger = logging.getLogger(__name__)

DOI_PREFIXES = (
    "https://doi.org/",
    "http://doi.org/",
    "https://dx.doi.org/",
    "http://dx.doi.org/",
    "doi:",
)

_DOI_IN_TEXT = re.compile(r"10\.\d{4,}[\w().\-/:]+", re.IGNORECASE)


def normalize_doi(doi: str | None) -> str | None:
    """Normalize a DOI string.

    Args:
        doi: DOI string in various formats.

    Returns:
        Normalized DOI (lowercase, without URL prefix) or None.
    """
    if not doi:
        return None

    doi = doi.strip().lower()

    for prefix in DOI_PREFIXES:
        if doi.startswith(prefix):
            doi = doi[len(prefix) :]
            break

    return doi if doi else None


def extract_doi(text: str | None) -> str | None:
    """Find the first DOI embedded in a URL or free text."""
    if not text:
        return None
    match = _DOI_IN_TEXT.search(text)
    return match.group(0) if match else None


def extract_year_from_date(date_str: str | None) -> int | None:
    """Extract year from a date string.

    Args:
        date_str: Date string in various formats (YYYY, YYYY-MM-DD, etc.).

    Returns:
        Year as integer or None.
    """
    if not date_str:
        return None

    match = re.search(r"\b(19|20)\d{2}\b", date_str)
    if match:
        return int(match.group())
    return None


def clean_html_text(text: str | None) -> str:
    """Clean text that may contain HTML entities or tags.

    Args:
        text: Text to clean.

    Returns:
        Cleaned text.
    """
    if not text:
        return ""

    text = html.unescape(text)
    text = re.sub(r"<[^>]+>", "", text)
    text = re.sub(r"\s+", " ", text).strip()
    return text


def truncate_text(text: str, max_length: int = 500, suffix: str = "...") -> str:
    """Truncate text to a maximum length.

    Args:
        text: Text to truncate.
        max_length: Maximum length including suffix.
        suffix: Suffix to append if truncated.

    Returns:
        Truncated text.
    """
    if len(text) <= max_length:
        return text
    return text[: max_length - len(suffix)] + suffix


class RateLimiter:
    """Enforces a minimum interval between consecutive calls."""

    def __init__(self, min_interval: float, name: str = ""):
        """Initialize rate limiter.

        Args:
            min_interval: Minimum seconds between two acquisitions. 0 disables waiting.
            name: Name for logging (e.g., client name).
        """
        self.min_interval = max(0.0, min_interval)
        self.last_request_time: float | None = None
        self.name = name
        self._lock = asyncio.Lock()

    @classmethod
    def per_second(cls, requests_per_second: float, name: str = "") -> RateLimiter:
        """Create a limiter from a requests-per-second budget."""
        interval = 1.0 / requests_per_second if requests_per_second > 0 else 0.0
        return cls(interval, name=name)

    async def acquire(self) -> None:
        """Wait until a request can be made."""
        async with self._lock:
            now = time.monotonic()
            if self.last_request_time is not None:
                elapsed = now - self.last_request_time
                wait_time = self.min_interval - elapsed
                if wait_time > 0:
                    if wait_time > 0.1:
                        logger.debug(f"[{self.name}] Rate limit: waiting {wait_time:.2f}s")
                    await asyncio.sleep(wait_time)
            self.last_request_time = time.monotonic()
