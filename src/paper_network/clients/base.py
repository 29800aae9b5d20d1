"""Base class for bibliographic API clients."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from paper_network.config import get_config
from paper_network.errors import (
    InvalidIdentifier,
    NotFound,
    PaperNetworkError,
    RateLimited,
    UpstreamUnavailable,
)
from paper_network.utils import RateLimiter

if TYPE_CHECKING:
    from paper_network.config import Config

logger = logging.getLogger(__name__)


def _parse_retry_after(response: httpx.Response) -> float | None:
    retry_after = response.headers.get("Retry-After")
    if retry_after is None:
        return None
    try:
        return float(retry_after)
    except ValueError:
        # HTTP-date form is not used by the providers we call
        return None


def error_for_response(response: httpx.Response, identifier: str | None = None) -> PaperNetworkError | None:
    """Map an HTTP response to the matching error, or None on success.

    Args:
        response: Provider response.
        identifier: Identifier being looked up, attached to the error.

    Returns:
        The error to raise, or None for 2xx/3xx responses.
    """
    status = response.status_code
    if status < 400:
        return None
    if status == 404:
        return NotFound(f"No paper found for {identifier}", identifier=identifier)
    if status == 429:
        return RateLimited(
            f"Rate limited while fetching {identifier}",
            identifier=identifier,
            retry_after=_parse_retry_after(response),
        )
    if status == 400:
        return InvalidIdentifier(f"Provider rejected identifier {identifier}", identifier=identifier)
    return UpstreamUnavailable(
        f"HTTP {status} while fetching {identifier}",
        identifier=identifier,
        status_code=status,
    )


class BaseClient:
    """Shared HTTP plumbing for provider clients.

    Every request carries the configured User-Agent (with contact address),
    is bounded by the configured timeout and passes through a per-source
    rate limiter. HTTP and transport failures surface as PaperNetworkError.
    """

    name: str = "base"
    base_url: str = ""

    def __init__(self, config: Config | None = None):
        """Initialize the client.

        Args:
            config: Configuration object. If None, loads from default location.
        """
        self.config = config or get_config()
        self._client: httpx.AsyncClient | None = None
        self._rate_limiter: RateLimiter | None = None

    def _get_headers(self) -> dict[str, str]:
        return {"User-Agent": self.config.user_agent}

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            kwargs: dict[str, object] = {
                "base_url": self.base_url,
                "timeout": self.config.request_timeout,
                "headers": self._get_headers(),
            }
            proxy = self.config.get_proxy_url()
            if proxy:
                kwargs["proxy"] = proxy
            self._client = httpx.AsyncClient(**kwargs)
        return self._client

    @property
    def rate_limiter(self) -> RateLimiter:
        """Get or create the rate limiter."""
        if self._rate_limiter is None:
            rate_limit = getattr(self.config.rate_limits, self.name, 10)
            self._rate_limiter = RateLimiter.per_second(rate_limit, name=self.name)
        return self._rate_limiter

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> BaseClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        url: str,
        identifier: str | None = None,
        **kwargs: object,
    ) -> httpx.Response:
        """Make a rate-limited HTTP request.

        Args:
            method: HTTP method (GET, POST, etc.).
            url: URL path (relative to base_url).
            identifier: Identifier being fetched, used in error messages.
            **kwargs: Additional arguments for httpx.

        Returns:
            HTTP response.

        Raises:
            PaperNetworkError: On error statuses, timeouts and network failures.
        """
        await self.rate_limiter.acquire()
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise UpstreamUnavailable(
                f"[{self.name}] Timed out fetching {identifier or url}", identifier=identifier
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(
                f"[{self.name}] Network error fetching {identifier or url}: {e}", identifier=identifier
            ) from e

        error = error_for_response(response, identifier or url)
        if error is not None:
            logger.debug(f"[{self.name}] {method} {url} -> HTTP {response.status_code}")
            raise error
        return response

    async def _get(self, url: str, **kwargs: object) -> httpx.Response:
        """Make a rate-limited GET request."""
        return await self._request("GET", url, **kwargs)

    def _json(self, response: httpx.Response, identifier: str | None = None) -> Any:
        """Decode a JSON response body.

        Raises:
            UpstreamUnavailable: If the body is not valid JSON.
        """
        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"[{self.name}] Malformed response body for {identifier}: {e}")
            raise UpstreamUnavailable(
                f"[{self.name}] Malformed response for {identifier}", identifier=identifier
            ) from e
