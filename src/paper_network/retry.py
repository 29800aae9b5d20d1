"""Retry policy with per-error backoff shapes for Paper-Network."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, TypeVar

from paper_network.errors import RateLimited, UpstreamUnavailable

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from paper_network.config import RetrySettings

logger = logging.getLogger(__name__)

# Type variable for the return type of the retried function
T = TypeVar("T")

Backoff = Literal["exponential", "linear", "constant"]


def _default_backoff() -> dict[type[Exception], Backoff]:
    return {
        RateLimited: "exponential",
        UpstreamUnavailable: "linear",
    }


@dataclass
class RetryPolicy:
    """Configuration and execution of retry behavior.

    ``max_attempts`` counts the first call, so 3 means one call plus two retries.
    Only exception types listed in ``backoff`` are retried; each maps to the
    shape used to space its retries.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0
    backoff: dict[type[Exception], Backoff] = field(default_factory=_default_backoff)
    jitter: bool = False
    jitter_factor: float = 0.1  # +/- 10% jitter
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    @classmethod
    def from_settings(cls, settings: RetrySettings, **overrides: Any) -> RetryPolicy:
        """Build a policy from the ``retry`` section of the config."""
        return cls(
            max_attempts=settings.max_attempts,
            base_delay=settings.base_delay,
            max_delay=settings.max_delay,
            **overrides,
        )

    def backoff_for(self, error: Exception) -> Backoff | None:
        """Return the backoff shape for an error, or None if it is terminal."""
        for error_type, shape in self.backoff.items():
            if isinstance(error, error_type):
                return shape
        return None

    def is_retryable(self, error: Exception) -> bool:
        return self.backoff_for(error) is not None

    def calculate_delay(self, attempt: int, shape: Backoff = "exponential") -> float:
        """Calculate delay after a failed attempt.

        Args:
            attempt: The failed attempt number (1-indexed).
            shape: Backoff shape.

        Returns:
            Delay in seconds before the next attempt.
        """
        if shape == "exponential":
            delay = self.base_delay * (self.exponential_base ** (attempt - 1))
        elif shape == "linear":
            delay = self.base_delay * attempt
        else:
            delay = self.base_delay

        delay = min(delay, self.max_delay)

        if self.jitter:
            jitter_range = delay * self.jitter_factor
            delay += random.uniform(-jitter_range, jitter_range)

        return max(0, delay)

    def delay_for(self, error: Exception, attempt: int) -> float:
        """Delay before retrying ``error``, honoring a Retry-After hint."""
        shape = self.backoff_for(error) or "constant"
        delay = self.calculate_delay(attempt, shape)

        retry_after = getattr(error, "retry_after", None)
        if retry_after is not None:
            delay = min(max(delay, retry_after), self.max_delay)

        return delay

    async def execute(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Execute ``func`` with retry logic.

        Returns:
            The result of the function.

        Raises:
            The last exception if it is terminal or all attempts are exhausted.
        """
        name = getattr(func, "__name__", repr(func))

        for attempt in range(1, self.max_attempts + 1):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if not self.is_retryable(e):
                    raise

                if attempt >= self.max_attempts:
                    logger.warning(f"All {self.max_attempts} attempts exhausted for {name}: {e}")
                    raise

                delay = self.delay_for(e, attempt)
                logger.info(
                    f"Attempt {attempt}/{self.max_attempts} for {name} failed "
                    f"({type(e).__name__}: {e}), waiting {delay:.2f}s"
                )
                await self.sleep(delay)

        raise RuntimeError("Retry loop completed without result or error")
