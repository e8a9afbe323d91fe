"""Bounded exponential-backoff retry for fallible async operations."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

import backoff

from .logger import get_logger
from .units import MalformedAmount

logger = get_logger(__name__)

T = TypeVar("T")


class PermanentError(Exception):
    """An error that retrying cannot fix (bad input, missing configuration)."""


class RetryExhausted(Exception):
    """Raised when every attempt of an operation has failed.

    The last underlying error is available as ``last_error`` and as
    ``__cause__``.
    """

    def __init__(self, description: str, attempts: int, last_error: BaseException):
        super().__init__(
            f"Failed after {attempts} attempts: {description} ({last_error})"
        )
        self.description = description
        self.attempts = attempts
        self.last_error = last_error


@dataclass(frozen=True)
class RetryPolicy:
    """Retry settings. Delays and timeouts are in seconds."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 10.0
    multiplier: float = 2.0
    attempt_timeout: float | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be non-negative")
        if self.multiplier < 1:
            raise ValueError("multiplier must be >= 1")

    def delay_for(self, retry_number: int) -> float:
        """Wait before the ``retry_number``-th retry (1-based)."""
        if retry_number < 1:
            raise ValueError("retry_number is 1-based")
        return min(
            self.initial_delay * self.multiplier ** (retry_number - 1),
            self.max_delay,
        )

    def delays(self) -> list[float]:
        """Every wait this policy performs when all attempts fail."""
        return [self.delay_for(n) for n in range(1, self.max_attempts)]


def is_retryable(exc: BaseException) -> bool:
    """Only transient failures are retried."""
    return not isinstance(exc, (PermanentError, MalformedAmount))


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    *,
    description: str = "operation",
) -> T:
    """Run ``operation`` with bounded exponential backoff.

    Args:
        operation: Zero-argument callable returning a fresh awaitable per attempt.
        policy: Retry policy; defaults to 3 attempts, 1s initial delay, 10s cap.
        description: Human-readable context used in logs and errors.

    Returns:
        The operation's result.

    Raises:
        RetryExhausted: When all attempts failed with retryable errors.
        Exception: Non-retryable errors propagate unchanged after one attempt.
    """
    policy = policy or RetryPolicy()

    def _on_backoff(details: Any) -> None:
        logger.warning(
            "%s failed (attempt %d of %d), retrying in %.2fs: %s",
            description,
            details["tries"],
            policy.max_attempts,
            details["wait"],
            details.get("exception"),
        )

    def _on_giveup(details: Any) -> None:
        exc = details.get("exception")
        if exc is not None and not is_retryable(exc):
            logger.error("%s failed (retry not possible): %s", description, exc)
        else:
            logger.error(
                "%s failed after %d attempts: %s", description, details["tries"], exc
            )

    @backoff.on_exception(
        backoff.expo,
        Exception,
        max_tries=policy.max_attempts,
        giveup=lambda e: not is_retryable(e),
        on_backoff=_on_backoff,
        on_giveup=_on_giveup,
        jitter=None,
        base=policy.multiplier,
        factor=policy.initial_delay,
        max_value=policy.max_delay,
    )
    async def _attempt() -> T:
        if policy.attempt_timeout is None or policy.attempt_timeout <= 0:
            return await operation()
        async with asyncio.timeout(policy.attempt_timeout):
            return await operation()

    try:
        return await _attempt()
    except Exception as exc:
        if not is_retryable(exc):
            raise
        raise RetryExhausted(description, policy.max_attempts, exc) from exc
