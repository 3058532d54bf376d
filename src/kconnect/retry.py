"""Caller-side retry for Kafka Connect operations.

The clients never retry. Callers who want to ride out a rebalance (409) or
a flaky network can wrap an operation:

    call_with_retry(client.get_status, "my-connector", policy=RetryPolicy())

Only errors whose kind is in the policy's retry_on set are retried, with
exponential backoff. Everything else is raised immediately.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, FrozenSet, Optional, TypeVar

from kconnect.errors import ConnectError, ErrorKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how long to wait between attempts."""

    max_retries: int = 3
    retry_delay: float = 1.0  # base delay in seconds
    retry_backoff: float = 2.0  # exponential backoff multiplier
    max_delay: float = 60.0
    retry_on: FrozenSet[ErrorKind] = field(
        default_factory=lambda: frozenset(
            {ErrorKind.TRANSPORT, ErrorKind.CONFLICT, ErrorKind.SERVER_ERROR}
        )
    )

    def should_retry(self, error: ConnectError, attempt: int) -> bool:
        """Check if a failed attempt (0-based) should be retried."""
        if attempt >= self.max_retries:
            return False
        return error.kind in self.retry_on

    def get_delay(self, attempt: int) -> float:
        """Delay before the retry following `attempt`."""
        return min(self.retry_delay * (self.retry_backoff ** attempt), self.max_delay)


DEFAULT_RETRY_POLICY = RetryPolicy()


def call_with_retry(
    fn: Callable[..., T],
    *args: Any,
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], None] = time.sleep,
    **kwargs: Any,
) -> T:
    """Call fn(*args, **kwargs), retrying retryable ConnectErrors."""
    policy = policy or DEFAULT_RETRY_POLICY
    attempt = 0
    while True:
        try:
            return fn(*args, **kwargs)
        except ConnectError as e:
            if not policy.should_retry(e, attempt):
                raise
            delay = policy.get_delay(attempt)
            logger.info(
                "%s failed (%s), retry %d/%d in %.1fs",
                getattr(fn, "__name__", "call"), e.kind.value, attempt + 1, policy.max_retries, delay,
            )
            sleep(delay)
            attempt += 1


async def async_call_with_retry(
    fn: Callable[..., Awaitable[T]],
    *args: Any,
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    **kwargs: Any,
) -> T:
    """Async counterpart of call_with_retry."""
    policy = policy or DEFAULT_RETRY_POLICY
    attempt = 0
    while True:
        try:
            return await fn(*args, **kwargs)
        except ConnectError as e:
            if not policy.should_retry(e, attempt):
                raise
            delay = policy.get_delay(attempt)
            logger.info(
                "%s failed (%s), retry %d/%d in %.1fs",
                getattr(fn, "__name__", "call"), e.kind.value, attempt + 1, policy.max_retries, delay,
            )
            await sleep(delay)
            attempt += 1
