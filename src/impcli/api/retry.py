"""Transient error retry with exponential backoff and jitter.

Only idempotent requests are passed through here; the client never
retries a POST. Handles timeout, connection, and HTTP status-code
errors that are likely transient.
"""

from __future__ import annotations

import random
import time
from collections.abc import Callable
from typing import TypeVar

import httpx

T = TypeVar("T")

# Exception types considered transient (network-level issues)
TRANSIENT_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
    TimeoutError,
    ConnectionError,
)

# HTTP status codes considered transient (rate-limit, server errors)
TRANSIENT_STATUS_CODES: frozenset[int] = frozenset({429, 500, 502, 503})


def _is_transient(exc: Exception) -> bool:
    """Check if an exception represents a transient error."""
    if isinstance(exc, TRANSIENT_EXCEPTIONS):
        return True

    status = getattr(exc, "status_code", None)
    if status is not None and status in TRANSIENT_STATUS_CODES:
        return True

    return False


def call_with_retry(
    func: Callable[[], T],
    max_retries: int = 2,
    base_delay: float = 0.5,
    max_delay: float = 8.0,
    on_retry: Callable[[int, Exception], None] | None = None,
) -> T:
    """Call func, retrying on transient errors.

    Uses exponential backoff with full jitter. Raises the exception on
    non-transient errors or when retries are exhausted.

    Args:
        func: Zero-argument callable performing one attempt.
        max_retries: Maximum number of retry attempts (total calls = max_retries + 1).
        base_delay: Initial backoff delay in seconds.
        max_delay: Maximum backoff delay cap in seconds.
        on_retry: Optional hook called with (attempt, exception) before sleeping.

    Returns:
        The value returned by func.
    """
    for attempt in range(max_retries + 1):
        try:
            return func()
        except Exception as exc:
            if not _is_transient(exc) or attempt == max_retries:
                raise

            if on_retry is not None:
                on_retry(attempt + 1, exc)
            delay = min(base_delay * (2 ** attempt), max_delay)
            time.sleep(random.uniform(0, delay))  # noqa: S311

    raise RuntimeError("Retry loop exited unexpectedly")  # pragma: no cover
