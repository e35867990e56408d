"""Bounded retry for transient load failures."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ltcms_client.cancellation import CancellationToken
from ltcms_client.errors import ApiError, RequestCancelledError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 0.3


def is_transient(error: ApiError) -> bool:
    """Return True if error is worth retrying.

    Errors without a status (network failures) and 5xx responses are
    transient. Client errors, cancellations and local validation failures
    are not.
    """
    if isinstance(error, ValidationError | RequestCancelledError):
        return False
    return error.status is None or error.status >= 500


async def load_with_retry(
    fetcher: Callable[[], Awaitable[T]],
    *,
    cancel: CancellationToken | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
) -> T:
    """Call fetcher, retrying transient failures with linear backoff.

    The wait before attempt ``n + 1`` is ``n * base_delay`` seconds and is
    cut short by cancellation, in which case no further attempt is made.

    Args:
        fetcher: Zero-argument coroutine function performing one attempt
        cancel: Optional cancellation token
        max_attempts: Total number of attempts (at least 1)
        base_delay: Backoff unit in seconds

    Returns:
        Result of the first successful attempt

    Raises:
        RequestCancelledError: If cancelled while waiting to retry
        ApiError: The last error once attempts are exhausted or the error
            is not transient
    """
    if max_attempts < 1:
        raise ValidationError("max_attempts must be at least 1")

    attempt = 1
    while True:
        try:
            return await fetcher()
        except ApiError as e:
            if cancel is not None and cancel.cancelled:
                raise
            if attempt >= max_attempts or not is_transient(e):
                raise

            delay = attempt * base_delay
            logger.warning(
                f"Attempt {attempt}/{max_attempts} failed ({e.message}); retrying in {delay:.2f}s"
            )
            if cancel is not None:
                if await cancel.sleep(delay):
                    raise RequestCancelledError(cause=e) from e
            else:
                await asyncio.sleep(delay)
            attempt += 1
