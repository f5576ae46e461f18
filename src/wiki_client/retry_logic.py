"""Retry logic with exponential backoff for Feishu API rate limits.

This module retries calls that the server rejected for exceeding its
quota: HTTP 429 responses and the Feishu business code 99991400. It backs
off exponentially (1s, 2s, 4s) and fails fast for every other error,
including permission failures, which are never retried.
"""

import time
import logging
import threading
from typing import Callable, Optional, TypeVar

from .errors import APIAccessError, PermissionDeniedError, QuotaWaitCancelled

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Feishu business code for "request trigger frequency limit"
FEISHU_RATE_LIMIT_CODE = 99991400

MAX_RETRIES = 3


def retry_on_rate_limit(
    func: Callable[..., T],
    *args,
    cancel_event: Optional[threading.Event] = None,
    **kwargs
) -> T:
    """Retry function on rate limit errors with exponential backoff.

    Args:
        func: The function to execute with retry logic
        *args: Positional arguments to pass to the function
        cancel_event: When set, backoff waits end early
        **kwargs: Keyword arguments to pass to the function

    Returns:
        The return value of the function

    Raises:
        APIAccessError: If rate limit persists after 3 retries
        QuotaWaitCancelled: If cancel_event is set during a backoff wait
        Other exceptions: Passed through immediately without retry

    Example:
        >>> result = retry_on_rate_limit(api.fetch_meta, "doxcnABC")
    """
    for retry_num in range(MAX_RETRIES + 1):  # 4 attempts total
        try:
            return func(*args, **kwargs)
        except Exception as e:
            if not _is_rate_limit_error(e):
                raise

            if retry_num >= MAX_RETRIES:
                logger.error(
                    f"Rate limit persisted after {MAX_RETRIES} retries, giving up"
                )
                raise APIAccessError("Feishu API failure (after 3 retries)") from e

            wait_time = 2 ** retry_num
            logger.info(
                f"Rate limit hit, retrying in {wait_time}s "
                f"(retry {retry_num + 1}/{MAX_RETRIES})"
            )
            if cancel_event is None:
                time.sleep(wait_time)
            elif cancel_event.wait(wait_time):
                raise QuotaWaitCancelled() from e

    raise APIAccessError("Feishu API failure (after 3 retries)")


def _is_rate_limit_error(exception: Exception) -> bool:
    """Check if an exception represents a server-side rate limit rejection.

    Args:
        exception: The exception to check

    Returns:
        True if this appears to be a rate limit error, False otherwise
    """
    if isinstance(exception, PermissionDeniedError):
        return False

    if getattr(exception, 'code', None) == FEISHU_RATE_LIMIT_CODE:
        return True

    if getattr(exception, 'status_code', None) == 429:
        return True

    response = getattr(exception, 'response', None)
    if response is not None and getattr(response, 'status_code', None) == 429:
        return True

    error_msg = str(exception).lower()
    rate_limit_patterns = [
        '429',
        str(FEISHU_RATE_LIMIT_CODE),
        'too many requests',
        'rate limit exceeded',
        'frequency limit',
    ]
    return any(pattern in error_msg for pattern in rate_limit_patterns)
