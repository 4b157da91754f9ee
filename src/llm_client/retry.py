# src/llm_client/retry.py

"""Retry policy for chat requests.

Pure functions. The retry loop itself lives in the client and is driven by
tenacity; these decide *whether* to retry and *how long* to wait.
"""

import asyncio

from .errors import TransportError


def should_retry(
    error: BaseException | None = None, status_code: int | None = None
) -> bool:
    """Decide whether an attempt outcome is worth another try.

    Args:
        error: Exception raised before a status was received, if any.
        status_code: HTTP status of the response, when one was received.

    Returns:
        True for transport failures, 429 and 5xx. False for caller
        cancellation and for every other outcome.
    """
    if error is not None:
        if isinstance(error, asyncio.CancelledError):
            return False
        return isinstance(error, TransportError)

    if status_code is None:
        return False
    return status_code >= 500 or status_code == 429


def compute_backoff(attempt_index: int) -> float:
    """Seconds to wait before retry number ``attempt_index + 1``.

    Exponential, no jitter, no cap: 1, 2, 4, 8, ...
    """
    if attempt_index < 0:
        raise ValueError(f"attempt_index must be >= 0, got {attempt_index}")
    return float(2**attempt_index)
