"""
Retry logic with exponential backoff for transient transport failures.

Only the websocket handshake is retried. Query requests are never retried
inside wokhei: a failed fetch aborts the whole operation and the caller
decides whether to run it again.
"""

from collections.abc import Callable
from typing import Any, TypeVar

import aiohttp
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from wokhei.kernel.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

TRANSPORT_ERRORS: tuple[type[Exception], ...] = (
    aiohttp.ClientError,
    ConnectionError,
    OSError,
)


def retry_on_transport_error(
    max_attempts: int = 2,
    min_wait_ms: int = 100,
    max_wait_ms: int = 1000,
    exceptions: tuple[type[Exception], ...] = TRANSPORT_ERRORS,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Retry decorator for transient transport errors.

    Works on coroutine functions as well as plain ones (tenacity
    detects coroutines and retries them with asyncio.sleep).

    Args:
        max_attempts: Maximum number of attempts (default: 2)
        min_wait_ms: Minimum wait time in milliseconds (default: 100)
        max_wait_ms: Maximum wait time in milliseconds (default: 1000)
        exceptions: Exception types to retry on

    Example:
        @retry_on_transport_error(max_attempts=3)
        async def open_socket(url):
            return await session.ws_connect(url)
    """

    def _log_retry(retry_state: Any) -> None:
        logger.warning(
            "Relay transport error, retrying",
            attempt=retry_state.attempt_number,
            exception=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    return retry(
        retry=retry_if_exception_type(exceptions),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=1,
            min=min_wait_ms / 1000.0,
            max=max_wait_ms / 1000.0,
        ),
        before_sleep=_log_retry,
        reraise=True,
    )
