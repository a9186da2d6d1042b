"""
Timeout handling for relay requests.

Every network call carries a fixed timeout. Exceeding it is mapped to
RelayTimeout, which aborts the enclosing operation.
"""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from wokhei.kernel.errors import RelayTimeout
from wokhei.kernel.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Per-request timeouts live on QueryPolicy; the handshake uses this one.
CONNECT_TIMEOUT = 10.0


async def with_timeout(
    awaitable: Awaitable[T],
    seconds: float,
    url: str,
    operation: str = "operation",
) -> T:
    """
    Await with a deadline, raising RelayTimeout when it passes.

    Args:
        awaitable: The request to wait for
        seconds: Maximum seconds to allow
        url: Relay URL (for the error message)
        operation: Name of operation for logging

    Raises:
        RelayTimeout: If the request exceeds its timeout

    Example:
        events = await with_timeout(self._collect(sub_id), 10, url, "fetch")
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as e:
        logger.error(
            "Relay request exceeded timeout",
            operation=operation,
            timeout_seconds=seconds,
            relay=url,
        )
        raise RelayTimeout(url, operation, seconds) from e
