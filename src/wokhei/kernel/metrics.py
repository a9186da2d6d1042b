"""
Prometheus metrics collection for wokhei.

Provides observability into relay traffic and query cost.
"""

import time
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from prometheus_client import Counter, Histogram

# ============================================================================
# Relay Traffic Metrics
# ============================================================================

relay_requests_total = Counter(
    "wokhei_relay_requests_total",
    "Total number of requests sent to the relay",
    ["operation", "status"],  # operation: fetch, count; status: success, failure
)

events_received_total = Counter(
    "wokhei_events_received_total",
    "Total number of events received from the relay",
)

# ============================================================================
# Query Engine Metrics
# ============================================================================

enumeration_pages_total = Counter(
    "wokhei_enumeration_pages_total",
    "Total number of pages fetched by the exhaustive enumerator",
)

count_fallbacks_total = Counter(
    "wokhei_count_fallbacks_total",
    "Times a native COUNT was unavailable and enumeration was used instead",
)

query_duration_seconds = Histogram(
    "wokhei_query_duration_seconds",
    "Duration of a full query operation in seconds",
    ["query", "status"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)

# ============================================================================
# Helper Functions
# ============================================================================

P = ParamSpec("P")
R = TypeVar("R")


def track_query_duration(
    query: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """
    Decorator to track the duration of an async query operation.

    Args:
        query: Name of the query (e.g., "list_headers", "export")
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start = time.perf_counter()
            status = "success"
            try:
                return await func(*args, **kwargs)
            except Exception:
                status = "failure"
                raise
            finally:
                duration = time.perf_counter() - start
                query_duration_seconds.labels(query=query, status=status).observe(duration)

        return wrapper

    return decorator


def record_relay_request(operation: str, succeeded: bool) -> None:
    """Count one relay request by outcome."""
    relay_requests_total.labels(
        operation=operation, status="success" if succeeded else "failure"
    ).inc()
