"""
Query Policy - Tunable limits for talking to a relay

The QueryPolicy collects the page size, timeouts and default result caps
used by every query. Relays commonly cap a single response at a few
hundred events, so the page size must stay at or below that cap for the
enumerator's "short page means done" test to hold.

Fun fact: strfry, a popular relay, defaults to a 500-event response cap -
which is exactly why our default page size is 500!
"""

import os

from pydantic import BaseModel, Field

DEFAULT_RELAY = "ws://localhost:7777"
RELAY_ENV_VAR = "WOKHEI_RELAY"


class QueryPolicy(BaseModel):
    """Limits and timeouts applied to every relay query"""

    page_size: int = Field(
        default=500,
        ge=1,
        description="Events requested per enumeration page (must not exceed the relay cap)",
    )

    fetch_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for a single REQ round trip",
    )

    lookup_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Timeout for fetching one event by identity",
    )

    count_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Timeout for a native COUNT request",
    )

    connect_attempts: int = Field(
        default=2,
        ge=1,
        le=10,
        description="Websocket handshake attempts before reporting the relay unreachable",
    )

    default_header_limit: int = Field(
        default=50,
        ge=0,
        description="Headers per page when the caller gives no limit",
    )

    default_item_limit: int = Field(
        default=100,
        ge=0,
        description="Item cap for the interactive list-items path",
    )

    model_config = {"frozen": True}


def resolve_relay(flag: str | None = None) -> str:
    """
    Relay URL from the explicit flag, the WOKHEI_RELAY variable, or the default

    An explicit flag always wins over the environment.
    """
    if flag:
        return flag
    return os.getenv(RELAY_ENV_VAR) or DEFAULT_RELAY
