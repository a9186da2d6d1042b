"""Relay access: filters, the client protocol and the websocket transport."""

from wokhei.relay.client import (
    ClientFactory,
    RelayClient,
    WebSocketRelayClient,
    open_relay,
)
from wokhei.relay.filters import Filter

__all__ = [
    "ClientFactory",
    "Filter",
    "RelayClient",
    "WebSocketRelayClient",
    "open_relay",
]
