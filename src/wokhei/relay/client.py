"""
Relay client - websocket transport for NIP-01 REQ and NIP-45 COUNT

The query engine only depends on the RelayClient protocol; this module
also ships the aiohttp implementation used in production and the scoped
``open_relay`` helper that guarantees every connection is released.

Fun fact: A relay never tells you "there is more" - the only hint is that
it sent exactly as many events as you asked for.
"""

import itertools
import json
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any, Protocol

import aiohttp
from pydantic import ValidationError

from wokhei.kernel.errors import RelayError, RelayTimeout, RelayUnreachable
from wokhei.kernel.events import Event
from wokhei.kernel.logging import get_logger
from wokhei.kernel.metrics import events_received_total, record_relay_request
from wokhei.kernel.retry import TRANSPORT_ERRORS, retry_on_transport_error
from wokhei.kernel.timeout import CONNECT_TIMEOUT, with_timeout
from wokhei.relay.filters import Filter

logger = get_logger(__name__)


class RelayClient(Protocol):
    """What the query engine needs from an event store connection"""

    url: str

    async def connect(self, url: str) -> None:
        """Open the connection; raise RelayUnreachable on failure"""
        ...

    async def fetch(self, filter: Filter, timeout: float) -> list[Event]:
        """One REQ round trip; may return fewer events than exist"""
        ...

    async def count(self, filter: Filter, timeout: float) -> int | None:
        """Native count, or None when the relay does not support it"""
        ...

    async def disconnect(self) -> None:
        """Release the connection; safe to call more than once"""
        ...


ClientFactory = Callable[[], RelayClient]


def parse_relay_message(raw: str) -> list[Any] | None:
    """
    Decode one relay frame

    Returns None for anything that is not a JSON array starting with a
    string label (relays occasionally send garbage; we skip it).
    """
    try:
        message = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(message, list) or not message or not isinstance(message[0], str):
        return None
    return message


class WebSocketRelayClient:
    """
    aiohttp websocket client for a single relay

    One instance holds at most one connection. Subscriptions are issued
    strictly one at a time; frames for other subscription ids are ignored.
    """

    def __init__(self, connect_attempts: int = 2) -> None:
        self.url = ""
        self.connect_attempts = connect_attempts
        self._session: aiohttp.ClientSession | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._sub_ids = itertools.count(1)

    async def connect(self, url: str) -> None:
        self.url = url
        self._session = aiohttp.ClientSession()
        open_socket = retry_on_transport_error(max_attempts=self.connect_attempts)(
            self._open_socket
        )
        try:
            self._ws = await with_timeout(open_socket(url), CONNECT_TIMEOUT, url, "connect")
        except RelayTimeout:
            await self.disconnect()
            raise
        except TRANSPORT_ERRORS as e:
            await self.disconnect()
            raise RelayUnreachable(url, str(e)) from e
        logger.debug("Connected to relay", relay=url)

    async def _open_socket(self, url: str) -> aiohttp.ClientWebSocketResponse:
        assert self._session is not None
        return await self._session.ws_connect(url, heartbeat=30)

    async def fetch(self, filter: Filter, timeout: float) -> list[Event]:
        sub_id = self._next_subscription_id()
        try:
            await self._send(["REQ", sub_id, filter.to_wire()])
            events = await with_timeout(
                self._collect_events(sub_id), timeout, self.url, "fetch"
            )
            await self._send(["CLOSE", sub_id])
        except RelayError:
            record_relay_request("fetch", succeeded=False)
            raise
        record_relay_request("fetch", succeeded=True)
        events_received_total.inc(len(events))
        logger.debug("Fetched events", relay=self.url, count=len(events), filter=filter.to_wire())
        return events

    async def count(self, filter: Filter, timeout: float) -> int | None:
        sub_id = self._next_subscription_id()
        await self._send(["COUNT", sub_id, filter.to_wire()])
        try:
            result = await with_timeout(self._await_count(sub_id), timeout, self.url, "count")
        except RelayTimeout:
            # Relays without NIP-45 often just stay silent
            record_relay_request("count", succeeded=False)
            return None
        record_relay_request("count", succeeded=result is not None)
        return result

    async def disconnect(self) -> None:
        ws, self._ws = self._ws, None
        session, self._session = self._session, None
        if ws is not None and not ws.closed:
            await ws.close()
        if session is not None and not session.closed:
            await session.close()

    def _next_subscription_id(self) -> str:
        return f"wokhei-{next(self._sub_ids)}"

    async def _send(self, message: list[Any]) -> None:
        if self._ws is None or self._ws.closed:
            raise RelayUnreachable(self.url, "not connected")
        try:
            await self._ws.send_json(message)
        except TRANSPORT_ERRORS as e:
            raise RelayUnreachable(self.url, str(e)) from e

    async def _receive(self) -> list[Any] | None:
        """Next decoded frame; raises RelayUnreachable when the socket closes"""
        assert self._ws is not None
        msg = await self._ws.receive()
        if msg.type == aiohttp.WSMsgType.TEXT:
            return parse_relay_message(msg.data)
        if msg.type in (
            aiohttp.WSMsgType.CLOSE,
            aiohttp.WSMsgType.CLOSING,
            aiohttp.WSMsgType.CLOSED,
            aiohttp.WSMsgType.ERROR,
        ):
            raise RelayUnreachable(self.url, "connection closed by relay")
        return None

    async def _collect_events(self, sub_id: str) -> list[Event]:
        events: list[Event] = []
        while True:
            message = await self._receive()
            if message is None:
                continue
            label = message[0]
            if label == "EVENT" and len(message) >= 3 and message[1] == sub_id:
                try:
                    events.append(Event.model_validate(message[2]))
                except ValidationError as e:
                    logger.warning(
                        "Dropping malformed event from relay",
                        relay=self.url,
                        error=str(e),
                    )
            elif label == "EOSE" and len(message) >= 2 and message[1] == sub_id:
                return events
            elif label == "CLOSED" and len(message) >= 2 and message[1] == sub_id:
                reason = message[2] if len(message) >= 3 else ""
                raise RelayUnreachable(self.url, f"subscription closed: {reason}")
            elif label == "NOTICE":
                logger.warning("Relay notice", relay=self.url, notice=message[1:])

    async def _await_count(self, sub_id: str) -> int | None:
        while True:
            message = await self._receive()
            if message is None:
                continue
            label = message[0]
            if label == "COUNT" and len(message) >= 3 and message[1] == sub_id:
                payload = message[2]
                if isinstance(payload, dict) and isinstance(payload.get("count"), int):
                    return payload["count"]
                return None
            if label == "CLOSED" and len(message) >= 2 and message[1] == sub_id:
                return None
            if label == "NOTICE":
                # strfry and friends answer unknown verbs with a NOTICE
                logger.info("Relay rejected COUNT", relay=self.url, notice=message[1:])
                return None


@asynccontextmanager
async def open_relay(url: str, factory: ClientFactory) -> AsyncIterator[RelayClient]:
    """
    Scoped relay connection: connect on entry, always disconnect on exit

    Example:
        async with open_relay("ws://localhost:7777", WebSocketRelayClient) as client:
            events = await client.fetch(Filter(kinds=[9998]), timeout=10)
    """
    client = factory()
    try:
        await client.connect(url)
        yield client
    finally:
        await client.disconnect()
