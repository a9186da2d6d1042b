"""
Wokhei - Main query façade

This is the primary interface for reading decentralized lists from a
relay. Each method is one logical query: it opens exactly one relay
connection, awaits its requests strictly one after another, shapes the
result, and releases the connection on every exit path.

Example:
    >>> from wokhei import Wokhei
    >>> wk = Wokhei("ws://localhost:7777")
    >>> page = await wk.list_headers(name="book", limit=10)
    >>> items = await wk.list_items(coordinate="39998:<pubkey>:books")
    >>> backup = await wk.export()
"""

import shlex
from typing import Any

from wokhei.kernel.errors import EventNotFound, InvalidEventId, InvalidPublicKey, NoResults
from wokhei.kernel.events import HEADER_KINDS, ITEM_KINDS, TOPIC_TAG, normalize_hex_key
from wokhei.kernel.logging import LogOperation, get_logger
from wokhei.kernel.metrics import track_query_duration
from wokhei.kernel.query_policy import QueryPolicy
from wokhei.lists.aggregates import count_events, export_corpus
from wokhei.lists.enumerator import enumerate_events
from wokhei.lists.items import fetch_items
from wokhei.lists.models import NextAction, QueryResult
from wokhei.lists.pagination import Page, paginate, sort_records
from wokhei.lists.projections import filter_by_name, project_event, project_events
from wokhei.lists.resolver import fetch_event, resolve_coordinate, resolve_header_reference
from wokhei.relay.client import ClientFactory, WebSocketRelayClient, open_relay
from wokhei.relay.filters import Filter

logger = get_logger(__name__)


def _command(command: str, *args: str, **flags: Any) -> str:
    """
    Render a suggested CLI invocation, skipping flags that are None

    Values are shell-quoted so the command can be pasted as is.
    """
    parts = ["wokhei", command]
    parts.extend(
        f"--{key.replace('_', '-')}={shlex.quote(str(value))}"
        for key, value in flags.items()
        if value is not None
    )
    parts.extend(shlex.quote(arg) for arg in args)
    return " ".join(parts)


class Wokhei:
    """
    Query façade over a single relay

    Provides:
    - Header listing with client-side name filter and pagination
    - Item listing for a header referenced by id or coordinate
    - Single event inspection
    - Header/item counts
    - Full export of every list
    """

    def __init__(
        self,
        relay_url: str,
        policy: QueryPolicy | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        """
        Initialize the façade

        Args:
            relay_url: Websocket URL of the relay
            policy: Page size, timeouts and default limits (defaults if None)
            client_factory: Builds a fresh RelayClient per query
                (websocket client if None)
        """
        self.relay_url = relay_url
        self.policy = policy or QueryPolicy()
        self.client_factory = client_factory or self._websocket_client

    def _websocket_client(self) -> WebSocketRelayClient:
        return WebSocketRelayClient(connect_attempts=self.policy.connect_attempts)

    def _connect(self):
        return open_relay(self.relay_url, self.client_factory)

    # Headers

    @track_query_duration("list_headers")
    async def list_headers(
        self,
        author: str | None = None,
        tag: str | None = None,
        name: str | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> QueryResult:
        """
        List headers, newest first, one page at a time

        The full header set is enumerated so that every (offset, limit)
        window is a slice of the same ordering.

        Raises:
            InvalidPublicKey: author is not a hex public key
            NoResults: nothing matches the filters
            RelayError: the relay failed during enumeration
        """
        limit = self.policy.default_header_limit if limit is None else limit

        authors = None
        if author is not None:
            pubkey = normalize_hex_key(author)
            if pubkey is None:
                raise InvalidPublicKey(author)
            authors = [pubkey]

        base_filter = Filter(
            kinds=list(HEADER_KINDS),
            authors=authors,
            tags={TOPIC_TAG: [tag]} if tag else {},
        )

        with LogOperation(
            logger, "list_headers", relay=self.relay_url, author=author, tag=tag, name=name
        ):
            async with self._connect() as client:
                events = await enumerate_events(
                    client,
                    base_filter,
                    self.policy.page_size,
                    self.policy.fetch_timeout_seconds,
                )

        records = filter_by_name(project_events(events), name)
        if not records:
            raise NoResults("list-headers")

        page = paginate(records, offset, limit)
        return QueryResult(
            result={
                "count": len(page.records),
                "total": page.total,
                "offset": page.offset,
                "limit": page.limit,
                "has_more": page.has_more,
                "headers": [record.to_dict() for record in page.records],
            },
            next_actions=self._header_page_actions(page, author=author, tag=tag, name=name),
        )

    def _header_page_actions(self, page: Page, **filters: str | None) -> list[NextAction]:
        def page_command(offset: int) -> str:
            return _command(
                "list-headers",
                relay=self.relay_url,
                **filters,
                offset=offset,
                limit=page.limit,
            )

        actions = []
        if page.first is not None:
            actions.append(
                NextAction(
                    command=_command("list-items", page.first.event_id, relay=self.relay_url),
                    description="List items for the first header",
                )
            )
        if page.next_offset is not None:
            actions.append(
                NextAction(command=page_command(page.next_offset), description="Next page")
            )
        if page.recovery_offset is not None:
            actions.append(
                NextAction(
                    command=page_command(page.recovery_offset),
                    description=f"Offset is past the end ({page.total} headers); jump to the last page",
                )
            )
        elif page.previous_offset is not None:
            actions.append(
                NextAction(command=page_command(page.previous_offset), description="Previous page")
            )
        return actions

    # Items

    @track_query_duration("list_items")
    async def list_items(
        self,
        header_id: str | None = None,
        coordinate: str | None = None,
        limit: int | None = None,
    ) -> QueryResult:
        """
        List the items of one header, newest first

        Interactive path: a single capped request, not an exhaustive walk.
        A malformed coordinate is rejected before connecting.

        Raises:
            ValueError: neither header_id nor coordinate given
            MalformedReference, HeaderNotFound, HeaderMissingIdentifier,
            WrongReferenceKind: the header reference could not be resolved
            NoResults: the header has no items
        """
        if header_id is None and coordinate is None:
            raise ValueError("header_id or coordinate is required")
        limit = self.policy.default_item_limit if limit is None else limit

        if coordinate is not None:
            # Raises on a malformed coordinate without opening a connection
            resolve_coordinate(coordinate)

        with LogOperation(
            logger, "list_items", relay=self.relay_url, header_id=header_id, coordinate=coordinate
        ):
            async with self._connect() as client:
                reference = await resolve_header_reference(
                    client,
                    header_id=header_id,
                    coordinate=coordinate,
                    timeout=self.policy.lookup_timeout_seconds,
                )
                events = await fetch_items(
                    client, reference, limit, self.policy.fetch_timeout_seconds
                )

        if not events:
            raise NoResults(f"items of {reference.value}")

        items = sort_records(project_events(events))
        actions = [
            NextAction(
                command=_command("inspect", items[0].event_id, relay=self.relay_url),
                description="Inspect the first item",
            )
        ]
        if len(items) >= limit:
            actions.append(
                NextAction(
                    command=_command(
                        "list-items",
                        *([header_id] if coordinate is None else []),
                        relay=self.relay_url,
                        header_coordinate=coordinate,
                        limit=limit * 2,
                    ),
                    description="Result hit the limit; fetch more items",
                )
            )

        return QueryResult(
            result={
                "count": len(items),
                "header_ref": reference.value,
                "items": [item.to_dict() for item in items],
            },
            next_actions=actions,
        )

    # Single events

    @track_query_duration("inspect")
    async def inspect(self, event_id: str) -> QueryResult:
        """
        Fetch and project a single event

        Raises:
            InvalidEventId: event_id is not 64 hex characters
            EventNotFound: the relay does not hold the event
        """
        if normalize_hex_key(event_id) is None:
            raise InvalidEventId(event_id)

        with LogOperation(logger, "inspect", relay=self.relay_url, event_id=event_id):
            async with self._connect() as client:
                event = await fetch_event(client, event_id, self.policy.lookup_timeout_seconds)

        if event is None:
            raise EventNotFound(event_id)

        actions = []
        if event.kind in HEADER_KINDS:
            actions.append(
                NextAction(
                    command=_command("list-items", event.id, relay=self.relay_url),
                    description="List items in this list",
                )
            )
        return QueryResult(result=project_event(event).to_dict(), next_actions=actions)

    # Aggregates

    @track_query_duration("count")
    async def count(self) -> QueryResult:
        """Count header and item events (native COUNT, else enumeration)"""
        with LogOperation(logger, "count", relay=self.relay_url):
            async with self._connect() as client:
                headers = await count_events(client, Filter(kinds=list(HEADER_KINDS)), self.policy)
                items = await count_events(client, Filter(kinds=list(ITEM_KINDS)), self.policy)

        return QueryResult(
            result={"headers": headers, "items": items, "total": headers + items},
            next_actions=[
                NextAction(
                    command=_command("list-headers", relay=self.relay_url),
                    description="List headers",
                ),
                NextAction(
                    command=_command("export", relay=self.relay_url),
                    description="Export all headers and items",
                ),
            ],
        )

    @track_query_duration("export")
    async def export(self) -> QueryResult:
        """
        Export every header with all of its items

        An empty relay exports as an empty corpus rather than NoResults -
        a backup of nothing is still a valid backup.
        """
        with LogOperation(logger, "export", relay=self.relay_url):
            async with self._connect() as client:
                corpus = await export_corpus(client, self.policy)

        return QueryResult(result={"relay": self.relay_url, **corpus.to_dict()})
