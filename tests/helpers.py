"""
Test Helper Functions - Event builders and an in-memory relay

The InMemoryRelay implements the RelayClient protocol with real filter
semantics (kinds, authors, ids, tag equality, until, limit) and the
newest-first ordering relays use, plus knobs for the misbehaviours the
query engine has to survive: overlapping pages, ignored time bounds,
missing COUNT support and injected failures.
"""

import hashlib
from collections.abc import Iterable

from wokhei.kernel.errors import RelayUnreachable
from wokhei.kernel.events import (
    ADDRESSABLE_HEADER_KIND,
    ADDRESSABLE_ITEM_KIND,
    HEADER_KIND,
    ITEM_KIND,
    Event,
)
from wokhei.relay.filters import Filter

ALICE = "a1" * 32
BOB = "b2" * 32


def make_event(
    *,
    kind: int,
    created_at: int,
    tags: list[list[str]] | None = None,
    pubkey: str = ALICE,
    content: str = "",
    event_id: str | None = None,
) -> Event:
    """
    Builder for events with a deterministic, content-derived id

    Two calls with the same arguments produce the same id, just as
    signing the same content twice would.
    """
    tags = tags or []
    if event_id is None:
        preimage = f"{kind}|{pubkey}|{created_at}|{tags}|{content}"
        event_id = hashlib.sha256(preimage.encode()).hexdigest()
    return Event(
        id=event_id,
        kind=kind,
        pubkey=pubkey,
        created_at=created_at,
        tags=tags,
        content=content,
        sig="f" * 128,
    )


def header_event(
    name: str,
    created_at: int,
    *,
    addressable: bool = False,
    d: str | None = None,
    pubkey: str = ALICE,
    extra_tags: Iterable[list[str]] = (),
) -> Event:
    """Builder for list headers (kind 9998, or 39998 when addressable)"""
    tags = [["names", name, f"{name}s"], ["title", name.title()]]
    if d is not None:
        tags.append(["d", d])
    tags.extend(extra_tags)
    return make_event(
        kind=ADDRESSABLE_HEADER_KIND if addressable else HEADER_KIND,
        created_at=created_at,
        tags=tags,
        pubkey=pubkey,
    )


def item_event(
    reference: str,
    created_at: int,
    resource: str,
    *,
    addressable: bool = False,
    pubkey: str = ALICE,
) -> Event:
    """Builder for list items pointing at a header reference via the z tag"""
    tags = [["z", reference], ["r", resource]]
    if addressable:
        tags.append(["d", resource])
    return make_event(
        kind=ADDRESSABLE_ITEM_KIND if addressable else ITEM_KIND,
        created_at=created_at,
        tags=tags,
        pubkey=pubkey,
    )


class InMemoryRelay:
    """
    Fake relay implementing the RelayClient protocol

    Args:
        events: Events the relay holds
        supports_count: Answer COUNT natively (otherwise return None)
        count_error: Raise RelayUnreachable on COUNT
        fail_on_fetch: Raise RelayUnreachable on the Nth fetch (1-based)
        overlap_seconds: Widen every ``until`` by this much, so pages overlap
        ignore_until: Ignore ``until`` entirely (a non-monotonic relay)
        max_limit: Relay-side cap applied on top of the filter's limit
    """

    def __init__(
        self,
        events: Iterable[Event] = (),
        *,
        supports_count: bool = False,
        count_error: bool = False,
        fail_on_fetch: int | None = None,
        overlap_seconds: int = 0,
        ignore_until: bool = False,
        max_limit: int | None = None,
    ) -> None:
        self.events = list(events)
        self.supports_count = supports_count
        self.count_error = count_error
        self.fail_on_fetch = fail_on_fetch
        self.overlap_seconds = overlap_seconds
        self.ignore_until = ignore_until
        self.max_limit = max_limit

        self.url = ""
        self.connected = False
        self.connects = 0
        self.disconnects = 0
        self.fetches: list[Filter] = []
        self.count_requests: list[Filter] = []

    def add(self, *events: Event) -> None:
        self.events.extend(events)

    async def connect(self, url: str) -> None:
        self.url = url
        self.connected = True
        self.connects += 1

    async def fetch(self, filter: Filter, timeout: float) -> list[Event]:
        assert self.connected, "fetch on a closed connection"
        self.fetches.append(filter)
        if self.fail_on_fetch is not None and len(self.fetches) >= self.fail_on_fetch:
            raise RelayUnreachable(self.url, "injected failure")

        until = filter.until
        if self.ignore_until:
            until = None
        elif until is not None:
            until += self.overlap_seconds
        effective = filter.with_cursor(until, None)

        matching = sorted(
            (event for event in self.events if effective.matches(event)),
            key=lambda event: (-event.created_at, event.id),
        )
        limit = filter.limit
        if self.max_limit is not None:
            limit = self.max_limit if limit is None else min(limit, self.max_limit)
        return matching if limit is None else matching[:limit]

    async def count(self, filter: Filter, timeout: float) -> int | None:
        assert self.connected, "count on a closed connection"
        self.count_requests.append(filter)
        if self.count_error:
            raise RelayUnreachable(self.url, "injected count failure")
        if not self.supports_count:
            return None
        return sum(1 for event in self.events if filter.matches(event))

    async def disconnect(self) -> None:
        self.connected = False
        self.disconnects += 1


class UnreachableRelay(InMemoryRelay):
    """A relay whose connection attempt always fails"""

    async def connect(self, url: str) -> None:
        self.connects += 1
        raise RelayUnreachable(url, "connection refused")
