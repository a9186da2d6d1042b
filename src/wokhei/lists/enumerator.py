"""
Exhaustive Enumerator - every matching event, exactly once

Relays cap each response and never say whether more remain. We walk
backwards in time instead: fetch a full page, move the ``until`` bound
to one second before the oldest event seen, and repeat until a short
page comes back.

The cursor is explicit, immutable state so the stepping rule can be
tested without a relay. Pages are fetched strictly one after another -
each cursor depends on the page before it.
"""

from collections.abc import AsyncIterator

from pydantic import BaseModel

from wokhei.kernel.events import Event
from wokhei.kernel.logging import get_logger
from wokhei.kernel.metrics import enumeration_pages_total
from wokhei.relay.client import RelayClient
from wokhei.relay.filters import Filter

logger = get_logger(__name__)

# Nothing can be older than the Unix epoch
EPOCH_FLOOR = 0


class EnumerationCursor(BaseModel):
    """Position of an enumeration: the next upper time bound and pages so far"""

    until: int | None = None
    pages: int = 0
    exhausted: bool = False

    model_config = {"frozen": True}

    def advance(self, batch: list[Event], page_size: int) -> "EnumerationCursor":
        """
        Step the cursor past one fetched page

        Stops when the page is short, when the epoch floor is reached, or
        when the next bound would not be strictly lower than the current
        one (a relay ignoring ``until`` would otherwise loop forever).
        """
        pages = self.pages + 1
        if len(batch) < page_size:
            return EnumerationCursor(until=self.until, pages=pages, exhausted=True)

        oldest = min(event.created_at for event in batch)
        if oldest <= EPOCH_FLOOR:
            return EnumerationCursor(until=self.until, pages=pages, exhausted=True)

        next_until = oldest - 1
        if self.until is not None and next_until >= self.until:
            logger.warning(
                "Relay returned events outside the time bound, stopping enumeration",
                until=self.until,
                oldest=oldest,
            )
            return EnumerationCursor(until=self.until, pages=pages, exhausted=True)

        return EnumerationCursor(until=next_until, pages=pages)


async def iter_batches(
    client: RelayClient,
    base_filter: Filter,
    page_size: int,
    timeout: float,
    start: EnumerationCursor | None = None,
) -> AsyncIterator[list[Event]]:
    """
    Lazily yield raw pages for base_filter, newest bound first

    Batches may overlap; deduplication is the consumer's job. Any fetch
    failure propagates and ends the sequence.
    """
    cursor = start or EnumerationCursor(until=base_filter.until)
    while not cursor.exhausted:
        batch = await client.fetch(base_filter.with_cursor(cursor.until, page_size), timeout)
        enumeration_pages_total.inc()
        cursor = cursor.advance(batch, page_size)
        yield batch


async def enumerate_events(
    client: RelayClient,
    base_filter: Filter,
    page_size: int,
    timeout: float,
) -> list[Event]:
    """
    Every event matching base_filter, deduplicated by identity

    Returns events in first-seen order. There is no partial success: if
    any page fails, the whole enumeration raises.
    """
    seen: set[str] = set()
    events: list[Event] = []
    pages = 0

    async for batch in iter_batches(client, base_filter, page_size, timeout):
        pages += 1
        for event in batch:
            if event.id in seen:
                continue
            seen.add(event.id)
            events.append(event)

    logger.debug(
        "Enumeration finished",
        pages=pages,
        events=len(events),
        filter=base_filter.to_wire(),
    )
    return events
