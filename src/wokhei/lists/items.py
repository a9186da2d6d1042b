"""
Item Aggregator - every item that points at a header

Two operations with two different guarantees, so the choice is visible
at the call site:

- fetch_items: one bounded request, fast, may miss items beyond the cap
- enumerate_items: exhaustive, one request per page, never misses

Both join on the canonical reference with an exact, case-sensitive
string match on the item's ``z`` tag.
"""

from wokhei.kernel.events import ITEM_KINDS, Event
from wokhei.relay.client import RelayClient
from wokhei.relay.filters import Filter
from wokhei.lists.enumerator import enumerate_events
from wokhei.lists.models import HeaderReference


def items_filter(reference: HeaderReference) -> Filter:
    """Relay filter for items of both kinds tagged with reference"""
    return Filter(kinds=list(ITEM_KINDS), tags={reference.tag: [reference.value]})


def _belonging(events: list[Event], reference: HeaderReference) -> list[Event]:
    # Relays are not trusted to compare tag values exactly
    wanted = items_filter(reference)
    seen: set[str] = set()
    items = []
    for event in events:
        if event.id in seen or not wanted.matches(event):
            continue
        seen.add(event.id)
        items.append(event)
    return items


async def fetch_items(
    client: RelayClient,
    reference: HeaderReference,
    limit: int,
    timeout: float,
) -> list[Event]:
    """Up to ``limit`` items of the header, from a single request"""
    if limit == 0:
        return []
    events = await client.fetch(items_filter(reference).with_cursor(None, limit), timeout)
    return _belonging(events, reference)


async def enumerate_items(
    client: RelayClient,
    reference: HeaderReference,
    page_size: int,
    timeout: float,
) -> list[Event]:
    """All items of the header, however many pages that takes"""
    events = await enumerate_events(client, items_filter(reference), page_size, timeout)
    return _belonging(events, reference)
