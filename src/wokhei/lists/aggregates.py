"""
Count and Export Aggregators

Count asks the relay first (NIP-45 COUNT is optional and often missing)
and falls back to walking the whole result set. Export walks everything:
every header, resolved, with every one of its items. Any failure aborts
the export rather than returning a partial corpus.
"""

from typing import Any

from pydantic import BaseModel

from wokhei.kernel.errors import RelayError
from wokhei.kernel.events import HEADER_KINDS
from wokhei.kernel.logging import get_logger
from wokhei.kernel.metrics import count_fallbacks_total
from wokhei.kernel.query_policy import QueryPolicy
from wokhei.relay.client import RelayClient
from wokhei.relay.filters import Filter
from wokhei.lists.enumerator import enumerate_events
from wokhei.lists.items import enumerate_items
from wokhei.lists.models import ProjectedRecord
from wokhei.lists.pagination import sort_records
from wokhei.lists.projections import project_events
from wokhei.lists.resolver import canonical_reference

logger = get_logger(__name__)


async def count_events(client: RelayClient, filter: Filter, policy: QueryPolicy) -> int:
    """
    Exact number of events matching filter

    Uses the relay's native COUNT when it answers; otherwise enumerates
    and counts distinct event ids. Enumeration failures propagate.
    """
    try:
        native = await client.count(filter, policy.count_timeout_seconds)
    except RelayError as e:
        logger.info("Native count failed", error=str(e), filter=filter.to_wire())
        native = None

    if native is not None:
        return native

    count_fallbacks_total.inc()
    logger.info("Counting by enumeration", filter=filter.to_wire())
    events = await enumerate_events(
        client, filter, policy.page_size, policy.fetch_timeout_seconds
    )
    return len(events)


class ExportEntry(BaseModel):
    """One header with its full item set"""

    header: ProjectedRecord
    reference: str
    items_count: int
    items: list[ProjectedRecord]


class ExportCounts(BaseModel):
    headers: int
    items: int


class Export(BaseModel):
    """Every header on the relay, in listing order, with all of its items"""

    counts: ExportCounts
    headers: list[ExportEntry]

    def to_dict(self) -> dict[str, Any]:
        return {
            "counts": self.counts.model_dump(),
            "headers": [
                {
                    "header": entry.header.to_dict(),
                    "reference": entry.reference,
                    "items_count": entry.items_count,
                    "items": [item.to_dict() for item in entry.items],
                }
                for entry in self.headers
            ],
        }


async def export_corpus(client: RelayClient, policy: QueryPolicy) -> Export:
    """
    Enumerate all headers, then each header's items, one request at a time

    Raises:
        HeaderMissingIdentifier: an addressable header has no d-tag
        RelayError: any page of any enumeration failed
    """
    header_events = await enumerate_events(
        client, Filter(kinds=list(HEADER_KINDS)), policy.page_size, policy.fetch_timeout_seconds
    )
    events_by_id = {event.id: event for event in header_events}

    entries: list[ExportEntry] = []
    for header in sort_records(project_events(header_events)):
        reference = canonical_reference(events_by_id[header.event_id])
        item_events = await enumerate_items(
            client, reference, policy.page_size, policy.fetch_timeout_seconds
        )
        items = sort_records(project_events(item_events))
        entries.append(
            ExportEntry(
                header=header,
                reference=reference.value,
                items_count=len(items),
                items=items,
            )
        )
        logger.debug("Exported header", reference=reference.value, items=len(items))

    counts = ExportCounts(
        headers=len(entries),
        items=sum(entry.items_count for entry in entries),
    )
    return Export(counts=counts, headers=entries)
