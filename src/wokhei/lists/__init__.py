"""
Lists - Decentralized list headers and items

Headers (kinds 9998/39998) name a list; items (kinds 9999/39999) join
it by carrying the header's canonical reference in a ``z`` tag. This
package turns a relay's raw, capped, possibly duplicated responses into
complete, ordered, paginated results.
"""

from wokhei.lists.aggregates import Export, count_events, export_corpus
from wokhei.lists.enumerator import EnumerationCursor, enumerate_events, iter_batches
from wokhei.lists.items import enumerate_items, fetch_items
from wokhei.lists.models import (
    Coordinate,
    HeaderReference,
    NextAction,
    ProjectedRecord,
    QueryResult,
)
from wokhei.lists.pagination import Page, paginate, sort_records
from wokhei.lists.projections import filter_by_name, project_event
from wokhei.lists.resolver import (
    canonical_reference,
    parse_coordinate,
    resolve_header_reference,
)

__all__ = [
    "Coordinate",
    "EnumerationCursor",
    "Export",
    "HeaderReference",
    "NextAction",
    "Page",
    "ProjectedRecord",
    "QueryResult",
    "canonical_reference",
    "count_events",
    "enumerate_events",
    "enumerate_items",
    "export_corpus",
    "fetch_items",
    "filter_by_name",
    "iter_batches",
    "paginate",
    "parse_coordinate",
    "project_event",
    "resolve_header_reference",
    "sort_records",
]
