"""
Result Paginator - one total order, pure windowing over it

Every consumer (listing, next/previous page, "first on this page",
export) sorts with ``sort_key``. If any of them used a different order,
asking for the next page twice could return different records.
"""

from pydantic import BaseModel, Field

from wokhei.lists.models import ProjectedRecord


def sort_key(record: ProjectedRecord) -> tuple[int, str]:
    """Newest first; equal timestamps ordered by ascending event id"""
    return (-record.created_at, record.event_id)


def sort_records(records: list[ProjectedRecord]) -> list[ProjectedRecord]:
    return sorted(records, key=sort_key)


class Page(BaseModel):
    """
    A window of the sorted result set plus navigation hints

    Attributes:
        records: The window itself (possibly empty)
        total: Size of the full result set
        has_more: True when records exist past this window
        next_offset: Offset of the following page, when has_more
        previous_offset: Offset of the preceding page, when offset > 0
        recovery_offset: Start of the last non-empty page, set only when
            the requested offset lies beyond the end of a non-empty set
    """

    records: list[ProjectedRecord] = Field(default_factory=list)
    total: int
    offset: int
    limit: int
    has_more: bool = False
    next_offset: int | None = None
    previous_offset: int | None = None
    recovery_offset: int | None = None

    @property
    def first(self) -> ProjectedRecord | None:
        return self.records[0] if self.records else None


def paginate(records: list[ProjectedRecord], offset: int, limit: int) -> Page:
    """
    Sort records and cut out [offset, offset + limit)

    An offset past the end or a zero limit yields an empty window, not
    an error.

    Example:
        >>> page = paginate(records_r0_to_r9, offset=8, limit=5)
        >>> [r.event_id for r in page.records], page.has_more
        (['r8', 'r9'], False)
    """
    if offset < 0 or limit < 0:
        raise ValueError(f"offset and limit must be non-negative, got {offset}, {limit}")

    ordered = sort_records(records)
    total = len(ordered)
    window = ordered[offset : min(offset + limit, total)]

    has_more = limit > 0 and offset + limit < total
    recovery_offset = None
    if total > 0 and limit > 0 and offset >= total:
        recovery_offset = ((total - 1) // limit) * limit

    return Page(
        records=window,
        total=total,
        offset=offset,
        limit=limit,
        has_more=has_more,
        next_offset=offset + limit if has_more else None,
        previous_offset=max(0, offset - limit) if offset > 0 else None,
        recovery_offset=recovery_offset,
    )
