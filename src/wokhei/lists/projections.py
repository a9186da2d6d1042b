"""
Projector - turns raw events into list records

Tags are untyped string arrays. The projector pattern-matches the keys it
knows and leaves everything else in the raw tag list. Short or empty tags
are skipped, never fatal.
"""

from wokhei.kernel.events import Event, is_addressable
from wokhei.lists.models import Coordinate, ProjectedRecord


def project_event(event: Event) -> ProjectedRecord:
    """
    Project one event into a ProjectedRecord

    Tag conventions:
        names        -> name (first value), plural_name (second), aliases (rest)
        title/titles -> title
        description  -> description
        d            -> coordinate (addressable kinds only)
        z            -> header_ref
        r            -> resource

    The first occurrence of each key wins.
    """
    fields: dict = {}

    for tag in event.tags:
        if len(tag) < 2:
            continue
        key, values = tag[0], tag[1:]

        if key == "names" and "name" not in fields:
            fields["name"] = values[0]
            if len(values) > 1:
                fields["plural_name"] = values[1]
                fields["aliases"] = list(values[1:])
        elif key in ("title", "titles") and "title" not in fields:
            fields["title"] = values[0]
        elif key == "description" and "description" not in fields:
            fields["description"] = values[0]
        elif key == "d" and "coordinate" not in fields and is_addressable(event.kind):
            fields["coordinate"] = str(Coordinate(event.kind, event.pubkey, values[0]))
        elif key == "z" and "header_ref" not in fields:
            fields["header_ref"] = values[0]
        elif key == "r" and "resource" not in fields:
            fields["resource"] = values[0]

    return ProjectedRecord(
        event_id=event.id,
        kind=event.kind,
        pubkey=event.pubkey,
        created_at=event.created_at,
        tags=[list(tag) for tag in event.tags],
        content=event.content,
        signature=event.sig,
        **fields,
    )


def project_events(events: list[Event]) -> list[ProjectedRecord]:
    return [project_event(event) for event in events]


def filter_by_name(records: list[ProjectedRecord], substring: str | None) -> list[ProjectedRecord]:
    """
    Case-insensitive substring match on the primary name

    Relays cannot search substrings, so this runs after projection.
    Records without a name never match a non-empty filter.
    """
    if not substring:
        return list(records)
    needle = substring.lower()
    return [r for r in records if r.name is not None and needle in r.name.lower()]
