"""
Reference Resolver - from "which list?" to the canonical join key

A header can be named two ways:
- by event id: we fetch it and derive the reference from its kind
- by coordinate (kind:pubkey:d-tag): parsed locally, no network needed

Either way an addressable header resolves to its coordinate string, so
the reference survives new revisions of the header. An immutable header
resolves to its own event id, which never changes.
"""

from wokhei.kernel.errors import (
    HeaderMissingIdentifier,
    HeaderNotFound,
    InvalidCoordinate,
    InvalidEventId,
    WrongReferenceKind,
)
from wokhei.kernel.events import (
    ADDRESSABLE_HEADER_KIND,
    HEADER_KIND,
    Event,
    normalize_hex_key,
)
from wokhei.relay.client import RelayClient
from wokhei.relay.filters import Filter
from wokhei.lists.models import Coordinate, HeaderReference

MAX_KIND = 65535


def parse_coordinate(text: str) -> Coordinate:
    """
    Parse kind:pubkey:identifier

    Splits on the first two colons only, so identifiers may contain
    colons or be empty. The pubkey is normalized to lowercase hex.

    Raises:
        InvalidCoordinate: wrong segment count, non-numeric kind, bad pubkey
    """
    parts = text.split(":", 2)
    if len(parts) != 3:
        raise InvalidCoordinate(text)

    kind_text, pubkey_text, identifier = parts
    if not (kind_text.isascii() and kind_text.isdigit()) or int(kind_text) > MAX_KIND:
        raise InvalidCoordinate(text)

    pubkey = normalize_hex_key(pubkey_text)
    if pubkey is None:
        raise InvalidCoordinate(text)

    return Coordinate(int(kind_text), pubkey, identifier)


def resolve_coordinate(text: str) -> HeaderReference:
    """
    Canonical reference for a header coordinate

    Raises:
        InvalidCoordinate: the text is not a coordinate
        WrongReferenceKind: the coordinate does not address a list header
    """
    coordinate = parse_coordinate(text)
    if coordinate.kind != ADDRESSABLE_HEADER_KIND:
        raise WrongReferenceKind(text, coordinate.kind)
    return HeaderReference.of(str(coordinate))


def canonical_reference(event: Event) -> HeaderReference:
    """
    Canonical reference for a header event already in hand

    Raises:
        HeaderMissingIdentifier: addressable header without a d-tag
        WrongReferenceKind: the event is not a list header
    """
    if event.kind == ADDRESSABLE_HEADER_KIND:
        identifier = event.identifier
        if identifier is None:
            raise HeaderMissingIdentifier(event.id)
        return HeaderReference.of(str(Coordinate(event.kind, event.pubkey, identifier)))

    if event.kind == HEADER_KIND:
        return HeaderReference.of(event.id)

    raise WrongReferenceKind(event.id, event.kind)


async def fetch_event(client: RelayClient, event_id: str, timeout: float) -> Event | None:
    """
    Fetch one event by identity

    Raises:
        InvalidEventId: event_id is not 64 hex characters
    """
    normalized = normalize_hex_key(event_id)
    if normalized is None:
        raise InvalidEventId(event_id)

    events = await client.fetch(Filter(ids=[normalized], limit=1), timeout)
    for event in events:
        if event.id == normalized:
            return event
    return None


async def resolve_by_id(client: RelayClient, event_id: str, timeout: float) -> HeaderReference:
    """
    Canonical reference for a header named by event id

    Raises:
        InvalidEventId, HeaderNotFound, HeaderMissingIdentifier, WrongReferenceKind
    """
    event = await fetch_event(client, event_id, timeout)
    if event is None:
        raise HeaderNotFound(event_id)
    return canonical_reference(event)


async def resolve_header_reference(
    client: RelayClient,
    *,
    header_id: str | None = None,
    coordinate: str | None = None,
    timeout: float,
) -> HeaderReference:
    """Resolve whichever reference form the caller supplied (coordinate wins)"""
    if coordinate is not None:
        return resolve_coordinate(coordinate)
    if header_id is not None:
        return await resolve_by_id(client, header_id, timeout)
    raise ValueError("header_id or coordinate is required")
