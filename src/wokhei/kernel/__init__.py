"""
Kernel - Core infrastructure shared by every query

The kernel provides the event model, the error taxonomy and the ambient
machinery (logging, metrics, timeouts, retries, policy) that the list
modules build upon. It knows nothing about headers or items.
"""

from wokhei.kernel.errors import (
    EventNotFound,
    HeaderMissingIdentifier,
    HeaderNotFound,
    InvalidCoordinate,
    InvalidEventId,
    InvalidPublicKey,
    MalformedReference,
    NoResults,
    RelayError,
    RelayTimeout,
    RelayUnreachable,
    WokheiError,
    WrongReferenceKind,
)
from wokhei.kernel.events import (
    ADDRESSABLE_HEADER_KIND,
    ADDRESSABLE_ITEM_KIND,
    HEADER_KIND,
    HEADER_KINDS,
    ITEM_KIND,
    ITEM_KINDS,
    Event,
)
from wokhei.kernel.query_policy import QueryPolicy, resolve_relay

__all__ = [
    # Events
    "Event",
    "HEADER_KIND",
    "ADDRESSABLE_HEADER_KIND",
    "ITEM_KIND",
    "ADDRESSABLE_ITEM_KIND",
    "HEADER_KINDS",
    "ITEM_KINDS",
    # Policy
    "QueryPolicy",
    "resolve_relay",
    # Errors
    "WokheiError",
    "RelayError",
    "RelayUnreachable",
    "RelayTimeout",
    "MalformedReference",
    "InvalidCoordinate",
    "InvalidEventId",
    "InvalidPublicKey",
    "HeaderMissingIdentifier",
    "WrongReferenceKind",
    "EventNotFound",
    "HeaderNotFound",
    "NoResults",
]
