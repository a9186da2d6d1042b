"""
Custom exceptions for wokhei

Well-defined error hierarchy enables precise error handling and
clear error messages for agents and operators. Every error carries a
stable ``code``, a ``retryable`` flag and a ``fix`` hint so callers can
decide between "retry", "correct the input" and "create something".

Fun fact: Nostr relays were named after the telegraph relay stations that
re-broadcast messages down the line - they still just pass notes along!
"""

from typing import Any


class WokheiError(Exception):
    """Base exception for all wokhei errors"""

    code = "WOKHEI_ERROR"
    retryable = False

    @property
    def fix(self) -> str:
        return "See the error message for details"

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the JSON error envelope"""
        return {
            "code": self.code,
            "message": str(self),
            "retryable": self.retryable,
            "fix": self.fix,
        }


# Connectivity


class RelayError(WokheiError):
    """Base class for relay connectivity errors (the only retryable kind)"""

    code = "RELAY_ERROR"
    retryable = True


class RelayUnreachable(RelayError):
    """Raised when the relay cannot be reached or the transport fails mid-request"""

    code = "RELAY_UNREACHABLE"

    def __init__(self, url: str, reason: str = "") -> None:
        self.url = url
        self.reason = reason
        message = f"Relay unreachable: {url}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)

    @property
    def fix(self) -> str:
        return (
            f"Check that the relay at {self.url} is running. "
            "For local dev: `cd strfry && docker compose up -d`"
        )


class RelayTimeout(RelayUnreachable):
    """Raised when a single relay request exceeds its timeout"""

    code = "RELAY_TIMEOUT"

    def __init__(self, url: str, operation: str, seconds: float) -> None:
        self.operation = operation
        self.seconds = seconds
        super().__init__(url, f"{operation} exceeded timeout of {seconds} seconds")


# Malformed references


class MalformedReference(WokheiError):
    """Base class for references that cannot be parsed"""

    code = "MALFORMED_REFERENCE"


class InvalidCoordinate(MalformedReference):
    """Raised when a coordinate string is not kind:pubkey:d-tag"""

    code = "INVALID_COORDINATE"

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(
            f"Invalid coordinate format: {value} - expected kind:pubkey:d-tag"
        )

    @property
    def fix(self) -> str:
        return "Format: kind:pubkey:d-tag (e.g., 39998:<64-hex-pubkey>:my-list)"


class InvalidEventId(MalformedReference):
    """Raised when an event identifier is not 64 hex characters"""

    code = "INVALID_EVENT_ID"

    def __init__(self, event_id: str) -> None:
        self.event_id = event_id
        super().__init__(f"Invalid event ID: {event_id}")

    @property
    def fix(self) -> str:
        return "Use a hex event ID from a previous command's result"


class InvalidPublicKey(MalformedReference):
    """Raised when an author public key is not 64 hex characters"""

    code = "INVALID_PUBKEY"

    def __init__(self, pubkey: str) -> None:
        self.pubkey = pubkey
        super().__init__(f"Invalid public key: {pubkey}")

    @property
    def fix(self) -> str:
        return "Use a 64-character hex public key"


# Header resolution


class HeaderMissingIdentifier(WokheiError):
    """
    Raised when an addressable header has no d-tag

    Without the stable identifier there is no coordinate, so the header
    cannot be referenced across revisions. This signals upstream data
    corruption - we never guess a replacement identifier.
    """

    code = "HEADER_MISSING_D_TAG"

    def __init__(self, event_id: str) -> None:
        self.event_id = event_id
        super().__init__(
            f"Header {event_id} is missing its d-tag (required for addressable events)"
        )

    @property
    def fix(self) -> str:
        return (
            "The header event is malformed (no d-tag). "
            "Create a new addressable header with `--d-tag`"
        )


class WrongReferenceKind(WokheiError):
    """Raised when a reference points at something other than a list header"""

    code = "WRONG_REFERENCE_KIND"

    def __init__(self, reference: str, kind: int) -> None:
        self.reference = reference
        self.kind = kind
        super().__init__(
            f"Reference {reference} has kind {kind}, "
            "expected a list header (kind 9998 or 39998)"
        )

    @property
    def fix(self) -> str:
        return (
            "Provide a header event ID, or use a header coordinate "
            "of the form 39998:<pubkey>:<d-tag>"
        )


# Lookups


class EventNotFound(WokheiError):
    """Raised when an event identity is absent from the relay"""

    code = "EVENT_NOT_FOUND"

    def __init__(self, event_id: str, label: str = "Event") -> None:
        self.event_id = event_id
        super().__init__(f"{label} not found: {event_id}")

    @property
    def fix(self) -> str:
        return "Verify the event ID, or list headers to find a valid one"


class HeaderNotFound(EventNotFound):
    """Raised when a header referenced by identity is absent from the relay"""

    code = "HEADER_NOT_FOUND"

    def __init__(self, event_id: str) -> None:
        super().__init__(event_id, label="Header")

    @property
    def fix(self) -> str:
        return (
            "Verify the event ID, or use `--header-coordinate` "
            "for cross-relay references"
        )


class NoResults(WokheiError):
    """
    Raised when a valid query matches nothing

    Not a failure of the relay - callers should offer a "create" action,
    never a "retry" action.
    """

    code = "NO_RESULTS"

    def __init__(self, query: str = "query") -> None:
        self.query = query
        super().__init__(f"No results for {query}")

    @property
    def fix(self) -> str:
        return "Try different filters, or create the first entry"
