"""
Event model for the decentralized list protocol

Events are immutable, signed facts published to a relay. This module
holds the wire-level model plus the kind and tag conventions that the
rest of the package interprets.

Fun fact: A Nostr event id is the SHA-256 of its own serialized content,
so an event literally cannot be edited - any change makes a new event!
"""

import re

from pydantic import BaseModel, Field, field_validator

# List header kinds (immutable / addressable)
HEADER_KIND = 9998
ADDRESSABLE_HEADER_KIND = 39998

# List item kinds (immutable / addressable)
ITEM_KIND = 9999
ADDRESSABLE_ITEM_KIND = 39999

HEADER_KINDS = (HEADER_KIND, ADDRESSABLE_HEADER_KIND)
ITEM_KINDS = (ITEM_KIND, ADDRESSABLE_ITEM_KIND)

# Tag keys
IDENTIFIER_TAG = "d"
HEADER_REF_TAG = "z"
TOPIC_TAG = "t"

_HEX_64 = re.compile(r"^[0-9a-fA-F]{64}$")


def is_hex_id(value: str) -> bool:
    """True if value is a 64-character hex string (event id or pubkey)"""
    return bool(_HEX_64.match(value))


def normalize_hex_key(value: str) -> str | None:
    """Return the lowercase form of a 64-char hex key, or None if invalid"""
    value = value.strip()
    if not is_hex_id(value):
        return None
    return value.lower()


def is_addressable(kind: int) -> bool:
    """Addressable (parameterized replaceable) kinds live in 30000..39999"""
    return 30000 <= kind < 40000


def first_tag_value(tags: list[list[str]], key: str) -> str | None:
    """
    Value of the first tag with the given key

    Tags shorter than two elements are skipped rather than raising.
    """
    for tag in tags:
        if len(tag) >= 2 and tag[0] == key:
            return tag[1]
    return None


def tag_values(tags: list[list[str]], key: str) -> list[str]:
    """First value of every tag with the given key, in order"""
    return [tag[1] for tag in tags if len(tag) >= 2 and tag[0] == key]


class Event(BaseModel):
    """
    A relay event as it appears on the wire

    The relay guarantees id uniqueness; this model only guarantees shape.
    Signature verification is the publisher's and relay's concern.
    """

    id: str = Field(..., description="Content-derived event identity (64 hex chars)")
    kind: int = Field(..., ge=0, le=65535, description="Numeric kind discriminator")
    pubkey: str = Field(..., description="Author public key (64 hex chars)")
    created_at: int = Field(..., ge=0, description="Unix timestamp in seconds")
    tags: list[list[str]] = Field(default_factory=list)
    content: str = ""
    sig: str = ""

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "id": "a" * 64,
                    "kind": 39998,
                    "pubkey": "b" * 64,
                    "created_at": 1735689600,
                    "tags": [["d", "books"], ["names", "book", "books"], ["title", "Books"]],
                    "content": "",
                    "sig": "c" * 128,
                }
            ]
        },
    }

    @field_validator("id", "pubkey")
    @classmethod
    def _hex_64(cls, value: str) -> str:
        normalized = normalize_hex_key(value)
        if normalized is None:
            raise ValueError("must be 64 hex characters")
        return normalized

    def tag(self, key: str) -> str | None:
        return first_tag_value(self.tags, key)

    @property
    def identifier(self) -> str | None:
        """The d-tag value, if present"""
        return self.tag(IDENTIFIER_TAG)
