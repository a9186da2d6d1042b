"""
Relay filters - the only query language a relay understands

A filter can constrain kinds, authors, ids, single-letter tag equality,
an upper time bound and a result cap. Anything richer (substring search,
offsets, sorting guarantees) has to happen on our side.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from wokhei.kernel.events import Event


class Filter(BaseModel):
    """
    An immutable NIP-01 subscription filter

    Tag constraints are keyed by the bare tag letter ("z", "t"); the
    ``#`` prefix is added only when rendering to the wire.
    """

    ids: list[str] | None = None
    kinds: list[int] | None = None
    authors: list[str] | None = None
    tags: dict[str, list[str]] = Field(default_factory=dict)
    until: int | None = Field(default=None, ge=0)
    limit: int | None = Field(default=None, ge=0)

    model_config = {"frozen": True}

    @field_validator("tags")
    @classmethod
    def _single_letter_keys(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        for key in value:
            if len(key) != 1 or not key.isalpha():
                raise ValueError(f"relays only index single-letter tags, got {key!r}")
        return value

    def to_wire(self) -> dict[str, Any]:
        """Render as the JSON object sent inside REQ / COUNT"""
        wire: dict[str, Any] = {}
        if self.ids is not None:
            wire["ids"] = list(self.ids)
        if self.kinds is not None:
            wire["kinds"] = list(self.kinds)
        if self.authors is not None:
            wire["authors"] = list(self.authors)
        for key in sorted(self.tags):
            wire[f"#{key}"] = list(self.tags[key])
        if self.until is not None:
            wire["until"] = self.until
        if self.limit is not None:
            wire["limit"] = self.limit
        return wire

    def with_cursor(self, until: int | None, limit: int | None) -> "Filter":
        """Copy of this filter with a new upper time bound and result cap"""
        return self.model_copy(update={"until": until, "limit": limit})

    def matches(self, event: Event) -> bool:
        """
        Client-side evaluation of everything except the result cap

        Tag values compare case-sensitively, exactly as the join key
        between headers and items requires.
        """
        if self.ids is not None and event.id not in self.ids:
            return False
        if self.kinds is not None and event.kind not in self.kinds:
            return False
        if self.authors is not None and event.pubkey not in self.authors:
            return False
        if self.until is not None and event.created_at > self.until:
            return False
        for key, wanted in self.tags.items():
            values = {tag[1] for tag in event.tags if len(tag) >= 2 and tag[0] == key}
            if not values.intersection(wanted):
                return False
        return True
