"""
List Domain Models - Headers, items and the references that join them

A list is a header event plus every item event whose ``z`` tag carries
the header's canonical reference. There is no foreign key anywhere: the
string equality of that reference is the whole relationship.

Fun fact: DCoSL stands for "Decentralized Curation of Simple Lists" - the
idea is that anyone can publish a list header and anyone can add items!
"""

from typing import Any, NamedTuple

from pydantic import BaseModel, Field

from wokhei.kernel.events import HEADER_REF_TAG


class Coordinate(NamedTuple):
    """
    Address of an addressable event: (kind, author, identifier)

    Outlives every individual revision of the event it points to.
    """

    kind: int
    pubkey: str
    identifier: str

    def __str__(self) -> str:
        return f"{self.kind}:{self.pubkey}:{self.identifier}"


class HeaderReference(NamedTuple):
    """
    The join key items use to declare membership in a list

    ``tag`` is the tag key items carry; ``value`` is either the header's
    event id (immutable header) or its coordinate string (addressable).
    """

    tag: str
    value: str

    @classmethod
    def of(cls, value: str) -> "HeaderReference":
        """Reference linked through the standard ``z`` tag"""
        return cls(HEADER_REF_TAG, value)


class ProjectedRecord(BaseModel):
    """
    Read model of one event with the list conventions pulled out of its tags

    Unknown tags stay in ``tags`` and are never promoted to fields.
    """

    event_id: str
    kind: int
    pubkey: str
    created_at: int
    tags: list[list[str]] = Field(default_factory=list)
    content: str = ""
    signature: str = ""

    name: str | None = None
    plural_name: str | None = None
    aliases: list[str] | None = None
    title: str | None = None
    description: str | None = None
    coordinate: str | None = None
    header_ref: str | None = None
    resource: str | None = None

    model_config = {"frozen": True}

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict without the fields this event does not carry"""
        return self.model_dump(exclude_none=True)


class NextAction(BaseModel):
    """A suggested follow-up command for the caller"""

    command: str
    description: str


class QueryResult(BaseModel):
    """Result payload plus the follow-up actions that make sense after it"""

    result: dict[str, Any]
    next_actions: list[NextAction] = Field(default_factory=list)
