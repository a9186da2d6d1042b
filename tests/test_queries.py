"""
Tests for the Wokhei query façade

Every query must open exactly one connection and release it on every exit
path, and "nothing matched" must never be confused with "relay is down".

Fun fact: "Wokhei" is a Lakota word for "to look for" - fitting for a tool
whose only job is finding things on a relay!
"""

import pytest

from tests.helpers import ALICE, BOB, InMemoryRelay, UnreachableRelay, header_event, item_event
from wokhei.kernel.errors import (
    EventNotFound,
    HeaderNotFound,
    InvalidCoordinate,
    InvalidEventId,
    InvalidPublicKey,
    NoResults,
    RelayUnreachable,
)
from wokhei import queries
from wokhei.kernel.query_policy import QueryPolicy
from wokhei.lists.resolver import resolve_header_reference
from wokhei.queries import Wokhei

BOOKS_COORD = f"39998:{ALICE}:books"


def seed(relay: InMemoryRelay) -> dict:
    books = header_event("book", 100, addressable=True, d="books", extra_tags=[["t", "reading"]])
    films = header_event("film", 90, pubkey=BOB)
    cookbooks = header_event("cookbook", 80)
    items = [item_event(BOOKS_COORD, 50 - i, f"https://example.com/book/{i}") for i in range(3)]
    relay.add(books, films, cookbooks, *items)
    return {"books": books, "films": films, "cookbooks": cookbooks, "items": items}


# =============================================================================
# list_headers
# =============================================================================


@pytest.mark.asyncio
async def test_list_headers_newest_first(wokhei: Wokhei, relay: InMemoryRelay) -> None:
    seeded = seed(relay)

    outcome = await wokhei.list_headers()

    result = outcome.result
    assert result["total"] == 3
    assert result["count"] == 3
    assert result["has_more"] is False
    assert [h["event_id"] for h in result["headers"]] == [
        seeded["books"].id,
        seeded["films"].id,
        seeded["cookbooks"].id,
    ]
    assert relay.connects == relay.disconnects == 1


@pytest.mark.asyncio
async def test_list_headers_name_filter(wokhei: Wokhei, relay: InMemoryRelay) -> None:
    seed(relay)

    outcome = await wokhei.list_headers(name="BOOK")

    assert [h["name"] for h in outcome.result["headers"]] == ["book", "cookbook"]


@pytest.mark.asyncio
async def test_list_headers_author_and_tag_go_to_the_relay(
    wokhei: Wokhei, relay: InMemoryRelay
) -> None:
    seed(relay)

    outcome = await wokhei.list_headers(author=BOB.upper())
    assert [h["name"] for h in outcome.result["headers"]] == ["film"]
    assert relay.fetches[0].authors == [BOB]

    outcome = await wokhei.list_headers(tag="reading")
    assert [h["name"] for h in outcome.result["headers"]] == ["book"]


@pytest.mark.asyncio
async def test_list_headers_pagination_actions(wokhei: Wokhei, relay: InMemoryRelay) -> None:
    seeded = seed(relay)

    outcome = await wokhei.list_headers(offset=1, limit=1)

    assert outcome.result["headers"][0]["event_id"] == seeded["films"].id
    assert outcome.result["has_more"] is True
    commands = [action.command for action in outcome.next_actions]
    assert commands[0] == f"wokhei list-items --relay=ws://relay.test {seeded['films'].id}"
    assert "--offset=2 --limit=1" in commands[1]
    assert "--offset=0 --limit=1" in commands[2]


@pytest.mark.asyncio
async def test_list_headers_page_actions_keep_the_name_filter(
    wokhei: Wokhei, relay: InMemoryRelay
) -> None:
    seed(relay)

    outcome = await wokhei.list_headers(name="book", offset=0, limit=1)

    assert outcome.result["total"] == 2
    next_page = outcome.next_actions[1]
    assert next_page.description == "Next page"
    assert next_page.command == (
        "wokhei list-headers --relay=ws://relay.test --name=book --offset=1 --limit=1"
    )


@pytest.mark.asyncio
async def test_list_headers_page_actions_are_shell_quoted(
    wokhei: Wokhei, relay: InMemoryRelay
) -> None:
    relay.add(header_event("my list", 20), header_event("my list two", 10))

    outcome = await wokhei.list_headers(name="my list", tag=None, offset=1, limit=1)

    previous = outcome.next_actions[-1]
    assert previous.description == "Previous page"
    assert "--name='my list' --offset=0 --limit=1" in previous.command


@pytest.mark.asyncio
async def test_list_headers_offset_past_end_suggests_recovery(
    wokhei: Wokhei, relay: InMemoryRelay
) -> None:
    seed(relay)

    outcome = await wokhei.list_headers(offset=10, limit=2)

    assert outcome.result["headers"] == []
    assert outcome.result["total"] == 3
    assert len(outcome.next_actions) == 1
    assert "--offset=2 --limit=2" in outcome.next_actions[0].command
    assert "last page" in outcome.next_actions[0].description


@pytest.mark.asyncio
async def test_list_headers_default_limit(wokhei: Wokhei, relay: InMemoryRelay) -> None:
    relay.add(*[header_event(f"list{i}", 100 + i) for i in range(7)])

    outcome = await wokhei.list_headers()

    assert outcome.result["limit"] == 5
    assert outcome.result["count"] == 5
    assert outcome.result["total"] == 7


@pytest.mark.asyncio
async def test_list_headers_no_results(wokhei: Wokhei, relay: InMemoryRelay) -> None:
    seed(relay)

    with pytest.raises(NoResults):
        await wokhei.list_headers(name="nonexistent")
    assert relay.disconnects == 1


@pytest.mark.asyncio
async def test_list_headers_invalid_author_never_connects(
    wokhei: Wokhei, relay: InMemoryRelay
) -> None:
    with pytest.raises(InvalidPublicKey):
        await wokhei.list_headers(author="npub1xyz")
    assert relay.connects == 0


@pytest.mark.asyncio
async def test_unreachable_relay_is_not_no_results(policy: QueryPolicy) -> None:
    relay = UnreachableRelay()
    wk = Wokhei("ws://down.test", policy=policy, client_factory=lambda: relay)

    with pytest.raises(RelayUnreachable) as exc_info:
        await wk.list_headers()

    assert exc_info.value.retryable is True
    assert relay.disconnects == 1


@pytest.mark.asyncio
async def test_failure_mid_enumeration_releases_connection(policy: QueryPolicy) -> None:
    relay = InMemoryRelay(fail_on_fetch=2)
    seed(relay)
    wk = Wokhei("ws://relay.test", policy=policy, client_factory=lambda: relay)

    with pytest.raises(RelayUnreachable):
        await wk.list_headers()
    assert relay.connected is False
    assert relay.disconnects == 1


# =============================================================================
# list_items
# =============================================================================


@pytest.mark.asyncio
async def test_list_items_by_coordinate(wokhei: Wokhei, relay: InMemoryRelay) -> None:
    seeded = seed(relay)

    outcome = await wokhei.list_items(coordinate=BOOKS_COORD)

    assert outcome.result["header_ref"] == BOOKS_COORD
    assert outcome.result["count"] == 3
    assert [i["event_id"] for i in outcome.result["items"]] == [e.id for e in seeded["items"]]
    assert len(relay.fetches) == 1
    assert outcome.next_actions[0].command.startswith("wokhei inspect")


@pytest.mark.asyncio
async def test_list_items_by_id_resolves_to_coordinate(
    wokhei: Wokhei, relay: InMemoryRelay
) -> None:
    seeded = seed(relay)

    outcome = await wokhei.list_items(header_id=seeded["books"].id)

    assert outcome.result["header_ref"] == BOOKS_COORD
    assert outcome.result["count"] == 3
    assert relay.connects == 1


@pytest.mark.asyncio
async def test_list_items_resolves_through_the_shared_resolver(
    wokhei: Wokhei, relay: InMemoryRelay, monkeypatch: pytest.MonkeyPatch
) -> None:
    seeded = seed(relay)
    calls = []

    async def recording_resolver(client, **kwargs):
        calls.append(kwargs)
        return await resolve_header_reference(client, **kwargs)

    monkeypatch.setattr(queries, "resolve_header_reference", recording_resolver)

    await wokhei.list_items(coordinate=BOOKS_COORD)
    await wokhei.list_items(header_id=seeded["books"].id)

    assert [(c["coordinate"], c["header_id"]) for c in calls] == [
        (BOOKS_COORD, None),
        (None, seeded["books"].id),
    ]


@pytest.mark.asyncio
async def test_list_items_limit_suggests_more(wokhei: Wokhei, relay: InMemoryRelay) -> None:
    seed(relay)

    outcome = await wokhei.list_items(coordinate=BOOKS_COORD, limit=2)

    assert outcome.result["count"] == 2
    more = outcome.next_actions[-1]
    assert "--limit=4" in more.command
    assert f"--header-coordinate={BOOKS_COORD}" in more.command


@pytest.mark.asyncio
async def test_list_items_of_empty_list(wokhei: Wokhei, relay: InMemoryRelay) -> None:
    seeded = seed(relay)

    with pytest.raises(NoResults):
        await wokhei.list_items(header_id=seeded["films"].id)


@pytest.mark.asyncio
async def test_list_items_unknown_header(wokhei: Wokhei, relay: InMemoryRelay) -> None:
    with pytest.raises(HeaderNotFound):
        await wokhei.list_items(header_id="0" * 64)
    assert relay.disconnects == 1


@pytest.mark.asyncio
async def test_list_items_bad_coordinate_never_connects(
    wokhei: Wokhei, relay: InMemoryRelay
) -> None:
    with pytest.raises(InvalidCoordinate):
        await wokhei.list_items(coordinate="not-a-coordinate")
    assert relay.connects == 0


@pytest.mark.asyncio
async def test_list_items_requires_a_reference(wokhei: Wokhei) -> None:
    with pytest.raises(ValueError):
        await wokhei.list_items()


# =============================================================================
# inspect / count / export
# =============================================================================


@pytest.mark.asyncio
async def test_inspect_header(wokhei: Wokhei, relay: InMemoryRelay) -> None:
    seeded = seed(relay)

    outcome = await wokhei.inspect(seeded["books"].id)

    assert outcome.result["coordinate"] == BOOKS_COORD
    assert outcome.next_actions[0].command.startswith("wokhei list-items")


@pytest.mark.asyncio
async def test_inspect_item_has_no_list_action(wokhei: Wokhei, relay: InMemoryRelay) -> None:
    seeded = seed(relay)

    outcome = await wokhei.inspect(seeded["items"][0].id)

    assert outcome.result["header_ref"] == BOOKS_COORD
    assert outcome.next_actions == []


@pytest.mark.asyncio
async def test_inspect_missing_event(wokhei: Wokhei) -> None:
    with pytest.raises(EventNotFound):
        await wokhei.inspect("0" * 64)


@pytest.mark.asyncio
async def test_inspect_invalid_id_never_connects(wokhei: Wokhei, relay: InMemoryRelay) -> None:
    with pytest.raises(InvalidEventId):
        await wokhei.inspect("xyz")
    assert relay.connects == 0


@pytest.mark.asyncio
async def test_count_by_enumeration(wokhei: Wokhei, relay: InMemoryRelay) -> None:
    seed(relay)

    outcome = await wokhei.count()

    assert outcome.result == {"headers": 3, "items": 3, "total": 6}
    assert relay.connects == 1


@pytest.mark.asyncio
async def test_count_native(policy: QueryPolicy) -> None:
    relay = InMemoryRelay(supports_count=True)
    seed(relay)
    wk = Wokhei("ws://relay.test", policy=policy, client_factory=lambda: relay)

    outcome = await wk.count()

    assert outcome.result["total"] == 6
    assert relay.fetches == []


@pytest.mark.asyncio
async def test_export(wokhei: Wokhei, relay: InMemoryRelay) -> None:
    seed(relay)

    outcome = await wokhei.export()

    assert outcome.result["relay"] == "ws://relay.test"
    assert outcome.result["counts"] == {"headers": 3, "items": 3}
    assert outcome.result["headers"][0]["reference"] == BOOKS_COORD


@pytest.mark.asyncio
async def test_export_of_empty_relay(wokhei: Wokhei) -> None:
    outcome = await wokhei.export()

    assert outcome.result["counts"] == {"headers": 0, "items": 0}
