"""
wokhei CLI

Read-only command-line interface for decentralized lists on a relay.
Every command prints one JSON envelope on stdout, so agents and scripts
can parse the output without scraping.

Usage:
    wokhei list-headers --relay ws://localhost:7777 --name book --limit 10
    wokhei list-items <header-event-id>
    wokhei list-items --header-coordinate 39998:<pubkey>:books
    wokhei inspect <event-id>
    wokhei count
    wokhei export > backup.json
"""

import asyncio
import json
import os
from collections.abc import Awaitable, Callable
from typing import Any, Optional

import typer
from typing_extensions import Annotated

from wokhei.kernel.errors import WokheiError
from wokhei.kernel.logging import configure_logging, is_production
from wokhei.kernel.query_policy import resolve_relay
from wokhei.lists.models import QueryResult
from wokhei.queries import Wokhei

# Logs go to stderr; stdout carries only the JSON envelope
configure_logging(
    json_output=is_production(),
    log_level=os.getenv("WOKHEI_LOG_LEVEL", "WARNING"),
)

app = typer.Typer(
    name="wokhei",
    help="wokhei - Query decentralized lists on a Nostr relay",
    add_completion=False,
)

RelayOption = Annotated[
    Optional[str],
    typer.Option("--relay", help="Relay URL (default: $WOKHEI_RELAY or ws://localhost:7777)"),
]


def get_wokhei(relay: Optional[str]) -> Wokhei:
    """Get Wokhei instance for the resolved relay"""
    return Wokhei(resolve_relay(relay))


def _emit(payload: dict[str, Any]) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def _fail(command: str, error: dict[str, Any]) -> None:
    _emit({"ok": False, "command": command, "error": error})
    raise typer.Exit(1)


def _run(
    command: str,
    relay: Optional[str],
    query: Callable[[Wokhei], Awaitable[QueryResult]],
) -> None:
    """Run one query and print its envelope; exit 1 on any wokhei error"""
    wk = get_wokhei(relay)
    try:
        outcome = asyncio.run(query(wk))
    except WokheiError as e:
        _fail(command, e.to_dict())
        return

    _emit(
        {
            "ok": True,
            "command": command,
            "result": outcome.result,
            "next_actions": [action.model_dump() for action in outcome.next_actions],
        }
    )


@app.command("list-headers")
def list_headers(
    relay: RelayOption = None,
    author: Annotated[
        Optional[str], typer.Option("--author", help="Filter by author pubkey (hex)")
    ] = None,
    tag: Annotated[Optional[str], typer.Option("--tag", help="Filter by topic tag")] = None,
    name: Annotated[
        Optional[str], typer.Option("--name", help="Case-insensitive name substring")
    ] = None,
    offset: Annotated[int, typer.Option("--offset", min=0, help="Skip this many headers")] = 0,
    limit: Annotated[
        Optional[int], typer.Option("--limit", min=0, help="Headers per page (default 50)")
    ] = None,
) -> None:
    """List header events from a relay"""
    _run(
        "list-headers",
        relay,
        lambda wk: wk.list_headers(author=author, tag=tag, name=name, offset=offset, limit=limit),
    )


@app.command("list-items")
def list_items(
    header_id: Annotated[Optional[str], typer.Argument(help="Header event ID")] = None,
    header_coordinate: Annotated[
        Optional[str],
        typer.Option("--header-coordinate", help="Header coordinate kind:pubkey:d-tag"),
    ] = None,
    relay: RelayOption = None,
    limit: Annotated[
        Optional[int], typer.Option("--limit", min=0, help="Maximum items (default 100)")
    ] = None,
) -> None:
    """List items belonging to a header"""
    if header_id is None and header_coordinate is None:
        _fail(
            "list-items",
            {
                "code": "MISSING_ARG",
                "message": "header ID or --header-coordinate is required",
                "retryable": False,
                "fix": "Provide a header event ID as a positional argument, "
                "or use --header-coordinate=<kind:pubkey:d-tag>",
            },
        )

    _run(
        "list-items",
        relay,
        lambda wk: wk.list_items(header_id=header_id, coordinate=header_coordinate, limit=limit),
    )


@app.command()
def inspect(
    event_id: Annotated[str, typer.Argument(help="Event ID to inspect")],
    relay: RelayOption = None,
) -> None:
    """Inspect a single event in full detail"""
    _run("inspect", relay, lambda wk: wk.inspect(event_id))


@app.command()
def count(relay: RelayOption = None) -> None:
    """Count header and item events on a relay"""
    _run("count", relay, lambda wk: wk.count())


@app.command()
def export(relay: RelayOption = None) -> None:
    """Export all headers and items as a JSON backup"""
    _run("export", relay, lambda wk: wk.export())


def main() -> None:
    """Main entry point"""
    app()


if __name__ == "__main__":
    main()
