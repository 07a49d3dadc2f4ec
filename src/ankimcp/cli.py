"""CLI commands for the Anki MCP server."""

import sys

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .client import AnkiConnectError
from .config import load_config
from .decks import today_deck_name
from .search import find_cards_and_order

console = Console()


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Anki MCP server - expose your Anki cards to AI assistants.

    Requires Anki desktop running with AnkiConnect plugin installed.
    """
    pass


@cli.command()
def serve() -> None:
    """Run the MCP server over stdio.

    Point your MCP client (e.g. Claude Desktop) at `ankimcp serve`.
    """
    from .server import serve as run_server
    run_server(load_config())


@cli.command()
def status() -> None:
    """Check connection to Anki."""
    from .server import build_client

    config = load_config()
    client = build_client(config)
    if client.ping():
        console.print(f"[green]✓ Connected to Anki[/green] [dim]({config.anki_connect_url})[/dim]")
    else:
        console.print(
            "[red]✗ Cannot connect to Anki[/red]\n"
            "[dim]Make sure Anki is running with AnkiConnect installed.[/dim]"
        )
        sys.exit(1)


@cli.command()
def today() -> None:
    """Show the deck new cards are added to today."""
    config = load_config()
    console.print(today_deck_name(config.inbox_prefix))


@cli.command()
@click.argument("query")
@click.option("-l", "--limit", default=20, help="Maximum cards to show")
def cards(query: str, limit: int) -> None:
    """Show cards for a resource filter, ordered by due.

    QUERY is a filter such as 'isdue', 'isnew', 'deckcurrent' or any
    Anki search (e.g. 'nid:12345').
    """
    from .server import build_client

    client = build_client(load_config())
    try:
        found = find_cards_and_order(client, query)
    except AnkiConnectError as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        sys.exit(1)

    if not found:
        console.print("[yellow]No cards found[/yellow]")
        return

    table = Table(title=f"Cards: {query} ({len(found)} total)")
    table.add_column("Card ID", style="dim")
    table.add_column("Due", justify="right")
    table.add_column("Question", style="cyan")
    table.add_column("Answer")

    for card in found[:limit]:
        question = card.question.replace("\n", " ")
        answer = card.answer.replace("\n", " ")
        table.add_row(
            str(card.card_id),
            str(card.due),
            question[:50] + ("..." if len(question) > 50 else ""),
            answer[:50] + ("..." if len(answer) > 50 else ""),
        )

    console.print(table)
    if len(found) > limit:
        console.print(f"[dim]... and {len(found) - limit} more[/dim]")


if __name__ == "__main__":
    cli()
