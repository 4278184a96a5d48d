"""RenoQuote CLI.

Commands:
- init: Initialize database schema
- promote: Promote extracted items into the standard price catalog
- verify: Set an extracted item's verification flag
- snapshot-quote: Save a quote as a new version
- versions: Show a quote's version history
- web serve: Run the HTTP API
"""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from renoquote.config import get_config
from renoquote.core.logging import configure_logging
from renoquote.db.connection import close_db, init_db
from renoquote.errors import RenoQuoteError
from renoquote.pricing.reconciliation import PriceReconciler, PromotionStatus
from renoquote.pricing.verification import set_verified
from renoquote.store import RecordStore, create_record_store
from renoquote.versioning.quotes import list_quote_versions, snapshot_quote

app = typer.Typer(
    name="renoquote",
    help="RenoQuote - estimate intake, standard pricing and quote versioning",
    no_args_is_help=True,
)

web_cli = typer.Typer(help="HTTP API")
app.add_typer(web_cli, name="web")

console = Console()

STATUS_STYLES = {
    PromotionStatus.PROMOTED: "green",
    PromotionStatus.SKIPPED_NO_PRICE: "yellow",
    PromotionStatus.SKIPPED_NOT_FOUND: "yellow",
    PromotionStatus.FAILED: "red",
}


@app.callback()
def main() -> None:
    configure_logging()


def _open_store() -> RecordStore:
    store = create_record_store()
    if not store.is_persistent:
        console.print("[yellow]DATABASE_URL not set: changes are kept in memory and lost on exit[/yellow]")
    return store


def _run(coro) -> None:
    """Run a command coroutine, reporting expected errors without a traceback."""

    async def _inner():
        try:
            await coro
        finally:
            await close_db()

    try:
        asyncio.run(_inner())
    except RenoQuoteError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc.message}")
        raise typer.Exit(code=1) from exc


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    config = get_config()
    if config.db is None:
        console.print("[bold red]DATABASE_URL is not set[/bold red]")
        raise typer.Exit(code=1)
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")
    if drop:
        console.print("[yellow]Dropping existing tables...[/yellow]")

    _run(init_db(drop=drop))
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command()
def promote(
    item_ids: list[str] = typer.Argument(..., help="Extracted item IDs"),
):
    """Promote extracted items into the standard price catalog."""

    async def _promote():
        result = await PriceReconciler(_open_store()).promote(item_ids)

        table = Table(title="Promotion Results")
        table.add_column("Item", style="cyan")
        table.add_column("Status")
        table.add_column("Action")
        table.add_column("Unit price", justify="right")
        for outcome in result.outcomes:
            style = STATUS_STYLES[outcome.status]
            table.add_row(
                outcome.item_id,
                f"[{style}]{outcome.status.value}[/{style}]",
                outcome.action or "-",
                f"{outcome.unit_price:,}" if outcome.unit_price is not None else "-",
            )
        console.print(table)
        console.print(f"[bold]{result.updated_count}[/bold] of {len(result.outcomes)} items promoted")

    _run(_promote())


@app.command()
def verify(
    item_id: str = typer.Argument(..., help="Extracted item ID"),
    unverify: bool = typer.Option(False, "--unverify", help="Clear the verification flag"),
):
    """Set an extracted item's verification flag (verifying also promotes it)."""

    async def _verify():
        result = await set_verified(_open_store(), item_id, not unverify)
        colour = "green" if result.added_to_standard or not result.verified else "yellow"
        console.print(f"[{colour}]{result.message}[/{colour}]")

    _run(_verify())


@app.command(name="snapshot-quote")
def snapshot_quote_cmd(
    quote_id: str = typer.Argument(..., help="Quote ID"),
    reason: str | None = typer.Option(None, "--reason", help="Why this version is saved"),
):
    """Save the current state of a quote as its next version."""

    async def _snapshot():
        result = await snapshot_quote(_open_store(), quote_id, reason)
        console.print(
            f"[bold green]✓[/bold green] Saved {result.version['quote_number']} "
            f"({len(result.items)} items)"
        )
        if not result.items_copied:
            console.print("[yellow]Items could not be copied into this version[/yellow]")

    _run(_snapshot())


@app.command()
def versions(
    quote_id: str = typer.Argument(..., help="Quote ID"),
):
    """Show a quote's version history."""

    async def _versions():
        rows = await list_quote_versions(_open_store(), quote_id)
        if not rows:
            console.print("[yellow]No versions saved for this quote[/yellow]")
            return

        table = Table(title="Quote Versions")
        table.add_column("Version", justify="right", style="cyan")
        table.add_column("Number")
        table.add_column("Saved at")
        table.add_column("Reason")
        table.add_column("Final amount", justify="right", style="green")
        table.add_column("Items", justify="right")
        for row in rows:
            table.add_row(
                str(row["version_number"]),
                row["quote_number"],
                row["saved_at"].strftime("%Y-%m-%d %H:%M"),
                row.get("saved_reason") or "",
                f"{row['final_amount']:,}",
                str(len(row["items"])),
            )
        console.print(table)

    _run(_versions())


@web_cli.command("serve")
def web_serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind"),
    port: int = typer.Option(8000, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable autoreload (dev only)"),
):
    """Run the FastAPI application."""
    import uvicorn

    typer.echo(f"Starting RenoQuote API on http://{host}:{port}")
    uvicorn.run("renoquote.web.app:app", host=host, port=port, reload=reload, workers=1)


if __name__ == "__main__":
    app()
