"""revproj CLI.

Commands:
- init: Initialize database schema
- normalize: Normalize a payload file and print the canonical record
- runs: Show recent projection runs
- events: Show analytics events for a projection
- markets: List configured market bundles
- web serve: Run the web service
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from revproj.canonical import get_market_catalog, normalize_projection
from revproj.config import get_config
from revproj.db.connection import close_db, get_session, init_db
from revproj.db.events import events_by_slug
from revproj.db.runs import DEFAULT_RUN_LIMIT, list_runs
from revproj.exceptions import ProjectionValidationError

app = typer.Typer(
    name="revproj",
    help="revproj - Revenue projection landing pages",
    no_args_is_help=True,
)

web_cli = typer.Typer(help="Web UI / API")
app.add_typer(web_cli, name="web")

console = Console()


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")

    async def _init():
        if drop:
            console.print("[yellow]Dropping existing tables...[/yellow]")
        await init_db(drop=drop)
        await close_db()

    asyncio.run(_init())
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command()
def normalize(
    payload_file: Path = typer.Argument(..., exists=True, readable=True, help="JSON payload"),
):
    """Normalize a payload file and print the canonical record."""
    try:
        payload = json.loads(payload_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid JSON:[/red] {exc}")
        raise typer.Exit(1)

    try:
        record = normalize_projection(payload)
    except ProjectionValidationError as exc:
        table = Table(title=f"{len(exc.errors)} field error(s)")
        table.add_column("Field", style="cyan")
        table.add_column("Problem", style="red")
        for error in exc.errors:
            table.add_row(error.field, error.message)
        console.print(table)
        raise typer.Exit(1)

    console.print_json(json.dumps(record.to_json_dict()))


@app.command()
def runs(
    limit: int = typer.Option(DEFAULT_RUN_LIMIT, "--limit", "-n", help="Rows to show"),
):
    """Show recent projection runs, newest first."""

    async def _runs():
        async with get_session() as session:
            rows = await list_runs(session, limit=limit)
        await close_db()
        return rows

    rows = asyncio.run(_runs())
    if not rows:
        console.print("[yellow]No projection runs recorded[/yellow]")
        return

    table = Table(title=f"Projection runs ({len(rows)})")
    table.add_column("When", style="dim")
    table.add_column("Action")
    table.add_column("Slug", style="cyan")
    table.add_column("Owner")
    table.add_column("Team Member")
    table.add_column("Public URL")
    for run in rows:
        action_style = "green" if run.action.value == "create" else "blue"
        table.add_row(
            run.created_at.strftime("%Y-%m-%d %H:%M"),
            f"[{action_style}]{run.action.value}[/{action_style}]",
            run.slug,
            run.owner_slug,
            run.actor_name or "",
            run.public_url or "",
        )
    console.print(table)


@app.command()
def events(
    slug: str = typer.Argument(..., help="Projection slug"),
    event: str | None = typer.Option(None, "--event", "-e", help="Only this event name"),
):
    """Show analytics events recorded for a projection."""

    async def _events():
        async with get_session() as session:
            rows = await events_by_slug(session, slug, event=event)
        await close_db()
        return rows

    rows = asyncio.run(_events())
    if not rows:
        console.print(f"[yellow]No events for {slug}[/yellow]")
        return

    table = Table(title=f"Events for {slug} ({len(rows)})")
    table.add_column("ID", justify="right")
    table.add_column("When", style="dim")
    table.add_column("Event", style="cyan")
    table.add_column("Lead")
    table.add_column("Source")
    for row in rows:
        table.add_row(
            str(row.id),
            row.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            row.event,
            row.lead_id or "",
            row.source or "",
        )
    console.print(table)


@app.command()
def markets():
    """List configured market bundles."""
    catalog = get_market_catalog()
    table = Table(title="Markets")
    table.add_column("Code", style="cyan")
    table.add_column("Name")
    table.add_column("Scheduling URL")
    table.add_column("Comparables", justify="right")
    for code in catalog.codes:
        bundle = catalog.markets[code]
        label = f"{code} (default)" if code == catalog.default_code else code
        table.add_row(
            label,
            bundle.display_name,
            bundle.cta.schedule_call_url,
            str(len(bundle.comparable_properties)),
        )
    console.print(table)


@web_cli.command("serve")
def web_serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind"),
    port: int = typer.Option(5000, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable autoreload (dev only)"),
):
    """Run the FastAPI web service."""
    import uvicorn

    typer.echo(f"Starting revproj on http://{host}:{port}")
    uvicorn.run(
        "revproj.web.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=1,
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
