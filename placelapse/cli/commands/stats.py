"""
Stats command: summarize an event store
"""

import json
import os
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from placelapse.config import default_db_path
from placelapse.core.errors import StoreQueryFailure
from placelapse.core.palette import color_name
from placelapse.core.timestamps import format_timestamp
from placelapse.log import SqliteEventStore

console = Console()


def stats_command(
    db: Optional[str] = typer.Option(None, "--db", help="Event store path (default: $PLACELAPSE_DB or db.sqlite)"),
    top: int = typer.Option(10, "--top", "-n", help="Number of colours to list"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Show event counts, time range and most used colours.

    Examples:
        placelapse stats --db db.sqlite
        placelapse stats --json
    """
    db_path = db or default_db_path()
    try:
        if not os.path.exists(db_path):
            raise StoreQueryFailure(f"event store not found: {db_path}")
        with SqliteEventStore(db_path) as store:
            stats = store.stats(top_colors=top)
    except StoreQueryFailure as e:
        if json_output:
            print(json.dumps({"error": "StoreQueryFailure", "message": str(e)}))
        else:
            console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    colors = [
        {"color": f"#{color:06X}", "name": color_name(color), "count": n}
        for color, n in stats.colors.items()
    ]

    if json_output:
        print(json.dumps({
            "events": stats.events,
            "first_timestamp": stats.first_timestamp,
            "last_timestamp": stats.last_timestamp,
            "points": stats.points,
            "circles": stats.circles,
            "rectangles": stats.rectangles,
            "colors": colors,
        }, indent=2))
        return

    summary = Table(title=f"Event Store: {db_path}", show_header=False)
    summary.add_row("Events", str(stats.events))
    if stats.first_timestamp is not None:
        summary.add_row("First", format_timestamp(stats.first_timestamp))
        summary.add_row("Last", format_timestamp(stats.last_timestamp))
    summary.add_row("Points", str(stats.points))
    summary.add_row("Circles", str(stats.circles))
    summary.add_row("Rectangles", str(stats.rectangles))
    console.print(summary)

    table = Table(title="Colours")
    table.add_column("Colour", style="yellow")
    table.add_column("Name", style="green")
    table.add_column("Count", style="cyan", justify="right")
    for c in colors:
        table.add_row(c["color"], c["name"] or "-", str(c["count"]))
    console.print(table)
