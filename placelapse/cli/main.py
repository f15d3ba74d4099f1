#!/usr/bin/env python3
"""
placelapse CLI

Main entrypoint for the placelapse command-line tool.
"""

import typer
from rich.console import Console
from rich.table import Table

from placelapse import __version__
from placelapse.cli.commands import ingest, render, stats
from placelapse.logging_config import setup_logging

app = typer.Typer(
    name="placelapse",
    help="Render time-lapse videos of a collaborative pixel canvas",
    add_completion=False,
)

console = Console()


@app.callback()
def _setup() -> None:
    setup_logging()


app.command("ingest")(ingest.ingest_command)
app.command("sort")(ingest.sort_command)
app.command("render")(render.render_command)
app.command("stats")(stats.stats_command)


@app.command()
def version():
    """Show version information."""
    table = Table(show_header=False, box=None)
    table.add_row("[bold]placelapse[/bold]", f"v{__version__}")
    console.print(table)


def main():
    """Main entrypoint."""
    app()


if __name__ == "__main__":
    main()
