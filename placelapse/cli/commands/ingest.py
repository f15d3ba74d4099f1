"""
Ingest commands: archives -> event store, sorted copies
"""

import json
import os
from typing import Optional

import typer
from rich.console import Console
from rich.progress import (
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from placelapse.config import default_db_path
from placelapse.core.errors import PlacelapseError, StoreQueryFailure
from placelapse.ingest import find_archives, ingest
from placelapse.log import SqliteEventStore

console = Console()


def _progress() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold]{task.description}"),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
    )


def ingest_command(
    directory: str = typer.Argument(..., help="Directory holding *.csv.gzip archives"),
    db: Optional[str] = typer.Option(None, "--db", help="Event store path (default: $PLACELAPSE_DB or db.sqlite)"),
    sorted_path: Optional[str] = typer.Option(None, "--sorted", help="Also write a timestamp-sorted, indexed copy here"),
    append: bool = typer.Option(False, "--append", help="Add to a store that already holds events"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Ingest placement archives into an event store.

    Examples:
        placelapse ingest ../data_2023 --db db.sqlite
        placelapse ingest ../data_2023 --db raw.sqlite --sorted db.sqlite
        placelapse ingest ../data_2024 --db db.sqlite --append
    """
    db_path = db or default_db_path()
    try:
        paths = find_archives(directory)
    except OSError as e:
        _fail(json_output, "OSError", str(e))
    if not paths:
        _fail(json_output, "OSError", f"no archives found in {directory}")

    try:
        with SqliteEventStore(db_path) as store:
            existing = store.count()
            if existing and not append:
                raise StoreQueryFailure(
                    f"event store already holds {existing} events: {db_path} (use --append to add to it)"
                )
            if json_output:
                written = ingest(paths, store)
            else:
                console.print(f"[bold]Ingesting {len(paths)} archives into {db_path}[/bold]")
                with _progress() as progress:
                    task = progress.add_task("Placements", total=None)
                    written = ingest(
                        paths, store, on_progress=lambda n: progress.advance(task, n)
                    )
            if sorted_path:
                _sort(store, sorted_path, json_output)
    except PlacelapseError as e:
        _fail(json_output, type(e).__name__, str(e))

    if json_output:
        print(json.dumps({"success": True, "archives": len(paths), "events": written, "db": db_path, "sorted": sorted_path}))
    else:
        console.print(f"[green]✓ Ingested {written} placements from {len(paths)} archives[/green]")


def sort_command(
    source: str = typer.Argument(..., help="Source event store"),
    dest: str = typer.Argument(..., help="Destination for the sorted copy"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Write a timestamp-sorted, indexed copy of an event store.

    Examples:
        placelapse sort raw.sqlite db.sqlite
    """
    if not os.path.exists(source):
        _fail(json_output, "StoreQueryFailure", f"event store not found: {source}")
    try:
        with SqliteEventStore(source) as store:
            events = _sort(store, dest, json_output)
    except PlacelapseError as e:
        _fail(json_output, type(e).__name__, str(e))

    if json_output:
        print(json.dumps({"success": True, "events": events, "dest": dest}))
    else:
        console.print(f"[green]✓ Sorted {events} placements into {dest}[/green]")


def _sort(store: SqliteEventStore, dest: str, json_output: bool) -> int:
    if json_output:
        sorted_store = store.sort_into(dest)
    else:
        with _progress() as progress:
            task = progress.add_task("Sorting", total=store.count())
            sorted_store = store.sort_into(dest, on_chunk=lambda n: progress.advance(task, n))
    with sorted_store:
        return sorted_store.count()


def _fail(json_output: bool, kind: str, message: str) -> None:
    if json_output:
        print(json.dumps({"error": kind, "message": message}))
    else:
        console.print(f"[red]Error ({kind}):[/red] {message}")
    raise typer.Exit(2)
