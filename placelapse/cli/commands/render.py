"""
Render command: replay a viewport and time window into a video
"""

import json
import os
import uuid
from typing import Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from placelapse.config import EncoderOptions, RenderRequest, default_db_path
from placelapse.core.canvas import Viewport
from placelapse.core.errors import ConfigurationError, PlacelapseError, RenderAborted
from placelapse.core.timestamps import format_timestamp, parse_timestamp
from placelapse.log import SqliteEventStore
from placelapse.render import DigestSink, FfmpegSink, FrameSink, RawFileSink
from placelapse.replay import render

console = Console()


def _parse_time(label: str, text: str) -> int:
    try:
        return parse_timestamp(text)
    except ValueError as ex:
        raise ConfigurationError(f"--{label}: {ex}") from ex


def render_command(
    viewport: str = typer.Option(..., "--viewport", "-v", help="World window x1,y1,x2,y2 (inclusive)"),
    start: str = typer.Option(..., "--start", help="Start time: epoch ms or 'YYYY-MM-DD HH:MM[:SS] UTC'"),
    end: str = typer.Option(..., "--end", help="End time: epoch ms or 'YYYY-MM-DD HH:MM[:SS] UTC'"),
    interval: int = typer.Option(..., "--interval", "-i", help="Simulated milliseconds per frame"),
    db: Optional[str] = typer.Option(None, "--db", help="Event store path (default: $PLACELAPSE_DB or db.sqlite)"),
    output: str = typer.Option("output.mp4", "--output", "-o", help="Output video path"),
    crf: int = typer.Option(25, "--crf", help="Encoder quality (lower is better)"),
    preset: str = typer.Option("slow", "--preset", help="Encoder preset"),
    scale_height: int = typer.Option(1080, "--scale-height", help="Output height, nearest-neighbour scaled (0 keeps native size)"),
    raw: bool = typer.Option(False, "--raw", help="Write raw RGBA frames to --output instead of encoding"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Hash frames instead of encoding"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Render a viewport and time window of the canvas.

    Examples:
        placelapse render -v 148,172,283,265 --start "2023-07-20 13:00 UTC" --end "2023-07-25 22:00 UTC" -i 19500
        placelapse render -v 0,0,99,99 --start 0 --end 60000 -i 1000 --dry-run --json
    """
    run_id = f"render-{uuid.uuid4().hex[:8]}"
    try:
        request = RenderRequest(
            viewport=Viewport.parse(viewport),
            start=_parse_time("start", start),
            end=_parse_time("end", end),
            interval=interval,
        ).validate()
    except ConfigurationError as e:
        _fail(json_output, "ConfigurationError", str(e))

    sink: FrameSink
    digest_sink: Optional[DigestSink] = None
    if dry_run:
        sink = digest_sink = DigestSink()
    elif raw:
        sink = RawFileSink(output)
    else:
        sink = FfmpegSink(
            EncoderOptions.from_env(
                output=output, crf=crf, preset=preset, scale_height=scale_height or None
            )
        )

    db_path = db or default_db_path()
    if not os.path.exists(db_path):
        _fail(json_output, "StoreQueryFailure", f"event store not found: {db_path}")
    total = request.clock.frame_count
    try:
        with SqliteEventStore(db_path) as store:
            if json_output:
                result = render(store, request, sink, run_id=run_id)
            else:
                with Progress(
                    TextColumn("[bold]Rendering"),
                    BarColumn(),
                    MofNCompleteColumn(),
                    TimeElapsedColumn(),
                    console=console,
                ) as progress:
                    task = progress.add_task("render", total=total)
                    result = render(
                        store,
                        request,
                        sink,
                        on_frame=lambda i, t: progress.advance(task),
                        run_id=run_id,
                    )
    except RenderAborted as e:
        last = format_timestamp(e.last_timestamp) if e.last_timestamp is not None else None
        if json_output:
            print(json.dumps({
                "error": e.kind,
                "message": str(e.cause),
                "applied": e.applied,
                "frames": e.frames,
                "last_timestamp": e.last_timestamp,
            }))
        else:
            console.print(f"[red]Render failed ({e.kind}):[/red] {e.cause}")
            console.print(f"  Events applied: [cyan]{e.applied}[/cyan], frames written: [cyan]{e.frames}[/cyan]")
            console.print(f"  Last applied event: [yellow]{last or 'none'}[/yellow]")
        raise typer.Exit(2)
    except PlacelapseError as e:
        _fail(json_output, type(e).__name__, str(e))

    if json_output:
        output_doc = {
            "success": True,
            "frames": result.frames,
            "applied": result.applied,
            "last_timestamp": result.last_timestamp,
            "width": request.viewport.width,
            "height": request.viewport.height,
        }
        if digest_sink is not None:
            output_doc["digest"] = digest_sink.digest
        else:
            output_doc["output"] = output
        print(json.dumps(output_doc, indent=2))
        return

    console.print(f"[green]✓ Rendered {result.frames} frames[/green]")
    table = Table(show_header=False, box=None)
    table.add_row("Viewport", f"{request.viewport.width}x{request.viewport.height}")
    table.add_row("Window", f"{format_timestamp(request.start)} → {format_timestamp(request.end)}")
    table.add_row("Placements rendered", str(result.applied))
    if digest_sink is not None:
        table.add_row("Digest", f"[yellow]{digest_sink.digest}[/yellow]")
    else:
        table.add_row("Output", output)
    console.print(table)


def _fail(json_output: bool, kind: str, message: str) -> None:
    if json_output:
        print(json.dumps({"error": kind, "message": message}))
    else:
        console.print(f"[red]Error ({kind}):[/red] {message}")
    raise typer.Exit(2)
