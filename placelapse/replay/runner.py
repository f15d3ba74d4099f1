"""
Replay runner: fold the placement stream into frames.

The canvas is never reset. Each frame is the fold of every event strictly
before its tick time; an event at exactly the tick time belongs to the next
frame. Only one frame exists in memory at a time, and events are pulled from
the store only as far as the current tick needs.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Iterator, Optional

from ..config import RenderRequest
from ..core.canvas import Canvas, Frame
from ..core.errors import (
    MalformedEvent,
    RenderAborted,
    SinkWriteFailure,
    StoreQueryFailure,
)
from ..core.events import Circle, PlacementEvent, Point, Rectangle, decode_event
from ..log.store import EventStore
from ..logging_config import get_logger
from ..render.sink import FrameSink

# Called after each emitted frame with (frame_index, tick_time)
FrameCallback = Callable[[int, int], None]


class ReplayState(Enum):
    AWAITING_NEXT_EVENT = "awaiting_next_event"
    EMITTING = "emitting"
    DONE = "done"


@dataclass(frozen=True)
class RenderResult:
    """
    Result of a render.

    Fields:
        frames: Number of frames emitted (ticks + 1 final frame)
        applied: Number of events painted (pre-filtered points excluded)
        last_timestamp: Timestamp of the last applied event (None if none)
    """
    frames: int
    applied: int
    last_timestamp: Optional[int]


class ReplayEngine:
    """
    Clock-driven fold of an ascending event stream onto a canvas.

    Usage:
        engine = ReplayEngine(events, request, sink)
        result = engine.run()

    The sink must already be open; the engine never closes it.
    """

    def __init__(
        self,
        events: Iterable[PlacementEvent],
        request: RenderRequest,
        sink: FrameSink,
        on_frame: Optional[FrameCallback] = None,
        run_id: Optional[str] = None,
    ) -> None:
        self.request = request.validate()
        self.sink = sink
        self.on_frame = on_frame
        self.canvas = Canvas(request.viewport)
        self.state = ReplayState.AWAITING_NEXT_EVENT
        self.applied = 0
        self.frames = 0
        self.last_timestamp: Optional[int] = None
        self._events: Iterator[PlacementEvent] = iter(events)
        self._pending: Optional[PlacementEvent] = None
        self._exhausted = False
        self._log = get_logger(__name__, run_id=run_id)

    def _next_event(self) -> Optional[PlacementEvent]:
        if self._pending is not None:
            ev, self._pending = self._pending, None
            return ev
        if self._exhausted:
            return None
        ev = next(self._events, None)
        if ev is None:
            self._exhausted = True
        return ev

    def _apply(self, event: PlacementEvent) -> None:
        shape = decode_event(event)
        if isinstance(shape, Point):
            if not self.request.viewport.contains(shape.x, shape.y):
                return
            self.canvas.set_pixel(shape.x, shape.y, shape.color)
        elif isinstance(shape, Circle):
            self.canvas.fill_circle(shape.center, shape.radius, shape.color)
        elif isinstance(shape, Rectangle):
            a, b = shape.corners
            self.canvas.fill_rectangle(a, b, shape.color)
        else:
            raise MalformedEvent(f"unknown shape {shape!r}")
        self.applied += 1
        self.last_timestamp = event.timestamp

    def _drain(self, accept: Callable[[int], bool]) -> None:
        """Apply events while accept(timestamp) holds; push back the first that fails."""
        self.state = ReplayState.AWAITING_NEXT_EVENT
        while True:
            ev = self._next_event()
            if ev is None:
                return
            if not accept(ev.timestamp):
                self._pending = ev
                return
            self._apply(ev)

    def _emit(self, tick: int) -> None:
        self.state = ReplayState.EMITTING
        frame: Frame = self.canvas.snapshot()
        self.sink.write(frame)
        if self.on_frame:
            self.on_frame(self.frames, tick)
        self.frames += 1

    def run(self) -> RenderResult:
        """
        Run the render to completion.

        One frame per tick, then a final frame after applying every remaining
        event with timestamp <= end, so the last frame covers the whole window.

        Returns:
            RenderResult

        Raises:
            RenderAborted: On a malformed event, store failure or sink failure
        """
        clock = self.request.clock
        try:
            for t in clock.ticks():
                self._drain(lambda ts: ts < t)
                self._emit(t)
            # final frame: everything the window holds up to and including end
            self._drain(lambda ts: ts <= clock.end)
            self._emit(clock.end)
        except (MalformedEvent, StoreQueryFailure, SinkWriteFailure) as ex:
            self._log.error(
                "Render aborted",
                extra={
                    "kind": type(ex).__name__,
                    "applied": self.applied,
                    "frames": self.frames,
                    "last_timestamp": self.last_timestamp,
                },
            )
            raise RenderAborted(ex, self.applied, self.frames, self.last_timestamp) from ex

        self.state = ReplayState.DONE
        self._log.info(
            "Render finished",
            extra={"applied": self.applied, "frames": self.frames},
        )
        return RenderResult(
            frames=self.frames,
            applied=self.applied,
            last_timestamp=self.last_timestamp,
        )


def render(
    store: EventStore,
    request: RenderRequest,
    sink: FrameSink,
    on_frame: Optional[FrameCallback] = None,
    run_id: Optional[str] = None,
) -> RenderResult:
    """
    Query the store for the render window and replay it into the sink.

    The sink is opened here and always released: closed on success, aborted
    on failure.

    Args:
        store: Event store (must hold events in timestamp order)
        request: Viewport, time window and frame interval
        sink: Frame consumer
        on_frame: Optional progress callback

    Returns:
        RenderResult

    Raises:
        ConfigurationError: If the request is invalid
        RenderAborted: If the render fails part-way
    """
    request.validate()
    vp = request.viewport
    log = get_logger(__name__, run_id=run_id)
    log.info(
        "Render started",
        extra={
            "viewport": [vp.x1, vp.y1, vp.x2, vp.y2],
            "start": request.start,
            "end": request.end,
            "interval": request.interval,
            "frames": request.clock.frame_count,
        },
    )

    engine: Optional[ReplayEngine] = None
    try:
        sink.open(vp.width, vp.height)
        events = store.query(request.start, request.end, vp.x1, vp.y1, vp.x2, vp.y2)
        engine = ReplayEngine(events, request, sink, on_frame=on_frame, run_id=run_id)
        result = engine.run()
        sink.close()
    except RenderAborted:
        sink.abort()
        raise
    except (StoreQueryFailure, SinkWriteFailure) as ex:
        # failures outside the frame loop: opening, querying or finalizing
        sink.abort()
        if engine is None:
            raise RenderAborted(ex, 0, 0, None) from ex
        raise RenderAborted(ex, engine.applied, engine.frames, engine.last_timestamp) from ex
    except BaseException:
        # interrupts and callback errors must not leave a half-written output
        sink.abort()
        raise
    return result
