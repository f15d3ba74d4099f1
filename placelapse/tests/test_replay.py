"""
Tests for replay cadence and determinism.

Critical: each frame is the fold of all events strictly before its tick, and
two runs over the same events produce byte-identical frames.
"""

from typing import List

import pytest

from placelapse.config import RenderRequest
from placelapse.core.canvas import Frame, Viewport
from placelapse.core.errors import (
    ConfigurationError,
    MalformedEvent,
    RenderAborted,
    SinkWriteFailure,
    StoreQueryFailure,
)
from placelapse.core.events import SENTINEL, PlacementEvent
from placelapse.render.sink import DigestSink, FrameSink
from placelapse.replay import ReplayEngine, ReplayState, render
from placelapse.log.sqlite_store import SqliteEventStore

WHITE = (255, 255, 255, 255)


class CollectingSink(FrameSink):
    """Keeps every frame for inspection."""

    def __init__(self) -> None:
        self.frames: List[Frame] = []
        self.closed = False
        self.aborted = False

    def write(self, frame: Frame) -> None:
        self.frames.append(frame)

    def close(self) -> None:
        self.closed = True

    def abort(self) -> None:
        self.aborted = True


class FailingSink(CollectingSink):
    """Rejects the nth frame."""

    def __init__(self, fail_at: int) -> None:
        super().__init__()
        self.fail_at = fail_at

    def write(self, frame: Frame) -> None:
        if len(self.frames) == self.fail_at:
            raise SinkWriteFailure("broken pipe")
        super().write(frame)


def run(events, start, end, interval, viewport=Viewport(0, 0, 3, 3), sink=None):
    sink = sink or CollectingSink()
    sink.open(viewport.width, viewport.height)
    engine = ReplayEngine(events, RenderRequest(viewport, start, end, interval), sink)
    result = engine.run()
    return engine, result, sink


def test_final_frame_guarantee():
    """start=0, end=25, interval=10 emits t=0,10,20 plus one final frame."""
    _, result, sink = run([], 0, 25, 10)
    assert result.frames == 4
    assert len(sink.frames) == 4


def test_frame_count_when_interval_divides_window():
    _, result, _ = run([], 0, 30, 10)
    assert result.frames == 4


def test_empty_window_still_emits_final_frame():
    _, result, sink = run([], 100, 100, 10)
    assert result.frames == 1
    assert sink.frames[0].pixel(0, 0) == WHITE


def test_event_at_tick_belongs_to_next_frame():
    """An event at timestamp == t is not in frame t, only in frame t+interval."""
    events = [PlacementEvent.point(10, 0, 0, 0xFF0000)]
    _, result, sink = run(events, 0, 30, 10)
    # frames for t=0, 10, 20, final
    assert sink.frames[0].pixel(0, 0) == WHITE
    assert sink.frames[1].pixel(0, 0) == WHITE
    assert sink.frames[2].pixel(0, 0) == (255, 0, 0, 255)
    assert result.applied == 1


def test_last_write_wins():
    """Two points at the same cell: the later timestamp's colour is shown."""
    events = [
        PlacementEvent.point(5, 1, 1, 0xFF0000),
        PlacementEvent.point(8, 1, 1, 0x00FF00),
    ]
    _, _, sink = run(events, 0, 20, 9)
    # ticks 0, 9, 18, final
    assert sink.frames[0].pixel(1, 1) == WHITE
    assert sink.frames[1].pixel(1, 1) == (0, 255, 0, 255)
    assert sink.frames[-1].pixel(1, 1) == (0, 255, 0, 255)


def test_canvas_accumulates_across_frames():
    """The canvas is never reset; earlier placements stay visible."""
    events = [
        PlacementEvent.point(1, 0, 0, 0xFF0000),
        PlacementEvent.point(11, 1, 0, 0x00FF00),
        PlacementEvent.point(21, 2, 0, 0x0000FF),
    ]
    _, _, sink = run(events, 0, 30, 10)
    last = sink.frames[-1]
    assert last.pixel(0, 0) == (255, 0, 0, 255)
    assert last.pixel(1, 0) == (0, 255, 0, 255)
    assert last.pixel(2, 0) == (0, 0, 255, 255)
    assert sink.frames[2].pixel(2, 0) == WHITE


def test_shapes_are_painted():
    events = [
        PlacementEvent.rectangle(1, 0, 0, 1, 1, 0xFF0000),
        PlacementEvent.circle(2, 3, 3, 0, 0x0000FF),
    ]
    _, result, sink = run(events, 0, 10, 10)
    final = sink.frames[-1]
    assert final.pixel(0, 0) == (255, 0, 0, 255)
    assert final.pixel(1, 1) == (255, 0, 0, 255)
    assert final.pixel(2, 2) == WHITE
    assert final.pixel(3, 3) == (0, 0, 255, 255)
    assert result.applied == 2


def test_out_of_viewport_points_are_skipped_and_not_counted():
    """Points outside the viewport are pre-filtered; shapes are always attempted."""
    events = [
        PlacementEvent.point(1, 50, 50, 0xFF0000),
        PlacementEvent.rectangle(2, 40, 40, 60, 60, 0xFF0000),
        PlacementEvent.point(3, 0, 0, 0xFF0000),
    ]
    engine, result, sink = run(events, 0, 10, 10)
    assert result.applied == 2
    assert result.last_timestamp == 3
    assert engine.state == ReplayState.DONE


def test_events_after_end_are_not_applied():
    events = [
        PlacementEvent.point(5, 0, 0, 0xFF0000),
        PlacementEvent.point(30, 1, 1, 0xFF0000),
    ]
    _, result, sink = run(events, 0, 20, 10)
    assert result.applied == 1
    assert sink.frames[-1].pixel(1, 1) == WHITE


def test_final_frame_includes_events_up_to_end():
    """Events in [last tick, end] reach the final frame."""
    events = [PlacementEvent.point(24, 0, 0, 0xFF0000), PlacementEvent.point(25, 1, 0, 0xFF0000)]
    _, _, sink = run(events, 0, 25, 10)
    assert sink.frames[2].pixel(0, 0) == WHITE
    assert sink.frames[3].pixel(0, 0) == (255, 0, 0, 255)
    assert sink.frames[3].pixel(1, 0) == (255, 0, 0, 255)


def test_replay_determinism():
    """Two independent runs produce byte-identical frame sequences."""
    events = [
        PlacementEvent.point(i, i % 4, (i // 4) % 4, (i * 0x10101) & 0xFFFFFF)
        for i in range(0, 200, 3)
    ] + [PlacementEvent.circle(201, 2, 2, 1, 0x123456)]
    digests = []
    for _ in range(5):
        sink = DigestSink()
        run(list(events), 0, 250, 7, sink=sink)
        digests.append((sink.digest, tuple(sink.frame_digests)))
    assert len(set(digests)) == 1


def test_engine_pulls_events_lazily():
    """The engine never reads past the first event of the next tick."""
    pulled = []

    def stream():
        for ts in (1, 2, 15, 40):
            pulled.append(ts)
            yield PlacementEvent.point(ts, 0, 0, 0xFF0000)

    sink = CollectingSink()
    sink.open(4, 4)
    request = RenderRequest(Viewport(0, 0, 3, 3), 0, 100, 10)
    pulled_at_frame = []
    engine = ReplayEngine(stream(), request, sink, on_frame=lambda i, t: pulled_at_frame.append(list(pulled)))
    engine.run()
    # frame t=0 needs one look-ahead event only
    assert pulled_at_frame[0] == [1]
    # frame t=10 stops at 15
    assert pulled_at_frame[1] == [1, 2, 15]


def test_malformed_event_aborts_render():
    events = [
        PlacementEvent.point(1, 0, 0, 0xFF0000),
        PlacementEvent(12, 0, 0, 0, SENTINEL, 5, 0xFF0000),
        PlacementEvent.point(13, 1, 1, 0xFF0000),
    ]
    sink = CollectingSink()
    sink.open(4, 4)
    engine = ReplayEngine(events, RenderRequest(Viewport(0, 0, 3, 3), 0, 50, 10), sink)
    with pytest.raises(RenderAborted) as info:
        engine.run()
    assert isinstance(info.value.cause, MalformedEvent)
    assert info.value.kind == "MalformedEvent"
    assert info.value.applied == 1
    assert info.value.last_timestamp == 1
    assert info.value.frames == 2
    assert engine.state != ReplayState.DONE


def test_sink_failure_stops_immediately():
    sink = FailingSink(fail_at=1)
    sink.open(4, 4)
    engine = ReplayEngine([], RenderRequest(Viewport(0, 0, 3, 3), 0, 100, 10), sink)
    with pytest.raises(RenderAborted) as info:
        engine.run()
    assert isinstance(info.value.__cause__, SinkWriteFailure)
    assert len(sink.frames) == 1
    assert info.value.frames == 1


def test_store_failure_aborts_render():
    def stream():
        yield PlacementEvent.point(1, 0, 0, 0xFF0000)
        raise StoreQueryFailure("connection lost")

    sink = CollectingSink()
    sink.open(4, 4)
    engine = ReplayEngine(stream(), RenderRequest(Viewport(0, 0, 3, 3), 0, 100, 10), sink)
    with pytest.raises(RenderAborted) as info:
        engine.run()
    assert info.value.kind == "StoreQueryFailure"
    assert info.value.applied == 1


@pytest.mark.parametrize(
    "request_",
    [
        RenderRequest(Viewport(0, 0, 3, 3), 0, 100, 0),
        RenderRequest(Viewport(0, 0, 3, 3), 0, 100, -5),
        RenderRequest(Viewport(3, 0, 0, 3), 0, 100, 10),
        RenderRequest(Viewport(0, 0, 3, 3), 100, 0, 10),
    ],
)
def test_invalid_request_is_rejected(request_):
    with pytest.raises(ConfigurationError):
        ReplayEngine([], request_, CollectingSink())


def test_render_from_store_closes_sink():
    """render() queries the window, replays it and finalizes the sink."""
    with SqliteEventStore(":memory:") as store:
        store.append_many([
            PlacementEvent.point(5, 10, 10, 0xFF0000),
            PlacementEvent.point(6, 99, 99, 0xFF0000),
            PlacementEvent.point(500, 11, 11, 0xFF0000),
        ])
        sink = CollectingSink()
        result = render(store, RenderRequest(Viewport(10, 10, 13, 13), 0, 100, 10), sink)
    assert result.frames == 11
    assert result.applied == 1
    assert sink.closed and not sink.aborted
    assert (sink.width, sink.height) == (4, 4)
    assert sink.frames[1].pixel(0, 0) == (255, 0, 0, 255)


def test_render_aborts_sink_on_failure():
    with SqliteEventStore(":memory:") as store:
        store.append_many([PlacementEvent(5, 0, 0, 0, SENTINEL, 3, 0xFF0000)])
        sink = CollectingSink()
        with pytest.raises(RenderAborted):
            render(store, RenderRequest(Viewport(0, 0, 3, 3), 0, 100, 10), sink)
    assert sink.aborted and not sink.closed


def test_render_aborts_sink_when_progress_callback_raises():
    """An interrupt from the frame callback still discards the output."""
    def interrupt(i, t):
        raise KeyboardInterrupt

    with SqliteEventStore(":memory:") as store:
        store.append_many([PlacementEvent.point(5, 0, 0, 0xFF0000)])
        sink = CollectingSink()
        with pytest.raises(KeyboardInterrupt):
            render(store, RenderRequest(Viewport(0, 0, 3, 3), 0, 100, 10), sink, on_frame=interrupt)
    assert sink.aborted and not sink.closed
    assert len(sink.frames) == 1


def test_render_aborts_sink_on_callback_error():
    def broken(i, t):
        raise RuntimeError("progress display failed")

    with SqliteEventStore(":memory:") as store:
        sink = CollectingSink()
        with pytest.raises(RuntimeError):
            render(store, RenderRequest(Viewport(0, 0, 3, 3), 0, 100, 10), sink, on_frame=broken)
    assert sink.aborted and not sink.closed
