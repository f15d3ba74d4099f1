"""
Tests for canvas writes and clipping.
"""

import pytest

from placelapse.core.canvas import Canvas, Frame, Viewport
from placelapse.core.errors import ConfigurationError

WHITE = (255, 255, 255, 255)
RED = (0xFF, 0x00, 0x00, 0xFF)


def painted(canvas: Canvas) -> set:
    """World coordinates of every non-white cell."""
    vp = canvas.viewport
    frame = canvas.snapshot()
    return {
        (x + vp.x1, y + vp.y1)
        for y in range(frame.height)
        for x in range(frame.width)
        if frame.pixel(x, y) != WHITE
    }


def test_new_canvas_is_opaque_white():
    canvas = Canvas(Viewport(0, 0, 3, 2))
    frame = canvas.snapshot()
    assert (frame.width, frame.height) == (4, 3)
    assert frame.pixels == b"\xff" * (4 * 3 * 4)


def test_invalid_viewport_is_rejected():
    with pytest.raises(ConfigurationError):
        Canvas(Viewport(5, 0, 4, 10))
    with pytest.raises(ConfigurationError):
        Viewport.parse("0,0,10")


def test_viewport_parse():
    vp = Viewport.parse("148, 172, 283, 265")
    assert vp == Viewport(148, 172, 283, 265)
    assert (vp.width, vp.height) == (136, 94)


def test_set_pixel_translates_and_forces_alpha():
    """World coordinates are offset by the viewport origin; alpha is always 255."""
    canvas = Canvas(Viewport(10, 20, 19, 29))
    canvas.set_pixel(12, 25, 0x7F123456)
    frame = canvas.snapshot()
    assert frame.pixel(2, 5) == (0x12, 0x34, 0x56, 0xFF)
    assert canvas.get_pixel(12, 25) == (0x12, 0x34, 0x56, 0xFF)


def test_set_pixel_outside_viewport_is_noop():
    """Out-of-bounds writes never alter the buffer."""
    canvas = Canvas(Viewport(0, 0, 4, 4))
    before = canvas.snapshot()
    for x, y in [(-1, 0), (0, -1), (5, 0), (0, 5), (100, 100), (-100, 2)]:
        canvas.set_pixel(x, y, 0xFF0000)
    assert canvas.snapshot() == before


def test_set_pixel_last_write_wins():
    canvas = Canvas(Viewport(0, 0, 1, 1))
    canvas.set_pixel(0, 0, 0xFF0000)
    canvas.set_pixel(0, 0, 0x00FF00)
    assert canvas.get_pixel(0, 0) == (0, 255, 0, 255)


def test_fill_rectangle_is_closed_interval():
    """Corners (2,2)-(5,5) paint exactly the 16 cells (2..=5)x(2..=5)."""
    canvas = Canvas(Viewport(0, 0, 9, 9))
    canvas.fill_rectangle((2, 2), (5, 5), 0xFF0000)
    expected = {(x, y) for x in range(2, 6) for y in range(2, 6)}
    assert painted(canvas) == expected
    assert len(expected) == 16


def test_fill_rectangle_is_order_independent():
    a = Canvas(Viewport(0, 0, 9, 9))
    b = Canvas(Viewport(0, 0, 9, 9))
    a.fill_rectangle((2, 2), (5, 5), 0xFF0000)
    b.fill_rectangle((5, 5), (2, 2), 0xFF0000)
    assert a.snapshot() == b.snapshot()

    c = Canvas(Viewport(0, 0, 9, 9))
    c.fill_rectangle((5, 2), (2, 5), 0xFF0000)
    assert c.snapshot() == a.snapshot()


def test_fill_rectangle_clips_at_edges():
    """A rectangle straddling the viewport paints only the overlap."""
    canvas = Canvas(Viewport(0, 0, 4, 4))
    canvas.fill_rectangle((-3, 3), (1, 10), 0xFF0000)
    assert painted(canvas) == {(x, y) for x in range(0, 2) for y in range(3, 5)}


def test_fill_rectangle_fully_outside_is_noop():
    canvas = Canvas(Viewport(0, 0, 4, 4))
    before = canvas.snapshot()
    canvas.fill_rectangle((10, 10), (20, 20), 0xFF0000)
    canvas.fill_rectangle((-20, -20), (-1, 4), 0xFF0000)
    assert canvas.snapshot() == before


def test_fill_circle_is_a_disk():
    """Center (0,0) radius 2 paints every cell with dx^2+dy^2 <= 4 and nothing else."""
    canvas = Canvas(Viewport(-5, -5, 5, 5))
    canvas.fill_circle((0, 0), 2, 0xFF0000)
    expected = {
        (x, y) for x in range(-5, 6) for y in range(-5, 6) if x * x + y * y <= 4
    }
    assert painted(canvas) == expected
    assert len(expected) == 13


def test_fill_circle_clips_at_edges():
    """A circle centered on the corner paints only the in-viewport quarter."""
    canvas = Canvas(Viewport(0, 0, 9, 9))
    canvas.fill_circle((0, 0), 3, 0x0000FF)
    expected = {(x, y) for x in range(0, 4) for y in range(0, 4) if x * x + y * y <= 9}
    assert painted(canvas) == expected


def test_fill_circle_radius_zero_paints_center():
    canvas = Canvas(Viewport(0, 0, 4, 4))
    canvas.fill_circle((2, 2), 0, 0xFF0000)
    assert painted(canvas) == {(2, 2)}


def test_fill_circle_negative_radius_paints_nothing():
    canvas = Canvas(Viewport(0, 0, 4, 4))
    before = canvas.snapshot()
    canvas.fill_circle((2, 2), -1, 0xFF0000)
    assert canvas.snapshot() == before


def test_snapshot_is_independent():
    """Later writes do not change an earlier snapshot."""
    canvas = Canvas(Viewport(0, 0, 1, 1))
    first = canvas.snapshot()
    canvas.set_pixel(0, 0, 0xFF0000)
    second = canvas.snapshot()
    assert first.pixel(0, 0) == WHITE
    assert second.pixel(0, 0) == RED
    assert isinstance(first, Frame)
