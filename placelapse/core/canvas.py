"""
Raster canvas for one render.

The canvas covers exactly the viewport being rendered. World coordinates are
translated by the viewport origin; anything that lands outside is dropped.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .errors import ConfigurationError

WHITE = 0xFF


@dataclass(frozen=True)
class Viewport:
    """
    Inclusive world-coordinate window.

    Fields:
        x1, y1: Top-left corner
        x2, y2: Bottom-right corner (inclusive)
    """
    x1: int
    y1: int
    x2: int
    y2: int

    @property
    def width(self) -> int:
        return self.x2 - self.x1 + 1

    @property
    def height(self) -> int:
        return self.y2 - self.y1 + 1

    def contains(self, x: int, y: int) -> bool:
        return self.x1 <= x <= self.x2 and self.y1 <= y <= self.y2

    def validate(self) -> "Viewport":
        if self.x2 < self.x1 or self.y2 < self.y1:
            raise ConfigurationError(
                f"invalid viewport ({self.x1},{self.y1})-({self.x2},{self.y2})"
            )
        return self

    @staticmethod
    def parse(text: str) -> "Viewport":
        """Parse "x1,y1,x2,y2"."""
        parts = text.split(",")
        if len(parts) != 4:
            raise ConfigurationError("viewport must be x1,y1,x2,y2")
        try:
            x1, y1, x2, y2 = (int(p.strip()) for p in parts)
        except ValueError as ex:
            raise ConfigurationError(f"viewport values must be integers: {text}") from ex
        return Viewport(x1, y1, x2, y2).validate()


@dataclass(frozen=True)
class Frame:
    """Immutable RGBA snapshot of a canvas, row-major."""
    width: int
    height: int
    pixels: bytes

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        """RGBA at buffer-local coordinates."""
        i = (y * self.width + x) * 4
        return (self.pixels[i], self.pixels[i + 1], self.pixels[i + 2], self.pixels[i + 3])


def _rgba(color: int) -> Tuple[int, int, int, int]:
    return ((color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF, 0xFF)


class Canvas:
    """
    Mutable RGBA buffer, initialized to opaque white.

    Usage:
        canvas = Canvas(Viewport(0, 0, 99, 99))
        canvas.set_pixel(10, 10, 0xFF4500)
        frame = canvas.snapshot()
    """

    def __init__(self, viewport: Viewport) -> None:
        self.viewport = viewport.validate()
        self.width = viewport.width
        self.height = viewport.height
        self._buf = np.full((self.height, self.width, 4), WHITE, dtype=np.uint8)

    def _local(self, x: int, y: int) -> Tuple[int, int]:
        return x - self.viewport.x1, y - self.viewport.y1

    def set_pixel(self, x: int, y: int, color: int) -> None:
        """
        Paint one cell at world coordinates.

        Writes outside the viewport are silently dropped.
        """
        lx, ly = self._local(x, y)
        if lx < 0 or ly < 0 or lx >= self.width or ly >= self.height:
            return
        self._buf[ly, lx] = _rgba(color)

    def _clip(self, lo_x: int, lo_y: int, hi_x: int, hi_y: int) -> Tuple[int, int, int, int]:
        # local half-open bounds of the closed world box, clipped to the buffer
        x0, y0 = self._local(lo_x, lo_y)
        x1, y1 = self._local(hi_x, hi_y)
        return (
            max(x0, 0),
            max(y0, 0),
            min(x1 + 1, self.width),
            min(y1 + 1, self.height),
        )

    def fill_rectangle(self, a: Tuple[int, int], b: Tuple[int, int], color: int) -> None:
        """
        Paint the closed box spanned by two corners, in either order.

        Equivalent to set_pixel() over min..=max on both axes.
        """
        lo_x, hi_x = min(a[0], b[0]), max(a[0], b[0])
        lo_y, hi_y = min(a[1], b[1]), max(a[1], b[1])
        x0, y0, x1, y1 = self._clip(lo_x, lo_y, hi_x, hi_y)
        if x0 >= x1 or y0 >= y1:
            return
        self._buf[y0:y1, x0:x1] = _rgba(color)

    def fill_circle(self, center: Tuple[int, int], radius: int, color: int) -> None:
        """
        Paint a filled disk: every cell with dx^2 + dy^2 <= radius^2.

        A negative radius paints nothing.
        """
        cx, cy = center
        if radius < 0:
            return
        x0, y0, x1, y1 = self._clip(cx - radius, cy - radius, cx + radius, cy + radius)
        if x0 >= x1 or y0 >= y1:
            return
        # world offsets from the center for the clipped window
        dy = np.arange(y0, y1, dtype=np.int64) + self.viewport.y1 - cy
        dx = np.arange(x0, x1, dtype=np.int64) + self.viewport.x1 - cx
        mask = dy[:, None] ** 2 + dx[None, :] ** 2 <= radius * radius
        self._buf[y0:y1, x0:x1][mask] = _rgba(color)

    def get_pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        """RGBA at world coordinates (IndexError outside the viewport)."""
        lx, ly = self._local(x, y)
        if lx < 0 or ly < 0 or lx >= self.width or ly >= self.height:
            raise IndexError(f"({x},{y}) outside viewport")
        r, g, b, a = (int(v) for v in self._buf[ly, lx])
        return (r, g, b, a)

    def snapshot(self) -> Frame:
        """Independent copy of the current buffer."""
        return Frame(self.width, self.height, self._buf.tobytes())
