"""
Placement event model and decoder.

One stored row multiplexes three shapes through its aux fields:
- Point: aux1 and aux2 are both SENTINEL
- Circle: aux2 is SENTINEL, aux1 is the radius
- Rectangle: neither is SENTINEL, (x, y) and (aux1, aux2) are opposite corners

decode_event() resolves the shape once; everything downstream works on the
decoded variant.
"""

from dataclasses import dataclass
from typing import Tuple, Union

from .errors import MalformedEvent

SENTINEL = 2**31 - 1

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
COLOR_MAX = 2**32 - 1


@dataclass(frozen=True)
class PlacementEvent:
    """
    Immutable placement record, as stored.

    Fields:
        timestamp: Milliseconds since epoch
        actor_id: Interned actor identifier (not used in rendering)
        x, y: Primary point, or rectangle/circle origin
        aux1, aux2: Variant-dependent (see module docstring)
        color: Packed 0xRRGGBB (top byte ignored)
    """
    timestamp: int
    actor_id: int
    x: int
    y: int
    aux1: int = SENTINEL
    aux2: int = SENTINEL
    color: int = 0

    @staticmethod
    def point(timestamp: int, x: int, y: int, color: int, actor_id: int = 0) -> "PlacementEvent":
        return PlacementEvent(timestamp, actor_id, x, y, SENTINEL, SENTINEL, color)

    @staticmethod
    def circle(
        timestamp: int, x: int, y: int, radius: int, color: int, actor_id: int = 0
    ) -> "PlacementEvent":
        return PlacementEvent(timestamp, actor_id, x, y, radius, SENTINEL, color)

    @staticmethod
    def rectangle(
        timestamp: int, x1: int, y1: int, x2: int, y2: int, color: int, actor_id: int = 0
    ) -> "PlacementEvent":
        return PlacementEvent(timestamp, actor_id, x1, y1, x2, y2, color)

    def as_row(self) -> Tuple[int, int, int, int, int, int, int]:
        return (self.timestamp, self.actor_id, self.x, self.y, self.aux1, self.aux2, self.color)


@dataclass(frozen=True)
class Point:
    x: int
    y: int
    color: int

    kind = "point"

    @property
    def position(self) -> Tuple[int, int]:
        return (self.x, self.y)


@dataclass(frozen=True)
class Circle:
    x: int
    y: int
    radius: int
    color: int

    kind = "circle"

    @property
    def center(self) -> Tuple[int, int]:
        return (self.x, self.y)


@dataclass(frozen=True)
class Rectangle:
    x1: int
    y1: int
    x2: int
    y2: int
    color: int

    kind = "rectangle"

    @property
    def corners(self) -> Tuple[Tuple[int, int], Tuple[int, int]]:
        return ((self.x1, self.y1), (self.x2, self.y2))


Shape = Union[Point, Circle, Rectangle]


def _require_int(name: str, value: object, lo: int, hi: int) -> int:
    # bool is an int subclass; a stored flag is never a coordinate
    if not isinstance(value, int) or isinstance(value, bool):
        raise MalformedEvent(f"{name} is not an integer: {value!r}")
    if value < lo or value > hi:
        raise MalformedEvent(f"{name} out of range: {value}")
    return value


def decode_event(event: PlacementEvent) -> Shape:
    """
    Classify a stored record into its shape.

    Args:
        event: Stored placement record

    Returns:
        Point, Circle or Rectangle

    Raises:
        MalformedEvent: If the sentinel pattern is invalid (aux1 only) or a
            numeric field is outside its representable range
    """
    if not isinstance(event.timestamp, int) or isinstance(event.timestamp, bool):
        raise MalformedEvent(f"timestamp is not an integer: {event.timestamp!r}")
    if not isinstance(event.actor_id, int) or isinstance(event.actor_id, bool):
        raise MalformedEvent(f"actor_id is not an integer: {event.actor_id!r}")

    x = _require_int("x", event.x, INT32_MIN, INT32_MAX)
    y = _require_int("y", event.y, INT32_MIN, INT32_MAX)
    aux1 = _require_int("aux1", event.aux1, INT32_MIN, INT32_MAX)
    aux2 = _require_int("aux2", event.aux2, INT32_MIN, INT32_MAX)
    color = _require_int("color", event.color, 0, COLOR_MAX)

    if aux1 == SENTINEL and aux2 == SENTINEL:
        return Point(x, y, color)
    if aux2 == SENTINEL:
        return Circle(x, y, aux1, color)
    if aux1 == SENTINEL:
        raise MalformedEvent(
            f"sentinel on aux1 only at timestamp {event.timestamp} ({x},{y})"
        )
    return Rectangle(x, y, aux1, aux2, color)
