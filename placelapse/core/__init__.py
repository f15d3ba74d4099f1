"""
Core rendering primitives.

This module provides:
- PlacementEvent: Stored placement record
- decode_event: Shape decoder (Point, Circle, Rectangle)
- Canvas: Viewport raster buffer with clipped writes
- FrameClock: Fixed-step simulated clock
- Errors: The fatal error taxonomy of a render
"""

from .events import (
    SENTINEL,
    PlacementEvent,
    Point,
    Circle,
    Rectangle,
    Shape,
    decode_event,
)
from .canvas import Canvas, Frame, Viewport
from .clock import FrameClock
from .errors import (
    PlacelapseError,
    MalformedEvent,
    StoreQueryFailure,
    SinkWriteFailure,
    ConfigurationError,
    RenderAborted,
)

__all__ = [
    "SENTINEL",
    "PlacementEvent",
    "Point",
    "Circle",
    "Rectangle",
    "Shape",
    "decode_event",
    "Canvas",
    "Frame",
    "Viewport",
    "FrameClock",
    "PlacelapseError",
    "MalformedEvent",
    "StoreQueryFailure",
    "SinkWriteFailure",
    "ConfigurationError",
    "RenderAborted",
]
