"""
Exception types for the render pipeline.

Every error here is fatal to a render. Nothing is retried: the canvas is a
fold over the event stream, so a resumed render would be incomplete.
"""

from typing import Optional


class PlacelapseError(Exception):
    """Base class for all placelapse errors."""
    pass


class MalformedEvent(PlacelapseError):
    """Raised when a stored record cannot be decoded into an event variant."""
    pass


class StoreQueryFailure(PlacelapseError):
    """Raised when the event store query or connection fails."""
    pass


class SinkWriteFailure(PlacelapseError):
    """Raised when the encoder rejects a frame or closes its input."""
    pass


class ConfigurationError(PlacelapseError):
    """Raised for invalid render parameters (viewport, interval, window)."""
    pass


class RenderAborted(PlacelapseError):
    """
    Raised when a render stops on one of the errors above.

    Carries the diagnostics of the point of failure. The underlying error is
    available as `cause` (and as __cause__).
    """

    def __init__(
        self,
        cause: Exception,
        applied: int,
        frames: int,
        last_timestamp: Optional[int],
    ) -> None:
        self.cause = cause
        self.applied = applied
        self.frames = frames
        self.last_timestamp = last_timestamp
        super().__init__(
            f"{type(cause).__name__}: {cause} "
            f"(applied={applied}, frames={frames}, last_timestamp={last_timestamp})"
        )

    @property
    def kind(self) -> str:
        return type(self.cause).__name__
