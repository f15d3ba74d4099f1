"""
Render configuration.

Render parameters come from the CLI; process-level settings come from the
environment:
    PLACELAPSE_DB: Default event store path
    PLACELAPSE_FFMPEG: Encoder binary (default: ffmpeg)
    PLACELAPSE_FETCH_SIZE: Rows fetched per store round trip
    PLACELAPSE_INGEST_CHUNK: Rows written per ingest transaction
"""

import os
from dataclasses import dataclass
from typing import Optional

from .core.canvas import Viewport
from .core.clock import FrameClock
from .core.errors import ConfigurationError

DEFAULT_DB = "db.sqlite"
DEFAULT_FPS = 60
DEFAULT_FETCH_SIZE = 10_000
DEFAULT_INGEST_CHUNK = 100_000


def env_int(key: str, default: Optional[int] = None) -> Optional[int]:
    """Positive integer from the environment, or default when unset/invalid."""
    val = os.getenv(key)
    if not val:
        return default
    try:
        parsed = int(val)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def default_db_path() -> str:
    return os.getenv("PLACELAPSE_DB") or DEFAULT_DB


@dataclass(frozen=True)
class RenderRequest:
    """
    Parameters of one render.

    Fields:
        viewport: World window to render
        start, end: Epoch milliseconds
        interval: Simulated milliseconds per frame
    """
    viewport: Viewport
    start: int
    end: int
    interval: int

    def validate(self) -> "RenderRequest":
        """
        Raises:
            ConfigurationError: On a bad viewport, non-positive interval, or end < start
        """
        self.viewport.validate()
        if self.interval <= 0:
            raise ConfigurationError(f"frame interval must be positive: {self.interval}")
        if self.end < self.start:
            raise ConfigurationError(f"end ({self.end}) before start ({self.start})")
        return self

    @property
    def clock(self) -> FrameClock:
        return FrameClock(self.start, self.end, self.interval)


@dataclass(frozen=True)
class EncoderOptions:
    """
    ffmpeg encoder settings.

    These never change the frames, only how they are encoded.
    """
    output: str = "output.mp4"
    fps: int = DEFAULT_FPS
    codec: str = "libx264"
    crf: int = 25
    preset: str = "slow"
    scale_height: Optional[int] = 1080
    ffmpeg: str = "ffmpeg"

    @staticmethod
    def from_env(output: str = "output.mp4", **overrides) -> "EncoderOptions":
        ffmpeg = os.getenv("PLACELAPSE_FFMPEG") or "ffmpeg"
        return EncoderOptions(output=output, ffmpeg=ffmpeg, **overrides)
