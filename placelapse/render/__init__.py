"""
Frame output.

This module provides:
- FrameSink: Abstract consumer of the raw frame stream
- FfmpegSink: Encodes frames with an ffmpeg subprocess
- DigestSink: Hashes frames (dry runs, determinism checks)
- RawFileSink: Writes raw frames to a file
"""

from .sink import DigestSink, FfmpegSink, FrameSink, RawFileSink

__all__ = [
    "FrameSink",
    "FfmpegSink",
    "DigestSink",
    "RawFileSink",
]
