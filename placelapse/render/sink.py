"""
Frame sinks: consumers of the raw RGBA frame stream.

A sink is opened once with the frame size, receives every frame in order,
and is either closed (finalize the output) or aborted (discard it).
"""

import hashlib
import os
import subprocess
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from ..config import EncoderOptions
from ..core.canvas import Frame
from ..core.errors import SinkWriteFailure
from ..logging_config import get_logger

logger = get_logger(__name__)


class FrameSink(ABC):
    """
    Abstract frame consumer.

    Frames are 4 bytes per pixel (R, G, B, A), row-major, fixed size for the
    session.
    """

    width: int = 0
    height: int = 0

    def open(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    @abstractmethod
    def write(self, frame: Frame) -> None:
        """
        Raises:
            SinkWriteFailure: If the frame cannot be handed over
        """
        ...

    def close(self) -> None:
        """Finalize the output."""
        pass

    def abort(self) -> None:
        """Stop without producing a usable output. Defaults to close()."""
        self.close()

    def _check_size(self, frame: Frame) -> None:
        if (frame.width, frame.height) != (self.width, self.height):
            raise SinkWriteFailure(
                f"frame is {frame.width}x{frame.height}, sink expects {self.width}x{self.height}"
            )

    def __enter__(self) -> "FrameSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self.abort()


class DigestSink(FrameSink):
    """
    Records a SHA-256 per frame and over the whole sequence.

    Used for dry runs and for checking that two renders are byte-identical.
    """

    def __init__(self) -> None:
        self.frame_digests: List[str] = []
        self._sequence = hashlib.sha256()

    def write(self, frame: Frame) -> None:
        self._check_size(frame)
        self.frame_digests.append(hashlib.sha256(frame.pixels).hexdigest())
        self._sequence.update(frame.pixels)

    @property
    def digest(self) -> str:
        return self._sequence.hexdigest()

    @property
    def frames(self) -> int:
        return len(self.frame_digests)


class RawFileSink(FrameSink):
    """Writes concatenated raw RGBA frames to a file."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._f = None
        self._created = False

    def open(self, width: int, height: int) -> None:
        super().open(width, height)
        try:
            self._f = open(self.path, "wb")
        except OSError as ex:
            raise SinkWriteFailure(f"cannot open {self.path}: {ex}") from ex
        self._created = True

    def write(self, frame: Frame) -> None:
        self._check_size(frame)
        if self._f is None:
            raise SinkWriteFailure("sink is not open")
        try:
            self._f.write(frame.pixels)
        except OSError as ex:
            raise SinkWriteFailure(str(ex)) from ex

    def close(self) -> None:
        if self._f is not None:
            self._f.close()
            self._f = None

    def abort(self) -> None:
        """Close and delete the partial file."""
        self.close()
        if not self._created:
            return
        self._created = False
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
        logger.warning("Raw output discarded", extra={"output": self.path})


class FfmpegSink(FrameSink):
    """
    Pipes raw frames into an ffmpeg process.

    The input is declared as rawvideo/rgba at options.fps; scaling, codec and
    colour metadata are output-side settings only.
    """

    def __init__(
        self,
        options: EncoderOptions,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
    ) -> None:
        self.options = options
        self._popen = popen
        self._proc: Optional[subprocess.Popen] = None
        self._started = False

    def command(self) -> List[str]:
        o = self.options
        cmd = [
            o.ffmpeg,
            "-y",
            "-loglevel", "error",
            "-nostats",
            "-f", "rawvideo",
            "-vcodec", "rawvideo",
            "-s", f"{self.width}x{self.height}",
            "-pix_fmt", "rgba",
            "-r", str(o.fps),
            "-i", "-",
            "-an",
        ]
        if o.scale_height:
            cmd += ["-vf", f"scale=-2:{o.scale_height}:flags=neighbor"]
        cmd += [
            "-c:v", o.codec,
            "-preset", o.preset,
            "-crf", str(o.crf),
            "-pix_fmt", "yuv420p",
            "-color_range", "1",
            "-colorspace", "1",
            "-color_trc", "1",
            "-color_primaries", "1",
            "-movflags", "+write_colr",
            o.output,
        ]
        return cmd

    def open(self, width: int, height: int) -> None:
        super().open(width, height)
        cmd = self.command()
        logger.info("Starting encoder", extra={"command": cmd})
        try:
            self._proc = self._popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as ex:
            raise SinkWriteFailure(f"cannot start encoder {self.options.ffmpeg}: {ex}") from ex
        self._started = True

    @staticmethod
    def _stderr_tail(proc: subprocess.Popen) -> str:
        if proc.stderr is None:
            return ""
        try:
            data = proc.stderr.read() or b""
        except (OSError, ValueError):
            return ""
        return data[-2000:].decode("utf-8", errors="replace").strip()

    def write(self, frame: Frame) -> None:
        self._check_size(frame)
        if self._proc is None or self._proc.stdin is None:
            raise SinkWriteFailure("encoder is not running")
        try:
            self._proc.stdin.write(frame.pixels)
        except (OSError, ValueError) as ex:
            self._proc.kill()
            self._proc.wait()
            raise SinkWriteFailure(f"encoder closed its input: {ex}\n{self._stderr_tail(self._proc)}") from ex

    def close(self) -> None:
        if self._proc is None:
            return
        proc, self._proc = self._proc, None
        try:
            if proc.stdin is not None:
                proc.stdin.close()
        except OSError as ex:
            proc.kill()
            proc.wait()
            raise SinkWriteFailure(f"encoder closed its input: {ex}") from ex
        tail = self._stderr_tail(proc)
        code = proc.wait()
        if code != 0:
            raise SinkWriteFailure(f"encoder exited with status {code}\n{tail}")
        self._started = False
        logger.info("Encoder finished", extra={"output": self.options.output})

    def abort(self) -> None:
        if self._proc is not None:
            proc, self._proc = self._proc, None
            proc.kill()
            proc.wait()
        if not self._started:
            return
        self._started = False
        try:
            os.remove(self.options.output)
        except FileNotFoundError:
            pass
        logger.warning("Encoder aborted", extra={"output": self.options.output})
