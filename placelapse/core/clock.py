"""
Simulated render clock.

The clock is independent of the event cadence: it advances in fixed steps from
start to end, and every step is one emitted frame.
"""

from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class FrameClock:
    """
    Immutable simulated clock.

    Ticks are start, start + interval, ... while < end. One extra frame is
    emitted after the last tick, so frame_count is tick_count + 1.
    """
    start: int
    end: int
    interval: int

    def ticks(self) -> Iterator[int]:
        t = self.start
        while t < self.end:
            yield t
            t += self.interval

    @property
    def tick_count(self) -> int:
        if self.end <= self.start:
            return 0
        return -(-(self.end - self.start) // self.interval)

    @property
    def frame_count(self) -> int:
        return self.tick_count + 1
