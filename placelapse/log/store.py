"""
EventStore abstract interface.

Defines the contract the replay engine reads from.
"""

from abc import ABC, abstractmethod
from typing import Callable, Iterable, Iterator, Optional, Tuple

from ..core.events import PlacementEvent


class EventStore(ABC):
    """
    Abstract placement event storage.

    All implementations must guarantee:
    - query() yields events ascending by timestamp
    - query() is lazy (rows are fetched as the caller iterates)
    - all query bounds are inclusive
    """

    @abstractmethod
    def query(
        self,
        time_lo: int,
        time_hi: int,
        x_lo: int,
        y_lo: int,
        x_hi: int,
        y_hi: int,
    ) -> Iterator[PlacementEvent]:
        """
        Read events inside a time window and a bounding box.

        The box filters on each event's (x, y) origin.

        Yields:
            Events in ascending timestamp order

        Raises:
            StoreQueryFailure: If the underlying query fails
        """
        ...

    @abstractmethod
    def append_many(
        self,
        events: Iterable[PlacementEvent],
        on_chunk: Optional[Callable[[int], None]] = None,
    ) -> int:
        """
        Append events.

        Args:
            events: Events to append
            on_chunk: Progress callback, called with the size of each committed batch

        Returns:
            Number of events written

        Raises:
            StoreQueryFailure: If the write fails
        """
        ...

    @abstractmethod
    def count(self) -> int:
        ...

    def time_range(self) -> Optional[Tuple[int, int]]:
        """
        Return (first, last) timestamp, or None for an empty store.

        Implementations may override. Default returns None.
        """
        return None
