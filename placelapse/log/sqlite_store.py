"""
SQLite-backed placement event store.

One row per event in table `pixels`. Replay relies on the rows being read back
in timestamp order; query() orders by (timestamp, rowid) so events with equal
timestamps keep their insertion order.
"""

import os
import sqlite3
from dataclasses import dataclass, field
from itertools import islice
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from ..config import DEFAULT_FETCH_SIZE, DEFAULT_INGEST_CHUNK, env_int
from ..core.errors import StoreQueryFailure
from ..core.events import SENTINEL, PlacementEvent
from ..logging_config import get_logger
from .store import EventStore

logger = get_logger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS pixels (
    timestamp INTEGER NOT NULL,
    actor_id INTEGER NOT NULL,
    x INTEGER NOT NULL,
    y INTEGER NOT NULL,
    aux1 INTEGER NOT NULL,
    aux2 INTEGER NOT NULL,
    color INTEGER NOT NULL
)
"""

_COLUMNS = "timestamp, actor_id, x, y, aux1, aux2, color"


@dataclass(frozen=True)
class StoreStats:
    """
    Summary of a store's contents.

    Fields:
        events: Total row count
        first_timestamp, last_timestamp: Time range (None if empty)
        points, circles, rectangles: Row counts per shape
        colors: color -> count, most frequent first
    """
    events: int
    first_timestamp: Optional[int]
    last_timestamp: Optional[int]
    points: int
    circles: int
    rectangles: int
    colors: Dict[int, int] = field(default_factory=dict)


class SqliteEventStore(EventStore):
    """
    SQLite placement event store.

    Environment:
        PLACELAPSE_FETCH_SIZE: Rows per fetchmany() round trip (default 10000)
        PLACELAPSE_INGEST_CHUNK: Rows per write transaction (default 100000)
    """

    def __init__(self, path: str) -> None:
        """
        Open or create a store.

        Args:
            path: Database file path (":memory:" for a transient store)
        """
        self.path = path
        self.fetch_size = env_int("PLACELAPSE_FETCH_SIZE", DEFAULT_FETCH_SIZE)
        self.chunk_size = env_int("PLACELAPSE_INGEST_CHUNK", DEFAULT_INGEST_CHUNK)

        if path != ":memory:":
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

        try:
            self._conn = sqlite3.connect(path)
            with self._conn:
                self._conn.execute(_SCHEMA)
        except sqlite3.Error as ex:
            raise StoreQueryFailure(f"cannot open store {path}: {ex}") from ex

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "SqliteEventStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def create_index(self) -> None:
        """Index the timestamp column used by replay queries."""
        try:
            with self._conn:
                self._conn.execute(
                    "CREATE INDEX IF NOT EXISTS pixels_timestamp ON pixels (timestamp)"
                )
        except sqlite3.Error as ex:
            raise StoreQueryFailure(f"index creation failed: {ex}") from ex

    def append_many(
        self,
        events: Iterable[PlacementEvent],
        on_chunk: Optional[Callable[[int], None]] = None,
    ) -> int:
        """
        Append events in chunked transactions.

        Each chunk commits on its own, so memory stays bounded by chunk_size.

        Args:
            events: Events to append (consumed lazily)
            on_chunk: Called with the row count of each committed chunk

        Returns:
            Number of events written
        """
        it = iter(events)
        total = 0
        while True:
            chunk = [ev.as_row() for ev in islice(it, self.chunk_size)]
            if not chunk:
                break
            try:
                with self._conn:
                    self._conn.executemany(
                        f"INSERT INTO pixels ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                        chunk,
                    )
            except sqlite3.Error as ex:
                raise StoreQueryFailure(f"append failed after {total} rows: {ex}") from ex
            total += len(chunk)
            if on_chunk:
                on_chunk(len(chunk))
        return total

    def _iter_rows(self, sql: str, params: Tuple = ()) -> Iterator[PlacementEvent]:
        try:
            cur = self._conn.execute(sql, params)
            try:
                while True:
                    rows = cur.fetchmany(self.fetch_size)
                    if not rows:
                        return
                    for row in rows:
                        yield PlacementEvent(*row)
            finally:
                cur.close()
        except sqlite3.Error as ex:
            raise StoreQueryFailure(str(ex)) from ex

    def query(
        self,
        time_lo: int,
        time_hi: int,
        x_lo: int,
        y_lo: int,
        x_hi: int,
        y_hi: int,
    ) -> Iterator[PlacementEvent]:
        logger.debug(
            "Store query",
            extra={"time_lo": time_lo, "time_hi": time_hi, "box": [x_lo, y_lo, x_hi, y_hi]},
        )
        return self._iter_rows(
            f"""
            SELECT {_COLUMNS}
            FROM pixels
            WHERE timestamp >= ? AND timestamp <= ?
                AND x >= ? AND y >= ? AND x <= ? AND y <= ?
            ORDER BY timestamp, rowid
            """,
            (time_lo, time_hi, x_lo, y_lo, x_hi, y_hi),
        )

    def read_all(self) -> Iterator[PlacementEvent]:
        """Every event in timestamp order."""
        return self._iter_rows(f"SELECT {_COLUMNS} FROM pixels ORDER BY timestamp, rowid")

    def _scalar(self, sql: str, params: Tuple = ()):
        try:
            return self._conn.execute(sql, params).fetchone()
        except sqlite3.Error as ex:
            raise StoreQueryFailure(str(ex)) from ex

    def count(self) -> int:
        return self._scalar("SELECT COUNT(*) FROM pixels")[0]

    def time_range(self) -> Optional[Tuple[int, int]]:
        lo, hi = self._scalar("SELECT MIN(timestamp), MAX(timestamp) FROM pixels")
        if lo is None:
            return None
        return lo, hi

    def sort_into(
        self,
        dest_path: str,
        on_chunk: Optional[Callable[[int], None]] = None,
    ) -> "SqliteEventStore":
        """
        Write a timestamp-sorted, indexed copy of this store.

        Args:
            dest_path: Path of the new store (must not already hold events)

        Returns:
            The destination store (caller closes it)

        Raises:
            StoreQueryFailure: If dest already has rows or a query fails
        """
        dest = SqliteEventStore(dest_path)
        if dest.count():
            dest.close()
            raise StoreQueryFailure(f"destination store is not empty: {dest_path}")
        written = dest.append_many(self.read_all(), on_chunk=on_chunk)
        dest.create_index()
        logger.info("Sorted copy written", extra={"dest": dest_path, "events": written})
        return dest

    def stats(self, top_colors: int = 10) -> StoreStats:
        row = self._scalar(
            """
            SELECT
                COUNT(*),
                MIN(timestamp),
                MAX(timestamp),
                COALESCE(SUM(aux1 = ? AND aux2 = ?), 0),
                COALESCE(SUM(aux1 != ? AND aux2 = ?), 0),
                COALESCE(SUM(aux1 != ? AND aux2 != ?), 0)
            FROM pixels
            """,
            (SENTINEL,) * 6,
        )
        try:
            color_rows: List[Tuple[int, int]] = self._conn.execute(
                "SELECT color, COUNT(*) AS n FROM pixels GROUP BY color ORDER BY n DESC, color LIMIT ?",
                (top_colors,),
            ).fetchall()
        except sqlite3.Error as ex:
            raise StoreQueryFailure(str(ex)) from ex
        return StoreStats(
            events=row[0],
            first_timestamp=row[1],
            last_timestamp=row[2],
            points=row[3],
            circles=row[4],
            rectangles=row[5],
            colors={color: n for color, n in color_rows},
        )
