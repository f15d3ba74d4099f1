"""
Archive ingestion: gzip-compressed CSV files into an event store.

Files are decoded one after another and written in chunked transactions, so
memory use is bounded by the store's chunk size rather than the archive size.
"""

import csv
import gzip
import os
from typing import Callable, Iterable, Iterator, List, Optional

from ..core.errors import MalformedEvent
from ..core.events import PlacementEvent
from ..log.store import EventStore
from ..logging_config import get_logger
from .records import ActorRegistry, parse_record

logger = get_logger(__name__)

ARCHIVE_SUFFIXES = (".csv.gzip", ".csv.gz")


def find_archives(directory: str) -> List[str]:
    """Sorted archive paths in a directory."""
    names = sorted(n for n in os.listdir(directory) if n.endswith(ARCHIVE_SUFFIXES))
    return [os.path.join(directory, n) for n in names]


def read_archive(path: str, actors: ActorRegistry) -> Iterator[PlacementEvent]:
    """
    Stream events from one archive.

    The first row is a header and is skipped.

    Raises:
        MalformedEvent: With file and line number of the first bad row
    """
    with gzip.open(path, "rt", newline="", encoding="utf-8") as f:
        reader = csv.reader(f)
        header = next(reader, None)
        logger.debug("Archive opened", extra={"path": path, "header": header})
        for row in reader:
            if not row:
                continue
            try:
                yield parse_record(row, actors)
            except MalformedEvent as ex:
                raise MalformedEvent(f"{path}:{reader.line_num}: {ex}") from ex


def ingest(
    paths: Iterable[str],
    store: EventStore,
    on_progress: Optional[Callable[[int], None]] = None,
    actors: Optional[ActorRegistry] = None,
) -> int:
    """
    Ingest archives into a store.

    Args:
        paths: Archive files, in the order to ingest them
        store: Destination store
        on_progress: Called with the row count of each committed chunk
        actors: Registry shared across files (new one if None)

    Returns:
        Number of events written
    """
    actors = actors or ActorRegistry()
    total = 0
    for index, path in enumerate(paths):
        logger.info("Ingesting archive", extra={"path": path, "file_index": index})
        written = store.append_many(read_archive(path, actors), on_chunk=on_progress)
        total += written
        logger.info(
            "Archive ingested",
            extra={"path": path, "events": written, "actors": len(actors)},
        )
    return total
