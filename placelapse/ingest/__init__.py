"""
Ingestion of the raw placement archives.
"""

from .archive import ARCHIVE_SUFFIXES, find_archives, ingest, read_archive
from .records import ActorRegistry, parse_color, parse_coordinate, parse_record

__all__ = [
    "ARCHIVE_SUFFIXES",
    "find_archives",
    "ingest",
    "read_archive",
    "ActorRegistry",
    "parse_color",
    "parse_coordinate",
    "parse_record",
]
