"""
CSV record parsing for the placement archives.

Columns: timestamp, user_id, coordinate, pixel_color

The coordinate column has three shapes:
    "x,y"                   plain placement
    "{X: cx, Y: cy, R: r}"  moderator circle
    "x1,y1,x2,y2"           moderator rectangle
"""

import re
from typing import Dict, Sequence, Tuple

from ..core.errors import MalformedEvent
from ..core.events import INT32_MAX, INT32_MIN, SENTINEL, PlacementEvent
from ..core.timestamps import parse_timestamp

_CIRCLE_RE = re.compile(
    r"^\{\s*X:\s*(-?\d+)\s*,\s*Y:\s*(-?\d+)\s*,\s*R:\s*(-?\d+)\s*\}$"
)
_COLOR_RE = re.compile(r"^#([0-9A-Fa-f]{6})$")


class ActorRegistry:
    """
    Interns opaque actor strings to small integers.

    Ids start at 1 and follow first-seen order.
    """

    def __init__(self) -> None:
        self._ids: Dict[str, int] = {}

    def intern(self, actor: str) -> int:
        actor_id = self._ids.get(actor)
        if actor_id is None:
            actor_id = len(self._ids) + 1
            self._ids[actor] = actor_id
        return actor_id

    def __len__(self) -> int:
        return len(self._ids)


def _int32(part: str, text: str) -> int:
    value = int(part)
    if not INT32_MIN <= value <= INT32_MAX:
        raise MalformedEvent(f"coordinate out of 32-bit range: {text!r}")
    return value


def parse_coordinate(text: str) -> Tuple[int, int, int, int]:
    """
    Parse a coordinate cell into (x, y, aux1, aux2).

    Raises:
        MalformedEvent: If the cell matches none of the three shapes
    """
    raw = text.strip()
    m = _CIRCLE_RE.match(raw)
    if m:
        x, y, r = (_int32(g, text) for g in m.groups())
        return x, y, r, SENTINEL

    parts = raw.split(",")
    try:
        values = [_int32(p, text) for p in parts]
    except ValueError as ex:
        raise MalformedEvent(f"bad coordinate: {text!r}") from ex
    if len(values) == 2:
        return values[0], values[1], SENTINEL, SENTINEL
    if len(values) == 4:
        return values[0], values[1], values[2], values[3]
    raise MalformedEvent(f"bad coordinate: {text!r}")


def parse_color(text: str) -> int:
    """Parse "#RRGGBB" into packed 0xRRGGBB."""
    m = _COLOR_RE.match(text.strip())
    if not m:
        raise MalformedEvent(f"bad color: {text!r}")
    return int(m.group(1), 16)


def parse_record(row: Sequence[str], actors: ActorRegistry) -> PlacementEvent:
    """
    Parse one CSV row.

    Raises:
        MalformedEvent: On a short row or any unparseable field
    """
    if len(row) < 4:
        raise MalformedEvent(f"expected 4 columns, got {len(row)}")
    try:
        timestamp = parse_timestamp(row[0])
    except ValueError as ex:
        raise MalformedEvent(str(ex)) from ex
    x, y, aux1, aux2 = parse_coordinate(row[2])
    return PlacementEvent(
        timestamp=timestamp,
        actor_id=actors.intern(row[1]),
        x=x,
        y=y,
        aux1=aux1,
        aux2=aux2,
        color=parse_color(row[3]),
    )
