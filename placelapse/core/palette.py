"""
Colour palette of the 2023 canvas.

Metadata only: rendering uses the packed colour of each event as-is.
"""

from enum import IntEnum
from typing import Optional


class Color(IntEnum):
    BURGUNDY = 0x6D001A
    DARK_RED = 0xBE0039
    RED = 0xFF4500
    ORANGE = 0xFFA800
    YELLOW = 0xFFD635
    PALE_YELLOW = 0xFFF8B8
    DARK_GREEN = 0x00A368
    GREEN = 0x00CC78
    LIGHT_GREEN = 0x7EED56
    DARK_TEAL = 0x00756F
    TEAL = 0x009EAA
    LIGHT_TEAL = 0x00CCC0
    DARK_BLUE = 0x2450A4
    BLUE = 0x3690EA
    LIGHT_BLUE = 0x51E9F4
    INDIGO = 0x493AC1
    PERIWINKLE = 0x6A5CFF
    LAVENDER = 0x94B3FF
    DARK_PURPLE = 0x811E9F
    PURPLE = 0xB44AC0
    PALE_PURPLE = 0xE4ABFF
    MAGENTA = 0xDE107F
    PINK = 0xFF9C81
    LIGHT_PINK = 0xFF99AA
    DARK_BROWN = 0x6D482F
    BROWN = 0x9C6926
    BEIGE = 0xFFB470
    BLACK = 0x000000
    DARK_GRAY = 0x515252
    GRAY = 0x898D90
    LIGHT_GRAY = 0xD4D7D9
    WHITE = 0xFFFFFF


_ORDER = list(Color)


def color_id(rgb: int) -> int:
    """
    Palette index of a packed colour (top byte ignored).

    Raises:
        ValueError: If the colour is not in the palette
    """
    return _ORDER.index(Color(rgb & 0xFFFFFF))


def color_name(rgb: int) -> Optional[str]:
    try:
        return Color(rgb & 0xFFFFFF).name.lower()
    except ValueError:
        return None
