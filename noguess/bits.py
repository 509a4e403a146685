"""
Bit and geometry helpers for 8-neighbor masks.

A clue cell sees its eight neighbors through a "clock" encoding: bit 0 is the
top-left neighbor and positions advance clockwise, so bit k + 2 is bit k
turned a quarter clockwise around the clue and bit k + 4 is its opposite.
"""

import enum
from typing import Dict, Tuple

BYTE_SET = 0b1111_1111

CLOCK_OFFSETS: Tuple[Tuple[int, int], ...] = (
    (-1, -1),
    (-1, 0),
    (-1, 1),
    (0, 1),
    (1, 1),
    (1, 0),
    (1, -1),
    (0, -1),
)

_OFFSET_BITS: Dict[Tuple[int, int], int] = {
    offset: b for b, offset in enumerate(CLOCK_OFFSETS)
}


def offset_to_bit(dr: int, dc: int) -> int:
    """
    Map a neighbor's relative (row, col) offset to its clock bit.

    Raises:
        ValueError: If (dr, dc) is not at Chebyshev distance 1.
    """
    bit = _OFFSET_BITS.get((dr, dc))
    if bit is None:
        raise ValueError(f"({dr}, {dc}) is not a neighbor offset.")
    return bit


def bit_to_offset(b: int) -> Tuple[int, int]:
    """Map a clock bit (taken modulo 8) to its relative (row, col) offset."""
    return CLOCK_OFFSETS[b & 7]


def rotate_byte_right(x: int, n: int) -> int:
    n &= 7
    return ((x >> n) | (x << (8 - n))) & BYTE_SET


def rotate_byte_left(x: int, n: int) -> int:
    n &= 7
    return ((x << n) | (x >> (8 - n))) & BYTE_SET


def reverse_byte(b: int) -> int:
    """Reverse the bit order of a byte (bit k moves to bit 7 - k)."""
    b = ((b >> 1) & 0x55) | ((b & 0x55) << 1)
    b = ((b >> 2) & 0x33) | ((b & 0x33) << 2)
    return ((b >> 4) & 0x0F) | ((b & 0x0F) << 4)


def mirror_byte(b: int) -> int:
    """Reflect a neighbor mask left to right (column offsets change sign)."""
    return rotate_byte_left(reverse_byte(b), 3)


def popcount(b: int) -> int:
    return bin(b).count("1")


def chebyshev(dr: int, dc: int) -> int:
    return max(abs(dr), abs(dc))


def rotate_offset(dr: int, dc: int, quarter_turns: int) -> Tuple[int, int]:
    """Turn an offset clockwise by a number of quarter turns."""
    for _ in range(quarter_turns & 3):
        dr, dc = dc, -dr
    return dr, dc


def mirror_offset(dr: int, dc: int) -> Tuple[int, int]:
    return dr, -dc


class DirectionClass(enum.Enum):
    """
    Geometric case of one clue cell relative to another.

    Each value is the canonical offset of the class. Every offset at Chebyshev
    distance 1 or 2 is a canonical offset, optionally mirrored, turned
    clockwise by some number of quarter turns.
    """

    EDGE = (-1, 0)
    CORNER = (-1, 1)
    FAR_EDGE = (-2, 0)
    KNIGHT = (-2, 1)
    FAR_CORNER = (-2, 2)

    @property
    def distance(self) -> int:
        return chebyshev(*self.value)


def _build_direction_classes() -> Dict[Tuple[int, int], Tuple[DirectionClass, int, bool]]:
    classes: Dict[Tuple[int, int], Tuple[DirectionClass, int, bool]] = {}
    for cls in DirectionClass:
        for mirrored in (False, True):
            base = mirror_offset(*cls.value) if mirrored else cls.value
            for turns in range(4):
                # Prefer the unmirrored form with the fewest turns.
                classes.setdefault(rotate_offset(*base, turns), (cls, turns, mirrored))
    return classes


_DIRECTION_CLASSES = _build_direction_classes()


def direction_class(dr: int, dc: int) -> Tuple[DirectionClass, int, bool]:
    """
    Classify the offset between two clue cells at Chebyshev distance 1 or 2.

    Returns:
        Tuple of (class, quarter_turns, mirrored) such that the class's
        canonical offset, mirrored when requested and then turned clockwise
        by quarter_turns, equals (dr, dc).

    Raises:
        ValueError: If the cells are not 1 or 2 apart.
    """
    found = _DIRECTION_CLASSES.get((dr, dc))
    if found is None:
        raise ValueError(f"({dr}, {dc}) is not at Chebyshev distance 1 or 2.")
    return found
