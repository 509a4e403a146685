"""
Shared neighbor windows between two nearby clue cells, and the pair work queue.

Two clue cells at Chebyshev distance 1 or 2 see some of the same covered
cells. For each of the 24 possible offsets this module tabulates, once, where
those shared cells sit in each clue's clock frame and a 256-entry lookup that
maps a combination to its "shared pattern" (the mine bits it places on the
shared cells, packed in a common order). Two combinations of the two clues
can coexist only if their shared patterns are equal.

Only the five canonical windows (one per ``DirectionClass``) are derived from
raw geometry; every other window is the canonical one mirrored and rotated.
"""

import dataclasses
from collections import deque
from typing import Deque, Dict, Set, Tuple

import numpy as np

from .bits import (
    CLOCK_OFFSETS,
    DirectionClass,
    direction_class,
    mirror_byte,
    offset_to_bit,
    rotate_byte_left,
)

_ALL_BYTES = np.arange(256, dtype=np.uint8)


@dataclasses.dataclass(frozen=True, eq=False)
class PairWindow:
    """
    Geometry of the window shared by clue i and clue j = i + offset.

    Attributes:
        offset: (dr, dc) from i to j.
        direction: Geometric case of the offset.
        rotation: Clock rotation (in bits) applied to the canonical window.
        mirrored: Whether the canonical window was mirrored first.
        i_bits: Shared cells as clock bits in i's frame.
        j_bits: The same cells, in the same order, as clock bits in j's frame.
        i_mask: Byte mask of i_bits.
        j_mask: Byte mask of j_bits.
        i_signatures: Shared pattern of every byte read in i's frame.
        j_signatures: Shared pattern of every byte read in j's frame.
    """

    offset: Tuple[int, int]
    direction: DirectionClass
    rotation: int
    mirrored: bool
    i_bits: Tuple[int, ...]
    j_bits: Tuple[int, ...]
    i_mask: int
    j_mask: int
    i_signatures: np.ndarray
    j_signatures: np.ndarray

    @property
    def size(self) -> int:
        return len(self.i_bits)


def _canonical_bits(direction: DirectionClass) -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
    """Clock bits of the cells adjacent to both i and i + canonical offset."""
    dr, dc = direction.value
    i_bits = []
    j_bits = []
    for b, (orow, ocol) in enumerate(CLOCK_OFFSETS):
        rel = (orow - dr, ocol - dc)
        if rel in CLOCK_OFFSETS:
            i_bits.append(b)
            j_bits.append(offset_to_bit(*rel))
    return tuple(i_bits), tuple(j_bits)


def _transform_bit(b: int, rotation: int, mirrored: bool) -> int:
    x = 1 << b
    if mirrored:
        x = mirror_byte(x)
    return rotate_byte_left(x, rotation).bit_length() - 1


def _signatures(bits: Tuple[int, ...]) -> np.ndarray:
    sig = np.zeros(256, dtype=np.uint8)
    for k, b in enumerate(bits):
        sig |= ((_ALL_BYTES >> b) & 1) << k
    sig.flags.writeable = False
    return sig


def _mask(bits: Tuple[int, ...]) -> int:
    mask = 0
    for b in bits:
        mask |= 1 << b
    return mask


def _build_pair_windows() -> Dict[Tuple[int, int], PairWindow]:
    canonical = {d: _canonical_bits(d) for d in DirectionClass}
    windows: Dict[Tuple[int, int], PairWindow] = {}
    for dr in range(-2, 3):
        for dc in range(-2, 3):
            if dr == 0 and dc == 0:
                continue
            direction, turns, mirrored = direction_class(dr, dc)
            rotation = 2 * turns
            base_i, base_j = canonical[direction]
            i_bits = tuple(_transform_bit(b, rotation, mirrored) for b in base_i)
            j_bits = tuple(_transform_bit(b, rotation, mirrored) for b in base_j)
            windows[(dr, dc)] = PairWindow(
                offset=(dr, dc),
                direction=direction,
                rotation=rotation,
                mirrored=mirrored,
                i_bits=i_bits,
                j_bits=j_bits,
                i_mask=_mask(i_bits),
                j_mask=_mask(j_bits),
                i_signatures=_signatures(i_bits),
                j_signatures=_signatures(j_bits),
            )
    return windows


PAIR_WINDOWS: Dict[Tuple[int, int], PairWindow] = _build_pair_windows()


def pair_window(dr: int, dc: int) -> PairWindow:
    """
    Look up the shared window of two clue cells.

    Raises:
        ValueError: If the cells are not 1 or 2 apart.
    """
    window = PAIR_WINDOWS.get((dr, dc))
    if window is None:
        raise ValueError(f"({dr}, {dc}) is not at Chebyshev distance 1 or 2.")
    return window


class PairQueue:
    """FIFO of unordered clue pairs awaiting a consistency check, without duplicates."""

    def __init__(self) -> None:
        self._queue: Deque[Tuple[int, int]] = deque()
        self._pending: Set[Tuple[int, int]] = set()

    def enqueue(self, i: int, j: int) -> None:
        pair = (i, j) if i <= j else (j, i)
        if pair in self._pending:
            return
        self._queue.append(pair)
        self._pending.add(pair)

    def dequeue(self) -> Tuple[int, int]:
        pair = self._queue.popleft()
        self._pending.remove(pair)
        return pair

    def __len__(self) -> int:
        return len(self._queue)

    def __bool__(self) -> bool:
        return bool(self._queue)
