"""Cell byte layout and the canonical combination table."""

from typing import Tuple

import numpy as np

# Cell byte:
#   bits 0-3  numeric value (0-8 clue, MINE_VALUE for a revealed mine)
#   bit  4    REVEALED
#   bit  5    SOLVED      (deduced by the verifier)
#   bit  6    MINE
#   bit  7    BACKGROUND
EMPTY = 0b0000_0000
NUMBER = 0b0000_1111
REVEALED = 0b0001_0000
SOLVED = 0b0010_0000
MINE = 0b0100_0000
BACKGROUND = 0b1000_0000

MINE_VALUE = 9

# Search tuning defaults
REVERSE_CHANCE = 0.3
DECAY_INTERVAL = 100
FAILURE_DECAY = 0.1

_ALL_BYTES = np.arange(256, dtype=np.uint8)
POPCOUNTS = np.unpackbits(_ALL_BYTES[:, np.newaxis], axis=1).sum(axis=1)


def _build_combinations() -> Tuple[np.ndarray, ...]:
    table = []
    for digit in range(9):
        masks = _ALL_BYTES[POPCOUNTS == digit].copy()
        masks.flags.writeable = False
        table.append(masks)
    return tuple(table)


# COMBINATIONS[d] holds every 8-bit mine mask with exactly d mines.
COMBINATIONS: Tuple[np.ndarray, ...] = _build_combinations()
