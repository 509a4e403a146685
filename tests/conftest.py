import random
from typing import Callable, List, Optional, Sequence

import matplotlib

matplotlib.use("Agg")

import pytest

from noguess import MINE_VALUE, Verifier


def parse_rows(rows: Sequence[str]):
    """
    Read a board sketch: '.' covered, 'B' background, digit revealed clue,
    'X' revealed mine.
    """
    revealed = []
    background = []
    cols = len(rows[0])
    for r, line in enumerate(rows):
        assert len(line) == cols
        for c, ch in enumerate(line):
            i = r * cols + c
            if ch == "B":
                background.append(i)
            elif ch == "X":
                revealed.append((i, MINE_VALUE))
            elif ch.isdigit():
                revealed.append((i, int(ch)))
    return len(rows), cols, revealed, background


@pytest.fixture
def make_verifier() -> Callable[..., Verifier]:
    def build(rows: Sequence[str], seed: Optional[int] = 0, **kwargs) -> Verifier:
        n_rows, n_cols, revealed, background = parse_rows(rows)
        verifier = Verifier(n_rows, n_cols, rng=random.Random(seed), **kwargs)
        return verifier.update(revealed, background)

    return build


# Three clues in a cycle that pairwise consistency cannot crack:
#   t + a = 1, a + b = 1, s + t + b = 1  =>  t = b = 0, a = s = 1
CYCLE_ROWS: List[str] = [
    ".BBB",
    "B1.B",
    "B.B1",
    "BB1.",
]
CYCLE_S, CYCLE_T, CYCLE_B, CYCLE_A = 0, 6, 9, 15

# Two "1" clues against a wall; the far cell of the larger window is safe.
WALL_ROWS: List[str] = [
    "...",
    "11B",
]
