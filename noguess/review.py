"""
Replay review: checks that a sequence of reveals never required a guess.

A move passes review when it is the board's origin (the opening click) or
when the verifier proves the cell safe from what was visible just before it.
"""

import dataclasses
import logging
import random
from typing import Generator, Iterable, Optional

from .engine import Board
from .verifier import Verifier

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class ReviewResult:
    """
    Outcome of reviewing a reveal sequence.

    Attributes:
        guaranteed: True if every move was logically forced.
        moves_checked: Number of moves verified before review stopped.
        failed_move: Index of the first move that was a guess, if any.
    """

    guaranteed: bool
    moves_checked: int
    failed_move: Optional[int] = None


def load_verifier(board: Board, rng: Optional[random.Random] = None) -> Verifier:
    """Create a verifier for the board's current epoch and load what is visible."""
    revealed, background = board.snapshot()
    return Verifier(board.rows, board.cols, rng=rng).update(revealed, background)


def review_reveals(
    board: Board,
    moves: Iterable[int],
    *,
    rng: Optional[random.Random] = None,
) -> Generator[None, None, ReviewResult]:
    """
    Replay reveals on board, verifying each one before it is applied.

    The generator yields whenever the verifier suspends, so a game loop can
    step it alongside rendering. The board is mutated as moves are replayed.

    Args:
        board: The board in its state before the first move.
        moves: Cell indices in the order they were revealed.
        rng: Random source for the verifier's search order.

    Returns:
        The ReviewResult, as the generator's return value.
    """
    verifier = load_verifier(board, rng=rng)
    checked = 0

    for i in moves:
        if board.is_revealed(i):
            # Already opened by an earlier flood fill.
            continue
        checked += 1
        guaranteed = not board.is_mine(i) and (
            board.is_origin(i) or (yield from verifier.verify(i))
        )
        if not guaranteed:
            logger.debug("review: move %d at cell %d was a guess", checked, i)
            return ReviewResult(guaranteed=False, moves_checked=checked, failed_move=i)

        _, payload = board.reveal(i)
        verifier.update(payload.get("revealed_cells", []))

    return ReviewResult(guaranteed=True, moves_checked=checked)


def review_reveals_sync(
    board: Board,
    moves: Iterable[int],
    *,
    rng: Optional[random.Random] = None,
) -> ReviewResult:
    """Run ``review_reveals`` to completion without interleaving."""
    review = review_reveals(board, moves, rng=rng)
    while True:
        try:
            next(review)
        except StopIteration as stop:
            return stop.value
