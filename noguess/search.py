"""
Cooperative existence search behind ``Verifier.verify``.

The search is a depth-first walk over mine/safe assignments of one active
region. Instead of recursing, it keeps its own stack of frames so the caller
decides when each level runs: every ``next()`` enters one search level and
then suspends, and the task finishes by raising ``StopIteration(result)``.
A game loop can therefore interleave verification with everything else, or
delegate to it with ``yield from``.
"""

import logging
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .verifier import Verifier

logger = logging.getLogger(__name__)


class SearchFrame:
    """One search level: the cell branched on, values left to try, and its restore point."""

    __slots__ = ("cell", "trials", "restore_point")

    def __init__(self, cell: int, trials: List[bool], restore_point: int) -> None:
        self.cell = cell
        self.trials = trials
        self.restore_point = restore_point


class VerificationTask:
    """
    Stepwise computation of "is the target cell guaranteed safe".

    The target is pinned as a mine and the search looks for any complete,
    consistent assignment of the region around it. Finding one means the
    cell could be a mine (result False); exhausting every branch, or a
    contradiction straight from the pin, means it is safe (result True).

    The task is finite and not restartable. On completion the verifier's
    grid and combination sets are back to where they were when the task
    started; only search statistics keep what was learned.
    """

    def __init__(self, verifier: "Verifier", target: int) -> None:
        self._verifier = verifier
        self.target: int = target
        self.steps: int = 0
        self.done: bool = False
        self._result: Optional[bool] = None
        self._started: bool = False
        self._base: int = 0
        self._covered: List[int] = []
        self._frames: List[SearchFrame] = []

    @property
    def result(self) -> bool:
        if not self.done:
            raise RuntimeError(f"verify({self.target}) has not finished yet.")
        return bool(self._result)

    def __iter__(self) -> "VerificationTask":
        return self

    def __next__(self) -> None:
        if self.step():
            raise StopIteration(self._result)
        return None

    def step(self) -> bool:
        """
        Advance to the next suspension point.

        Returns:
            True once the task has finished and ``result`` is available.
        """
        if self.done:
            return True
        if not self._started:
            self._started = True
            self._start()
        else:
            self._enter_level()

        if not self.done:
            self.steps += 1
            self._verifier.search_steps_count += 1
        return self.done

    def run(self) -> bool:
        """Drive the task to completion and return its result."""
        while not self.step():
            pass
        return self.result

    # -------------------------------------------------------------------------
    # Search body
    # -------------------------------------------------------------------------

    def _start(self) -> None:
        v = self._verifier
        i = self.target
        self._base = v.checkpoint()

        if v.is_mine(i):
            self._finish(False)
            return
        if v.is_safe(i):
            self._finish(True)
            return

        _, self._covered = v.gather_region(i)
        if not v.set_and_propagate(i, True):
            # A mine at i contradicts the clues outright.
            self._finish(True)
            return
        v.searches_count += 1

    def _enter_level(self) -> None:
        v = self._verifier
        cell = v.pick_candidate(self._covered)
        if cell is None:
            # Every cell of the region is solved and all clues agree.
            v.update_counts(self._covered)
            self._finish(False)
            return

        self._frames.append(SearchFrame(cell, v.trial_order(cell), v.checkpoint()))
        self._advance()

    def _advance(self) -> None:
        """Try values on the innermost frame until one propagates, backtracking as needed."""
        v = self._verifier
        while self._frames:
            frame = self._frames[-1]
            if frame.trials:
                is_mine = frame.trials.pop(0)
                v.attempts += 1
                if v.set_and_propagate(frame.cell, is_mine):
                    return
                v.failures[frame.cell] += 1
                v.restore(frame.restore_point)
                continue

            # Both values failed below this frame; the parent's current value fails too.
            self._frames.pop()
            if self._frames:
                parent = self._frames[-1]
                v.failures[parent.cell] += 1
                v.restore(parent.restore_point)

        self._finish(True)

    def _finish(self, result: bool) -> None:
        v = self._verifier
        v.restore(self._base)
        v.attempts = 0
        v.last_epoch = 0
        self._frames.clear()
        self._result = result
        self.done = True
        v._release(self)
        logger.debug("verify(%d) -> %s after %d steps", self.target, result, self.steps)
