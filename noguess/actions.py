"""Undo log entries for the verifier's speculative edits."""

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from .verifier import Verifier


class SetCell:
    """Reverts a cell byte to the value it held before a solve."""

    __slots__ = ("i", "previous")

    def __init__(self, i: int, previous: int) -> None:
        self.i = i
        self.previous = previous

    def undo(self, verifier: "Verifier") -> None:
        # Cells that keep getting rolled back are tried later in the search.
        verifier.failures[self.i] += 1
        verifier.grid[self.i] = self.previous

    def __repr__(self) -> str:
        return f"SetCell({self.i}, {self.previous:#010b})"


class FilterCombinations:
    """Reinstates a clue's combination set as it was before a filter."""

    __slots__ = ("i", "previous")

    def __init__(self, i: int, previous: np.ndarray) -> None:
        self.i = i
        self.previous = previous

    def undo(self, verifier: "Verifier") -> None:
        verifier.combinations[self.i] = self.previous

    def __repr__(self) -> str:
        return f"FilterCombinations({self.i}, {len(self.previous)} combinations)"
