"""Ground-truth board with background cells, first-click safety and flood-fill reveals."""

import random
from collections import deque
from typing import Deque, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from .constants import MINE_VALUE
from .utils import get_neighborhoods, index_to_pair, pair_to_index


class Board:
    """
    A board the verifier can be loaded from.

    Cells are addressed by row-major index. Background cells are not part of
    the playable area: they never hold mines, are never revealed and count
    towards no clue.
    """

    def __init__(
        self,
        rows: int,
        cols: int,
        mines: Iterable[int],
        background: Iterable[int] = (),
        origin: Optional[int] = None,
    ) -> None:
        """
        Initialize a board from explicit mine positions.

        Args:
            rows: Board height, must be > 0.
            cols: Board width, must be > 0.
            mines: Indices of mine cells.
            background: Indices of cells outside the playable area.
            origin: Index of the designated first reveal, if any.

        Raises:
            ValueError: If dimensions are invalid, an index is off the board,
                or a mine or the origin sits on a background cell.
        """
        if rows <= 0 or cols <= 0:
            raise ValueError("rows and cols must be positive.")

        self.rows: int = rows
        self.cols: int = cols
        self.size: int = rows * cols
        self.mines: FrozenSet[int] = frozenset(mines)
        self.background: FrozenSet[int] = frozenset(background)

        for i in self.mines | self.background:
            if not 0 <= i < self.size:
                raise ValueError(f"Cell index {i} is outside the board.")
        if self.mines & self.background:
            raise ValueError("Mines cannot be placed on background cells.")
        if origin is not None and (origin in self.mines or origin in self.background):
            raise ValueError("The origin must be a playable safe cell.")

        self.origin: Optional[int] = origin
        self.revealed: List[bool] = [False] * self.size
        self.unrevealed_count: int = self.size - len(self.background) - len(self.mines)
        self.game_over: bool = False

        self._neighborhoods: Tuple[Tuple[int, ...], ...] = get_neighborhoods(rows, cols)
        self.values: List[int] = [0] * self.size
        self.get_adjacent_mine_counts()

    @classmethod
    def generate(
        cls,
        rows: int,
        cols: int,
        mines_count: int,
        origin: int,
        *,
        background: Iterable[int] = (),
        safe_neighborhood: bool = True,
        rng: Optional[random.Random] = None,
    ) -> "Board":
        """
        Place mines uniformly at random, keeping the first reveal safe.

        Args:
            rows: Board height.
            cols: Board width.
            mines_count: Number of mines to place, must be >= 0.
            origin: Index of the first reveal.
            background: Indices of cells outside the playable area.
            safe_neighborhood: If True, the origin's neighbors are kept
                mine-free as well, so the first reveal opens an area.
            rng: Random source; a fresh one is used when omitted.

        Raises:
            ValueError: If there is not enough room for the mines.
        """
        if mines_count < 0:
            raise ValueError("mines_count must be non-negative.")
        rng = rng if rng is not None else random.Random()
        background = frozenset(background)

        safe: Set[int] = {origin}
        if safe_neighborhood:
            safe.update(get_neighborhoods(rows, cols)[origin])

        eligible = [
            i for i in range(rows * cols) if i not in safe and i not in background
        ]
        if mines_count > len(eligible):
            raise ValueError("Cannot place that many mines outside the safe zone.")

        mines = rng.sample(eligible, mines_count)
        return cls(rows, cols, mines, background=background, origin=origin)

    def neighbors(self, i: int) -> Tuple[int, ...]:
        """Return the precomputed in-grid neighbors of cell i."""
        return self._neighborhoods[i]

    def get_adjacent_mine_counts(self) -> None:
        """Populate every cell with its clue (MINE_VALUE for mines)."""
        for i in range(self.size):
            if i in self.mines:
                self.values[i] = MINE_VALUE
                continue
            self.values[i] = sum(1 for j in self.neighbors(i) if j in self.mines)

    def flood_fill(self, i: int) -> List[Tuple[int, int]]:
        """
        Reveal a connected region starting at i using Minesweeper flood fill rules.

        Returns:
            A list of newly revealed cells as (index, value).
        """
        frontier: Deque[int] = deque([i])
        visited: Set[int] = {i}
        revealed_cells: List[Tuple[int, int]] = []

        while frontier:
            cell = frontier.popleft()
            if self.revealed[cell]:
                continue

            self.revealed[cell] = True
            self.unrevealed_count -= 1
            revealed_cells.append((cell, self.values[cell]))

            if self.values[cell] == 0:
                for j in self.neighbors(cell):
                    if j in visited or self.revealed[j] or j in self.background:
                        continue
                    visited.add(j)
                    frontier.append(j)

        return revealed_cells

    def reveal(self, i: int) -> Tuple[int, Dict[str, object]]:
        """
        Reveal a single cell and return a status code plus payload.

        Returns:
            Tuple of (status, payload) where status is:
                - -1: Mine hit (loss)
                - 0: Non-terminal reveal (or no-op)
                - 1: Win (all safe cells revealed)

            Payload contains:
                - For status 0 or 1: {"revealed_cells": List[(index, value)]}
                - For status -1: {"revealed_cells": [(i, MINE_VALUE)], "all_mines": FrozenSet}

        Raises:
            ValueError: If i is off the board or a background cell.
        """
        if not 0 <= i < self.size:
            raise ValueError("Cell index is outside the board.")
        if i in self.background:
            raise ValueError("Background cells cannot be revealed.")

        if self.game_over or self.revealed[i]:
            return 0, {}

        if i in self.mines:
            self.revealed[i] = True
            self.game_over = True
            return -1, {"revealed_cells": [(i, MINE_VALUE)], "all_mines": self.mines}

        revealed_cells = self.flood_fill(i)

        if self.unrevealed_count == 0:
            self.game_over = True
            return 1, {"revealed_cells": revealed_cells}

        return 0, {"revealed_cells": revealed_cells}

    def snapshot(self) -> Tuple[List[Tuple[int, int]], List[int]]:
        """
        Return what a fresh verifier should be loaded with.

        Returns:
            Tuple of (revealed cells as (index, value), background indices).
        """
        revealed = [(i, self.values[i]) for i in range(self.size) if self.revealed[i]]
        return revealed, sorted(self.background)

    def is_background(self, i: int) -> bool:
        return i in self.background

    def is_mine(self, i: int) -> bool:
        return i in self.mines

    def is_revealed(self, i: int) -> bool:
        return self.revealed[i]

    def is_covered(self, i: int) -> bool:
        return not (self.revealed[i] or i in self.background)

    def is_origin(self, i: int) -> bool:
        return i == self.origin

    def value(self, i: int) -> int:
        return self.values[i]

    def pair_to_index(self, r: int, c: int) -> int:
        return pair_to_index(self.cols, r, c)

    def index_to_pair(self, i: int) -> Tuple[int, int]:
        return index_to_pair(self.cols, i)

    # -------------------------------------------------------------------------
    # Display methods
    # -------------------------------------------------------------------------

    _ANSI_RESET = "\033[0m"
    _ANSI_COORD = "\033[96m"
    _ANSI_MINE = "\033[91m"

    def format_board(self, reveal_all: bool = False, color: bool = True) -> str:
        """
        Render the board as a multi-line string for terminal display.

        Args:
            reveal_all: If True, show mines and all underlying values.
            color: If True, wrap coordinates and mines in ANSI colors.

        Returns:
            A formatted multi-line string with coordinate labels and the board grid.
        """

        def paint(s: str, code: str) -> str:
            return f"{code}{s}{self._ANSI_RESET}" if color else s

        def cell_str(i: int) -> str:
            if i in self.background:
                return " "
            if reveal_all or self.revealed[i]:
                if i in self.mines:
                    return paint("M", self._ANSI_MINE)
                return str(self.values[i])
            return "."

        header_cells = " ".join(f"{c:2d}" for c in range(self.cols))
        out = [paint("   ", self._ANSI_COORD) + paint(header_cells, self._ANSI_COORD)]
        out.append(paint("   " + "-" * (3 * self.cols - 1), self._ANSI_COORD))

        for r in range(self.rows):
            row_cells = " ".join(
                f" {cell_str(self.pair_to_index(r, c))}" for c in range(self.cols)
            )
            out.append(paint(f"{r:2d} ", self._ANSI_COORD) + paint("|", self._ANSI_COORD) + row_cells)

        return "\n".join(out)
