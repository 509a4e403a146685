"""No-guess verifier: decides whether revealing a covered cell is logically forced."""

import logging
import random
from collections import deque
from typing import (
    Deque,
    Iterable,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
    Union,
)

import numpy as np

from .actions import FilterCombinations, SetCell
from .bits import BYTE_SET, bit_to_offset, offset_to_bit
from .constants import (
    BACKGROUND,
    COMBINATIONS,
    DECAY_INTERVAL,
    EMPTY,
    FAILURE_DECAY,
    MINE,
    MINE_VALUE,
    NUMBER,
    REVEALED,
    REVERSE_CHANCE,
    SOLVED,
)
from .pairs import PAIR_WINDOWS, PairQueue, pair_window
from .search import VerificationTask
from .utils import get_neighborhoods, index_to_pair, pair_to_index

logger = logging.getLogger(__name__)

UndoEntry = Union[SetCell, FilterCombinations]


class Verifier:
    """
    Constraint engine behind no-guess replay verification.

    The verifier mirrors one board epoch. The board layer feeds it newly
    revealed cells through ``update``; ``verify`` then answers whether a
    covered cell is safe in every mine placement that agrees with the visible
    clues.

    Working memory:
    - grid: one byte per cell (value, REVEALED, SOLVED, MINE, BACKGROUND)
    - combinations: per clue, the mine masks over its 8 neighbors still possible
    - undo_log: reversible edits; speculative work is rolled back through it
    - mine_counts / safe_counts / failures: search-order statistics only
    """

    def __init__(
        self,
        rows: int,
        cols: int,
        *,
        rng: Optional[random.Random] = None,
        reverse_chance: float = REVERSE_CHANCE,
        decay_interval: int = DECAY_INTERVAL,
        failure_decay: float = FAILURE_DECAY,
    ) -> None:
        """
        Initialize an empty verifier for a rows x cols board.

        Args:
            rows: Board height, must be > 0.
            cols: Board width, must be > 0.
            rng: Source of search-order jitter. Results never depend on it,
                only the amount of work does.
            reverse_chance: Probability of flipping a cell's trial order.
            decay_interval: Number of search attempts between failure decays.
            failure_decay: Factor applied to every failure weight on decay.

        Raises:
            ValueError: If a dimension or tuning parameter is out of range.
        """
        if rows <= 0 or cols <= 0:
            raise ValueError("rows and cols must be positive.")
        if not 0.0 <= reverse_chance <= 1.0:
            raise ValueError("reverse_chance must be within [0, 1].")
        if decay_interval <= 0:
            raise ValueError("decay_interval must be positive.")
        if not 0.0 < failure_decay <= 1.0:
            raise ValueError("failure_decay must be within (0, 1].")

        size = rows * cols
        self.rows: int = rows
        self.cols: int = cols
        self.size: int = size
        self.rng: random.Random = rng if rng is not None else random.Random()
        self.reverse_chance: float = reverse_chance
        self.decay_interval: int = decay_interval
        self.failure_decay: float = failure_decay

        self.grid: np.ndarray = np.zeros(size, dtype=np.uint8)
        self.combinations: List[np.ndarray] = [COMBINATIONS[0]] * size
        self.undo_log: List[UndoEntry] = []

        self.mine_counts: np.ndarray = np.zeros(size, dtype=np.uint16)
        self.safe_counts: np.ndarray = np.zeros(size, dtype=np.uint16)
        self.failures: np.ndarray = np.ones(size, dtype=np.float32)
        self.attempts: int = 0
        self.last_epoch: int = 0

        self._neighborhoods: Tuple[Tuple[int, ...], ...] = get_neighborhoods(rows, cols)
        self._task: Optional[VerificationTask] = None

        # Metrics / counters (for analysis)
        self.updates_count: int = 0
        self.verifications_count: int = 0
        self.searches_count: int = 0
        self.search_steps_count: int = 0
        self.pair_prunings_count: int = 0

    # -------------------------------------------------------------------------
    # Public interface
    # -------------------------------------------------------------------------

    def update(
        self,
        revealed: Iterable[Tuple[int, int]],
        background: Iterable[int] = (),
    ) -> "Verifier":
        """
        Absorb newly revealed cells and propagate every deduction they allow.

        Args:
            revealed: (index, value) for every cell revealed since the last
                call; value is the clue 0-8 or MINE_VALUE for a revealed mine.
            background: Indices of cells that are not part of the board.

        Returns:
            The verifier itself, so a fresh instance can be built and loaded
            in one expression.

        Raises:
            ValueError: If an index or value is invalid, or if the clues admit
                no mine placement at all. The verifier is unusable afterwards.
            RuntimeError: If a verification is still in progress.
        """
        self._ensure_idle("update")
        revealed = list(revealed)

        for i in background:
            self._check_index(i)
            self.grid[i] = BACKGROUND

        for i, value in revealed:
            self._check_index(i)
            if value == MINE_VALUE:
                self.grid[i] = MINE_VALUE | REVEALED | SOLVED | MINE
            elif 0 <= value <= 8:
                self.grid[i] = value | REVEALED
            else:
                raise ValueError(f"Invalid value {value} for cell {i}.")
            self.mine_counts[i] = 0
            self.safe_counts[i] = 0
            self.failures[i] = 1

        visited_covered: Set[int] = set()
        affected: Set[int] = set()
        for i, _ in revealed:
            if self.is_clue(i):
                affected.add(i)
            for j in self.neighborhood(i):
                if self.is_clue(j):
                    affected.add(j)
                if not self.is_covered(j) or j in visited_covered:
                    continue
                visited_covered.add(j)
                for k in self.neighborhood(j):
                    if self.is_clue(k):
                        affected.add(k)

        for i in affected:
            covered = 0
            safe = 0
            mines = 0
            for j in self.neighborhood(i):
                mask = 1 << self.neighbor_to_bit(i, j)
                if self.is_covered(j):
                    covered |= mask
                if self.is_safe(j):
                    safe |= mask
                if self.is_mine(j):
                    mines |= mask
            # Mines may only sit on covered cells or on already known mines.
            excluded = ~(covered | mines) & BYTE_SET
            table = COMBINATIONS[self.value(i)]
            keep = ((table & excluded) == 0) & ((table & safe) == 0) & ((~table & mines) == 0)
            self.combinations[i] = table[keep]
            if len(self.combinations[i]) == 0:
                raise ValueError(f"No mine placement satisfies the clue at cell {i}.")

        solved = [j for i in affected for j in self.just_solved(i)]
        consistent, visited = self.propagate_singles(solved)
        if not (consistent and self.propagate_pairs(affected | visited)):
            raise ValueError("Revealed clues contradict each other.")

        # Deductions from ground truth are permanent.
        self.undo_log.clear()
        self.updates_count += 1
        logger.debug(
            "update: %d revealed, %d clues refreshed, %d cells solved",
            len(revealed),
            len(affected),
            int(np.count_nonzero(self.grid & SOLVED)),
        )
        return self

    def verify(self, i: int) -> VerificationTask:
        """
        Start checking whether covered cell i is guaranteed safe.

        The returned task is stepped by the caller (``next``, ``step`` or
        ``yield from``) and ends with True iff no placement consistent with
        the clues puts a mine on i. It must be driven to completion before
        the verifier is used again.

        Raises:
            ValueError: If i is outside the grid.
            RuntimeError: If another verification is still in progress.
        """
        self._check_index(i)
        self._ensure_idle("verify")
        self.verifications_count += 1
        task = VerificationTask(self, i)
        self._task = task
        return task

    def is_guaranteed_safe(self, i: int) -> bool:
        """Run ``verify(i)`` to completion and return its result."""
        return self.verify(i).run()

    def dump(self) -> List[List[str]]:
        """
        Return the verifier's knowledge as a grid of single characters.

        'B' background, a digit for a revealed clue, 'M' for a known mine,
        'S' for a deduced safe cell, '.' for unknown.
        """
        matrix: List[List[str]] = []
        for r in range(self.rows):
            row: List[str] = []
            for c in range(self.cols):
                i = self.pair_to_index(r, c)
                if self.is_background(i):
                    row.append("B")
                elif self.is_mine(i):
                    row.append("M")
                elif self.is_revealed(i):
                    row.append(str(self.value(i)))
                elif self.is_safe(i):
                    row.append("S")
                else:
                    row.append(".")
            matrix.append(row)
        return matrix

    to_matrix = dump

    # -------------------------------------------------------------------------
    # Constraint propagation
    # -------------------------------------------------------------------------

    def propagate_singles(self, solved: Iterable[int]) -> Tuple[bool, Set[int]]:
        """
        Push newly solved cells through the clues around them, to a fixed point.

        Every active clue next to a solved cell drops the combinations that
        disagree with its solved neighbors; if that narrows it, the neighbor
        bits it now agrees on are solved in turn.

        Returns:
            Tuple of (consistent, visited clues). consistent is False as soon
            as some clue runs out of combinations.
        """
        pending: List[int] = list(solved)
        visited: Set[int] = set()
        while pending:
            clues: Set[int] = set()
            while pending:
                clues.update(self.active_neighbors(pending.pop()))

            for i in clues:
                visited.add(i)
                safe = 0
                mines = 0
                for j in self.neighborhood(i):
                    if not (self.is_covered(j) and self.is_solved(j)):
                        continue
                    mask = 1 << self.neighbor_to_bit(i, j)
                    if self.is_mine(j):
                        mines |= mask
                    else:
                        safe |= mask

                combos = self.combinations[i]
                before = len(combos)
                keep = ((combos & safe) == 0) & ((~combos & mines) == 0)
                if not self.filter_combinations(i, keep):
                    return False, visited
                if len(self.combinations[i]) != before:
                    pending.extend(self.just_solved(i))

        return True, visited

    def just_solved(self, i: int) -> List[int]:
        """Solve every unknown neighbor of clue i its combinations agree on."""
        mines, safe = self.combinations_overlap(i)
        if not (mines or safe):
            return []

        solved: List[int] = []
        for b in range(8):
            is_mine = (mines >> b) & 1
            if not (is_mine or (safe >> b) & 1):
                continue
            j = self.bit_to_neighbor(b, i)
            solved.append(j)
            self.set_cell(j, bool(is_mine))
        return solved

    def combinations_overlap(self, i: int) -> Tuple[int, int]:
        """
        Return (mines, safe) masks over clue i's unknown neighbors.

        A bit is in mines when every surviving combination has a mine there,
        and in safe when none does.
        """
        combos = self.combinations[i]
        if len(combos) == 0:
            return 0, 0

        unsolved = 0
        for j in self.neighborhood(i):
            if self.is_empty(j):
                unsolved |= 1 << self.neighbor_to_bit(i, j)

        mines = unsolved & int(np.bitwise_and.reduce(combos))
        safe = unsolved & ~int(np.bitwise_or.reduce(combos)) & BYTE_SET
        return mines, safe

    # -------------------------------------------------------------------------
    # Pairwise consistency
    # -------------------------------------------------------------------------

    def propagate_pairs(self, seeds: Iterable[int]) -> bool:
        """
        Make every pair of overlapping clues reachable from seeds arc-consistent.

        Pruning a pair re-runs single propagation from the cells it solved and
        re-enqueues every pair touching a clue whose state changed.

        Returns:
            False if a contradiction was found, True at the fixed point.
        """
        pairs = PairQueue()
        for i in seeds:
            if self.is_solved(i):
                continue
            for j in self.nearby_clues_with_overlap(i):
                pairs.enqueue(i, j)

        while pairs:
            i, j = pairs.dequeue()
            if self.is_solved(i) or self.is_solved(j):
                continue
            li = len(self.combinations[i])
            lj = len(self.combinations[j])
            if not self.make_pair_consistent(i, j):
                return False
            if li == len(self.combinations[i]) and lj == len(self.combinations[j]):
                continue

            self.pair_prunings_count += 1
            consistent, visited = self.propagate_singles(
                self.just_solved(i) + self.just_solved(j)
            )
            if not consistent:
                return False
            for v in visited:
                if self.is_solved(v):
                    continue
                for u in self.nearby_clues_with_overlap(v):
                    pairs.enqueue(v, u)
            for k in self.nearby_clues_with_overlap(i):
                if k != j:
                    pairs.enqueue(i, k)
            for k in self.nearby_clues_with_overlap(j):
                if k != i:
                    pairs.enqueue(j, k)

        return True

    def make_pair_consistent(self, i: int, j: int) -> bool:
        """
        Drop the combinations of clues i and j that the other clue cannot match.

        Both sides keep exactly the shared patterns they have in common, which
        leaves the pair arc-consistent in a single pass.

        Returns:
            False if either side ran out of combinations.
        """
        window = pair_window(*self.neighbor_offset(i, j))
        sig_i = window.i_signatures[self.combinations[i]]
        sig_j = window.j_signatures[self.combinations[j]]
        shared = np.intersect1d(sig_i, sig_j)
        return self.filter_combinations(i, np.isin(sig_i, shared)) and self.filter_combinations(
            j, np.isin(sig_j, shared)
        )

    def nearby_clues_with_overlap(self, i: int) -> List[int]:
        """List unsolved clues within distance 2 that share an active neighbor with i."""
        active = self.active_neighbors_byte(i)
        if not active:
            return []

        ri, ci = self.index_to_pair(i)
        clues: List[int] = []
        for r in range(max(ri - 2, 0), min(ri + 2, self.rows - 1) + 1):
            for c in range(max(ci - 2, 0), min(ci + 2, self.cols - 1) + 1):
                if r == ri and c == ci:
                    continue
                j = self.pair_to_index(r, c)
                if not self.is_clue(j) or self.is_solved(j):
                    continue
                if active & PAIR_WINDOWS[(r - ri, c - ci)].i_mask:
                    clues.append(j)
        return clues

    # -------------------------------------------------------------------------
    # Search primitives (driven by VerificationTask)
    # -------------------------------------------------------------------------

    def set_and_propagate(self, i: int, is_mine: bool) -> bool:
        """Tentatively solve cell i and propagate; False on contradiction."""
        self.set_cell(i, is_mine)
        consistent, visited = self.propagate_singles([i])
        return consistent and self.propagate_pairs(visited)

    def pick_candidate(self, covered: Sequence[int]) -> Optional[int]:
        """
        Choose the next unsolved cell to branch on, or None if all are solved.

        Cells whose past outcomes were one-sided score high, scaled by a
        failure weight that decays every ``decay_interval`` attempts.
        """
        suspect: Optional[int] = None
        best_score = -1.0
        should_decay = self.attempts >= self.last_epoch + self.decay_interval
        if should_decay:
            self.last_epoch = self.attempts

        for j in covered:
            if self.is_solved(j):
                continue
            if should_decay:
                self.failures[j] *= self.failure_decay
            safe_count = int(self.safe_counts[j])
            mine_count = int(self.mine_counts[j])
            total = safe_count + mine_count
            restrictedness = max(safe_count, mine_count) / total if total else 1.0
            score = restrictedness * float(self.failures[j])
            if score <= best_score:
                continue
            suspect = j
            best_score = score
        return suspect

    def trial_order(self, i: int) -> List[bool]:
        """Return the is_mine values to try for cell i, in order."""
        safe_count = int(self.safe_counts[i])
        total = safe_count + int(self.mine_counts[i])
        safe_ratio = safe_count / total if total else self.rng.random()
        order = [False, True] if 0.5 <= safe_ratio < 1.0 else [True, False]
        if self.rng.random() < self.reverse_chance:
            order.reverse()
        return order

    def update_counts(self, covered: Iterable[int]) -> None:
        """Record the outcome of a consistent assignment for search ordering."""
        for i in covered:
            if self.is_mine(i):
                self.mine_counts[i] += 1
            else:
                self.safe_counts[i] += 1

    def checkpoint(self) -> int:
        return len(self.undo_log)

    def restore(self, mark: int) -> None:
        """
        Undo every edit recorded after the undo log held ``mark`` entries.

        Raises:
            RuntimeError: If mark does not point inside the undo log.
        """
        if mark < 0 or mark > len(self.undo_log):
            raise RuntimeError(
                f"Cannot restore to {mark}; undo log holds {len(self.undo_log)} entries."
            )
        while len(self.undo_log) > mark:
            self.undo_log.pop().undo(self)

    def filter_combinations(self, i: int, keep: np.ndarray) -> bool:
        """
        Keep only the combinations of clue i selected by the boolean mask.

        A clue narrowed to a single combination is fully determined and is
        marked solved.

        Returns:
            False if no combination survives.
        """
        combos = self.combinations[i]
        if keep.all():
            return True
        self.undo_log.append(FilterCombinations(i, combos))
        included = combos[keep]
        self.combinations[i] = included
        if len(included) == 1:
            self.set_cell(i, False)
        return len(included) != 0

    def set_cell(self, i: int, is_mine: bool) -> None:
        previous = int(self.grid[i])
        self.grid[i] = previous | (SOLVED | MINE if is_mine else SOLVED)
        self.undo_log.append(SetCell(i, previous))

    # -------------------------------------------------------------------------
    # Regions
    # -------------------------------------------------------------------------

    def gather_region(
        self, start: int, visited: Optional[Set[int]] = None
    ) -> Tuple[List[int], List[int]]:
        """
        Collect the active region around start.

        Returns:
            Tuple of (revealed clues, covered cells) reachable from start
            through active edges.
        """
        if visited is None:
            visited = set()
        revealed: List[int] = []
        covered: List[int] = []
        frontier: Deque[int] = deque([start])
        visited.add(start)

        while frontier:
            i = frontier.popleft()
            if self.is_inactive(i):
                continue
            if self.is_revealed(i):
                revealed.append(i)
            else:
                covered.append(i)

            for j in self.neighborhood(i):
                if j in visited or not self.is_active_to(i, j):
                    continue
                visited.add(j)
                frontier.append(j)

        return revealed, covered

    def gather_regions(self, initial: Iterable[int]) -> List[Tuple[List[int], List[int]]]:
        """Split the active cells reachable from initial into disjoint regions."""
        visited: Set[int] = set()
        regions: List[Tuple[List[int], List[int]]] = []
        for i in initial:
            if self.is_inactive(i) or i in visited:
                continue
            revealed, covered = self.gather_region(i, visited)
            if revealed or covered:
                regions.append((revealed, covered))
        return regions

    def solved_count(self, covered: Iterable[int]) -> int:
        """Count cells that are solved or have been seen both as mine and safe."""
        return sum(
            1
            for i in covered
            if self.is_solved(i) or (self.safe_counts[i] and self.mine_counts[i])
        )

    # -------------------------------------------------------------------------
    # Cell predicates and geometry
    # -------------------------------------------------------------------------

    def neighborhood(self, i: int) -> Tuple[int, ...]:
        return self._neighborhoods[i]

    def active_neighbors(self, i: int) -> List[int]:
        return [j for j in self.neighborhood(i) if self.is_active_to(i, j)]

    def active_neighbors_byte(self, i: int) -> int:
        active = 0
        for j in self.neighborhood(i):
            if self.is_active_to(i, j):
                active |= 1 << self.neighbor_to_bit(i, j)
        return active

    def is_active_to(self, i: int, j: int) -> bool:
        """Does i consider j an active neighbor: one revealed, one covered, j in play."""
        return not self.is_inactive(j) and self.is_revealed(j) != self.is_revealed(i)

    def is_inactive(self, i: int) -> bool:
        return self.is_background(i) or self.is_solved(i)

    def is_clue(self, i: int) -> bool:
        return self.is_revealed(i) and not self.is_mine(i)

    def is_safe(self, i: int) -> bool:
        cell = int(self.grid[i])
        return bool(cell & (REVEALED | SOLVED)) and not cell & MINE

    def is_covered(self, i: int) -> bool:
        return not int(self.grid[i]) & (REVEALED | BACKGROUND)

    def is_revealed(self, i: int) -> bool:
        return bool(int(self.grid[i]) & REVEALED)

    def is_solved(self, i: int) -> bool:
        return bool(int(self.grid[i]) & SOLVED)

    def is_empty(self, i: int) -> bool:
        return int(self.grid[i]) == EMPTY

    def is_mine(self, i: int) -> bool:
        return bool(int(self.grid[i]) & MINE)

    def is_background(self, i: int) -> bool:
        return bool(int(self.grid[i]) & BACKGROUND)

    def value(self, i: int) -> int:
        return int(self.grid[i]) & NUMBER

    def neighbor_offset(self, i: int, j: int) -> Tuple[int, int]:
        ri, ci = self.index_to_pair(i)
        rj, cj = self.index_to_pair(j)
        return rj - ri, cj - ci

    def neighbor_to_bit(self, i: int, j: int) -> int:
        return offset_to_bit(*self.neighbor_offset(i, j))

    def bit_to_neighbor(self, b: int, i: int) -> int:
        dr, dc = bit_to_offset(b)
        r, c = self.index_to_pair(i)
        return self.pair_to_index(r + dr, c + dc)

    def pair_to_index(self, r: int, c: int) -> int:
        return pair_to_index(self.cols, r, c)

    def index_to_pair(self, i: int) -> Tuple[int, int]:
        return index_to_pair(self.cols, i)

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _check_index(self, i: int) -> None:
        if not 0 <= i < self.size:
            raise ValueError(f"Cell index {i} is outside the {self.rows}x{self.cols} grid.")

    def _ensure_idle(self, operation: str) -> None:
        if self._task is not None and not self._task.done:
            raise RuntimeError(
                f"Cannot {operation} while verify({self._task.target}) is unfinished."
            )

    def _release(self, task: VerificationTask) -> None:
        if self._task is task:
            self._task = None
