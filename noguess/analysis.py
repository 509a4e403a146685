"""Analysis and benchmarking tools for the no-guess verifier."""

import random
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple, cast

import matplotlib.pyplot as plt
import numpy as np

from .engine import Board
from .review import load_verifier
from .verifier import Verifier


def format_verifier_knowledge(verifier: Verifier, *, show_coords: bool = True) -> str:
    """
    Format the verifier's current knowledge grid as a human-readable string.

    Args:
        verifier: Verifier instance whose knowledge will be displayed.
        show_coords: If True, include coordinate labels and a header.

    Returns:
        A text grid using the ``Verifier.dump`` symbols.
    """
    matrix = verifier.dump()
    w = verifier.cols

    lines: List[str] = []
    if show_coords:
        header = " ".join(f"{c:2d}" for c in range(w))
        lines.append("   " + header)
        lines.append("   " + "-" * (3 * w - 1))

    for r, cells in enumerate(matrix):
        row = " ".join(f" {ch}" for ch in cells)
        lines.append(f"{r:2d} |" + row if show_coords else row)

    return "\n".join(lines)


def frontier_cells(verifier: Verifier) -> List[int]:
    """
    List covered, unsolved cells bordering a revealed clue, deduced-safe cells first.

    Deduced-safe cells verify without any search, so trying them first keeps
    no-guess play cheap.
    """
    deduced: List[int] = []
    frontier: List[int] = []
    for i in range(verifier.size):
        if not verifier.is_covered(i):
            continue
        if verifier.is_safe(i):
            deduced.append(i)
        elif not verifier.is_solved(i) and any(
            verifier.is_clue(j) for j in verifier.neighborhood(i)
        ):
            frontier.append(i)
    return deduced + frontier


def find_guaranteed_safe(
    verifier: Verifier, candidates: Iterable[int]
) -> Tuple[Optional[int], int, int]:
    """
    Return the first candidate the verifier proves safe.

    Returns:
        Tuple of (cell or None, verify calls made, search steps taken).
    """
    calls = 0
    steps = 0
    for i in candidates:
        task = verifier.verify(i)
        safe = task.run()
        calls += 1
        steps += task.steps
        if safe:
            return i, calls, steps
    return None, calls, steps


def run_verifier_single_test(
    rows: int,
    cols: int,
    mines_count: int,
    *,
    seed: Optional[int] = None,
    show_boards: bool = False,
) -> Dict[str, object]:
    """
    Play one board using only reveals the verifier proves safe.

    Args:
        rows: Board height.
        cols: Board width.
        mines_count: Total number of mines on the board.
        seed: Seed for board generation and search order.
        show_boards: If True, print the underlying board and the verifier's
            final knowledge.

    Returns:
        Dict with "status" (1 solved without guessing, 0 stuck on a guess),
        "reveal_moves_count", "revealed_cells_count", "verify_calls_count",
        "search_steps_count", "pair_prunings_count" and "unrevealed_count".
    """
    rng = random.Random(seed)
    origin = (rows // 2) * cols + cols // 2
    board = Board.generate(rows, cols, mines_count, origin, rng=rng)

    status, payload = board.reveal(origin)
    if status == -1:
        raise RuntimeError("The origin of a generated board cannot be a mine.")

    verifier = load_verifier(board, rng=rng)
    reveal_moves = 1
    verify_calls = 0
    search_steps = 0

    while status == 0:
        move, calls, steps = find_guaranteed_safe(verifier, frontier_cells(verifier))
        verify_calls += calls
        search_steps += steps
        if move is None:
            break

        status, payload = board.reveal(move)
        if status == -1:
            raise RuntimeError(f"Cell {move} was verified safe but holds a mine.")
        reveal_moves += 1
        verifier.update(cast(List[Tuple[int, int]], payload["revealed_cells"]))

    if show_boards:
        print("Underlying board (mines visible):")
        print(board.format_board(reveal_all=True))
        print()
        print("Verifier knowledge (unknowns shown as '.'):")
        print(format_verifier_knowledge(verifier, show_coords=True))
        print()
        print(f"Finished with status {status}.")

    return {
        "status": status,
        "reveal_moves_count": reveal_moves,
        "revealed_cells_count": sum(board.revealed),
        "verify_calls_count": verify_calls,
        "search_steps_count": search_steps,
        "pair_prunings_count": verifier.pair_prunings_count,
        "unrevealed_count": board.unrevealed_count,
    }


def run_verifier_many_tests(
    rows: int,
    cols: int,
    mines_count: int,
    runs: int,
    *,
    seed: Optional[int] = None,
) -> Dict[str, float]:
    """
    Run many independent no-guess games and return averaged metrics.

    Returns:
        Averages of every numeric metric from run_verifier_single_test
        (prefixed with "avg_"), plus "no_guess_rate" (fraction of boards
        solved without a single guess) and "max_search_steps_count".
    """
    if runs <= 0:
        raise ValueError("runs must be positive.")

    seeds = random.Random(seed)
    samples: Dict[str, List[float]] = defaultdict(list)
    solved = 0

    for _ in range(runs):
        result = run_verifier_single_test(
            rows, cols, mines_count, seed=seeds.randrange(2**32)
        )
        if result["status"] == 1:
            solved += 1
        for k, v in result.items():
            if k == "status":
                continue
            samples[k].append(float(cast(int, v)))

    out: Dict[str, float] = {
        f"avg_{k}": float(np.mean(values)) for k, values in samples.items()
    }
    out["max_search_steps_count"] = float(np.max(samples["search_steps_count"]))
    out["no_guess_rate"] = solved / runs
    return out


def plot_search_effort(results: Dict[str, Dict[str, float]], *, show: bool = True):
    """
    Plot per-level search effort and no-guess rates.

    Args:
        results: Mapping from level name to metrics from run_verifier_many_tests.
        show: If True, call plt.show().

    Returns:
        The matplotlib Figure.
    """
    level_names = list(results.keys())
    x = np.arange(len(level_names))
    bar_w = 0.4

    fig, (ax_effort, ax_rate) = plt.subplots(1, 2, figsize=(10, 4))  # type: ignore[misc]

    verify_calls = [results[n]["avg_verify_calls_count"] for n in level_names]
    search_steps = [results[n]["avg_search_steps_count"] for n in level_names]
    ax_effort.bar(x - bar_w / 2, verify_calls, width=bar_w, label="verify calls")
    ax_effort.bar(x + bar_w / 2, search_steps, width=bar_w, label="search steps")
    ax_effort.set_xticks(x, level_names)
    ax_effort.set_ylabel("Average per game")
    ax_effort.set_title("Verification effort")
    ax_effort.legend()

    no_guess = [results[n]["no_guess_rate"] for n in level_names]
    ax_rate.bar(x, no_guess)
    ax_rate.set_xticks(x, level_names)
    ax_rate.set_ylabel("No-guess rate")
    ax_rate.set_ylim(0.0, 1.0)
    ax_rate.set_title("Boards solved without guessing")

    fig.tight_layout()
    if show:
        plt.show()  # type: ignore[misc]
    return fig


def run_verifier_level_analysis(
    runs: int, *, seed: Optional[int] = None, show: bool = True
) -> Dict[str, Dict[str, float]]:
    """
    Run no-guess games on standard difficulty levels and plot summaries.

    Standard difficulty levels:
        - Beginner: 9x9, 10 mines
        - Intermediate: 16x16, 40 mines
        - Expert: 16x30, 99 mines
    """
    levels: Dict[str, Tuple[int, int, int]] = {
        "beginner": (9, 9, 10),
        "intermediate": (16, 16, 40),
        "expert": (16, 30, 99),
    }

    results: Dict[str, Dict[str, float]] = {}
    for level, (rows, cols, mines) in levels.items():
        results[level] = run_verifier_many_tests(rows, cols, mines, runs, seed=seed)

    plot_search_effort(results, show=show)
    return results
