"""
No-guess Minesweeper verifier

Decides whether revealing a covered cell is logically forced, combining:
- Combination sets: every mine placement each clue still allows
- Single propagation: neighbors all surviving combinations agree on
- Pairwise consistency: pruning between clues whose windows overlap
- Existence search: cooperative, undoable backtracking over one region
"""

from .analysis import (
    find_guaranteed_safe,
    format_verifier_knowledge,
    frontier_cells,
    plot_search_effort,
    run_verifier_level_analysis,
    run_verifier_many_tests,
    run_verifier_single_test,
)
from .constants import COMBINATIONS, MINE_VALUE
from .engine import Board
from .review import ReviewResult, load_verifier, review_reveals, review_reveals_sync
from .search import VerificationTask
from .verifier import Verifier

__version__ = "1.0.0"

__all__ = [
    # Core classes
    "Verifier",
    "VerificationTask",
    "Board",
    "COMBINATIONS",
    "MINE_VALUE",
    # Review
    "ReviewResult",
    "load_verifier",
    "review_reveals",
    "review_reveals_sync",
    # Analysis functions
    "find_guaranteed_safe",
    "format_verifier_knowledge",
    "frontier_cells",
    "plot_search_effort",
    "run_verifier_level_analysis",
    "run_verifier_many_tests",
    "run_verifier_single_test",
]
