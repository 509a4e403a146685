"""Utility functions for the no-guess verifier."""

from typing import Dict, List, Tuple

from .bits import CLOCK_OFFSETS

# Module-level cache: (rows, cols) -> ((j, ...), ...) indexed by cell
_NEIGHBORHOODS_CACHE: Dict[Tuple[int, int], Tuple[Tuple[int, ...], ...]] = {}


def get_neighborhoods(rows: int, cols: int) -> Tuple[Tuple[int, ...], ...]:
    """
    Precompute and cache clipped 8-connected neighborhoods for every cell.

    Args:
        rows: Grid height (number of rows). Must be positive.
        cols: Grid width (number of columns). Must be positive.

    Returns:
        A tuple indexed by row-major cell index; each entry lists the linear
        indices of the cell's in-grid neighbors in clock order.

    Raises:
        ValueError: If rows or cols is non-positive.
    """
    if rows <= 0 or cols <= 0:
        raise ValueError("rows and cols must be positive.")

    key = (rows, cols)
    cached = _NEIGHBORHOODS_CACHE.get(key)
    if cached is not None:
        return cached

    neighborhoods: List[Tuple[int, ...]] = []
    for r in range(rows):
        for c in range(cols):
            nbrs: List[int] = []
            for dr, dc in CLOCK_OFFSETS:
                nr, nc = r + dr, c + dc
                if 0 <= nr < rows and 0 <= nc < cols:
                    nbrs.append(nr * cols + nc)
            neighborhoods.append(tuple(nbrs))

    result = tuple(neighborhoods)
    _NEIGHBORHOODS_CACHE[key] = result
    return result


def pair_to_index(cols: int, r: int, c: int) -> int:
    """Convert a (row, col) pair to a row-major linear index."""
    return cols * r + c


def index_to_pair(cols: int, i: int) -> Tuple[int, int]:
    """Convert a row-major linear index to a (row, col) pair."""
    return i // cols, i % cols
