import pytest

from noguess.utils import get_neighborhoods, index_to_pair, pair_to_index


def test_neighborhoods_are_clipped_and_in_clock_order():
    neighborhoods = get_neighborhoods(2, 3)
    assert neighborhoods[0] == (1, 4, 3)
    assert neighborhoods[4] == (0, 1, 2, 5, 3)
    assert len(neighborhoods) == 6


def test_neighborhoods_are_cached():
    assert get_neighborhoods(4, 5) is get_neighborhoods(4, 5)


@pytest.mark.parametrize("rows, cols", [(0, 1), (1, 0), (-2, 3)])
def test_neighborhoods_reject_empty_grids(rows, cols):
    with pytest.raises(ValueError):
        get_neighborhoods(rows, cols)


def test_index_pair_conversion():
    assert pair_to_index(5, 2, 3) == 13
    assert index_to_pair(5, 13) == (2, 3)
