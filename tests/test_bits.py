import pytest

from noguess.bits import (
    CLOCK_OFFSETS,
    DirectionClass,
    bit_to_offset,
    chebyshev,
    direction_class,
    mirror_byte,
    mirror_offset,
    offset_to_bit,
    popcount,
    reverse_byte,
    rotate_byte_left,
    rotate_byte_right,
    rotate_offset,
)

NEIGHBOR_OFFSETS = [(dr, dc) for dr in (-1, 0, 1) for dc in (-1, 0, 1) if (dr, dc) != (0, 0)]
PAIR_OFFSETS = [
    (dr, dc) for dr in range(-2, 3) for dc in range(-2, 3) if (dr, dc) != (0, 0)
]


@pytest.mark.parametrize("offset", NEIGHBOR_OFFSETS)
def test_offset_bit_round_trip(offset):
    assert bit_to_offset(offset_to_bit(*offset)) == offset


def test_clock_order_is_clockwise_from_top_left():
    assert offset_to_bit(-1, -1) == 0
    assert offset_to_bit(-1, 0) == 1
    assert offset_to_bit(0, 1) == 3
    assert offset_to_bit(1, 0) == 5
    assert offset_to_bit(0, -1) == 7
    assert sorted(offset_to_bit(*o) for o in NEIGHBOR_OFFSETS) == list(range(8))


@pytest.mark.parametrize("offset", [(0, 0), (2, 0), (-1, 2)])
def test_offset_to_bit_rejects_non_neighbors(offset):
    with pytest.raises(ValueError):
        offset_to_bit(*offset)


def test_rotations_are_inverse():
    for x in range(256):
        for n in range(9):
            assert rotate_byte_left(rotate_byte_right(x, n), n) == x
        assert rotate_byte_right(x, 8) == x


def test_rotation_examples():
    assert rotate_byte_right(0b0000_0001, 1) == 0b1000_0000
    assert rotate_byte_left(0b1000_0000, 1) == 0b0000_0001
    assert rotate_byte_left(0b0000_0011, 2) == 0b0000_1100


def test_reverse_byte():
    assert reverse_byte(0b0000_0001) == 0b1000_0000
    assert reverse_byte(0b1100_1010) == 0b0101_0011
    assert all(reverse_byte(reverse_byte(x)) == x for x in range(256))


def test_popcount():
    assert popcount(0) == 0
    assert popcount(0b1011_0001) == 4
    assert popcount(255) == 8


@pytest.mark.parametrize("b", range(8))
def test_quarter_turn_moves_bits_by_two(b):
    turned = rotate_offset(*bit_to_offset(b), 1)
    assert rotate_byte_left(1 << b, 2) == 1 << offset_to_bit(*turned)


@pytest.mark.parametrize("b", range(8))
def test_mirror_byte_matches_mirrored_offsets(b):
    mirrored = mirror_offset(*bit_to_offset(b))
    assert mirror_byte(1 << b) == 1 << offset_to_bit(*mirrored)


def test_rotate_offset_full_turn():
    for offset in PAIR_OFFSETS:
        assert rotate_offset(*offset, 4) == offset
    assert rotate_offset(-1, 0, 1) == (0, 1)


@pytest.mark.parametrize("offset", PAIR_OFFSETS)
def test_direction_class_reconstructs_offset(offset):
    cls, turns, mirrored = direction_class(*offset)
    base = mirror_offset(*cls.value) if mirrored else cls.value
    assert rotate_offset(*base, turns) == offset
    assert cls.distance == chebyshev(*offset)
    assert 0 <= turns < 4


def test_direction_class_counts():
    counts = {}
    for offset in PAIR_OFFSETS:
        cls, _, _ = direction_class(*offset)
        counts[cls] = counts.get(cls, 0) + 1
    assert counts == {
        DirectionClass.EDGE: 4,
        DirectionClass.CORNER: 4,
        DirectionClass.FAR_EDGE: 4,
        DirectionClass.KNIGHT: 8,
        DirectionClass.FAR_CORNER: 4,
    }


def test_only_knight_moves_need_mirroring():
    for offset in PAIR_OFFSETS:
        cls, _, mirrored = direction_class(*offset)
        if mirrored:
            assert cls is DirectionClass.KNIGHT


@pytest.mark.parametrize("offset", [(0, 0), (3, 0), (0, -3), (3, 3)])
def test_direction_class_rejects_far_offsets(offset):
    with pytest.raises(ValueError):
        direction_class(*offset)


def test_clock_offsets_cover_neighborhood():
    assert sorted(CLOCK_OFFSETS) == sorted(NEIGHBOR_OFFSETS)
