import random

import pytest

from noguess import Board, ReviewResult, load_verifier, review_reveals, review_reveals_sync

# M . .
# . . B
#
# Opening cell 3 and then cell 4 leaves two "1" clues sharing cells 0 and 1,
# which clears cell 2 but leaves 0 and 1 a coin flip.


def make_board() -> Board:
    return Board(2, 3, mines=[0], background=[5], origin=3)


@pytest.fixture
def opened_board() -> Board:
    board = make_board()
    board.reveal(3)
    board.reveal(4)
    return board


def drive(review):
    yields = 0
    while True:
        try:
            next(review)
        except StopIteration as stop:
            return stop.value, yields
        yields += 1


def test_load_verifier_matches_board(opened_board):
    verifier = load_verifier(opened_board)
    assert verifier.dump() == [[".", ".", "S"], ["1", "1", "B"]]


def test_forced_move_passes(opened_board):
    result = review_reveals_sync(opened_board, [2])
    assert result == ReviewResult(guaranteed=True, moves_checked=1)
    # Cell 2 is a zero, so the reveal flooded into cell 1.
    assert opened_board.is_revealed(1)


def test_guess_fails_and_suspends(opened_board):
    result, yields = drive(review_reveals(opened_board, [1], rng=random.Random(0)))
    assert result == ReviewResult(guaranteed=False, moves_checked=1, failed_move=1)
    assert yields >= 1
    assert not opened_board.is_revealed(1)


def test_mine_fails_without_search(opened_board):
    result, yields = drive(review_reveals(opened_board, [0]))
    assert result.guaranteed is False
    assert result.failed_move == 0
    assert yields == 0


def test_origin_is_always_allowed():
    result = review_reveals_sync(make_board(), [3])
    assert result.guaranteed
    assert result.moves_checked == 1


def test_guess_after_origin_fails():
    result = review_reveals_sync(make_board(), [3, 4])
    assert result == ReviewResult(guaranteed=False, moves_checked=2, failed_move=4)


def test_already_revealed_moves_are_skipped(opened_board):
    result = review_reveals_sync(opened_board, [2, 1, 2])
    assert result == ReviewResult(guaranteed=True, moves_checked=1)


def test_review_can_be_delegated_to():
    board = make_board()

    def game_loop():
        result = yield from review_reveals(board, [3, 4])
        return result.failed_move

    assert drive(game_loop())[0] == 4


@pytest.mark.parametrize("seed", range(4))
def test_solver_replay_is_guaranteed(seed):
    # Replaying only cells the verifier proved safe must pass review.
    rng = random.Random(seed)
    board = Board.generate(6, 6, 5, origin=14, rng=rng)
    replay = Board(6, 6, board.mines, origin=14)

    board.reveal(14)
    moves = [14]
    verifier = load_verifier(board, rng=rng)
    progress = True
    while progress and not board.game_over:
        progress = False
        for i in range(board.size):
            if board.is_covered(i) and verifier.is_guaranteed_safe(i):
                _, payload = board.reveal(i)
                verifier.update(payload["revealed_cells"])
                moves.append(i)
                progress = True
                break

    result = review_reveals_sync(replay, moves)
    assert result.guaranteed
    assert [replay.is_revealed(i) for i in range(replay.size)] == board.revealed
