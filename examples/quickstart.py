"""
Quickstart example for the no-guess verifier.

This script demonstrates basic usage of the verifier and the review driver.
"""

import random

from noguess import (
    Board,
    Verifier,
    format_verifier_knowledge,
    load_verifier,
    review_reveals_sync,
    run_verifier_many_tests,
    run_verifier_single_test,
)


def main():
    print("=" * 60)
    print("No-Guess Verifier - Quickstart Example")
    print("=" * 60)

    # Example 1: Ask the verifier about a hand-made position
    print("\n1. Two '1' clues against a wall...")
    print("-" * 60)

    # . . .
    # 1 1 #
    verifier = Verifier(2, 3).update([(3, 1), (4, 1)], background=[5])
    print(format_verifier_knowledge(verifier))
    for i in (0, 1, 2):
        print(f"Cell {i} guaranteed safe: {verifier.is_guaranteed_safe(i)}")

    # Example 2: Step a verification the way a game loop would
    print("\n2. Stepping verify() one level at a time...")
    print("-" * 60)

    task = verifier.verify(0)
    while not task.step():
        print(f"  still searching after {task.steps} step(s)")
    print(f"Cell 0 guaranteed safe: {task.result}")

    # Example 3: Review a recorded game
    print("\n3. Reviewing a replay on a 9x9 board...")
    print("-" * 60)

    rng = random.Random(7)
    board = Board.generate(9, 9, 10, origin=40, rng=rng)
    replay = Board(9, 9, board.mines, origin=40)
    board.reveal(40)
    moves = [40]

    verifier = load_verifier(board, rng=rng)
    stuck = False
    while not board.game_over and not stuck:
        stuck = True
        for i in range(board.size):
            if board.is_covered(i) and verifier.is_guaranteed_safe(i):
                _, payload = board.reveal(i)
                verifier.update(payload["revealed_cells"])
                moves.append(i)
                stuck = False
                break

    result = review_reveals_sync(replay, moves)
    print(f"Moves replayed: {result.moves_checked}, no guess needed: {result.guaranteed}")
    print(board.format_board(reveal_all=True))

    # Example 4: Play many boards using proven-safe reveals only
    print("\n4. No-guess rates by difficulty level (10 games each)...")
    print("-" * 60)

    difficulties = [
        ("Beginner", 9, 9, 10),
        ("Intermediate", 16, 16, 40),
    ]

    for name, rows, cols, mines in difficulties:
        results = run_verifier_many_tests(rows, cols, mines, runs=10, seed=0)
        print(
            f"{name:15s} ({rows}x{cols}, {mines:2d} mines): "
            f"{results['no_guess_rate']*100:5.1f}% solved without guessing, "
            f"{results['avg_search_steps_count']:.0f} search steps per game"
        )

    single = run_verifier_single_test(9, 9, 10, seed=3, show_boards=True)
    print(f"Verify calls: {single['verify_calls_count']}")

    print("\n" + "=" * 60)
    print("Done! See README.md for more detailed usage instructions.")
    print("=" * 60)


if __name__ == "__main__":
    main()
