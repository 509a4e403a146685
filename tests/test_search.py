import random

import numpy as np
import pytest

from conftest import CYCLE_A, CYCLE_ROWS, CYCLE_S
from noguess import VerificationTask, Verifier
from noguess.search import SearchFrame


def test_task_is_its_own_iterator(make_verifier):
    verifier = make_verifier([".1."])
    task = verifier.verify(0)
    assert isinstance(task, VerificationTask)
    assert iter(task) is task


def test_task_suspends_then_stops_with_result(make_verifier):
    verifier = make_verifier([".1."])
    task = verifier.verify(0)
    suspensions = 0
    with pytest.raises(StopIteration) as stop:
        while True:
            next(task)
            suspensions += 1
    assert stop.value.value is False
    assert suspensions == task.steps >= 1
    assert task.done


def test_task_delegates_with_yield_from(make_verifier):
    verifier = make_verifier(CYCLE_ROWS)

    def driver():
        result = yield from verifier.verify(CYCLE_S)
        return result

    gen = driver()
    yielded = 0
    with pytest.raises(StopIteration) as stop:
        while True:
            next(gen)
            yielded += 1
    assert stop.value.value is False
    assert yielded >= 1


def test_finished_task_stays_finished(make_verifier):
    verifier = make_verifier([".1."])
    task = verifier.verify(2)
    assert task.run() is False
    steps = task.steps
    assert task.step() is True
    with pytest.raises(StopIteration):
        next(task)
    assert task.steps == steps
    assert task.result is False


def test_result_before_completion_raises(make_verifier):
    verifier = make_verifier([".1."])
    task = verifier.verify(0)
    with pytest.raises(RuntimeError):
        _ = task.result
    task.run()
    assert task.result is False


def test_unfinished_task_blocks_the_verifier(make_verifier):
    verifier = make_verifier([".1."])
    task = verifier.verify(0)
    assert task.step() is False
    with pytest.raises(RuntimeError):
        verifier.verify(2)
    with pytest.raises(RuntimeError):
        verifier.update([(2, 1)])

    task.run()
    assert verifier.verify(2).run() is False


def test_search_counters(make_verifier):
    verifier = make_verifier(CYCLE_ROWS)
    task = verifier.verify(CYCLE_A)
    task.run()
    assert verifier.verifications_count == 1
    assert verifier.searches_count == 1
    assert verifier.search_steps_count == task.steps


def test_search_statistics_survive_rollback(make_verifier):
    verifier = make_verifier([".1."])
    verifier.is_guaranteed_safe(0)
    # The consistent assignment found had a mine on 0 and cell 2 safe.
    assert verifier.mine_counts[0] == 1
    assert verifier.safe_counts[2] == 1
    assert verifier.dump() == [[".", "1", "."]]


# -----------------------------------------------------------------------------
# Undo log
# -----------------------------------------------------------------------------


def test_restore_rolls_back_cells_and_combinations(make_verifier):
    verifier = make_verifier([".1."])
    grid = verifier.grid.copy()
    combos = verifier.combinations[1].copy()

    mark = verifier.checkpoint()
    assert verifier.set_and_propagate(0, True)
    assert verifier.dump() == [["M", "1", "S"]]
    assert len(verifier.combinations[1]) == 1
    assert verifier.checkpoint() > mark

    verifier.restore(mark)
    assert np.array_equal(verifier.grid, grid)
    assert np.array_equal(verifier.combinations[1], combos)
    assert verifier.checkpoint() == mark


def test_undoing_a_cell_counts_as_failure(make_verifier):
    verifier = make_verifier([".1."])
    before = float(verifier.failures[0])
    verifier.set_cell(0, False)
    verifier.restore(0)
    assert float(verifier.failures[0]) == before + 1
    assert not verifier.is_solved(0)


@pytest.mark.parametrize("mark", [-1, 5])
def test_restore_rejects_marks_outside_the_log(mark):
    verifier = Verifier(1, 3)
    verifier.set_cell(0, True)
    with pytest.raises(RuntimeError):
        verifier.restore(mark)


def test_contradiction_reported_by_propagation(make_verifier):
    verifier = make_verifier([".1."])
    mark = verifier.checkpoint()
    verifier.set_cell(0, True)
    verifier.set_cell(2, True)
    consistent, _ = verifier.propagate_singles([0, 2])
    assert consistent is False
    verifier.restore(mark)
    assert verifier.dump() == [[".", "1", "."]]


# -----------------------------------------------------------------------------
# Search ordering
# -----------------------------------------------------------------------------


def test_trial_order_follows_statistics():
    verifier = Verifier(1, 3, rng=random.Random(0), reverse_chance=0.0)
    verifier.safe_counts[0] = 3
    verifier.mine_counts[0] = 1
    assert verifier.trial_order(0) == [False, True]

    verifier.safe_counts[1] = 1
    verifier.mine_counts[1] = 3
    assert verifier.trial_order(1) == [True, False]

    # Always safe so far: try the mine first to hunt for a counterexample.
    verifier.safe_counts[2] = 4
    assert verifier.trial_order(2) == [True, False]


def test_trial_order_can_be_reversed():
    verifier = Verifier(1, 1, rng=random.Random(0), reverse_chance=1.0)
    verifier.safe_counts[0] = 3
    verifier.mine_counts[0] = 1
    assert verifier.trial_order(0) == [True, False]


def test_pick_candidate_prefers_one_sided_cells():
    verifier = Verifier(1, 4)
    verifier.safe_counts[:] = [2, 1, 0, 0]
    verifier.mine_counts[:] = [2, 0, 0, 0]
    verifier.set_cell(3, False)
    # Cell 0 is balanced, cell 3 is solved.
    assert verifier.pick_candidate([0, 1, 3]) == 1
    assert verifier.pick_candidate([3]) is None


def test_pick_candidate_weights_failures():
    verifier = Verifier(1, 2)
    verifier.failures[1] = 5.0
    assert verifier.pick_candidate([0, 1]) == 1


def test_failures_decay_every_interval():
    verifier = Verifier(1, 2, decay_interval=10, failure_decay=0.5)
    verifier.failures[:] = [4.0, 2.0]
    verifier.attempts = 9
    verifier.pick_candidate([0, 1])
    assert list(verifier.failures) == [4.0, 2.0]

    verifier.attempts = 10
    verifier.pick_candidate([0, 1])
    assert list(verifier.failures) == [2.0, 1.0]
    assert verifier.last_epoch == 10

    verifier.pick_candidate([0, 1])
    assert list(verifier.failures) == [2.0, 1.0]


def test_search_frame_holds_level_state():
    frame = SearchFrame(7, [True, False], 3)
    assert (frame.cell, frame.trials, frame.restore_point) == (7, [True, False], 3)


@pytest.mark.parametrize("reverse_chance", [0.0, 1.0])
def test_result_does_not_depend_on_trial_order(make_verifier, reverse_chance):
    for target, expected in ((CYCLE_S, False), (CYCLE_A, False)):
        verifier = make_verifier(CYCLE_ROWS, reverse_chance=reverse_chance)
        assert verifier.is_guaranteed_safe(target) is expected
