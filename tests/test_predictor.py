import logging

import numpy as np
import pytest

from specsim.components.history import OutcomeHistory
from specsim.components.predictor import BranchPredictor


def test_confidence_rises_on_taken_branches():
    bp = BranchPredictor()
    predictions = [bp.predict(True), bp.predict(True), bp.predict(True)]

    assert all(predictions)
    assert bp.counter == 3
    assert bp.get_confidence() >= 0.66


def test_prediction_reflects_prior_history():
    bp = BranchPredictor()

    # Counter starts at 2: predicts taken even though the outcome is not-taken
    assert bp.predict(False) is True
    assert bp.counter == 1
    assert bp.predict(True) is False
    assert bp.counter == 2


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
def test_counter_and_confidence_stay_bounded(seed):
    rng = np.random.default_rng(seed)
    bp = BranchPredictor()

    for outcome in rng.integers(0, 2, size=200):
        bp.predict(bool(outcome))
        assert 0 <= bp.counter <= 3
        assert 0.0 <= bp.get_confidence() <= 1.0


def test_counter_saturates_at_both_ends():
    bp = BranchPredictor()
    for _ in range(10):
        bp.predict(True)
    assert bp.counter == 3

    for _ in range(10):
        bp.predict(False)
    assert bp.counter == 0
    assert bp.get_confidence() == 0.0


def test_history_keeps_last_sixteen_outcomes():
    bp = BranchPredictor()
    outcomes = [i % 3 == 0 for i in range(20)]
    for outcome in outcomes:
        bp.predict(outcome)

    assert len(bp.history) == 16
    assert bp.history.to_list() == outcomes[-16:]


def test_non_boolean_outcome_is_normalized(caplog):
    bp = BranchPredictor()
    with caplog.at_level(logging.WARNING, logger="specsim"):
        bp.predict(1)
        bp.predict(0)
        bp.predict("")

    assert bp.history.to_list() == [True, False, False]
    assert "non-boolean" in caplog.text


def test_ambiguous_outcome_counts_as_not_taken(caplog):
    bp = BranchPredictor(initial=3)
    with caplog.at_level(logging.WARNING, logger="specsim"):
        prediction = bp.predict(np.array([True, False]))

    assert prediction is True
    assert bp.counter == 2
    assert bp.history.to_list() == [False]
    assert "ambiguous" in caplog.text


def test_numpy_boolean_outcome_logs_nothing(caplog):
    bp = BranchPredictor()
    with caplog.at_level(logging.WARNING, logger="specsim"):
        bp.predict(np.bool_(True))

    assert bp.counter == 3
    assert caplog.text == ""


def test_reset_restores_initial_counter():
    bp = BranchPredictor(initial=1)
    bp.predict(True)
    bp.predict(True)
    bp.reset()

    assert bp.counter == 1
    assert len(bp.history) == 0


def test_initial_counter_out_of_range():
    with pytest.raises(ValueError):
        BranchPredictor(initial=4)


def test_get_state_for_display():
    bp = BranchPredictor()
    bp.predict(True)

    state = bp.get_state()
    assert state == {'counter': 3, 'confidence': 1.0, 'history': [True]}


def test_history_views():
    history = OutcomeHistory(length=4)
    for taken in (True, False, True):
        history.update(taken)

    assert history.get_history().tolist() == [1, 0, 1]
    assert history.get_history(as_bipolar=True).tolist() == [1, -1, 1]
    assert history.get_history().dtype == np.int8


def test_history_rejects_zero_length():
    with pytest.raises(ValueError):
        OutcomeHistory(length=0)
