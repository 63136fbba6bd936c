"""
Saturating-Counter Branch Predictor

A single 2-bit counter shared by every branch. Repeated outcomes push
the counter towards one end, which is exactly what a mistraining
sequence exploits.
"""

import logging
from typing import Optional

import numpy as np

from .history import OutcomeHistory

logger = logging.getLogger(__name__)

COUNTER_MIN = 0
COUNTER_MAX = 3


def _coerce_outcome(outcome) -> bool:
    """Normalize an outcome by truthiness; ambiguous values count as not taken."""
    if isinstance(outcome, (bool, np.bool_)):
        return bool(outcome)

    try:
        taken = bool(outcome)
    except (TypeError, ValueError):
        logger.warning(
            "BranchPredictor.predict called with outcome %r of ambiguous truth "
            "value, treating it as not taken", outcome
        )
        return False

    logger.warning(
        "BranchPredictor.predict called with non-boolean outcome %r, "
        "coercing to boolean", outcome
    )
    return taken


class BranchPredictor:
    """
    Simple 2-bit saturating counter predictor.

    Counter values 0,1 predict not-taken; 2,3 predict taken.
    """

    def __init__(self, threshold: int = 2, initial: int = 2,
                 history_length: int = 16):
        if not COUNTER_MIN <= initial <= COUNTER_MAX:
            raise ValueError(
                f"Initial counter must be in [{COUNTER_MIN}, {COUNTER_MAX}], got {initial}"
            )
        self.threshold = threshold
        self.initial = initial
        self.counter = initial
        self.history = OutcomeHistory(history_length)

    def predict(self, outcome) -> bool:
        """
        Predict from the current counter, then train on `outcome`.

        The returned prediction reflects prior history only; the supplied
        outcome is applied afterwards.

        Args:
            outcome: Actual branch outcome (True = taken). Non-boolean
                values are normalized by truthiness; values with no single
                truth value, such as multi-element arrays, count as not taken.

        Returns:
            Predicted branch direction
        """
        taken = _coerce_outcome(outcome)
        prediction = self.counter >= self.threshold
        self._update(taken)
        return prediction

    def _update(self, taken: bool) -> None:
        if taken:
            self.counter = min(COUNTER_MAX, self.counter + 1)
        else:
            self.counter = max(COUNTER_MIN, self.counter - 1)
        self.history.update(taken)

    def get_confidence(self) -> float:
        """Predictor certainty normalized to [0, 1]."""
        return self.counter / COUNTER_MAX

    def get_state(self) -> dict:
        """Counter, confidence and history for display."""
        return {
            'counter': self.counter,
            'confidence': self.get_confidence(),
            'history': self.history.to_list(),
        }

    def reset(self, initial: Optional[int] = None) -> None:
        """Reset the counter and clear history."""
        self.counter = self.initial if initial is None else initial
        self.history.reset()

    def __repr__(self) -> str:
        return f"BranchPredictor(counter={self.counter}, threshold={self.threshold})"
