"""
Outcome History

Bounded record of recent branch outcomes kept for display.
The predictor itself does not read it.
"""

import numpy as np
from collections import deque


class OutcomeHistory:
    """
    Bounded branch outcome history.

    Holds the last `length` outcomes, oldest evicted first.
    Supports both bipolar (-1/+1) and binary (0/1) views.
    """

    def __init__(self, length: int = 16):
        """
        Initialize the history buffer.

        Args:
            length: Number of branch outcomes to keep
        """
        if length < 1:
            raise ValueError(f"History length must be positive, got {length}")

        self.length = length
        self._outcomes = deque(maxlen=length)

    def update(self, taken: bool) -> None:
        """Append a branch outcome, evicting the oldest when full."""
        self._outcomes.append(bool(taken))

    def get_history(self, as_bipolar: bool = False) -> np.ndarray:
        """
        Get recorded history, oldest first.

        Args:
            as_bipolar: Return as bipolar (-1/+1) instead of binary (0/1)

        Returns:
            History array
        """
        binary = np.fromiter((1 if o else 0 for o in self._outcomes),
                             dtype=np.int8, count=len(self._outcomes))
        if as_bipolar:
            return np.where(binary > 0, 1, -1).astype(np.int8)
        return binary

    def to_list(self) -> list:
        """Outcomes as a plain list of booleans, oldest first."""
        return list(self._outcomes)

    def reset(self) -> None:
        """Clear all recorded outcomes."""
        self._outcomes.clear()

    def __len__(self) -> int:
        return len(self._outcomes)

    def __repr__(self) -> str:
        hist_str = ''.join('1' if o else '0' for o in self._outcomes)
        return f"OutcomeHistory({self.length}): {hist_str}"
