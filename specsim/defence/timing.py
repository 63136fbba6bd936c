"""
Timing Records

A timing record maps a phase name ('prime', 'speculate', 'probe', or any
caller key) to a synthetic duration.
"""

from typing import Dict, Mapping

from ..errors import TimingError
from ..utils.helpers import is_finite_number

TIMING_MIN = 20
TIMING_MAX = 180


def clamp_timing(value: float) -> float:
    """Restrict a single timing value to [TIMING_MIN, TIMING_MAX]."""
    return max(TIMING_MIN, min(value, TIMING_MAX))


def validate_timings(timings) -> Dict[str, float]:
    """
    Check a timing record and return it as a plain dict.

    Raises:
        TimingError: not a mapping, empty, or holding a non-numeric value
    """
    if not isinstance(timings, Mapping):
        raise TimingError(
            f"Timing data must be a mapping, got {type(timings).__name__}"
        )
    if len(timings) == 0:
        raise TimingError("Timing data must include at least one measurement")

    for key, value in timings.items():
        if not is_finite_number(value):
            raise TimingError(f"Timing for {key} must be numeric, got {value!r}")

    return dict(timings)
