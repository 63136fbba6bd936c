# Defence Package
from .timing import TIMING_MIN, TIMING_MAX, clamp_timing, validate_timings
from .toolkit import AnomalyReport, DefenceState, DefenceToolkit, TOGGLES

__all__ = [
    'TIMING_MIN',
    'TIMING_MAX',
    'clamp_timing',
    'validate_timings',
    'AnomalyReport',
    'DefenceState',
    'DefenceToolkit',
    'TOGGLES',
]
