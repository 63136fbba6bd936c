"""
Defence Toolkit

Browser-style mitigations applied to the simulator's timing records and
address lists:
- constant-time: report worst-case duration for every phase
- jitter: blur timings with a bounded random offset
- fence: suppress the speculative timing signature
- clamp timers: coarsen timer resolution
- detection: flag high-variance timing records

Every transform returns a new record; inputs are never modified.
"""

import math
from dataclasses import dataclass, asdict, fields, replace
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from ..errors import AddressError, ToggleError
from ..utils.helpers import is_finite_number, make_rng
from .timing import clamp_timing, validate_timings


@dataclass(frozen=True)
class DefenceState:
    """Immutable mitigation configuration for one scenario run."""
    constant_time: bool = True
    jitter: bool = True
    fence: bool = True
    clamp_timers: bool = True
    detection: bool = True

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, bool):
                raise ToggleError(
                    f"DefenceState expected boolean for {f.name}, got {value!r}"
                )

    @classmethod
    def disabled(cls) -> 'DefenceState':
        """Baseline view: every mitigation off."""
        return cls(**{f.name: False for f in fields(cls)})

    @classmethod
    def from_dict(cls, data: Mapping) -> 'DefenceState':
        unknown = set(data) - {f.name for f in fields(cls)}
        if unknown:
            raise ToggleError(f"Unknown defence toggle(s): {sorted(unknown)}")
        return cls(**data)

    def to_dict(self) -> Dict[str, bool]:
        return asdict(self)


@dataclass(frozen=True)
class AnomalyReport:
    """Result of the variance heuristic. Informational only."""
    avg: float
    std: float
    suspicious: bool

    def to_dict(self) -> Dict:
        return asdict(self)


TOGGLES = tuple(f.name for f in fields(DefenceState))


class DefenceToolkit:
    """
    Holder of the current mitigation configuration plus the pure
    transforms that apply it.

    The stored state is replaced, never mutated, by the setters, so a
    DefenceState handed to a running scenario cannot change under it.
    """

    def __init__(self, state: Optional[DefenceState] = None,
                 rng: Optional[np.random.Generator] = None,
                 seed: Optional[int] = None,
                 jitter_spread: int = 10,
                 timer_resolution: int = 5,
                 anomaly_threshold: float = 12.0):
        """
        Initialize the toolkit.

        Args:
            state: Initial toggles (default: everything enabled)
            rng: Random source for jitter
            seed: Seed used when no rng is given
            jitter_spread: Width of the jitter window used by apply_defences
            timer_resolution: Granularity used by clamp_timing
            anomaly_threshold: Standard deviation above which timings are suspicious
        """
        self._state = state if state is not None else DefenceState()
        self.rng = rng if rng is not None else make_rng(seed)
        self.jitter_spread = jitter_spread
        self.timer_resolution = timer_resolution
        self.anomaly_threshold = anomaly_threshold

    @property
    def state(self) -> DefenceState:
        return self._state

    # ------------------------------------------------------------------
    # Toggles
    # ------------------------------------------------------------------

    def set_toggle(self, name: str, value: bool) -> None:
        if name not in TOGGLES:
            raise ToggleError(f"Unknown defence toggle: {name}")
        if not isinstance(value, bool):
            raise ToggleError(f"DefenceToolkit expected boolean for {name}, got {value!r}")
        self._state = replace(self._state, **{name: value})

    def set_constant_time(self, value: bool) -> None:
        self.set_toggle('constant_time', value)

    def set_jitter(self, value: bool) -> None:
        self.set_toggle('jitter', value)

    def set_fence(self, value: bool) -> None:
        self.set_toggle('fence', value)

    def set_clamp_timers(self, value: bool) -> None:
        self.set_toggle('clamp_timers', value)

    def set_detection(self, value: bool) -> None:
        self.set_toggle('detection', value)

    def get_state(self, defended: bool) -> DefenceState:
        """
        Active mitigation state for a run.

        Args:
            defended: False gives the baseline view with every mitigation
                off; the stored toggles are left untouched.
        """
        if not isinstance(defended, bool):
            raise ToggleError(f"get_state expected boolean defended flag, got {defended!r}")
        if defended:
            return self._state
        return DefenceState.disabled()

    # ------------------------------------------------------------------
    # Transforms
    # ------------------------------------------------------------------

    def jitter(self, spread: Optional[int] = None) -> int:
        """
        Bounded random offset in [-spread // 2, spread - spread // 2 - 1].

        Shared by the scenario runner and apply_defences.
        """
        spread = self.jitter_spread if spread is None else spread
        if spread <= 0:
            return 0
        return int(self.rng.integers(0, spread)) - spread // 2

    def apply_fence(self, addresses: Sequence,
                    state: Optional[DefenceState] = None) -> Sequence:
        """
        Fence the address list.

        When the fence is on the caller gets an independent copy; values
        and order are unchanged either way.
        """
        state = self._state if state is None else state
        if not isinstance(addresses, (list, tuple)) or \
                not all(is_finite_number(a) for a in addresses):
            raise AddressError(
                "DefenceToolkit.apply_fence expected a list of numeric addresses"
            )
        if not state.fence:
            return addresses
        return list(addresses)

    def apply_constant_time(self, timings: Mapping[str, float]) -> Dict[str, float]:
        """Report the clamped worst-case value for every phase."""
        record = validate_timings(timings)
        worst = clamp_timing(max(record.values()))
        return {key: worst for key in record}

    def apply_defences(self, timings: Mapping[str, float], mispredict: bool,
                       state: Optional[DefenceState] = None) -> Dict[str, float]:
        """
        Apply jitter and fence dampening.

        Jitter adds a bounded offset to every value. The fence halves the
        'speculate' phase after a misprediction. Both may apply.
        """
        state = self._state if state is None else state
        record = validate_timings(timings)

        if state.jitter:
            adjusted = {key: clamp_timing(value + self.jitter())
                        for key, value in record.items()}
        else:
            adjusted = dict(record)

        if state.fence and mispredict and 'speculate' in adjusted:
            adjusted['speculate'] = clamp_timing(adjusted['speculate'] / 2)

        return adjusted

    def clamp_timing(self, timings: Mapping[str, float]) -> Dict[str, int]:
        """Coarsen every value to the nearest multiple of the timer resolution."""
        record = validate_timings(timings)
        step = self.timer_resolution
        # Round half up
        return {key: int(math.floor(value / step + 0.5)) * step
                for key, value in record.items()}

    def detect_anomaly(self, timings: Mapping[str, float]) -> AnomalyReport:
        """
        Population mean and standard deviation of the timing values.

        A heuristic: false negatives are expected.
        """
        record = validate_timings(timings)
        values = np.array(list(record.values()), dtype=float)
        avg = float(np.mean(values))
        std = float(np.std(values))
        return AnomalyReport(avg=avg, std=std, suspicious=std > self.anomaly_threshold)

    def get_statistics(self) -> Dict:
        """Current toggles and tuning parameters."""
        return {
            'state': self._state.to_dict(),
            'jitter_spread': self.jitter_spread,
            'timer_resolution': self.timer_resolution,
            'anomaly_threshold': self.anomaly_threshold,
        }

    def __repr__(self) -> str:
        enabled: List[str] = [k for k, v in self._state.to_dict().items() if v]
        return f"DefenceToolkit(enabled={enabled})"
