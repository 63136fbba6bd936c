"""
Simulator Configuration
"""

import numbers
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np

from ..components.predictor import COUNTER_MAX, COUNTER_MIN
from ..errors import ConfigurationError, ToggleError
from ..defence.toolkit import DefenceState
from ..utils.helpers import is_finite_number, load_config, save_config

POSITIVE_INTS = ('l1_size', 'l2_size', 'history_length', 'address_pool_size',
                 'address_stride', 'timer_resolution')
NON_NEGATIVE_INTS = ('l1_latency', 'l2_latency', 'miss_latency',
                     'scenario_jitter', 'defence_jitter')


def _default_defences() -> Dict[str, bool]:
    return DefenceState().to_dict()


def _is_int(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, (bool, np.bool_))


@dataclass
class SimulatorConfig:
    """Configuration for a scenario runner."""
    # Cache hierarchy
    l1_size: int = 8
    l1_latency: int = 8
    l2_size: int = 16
    l2_latency: int = 16
    miss_latency: int = 42

    # Branch predictor
    predictor_threshold: int = 2
    predictor_initial: int = 2
    history_length: int = 16

    # Mock address pool: address_pool_size addresses, address_stride apart
    address_pool_size: int = 32
    address_stride: int = 4

    # Timing synthesis
    prime_base: float = 60
    scenario_jitter: int = 8
    defence_jitter: int = 10
    timer_resolution: int = 5
    anomaly_threshold: float = 12.0

    seed: Optional[int] = None
    defences: Dict[str, bool] = field(default_factory=_default_defences)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'SimulatorConfig':
        """Build a config, rejecting unknown keys and bad toggles."""
        data = dict(data or {})
        try:
            config = cls(**data)
        except TypeError as e:
            raise ConfigurationError(f"Invalid simulator config: {e}") from e

        if not isinstance(config.defences, dict):
            raise ConfigurationError(
                f"Invalid defences section: expected a mapping, got {config.defences!r}"
            )
        try:
            config.defence_state()
        except ToggleError as e:
            raise ConfigurationError(f"Invalid defences section: {e}") from e

        config.validate()
        return config

    def validate(self) -> None:
        """Range-check every numeric field."""
        for name in POSITIVE_INTS:
            value = getattr(self, name)
            if not _is_int(value) or value < 1:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")

        for name in NON_NEGATIVE_INTS:
            value = getattr(self, name)
            if not _is_int(value) or value < 0:
                raise ConfigurationError(f"{name} must be a non-negative integer, got {value!r}")

        if not is_finite_number(self.prime_base) or self.prime_base < 0:
            raise ConfigurationError(
                f"prime_base must be a non-negative number, got {self.prime_base!r}"
            )
        if not is_finite_number(self.anomaly_threshold) or self.anomaly_threshold < 0:
            raise ConfigurationError(
                f"anomaly_threshold must be a non-negative number, got {self.anomaly_threshold!r}"
            )
        if not _is_int(self.predictor_initial) or \
                not COUNTER_MIN <= self.predictor_initial <= COUNTER_MAX:
            raise ConfigurationError(
                f"predictor_initial must be in [{COUNTER_MIN}, {COUNTER_MAX}], "
                f"got {self.predictor_initial!r}"
            )
        if not _is_int(self.predictor_threshold) or \
                not COUNTER_MIN <= self.predictor_threshold <= COUNTER_MAX + 1:
            raise ConfigurationError(
                f"predictor_threshold must be in [{COUNTER_MIN}, {COUNTER_MAX + 1}], "
                f"got {self.predictor_threshold!r}"
            )
        if self.seed is not None and (not _is_int(self.seed) or self.seed < 0):
            raise ConfigurationError(
                f"seed must be a non-negative integer or null, got {self.seed!r}"
            )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'SimulatorConfig':
        """Load a config from YAML."""
        data = load_config(path)
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return cls.from_dict(data.get('simulator', data))

    def defence_state(self) -> DefenceState:
        """Initial toggle state for the defence toolkit."""
        return DefenceState.from_dict(self.defences)

    def address_pool(self) -> list:
        return [i * self.address_stride for i in range(self.address_pool_size)]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_file(self, path: Union[str, Path]) -> None:
        """Write the config as YAML that `from_file` reads back."""
        save_config({'simulator': self.to_dict()}, path)
