"""
Scenario Catalog

Static attack recipes. A pattern trains the predictor with `training`
and then resolves the branch as `trigger`.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple, Union

import numpy as np

from ..errors import ConfigurationError, PatternError
from ..utils.helpers import load_config


@dataclass(frozen=True)
class AttackPattern:
    """Validated, immutable attack recipe."""
    name: str
    training: Tuple[bool, ...]
    trigger: bool
    description: str = ""

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise PatternError("Pattern must include a non-empty name")
        if not isinstance(self.training, (list, tuple)) or \
                any(not isinstance(v, (bool, np.bool_)) for v in self.training):
            raise PatternError("Pattern.training must be a sequence of booleans")
        if not isinstance(self.trigger, (bool, np.bool_)):
            raise PatternError("Pattern.trigger must be a boolean")
        if not isinstance(self.description, str):
            raise PatternError("Pattern.description must be a string")
        object.__setattr__(self, 'training', tuple(bool(v) for v in self.training))
        object.__setattr__(self, 'trigger', bool(self.trigger))

    @classmethod
    def from_dict(cls, data: Any) -> 'AttackPattern':
        if isinstance(data, AttackPattern):
            return data
        if not isinstance(data, Mapping):
            raise PatternError(
                f"Pattern must be a mapping, got {type(data).__name__}"
            )
        return cls(
            name=data.get('name'),
            training=data.get('training'),
            trigger=data.get('trigger'),
            description=data.get('description', ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'description': self.description,
            'training': list(self.training),
            'trigger': self.trigger,
        }


ATTACK_PATTERNS: Dict[str, AttackPattern] = {
    'branchTrain': AttackPattern(
        name='Branch training & mistrain',
        description='Trains the predictor to take a branch, then flips outcome '
                    'to model speculative load.',
        training=(True, True, True, True),
        trigger=False,
    ),
    'reverseTrain': AttackPattern(
        name='Not-taken training',
        description='Trains the predictor towards not-taken, then takes the branch.',
        training=(False, False, False, False),
        trigger=True,
    ),
    'steadyState': AttackPattern(
        name='Steady taken branch',
        description='Consistent outcomes; the predictor is never wrong.',
        training=(True, True, True, True),
        trigger=True,
    ),
}


def load_scenarios(path: Union[str, Path]) -> Dict[str, AttackPattern]:
    """
    Load a scenario catalog from YAML.

    The file maps scenario keys to pattern mappings, optionally nested
    under a top-level 'scenarios' key.
    """
    data = load_config(path)
    catalog = data.get('scenarios', data) if isinstance(data, dict) else data
    if not isinstance(catalog, dict):
        raise ConfigurationError(f"Scenario file {path} must contain a mapping")

    patterns = {}
    for key, entry in catalog.items():
        try:
            patterns[key] = AttackPattern.from_dict(entry)
        except PatternError as e:
            raise ConfigurationError(f"Scenario '{key}' in {path}: {e}") from e
    return patterns


def get_pattern(key: str, catalog: Mapping[str, AttackPattern] = None) -> AttackPattern:
    """Look up a scenario by key."""
    catalog = ATTACK_PATTERNS if catalog is None else catalog
    if key not in catalog:
        raise KeyError(f"Unknown scenario: {key} (available: {sorted(catalog)})")
    return catalog[key]
