"""
Comparative Runs

Run a pattern repeatedly without and with mitigations and compare the
observable timing signal.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Union

from tqdm import tqdm

from .metrics import MetricsCollector
from .scenarios import AttackPattern

MODES = (('baseline', False), ('defended', True))


@dataclass
class ComparisonReport:
    """Container for comparison results."""
    pattern_name: str
    repeats: int
    modes: Dict[str, Dict[str, Any]]
    table: str
    defence: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pattern_name': self.pattern_name,
            'repeats': self.repeats,
            'modes': self.modes,
            'defence': self.defence,
        }

    def get_summary(self) -> str:
        lines = [f"Pattern: {self.pattern_name} x{self.repeats}"]
        if self.defence:
            enabled = [k for k, v in self.defence['state'].items() if v]
            lines.append(f"Defended mode toggles: {', '.join(enabled) or 'none'}")
        lines.append(self.table)
        return "\n".join(lines)


async def compare_modes(runner, pattern: Union[AttackPattern, Mapping],
                        repeats: int = 10,
                        verbose: bool = False) -> ComparisonReport:
    """
    Run `pattern` `repeats` times per mode on one runner.

    Modes alternate run by run so both see the same evolving cache and
    predictor state.

    Args:
        runner: ScenarioRunner
        pattern: Attack recipe
        repeats: Runs per mode
        verbose: Show a progress bar

    Returns:
        ComparisonReport
    """
    if repeats < 1:
        raise ValueError(f"repeats must be positive, got {repeats}")

    pattern = AttackPattern.from_dict(pattern)
    metrics = MetricsCollector()
    for mode, _ in MODES:
        metrics.register_mode(mode)

    progress = tqdm(total=repeats * len(MODES), desc="Comparing",
                    unit="runs", disable=not verbose)
    try:
        for _ in range(repeats):
            for mode, defended in MODES:
                result = await runner.run(pattern, defended)
                metrics.record(mode, result)
                progress.update(1)
    finally:
        progress.close()

    return ComparisonReport(
        pattern_name=pattern.name,
        repeats=repeats,
        modes={mode: metrics.get_mode_stats(mode) for mode in metrics.modes},
        table=metrics.get_comparison_table(),
        defence=runner.defence.get_statistics(),
    )
