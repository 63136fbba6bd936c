"""
Metrics Collection

Aggregates scenario results across repeated runs.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

import numpy as np


@dataclass
class ModeMetrics:
    """Metrics for one mode (baseline or defended)."""
    runs: int = 0
    mispredictions: int = 0
    speculative_hits: int = 0
    detections: int = 0
    suspicious: int = 0
    timings: Dict[str, List[float]] = field(default_factory=dict)

    @property
    def misprediction_rate(self) -> float:
        if self.runs == 0:
            return 0.0
        return self.mispredictions / self.runs

    @property
    def suspicious_rate(self) -> float:
        """Fraction of runs with detection enabled that were flagged."""
        if self.detections == 0:
            return 0.0
        return self.suspicious / self.detections

    def reset(self) -> None:
        self.runs = 0
        self.mispredictions = 0
        self.speculative_hits = 0
        self.detections = 0
        self.suspicious = 0
        self.timings = {}


class MetricsCollector:
    """
    Collects scenario metrics keyed by mode.
    """

    def __init__(self):
        self._modes: Dict[str, ModeMetrics] = {}

    def register_mode(self, name: str) -> None:
        self._modes[name] = ModeMetrics()

    def record(self, mode: str, result) -> None:
        """
        Record a ScenarioResult.

        Args:
            mode: 'baseline', 'defended' or any caller label
            result: ScenarioResult from a runner
        """
        if mode not in self._modes:
            self.register_mode(mode)

        metrics = self._modes[mode]
        metrics.runs += 1
        if result.mispredict:
            metrics.mispredictions += 1
        if result.speculative_access.hit:
            metrics.speculative_hits += 1
        if result.detection is not None:
            metrics.detections += 1
            if result.detection.suspicious:
                metrics.suspicious += 1

        for phase, value in result.measurements.items():
            metrics.timings.setdefault(phase, []).append(float(value))

    def get_mode_stats(self, mode: str) -> Dict[str, Any]:
        """Get statistics for a mode."""
        if mode not in self._modes:
            return {}

        metrics = self._modes[mode]
        timing_stats = {
            phase: {
                'mean': float(np.mean(values)),
                'std': float(np.std(values)),
                'min': float(np.min(values)),
                'max': float(np.max(values)),
            }
            for phase, values in metrics.timings.items()
        }

        return {
            'runs': metrics.runs,
            'mispredictions': metrics.mispredictions,
            'misprediction_rate': metrics.misprediction_rate,
            'speculative_hits': metrics.speculative_hits,
            'detections': metrics.detections,
            'suspicious': metrics.suspicious,
            'suspicious_rate': metrics.suspicious_rate,
            'timings': timing_stats,
        }

    @property
    def modes(self) -> List[str]:
        return list(self._modes)

    def reset(self) -> None:
        for metrics in self._modes.values():
            metrics.reset()

    def get_comparison_table(self) -> str:
        """Get comparison table as formatted string."""
        if not self._modes:
            return "No modes recorded"

        phases = sorted({p for m in self._modes.values() for p in m.timings})

        header = f"{'Mode':<10} {'Runs':>6} {'Mispred':>8} {'Suspicious':>11}"
        header += ''.join(f" {phase:>12}" for phase in phases)
        lines = [
            "Mode Comparison (mean timing):",
            "-" * len(header),
            header,
            "-" * len(header),
        ]

        for name, metrics in self._modes.items():
            row = (f"{name:<10} {metrics.runs:>6} {metrics.mispredictions:>8} "
                   f"{metrics.suspicious:>11}")
            for phase in phases:
                values = metrics.timings.get(phase)
                row += f" {np.mean(values):>12.2f}" if values else f" {'-':>12}"
            lines.append(row)

        lines.append("-" * len(header))
        return "\n".join(lines)
