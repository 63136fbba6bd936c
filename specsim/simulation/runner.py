"""
Attack Scenario Runner

Ties the predictor, cache, pipeline and defence toolkit into one
reproducible Prime+Probe style scenario.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

import numpy as np

from ..components.cache import AccessResult, CacheHierarchy
from ..components.pipeline import Pipeline, StageView, build_speculative_sequence
from ..components.predictor import BranchPredictor
from ..defence.timing import clamp_timing
from ..defence.toolkit import AnomalyReport, DefenceState, DefenceToolkit
from ..errors import ConstructionError, ToggleError
from ..visualization.renderer import check_renderer
from .config import SimulatorConfig
from .scenarios import AttackPattern


@dataclass
class ScenarioResult:
    """Summary of one scenario run."""
    summary: str
    prime_results: List[AccessResult]
    training_results: List[bool]
    mispredict: bool
    speculative_access: AccessResult
    probe_results: List[AccessResult]
    measurements: Dict[str, float]
    detection: Optional[AnomalyReport]

    pattern_name: str = ""
    defended: bool = False
    defence_state: DefenceState = field(default_factory=DefenceState.disabled)
    pipeline: List[StageView] = field(default_factory=list)
    cache_snapshot: List[Dict] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to primitives for JSON/YAML serialization."""
        return {
            'summary': self.summary,
            'pattern_name': self.pattern_name,
            'defended': self.defended,
            'defence_state': self.defence_state.to_dict(),
            'prime_results': [r.to_dict() for r in self.prime_results],
            'training_results': list(self.training_results),
            'mispredict': self.mispredict,
            'speculative_access': self.speculative_access.to_dict(),
            'probe_results': [r.to_dict() for r in self.probe_results],
            'measurements': {k: float(v) for k, v in self.measurements.items()},
            'detection': self.detection.to_dict() if self.detection is not None else None,
            'pipeline': [view.to_dict() for view in self.pipeline],
            'cache_snapshot': self.cache_snapshot,
        }

    def get_summary(self) -> str:
        """Get text summary of the run."""
        mode = "defended" if self.defended else "baseline"
        lines = [
            f"Scenario: {self.pattern_name} ({mode})",
            f"Result: {self.summary}",
            f"Mispredict: {self.mispredict}",
            f"Speculative access: {self.speculative_access.level} "
            f"(hit={self.speculative_access.hit}, latency={self.speculative_access.latency})",
        ]
        for name, value in self.measurements.items():
            lines.append(f"  {name}: {value:g}")
        if self.detection is not None:
            lines.append(
                f"Detection: avg={self.detection.avg:.2f} std={self.detection.std:.2f} "
                f"suspicious={self.detection.suspicious}"
            )
        return "\n".join(lines)


class ScenarioRunner:
    """
    Scenario runner.

    The cache and predictor persist for the lifetime of the runner, so
    consecutive runs see each other's effects. Concurrent `run` calls on
    one runner are serialized by a lock; use separate runners for
    independent scenarios.
    """

    def __init__(self, renderer, defence: DefenceToolkit,
                 logger: Optional[logging.Logger] = None,
                 cache: Optional[CacheHierarchy] = None,
                 predictor: Optional[BranchPredictor] = None,
                 pipeline: Optional[Pipeline] = None,
                 config: Optional[SimulatorConfig] = None):
        """
        Initialize the runner.

        Args:
            renderer: Renderer collaborator (render_pipeline, render_cache,
                render_timings, log)
            defence: Defence toolkit holding the current mitigation state
            logger: Logger for scenario summaries
            cache: Cache hierarchy (default: built from config)
            predictor: Branch predictor (default: built from config)
            pipeline: Pipeline mapper
            config: Simulator configuration
        """
        check_renderer(renderer)
        if defence is None:
            raise ConstructionError("ScenarioRunner requires a defence toolkit")

        self.config = config if config is not None else SimulatorConfig()
        self.renderer = renderer
        self.defence = defence
        self.logger = logger if logger is not None else logging.getLogger(__name__)

        self.cache = cache if cache is not None else CacheHierarchy.from_config(self.config)
        self.predictor = predictor if predictor is not None else BranchPredictor(
            threshold=self.config.predictor_threshold,
            initial=self.config.predictor_initial,
            history_length=self.config.history_length,
        )
        self.pipeline = pipeline if pipeline is not None else Pipeline()

        self._address_pool = self.config.address_pool()
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: SimulatorConfig, renderer,
                    logger: Optional[logging.Logger] = None,
                    rng: Optional[np.random.Generator] = None) -> 'ScenarioRunner':
        """Build a runner and its defence toolkit from one config."""
        defence = DefenceToolkit(
            state=config.defence_state(),
            rng=rng,
            seed=config.seed,
            jitter_spread=config.defence_jitter,
            timer_resolution=config.timer_resolution,
            anomaly_threshold=config.anomaly_threshold,
        )
        return cls(renderer, defence, logger=logger, config=config)

    async def run(self, pattern: Union[AttackPattern, Mapping],
                  defended: bool = False) -> ScenarioResult:
        """
        Execute a scenario and update the renderer.

        Args:
            pattern: Attack recipe (AttackPattern or mapping)
            defended: Whether to apply the toolkit's mitigation state

        Returns:
            ScenarioResult summary of the run
        """
        pattern = self._validate_pattern(pattern)
        if not isinstance(defended, bool):
            raise ToggleError(
                f"ScenarioRunner.run requires a boolean defended flag, got {defended!r}"
            )

        async with self._lock:
            return self._execute(pattern, defended)

    def _execute(self, pattern: AttackPattern, defended: bool) -> ScenarioResult:
        state = self.defence.get_state(defended)

        addresses = self._select_addresses(len(pattern.training) + 2, state)
        prime_results = self.cache.prime(addresses)

        # Mistrain, then resolve the branch
        training_results = [self.predictor.predict(outcome) for outcome in pattern.training]
        mispredict = self.predictor.predict(pattern.trigger) != pattern.trigger

        sequence = build_speculative_sequence(pattern.trigger)
        pipeline_view = self.pipeline.simulate(sequence, mispredict and not state.fence)

        speculative_access = self.cache.access(addresses[0])
        probe_results = self.cache.probe(addresses[:4])

        spread = self.config.scenario_jitter if state.jitter else 0
        probe_mean = float(np.mean([p.latency for p in probe_results]))
        base_timing = {
            'prime': self._artificial_delay(self.config.prime_base, spread),
            'speculate': self._artificial_delay(speculative_access.latency * 2, spread),
            'probe': self._artificial_delay(probe_mean, spread),
        }

        if state.constant_time:
            timings = self.defence.apply_constant_time(base_timing)
        else:
            timings = self.defence.apply_defences(base_timing, mispredict, state)

        measurements = self.defence.clamp_timing(timings) if state.clamp_timers else timings
        detection = self.defence.detect_anomaly(measurements) if state.detection else None

        cache_snapshot = self.cache.snapshot()
        self.renderer.render_pipeline(pipeline_view)
        self.renderer.render_cache(cache_snapshot)
        self.renderer.render_timings(measurements, detection)
        self.logger.info(
            f"Scenario '{pattern.name}' executed with mispredict={mispredict} "
            f"(defended={defended})"
        )

        return ScenarioResult(
            summary='Speculative path observed' if mispredict else 'No speculation observed',
            prime_results=prime_results,
            training_results=training_results,
            mispredict=mispredict,
            speculative_access=speculative_access,
            probe_results=probe_results,
            measurements=measurements,
            detection=detection,
            pattern_name=pattern.name,
            defended=defended,
            defence_state=state,
            pipeline=pipeline_view,
            cache_snapshot=cache_snapshot,
        )

    def _artificial_delay(self, base: float, spread: int = 0) -> float:
        """Synthetic timing value, optionally blurred, clamped to the display range."""
        offset = self.defence.jitter(spread) if spread else 0
        return clamp_timing(base + offset)

    def _select_addresses(self, count: int, state: DefenceState) -> List:
        """Deterministic slice of the mock address pool, passed through the fence."""
        return self.defence.apply_fence(self._address_pool[:count], state)

    def _validate_pattern(self, pattern) -> AttackPattern:
        return AttackPattern.from_dict(pattern)

    def reset(self) -> None:
        """Reset shared cache and predictor state."""
        self.cache.reset()
        self.predictor.reset()
