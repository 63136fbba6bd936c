# Simulation Package
from .config import SimulatorConfig
from .scenarios import ATTACK_PATTERNS, AttackPattern, get_pattern, load_scenarios
from .runner import ScenarioRunner, ScenarioResult
from .metrics import MetricsCollector
from .comparison import ComparisonReport, compare_modes

__all__ = [
    'SimulatorConfig',
    'ATTACK_PATTERNS',
    'AttackPattern',
    'get_pattern',
    'load_scenarios',
    'ScenarioRunner',
    'ScenarioResult',
    'MetricsCollector',
    'ComparisonReport',
    'compare_modes',
]
