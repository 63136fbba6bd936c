# Components Package
from .history import OutcomeHistory
from .predictor import BranchPredictor
from .cache import AccessResult, CacheLevel, CacheHierarchy
from .pipeline import (
    STAGES,
    Instruction,
    Pipeline,
    StageView,
    build_speculative_sequence,
)

__all__ = [
    'OutcomeHistory',
    'BranchPredictor',
    'AccessResult',
    'CacheLevel',
    'CacheHierarchy',
    'STAGES',
    'Instruction',
    'Pipeline',
    'StageView',
    'build_speculative_sequence',
]
