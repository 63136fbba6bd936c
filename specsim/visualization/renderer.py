"""
Renderer Collaborators

The runner only calls into a renderer for effect and never reads
anything back.
"""

import numbers
from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional, TextIO

from ..errors import ConstructionError

RENDERER_METHODS = ('render_pipeline', 'render_cache', 'render_timings', 'log')

STAGE_TITLES = {
    'fetch': 'Fetch',
    'decode': 'Decode',
    'execute': 'Execute',
    'retire': 'Retire',
}


def format_address(address) -> str:
    """Hex for whole addresses (sign kept), plain decimal for fractional ones."""
    if not isinstance(address, numbers.Integral) and not float(address).is_integer():
        return f"{float(address):g}"
    value = int(address)
    sign = '-' if value < 0 else ''
    return f"{sign}0x{abs(value):02x}"


class Renderer(ABC):
    """Interface consumed by the scenario runner."""

    @abstractmethod
    def render_pipeline(self, stages: List) -> None:
        """Draw the pipeline view (list of StageView)."""
        pass

    @abstractmethod
    def render_cache(self, levels: List[Dict]) -> None:
        """Draw resident cache lines per level."""
        pass

    @abstractmethod
    def render_timings(self, timings: Mapping[str, float], detection) -> None:
        """Draw timing bars plus the optional AnomalyReport."""
        pass

    @abstractmethod
    def log(self, message: str) -> None:
        pass


class NullRenderer(Renderer):
    """Discards everything. Used for batch and comparison runs."""

    def render_pipeline(self, stages: List) -> None:
        pass

    def render_cache(self, levels: List[Dict]) -> None:
        pass

    def render_timings(self, timings: Mapping[str, float], detection) -> None:
        pass

    def log(self, message: str) -> None:
        pass


class TextRenderer(Renderer):
    """
    Plain-text renderer for terminals.

    Speculative tokens are marked with '*', timings drawn as bars scaled
    to `bar_width` characters at the top of the timing range.
    """

    def __init__(self, stream: TextIO, bar_width: int = 36, scale_max: float = 180):
        if stream is None or not callable(getattr(stream, 'write', None)):
            raise ConstructionError("TextRenderer requires a writable stream")
        self.stream = stream
        self.bar_width = bar_width
        self.scale_max = scale_max

    def _write(self, line: str = "") -> None:
        self.stream.write(line + "\n")

    def render_pipeline(self, stages: List) -> None:
        self._write("Pipeline:")
        for view in stages:
            tokens = [
                f"{instr.label}*" if instr.speculative else instr.label
                for instr in view.instructions
            ]
            title = STAGE_TITLES.get(view.stage, view.stage)
            self._write(f"  {title:<8} | {' '.join(tokens) or '-'}")

    def render_cache(self, levels: List[Dict]) -> None:
        self._write("Cache:")
        for level in levels:
            lines = ' '.join(format_address(address) for address in level['lines'])
            self._write(f"  {level['name']:<3} [{len(level['lines'])}] {lines or '-'}")

    def render_timings(self, timings: Mapping[str, float], detection=None) -> None:
        self._write("Timings:")
        for name, value in timings.items():
            filled = int(round(min(value, self.scale_max) / self.scale_max * self.bar_width))
            self._write(f"  {name:<10} {'#' * filled:<{self.bar_width}} {value:g}")

        if detection is not None:
            verdict = "suspicious" if detection.suspicious else "normal"
            self._write(
                f"  detection: avg={detection.avg:.2f} std={detection.std:.2f} ({verdict})"
            )

    def log(self, message: str) -> None:
        self._write(f"> {message}")


def check_renderer(renderer: Optional[object]) -> None:
    """Raise ConstructionError unless `renderer` exposes the full interface."""
    if renderer is None:
        raise ConstructionError("ScenarioRunner requires a renderer")
    missing = [m for m in RENDERER_METHODS if not callable(getattr(renderer, m, None))]
    if missing:
        raise ConstructionError(f"Renderer is missing method(s): {', '.join(missing)}")
