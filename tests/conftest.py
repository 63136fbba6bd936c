"""Shared fixtures for the simulator tests."""

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from specsim.defence.toolkit import DefenceToolkit
from specsim.simulation.runner import ScenarioRunner


class RecordingRenderer:
    """Renderer stub that keeps every call."""

    def __init__(self):
        self.pipelines = []
        self.caches = []
        self.timings = []
        self.messages = []

    def render_pipeline(self, stages):
        self.pipelines.append(stages)

    def render_cache(self, levels):
        self.caches.append(levels)

    def render_timings(self, timings, detection):
        self.timings.append((timings, detection))

    def log(self, message):
        self.messages.append(message)


class FixedRng:
    """Stand-in generator whose integers() always returns `value`."""

    def __init__(self, value: int):
        self.value = value
        self.calls = []

    def integers(self, low, high=None):
        self.calls.append((low, high))
        return self.value


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def toolkit():
    return DefenceToolkit(seed=1234)


@pytest.fixture
def runner(renderer, toolkit):
    return ScenarioRunner(renderer, toolkit)
