"""Synthetic record generators for tests and demos."""

from lunar_graph.data.generators.base_generator import (
    BaseGenerator,
    FINGERPRINTS,
    SYMBOLS,
)
from lunar_graph.data.generators.scenarios import (
    DEMO_SCENARIOS,
    DemoScenario,
    ScenarioGenerator,
    as_feeds,
    get_scenario,
)

__all__ = [
    "BaseGenerator",
    "FINGERPRINTS",
    "SYMBOLS",
    "DEMO_SCENARIOS",
    "DemoScenario",
    "ScenarioGenerator",
    "as_feeds",
    "get_scenario",
]
