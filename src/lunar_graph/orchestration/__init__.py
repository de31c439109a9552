"""Orchestration - engine facade and investigation views."""

from lunar_graph.orchestration.engine import (
    LunarGraphEngine,
    get_engine,
    reset_engine,
)
from lunar_graph.orchestration.context import (
    GraphSummary,
    HighRiskEntity,
    HighRiskReport,
    InvestigationContext,
)
from lunar_graph.orchestration.summary import (
    build_investigation_context,
    find_high_risk_entities,
    summarize_graph,
)

__all__ = [
    "LunarGraphEngine",
    "get_engine",
    "reset_engine",
    "GraphSummary",
    "HighRiskEntity",
    "HighRiskReport",
    "InvestigationContext",
    "build_investigation_context",
    "find_high_risk_entities",
    "summarize_graph",
]
