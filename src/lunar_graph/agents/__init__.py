"""Pattern analyzers for Lunar Graph."""

from lunar_graph.agents.schema import (
    AgentAnalysis,
    AgentFinding,
    AnalysisStatus,
    AnalyzerKind,
)
from lunar_graph.agents.base import PatternAgent
from lunar_graph.agents.opposite_trade.agent import OppositeTradeAgent
from lunar_graph.agents.commission.agent import CommissionAgent

__all__ = [
    "AgentAnalysis",
    "AgentFinding",
    "AnalysisStatus",
    "AnalyzerKind",
    "PatternAgent",
    "OppositeTradeAgent",
    "CommissionAgent",
]
