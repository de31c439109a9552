"""Commission and behavioral anomaly analyzer."""

from lunar_graph.agents.commission.agent import CommissionAgent, trades_per_hour
from lunar_graph.agents.commission.schema import (
    CommissionAnomaly,
    TradeMetrics,
    WinLossAnalysis,
)

__all__ = [
    "CommissionAgent",
    "trades_per_hour",
    "CommissionAnomaly",
    "TradeMetrics",
    "WinLossAnalysis",
]
