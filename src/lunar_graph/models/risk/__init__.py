"""Risk scoring for knowledge graph nodes."""

from lunar_graph.models.risk.scorer import (
    RiskScorer,
    average_account_risk,
    local_edges,
    risk_score,
)

__all__ = [
    "RiskScorer",
    "average_account_risk",
    "local_edges",
    "risk_score",
]
