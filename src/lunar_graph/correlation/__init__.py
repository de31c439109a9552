"""Pairwise account correlation without a graph."""

from lunar_graph.correlation.schema import (
    CorrelationAccount,
    CorrelationResult,
    CorrelationStatus,
    TradeMatch,
)
from lunar_graph.correlation.analyzer import (
    correlate_pair,
    correlation_status,
    max_correlation_score,
    run_correlation_analysis,
    summarize_correlations,
)

__all__ = [
    "CorrelationAccount",
    "CorrelationResult",
    "CorrelationStatus",
    "TradeMatch",
    "correlate_pair",
    "correlation_status",
    "max_correlation_score",
    "run_correlation_analysis",
    "summarize_correlations",
]
