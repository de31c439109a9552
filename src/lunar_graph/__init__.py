"""Lunar Graph - Fraud Detection Graph Engine."""

__version__ = "0.1.0"
__author__ = "Lunar Graph Team"

# Core exports
from lunar_graph.orchestration.engine import (
    LunarGraphEngine,
    build_graph,
    detect_fraud_rings,
    load_fraud_rings,
    save_fraud_ring,
    run_pattern_analyzer,
    run_correlation_analysis,
)

__all__ = [
    "LunarGraphEngine",
    "build_graph",
    "detect_fraud_rings",
    "load_fraud_rings",
    "save_fraud_ring",
    "run_pattern_analyzer",
    "run_correlation_analysis",
]
