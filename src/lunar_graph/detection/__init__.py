"""Fraud ring detection.

Connected components over fraud-relevant edges, classified into typed rings
with a severity table shared by every analyzer.
"""

from lunar_graph.detection.severity import (
    Severity,
    SEVERITY_ORDER,
    severity_for_score,
    severity_rank,
)
from lunar_graph.detection.community import Cluster, detect_communities
from lunar_graph.detection.detector import FraudRingDetector

__all__ = [
    "Severity",
    "SEVERITY_ORDER",
    "severity_for_score",
    "severity_rank",
    "Cluster",
    "detect_communities",
    "FraudRingDetector",
]
