"""Severity bands shared by ring extraction and every analyzer."""

from enum import Enum
from typing import Optional

from lunar_graph.common.config.thresholds import SeverityBands


class Severity(str, Enum):
    """Ordinal risk band."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Sort key, most severe first
SEVERITY_ORDER = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
}


def severity_for_score(score: float, bands: Optional[SeverityBands] = None) -> Severity:
    """Map a 0-100 score to a severity band.

    <40 low, [40,60) medium, [60,80) high, >=80 critical with the default
    bands.
    """
    bands = bands or SeverityBands()
    if score >= bands.critical:
        return Severity.CRITICAL
    if score >= bands.high:
        return Severity.HIGH
    if score >= bands.medium:
        return Severity.MEDIUM
    return Severity.LOW


def severity_rank(severity) -> int:
    """Sort key for a Severity or its string value."""
    return SEVERITY_ORDER[Severity(severity)]


def max_severity(first: Severity, second: Severity) -> Severity:
    """The more severe of two bands."""
    return first if severity_rank(first) <= severity_rank(second) else second
