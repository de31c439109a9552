"""Commission Analyzer Output Schema.

Pydantic models for per-account commission anomalies and win/loss analyses.
"""

from typing import Literal

from pydantic import BaseModel, Field

from lunar_graph.detection.severity import Severity


AnomalyType = Literal["high_volume_low_value", "unusual_pattern", "rapid_churn"]


class TradeMetrics(BaseModel):
    """Volume figures for one account."""

    trade_count: int = Field(..., ge=0)
    avg_amount: float = Field(..., ge=0)
    total_volume: float = Field(..., ge=0)
    estimated_commission: float = Field(..., ge=0)


class CommissionAnomaly(BaseModel):
    """An account whose trading pattern suggests commission abuse."""

    account_id: str
    account_label: str
    anomaly_type: AnomalyType
    description: str
    severity: Severity
    metrics: TradeMetrics


class WinLossAnalysis(BaseModel):
    """Win/loss profile of one account.

    suspicion_level is low when only informational notes apply.
    """

    account_id: str
    account_label: str
    win_rate: float = Field(..., ge=0.0, le=1.0)
    loss_rate: float = Field(..., ge=0.0, le=1.0)
    trade_count: int = Field(..., ge=0)
    net_profit: float
    suspicion_level: Severity = Severity.LOW
    notes: list[str] = Field(default_factory=list)
