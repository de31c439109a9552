"""Detection thresholds - every tunable policy constant in one place.

Thresholds are operational policy, not derived values. Defaults match the
reference behavior; a YAML file can override any subset of them.
"""

from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from lunar_graph.common.exceptions import ConfigurationError


class GraphThresholds(BaseModel):
    """Edge heuristic parameters."""
    timing_window_seconds: float = Field(default=60.0, gt=0)
    opposite_window_seconds: float = Field(default=5.0, gt=0)
    amount_tolerance: float = Field(default=0.20, ge=0, le=1)
    ip_exact_weight: float = Field(default=0.9, ge=0, le=1)
    ip_prefix_weight: float = Field(default=0.6, ge=0, le=1)
    ip_prefix_match: bool = True
    ip_prefix_octets: int = Field(default=3, ge=1, le=3)
    device_match_weight: float = Field(default=1.0, ge=0, le=1)

    @model_validator(mode="after")
    def _check_windows(self) -> "GraphThresholds":
        if self.opposite_window_seconds > self.timing_window_seconds:
            raise ValueError("opposite_window_seconds must not exceed timing_window_seconds")
        return self


class RiskWeights(BaseModel):
    """Points contributed by each local risk signal."""
    base_affiliate: int = Field(default=10, ge=0)
    base_client: int = Field(default=10, ge=0)
    base_trade: int = Field(default=5, ge=0)
    base_ip: int = Field(default=0, ge=0)
    base_device: int = Field(default=0, ge=0)
    device_match: float = Field(default=30.0, ge=0)
    opposite_position: float = Field(default=25.0, ge=0)
    ip_overlap: float = Field(default=20.0, ge=0)
    timing_sync: float = Field(default=10.0, ge=0)
    prior_ring: int = Field(default=20, ge=0)
    large_trade: int = Field(default=15, ge=0)
    large_trade_amount: float = Field(default=1000.0, gt=0)
    shared_infrastructure_per_account: int = Field(default=15, ge=0)


class SeverityBands(BaseModel):
    """Lower bounds of the medium, high and critical bands."""
    medium: float = 40.0
    high: float = 60.0
    critical: float = 80.0

    @model_validator(mode="after")
    def _check_order(self) -> "SeverityBands":
        if not (self.medium <= self.high <= self.critical):
            raise ValueError("severity bands must be ordered medium <= high <= critical")
        return self


class RingThresholds(BaseModel):
    """Fraud ring qualification and scoring."""
    min_avg_risk_score: float = Field(default=30.0, ge=0, le=100)
    min_fraud_edges: int = Field(default=1, ge=0)
    confidence_base: int = Field(default=40, ge=0)
    confidence_per_fraud_edge: int = Field(default=15, ge=0)
    confidence_cap: int = Field(default=95, ge=0, le=95)
    max_evidence: int = Field(default=10, ge=0)
    dedup_entity_prefix: int = Field(default=3, ge=1)
    # Active rings consulted for the prior-membership bonus
    prior_ring_limit: int = Field(default=50, ge=1)


class TimingTier(BaseModel):
    """Bonus awarded when a time delta is strictly below max_delta_ms."""
    max_delta_ms: float = Field(..., gt=0)
    bonus: float = Field(..., ge=0)


class OppositeTradeThresholds(BaseModel):
    """Opposite-trade fraud scoring."""
    base_score: float = 50.0
    amount_ratio_weight: float = 20.0
    timing_tiers: List[TimingTier] = Field(
        default_factory=lambda: [
            TimingTier(max_delta_ms=1000, bonus=20),
            TimingTier(max_delta_ms=3000, bonus=15),
            TimingTier(max_delta_ms=5000, bonus=10),
        ]
    )
    default_time_delta_ms: float = 10000.0
    top_findings: int = Field(default=5, ge=0)

    @model_validator(mode="after")
    def _sort_tiers(self) -> "OppositeTradeThresholds":
        self.timing_tiers = sorted(self.timing_tiers, key=lambda t: t.max_delta_ms)
        return self


class CommissionThresholds(BaseModel):
    """Commission and win/loss anomaly detection."""
    min_trades: int = 3
    high_volume_min_trades: int = 10
    high_volume_max_avg_amount: float = 5.0
    high_volume_high_severity_trades: int = 20
    churn_min_trades: int = 15
    churn_max_trades_per_hour: float = 20.0
    anomaly_min_trades: int = 10
    anomaly_win_rate: float = 0.9
    all_loss_min_trades: int = 5
    win_loss_min_trades: int = 5
    suspicious_win_rate: float = 0.85
    suspicious_loss_rate: float = 0.85
    even_split_tolerance: float = 0.05
    even_split_min_trades: int = 10
    win_profit_multiple: float = 3.0
    commission_rate: float = 0.045
    top_findings: int = 5
    anomaly_confidence: int = 75
    win_loss_confidence: int = 70


class CorrelationThresholds(BaseModel):
    """Pairwise account correlation."""
    window_seconds: float = Field(default=60.0, gt=0)
    amount_tolerance: float = Field(default=0.20, ge=0)
    timing_weight: float = 0.25
    direction_weight: float = 0.35
    amount_weight: float = 0.20
    symbol_weight: float = 0.20
    flagged_score: float = 70.0
    suspicious_score: float = 50.0


class DetectionThresholds(BaseModel):
    """All detection policy, grouped by component."""
    graph: GraphThresholds = Field(default_factory=GraphThresholds)
    risk: RiskWeights = Field(default_factory=RiskWeights)
    severity: SeverityBands = Field(default_factory=SeverityBands)
    rings: RingThresholds = Field(default_factory=RingThresholds)
    opposite_trade: OppositeTradeThresholds = Field(default_factory=OppositeTradeThresholds)
    commission: CommissionThresholds = Field(default_factory=CommissionThresholds)
    correlation: CorrelationThresholds = Field(default_factory=CorrelationThresholds)


def load_thresholds(path: Optional[Union[str, Path]] = None) -> DetectionThresholds:
    """Load thresholds from a YAML file.

    Args:
        path: YAML file to read. Defaults are returned when None.

    Returns:
        Validated DetectionThresholds

    Raises:
        ConfigurationError: If the file is missing or invalid
    """
    if path is None:
        return DetectionThresholds()

    path = Path(path)
    if not path.exists():
        raise ConfigurationError(
            f"Thresholds file not found: {path}",
            details={"path": str(path)},
        )

    try:
        with open(path, "r") as f:
            raw_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Malformed thresholds file: {path}",
            details={"path": str(path), "error": str(e)},
        ) from e

    try:
        return DetectionThresholds.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid thresholds file: {path}",
            details={"path": str(path), "errors": e.errors()},
        ) from e


# Singleton instance
_thresholds: Optional[DetectionThresholds] = None


def get_thresholds() -> DetectionThresholds:
    """Get the global thresholds, loading the configured file once."""
    global _thresholds
    if _thresholds is None:
        from lunar_graph.common.config.settings import get_config

        thresholds_file = get_config().resolved_thresholds_file
        _thresholds = load_thresholds(thresholds_file) if thresholds_file.exists() else DetectionThresholds()
    return _thresholds


def reset_thresholds() -> None:
    """Reset the global thresholds (for testing)."""
    global _thresholds
    _thresholds = None
