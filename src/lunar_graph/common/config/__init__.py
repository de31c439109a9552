"""Configuration module - settings and detection thresholds."""

from lunar_graph.common.config.settings import (
    Config,
    Environment,
    LogLevel,
    RingStoreType,
    get_config,
    reset_config,
)
from lunar_graph.common.config.thresholds import (
    DetectionThresholds,
    GraphThresholds,
    RiskWeights,
    SeverityBands,
    RingThresholds,
    TimingTier,
    OppositeTradeThresholds,
    CommissionThresholds,
    CorrelationThresholds,
    load_thresholds,
    get_thresholds,
    reset_thresholds,
)

__all__ = [
    # Settings
    "Config",
    "Environment",
    "LogLevel",
    "RingStoreType",
    "get_config",
    "reset_config",
    # Thresholds
    "DetectionThresholds",
    "GraphThresholds",
    "RiskWeights",
    "SeverityBands",
    "RingThresholds",
    "TimingTier",
    "OppositeTradeThresholds",
    "CommissionThresholds",
    "CorrelationThresholds",
    "load_thresholds",
    "get_thresholds",
    "reset_thresholds",
]
