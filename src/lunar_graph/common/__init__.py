"""Common utilities - logging, config, exceptions."""

from lunar_graph.common.logging.logger import get_logger
from lunar_graph.common.config import (
    Config,
    DetectionThresholds,
    get_config,
    reset_config,
    get_thresholds,
    reset_thresholds,
)
from lunar_graph.common.exceptions import (
    LunarGraphException,
    ConfigurationError,
    ValidationError,
    GraphIntegrityError,
    AnalyzerError,
    FeedError,
    RingStoreError,
)

__all__ = [
    # Logging
    "get_logger",
    # Config
    "Config",
    "DetectionThresholds",
    "get_config",
    "reset_config",
    "get_thresholds",
    "reset_thresholds",
    # Exceptions
    "LunarGraphException",
    "ConfigurationError",
    "ValidationError",
    "GraphIntegrityError",
    "AnalyzerError",
    "FeedError",
    "RingStoreError",
]
