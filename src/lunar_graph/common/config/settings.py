"""Configuration management - Centralized configuration for Lunar Graph.

Provides environment-aware configuration with sensible defaults.
All configuration is loaded from environment variables with fallbacks.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class RingStoreType(str, Enum):
    """Fraud ring storage backend types."""
    MEMORY = "memory"
    FILE = "file"


def _get_project_root() -> Path:
    """Get the project root directory."""
    # settings.py -> config -> common -> lunar_graph -> src -> project_root
    current = Path(__file__).resolve()
    return current.parent.parent.parent.parent.parent


@dataclass
class Config:
    """Central configuration object for Lunar Graph.

    All settings can be overridden via environment variables prefixed with LUNAR_.

    Example:
        LUNAR_ENVIRONMENT=production
        LUNAR_LOG_LEVEL=INFO
        LUNAR_RING_STORE_TYPE=file
    """

    # Core settings
    environment: Environment = field(
        default_factory=lambda: Environment(
            os.getenv("LUNAR_ENVIRONMENT", "development")
        )
    )
    debug: bool = field(
        default_factory=lambda: os.getenv("LUNAR_DEBUG", "false").lower() == "true"
    )
    log_level: LogLevel = field(
        default_factory=lambda: LogLevel(os.getenv("LUNAR_LOG_LEVEL", "INFO"))
    )

    # Paths
    project_root: Path = field(default_factory=_get_project_root)

    # Ring persistence
    ring_store_type: RingStoreType = field(
        default_factory=lambda: RingStoreType(
            os.getenv("LUNAR_RING_STORE_TYPE", "memory")
        )
    )
    ring_store_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv("LUNAR_RING_STORE_DIR", "./data/rings")
        )
    )

    # Record fetching
    fetch_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("LUNAR_FETCH_TIMEOUT_SECONDS", "10"))
    )

    # Detection thresholds
    thresholds_file: Optional[Path] = field(
        default_factory=lambda: (
            Path(os.environ["LUNAR_THRESHOLDS_FILE"])
            if os.getenv("LUNAR_THRESHOLDS_FILE") else None
        )
    )

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.fetch_timeout_seconds <= 0:
            raise ValueError("LUNAR_FETCH_TIMEOUT_SECONDS must be positive")

        # Warn about debug in production
        if self.environment == Environment.PRODUCTION and self.debug:
            import warnings
            warnings.warn(
                "Debug mode is enabled in production environment",
                RuntimeWarning,
                stacklevel=2
            )

    @property
    def config_dir(self) -> Path:
        """Get the config directory path."""
        return self.project_root / "config"

    @property
    def resolved_thresholds_file(self) -> Path:
        """Thresholds file to load, falling back to the bundled one."""
        if self.thresholds_file is not None:
            return self.thresholds_file
        return self.config_dir / "detection_thresholds.yaml"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT


# Singleton instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Config: The global configuration singleton.
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
