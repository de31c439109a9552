"""Custom exceptions for Lunar Graph.

Provides a hierarchy of exceptions for different error types.
All Lunar Graph exceptions inherit from LunarGraphException.

Most defects never surface as exceptions: bad records are skipped, failed
feeds become empty collections and duplicate rings are a no-op. What remains
here is for programmer errors and configuration problems.
"""

from typing import Any, Dict, Optional


class LunarGraphException(Exception):
    """Base exception for all Lunar Graph errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        code: str = "LUNAR_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(LunarGraphException):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONFIG_ERROR", details=details)


class ValidationError(LunarGraphException):
    """Raised when input validation fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class GraphIntegrityError(LunarGraphException):
    """Raised when a graph violates a structural invariant.

    Only graphs assembled outside the builder can trigger this.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="GRAPH_INTEGRITY_ERROR", details=details)


class AnalyzerError(LunarGraphException):
    """Raised when an analyzer cannot be resolved or invoked."""

    def __init__(
        self,
        message: str,
        analyzer_kind: str,
        details: Optional[Dict[str, Any]] = None
    ):
        details = details or {}
        details["analyzer_kind"] = analyzer_kind
        super().__init__(message, code="ANALYZER_ERROR", details=details)


class FeedError(LunarGraphException):
    """Raised when a record feed fails."""

    def __init__(
        self,
        message: str,
        feed_name: str,
        details: Optional[Dict[str, Any]] = None
    ):
        details = details or {}
        details["feed_name"] = feed_name
        super().__init__(message, code="FEED_ERROR", details=details)


class RingStoreError(LunarGraphException):
    """Raised when fraud ring persistence fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="RING_STORE_ERROR", details=details)
