"""Record validators."""

from lunar_graph.data.validators.schema_validator import (
    ValidationResult,
    validate_record,
    validate_records,
    validate_affiliates,
    validate_clients,
    validate_trades,
    validate_tracking,
)

__all__ = [
    "ValidationResult",
    "validate_record",
    "validate_records",
    "validate_affiliates",
    "validate_clients",
    "validate_trades",
    "validate_tracking",
]
