"""Schema validation utilities for Lunar Graph.

Validates raw feed records at the ingestion boundary. Invalid records are
skipped and reported, never raised.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from lunar_graph.data.schemas import (
    AffiliateRecord,
    ClientRecord,
    TradeRecord,
    TrackingRecord,
)


logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class ValidationResult:
    """Result of validation operation."""

    def __init__(self, entity_type: str = "record"):
        self.entity_type = entity_type
        self.valid: bool = True
        self.errors: List[Dict[str, Any]] = []
        self.validated_count: int = 0

    def add_error(self, entity_type: str, index: int, error: str):
        """Add validation error."""
        self.valid = False
        self.errors.append({
            "entity_type": entity_type,
            "index": index,
            "error": error,
        })

    @property
    def skipped_count(self) -> int:
        """Number of records rejected."""
        return len(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "entity_type": self.entity_type,
            "valid": self.valid,
            "validated_count": self.validated_count,
            "error_count": len(self.errors),
            "errors": self.errors,
        }


def validate_record(
    record: Union[RecordT, Dict[str, Any]],
    model: Type[RecordT],
) -> Tuple[Optional[RecordT], Optional[str]]:
    """Validate a single record.

    Args:
        record: Model instance or raw dictionary
        model: Target schema

    Returns:
        (parsed record, None) if valid, (None, error message) if invalid
    """
    if isinstance(record, model):
        return record, None
    if not isinstance(record, dict):
        return None, f"Expected {model.__name__} or dict, got {type(record).__name__}"
    try:
        return model.model_validate(record), None
    except ValidationError as e:
        return None, str(e)


def validate_records(
    records: Optional[Iterable[Union[RecordT, Dict[str, Any]]]],
    model: Type[RecordT],
    entity_type: str,
) -> Tuple[List[RecordT], ValidationResult]:
    """Validate a feed, keeping valid records and logging the rest.

    Args:
        records: Raw records; None is treated as an empty feed
        model: Target schema
        entity_type: Feed name used in warnings

    Returns:
        Tuple of (valid records, ValidationResult)
    """
    result = ValidationResult(entity_type)
    valid: List[RecordT] = []

    for index, record in enumerate(records or []):
        parsed, error = validate_record(record, model)
        if parsed is None:
            result.add_error(entity_type, index, error or "unknown error")
            continue
        valid.append(parsed)
        result.validated_count += 1

    if result.errors:
        logger.warning(
            f"Skipped {result.skipped_count} invalid {entity_type} record(s)",
            extra={"entity_type": entity_type, "skipped": result.skipped_count},
        )

    return valid, result


def validate_affiliates(records) -> Tuple[List[AffiliateRecord], ValidationResult]:
    """Validate the affiliate feed."""
    return validate_records(records, AffiliateRecord, "affiliate")


def validate_clients(records) -> Tuple[List[ClientRecord], ValidationResult]:
    """Validate the client feed."""
    return validate_records(records, ClientRecord, "client")


def validate_trades(records) -> Tuple[List[TradeRecord], ValidationResult]:
    """Validate the trade feed."""
    return validate_records(records, TradeRecord, "trade")


def validate_tracking(records) -> Tuple[List[TrackingRecord], ValidationResult]:
    """Validate the tracking feed."""
    return validate_records(records, TrackingRecord, "tracking")
