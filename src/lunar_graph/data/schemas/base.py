"""Shared base for ingested record schemas."""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive timestamps so all comparisons are aware."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def blank_to_none(value: Any) -> Any:
    """Treat empty identity strings as absent."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


class RecordModel(BaseModel):
    """Base for feed records.

    Accepts both snake_case and camelCase keys. Unknown keys are ignored
    since feeds routinely carry more columns than the engine reads.
    """

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "ignore",
        "str_strip_whitespace": True,
    }
