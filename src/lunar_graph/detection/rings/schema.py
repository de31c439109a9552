"""Fraud ring schema - canonical definition.

Pydantic models for persisted fraud rings and their evidence.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from lunar_graph.detection.severity import Severity


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FraudRingType(str, Enum):
    """Ring classification."""
    OPPOSITE_TRADING = "opposite_trading"
    MULTI_ACCOUNT = "multi_account"
    IP_CLUSTERING = "ip_clustering"
    # Only created externally
    COMMISSION_PUMPING = "commission_pumping"
    TIMING_COORDINATION = "timing_coordination"


class RingStatus(str, Enum):
    """Investigation lifecycle, driven by analysts."""
    ACTIVE = "active"
    INVESTIGATING = "investigating"
    RESOLVED = "resolved"
    FALSE_POSITIVE = "false_positive"


class _CamelModel(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class FraudEvidence(_CamelModel):
    """One supporting edge rendered for investigators."""

    type: str = Field(..., description="Edge type the evidence came from")
    description: str = Field(..., description="Human-readable explanation")
    confidence: int = Field(default=50, ge=0, le=100)
    source_nodes: list[str] = Field(default_factory=list)
    source_edges: list[str] = Field(default_factory=list)
    timestamp: str = Field(..., description="ISO detection time")


class FraudRing(_CamelModel):
    """A classified, scored cluster of colluding entities.

    Entities are stored sorted so the dedup key is stable.
    """

    id: str = Field(..., min_length=1)
    name: str
    type: FraudRingType
    severity: Severity
    confidence: int = Field(..., ge=0, le=100)
    entities: list[str] = Field(..., min_length=1)
    exposure: float = Field(default=0.0, ge=0)
    evidence: list[FraudEvidence] = Field(default_factory=list)
    summary: str = ""
    status: RingStatus = RingStatus.ACTIVE
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator("entities")
    @classmethod
    def _sorted_unique(cls, value):
        return sorted(set(value))

    @property
    def is_active(self) -> bool:
        return self.status == RingStatus.ACTIVE

    def dedup_key(self, prefix: int = 3) -> list[str]:
        """The leading entities checked against active rings."""
        return self.entities[:prefix]

    def to_dict(self) -> Dict[str, Any]:
        """camelCase JSON-ready dictionary."""
        return self.model_dump(mode="json", by_alias=True)

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "3f6c1f0e-2d4b-4f7a-9b8e-1c2d3e4f5a6b",
                "name": "Multi Account Ring",
                "type": "multi_account",
                "severity": "high",
                "confidence": 55,
                "entities": ["client_cli_001", "client_cli_002"],
                "exposure": 0.0,
                "status": "active",
            }
        },
    }
