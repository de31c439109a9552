"""Pattern Analyzer Output Schema.

Pydantic models shared by every pattern analyzer. Findings are independent
of ring membership.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from lunar_graph.detection.severity import Severity


class AnalyzerKind(str, Enum):
    """Registered analyzer kinds."""
    OPPOSITE_TRADE = "opposite_trade"
    COMMISSION = "commission"
    # Provided by an external collaborator
    TEMPORAL = "temporal"


class AnalysisStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class _CamelModel(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class AgentFinding(_CamelModel):
    """A typed, severity-tagged, evidenced observation."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    type: str = Field(..., description="Finding type, e.g. opposite_trading")
    severity: Severity
    title: str
    description: str
    confidence: int = Field(..., ge=0, le=100)
    entities: list[str] = Field(default_factory=list)
    evidence: list[str] = Field(default_factory=list)
    suggested_action: str = ""

    model_config = {
        "json_schema_extra": {
            "example": {
                "type": "opposite_trading",
                "severity": "critical",
                "title": "Opposite Trading Detected: 1HZ100V",
                "description": "cli_001 (CALL) vs cli_002 (PUT) - 800ms apart",
                "confidence": 90,
                "entities": ["client_cli_001", "client_cli_002"],
                "evidence": ["Time delta: 800ms", "Amount ratio: 100.0%"],
                "suggestedAction": "Investigate account relationship and freeze suspicious accounts",
            }
        },
    }


class AgentAnalysis(_CamelModel):
    """One analyzer run over a graph."""

    agent_type: AnalyzerKind
    agent_name: str
    status: AnalysisStatus = AnalysisStatus.RUNNING
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
    findings: list[AgentFinding] = Field(default_factory=list)
    summary: str = ""
    metrics: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """camelCase JSON-ready dictionary."""
        return self.model_dump(mode="json", by_alias=True)
