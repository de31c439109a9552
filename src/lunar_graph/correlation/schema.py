"""Correlation analysis schema."""

from enum import Enum

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CorrelationStatus(str, Enum):
    FLAGGED = "FLAGGED"
    SUSPICIOUS = "SUSPICIOUS"
    NORMAL = "NORMAL"


class _CamelModel(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class CorrelationAccount(_CamelModel):
    """An account taking part in pairwise correlation."""

    id: str = Field(..., min_length=1)
    type: str = Field(default="client", description="client or affiliate")


class TradeMatch(_CamelModel):
    """Two trades from different accounts inside the timing window."""

    trade_a: str
    trade_b: str
    time_delta_ms: float = Field(..., ge=0)


class CorrelationResult(_CamelModel):
    """Correlation scores for one account pair, each in [0, 100]."""

    account_a: str
    account_b: str
    account_a_type: str = "client"
    account_b_type: str = "client"
    timing_score: float = Field(..., ge=0, le=100)
    direction_score: float = Field(..., ge=0, le=100)
    amount_score: float = Field(..., ge=0, le=100)
    symbol_score: float = Field(..., ge=0, le=100)
    overall_score: float = Field(..., ge=0, le=100)
    status: CorrelationStatus
    matched_trades: list[TradeMatch] = Field(default_factory=list)

    def to_dict(self):
        return self.model_dump(mode="json", by_alias=True)
