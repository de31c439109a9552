"""Trade schema - canonical definition."""

from datetime import datetime, timedelta, timezone
from typing import Literal, Optional

from pydantic import Field, field_validator

from lunar_graph.data.schemas.base import RecordModel, blank_to_none, ensure_utc


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class TradeRecord(RecordModel):
    """A single binary-option trade.

    client_id is the owning account and is required.
    """
    id: str = Field(..., min_length=1, description="Trade identifier")
    client_id: str = Field(..., min_length=1, description="Owning client account")
    affiliate_id: Optional[str] = Field(default=None, description="Affiliate credited for the trade")
    contract_type: Literal["CALL", "PUT"] = Field(..., description="Contract direction")
    symbol: str = Field(..., min_length=1, description="Instrument symbol")
    amount: float = Field(..., ge=0, description="Stake in USD")
    profit: Optional[float] = Field(default=None, description="Realized profit, negative for losses")
    created_at: datetime = Field(..., description="Execution time")

    @field_validator("contract_type", mode="before")
    @classmethod
    def _upper(cls, value):
        return value.upper() if isinstance(value, str) else value

    @field_validator("affiliate_id", mode="before")
    @classmethod
    def _blank_optional(cls, value):
        return blank_to_none(value)

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value):
        return ensure_utc(value)

    @property
    def timestamp_ms(self) -> float:
        """Execution time as epoch milliseconds."""
        return (self.created_at - _EPOCH) / timedelta(milliseconds=1)

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "trd_001",
                "clientId": "cli_001",
                "contractType": "CALL",
                "symbol": "1HZ100V",
                "amount": 25.0,
                "profit": 20.0,
                "createdAt": "2026-01-25T14:30:05Z",
            }
        },
    }
