"""Opposite-Trade Analyzer Output Schema.

Pydantic models for ranked opposite-trade pairs.
"""

from typing import Optional

from pydantic import BaseModel, Field


class TradeSide(BaseModel):
    """One leg of an opposite-trade pair."""

    trade_id: str
    account_id: str
    contract_type: str
    amount: float = Field(default=0.0, ge=0)
    symbol: str = ""
    timestamp: Optional[str] = None


class OppositeTradePair(BaseModel):
    """Two accounts taking opposite positions on the same instrument.

    fraud_score rises with closer amounts and tighter timing.
    """

    trade_a: TradeSide
    trade_b: TradeSide
    time_delta_ms: float = Field(..., ge=0)
    amount_ratio: float = Field(..., ge=0.0, le=1.0)
    fraud_score: float = Field(..., ge=0.0, le=100.0)

    @property
    def exposure(self) -> float:
        return self.trade_a.amount + self.trade_b.amount

    model_config = {
        "json_schema_extra": {
            "example": {
                "trade_a": {"trade_id": "trade_t1", "account_id": "client_c1", "contract_type": "CALL", "amount": 25.0},
                "trade_b": {"trade_id": "trade_t2", "account_id": "client_c2", "contract_type": "PUT", "amount": 25.0},
                "time_delta_ms": 800,
                "amount_ratio": 1.0,
                "fraud_score": 90.0,
            }
        }
    }
