"""Affiliate schema - canonical definition."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from lunar_graph.data.schemas.base import RecordModel, blank_to_none, ensure_utc


class AffiliateRecord(RecordModel):
    """Referral/affiliate account.

    Affiliates refer clients through their referral code.
    """
    id: str = Field(..., min_length=1, description="Affiliate identifier")
    name: str = Field(..., min_length=1, description="Display name")
    email: Optional[str] = Field(default=None, description="Contact email")
    referral_code: str = Field(..., min_length=1, description="Unique referral code")
    ip_address: Optional[str] = Field(default=None, description="Last known IP address")
    created_at: Optional[datetime] = Field(default=None, description="Account creation time")

    @field_validator("email", "ip_address", mode="before")
    @classmethod
    def _blank_optional(cls, value):
        return blank_to_none(value)

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value):
        return ensure_utc(value)

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "aff_001",
                "name": "Fraud Affiliate A",
                "email": "fraud.affiliate.a@demo.com",
                "referralCode": "X7K2P9QA",
            }
        },
    }
