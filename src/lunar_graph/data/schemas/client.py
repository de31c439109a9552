"""Client schema - canonical definition."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from lunar_graph.data.schemas.base import RecordModel, blank_to_none, ensure_utc


class ClientRecord(RecordModel):
    """Client trading account referred by an affiliate.

    affiliate_id may be absent for organic signups; such clients get no
    referral edge.
    """
    id: str = Field(..., min_length=1, description="Client identifier")
    affiliate_id: Optional[str] = Field(default=None, description="Referring affiliate")
    referral_code: Optional[str] = Field(default=None, description="Referral code used at signup")
    email: Optional[str] = Field(default=None, description="Contact email")
    deriv_account_id: Optional[str] = Field(default=None, description="Broker account id")
    ip_address: Optional[str] = Field(default=None, description="Signup IP address")
    device_id: Optional[str] = Field(default=None, description="Device identifier")
    created_at: Optional[datetime] = Field(default=None, description="Account creation time")

    @field_validator(
        "affiliate_id", "referral_code", "email", "deriv_account_id",
        "ip_address", "device_id", mode="before",
    )
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
                "id": "cli_001",
                "affiliateId": "aff_001",
                "referralCode": "X7K2P9QA",
                "ipAddress": "10.0.1.17",
                "deviceId": "a1b2c3d4",
            }
        },
    }
