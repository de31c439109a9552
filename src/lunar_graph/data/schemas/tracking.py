"""Tracking record schema - canonical definition."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from lunar_graph.data.schemas.base import RecordModel, blank_to_none, ensure_utc


class TrackingRecord(RecordModel):
    """Browser/session fingerprint captured on a referral landing page.

    Carries no account key; the graph builder attributes it to a client.
    """
    visitor_id: str = Field(..., min_length=1, description="Visitor identifier")
    session_id: Optional[str] = Field(default=None, description="Browser session")
    ip_address: Optional[str] = Field(default=None, description="Visitor IP address")
    canvas_fingerprint: Optional[str] = Field(default=None, description="Canvas fingerprint hash")
    referral_code: Optional[str] = Field(default=None, description="Referral code of the landing page")
    country: Optional[str] = Field(default=None, description="Geo country from IP")
    city: Optional[str] = Field(default=None, description="Geo city from IP")
    device_type: Optional[str] = Field(default=None, description="desktop, tablet or mobile")
    browser_name: Optional[str] = Field(default=None, description="Browser name")
    user_agent: Optional[str] = Field(default=None, description="Raw user agent")
    created_at: Optional[datetime] = Field(default=None, description="Event time")

    @field_validator(
        "session_id", "ip_address", "canvas_fingerprint", "referral_code", mode="before",
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
                "visitorId": "vis_9f2c",
                "ipAddress": "10.0.1.17",
                "canvasFingerprint": "fp_abc123def456",
                "referralCode": "X7K2P9QA",
                "deviceType": "desktop",
            }
        },
    }
