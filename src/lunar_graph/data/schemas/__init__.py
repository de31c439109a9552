"""Data schemas - canonical Pydantic definitions of the four record feeds."""

from lunar_graph.data.schemas.affiliate import AffiliateRecord
from lunar_graph.data.schemas.client import ClientRecord
from lunar_graph.data.schemas.trade import TradeRecord
from lunar_graph.data.schemas.tracking import TrackingRecord

__all__ = [
    "AffiliateRecord",
    "ClientRecord",
    "TradeRecord",
    "TrackingRecord",
]
