"""Opposite-trade pattern analyzer."""

from lunar_graph.agents.opposite_trade.agent import (
    OppositeTradeAgent,
    opposite_trade_score,
    timing_bonus,
)
from lunar_graph.agents.opposite_trade.schema import OppositeTradePair, TradeSide

__all__ = [
    "OppositeTradeAgent",
    "opposite_trade_score",
    "timing_bonus",
    "OppositeTradePair",
    "TradeSide",
]
