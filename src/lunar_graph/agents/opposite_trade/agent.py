"""Opposite-Trade Agent - ranks hedged trade pairs between accounts.

Two accounts taking CALL and PUT on the same instrument seconds apart
guarantee one of them wins; paired with a shared referrer this is the
classic affiliate commission abuse.

This agent answers: "Which account pairs are trading against each other?"
Not: "Are these accounts in the same ring?"
"""

import logging
from typing import List, Optional

from lunar_graph.agents.base import (
    AnalyzerResult,
    PatternAgent,
    account_label,
    owner_of,
    sort_findings,
)
from lunar_graph.agents.opposite_trade.schema import OppositeTradePair, TradeSide
from lunar_graph.agents.schema import AgentFinding, AnalyzerKind
from lunar_graph.common.config import get_thresholds
from lunar_graph.common.config.thresholds import OppositeTradeThresholds, SeverityBands
from lunar_graph.detection.severity import Severity, severity_for_score
from lunar_graph.models.graph.heuristics import amount_closeness
from lunar_graph.models.graph.schema import EdgeType, GraphNode, KnowledgeGraph


logger = logging.getLogger(__name__)


def timing_bonus(time_delta_ms: float, thresholds: OppositeTradeThresholds) -> float:
    """Bonus of the tightest tier the delta falls strictly below."""
    for tier in thresholds.timing_tiers:
        if time_delta_ms < tier.max_delta_ms:
            return tier.bonus
    return 0.0


def opposite_trade_score(
    amount_a: float,
    amount_b: float,
    time_delta_ms: Optional[float],
    thresholds: Optional[OppositeTradeThresholds] = None,
) -> float:
    """base + ratio_weight * amount_ratio + timing_bonus, clamped to [0, 100].

    A missing time delta counts as the default (10s), earning no bonus.
    """
    thresholds = thresholds or OppositeTradeThresholds()
    if time_delta_ms is None:
        time_delta_ms = thresholds.default_time_delta_ms
    score = (
        thresholds.base_score
        + thresholds.amount_ratio_weight * amount_closeness(amount_a, amount_b)
        + timing_bonus(time_delta_ms, thresholds)
    )
    return max(0.0, min(100.0, score))


def _side(node: GraphNode, account_id: str) -> TradeSide:
    return TradeSide(
        trade_id=node.id,
        account_id=account_id,
        contract_type=node.metadata.get("contract_type") or "",
        amount=float(node.metadata.get("amount") or 0.0),
        symbol=node.metadata.get("symbol") or "",
        timestamp=node.metadata.get("timestamp"),
    )


class OppositeTradeAgent(PatternAgent):
    """Opposite-Trade Agent.

    Responsibilities:
    - Resolve both owners of every opposite_position edge
    - Score and rank the pairs
    - Emit one finding per top-ranked pair

    Constraints:
    - Read-only over the graph
    - Severity comes from each pair's own score, not its cluster
    """

    kind = AnalyzerKind.OPPOSITE_TRADE
    name = "Opposite-Trade Analyzer"

    def __init__(
        self,
        thresholds: Optional[OppositeTradeThresholds] = None,
        severity_bands: Optional[SeverityBands] = None,
    ):
        detection = get_thresholds()
        self.thresholds = thresholds or detection.opposite_trade
        self.severity_bands = severity_bands or detection.severity

    def detect_pairs(self, graph: KnowledgeGraph) -> List[OppositeTradePair]:
        """Every resolvable opposite-trade pair, highest score first."""
        pairs = []
        for edge in graph.get_edges_by_type(EdgeType.OPPOSITE_POSITION):
            node_a = graph.get_node(edge.source)
            node_b = graph.get_node(edge.target)
            if node_a is None or node_b is None:
                continue

            account_a = owner_of(graph, edge.source)
            account_b = owner_of(graph, edge.target)
            if account_a is None or account_b is None:
                continue

            side_a = _side(node_a, account_a)
            side_b = _side(node_b, account_b)
            time_delta = edge.metadata.get("time_delta", edge.metadata.get("timeDelta"))
            if time_delta is None:
                time_delta = self.thresholds.default_time_delta_ms

            pairs.append(OppositeTradePair(
                trade_a=side_a,
                trade_b=side_b,
                time_delta_ms=time_delta,
                amount_ratio=amount_closeness(side_a.amount, side_b.amount),
                fraud_score=opposite_trade_score(
                    side_a.amount, side_b.amount, time_delta, self.thresholds,
                ),
            ))

        pairs.sort(key=lambda p: (-p.fraud_score, p.trade_a.trade_id, p.trade_b.trade_id))
        return pairs

    def _finding(self, pair: OppositeTradePair, graph: KnowledgeGraph) -> AgentFinding:
        a, b = pair.trade_a, pair.trade_b
        return AgentFinding(
            type="opposite_trading",
            severity=severity_for_score(pair.fraud_score, self.severity_bands),
            title=f"Opposite Trading Detected: {a.symbol}",
            description=(
                f"{account_label(graph, a.account_id)} ({a.contract_type}) vs "
                f"{account_label(graph, b.account_id)} ({b.contract_type}) - "
                f"{int(pair.time_delta_ms)}ms apart"
            ),
            confidence=int(round(pair.fraud_score)),
            entities=[a.account_id, b.account_id, a.trade_id, b.trade_id],
            evidence=[
                f"Time delta: {int(pair.time_delta_ms)}ms",
                f"Amount ratio: {pair.amount_ratio * 100:.1f}%",
                f"Trade A: {a.contract_type} ${a.amount:.2f}",
                f"Trade B: {b.contract_type} ${b.amount:.2f}",
                f"Symbol: {a.symbol}",
            ],
            suggested_action="Investigate account relationship and freeze suspicious accounts",
        )

    def _analyze(self, graph: KnowledgeGraph) -> AnalyzerResult:
        pairs = self.detect_pairs(graph)
        findings = sort_findings([
            self._finding(pair, graph)
            for pair in pairs[: self.thresholds.top_findings]
        ])

        total_exposure = sum(p.exposure for p in pairs)
        critical = sum(1 for f in findings if f.severity == Severity.CRITICAL)
        summary = (
            f"Detected {len(pairs)} opposite trading pairs with "
            f"${total_exposure:.2f} exposure. "
            f"{critical} critical findings require immediate attention."
        )
        metrics = {
            "opposite_pairs": len(pairs),
            "total_exposure": round(total_exposure, 2),
            "max_fraud_score": pairs[0].fraud_score if pairs else 0.0,
            "critical_findings": critical,
        }
        return findings, summary, metrics
