"""Commission Agent - behavioral anomalies in per-account trading.

Looks for the footprints of commission pumping: many tiny trades, bursts of
churn, and win/loss profiles that only make sense with a coordinated
counterpart account.

This agent points to evidence but never concludes.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

import numpy as np

from lunar_graph.agents.base import (
    AnalyzerResult,
    PatternAgent,
    account_label,
    sort_findings,
    trades_by_owner,
)
from lunar_graph.agents.commission.schema import (
    CommissionAnomaly,
    TradeMetrics,
    WinLossAnalysis,
)
from lunar_graph.agents.schema import AgentFinding, AnalyzerKind
from lunar_graph.common.config import get_thresholds
from lunar_graph.common.config.thresholds import CommissionThresholds
from lunar_graph.detection.severity import Severity, max_severity, severity_rank
from lunar_graph.models.graph.schema import GraphNode, KnowledgeGraph


logger = logging.getLogger(__name__)

MS_PER_HOUR = 3_600_000.0


def _amounts(trades: List[GraphNode]) -> np.ndarray:
    return np.array([float(t.metadata.get("amount") or 0.0) for t in trades], dtype=float)


def _profits(trades: List[GraphNode]) -> np.ndarray:
    return np.array([float(t.metadata.get("profit") or 0.0) for t in trades], dtype=float)


def _timestamps_ms(trades: List[GraphNode]) -> List[float]:
    """Parseable trade timestamps as epoch ms, sorted."""
    stamps = []
    for trade in trades:
        raw = trade.metadata.get("timestamp")
        if not raw:
            continue
        try:
            stamps.append(datetime.fromisoformat(raw).timestamp() * 1000.0)
        except (TypeError, ValueError):
            continue
    return sorted(stamps)


def trades_per_hour(timestamps_ms: List[float]) -> Optional[float]:
    """Trade rate over the observed span; None when the span is zero."""
    if len(timestamps_ms) < 2:
        return None
    span_ms = timestamps_ms[-1] - timestamps_ms[0]
    if span_ms <= 0:
        return None
    return len(timestamps_ms) / (span_ms / MS_PER_HOUR)


class CommissionAgent(PatternAgent):
    """Commission & Behavioral Agent.

    Responsibilities:
    - Group trades by owning account
    - Flag high-volume/low-value, rapid churn and win/loss anomalies
    - Estimate the commission each account generates

    Constraints:
    - Accounts with too few trades are ignored
    - Informational notes never raise severity on their own
    """

    kind = AnalyzerKind.COMMISSION
    name = "Commission Analyzer"

    def __init__(self, thresholds: Optional[CommissionThresholds] = None):
        self.thresholds = thresholds or get_thresholds().commission

    def _metrics(self, trades: List[GraphNode]) -> TradeMetrics:
        amounts = _amounts(trades)
        total = float(amounts.sum())
        return TradeMetrics(
            trade_count=len(trades),
            avg_amount=float(amounts.mean()) if len(amounts) else 0.0,
            total_volume=total,
            estimated_commission=total * self.thresholds.commission_rate,
        )

    def detect_anomalies(self, graph: KnowledgeGraph) -> List[CommissionAnomaly]:
        """Commission anomalies, most severe first."""
        t = self.thresholds
        anomalies: List[CommissionAnomaly] = []

        for account_id, trades in sorted(trades_by_owner(graph).items()):
            count = len(trades)
            if count < t.min_trades:
                continue

            label = account_label(graph, account_id)
            metrics = self._metrics(trades)

            def anomaly(anomaly_type, description, severity):
                return CommissionAnomaly(
                    account_id=account_id,
                    account_label=label,
                    anomaly_type=anomaly_type,
                    description=description,
                    severity=severity,
                    metrics=metrics,
                )

            if count >= t.high_volume_min_trades and metrics.avg_amount < t.high_volume_max_avg_amount:
                anomalies.append(anomaly(
                    "high_volume_low_value",
                    f"{count} trades with average value of ${metrics.avg_amount:.2f} "
                    f"- potential commission pumping",
                    Severity.HIGH if count >= t.high_volume_high_severity_trades else Severity.MEDIUM,
                ))

            if count >= t.churn_min_trades:
                stamps = _timestamps_ms(trades)
                rate = trades_per_hour(stamps) if len(stamps) >= t.churn_min_trades else None
                if rate is not None and rate > t.churn_max_trades_per_hour:
                    anomalies.append(anomaly(
                        "rapid_churn",
                        f"{rate:.1f} trades per hour - unusually high activity",
                        Severity.HIGH,
                    ))

            profits = _profits(trades)
            wins = int((profits > 0).sum())
            losses = int((profits < 0).sum())
            win_rate = wins / count

            if count >= t.anomaly_min_trades and win_rate >= t.anomaly_win_rate:
                anomalies.append(anomaly(
                    "unusual_pattern",
                    f"{win_rate * 100:.0f}% win rate across {count} trades - statistically unusual",
                    Severity.HIGH,
                ))

            if count >= t.all_loss_min_trades and losses == count:
                anomalies.append(anomaly(
                    "unusual_pattern",
                    f"100% loss rate across {count} trades - check for coordinated opposite account",
                    Severity.CRITICAL,
                ))

        anomalies.sort(key=lambda a: severity_rank(a.severity))
        return anomalies

    def analyze_win_loss(self, graph: KnowledgeGraph) -> List[WinLossAnalysis]:
        """Win/loss analyses that carry at least one note, most severe first."""
        t = self.thresholds
        analyses: List[WinLossAnalysis] = []

        for account_id, trades in sorted(trades_by_owner(graph).items()):
            count = len(trades)
            if count < t.win_loss_min_trades:
                continue

            profits = _profits(trades)
            win_profits = profits[profits > 0]
            loss_profits = profits[profits < 0]
            win_rate = len(win_profits) / count
            loss_rate = len(loss_profits) / count

            notes: List[str] = []
            level = Severity.LOW

            if win_rate >= t.suspicious_win_rate:
                notes.append("Unusually high win rate")
                level = Severity.HIGH
            if loss_rate >= t.suspicious_loss_rate:
                notes.append("Consistently losing - check for coordinated partner")
                level = Severity.CRITICAL
            if abs(win_rate - 0.5) < t.even_split_tolerance and count >= t.even_split_min_trades:
                notes.append("Suspiciously even win/loss split")
                level = max_severity(level, Severity.MEDIUM)

            avg_win = float(win_profits.mean()) if len(win_profits) else 0.0
            avg_loss = float(abs(loss_profits.mean())) if len(loss_profits) else 0.0
            if avg_win > avg_loss * t.win_profit_multiple:
                notes.append("Wins significantly larger than losses")

            if notes:
                analyses.append(WinLossAnalysis(
                    account_id=account_id,
                    account_label=account_label(graph, account_id),
                    win_rate=win_rate,
                    loss_rate=loss_rate,
                    trade_count=count,
                    net_profit=float(profits.sum()),
                    suspicion_level=level,
                    notes=notes,
                ))

        analyses.sort(key=lambda a: severity_rank(a.suspicion_level))
        return analyses

    def _anomaly_finding(self, anomaly: CommissionAnomaly) -> AgentFinding:
        m = anomaly.metrics
        return AgentFinding(
            type=f"commission_{anomaly.anomaly_type}",
            severity=anomaly.severity,
            title=f"Commission Anomaly: {anomaly.account_label}",
            description=anomaly.description,
            confidence=self.thresholds.anomaly_confidence,
            entities=[anomaly.account_id],
            evidence=[
                f"Trades: {m.trade_count}",
                f"Avg amount: ${m.avg_amount:.2f}",
                f"Total volume: ${m.total_volume:.2f}",
                f"Est. commission: ${m.estimated_commission:.2f}",
            ],
            suggested_action=(
                "Review for commission pumping scheme"
                if anomaly.anomaly_type == "high_volume_low_value"
                else "Monitor trading behavior"
            ),
        )

    def _win_loss_finding(self, analysis: WinLossAnalysis) -> AgentFinding:
        return AgentFinding(
            type="win_loss_manipulation",
            severity=analysis.suspicion_level,
            title=f"Suspicious Win/Loss Pattern: {analysis.account_label}",
            description=". ".join(analysis.notes),
            confidence=self.thresholds.win_loss_confidence,
            entities=[analysis.account_id],
            evidence=[
                f"Win rate: {analysis.win_rate * 100:.1f}%",
                f"Loss rate: {analysis.loss_rate * 100:.1f}%",
                f"Trade count: {analysis.trade_count}",
                f"Net profit: ${analysis.net_profit:.2f}",
            ],
            suggested_action="Check for coordinated accounts with inverse patterns",
        )

    def _analyze(self, graph: KnowledgeGraph) -> AnalyzerResult:
        anomalies = self.detect_anomalies(graph)
        analyses = self.analyze_win_loss(graph)
        suspicious = [a for a in analyses if a.suspicion_level != Severity.LOW]

        top = self.thresholds.top_findings
        findings = sort_findings(
            [self._anomaly_finding(a) for a in anomalies[:top]]
            + [self._win_loss_finding(a) for a in suspicious[:top]]
        )

        estimated: Dict[str, float] = {}
        for anomaly in anomalies:
            estimated[anomaly.account_id] = anomaly.metrics.estimated_commission
        critical = sum(1 for f in findings if f.severity == Severity.CRITICAL)

        summary = (
            f"Found {len(anomalies)} commission anomalies and "
            f"{len(suspicious)} suspicious win/loss patterns. "
            f"{critical} critical findings require immediate attention."
        )
        metrics = {
            "commission_anomalies": len(anomalies),
            "suspicious_patterns": len(suspicious),
            "estimated_commission": round(sum(estimated.values()), 2),
            "critical_findings": critical,
        }
        return findings, summary, metrics
