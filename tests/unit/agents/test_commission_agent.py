"""Tests for the commission analyzer."""

from datetime import timedelta

import pytest

from lunar_graph.agents.commission import CommissionAgent, trades_per_hour
from lunar_graph.agents.schema import AnalysisStatus
from lunar_graph.common.config.thresholds import CommissionThresholds
from lunar_graph.detection.severity import Severity
from lunar_graph.models.graph.builder import GraphBuilder


@pytest.fixture
def agent():
    return CommissionAgent(thresholds=CommissionThresholds())


@pytest.fixture
def account_graph(base_time):
    """Build a one-client graph from (amount, profit) pairs, one minute apart."""
    def build(trade_specs, spacing=timedelta(minutes=1)):
        trades = [
            {
                "id": f"t{i}", "clientId": "c1", "contractType": "CALL", "symbol": "1HZ100V",
                "amount": amount, "profit": profit,
                "createdAt": (base_time + spacing * i).isoformat(),
            }
            for i, (amount, profit) in enumerate(trade_specs)
        ]
        affiliates = [{"id": "aff_1", "name": "A", "referralCode": "REF00001"}]
        clients = [{"id": "c1", "affiliateId": "aff_1", "email": "pump@demo.com"}]
        return GraphBuilder().build(affiliates, clients, trades, [])
    return build


class TestTradesPerHour:
    def test_rate(self):
        assert trades_per_hour([0, 1_800_000]) == 4.0

    def test_zero_span(self):
        assert trades_per_hour([5, 5]) is None
        assert trades_per_hour([5]) is None


class TestCommissionAgent:
    """Tests for CommissionAgent.analyze."""

    def test_losing_pump_account(self, agent, account_graph):
        graph = account_graph([(2.0, -1.0)] * 20)
        analysis = agent.analyze(graph)

        assert analysis.status == AnalysisStatus.COMPLETED
        assert [f.type for f in analysis.findings] == [
            "commission_unusual_pattern",
            "win_loss_manipulation",
            "commission_high_volume_low_value",
            "commission_rapid_churn",
        ]
        severities = [f.severity for f in analysis.findings]
        assert severities == [Severity.CRITICAL, Severity.CRITICAL, Severity.HIGH, Severity.HIGH]
        assert analysis.metrics == {
            "commission_anomalies": 3,
            "suspicious_patterns": 1,
            "estimated_commission": 1.8,
            "critical_findings": 2,
        }
        assert analysis.findings[0].entities == ["client_c1"]
        assert "pump@demo.com" in analysis.findings[0].title

    def test_high_volume_medium_below_twenty(self, agent, account_graph):
        graph = account_graph([(3.0, 1.0), (3.0, -1.0)] * 6, spacing=timedelta(hours=1))
        anomalies = agent.detect_anomalies(graph)
        assert [(a.anomaly_type, a.severity) for a in anomalies] == [
            ("high_volume_low_value", Severity.MEDIUM),
        ]

    def test_slow_trading_is_not_churn(self, agent, account_graph):
        graph = account_graph([(50.0, 1.0), (50.0, -1.0)] * 8, spacing=timedelta(minutes=10))
        types = [a.anomaly_type for a in agent.detect_anomalies(graph)]
        assert "rapid_churn" not in types

    def test_winning_streak(self, agent, account_graph):
        graph = account_graph([(50.0, 5.0)] * 10)
        anomalies = agent.detect_anomalies(graph)
        assert [(a.anomaly_type, a.severity) for a in anomalies] == [
            ("unusual_pattern", Severity.HIGH),
        ]

        analyses = agent.analyze_win_loss(graph)
        assert analyses[0].suspicion_level == Severity.HIGH
        assert analyses[0].notes == ["Unusually high win rate", "Wins significantly larger than losses"]

    def test_even_split_is_medium(self, agent, account_graph):
        graph = account_graph([(50.0, 1.0), (50.0, -1.0)] * 5)
        analyses = agent.analyze_win_loss(graph)
        assert analyses[0].suspicion_level == Severity.MEDIUM
        assert analyses[0].notes == ["Suspiciously even win/loss split"]

    def test_informational_notes_stay_low(self, agent, account_graph):
        graph = account_graph([(50.0, 40.0), (50.0, -1.0), (50.0, -1.0), (50.0, -1.0), (50.0, -1.0), (50.0, -1.0)])
        analyses = agent.analyze_win_loss(graph)
        assert analyses[0].suspicion_level == Severity.LOW

        analysis = agent.analyze(graph)
        assert analysis.metrics["suspicious_patterns"] == 0
        assert analysis.findings == []

    def test_small_accounts_ignored(self, agent, account_graph):
        graph = account_graph([(1.0, -1.0)] * 2)
        assert agent.detect_anomalies(graph) == []
        assert agent.analyze_win_loss(graph) == []

    def test_fixture_graph_has_no_findings(self, agent, affiliates, clients, trades):
        graph = GraphBuilder().build(affiliates, clients, trades, [])
        analysis = agent.analyze(graph)
        assert analysis.findings == []
        assert analysis.metrics["commission_anomalies"] == 0

    def test_missing_profit_counts_as_flat(self, agent, account_graph):
        graph = account_graph([(50.0, None)] * 6)
        assert agent.analyze_win_loss(graph) == []
