"""Tests for pairwise account correlation."""

from datetime import timedelta

import pytest

from lunar_graph.common.config.thresholds import CorrelationThresholds
from lunar_graph.correlation import (
    CorrelationAccount,
    CorrelationStatus,
    correlation_status,
    max_correlation_score,
    run_correlation_analysis,
    summarize_correlations,
)


@pytest.fixture
def trade(base_time):
    def make(trade_id, client_id, contract_type="CALL", amount=100.0, seconds=0, symbol="1HZ100V"):
        return {
            "id": trade_id, "clientId": client_id, "contractType": contract_type,
            "symbol": symbol, "amount": amount,
            "createdAt": (base_time + timedelta(seconds=seconds)).isoformat(),
        }
    return make


@pytest.fixture
def thresholds():
    return CorrelationThresholds()


class TestRunCorrelationAnalysis:
    """Tests for run_correlation_analysis."""

    def test_fixture_trades(self, trades, thresholds):
        results = run_correlation_analysis(trades, thresholds=thresholds)

        assert len(results) == 1
        result = results[0]
        assert (result.account_a, result.account_b) == ("c1", "c2")
        assert result.overall_score == 100.0
        assert result.status == CorrelationStatus.FLAGGED
        assert result.matched_trades[0].time_delta_ms == 800.0

    def test_same_direction_is_suspicious(self, trade, thresholds):
        results = run_correlation_analysis(
            [trade("t1", "a"), trade("t2", "b", seconds=20)], thresholds=thresholds,
        )
        # 100 * 0.25 + 0 * 0.35 + 100 * 0.2 + 100 * 0.2
        assert results[0].overall_score == 65.0
        assert results[0].direction_score == 0.0
        assert results[0].status == CorrelationStatus.SUSPICIOUS

    def test_unrelated_trades_are_normal(self, trade, thresholds):
        results = run_correlation_analysis(
            [trade("t1", "a", amount=100), trade("t2", "b", amount=5, symbol="R_50", seconds=30)],
            thresholds=thresholds,
        )
        assert results[0].overall_score == 25.0
        assert results[0].status == CorrelationStatus.NORMAL

    def test_timing_score_capped(self, trade, thresholds):
        results = run_correlation_analysis(
            [trade("t1", "a"), trade("t2", "a", seconds=10), trade("t3", "b", "PUT", seconds=5)],
            thresholds=thresholds,
        )
        assert results[0].timing_score == 100.0
        assert len(results[0].matched_trades) == 2

    def test_outside_window_omitted(self, trade, thresholds):
        results = run_correlation_analysis(
            [trade("t1", "a"), trade("t2", "b", "PUT", seconds=61)], thresholds=thresholds,
        )
        assert results == []

    def test_explicit_accounts(self, trades, thresholds):
        accounts = [
            "c1",
            {"id": "c2", "type": "client"},
            CorrelationAccount(id="aff_1", type="affiliate"),
        ]
        results = run_correlation_analysis(trades, accounts=accounts, thresholds=thresholds)
        assert [(r.account_a, r.account_b) for r in results] == [("c1", "c2")]

    def test_duplicate_account_not_paired_with_itself(self, trades, thresholds):
        results = run_correlation_analysis(trades, accounts=["c1", "c1"], thresholds=thresholds)
        assert results == []

    def test_sorted_by_score(self, trade, thresholds):
        results = run_correlation_analysis(
            [
                trade("t1", "a"),
                trade("t2", "b", seconds=10),
                trade("t3", "c", "PUT", seconds=20),
            ],
            thresholds=thresholds,
        )
        scores = [r.overall_score for r in results]
        assert scores == sorted(scores, reverse=True)
        assert len(results) == 3

    def test_invalid_trades_skipped(self, trades, thresholds):
        results = run_correlation_analysis(trades + [{"id": "broken"}], thresholds=thresholds)
        assert len(results) == 1

    def test_empty(self, thresholds):
        assert run_correlation_analysis(None, thresholds=thresholds) == []


class TestHelpers:
    @pytest.mark.parametrize("score, expected", [
        (70, CorrelationStatus.FLAGGED),
        (69.99, CorrelationStatus.SUSPICIOUS),
        (50, CorrelationStatus.SUSPICIOUS),
        (49.99, CorrelationStatus.NORMAL),
    ])
    def test_status(self, score, expected, thresholds):
        assert correlation_status(score, thresholds) == expected

    def test_max_correlation_score(self, trades, thresholds):
        results = run_correlation_analysis(trades, thresholds=thresholds)
        assert max_correlation_score("c2", results) == 100.0
        assert max_correlation_score("c4", results) == 0.0

    def test_summary(self, trades, thresholds):
        summary = summarize_correlations(run_correlation_analysis(trades, thresholds=thresholds))
        assert summary.startswith("1 flagged and 0 suspicious account pairs out of 1 analyzed.")
        assert "[FLAGGED] c1 <-> c2" in summary

    def test_summary_empty(self):
        assert summarize_correlations([]) == "No correlated account pairs among 0 analyzed."

    def test_to_dict(self, trades, thresholds):
        data = run_correlation_analysis(trades, thresholds=thresholds)[0].to_dict()
        assert data["overallScore"] == 100.0
        assert data["matchedTrades"][0]["timeDeltaMs"] == 800.0
