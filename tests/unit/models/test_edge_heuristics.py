"""Tests for derived edge heuristics."""

import pytest

from lunar_graph.common.config.thresholds import GraphThresholds
from lunar_graph.models.graph.heuristics import (
    AccountProfile,
    TradeEvent,
    amount_closeness,
    amounts_similar,
    derive_device_match_edges,
    derive_ip_overlap_edges,
    derive_trade_edges,
    ip_prefix,
    make_edge_id,
    timing_closeness,
)
from lunar_graph.models.graph.schema import EdgeType, NodeType


DETECTED_AT = "2026-01-25T14:30:00+00:00"


def _client(node_id, ips=(), devices=(), referrer=None):
    return AccountProfile(
        node_id=node_id,
        node_type=NodeType.CLIENT,
        ips=set(ips),
        devices=set(devices),
        referrer=referrer,
    )


def _trade(node_id, owner, contract_type="CALL", amount=100.0, ts=0.0, symbol="1HZ100V"):
    return TradeEvent(
        node_id=node_id,
        owner=owner,
        contract_type=contract_type,
        symbol=symbol,
        amount=amount,
        timestamp_ms=ts,
    )


@pytest.fixture
def thresholds():
    return GraphThresholds()


class TestHelpers:
    def test_edge_id_deterministic(self):
        first = make_edge_id(EdgeType.DEVICE_MATCH, "client_a", "client_b")
        assert first == make_edge_id(EdgeType.DEVICE_MATCH, "client_a", "client_b")
        assert first.startswith("device_match_")
        assert len(first) == len("device_match_") + 12
        assert first != make_edge_id(EdgeType.IP_OVERLAP, "client_a", "client_b")

    @pytest.mark.parametrize("ip, expected", [
        ("10.0.1.5", "10.0.1"),
        ("2001:db8::1", None),
        ("not-an-ip", None),
    ])
    def test_ip_prefix(self, ip, expected):
        assert ip_prefix(ip) == expected

    def test_amount_closeness(self):
        assert amount_closeness(50, 100) == 0.5
        assert amount_closeness(0, 0) == 0.0

    def test_amounts_similar_uses_mean(self):
        # |100 - 82| / 91 ~= 0.198
        assert amounts_similar(100, 82, 0.2)
        assert not amounts_similar(100, 75, 0.2)
        assert not amounts_similar(0, 0, 0.2)

    def test_timing_closeness(self):
        assert timing_closeness(0, 5000) == 1.0
        assert timing_closeness(2500, 5000) == 0.5
        assert timing_closeness(9000, 5000) == 0.0


class TestIpOverlap:
    """Tests for ip_overlap edges."""

    def test_exact_match(self, thresholds):
        edges = derive_ip_overlap_edges(
            [_client("client_a", ips=["10.0.1.5"]), _client("client_b", ips=["10.0.1.5"])],
            thresholds, DETECTED_AT,
        )
        assert len(edges) == 1
        edge = edges[0]
        assert edge.weight == 0.9
        assert edge.is_fraud_indicator is True
        assert edge.metadata["match"] == "exact"
        assert edge.metadata["confidence"] == 90

    def test_prefix_match(self, thresholds):
        edges = derive_ip_overlap_edges(
            [_client("client_a", ips=["10.0.1.5"]), _client("client_b", ips=["10.0.1.77"])],
            thresholds, DETECTED_AT,
        )
        assert [e.weight for e in edges] == [0.6]
        assert edges[0].metadata["shared"] == ["10.0.1"]

    def test_prefix_match_disabled(self):
        thresholds = GraphThresholds(ip_prefix_match=False)
        edges = derive_ip_overlap_edges(
            [_client("client_a", ips=["10.0.1.5"]), _client("client_b", ips=["10.0.1.77"])],
            thresholds, DETECTED_AT,
        )
        assert edges == []

    def test_one_edge_per_pair(self, thresholds):
        edges = derive_ip_overlap_edges(
            [
                _client("client_a", ips=["10.0.1.5", "172.16.0.2"]),
                _client("client_b", ips=["10.0.1.5", "172.16.0.2"]),
            ],
            thresholds, DETECTED_AT,
        )
        assert len(edges) == 1
        assert edges[0].metadata["shared"] == ["10.0.1.5", "172.16.0.2"]

    def test_affiliate_and_own_client_not_fraud(self, thresholds):
        affiliate = AccountProfile(
            node_id="affiliate_x", node_type=NodeType.AFFILIATE, ips={"10.0.1.5"},
        )
        client = _client("client_a", ips=["10.0.1.5"], referrer="affiliate_x")
        edges = derive_ip_overlap_edges([affiliate, client], thresholds, DETECTED_AT)

        assert len(edges) == 1
        assert edges[0].is_fraud_indicator is False
        assert "own referred client" in edges[0].metadata["description"]

    def test_no_shared_ip(self, thresholds):
        edges = derive_ip_overlap_edges(
            [_client("client_a", ips=["10.0.1.5"]), _client("client_b", ips=["8.8.8.8"])],
            thresholds, DETECTED_AT,
        )
        assert edges == []


class TestDeviceMatch:
    def test_shared_device_always_fraud(self, thresholds):
        edges = derive_device_match_edges(
            [
                _client("client_a", devices=["fp_1"]),
                _client("client_b", devices=["fp_1"]),
                _client("client_c", devices=["fp_1"]),
                _client("client_d", devices=["fp_2"]),
            ],
            thresholds, DETECTED_AT,
        )
        assert len(edges) == 3
        assert all(e.weight == 1.0 and e.is_fraud_indicator for e in edges)
        assert {(e.source, e.target) for e in edges} == {
            ("client_a", "client_b"),
            ("client_a", "client_c"),
            ("client_b", "client_c"),
        }


class TestTradeEdges:
    """Tests for opposite_position and timing_sync edges."""

    def test_opposite_position(self, thresholds):
        edges = derive_trade_edges(
            [
                _trade("trade_1", "client_a", "CALL", 100, ts=0),
                _trade("trade_2", "client_b", "PUT", 100, ts=800),
            ],
            thresholds, DETECTED_AT,
        )
        assert len(edges) == 1
        edge = edges[0]
        assert edge.type == EdgeType.OPPOSITE_POSITION
        assert edge.weight == pytest.approx(0.92)
        assert edge.metadata["time_delta"] == 800
        assert edge.metadata["amount_ratio"] == 1.0
        assert edge.is_fraud_indicator is True

    def test_opposite_outside_window_is_timing_sync(self, thresholds):
        edges = derive_trade_edges(
            [
                _trade("trade_1", "client_a", "CALL", 100, ts=0),
                _trade("trade_2", "client_b", "PUT", 100, ts=6000),
            ],
            thresholds, DETECTED_AT,
        )
        assert [e.type for e in edges] == [EdgeType.TIMING_SYNC]
        assert edges[0].is_fraud_indicator is True
        assert edges[0].weight == pytest.approx(0.9)

    def test_opposite_on_different_symbols_is_timing_sync(self, thresholds):
        edges = derive_trade_edges(
            [
                _trade("trade_1", "client_a", "CALL", ts=0, symbol="1HZ100V"),
                _trade("trade_2", "client_b", "PUT", ts=1000, symbol="R_50"),
            ],
            thresholds, DETECTED_AT,
        )
        assert [e.type for e in edges] == [EdgeType.TIMING_SYNC]
        assert edges[0].metadata["opposite_direction"] is True

    def test_same_direction_similar_amounts(self, thresholds):
        edges = derive_trade_edges(
            [
                _trade("trade_1", "client_a", "CALL", 100, ts=0),
                _trade("trade_2", "client_b", "CALL", 95, ts=30000),
            ],
            thresholds, DETECTED_AT,
        )
        assert len(edges) == 1
        assert edges[0].weight == pytest.approx(0.5)
        assert edges[0].is_fraud_indicator is True

    def test_same_direction_different_amounts_not_fraud(self, thresholds):
        edges = derive_trade_edges(
            [
                _trade("trade_1", "client_a", "CALL", 100, ts=0),
                _trade("trade_2", "client_b", "CALL", 10, ts=30000),
            ],
            thresholds, DETECTED_AT,
        )
        assert len(edges) == 1
        assert edges[0].is_fraud_indicator is False

    def test_same_owner_skipped(self, thresholds):
        edges = derive_trade_edges(
            [
                _trade("trade_1", "client_a", "CALL", ts=0),
                _trade("trade_2", "client_a", "PUT", ts=500),
            ],
            thresholds, DETECTED_AT,
        )
        assert edges == []

    def test_outside_timing_window(self, thresholds):
        edges = derive_trade_edges(
            [
                _trade("trade_1", "client_a", "CALL", ts=0),
                _trade("trade_2", "client_b", "CALL", ts=61000),
            ],
            thresholds, DETECTED_AT,
        )
        assert edges == []

    def test_input_order_irrelevant(self, thresholds):
        trades = [
            _trade("trade_2", "client_b", "PUT", ts=800),
            _trade("trade_1", "client_a", "CALL", ts=0),
        ]
        edges = derive_trade_edges(trades, thresholds, DETECTED_AT)
        assert (edges[0].source, edges[0].target) == ("trade_1", "trade_2")
