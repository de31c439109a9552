"""Tests for GraphBuilder."""

from collections import Counter

import pytest

from lunar_graph.data.schemas import ClientRecord
from lunar_graph.models.graph.builder import GraphBuilder
from lunar_graph.models.graph.schema import EdgeType, NodeType


@pytest.fixture
def graph(affiliates, clients, trades):
    return GraphBuilder().build(affiliates, clients, trades, [])


class TestGraphBuilder:
    """Tests for GraphBuilder.build."""

    def test_node_counts(self, graph):
        counts = Counter(n.type for n in graph.nodes.values())
        assert counts[NodeType.AFFILIATE] == 2
        assert counts[NodeType.CLIENT] == 4
        assert counts[NodeType.TRADE] == 3
        assert counts[NodeType.IP] == 3
        assert counts[NodeType.DEVICE] == 3
        assert graph.stats.total_nodes == 15

    def test_edge_counts(self, graph):
        counts = Counter(e.type for e in graph.edges)
        assert counts[EdgeType.REFERRAL] == 4
        assert counts[EdgeType.TRADE_LINK] == 3
        assert counts[EdgeType.IP_OVERLAP] == 1
        assert counts[EdgeType.DEVICE_MATCH] == 1
        assert counts[EdgeType.OPPOSITE_POSITION] == 1
        assert counts[EdgeType.TIMING_SYNC] == 0
        assert graph.stats.total_edges == 10
        assert graph.stats.fraud_edges == 3

    def test_node_ids_prefixed(self, graph):
        for node_id in ("affiliate_aff_1", "client_c1", "trade_t1", "ip_10.0.1.5", "device_dev_a"):
            assert node_id in graph.nodes

    def test_structural_edges(self, graph):
        referral = graph.get_edges_by_type(EdgeType.REFERRAL)
        assert ("affiliate_aff_1", "client_c1") in {(e.source, e.target) for e in referral}
        assert all(not e.is_fraud_indicator for e in referral)

        links = graph.get_edges_by_type(EdgeType.TRADE_LINK)
        assert {(e.source, e.target) for e in links} == {
            ("client_c1", "trade_t1"),
            ("client_c2", "trade_t2"),
            ("client_c4", "trade_t3"),
        }

    def test_derived_edges(self, graph):
        device = graph.get_edges_by_type(EdgeType.DEVICE_MATCH)[0]
        assert (device.source, device.target) == ("client_c1", "client_c3")

        opposite = graph.get_edges_by_type(EdgeType.OPPOSITE_POSITION)[0]
        assert (opposite.source, opposite.target) == ("trade_t1", "trade_t2")
        assert opposite.weight == pytest.approx(0.92)

    def test_infrastructure_accounts(self, graph):
        assert graph.nodes["ip_10.0.1.5"].metadata["accounts"] == ["client_c1", "client_c2"]
        assert graph.nodes["device_dev_a"].metadata["accounts"] == ["client_c1", "client_c3"]

    def test_graph_is_valid_and_unscored(self, graph):
        graph.validate()
        assert all(n.risk_score == 0 for n in graph.nodes.values())

    def test_rebuild_is_deterministic(self, affiliates, clients, trades, graph):
        again = GraphBuilder().build(affiliates, clients, trades, [])
        assert sorted(e.id for e in again.edges) == sorted(e.id for e in graph.edges)
        assert set(again.nodes) == set(graph.nodes)

    def test_accepts_schema_instances(self, affiliates):
        graph = GraphBuilder().build(affiliates, [ClientRecord(id="c9", affiliate_id="aff_1")], [], [])
        assert "client_c9" in graph.nodes
        assert graph.edge_count() == 1

    def test_empty_snapshot(self):
        graph = GraphBuilder().build()
        assert graph.node_count() == 0
        assert graph.edge_count() == 0


class TestDataQuality:
    """Bad records are skipped without failing the build."""

    def test_trade_for_unknown_client_skipped(self, affiliates, clients, caplog):
        orphan = {
            "id": "t9", "clientId": "ghost", "contractType": "CALL", "symbol": "R_50",
            "amount": 10, "createdAt": "2026-01-25T14:30:00Z",
        }
        with caplog.at_level("WARNING"):
            graph = GraphBuilder().build(affiliates, clients, [orphan], [])
        assert "trade_t9" not in graph.nodes
        assert "unknown client ghost" in caplog.text

    def test_duplicate_ids_keep_first(self, affiliates):
        clients = [
            {"id": "c1", "affiliateId": "aff_1", "email": "first@demo.com"},
            {"id": "c1", "affiliateId": "aff_2", "email": "second@demo.com"},
        ]
        graph = GraphBuilder().build(affiliates, clients, [], [])
        assert graph.nodes["client_c1"].label == "first@demo.com"
        assert len(graph.get_edges_by_type(EdgeType.REFERRAL)) == 1

    def test_referral_to_unknown_affiliate_dropped(self, caplog):
        with caplog.at_level("WARNING"):
            graph = GraphBuilder().build([], [{"id": "c1", "affiliateId": "missing"}], [], [])
        assert graph.edge_count() == 0
        assert "Dropping referral edge" in caplog.text


class TestTrackingAttribution:
    """Tracking records add identity signals to clients."""

    def test_visitor_id_matches_device(self, affiliates):
        clients = [
            {"id": "c1", "affiliateId": "aff_1", "deviceId": "v1"},
            {"id": "c2", "affiliateId": "aff_2", "deviceId": "v2"},
        ]
        tracking = [
            {"visitorId": "v1", "canvasFingerprint": "fp_shared", "ipAddress": "1.2.3.4"},
            {"visitorId": "v2", "canvasFingerprint": "fp_shared"},
        ]
        graph = GraphBuilder().build(affiliates, clients, [], tracking)

        device_edges = graph.get_edges_by_type(EdgeType.DEVICE_MATCH)
        assert len(device_edges) == 1
        assert device_edges[0].metadata["shared"] == ["fp_shared"]
        assert graph.nodes["device_fp_shared"].metadata["visitors"] == ["v1", "v2"]
        assert graph.nodes["ip_1.2.3.4"].metadata["accounts"] == ["client_c1"]

    def test_unique_ip_candidate_with_agreeing_code(self, affiliates):
        clients = [{"id": "c1", "affiliateId": "aff_1", "ipAddress": "5.5.5.5"}]
        tracking = [{"visitorId": "anon", "ipAddress": "5.5.5.5", "canvasFingerprint": "fp_x", "referralCode": "REF00001"}]
        graph = GraphBuilder().build(affiliates, clients, [], tracking)
        assert graph.nodes["device_fp_x"].metadata["accounts"] == ["client_c1"]

    def test_ambiguous_ip_stays_unattributed(self, affiliates):
        clients = [
            {"id": "c1", "affiliateId": "aff_1", "ipAddress": "5.5.5.5"},
            {"id": "c2", "affiliateId": "aff_1", "ipAddress": "5.5.5.5"},
        ]
        tracking = [{"visitorId": "anon", "ipAddress": "5.5.5.5", "canvasFingerprint": "fp_x"}]
        graph = GraphBuilder().build(affiliates, clients, [], tracking)
        assert graph.nodes["device_fp_x"].metadata["accounts"] == []

    def test_disagreeing_referral_code(self, affiliates):
        clients = [{"id": "c1", "affiliateId": "aff_1", "ipAddress": "5.5.5.5"}]
        tracking = [{"visitorId": "anon", "ipAddress": "5.5.5.5", "canvasFingerprint": "fp_x", "referralCode": "OTHER"}]
        graph = GraphBuilder().build(affiliates, clients, [], tracking)
        assert graph.nodes["device_fp_x"].metadata["accounts"] == []
