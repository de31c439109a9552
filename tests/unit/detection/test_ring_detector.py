"""Tests for FraudRingDetector."""

from collections import Counter

import pytest

from lunar_graph.common.config import DetectionThresholds, RingThresholds
from lunar_graph.detection.detector import FraudRingDetector
from lunar_graph.detection.rings.schema import FraudRingType, RingStatus
from lunar_graph.models.graph.builder import GraphBuilder
from lunar_graph.models.risk.scorer import RiskScorer


@pytest.fixture
def scored_graph(affiliates, clients, trades):
    graph = GraphBuilder().build(affiliates, clients, trades, [])
    return RiskScorer().score_graph(graph)


@pytest.fixture
def detector(memory_store):
    return FraudRingDetector(store=memory_store, thresholds=DetectionThresholds())


class TestFraudRingDetector:
    """Tests for detect/save/load."""

    def test_detect_persists_new_rings(self, detector, scored_graph, memory_store):
        rings = detector.detect_fraud_rings(scored_graph)

        assert [r.type for r in rings] == [
            FraudRingType.MULTI_ACCOUNT,
            FraudRingType.OPPOSITE_TRADING,
        ]
        assert len(memory_store.list_active()) == 2

    def test_second_detection_returns_rings_but_inserts_none(self, detector, scored_graph, memory_store, caplog):
        detector.detect_fraud_rings(scored_graph)
        with caplog.at_level("INFO"):
            again = detector.detect_fraud_rings(scored_graph)

        assert len(again) == 2
        assert len(memory_store.list_active()) == 2
        assert "Persisted 0 new fraud rings (2 duplicates)" in caplog.text

    def test_detection_is_deterministic(self, detector, scored_graph, memory_store):
        def signature(rings):
            return Counter(
                (r.type, r.severity, r.confidence, r.exposure, frozenset(r.entities)) for r in rings
            )

        first = detector.detect_fraud_rings(scored_graph)
        memory_store.clear()
        second = detector.detect_fraud_rings(scored_graph)

        assert signature(first) == signature(second)
        assert len(memory_store.list_active()) == len(second) == 2
        assert {r.id for r in first}.isdisjoint(r.id for r in second)

    def test_detect_without_persist(self, detector, scored_graph, memory_store):
        rings = detector.detect_fraud_rings(scored_graph, persist=False)
        assert len(rings) == 2
        assert memory_store.list_active() == []

    def test_save_and_load(self, detector, scored_graph):
        ring = detector.detect_fraud_rings(scored_graph, persist=False)[0]
        assert detector.save_fraud_ring(ring) is True
        assert detector.save_fraud_ring(ring) is False
        assert [r.id for r in detector.load_fraud_rings()] == [ring.id]

    def test_load_limit(self, detector, scored_graph):
        detector.detect_fraud_rings(scored_graph)
        assert len(detector.load_fraud_rings(limit=1)) == 1

    def test_resolved_ring_detected_again(self, detector, scored_graph, memory_store):
        first = detector.detect_fraud_rings(scored_graph)
        memory_store.update_status(first[0].id, RingStatus.RESOLVED)
        detector.detect_fraud_rings(scored_graph)

        active = memory_store.list_active()
        assert len(active) == 2
        assert first[0].id not in {r.id for r in active}

    def test_find_clusters(self, detector, scored_graph):
        assert len(detector.find_clusters(scored_graph)) == 2

    def test_stricter_thresholds(self, memory_store, scored_graph):
        thresholds = DetectionThresholds(rings=RingThresholds(min_avg_risk_score=60, min_fraud_edges=2))
        detector = FraudRingDetector(store=memory_store, thresholds=thresholds)
        rings = detector.detect_fraud_rings(scored_graph)
        assert [r.type for r in rings] == [FraudRingType.MULTI_ACCOUNT]

    def test_default_store(self):
        detector = FraudRingDetector()
        assert detector.load_fraud_rings() == []
