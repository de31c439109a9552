"""Fraud ring schema, extraction and persistence."""

from lunar_graph.detection.rings.schema import (
    FraudEvidence,
    FraudRing,
    FraudRingType,
    RingStatus,
)
from lunar_graph.detection.rings.extractor import (
    FraudRingExtractor,
    RING_TYPE_RULES,
    classify_ring,
    ring_confidence,
    ring_exposure,
)
from lunar_graph.detection.rings.store import (
    FraudRingStore,
    InMemoryFraudRingStore,
    FileFraudRingStore,
    create_ring_store,
)

__all__ = [
    "FraudEvidence",
    "FraudRing",
    "FraudRingType",
    "RingStatus",
    "FraudRingExtractor",
    "RING_TYPE_RULES",
    "classify_ring",
    "ring_confidence",
    "ring_exposure",
    "FraudRingStore",
    "InMemoryFraudRingStore",
    "FileFraudRingStore",
    "create_ring_store",
]
