"""Fraud ring detection over a knowledge graph.

Community detection, ring extraction and dedup-aware persistence behind one
object.
"""

import logging
from typing import List, Optional

from lunar_graph.common.config import DetectionThresholds, get_thresholds
from lunar_graph.detection.community import Cluster, detect_communities
from lunar_graph.detection.rings.extractor import FraudRingExtractor
from lunar_graph.detection.rings.schema import FraudRing
from lunar_graph.detection.rings.store import FraudRingStore, InMemoryFraudRingStore
from lunar_graph.models.graph.schema import KnowledgeGraph


logger = logging.getLogger(__name__)


class FraudRingDetector:
    """Detect, classify and persist fraud rings."""

    def __init__(
        self,
        store: Optional[FraudRingStore] = None,
        thresholds: Optional[DetectionThresholds] = None,
    ):
        self.thresholds = thresholds or get_thresholds()
        self.store = store or InMemoryFraudRingStore(
            dedup_entity_prefix=self.thresholds.rings.dedup_entity_prefix,
        )
        self.extractor = FraudRingExtractor(
            thresholds=self.thresholds.rings,
            severity_bands=self.thresholds.severity,
        )

    def find_clusters(self, graph: KnowledgeGraph) -> List[Cluster]:
        return detect_communities(graph)

    def detect_fraud_rings(self, graph: KnowledgeGraph, persist: bool = True) -> List[FraudRing]:
        """Detect rings in a graph.

        Args:
            graph: Scored knowledge graph
            persist: Save each ring through the dedup-aware store

        Returns:
            Every extracted ring, in cluster order, whether or not it was new
        """
        logger.info("Detecting fraud rings...")
        clusters = self.find_clusters(graph)
        rings = self.extractor.extract(clusters, graph)

        if persist:
            inserted = sum(1 for ring in rings if self.save_fraud_ring(ring))
            logger.info(
                f"Persisted {inserted} new fraud rings ({len(rings) - inserted} duplicates)",
                extra={"inserted": inserted, "rings": len(rings)},
            )
        return rings

    def save_fraud_ring(self, ring: FraudRing) -> bool:
        """Insert unless an active ring already covers it."""
        return self.store.save_if_new(ring)

    def load_fraud_rings(self, limit: Optional[int] = None) -> List[FraudRing]:
        """Active rings, newest first."""
        if limit is None:
            return self.store.list_active()
        return self.store.list_active(limit=limit)
