"""Fraud ring extraction.

Turns qualifying clusters into typed, severity-scored rings with exposure
and evidence. Type classification is an ordered rule list; the first rule
whose predicate holds wins.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence, Tuple

from lunar_graph.common.config.thresholds import RingThresholds, SeverityBands
from lunar_graph.common.constants import RiskConstants
from lunar_graph.detection.community import Cluster, is_cluster_edge
from lunar_graph.detection.rings.schema import FraudEvidence, FraudRing, FraudRingType
from lunar_graph.detection.severity import severity_for_score
from lunar_graph.models.graph.schema import EdgeType, GraphEdge, KnowledgeGraph, NodeType


logger = logging.getLogger(__name__)

RingRule = Tuple[Callable[[Sequence[GraphEdge]], bool], FraudRingType]


def has_edge_type(edge_type: EdgeType) -> Callable[[Sequence[GraphEdge]], bool]:
    """Predicate: any edge of the given type."""
    def predicate(edges: Sequence[GraphEdge]) -> bool:
        return any(e.type == edge_type for e in edges)
    predicate.__name__ = f"has_{edge_type.value}"
    return predicate


# Evaluated in order; first match wins
RING_TYPE_RULES: List[RingRule] = [
    (has_edge_type(EdgeType.OPPOSITE_POSITION), FraudRingType.OPPOSITE_TRADING),
    (has_edge_type(EdgeType.DEVICE_MATCH), FraudRingType.MULTI_ACCOUNT),
    (has_edge_type(EdgeType.IP_OVERLAP), FraudRingType.IP_CLUSTERING),
]

DEFAULT_RING_TYPE = FraudRingType.TIMING_COORDINATION


def classify_ring(
    edges: Sequence[GraphEdge],
    rules: Optional[Sequence[RingRule]] = None,
) -> FraudRingType:
    """Ring type for a cluster's intra-cluster edges."""
    for predicate, ring_type in (rules if rules is not None else RING_TYPE_RULES):
        if predicate(edges):
            return ring_type
    return DEFAULT_RING_TYPE


def ring_confidence(fraud_edge_count: int, thresholds: Optional[RingThresholds] = None) -> int:
    """min(cap, base + per_edge * count), clamped to [0, cap]."""
    thresholds = thresholds or RingThresholds()
    cap = min(thresholds.confidence_cap, RiskConstants.RING_CONFIDENCE_MAX)
    raw = thresholds.confidence_base + thresholds.confidence_per_fraud_edge * fraud_edge_count
    return max(0, min(cap, raw))


def ring_exposure(graph: KnowledgeGraph, node_ids: Sequence[str]) -> float:
    """Sum of trade amounts among the cluster's nodes."""
    total = 0.0
    for node_id in node_ids:
        node = graph.get_node(node_id)
        if node is not None and node.type == NodeType.TRADE:
            total += float(node.metadata.get("amount") or 0.0)
    return round(total, 2)


def ring_name(ring_type: FraudRingType) -> str:
    return f"{ring_type.value.replace('_', ' ').title()} Ring"


def _evidence_for(edge: GraphEdge, fallback_timestamp: str) -> FraudEvidence:
    metadata = edge.metadata
    return FraudEvidence(
        type=edge.type.value,
        description=metadata.get("description") or f"{edge.type.value.replace('_', ' ')} connection",
        confidence=int(metadata.get("confidence", 50)),
        source_nodes=[edge.source, edge.target],
        source_edges=[edge.id],
        timestamp=metadata.get("detected_at") or fallback_timestamp,
    )


class FraudRingExtractor:
    """Classify clusters into fraud rings."""

    def __init__(
        self,
        thresholds: Optional[RingThresholds] = None,
        severity_bands: Optional[SeverityBands] = None,
        rules: Optional[Sequence[RingRule]] = None,
    ):
        self.thresholds = thresholds or RingThresholds()
        self.severity_bands = severity_bands or SeverityBands()
        self.rules = list(rules) if rules is not None else list(RING_TYPE_RULES)

    def qualifies(self, cluster: Cluster) -> bool:
        """avg risk at or above the floor, or enough fraud edges."""
        return (
            cluster.avg_risk_score >= self.thresholds.min_avg_risk_score
            or cluster.fraud_edge_count >= self.thresholds.min_fraud_edges
        )

    def extract(self, clusters: Sequence[Cluster], graph: KnowledgeGraph) -> List[FraudRing]:
        """Build a ring for every qualifying cluster, preserving cluster order."""
        rings = [
            self.extract_one(cluster, graph)
            for cluster in clusters
            if self.qualifies(cluster)
        ]
        logger.info(
            f"Extracted {len(rings)} fraud rings from {len(clusters)} clusters",
            extra={"rings": len(rings), "clusters": len(clusters)},
        )
        return rings

    def extract_one(self, cluster: Cluster, graph: KnowledgeGraph) -> FraudRing:
        edges = cluster.edges or [
            e for e in graph.edges if e.touches(set(cluster.nodes))
        ]
        ring_type = classify_ring(edges, self.rules)
        severity = severity_for_score(cluster.avg_risk_score, self.severity_bands)
        now = datetime.now(timezone.utc)

        evidence_edges = sorted(
            (e for e in edges if is_cluster_edge(e)),
            key=lambda e: (-e.weight, e.id),
        )[: self.thresholds.max_evidence]

        return FraudRing(
            id=str(uuid.uuid4()),
            name=ring_name(ring_type),
            type=ring_type,
            severity=severity,
            confidence=ring_confidence(cluster.fraud_edge_count, self.thresholds),
            entities=cluster.nodes,
            exposure=ring_exposure(graph, cluster.nodes),
            evidence=[_evidence_for(e, now.isoformat()) for e in evidence_edges],
            summary=(
                f"Detected {ring_type.value.replace('_', ' ')} pattern involving "
                f"{cluster.size} entities with {cluster.fraud_edge_count} suspicious "
                f"connections. Average risk score: {round(cluster.avg_risk_score)}%."
            ),
            created_at=now,
            updated_at=now,
        )
