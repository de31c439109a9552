"""Local risk scoring for knowledge graph nodes.

risk_score is a pure function of a node and its local edges. Every signal
adds non-negative points, so adding a fraud-indicator edge never lowers a
score.
"""

import logging
from typing import Collection, Dict, Iterable, List, Optional

import numpy as np

from lunar_graph.common.config.thresholds import RiskWeights
from lunar_graph.models.graph.schema import (
    ACCOUNT_NODE_TYPES,
    EdgeType,
    GraphEdge,
    GraphNode,
    KnowledgeGraph,
    NodeType,
    clamp_risk,
)


logger = logging.getLogger(__name__)


def _base_points(node_type: NodeType, weights: RiskWeights) -> float:
    return {
        NodeType.AFFILIATE: weights.base_affiliate,
        NodeType.CLIENT: weights.base_client,
        NodeType.TRADE: weights.base_trade,
        NodeType.IP: weights.base_ip,
        NodeType.DEVICE: weights.base_device,
    }[node_type]


def _edge_points(edge_type: EdgeType, weights: RiskWeights) -> float:
    return {
        EdgeType.DEVICE_MATCH: weights.device_match,
        EdgeType.OPPOSITE_POSITION: weights.opposite_position,
        EdgeType.IP_OVERLAP: weights.ip_overlap,
        EdgeType.TIMING_SYNC: weights.timing_sync,
    }.get(edge_type, 0.0)


def risk_score(
    node: GraphNode,
    edges: Iterable[GraphEdge],
    prior_ring_entities: Collection[str] = (),
    weights: Optional[RiskWeights] = None,
) -> int:
    """Score a node from its local signals.

    Args:
        node: Node to score
        edges: Local edges; only fraud indicators contribute
        prior_ring_entities: Node ids that belong to previously detected rings
        weights: Point table, defaults to the reference weights

    Returns:
        Integer score in [0, 100]
    """
    weights = weights or RiskWeights()
    score = float(_base_points(node.type, weights))

    seen = set()
    for edge in edges:
        if edge.id in seen or not edge.is_fraud_indicator:
            continue
        seen.add(edge.id)
        score += _edge_points(edge.type, weights) * edge.weight

    if node.id in prior_ring_entities:
        score += weights.prior_ring

    if node.type == NodeType.TRADE:
        amount = node.metadata.get("amount") or 0.0
        if amount >= weights.large_trade_amount:
            score += weights.large_trade

    if node.type in (NodeType.IP, NodeType.DEVICE):
        accounts = node.metadata.get("accounts") or []
        score += weights.shared_infrastructure_per_account * max(0, len(accounts) - 1)

    return clamp_risk(score)


def local_edges(graph: KnowledgeGraph, node: GraphNode) -> List[GraphEdge]:
    """Edges touching the node, plus the fraud edges of trades it owns."""
    edges = list(graph.get_edges_for_node(node.id))
    if node.type not in ACCOUNT_NODE_TYPES:
        return edges

    for link in graph.get_edges_for_node(node.id):
        if link.type != EdgeType.TRADE_LINK or link.source != node.id:
            continue
        edges.extend(
            e for e in graph.get_edges_for_node(link.target)
            if e.is_fraud_indicator
        )
    return edges


def average_account_risk(graph: KnowledgeGraph) -> float:
    """Mean risk over affiliate/client nodes; 0 when there are none."""
    scores = [n.risk_score for n in graph.nodes.values() if n.type in ACCOUNT_NODE_TYPES]
    if not scores:
        return 0.0
    return round(float(np.mean(scores)), 2)


class RiskScorer:
    """Assign risk scores to every node of a graph."""

    def __init__(self, weights: Optional[RiskWeights] = None):
        self.weights = weights or RiskWeights()

    def score_graph(
        self,
        graph: KnowledgeGraph,
        prior_ring_entities: Collection[str] = (),
    ) -> KnowledgeGraph:
        """Score all nodes in place and refresh graph stats."""
        prior = set(prior_ring_entities)
        scores: Dict[str, int] = {
            node_id: risk_score(node, local_edges(graph, node), prior, self.weights)
            for node_id, node in graph.nodes.items()
        }
        for node_id, score in scores.items():
            graph.nodes[node_id].risk_score = score

        graph.recompute_stats()
        graph.stats.avg_risk_score = average_account_risk(graph)

        logger.debug(
            f"Scored {len(scores)} nodes, account average {graph.stats.avg_risk_score}",
            extra={"nodes": len(scores), "avg_risk_score": graph.stats.avg_risk_score},
        )
        return graph
