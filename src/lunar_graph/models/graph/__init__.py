"""Knowledge graph for fraud detection.

Key design:
- Nodes: affiliate, client, trade, ip, device
- Structural edges: referral, trade_link
- Heuristic edges: ip_overlap, device_match, timing_sync, opposite_position
- Ids derive from source keys so rebuilds are reproducible
"""

from lunar_graph.models.graph.schema import (
    NodeType,
    EdgeType,
    GraphNode,
    GraphEdge,
    GraphStats,
    KnowledgeGraph,
    ACCOUNT_NODE_TYPES,
    STRUCTURAL_EDGE_TYPES,
    clamp_risk,
)
from lunar_graph.models.graph.builder import GraphBuilder

__all__ = [
    "NodeType",
    "EdgeType",
    "GraphNode",
    "GraphEdge",
    "GraphStats",
    "KnowledgeGraph",
    "ACCOUNT_NODE_TYPES",
    "STRUCTURAL_EDGE_TYPES",
    "clamp_risk",
    "GraphBuilder",
]
