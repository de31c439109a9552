"""Community detection over the fraud-relevant subgraph.

Exact connected components by breadth-first search, restricted to edges that
are fraud indicators or device/IP matches. Deterministic and O(V+E).
"""

import hashlib
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Set

import numpy as np

from lunar_graph.common.constants import GraphConstants
from lunar_graph.models.graph.schema import EdgeType, GraphEdge, KnowledgeGraph


logger = logging.getLogger(__name__)

CLUSTER_EDGE_TYPES = (EdgeType.DEVICE_MATCH, EdgeType.IP_OVERLAP)


@dataclass
class Cluster:
    """A connected component of the fraud-relevant subgraph.

    Attributes:
        id: Hash of the sorted member ids
        nodes: Member node ids, sorted
        avg_risk_score: Mean full-graph risk of members
        fraud_edge_count: Intra-cluster fraud-indicator edges
        density: Intra-cluster edges over C(n, 2)
    """
    id: str
    nodes: List[str]
    avg_risk_score: float
    fraud_edge_count: int
    density: float
    edges: List[GraphEdge] = field(default_factory=list, repr=False)

    @property
    def size(self) -> int:
        return len(self.nodes)

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "nodes": list(self.nodes),
            "avgRiskScore": self.avg_risk_score,
            "fraudEdgeCount": self.fraud_edge_count,
            "density": self.density,
        }


def is_cluster_edge(edge: GraphEdge) -> bool:
    """True for edges that connect nodes into clusters."""
    return edge.is_fraud_indicator or edge.type in CLUSTER_EDGE_TYPES


def cluster_id(node_ids: List[str]) -> str:
    digest = hashlib.sha256("|".join(sorted(node_ids)).encode()).hexdigest()
    return f"cluster_{digest[:GraphConstants.ID_HASH_LENGTH]}"


def build_adjacency(graph: KnowledgeGraph) -> Dict[str, Set[str]]:
    """Undirected adjacency over cluster edges."""
    adjacency: Dict[str, Set[str]] = {}
    for edge in graph.edges:
        if not is_cluster_edge(edge) or edge.source == edge.target:
            continue
        adjacency.setdefault(edge.source, set()).add(edge.target)
        adjacency.setdefault(edge.target, set()).add(edge.source)
    return adjacency


def _components(adjacency: Dict[str, Set[str]]) -> List[List[str]]:
    visited: Set[str] = set()
    components = []
    for start in sorted(adjacency):
        if start in visited:
            continue
        component = []
        queue = deque([start])
        visited.add(start)
        while queue:
            node_id = queue.popleft()
            component.append(node_id)
            for neighbor in sorted(adjacency[node_id]):
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)
        components.append(sorted(component))
    return components


def _intra_edges(graph: KnowledgeGraph, members: List[str]) -> List[GraphEdge]:
    """All graph edges with both endpoints in the component, any type."""
    member_set = set(members)
    seen: Set[str] = set()
    edges = []
    for node_id in members:
        for edge in graph.get_edges_for_node(node_id):
            if edge.id not in seen and edge.touches(member_set):
                seen.add(edge.id)
                edges.append(edge)
    return edges


def detect_communities(graph: KnowledgeGraph) -> List[Cluster]:
    """Find clusters of two or more nodes.

    Returns:
        Clusters sorted by average risk descending, then size descending,
        then id
    """
    clusters = []
    for members in _components(build_adjacency(graph)):
        if len(members) < 2:
            continue

        intra_edges = _intra_edges(graph, members)
        fraud_edge_count = sum(1 for e in intra_edges if e.is_fraud_indicator)
        possible = len(members) * (len(members) - 1) / 2
        density = len(intra_edges) / possible if possible > 0 else 0.0
        avg_risk = float(np.mean([graph.nodes[n].risk_score for n in members]))

        clusters.append(Cluster(
            id=cluster_id(members),
            nodes=members,
            avg_risk_score=round(avg_risk, 2),
            fraud_edge_count=fraud_edge_count,
            density=round(density, 4),
            edges=intra_edges,
        ))

    clusters.sort(key=lambda c: (-c.avg_risk_score, -c.size, c.id))
    graph.stats.clusters = len(clusters)

    logger.info(
        f"Found {len(clusters)} clusters",
        extra={"clusters": len(clusters)},
    )
    return clusters
