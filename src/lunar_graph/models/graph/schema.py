"""Graph schema definitions for fraud detection.

Defines node and edge types for the affiliate-client-trade knowledge graph.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, List

from pydantic.alias_generators import to_camel

from lunar_graph.common.constants import RiskConstants
from lunar_graph.common.exceptions import GraphIntegrityError


class NodeType(str, Enum):
    """Types of nodes in the knowledge graph."""
    AFFILIATE = "affiliate"
    CLIENT = "client"
    TRADE = "trade"
    IP = "ip"
    DEVICE = "device"


ACCOUNT_NODE_TYPES = (NodeType.AFFILIATE, NodeType.CLIENT)


class EdgeType(str, Enum):
    """Types of edges in the knowledge graph."""
    REFERRAL = "referral"                     # Affiliate referred client
    IP_OVERLAP = "ip_overlap"                 # Derived: accounts share an IP
    DEVICE_MATCH = "device_match"             # Derived: accounts share a device
    TIMING_SYNC = "timing_sync"               # Derived: trades close in time
    OPPOSITE_POSITION = "opposite_position"   # Derived: hedged trades
    TRADE_LINK = "trade_link"                 # Client owns trade


STRUCTURAL_EDGE_TYPES = (EdgeType.REFERRAL, EdgeType.TRADE_LINK)


def clamp_risk(value: float) -> int:
    """Round and clamp a risk value into [0, 100]."""
    return int(max(
        RiskConstants.RISK_SCORE_MIN,
        min(RiskConstants.RISK_SCORE_MAX, round(value)),
    ))


@dataclass
class GraphNode:
    """A node in the knowledge graph.

    Attributes:
        id: Unique identifier, prefixed with the node type
        type: Type of node
        label: Display string
        risk_score: Integer risk in [0, 100], clamped on every assignment
        metadata: Type-dependent attributes
    """
    id: str
    type: NodeType
    label: str
    risk_score: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "risk_score":
            value = clamp_risk(value)
        super().__setattr__(name, value)

    @property
    def is_account(self) -> bool:
        return self.type in ACCOUNT_NODE_TYPES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "label": self.label,
            "riskScore": self.risk_score,
            "metadata": dict(self.metadata),
        }


@dataclass
class GraphEdge:
    """An edge in the knowledge graph.

    Treated as undirected for clustering. metadata carries time_delta (ms),
    confidence (0-100), description and detected_at.
    """
    id: str
    source: str
    target: str
    type: EdgeType
    weight: float = 1.0
    is_fraud_indicator: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.weight = float(max(0.0, min(1.0, self.weight)))
        if self.type in STRUCTURAL_EDGE_TYPES:
            self.is_fraud_indicator = False

    def other(self, node_id: str) -> str:
        """Return the endpoint opposite to node_id."""
        return self.target if self.source == node_id else self.source

    def touches(self, node_ids) -> bool:
        """True when both endpoints are in node_ids."""
        return self.source in node_ids and self.target in node_ids

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": self.type.value,
            "weight": round(self.weight, 4),
            "isFraudIndicator": self.is_fraud_indicator,
            "metadata": {
                to_camel(key): value for key, value in self.metadata.items()
            },
        }


@dataclass
class GraphStats:
    """Aggregate statistics for a built graph."""
    total_nodes: int = 0
    total_edges: int = 0
    fraud_edges: int = 0
    avg_risk_score: float = 0.0
    clusters: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalNodes": self.total_nodes,
            "totalEdges": self.total_edges,
            "fraudEdges": self.fraud_edges,
            "avgRiskScore": self.avg_risk_score,
            "clusters": self.clusters,
        }


@dataclass
class KnowledgeGraph:
    """The fraud knowledge graph.

    Built once per invocation. Only risk scores and stats change after
    construction.
    """
    nodes: Dict[str, GraphNode] = field(default_factory=dict)
    edges: List[GraphEdge] = field(default_factory=list)
    stats: GraphStats = field(default_factory=GraphStats)
    built_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # Index for fast edge lookup
    _edge_index: Dict[str, List[GraphEdge]] = field(default_factory=dict, repr=False)
    _edge_ids: set = field(default_factory=set, repr=False)

    def __post_init__(self):
        # Graphs assembled by hand still get an index; validate() catches defects
        for edge in self.edges:
            self._edge_ids.add(edge.id)
            self._edge_index.setdefault(edge.source, []).append(edge)
            if edge.target != edge.source:
                self._edge_index.setdefault(edge.target, []).append(edge)

    def add_node(self, node: GraphNode) -> None:
        """Add a node to the graph."""
        self.nodes[node.id] = node

    def add_edge(self, edge: GraphEdge) -> bool:
        """Add an edge to the graph.

        Returns:
            False if an endpoint is missing or the id already exists
        """
        if edge.source not in self.nodes or edge.target not in self.nodes:
            return False
        if edge.id in self._edge_ids:
            return False

        self.edges.append(edge)
        self._edge_ids.add(edge.id)

        self._edge_index.setdefault(edge.source, []).append(edge)
        if edge.target != edge.source:
            self._edge_index.setdefault(edge.target, []).append(edge)
        return True

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        """Get a node by ID."""
        return self.nodes.get(node_id)

    def get_edges_for_node(self, node_id: str) -> List[GraphEdge]:
        """Get all edges connected to a node."""
        return self._edge_index.get(node_id, [])

    def get_nodes_by_type(self, node_type: NodeType) -> List[GraphNode]:
        """Get all nodes of a specific type."""
        return [n for n in self.nodes.values() if n.type == node_type]

    def get_edges_by_type(self, edge_type: EdgeType) -> List[GraphEdge]:
        """Get all edges of a specific type."""
        return [e for e in self.edges if e.type == edge_type]

    def node_count(self) -> int:
        """Get number of nodes."""
        return len(self.nodes)

    def edge_count(self) -> int:
        """Get number of edges."""
        return len(self.edges)

    def validate(self) -> None:
        """Check structural invariants.

        Raises:
            GraphIntegrityError: On dangling edges, out-of-range weights or
                risk scores, or structural edges flagged as fraud
        """
        for node_id, node in self.nodes.items():
            if node.id != node_id:
                raise GraphIntegrityError(
                    f"Node keyed as {node_id} has id {node.id}",
                    details={"node_id": node_id},
                )
            if not 0 <= node.risk_score <= 100:
                raise GraphIntegrityError(
                    f"Node {node_id} risk score out of range",
                    details={"node_id": node_id, "risk_score": node.risk_score},
                )

        for edge in self.edges:
            missing = [end for end in (edge.source, edge.target) if end not in self.nodes]
            if missing:
                raise GraphIntegrityError(
                    f"Edge {edge.id} references missing node(s)",
                    details={"edge_id": edge.id, "missing": missing},
                )
            if not 0.0 <= edge.weight <= 1.0:
                raise GraphIntegrityError(
                    f"Edge {edge.id} weight out of range",
                    details={"edge_id": edge.id, "weight": edge.weight},
                )
            if edge.type in STRUCTURAL_EDGE_TYPES and edge.is_fraud_indicator:
                raise GraphIntegrityError(
                    f"Structural edge {edge.id} flagged as fraud indicator",
                    details={"edge_id": edge.id, "type": edge.type.value},
                )

    def recompute_stats(self) -> GraphStats:
        """Refresh node/edge counts; averages are set by the risk scorer."""
        self.stats.total_nodes = len(self.nodes)
        self.stats.total_edges = len(self.edges)
        self.stats.fraud_edges = sum(1 for e in self.edges if e.is_fraud_indicator)
        return self.stats

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for renderers and the summarization service."""
        return {
            "nodes": [node.to_dict() for node in self.nodes.values()],
            "edges": [edge.to_dict() for edge in self.edges],
            "stats": self.stats.to_dict(),
            "builtAt": self.built_at.isoformat(),
        }
