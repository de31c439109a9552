"""Investigation Context - structured views handed to downstream consumers.

Everything here is derived from a scored graph and its rings; nothing
mutates them. Each type serializes to a camelCase dictionary so the
summarization service receives the same shape the rest of the engine emits.

Design principles:
- Frozen dataclasses, built once per request
- No scoring logic; values are read from the graph as-is
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class EdgeTypeCount:
    type: str
    total: int
    fraud_indicators: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "total": self.total,
            "fraudIndicators": self.fraud_indicators,
        }


@dataclass(frozen=True)
class HighRiskEntity:
    """An affiliate or client at or above the risk threshold."""
    id: str
    type: str
    label: str
    risk_score: int
    risk_level: str = "medium"
    email: Optional[str] = None
    fraud_rings: List[Dict[str, str]] = field(default_factory=list)

    @property
    def in_fraud_ring(self) -> bool:
        return bool(self.fraud_rings)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "label": self.label,
            "riskScore": self.risk_score,
            "riskLevel": self.risk_level,
            "email": self.email,
            "fraudRings": list(self.fraud_rings),
            "inFraudRing": self.in_fraud_ring,
        }


@dataclass(frozen=True)
class GraphSummary:
    """Counts, edge breakdown and top risks of one graph."""
    affiliate_count: int
    client_count: int
    trade_count: int
    ip_count: int
    device_count: int
    total_edges: int
    fraud_edges: int
    edge_types: List[EdgeTypeCount]
    average_risk_score: float
    high_risk_entity_count: int
    high_risk_entities: List[HighRiskEntity]
    summary_text: str

    @property
    def total_nodes(self) -> int:
        return (
            self.affiliate_count + self.client_count + self.trade_count
            + self.ip_count + self.device_count
        )

    @property
    def non_fraud_edges(self) -> int:
        return self.total_edges - self.fraud_edges

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalNodes": self.total_nodes,
            "affiliateCount": self.affiliate_count,
            "clientCount": self.client_count,
            "tradeCount": self.trade_count,
            "ipCount": self.ip_count,
            "deviceCount": self.device_count,
            "totalEdges": self.total_edges,
            "fraudEdges": self.fraud_edges,
            "nonFraudEdges": self.non_fraud_edges,
            "edgeTypes": [e.to_dict() for e in self.edge_types],
            "averageRiskScore": self.average_risk_score,
            "highRiskEntityCount": self.high_risk_entity_count,
            "highRiskEntities": [e.to_dict() for e in self.high_risk_entities],
            "summaryText": self.summary_text,
        }


@dataclass(frozen=True)
class HighRiskReport:
    """Result of a high-risk entity query."""
    min_risk: float
    entities: List[HighRiskEntity]
    total: int
    risk_distribution: Dict[str, int]
    by_entity_type: Dict[str, int]
    recommendations: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalHighRiskEntities": self.total,
            "minRiskThreshold": self.min_risk,
            "riskDistribution": dict(self.risk_distribution),
            "byEntityType": dict(self.by_entity_type),
            "entities": [e.to_dict() for e in self.entities],
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class AnalyzerDigest:
    """Short form of one AgentAnalysis."""
    name: str
    type: str
    status: str
    findings_count: int
    critical_findings: int
    high_findings: int
    summary: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "status": self.status,
            "findingsCount": self.findings_count,
            "criticalFindings": self.critical_findings,
            "highFindings": self.high_findings,
            "summary": self.summary,
        }


@dataclass(frozen=True)
class InvestigationContext:
    """Everything an investigator (human or model) needs about one graph.

    Attributes:
        graph_summary: Counts and top risks
        fraud_rings: Serialized rings, highest severity first
        analyzers: One digest per analyzer run
        alerts: Critical and high findings across analyzers
        correlation_summary: Plain-text correlation digest, if computed
    """
    graph_summary: GraphSummary
    fraud_rings: List[Dict[str, Any]] = field(default_factory=list)
    analyzers: List[AnalyzerDigest] = field(default_factory=list)
    alerts: List[Dict[str, Any]] = field(default_factory=list)
    correlation_summary: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "graphSummary": self.graph_summary.to_dict(),
            "fraudRings": list(self.fraud_rings),
            "analysis": {
                "agents": [a.to_dict() for a in self.analyzers],
                "alerts": list(self.alerts),
            },
            "correlationSummary": self.correlation_summary,
            "createdAt": self.created_at.isoformat(),
        }
