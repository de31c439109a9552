"""Graph summaries and high-risk queries over a scored graph."""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from lunar_graph.agents.schema import AgentAnalysis
from lunar_graph.common.config import get_thresholds
from lunar_graph.common.config.thresholds import SeverityBands
from lunar_graph.common.exceptions import ValidationError
from lunar_graph.correlation import CorrelationResult, summarize_correlations
from lunar_graph.detection.rings.schema import FraudRing
from lunar_graph.detection.severity import Severity, severity_for_score, severity_rank
from lunar_graph.models.graph.schema import ACCOUNT_NODE_TYPES, KnowledgeGraph, NodeType
from lunar_graph.models.risk import average_account_risk
from lunar_graph.orchestration.context import (
    AnalyzerDigest,
    EdgeTypeCount,
    GraphSummary,
    HighRiskEntity,
    HighRiskReport,
    InvestigationContext,
)


logger = logging.getLogger(__name__)

HIGH_RISK_THRESHOLD = 50
SUMMARY_ENTITY_LIMIT = 15
QUERY_ENTITY_LIMIT = 50
ALERT_SEVERITIES = (Severity.CRITICAL, Severity.HIGH)


def _ring_membership(rings: Iterable[FraudRing]) -> Dict[str, List[Dict[str, str]]]:
    membership: Dict[str, List[Dict[str, str]]] = {}
    for ring in rings:
        for entity in ring.entities:
            membership.setdefault(entity, []).append(
                {"id": ring.id, "name": ring.name, "severity": ring.severity.value}
            )
    return membership


def _risk_level(score: float, bands: SeverityBands) -> str:
    # Query results are already above the floor, so low collapses into medium
    severity = severity_for_score(score, bands)
    if severity == Severity.LOW:
        return Severity.MEDIUM.value
    return severity.value


def _high_risk(
    graph: KnowledgeGraph,
    min_risk: float,
    entity_type: Optional[NodeType],
    membership: Dict[str, List[Dict[str, str]]],
    bands: SeverityBands,
) -> List[HighRiskEntity]:
    entities = [
        HighRiskEntity(
            id=node.id,
            type=node.type.value,
            label=node.label,
            risk_score=node.risk_score,
            risk_level=_risk_level(node.risk_score, bands),
            email=node.metadata.get("email"),
            fraud_rings=membership.get(node.id, []),
        )
        for node in graph.nodes.values()
        if node.type in ACCOUNT_NODE_TYPES
        and (entity_type is None or node.type == entity_type)
        and node.risk_score >= min_risk
    ]
    entities.sort(key=lambda e: (-e.risk_score, e.id))
    return entities


def summarize_graph(
    graph: KnowledgeGraph,
    rings: Sequence[FraudRing] = (),
    threshold: float = HIGH_RISK_THRESHOLD,
    limit: int = SUMMARY_ENTITY_LIMIT,
) -> GraphSummary:
    """Counts per node type, edge breakdown and the riskiest accounts."""
    bands = get_thresholds().severity

    breakdown: Dict[str, List[int]] = {}
    for edge in graph.edges:
        counts = breakdown.setdefault(edge.type.value, [0, 0])
        counts[0] += 1
        if edge.is_fraud_indicator:
            counts[1] += 1
    edge_types = [
        EdgeTypeCount(type=edge_type, total=total, fraud_indicators=fraud)
        for edge_type, (total, fraud) in sorted(breakdown.items())
    ]
    fraud_edges = sum(e.fraud_indicators for e in edge_types)

    high_risk = _high_risk(graph, threshold, None, _ring_membership(rings), bands)
    avg_risk = average_account_risk(graph)

    affiliates = len(graph.get_nodes_by_type(NodeType.AFFILIATE))
    clients = len(graph.get_nodes_by_type(NodeType.CLIENT))
    trades = len(graph.get_nodes_by_type(NodeType.TRADE))

    return GraphSummary(
        affiliate_count=affiliates,
        client_count=clients,
        trade_count=trades,
        ip_count=len(graph.get_nodes_by_type(NodeType.IP)),
        device_count=len(graph.get_nodes_by_type(NodeType.DEVICE)),
        total_edges=graph.edge_count(),
        fraud_edges=fraud_edges,
        edge_types=edge_types,
        average_risk_score=avg_risk,
        high_risk_entity_count=len(high_risk),
        high_risk_entities=high_risk[:limit],
        summary_text=(
            f"Knowledge graph contains {affiliates + clients} entities and {trades} trades. "
            f"{graph.edge_count()} connections detected, {fraud_edges} are fraud indicators. "
            f"Average risk score is {avg_risk}%. "
            f"{len(high_risk)} high-risk entities identified."
        ),
    )


def find_high_risk_entities(
    graph: KnowledgeGraph,
    rings: Sequence[FraudRing] = (),
    min_risk: float = HIGH_RISK_THRESHOLD,
    entity_type: Optional[NodeType] = None,
    limit: int = QUERY_ENTITY_LIMIT,
) -> HighRiskReport:
    """Accounts at or above min_risk with their ring memberships.

    Args:
        graph: Scored knowledge graph
        rings: Rings to resolve membership against
        min_risk: Inclusive risk floor
        entity_type: affiliate or client; both when None
        limit: Maximum entities returned (distribution covers all)
    """
    if entity_type is not None:
        if entity_type not in [t.value for t in ACCOUNT_NODE_TYPES]:
            raise ValidationError(
                f"entity_type must be affiliate or client, got {entity_type}",
                details={"entity_type": str(entity_type)},
            )
        entity_type = NodeType(entity_type)

    bands = get_thresholds().severity
    membership = _ring_membership(rings)
    entities = _high_risk(graph, min_risk, entity_type, membership, bands)

    distribution = {"critical": 0, "high": 0, "medium": 0}
    for entity in entities:
        distribution[entity.risk_level] += 1
    in_rings = sum(1 for e in entities if e.in_fraud_ring)

    recommendations = []
    if distribution["critical"]:
        recommendations.append(
            f"Review {distribution['critical']} critical risk entities immediately"
        )
    if distribution["high"]:
        recommendations.append(f"Investigate {distribution['high']} high risk entities")
    if in_rings:
        recommendations.append(f"{in_rings} entities are involved in fraud rings")

    return HighRiskReport(
        min_risk=min_risk,
        entities=entities[:limit],
        total=len(entities),
        risk_distribution=distribution,
        by_entity_type={
            "affiliates": sum(1 for e in entities if e.type == NodeType.AFFILIATE.value),
            "clients": sum(1 for e in entities if e.type == NodeType.CLIENT.value),
        },
        recommendations=recommendations,
    )


def digest_analysis(analysis: AgentAnalysis) -> AnalyzerDigest:
    return AnalyzerDigest(
        name=analysis.agent_name,
        type=analysis.agent_type.value,
        status=analysis.status.value,
        findings_count=len(analysis.findings),
        critical_findings=sum(1 for f in analysis.findings if f.severity == Severity.CRITICAL),
        high_findings=sum(1 for f in analysis.findings if f.severity == Severity.HIGH),
        summary=analysis.summary,
    )


def build_investigation_context(
    graph: KnowledgeGraph,
    rings: Sequence[FraudRing] = (),
    analyses: Sequence[AgentAnalysis] = (),
    correlations: Optional[Sequence[CorrelationResult]] = None,
) -> InvestigationContext:
    """Bundle summary, rings and analyzer output for the summarization service."""
    ordered_rings = sorted(rings, key=lambda r: (severity_rank(r.severity), -r.confidence, r.id))

    alerts = [
        {
            "severity": finding.severity.value,
            "title": finding.title,
            "description": finding.description,
            "entities": list(finding.entities),
            "source": analysis.agent_name,
        }
        for analysis in analyses
        for finding in analysis.findings
        if finding.severity in ALERT_SEVERITIES
    ]
    alerts.sort(key=lambda a: severity_rank(a["severity"]))

    context = InvestigationContext(
        graph_summary=summarize_graph(graph, ordered_rings),
        fraud_rings=[ring.to_dict() for ring in ordered_rings],
        analyzers=[digest_analysis(a) for a in analyses],
        alerts=alerts,
        correlation_summary=(
            summarize_correlations(correlations) if correlations is not None else None
        ),
    )
    logger.debug(
        f"Built investigation context with {len(ordered_rings)} rings and {len(alerts)} alerts",
        extra={"rings": len(ordered_rings), "alerts": len(alerts)},
    )
    return context
