"""Base class for graph pattern analyzers.

Analyzers read the graph and produce findings. They never mutate the graph
and never raise to the caller: an internal failure comes back as an analysis
with status error.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from lunar_graph.agents.schema import (
    AgentAnalysis,
    AgentFinding,
    AnalysisStatus,
    AnalyzerKind,
)
from lunar_graph.detection.severity import severity_rank
from lunar_graph.models.graph.schema import EdgeType, GraphNode, KnowledgeGraph, NodeType


logger = logging.getLogger(__name__)

AnalyzerResult = Tuple[List[AgentFinding], str, Dict[str, Any]]


def owner_of(graph: KnowledgeGraph, trade_id: str) -> str | None:
    """Account that placed a trade, resolved through trade_link."""
    for edge in graph.get_edges_for_node(trade_id):
        if edge.type == EdgeType.TRADE_LINK and edge.target == trade_id:
            return edge.source
    return None


def trades_by_owner(graph: KnowledgeGraph) -> Dict[str, List[GraphNode]]:
    """Trade nodes grouped by owning account, in node order."""
    grouped: Dict[str, List[GraphNode]] = {}
    for node in graph.get_nodes_by_type(NodeType.TRADE):
        owner = owner_of(graph, node.id)
        if owner is not None:
            grouped.setdefault(owner, []).append(node)
    return grouped


def account_label(graph: KnowledgeGraph, node_id: str) -> str:
    node = graph.get_node(node_id)
    return node.label if node is not None else node_id


def sort_findings(findings: List[AgentFinding]) -> List[AgentFinding]:
    """Most severe first; stable within a band."""
    return sorted(findings, key=lambda f: severity_rank(f.severity))


class PatternAgent(ABC):
    """Common run loop for pattern analyzers.

    Responsibilities:
    - Stamp start/completion times
    - Convert internal failures into an error analysis
    """

    kind: AnalyzerKind
    name: str

    @abstractmethod
    def _analyze(self, graph: KnowledgeGraph) -> AnalyzerResult:
        """Return (findings, summary, metrics)."""
        pass

    def analyze(self, graph: KnowledgeGraph) -> AgentAnalysis:
        """Run the analyzer over a graph.

        Args:
            graph: Scored knowledge graph

        Returns:
            AgentAnalysis with status completed, or error on internal failure
        """
        analysis = AgentAnalysis(agent_type=self.kind, agent_name=self.name)
        logger.info(f"[{self.name}] Starting analysis...")

        try:
            findings, summary, metrics = self._analyze(graph)
        except Exception as e:
            logger.warning(f"Analyzer {self.name} failed: {type(e).__name__}: {e}")
            analysis.status = AnalysisStatus.ERROR
            analysis.error = f"{type(e).__name__}: {e}"
            analysis.summary = f"{self.name} failed to complete analysis."
            analysis.completed_at = datetime.now(timezone.utc)
            return analysis

        analysis.findings = findings
        analysis.summary = summary
        analysis.metrics = metrics
        analysis.status = AnalysisStatus.COMPLETED
        analysis.completed_at = datetime.now(timezone.utc)
        logger.info(
            f"[{self.name}] Completed with {len(findings)} findings",
            extra={"analyzer": self.kind.value, "findings": len(findings)},
        )
        return analysis
