"""Lunar Graph Engine - the public entry points.

Wires the builder, scorer, ring detector, analyzers and correlation
analyzer behind one object, plus module-level functions bound to a shared
engine.

Lifecycle:
1. Build and score a graph from the four record feeds
2. Detect, classify and persist fraud rings
3. Run pattern analyzers on demand
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from lunar_graph.agents.base import PatternAgent
from lunar_graph.agents.commission.agent import CommissionAgent
from lunar_graph.agents.opposite_trade.agent import OppositeTradeAgent
from lunar_graph.agents.schema import AgentAnalysis, AnalyzerKind
from lunar_graph.common.config import Config, DetectionThresholds, get_config, get_thresholds
from lunar_graph.common.exceptions import AnalyzerError
from lunar_graph.correlation import CorrelationResult
from lunar_graph.correlation import run_correlation_analysis as _correlate
from lunar_graph.data.fetcher import Feed, RecordFetcher
from lunar_graph.detection.detector import FraudRingDetector
from lunar_graph.detection.rings.schema import FraudRing
from lunar_graph.detection.rings.store import FraudRingStore, create_ring_store
from lunar_graph.models.graph.builder import GraphBuilder
from lunar_graph.models.graph.schema import KnowledgeGraph
from lunar_graph.models.risk import RiskScorer


logger = logging.getLogger(__name__)

AnalyzerFactory = Callable[[DetectionThresholds], PatternAgent]


def _opposite_trade_factory(thresholds: DetectionThresholds) -> PatternAgent:
    return OppositeTradeAgent(
        thresholds=thresholds.opposite_trade,
        severity_bands=thresholds.severity,
    )


def _commission_factory(thresholds: DetectionThresholds) -> PatternAgent:
    return CommissionAgent(thresholds=thresholds.commission)


class LunarGraphEngine:
    """Fraud detection graph engine.

    Features:
    - Scores nodes against rings already in the store
    - Dedup-aware ring persistence
    - Analyzer registry; temporal analysis is plugged in by the caller
    """

    def __init__(
        self,
        thresholds: Optional[DetectionThresholds] = None,
        store: Optional[FraudRingStore] = None,
        config: Optional[Config] = None,
    ):
        """Initialize engine.

        Args:
            thresholds: Detection policy. Uses the configured thresholds if not provided.
            store: Ring store. Built from config if not provided.
            config: Runtime configuration. Uses get_config() if not provided.
        """
        self.config = config or get_config()
        self.thresholds = thresholds or get_thresholds()
        self.store = store or create_ring_store(self.config)

        self.builder = GraphBuilder(self.thresholds.graph)
        self.scorer = RiskScorer(self.thresholds.risk)
        self.detector = FraudRingDetector(store=self.store, thresholds=self.thresholds)

        self._analyzers: Dict[AnalyzerKind, AnalyzerFactory] = {
            AnalyzerKind.OPPOSITE_TRADE: _opposite_trade_factory,
            AnalyzerKind.COMMISSION: _commission_factory,
        }

    def register_analyzer(
        self,
        kind: Union[AnalyzerKind, str],
        factory: AnalyzerFactory,
    ) -> None:
        """Register or replace the analyzer for a kind."""
        kind = AnalyzerKind(kind)
        self._analyzers[kind] = factory
        logger.info(f"Registered analyzer for {kind.value}")

    def registered_analyzers(self) -> List[AnalyzerKind]:
        return sorted(self._analyzers, key=lambda k: k.value)

    def build_graph(
        self,
        affiliates: Optional[Iterable[Any]] = None,
        clients: Optional[Iterable[Any]] = None,
        trades: Optional[Iterable[Any]] = None,
        tracking: Optional[Iterable[Any]] = None,
    ) -> KnowledgeGraph:
        """Build and score a knowledge graph.

        Nodes that belong to an active ring in the store pick up the prior
        membership bonus.

        Args:
            affiliates: Affiliate records or raw dicts
            clients: Client records or raw dicts
            trades: Trade records or raw dicts
            tracking: Tracking records or raw dicts

        Returns:
            Scored KnowledgeGraph
        """
        graph = self.builder.build(affiliates, clients, trades, tracking)

        prior_entities = {
            entity
            for ring in self.store.list_active(limit=self.thresholds.rings.prior_ring_limit)
            for entity in ring.entities
        }
        self.scorer.score_graph(graph, prior_entities)

        logger.info(
            f"Graph ready: {graph.node_count()} nodes, {graph.edge_count()} edges, "
            f"{graph.stats.fraud_edges} fraud edges",
            extra={"graph": graph.stats.to_dict()},
        )
        return graph

    def build_graph_from_feeds(
        self,
        feeds: Mapping[str, Feed],
        timeout_seconds: Optional[float] = None,
    ) -> KnowledgeGraph:
        """Fetch the feeds concurrently, then build. Failed feeds count as empty."""
        fetcher = RecordFetcher(
            feeds,
            timeout_seconds=(
                timeout_seconds if timeout_seconds is not None
                else self.config.fetch_timeout_seconds
            ),
        )
        snapshot = fetcher.fetch_all()
        if not snapshot.complete:
            logger.warning(
                f"Building from partial snapshot, failed feeds: {snapshot.failed_feeds}",
                extra={"failed_feeds": snapshot.failed_feeds},
            )
        return self.build_graph(
            snapshot.affiliates, snapshot.clients, snapshot.trades, snapshot.tracking,
        )

    def detect_fraud_rings(self, graph: KnowledgeGraph, persist: bool = True) -> List[FraudRing]:
        """Cluster, classify and (by default) persist rings.

        Raises:
            GraphIntegrityError: If the graph violates its structural invariants
        """
        graph.validate()
        return self.detector.detect_fraud_rings(graph, persist=persist)

    def save_fraud_ring(self, ring: FraudRing) -> bool:
        """Persist unless an active ring already covers the same entities."""
        return self.detector.save_fraud_ring(ring)

    def load_fraud_rings(self, limit: Optional[int] = None) -> List[FraudRing]:
        return self.detector.load_fraud_rings(limit)

    def run_pattern_analyzer(
        self,
        graph: KnowledgeGraph,
        kind: Union[AnalyzerKind, str],
    ) -> AgentAnalysis:
        """Run one registered analyzer.

        Raises:
            AnalyzerError: If no analyzer is registered for the kind
            GraphIntegrityError: If the graph violates its structural invariants
        """
        try:
            kind = AnalyzerKind(kind)
        except ValueError as e:
            raise AnalyzerError(f"Unknown analyzer kind: {kind}", analyzer_kind=str(kind)) from e

        factory = self._analyzers.get(kind)
        if factory is None:
            raise AnalyzerError(
                f"No analyzer registered for {kind.value}",
                analyzer_kind=kind.value,
            )

        graph.validate()
        return factory(self.thresholds).analyze(graph)

    def run_all_analyzers(self, graph: KnowledgeGraph) -> List[AgentAnalysis]:
        """Every registered analyzer, in kind order."""
        return [self.run_pattern_analyzer(graph, kind) for kind in self.registered_analyzers()]

    def run_correlation_analysis(
        self,
        trades: Optional[Iterable[Any]],
        accounts: Optional[Iterable[Any]] = None,
    ) -> List[CorrelationResult]:
        return _correlate(trades, accounts, self.thresholds.correlation)


# Shared engine
_engine: Optional[LunarGraphEngine] = None


def get_engine() -> LunarGraphEngine:
    """Get the shared engine, creating it from configuration on first use."""
    global _engine
    if _engine is None:
        _engine = LunarGraphEngine()
    return _engine


def reset_engine() -> None:
    """Drop the shared engine (for tests)."""
    global _engine
    _engine = None


def build_graph(affiliates=None, clients=None, trades=None, tracking=None) -> KnowledgeGraph:
    return get_engine().build_graph(affiliates, clients, trades, tracking)


def detect_fraud_rings(graph: KnowledgeGraph, persist: bool = True) -> List[FraudRing]:
    return get_engine().detect_fraud_rings(graph, persist=persist)


def save_fraud_ring(ring: FraudRing) -> bool:
    return get_engine().save_fraud_ring(ring)


def load_fraud_rings(limit: Optional[int] = None) -> List[FraudRing]:
    return get_engine().load_fraud_rings(limit)


def run_pattern_analyzer(graph: KnowledgeGraph, kind: Union[AnalyzerKind, str]) -> AgentAnalysis:
    return get_engine().run_pattern_analyzer(graph, kind)


def run_correlation_analysis(trades, accounts=None) -> List[CorrelationResult]:
    return get_engine().run_correlation_analysis(trades, accounts)
