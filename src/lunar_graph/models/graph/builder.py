"""Graph builder for constructing the fraud knowledge graph.

Builds the affiliate-client-trade graph from one snapshot of the four record
feeds. Node and edge ids derive from source keys, so rebuilding the same
snapshot yields the same graph.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from lunar_graph.common.config.thresholds import GraphThresholds
from lunar_graph.common.constants import GraphConstants
from lunar_graph.data.schemas import (
    AffiliateRecord,
    ClientRecord,
    TradeRecord,
    TrackingRecord,
)
from lunar_graph.data.validators import (
    validate_affiliates,
    validate_clients,
    validate_trades,
    validate_tracking,
)
from lunar_graph.models.graph.heuristics import (
    AccountProfile,
    TradeEvent,
    derive_device_match_edges,
    derive_ip_overlap_edges,
    derive_trade_edges,
    make_edge_id,
)
from lunar_graph.models.graph.schema import (
    EdgeType,
    GraphEdge,
    GraphNode,
    KnowledgeGraph,
    NodeType,
)


logger = logging.getLogger(__name__)


def affiliate_node_id(affiliate_id: str) -> str:
    return f"{GraphConstants.AFFILIATE_PREFIX}{affiliate_id}"


def client_node_id(client_id: str) -> str:
    return f"{GraphConstants.CLIENT_PREFIX}{client_id}"


def trade_node_id(trade_id: str) -> str:
    return f"{GraphConstants.TRADE_PREFIX}{trade_id}"


def ip_node_id(address: str) -> str:
    return f"{GraphConstants.IP_PREFIX}{address}"


def device_node_id(fingerprint: str) -> str:
    return f"{GraphConstants.DEVICE_PREFIX}{fingerprint}"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _dedupe(records: Sequence, entity_type: str) -> List:
    """Keep the first record per id."""
    seen: Set[str] = set()
    unique = []
    for record in records:
        if record.id in seen:
            logger.warning(
                f"Duplicate {entity_type} id {record.id}, keeping first occurrence",
                extra={"entity_type": entity_type, "record_id": record.id},
            )
            continue
        seen.add(record.id)
        unique.append(record)
    return unique


class GraphBuilder:
    """Build the fraud knowledge graph from record snapshots.

    Creates entity nodes, structural edges (referral, trade_link) and the
    heuristic edges from heuristics.py. Risk scoring is a separate pass.
    """

    def __init__(self, thresholds: Optional[GraphThresholds] = None):
        """Initialize graph builder.

        Args:
            thresholds: Edge heuristic parameters
        """
        self.thresholds = thresholds or GraphThresholds()

    def build(
        self,
        affiliates: Optional[Iterable[Any]] = None,
        clients: Optional[Iterable[Any]] = None,
        trades: Optional[Iterable[Any]] = None,
        tracking_records: Optional[Iterable[Any]] = None,
    ) -> KnowledgeGraph:
        """Build a graph from one snapshot.

        Records may be schema instances or raw dicts in snake_case or
        camelCase. Invalid records are skipped with a warning.

        Returns:
            KnowledgeGraph with unscored nodes and current stats
        """
        affiliate_records, _ = validate_affiliates(affiliates)
        client_records, _ = validate_clients(clients)
        trade_records, _ = validate_trades(trades)
        tracking, _ = validate_tracking(tracking_records)

        affiliate_records = _dedupe(affiliate_records, "affiliate")
        client_records = _dedupe(client_records, "client")
        trade_records = _dedupe(trade_records, "trade")

        graph = KnowledgeGraph()
        detected_at = graph.built_at.isoformat()

        profiles: Dict[str, AccountProfile] = {}
        for affiliate in affiliate_records:
            self._add_affiliate(graph, affiliate, profiles)
        for client in client_records:
            self._add_client(graph, client, profiles)

        attributed = self._attribute_tracking(tracking, affiliate_records, client_records)
        for client_id, records in attributed.items():
            profile = profiles[client_node_id(client_id)]
            for record in records:
                if record.ip_address:
                    profile.ips.add(record.ip_address)
                if record.canvas_fingerprint:
                    profile.devices.add(record.canvas_fingerprint)

        self._add_infrastructure_nodes(graph, profiles.values(), tracking)

        events = []
        for trade in trade_records:
            event = self._add_trade(graph, trade)
            if event is not None:
                events.append(event)

        for client in client_records:
            if client.affiliate_id is None:
                continue
            source = affiliate_node_id(client.affiliate_id)
            target = client_node_id(client.id)
            self._add_edge(graph, GraphEdge(
                id=make_edge_id(EdgeType.REFERRAL, source, target),
                source=source,
                target=target,
                type=EdgeType.REFERRAL,
                weight=1.0,
                metadata={"description": "Referred client", "detected_at": detected_at},
            ))

        for event in events:
            self._add_edge(graph, GraphEdge(
                id=make_edge_id(EdgeType.TRADE_LINK, event.owner, event.node_id),
                source=event.owner,
                target=event.node_id,
                type=EdgeType.TRADE_LINK,
                weight=1.0,
                metadata={"description": "Account placed trade", "detected_at": detected_at},
            ))

        account_profiles = sorted(profiles.values(), key=lambda p: p.node_id)
        derived = (
            derive_ip_overlap_edges(account_profiles, self.thresholds, detected_at)
            + derive_device_match_edges(account_profiles, self.thresholds, detected_at)
            + derive_trade_edges(events, self.thresholds, detected_at)
        )
        for edge in derived:
            self._add_edge(graph, edge)

        graph.recompute_stats()
        logger.info(
            f"Built graph with {graph.stats.total_nodes} nodes, "
            f"{graph.stats.total_edges} edges ({graph.stats.fraud_edges} fraud indicators)",
            extra={
                "nodes": graph.stats.total_nodes,
                "edges": graph.stats.total_edges,
                "fraud_edges": graph.stats.fraud_edges,
            },
        )
        return graph

    # ------------------------------------------------------------------ #
    # Nodes
    # ------------------------------------------------------------------ #

    def _add_affiliate(
        self,
        graph: KnowledgeGraph,
        affiliate: AffiliateRecord,
        profiles: Dict[str, AccountProfile],
    ) -> None:
        node_id = affiliate_node_id(affiliate.id)
        graph.add_node(GraphNode(
            id=node_id,
            type=NodeType.AFFILIATE,
            label=affiliate.name,
            metadata={
                "record_id": affiliate.id,
                "email": affiliate.email,
                "referral_code": affiliate.referral_code,
                "ip_address": affiliate.ip_address,
                "created_at": _iso(affiliate.created_at),
            },
        ))
        profiles[node_id] = AccountProfile(
            node_id=node_id,
            node_type=NodeType.AFFILIATE,
            ips={affiliate.ip_address} if affiliate.ip_address else set(),
        )

    def _add_client(
        self,
        graph: KnowledgeGraph,
        client: ClientRecord,
        profiles: Dict[str, AccountProfile],
    ) -> None:
        node_id = client_node_id(client.id)
        graph.add_node(GraphNode(
            id=node_id,
            type=NodeType.CLIENT,
            label=client.email or client.deriv_account_id or client.id,
            metadata={
                "record_id": client.id,
                "affiliate_id": client.affiliate_id,
                "referral_code": client.referral_code,
                "email": client.email,
                "deriv_account_id": client.deriv_account_id,
                "ip_address": client.ip_address,
                "device_id": client.device_id,
                "created_at": _iso(client.created_at),
            },
        ))
        referrer = affiliate_node_id(client.affiliate_id) if client.affiliate_id else None
        profiles[node_id] = AccountProfile(
            node_id=node_id,
            node_type=NodeType.CLIENT,
            ips={client.ip_address} if client.ip_address else set(),
            devices={client.device_id} if client.device_id else set(),
            referrer=referrer if referrer in graph.nodes else None,
        )

    def _add_trade(self, graph: KnowledgeGraph, trade: TradeRecord) -> Optional[TradeEvent]:
        owner = client_node_id(trade.client_id)
        if owner not in graph.nodes:
            logger.warning(
                f"Skipping trade {trade.id}: unknown client {trade.client_id}",
                extra={"trade_id": trade.id, "client_id": trade.client_id},
            )
            return None

        node_id = trade_node_id(trade.id)
        graph.add_node(GraphNode(
            id=node_id,
            type=NodeType.TRADE,
            label=f"{trade.contract_type} {trade.symbol} ${trade.amount:.2f}",
            metadata={
                "record_id": trade.id,
                "client_id": trade.client_id,
                "affiliate_id": trade.affiliate_id,
                "contract_type": trade.contract_type,
                "symbol": trade.symbol,
                "amount": trade.amount,
                "profit": trade.profit,
                "timestamp": trade.created_at.isoformat(),
            },
        ))
        return TradeEvent(
            node_id=node_id,
            owner=owner,
            contract_type=trade.contract_type,
            symbol=trade.symbol,
            amount=trade.amount,
            timestamp_ms=trade.timestamp_ms,
        )

    def _add_infrastructure_nodes(
        self,
        graph: KnowledgeGraph,
        profiles: Iterable[AccountProfile],
        tracking: List[TrackingRecord],
    ) -> None:
        """One ip node per distinct address, one device node per fingerprint."""
        ip_accounts: Dict[str, Set[str]] = {}
        device_accounts: Dict[str, Set[str]] = {}
        for profile in profiles:
            for ip in profile.ips:
                ip_accounts.setdefault(ip, set()).add(profile.node_id)
            for device in profile.devices:
                device_accounts.setdefault(device, set()).add(profile.node_id)

        ip_details: Dict[str, Dict[str, Any]] = {}
        device_details: Dict[str, Dict[str, Any]] = {}
        for record in tracking:
            if record.ip_address:
                ip_accounts.setdefault(record.ip_address, set())
                details = ip_details.setdefault(record.ip_address, {"visitors": set()})
                details["visitors"].add(record.visitor_id)
                details.setdefault("country", record.country)
                details.setdefault("city", record.city)
            if record.canvas_fingerprint:
                device_accounts.setdefault(record.canvas_fingerprint, set())
                details = device_details.setdefault(record.canvas_fingerprint, {"visitors": set()})
                details["visitors"].add(record.visitor_id)
                details.setdefault("device_type", record.device_type)
                details.setdefault("browser_name", record.browser_name)

        for ip in sorted(ip_accounts):
            details = ip_details.get(ip, {"visitors": set()})
            graph.add_node(GraphNode(
                id=ip_node_id(ip),
                type=NodeType.IP,
                label=ip,
                metadata={
                    "accounts": sorted(ip_accounts[ip]),
                    "visitors": sorted(details["visitors"]),
                    "country": details.get("country"),
                    "city": details.get("city"),
                },
            ))

        for device in sorted(device_accounts):
            details = device_details.get(device, {"visitors": set()})
            graph.add_node(GraphNode(
                id=device_node_id(device),
                type=NodeType.DEVICE,
                label=device,
                metadata={
                    "accounts": sorted(device_accounts[device]),
                    "visitors": sorted(details["visitors"]),
                    "device_type": details.get("device_type"),
                    "browser_name": details.get("browser_name"),
                },
            ))

    # ------------------------------------------------------------------ #
    # Edges
    # ------------------------------------------------------------------ #

    def _attribute_tracking(
        self,
        tracking: List[TrackingRecord],
        affiliates: List[AffiliateRecord],
        clients: List[ClientRecord],
    ) -> Dict[str, List[TrackingRecord]]:
        """Attribute tracking records to clients.

        A record belongs to the client whose device_id equals its visitor_id;
        otherwise to the single client on the same IP whose referral code
        agrees. Ambiguous records stay unattributed.
        """
        affiliate_codes = {a.id: a.referral_code for a in affiliates}
        by_device = {c.device_id: c for c in clients if c.device_id}
        by_ip: Dict[str, List[ClientRecord]] = {}
        for client in clients:
            if client.ip_address:
                by_ip.setdefault(client.ip_address, []).append(client)

        attributed: Dict[str, List[TrackingRecord]] = {}
        for record in tracking:
            client = by_device.get(record.visitor_id)
            if client is None and record.ip_address:
                candidates = [
                    c for c in by_ip.get(record.ip_address, [])
                    if self._codes_agree(record, c, affiliate_codes)
                ]
                if len(candidates) == 1:
                    client = candidates[0]
            if client is not None:
                attributed.setdefault(client.id, []).append(record)
        return attributed

    @staticmethod
    def _codes_agree(
        record: TrackingRecord,
        client: ClientRecord,
        affiliate_codes: Dict[str, str],
    ) -> bool:
        client_code = client.referral_code or affiliate_codes.get(client.affiliate_id or "")
        if record.referral_code is None or client_code is None:
            return True
        return record.referral_code == client_code

    def _add_edge(self, graph: KnowledgeGraph, edge: GraphEdge) -> bool:
        added = graph.add_edge(edge)
        if not added:
            logger.warning(
                f"Dropping {edge.type.value} edge {edge.source} -> {edge.target}: "
                f"missing endpoint or duplicate id",
                extra={"edge_id": edge.id, "source": edge.source, "target": edge.target},
            )
        return added
