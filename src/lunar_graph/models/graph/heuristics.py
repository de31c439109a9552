"""Edge heuristics for the knowledge graph.

Derives suspicious relationships between entities that share no explicit
foreign key: shared IPs, shared devices, and trades that are synchronized in
time or hedge each other.
"""

import hashlib
import ipaddress
from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, Iterable, List, Optional, Set, Tuple

from lunar_graph.common.config.thresholds import GraphThresholds
from lunar_graph.common.constants import GraphConstants
from lunar_graph.models.graph.schema import EdgeType, GraphEdge, NodeType


@dataclass
class AccountProfile:
    """Identity signals collected for one affiliate or client node."""
    node_id: str
    node_type: NodeType
    ips: Set[str] = field(default_factory=set)
    devices: Set[str] = field(default_factory=set)
    referrer: Optional[str] = None


@dataclass
class TradeEvent:
    """A trade reduced to the fields the timing heuristics need."""
    node_id: str
    owner: str
    contract_type: str
    symbol: str
    amount: float
    timestamp_ms: float


def make_edge_id(edge_type: EdgeType, source: str, target: str) -> str:
    """Deterministic edge id from type and endpoint keys."""
    digest = hashlib.sha256(f"{edge_type.value}|{source}|{target}".encode()).hexdigest()
    return f"{edge_type.value}_{digest[:GraphConstants.ID_HASH_LENGTH]}"


def ip_prefix(ip: str, octets: int = 3) -> Optional[str]:
    """First `octets` octets of an IPv4 address, None for anything else."""
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return None
    if address.version != 4:
        return None
    return ".".join(str(address).split(".")[:octets])


def amount_closeness(amount_a: float, amount_b: float) -> float:
    """min/max of two amounts; 0 when both are 0."""
    high = max(amount_a, amount_b)
    if high <= 0:
        return 0.0
    return min(amount_a, amount_b) / high


def amounts_similar(amount_a: float, amount_b: float, tolerance: float) -> bool:
    """True when the relative difference against the mean is within tolerance."""
    mean = (amount_a + amount_b) / 2
    if mean <= 0:
        return False
    return abs(amount_a - amount_b) / mean <= tolerance


def timing_closeness(delta_ms: float, window_ms: float) -> float:
    """1 at zero delta, falling linearly to 0 at the window edge."""
    if window_ms <= 0:
        return 0.0
    return max(0.0, 1.0 - delta_ms / window_ms)


def is_opposite(contract_a: str, contract_b: str) -> bool:
    return {contract_a, contract_b} == {"CALL", "PUT"}


def _explained_by_referral(a: AccountProfile, b: AccountProfile) -> bool:
    return a.referrer == b.node_id or b.referrer == a.node_id


def _edge_metadata(
    description: str,
    weight: float,
    detected_at: str,
    **extra,
) -> Dict:
    metadata = {
        "description": description,
        "confidence": int(round(weight * 100)),
        "detected_at": detected_at,
    }
    metadata.update(extra)
    return metadata


def _pairs_by_key(index: Dict[str, List[str]]) -> Dict[Tuple[str, str], Set[str]]:
    """Map each account pair to the keys they share."""
    pairs: Dict[Tuple[str, str], Set[str]] = {}
    for key, node_ids in index.items():
        for a, b in combinations(sorted(set(node_ids)), 2):
            pairs.setdefault((a, b), set()).add(key)
    return pairs


def derive_ip_overlap_edges(
    accounts: Iterable[AccountProfile],
    thresholds: GraphThresholds,
    detected_at: str,
) -> List[GraphEdge]:
    """One ip_overlap edge per account pair, exact match beating prefix."""
    profiles = {p.node_id: p for p in accounts}

    exact_index: Dict[str, List[str]] = {}
    prefix_index: Dict[str, List[str]] = {}
    for profile in profiles.values():
        for ip in profile.ips:
            exact_index.setdefault(ip, []).append(profile.node_id)
            if thresholds.ip_prefix_match:
                prefix = ip_prefix(ip, thresholds.ip_prefix_octets)
                if prefix is not None:
                    prefix_index.setdefault(prefix, []).append(profile.node_id)

    exact_pairs = _pairs_by_key(exact_index)
    prefix_pairs = _pairs_by_key(prefix_index)

    edges = []
    for pair in sorted(set(exact_pairs) | set(prefix_pairs)):
        a, b = (profiles[node_id] for node_id in pair)
        if pair in exact_pairs:
            weight = thresholds.ip_exact_weight
            shared = sorted(exact_pairs[pair])
            description = f"Accounts share IP address {', '.join(shared)}"
            match = "exact"
        else:
            weight = thresholds.ip_prefix_weight
            shared = sorted(prefix_pairs[pair])
            description = f"Accounts share IP prefix {', '.join(shared)}"
            match = "prefix"

        explained = _explained_by_referral(a, b)
        if explained:
            description += " (affiliate and own referred client)"

        edges.append(GraphEdge(
            id=make_edge_id(EdgeType.IP_OVERLAP, *pair),
            source=pair[0],
            target=pair[1],
            type=EdgeType.IP_OVERLAP,
            weight=weight,
            is_fraud_indicator=not explained,
            metadata=_edge_metadata(
                description, weight, detected_at, shared=shared, match=match,
            ),
        ))
    return edges


def derive_device_match_edges(
    accounts: Iterable[AccountProfile],
    thresholds: GraphThresholds,
    detected_at: str,
) -> List[GraphEdge]:
    """One device_match edge per account pair sharing any fingerprint."""
    device_index: Dict[str, List[str]] = {}
    for profile in accounts:
        for device in profile.devices:
            device_index.setdefault(device, []).append(profile.node_id)

    edges = []
    for pair, shared in sorted(_pairs_by_key(device_index).items()):
        shared_devices = sorted(shared)
        weight = thresholds.device_match_weight
        edges.append(GraphEdge(
            id=make_edge_id(EdgeType.DEVICE_MATCH, *pair),
            source=pair[0],
            target=pair[1],
            type=EdgeType.DEVICE_MATCH,
            weight=weight,
            is_fraud_indicator=True,
            metadata=_edge_metadata(
                f"Accounts share device fingerprint {', '.join(shared_devices)}",
                weight,
                detected_at,
                shared=shared_devices,
            ),
        ))
    return edges


def derive_trade_edges(
    trades: Iterable[TradeEvent],
    thresholds: GraphThresholds,
    detected_at: str,
) -> List[GraphEdge]:
    """timing_sync and opposite_position edges between trades of different owners.

    Trades are swept in time order so each trade is only compared with the
    trades inside its timing window.
    """
    ordered = sorted(trades, key=lambda t: (t.timestamp_ms, t.node_id))
    timing_window_ms = thresholds.timing_window_seconds * 1000.0
    opposite_window_ms = thresholds.opposite_window_seconds * 1000.0

    edges = []
    for i, first in enumerate(ordered):
        for second in ordered[i + 1:]:
            delta_ms = second.timestamp_ms - first.timestamp_ms
            if delta_ms > timing_window_ms:
                break
            if first.owner == second.owner:
                continue

            opposite = is_opposite(first.contract_type, second.contract_type)
            closeness = amount_closeness(first.amount, second.amount)

            if opposite and first.symbol == second.symbol and delta_ms <= opposite_window_ms:
                weight = (timing_closeness(delta_ms, opposite_window_ms) + closeness) / 2
                edges.append(GraphEdge(
                    id=make_edge_id(EdgeType.OPPOSITE_POSITION, first.node_id, second.node_id),
                    source=first.node_id,
                    target=second.node_id,
                    type=EdgeType.OPPOSITE_POSITION,
                    weight=weight,
                    is_fraud_indicator=True,
                    metadata=_edge_metadata(
                        f"{first.contract_type} vs {second.contract_type} on {first.symbol} "
                        f"{int(delta_ms)}ms apart",
                        weight,
                        detected_at,
                        time_delta=int(delta_ms),
                        amount_ratio=round(closeness, 4),
                    ),
                ))
                continue

            weight = timing_closeness(delta_ms, timing_window_ms)
            similar = amounts_similar(first.amount, second.amount, thresholds.amount_tolerance)
            edges.append(GraphEdge(
                id=make_edge_id(EdgeType.TIMING_SYNC, first.node_id, second.node_id),
                source=first.node_id,
                target=second.node_id,
                type=EdgeType.TIMING_SYNC,
                weight=weight,
                is_fraud_indicator=opposite or similar,
                metadata=_edge_metadata(
                    f"Trades {int(delta_ms)}ms apart",
                    weight,
                    detected_at,
                    time_delta=int(delta_ms),
                    opposite_direction=opposite,
                    similar_amount=similar,
                ),
            ))
    return edges
