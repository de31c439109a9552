"""Shared fixtures for Lunar Graph tests."""

from datetime import datetime, timedelta, timezone

import pytest

from lunar_graph.common.config import reset_config, reset_thresholds
from lunar_graph.detection.rings.store import InMemoryFraudRingStore
from lunar_graph.models.graph.heuristics import make_edge_id
from lunar_graph.models.graph.schema import (
    EdgeType,
    GraphEdge,
    GraphNode,
    KnowledgeGraph,
    NodeType,
)
from lunar_graph.orchestration.engine import reset_engine


BASE_TIME = datetime(2026, 1, 25, 14, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Every test starts from fresh config, thresholds and engine."""
    reset_config()
    reset_thresholds()
    reset_engine()
    yield
    reset_config()
    reset_thresholds()
    reset_engine()


@pytest.fixture
def base_time():
    return BASE_TIME


@pytest.fixture
def affiliates():
    return [
        {"id": "aff_1", "name": "Affiliate One", "referralCode": "REF00001", "email": "one@demo.com"},
        {"id": "aff_2", "name": "Affiliate Two", "referralCode": "REF00002"},
    ]


@pytest.fixture
def clients():
    """c1/c2 share an IP, c3 shares a device with c1, c4 is unconnected."""
    return [
        {"id": "c1", "affiliateId": "aff_1", "ipAddress": "10.0.1.5", "deviceId": "dev_a"},
        {"id": "c2", "affiliateId": "aff_1", "ipAddress": "10.0.1.5", "deviceId": "dev_b"},
        {"id": "c3", "affiliateId": "aff_2", "ipAddress": "192.168.7.9", "deviceId": "dev_a"},
        {"id": "c4", "affiliateId": "aff_2", "ipAddress": "8.8.4.4", "deviceId": "dev_d"},
    ]


@pytest.fixture
def trades():
    """An opposite pair (c1/c2, 800ms) and an unrelated trade an hour later."""
    return [
        {
            "id": "t1", "clientId": "c1", "contractType": "CALL", "symbol": "1HZ100V",
            "amount": 100.0, "profit": 80.0, "createdAt": BASE_TIME.isoformat(),
        },
        {
            "id": "t2", "clientId": "c2", "contractType": "PUT", "symbol": "1HZ100V",
            "amount": 100.0, "profit": -100.0,
            "createdAt": (BASE_TIME + timedelta(milliseconds=800)).isoformat(),
        },
        {
            "id": "t3", "clientId": "c4", "contractType": "CALL", "symbol": "BOOM1000",
            "amount": 20.0, "profit": 16.0,
            "createdAt": (BASE_TIME + timedelta(hours=1)).isoformat(),
        },
    ]


@pytest.fixture
def memory_store():
    return InMemoryFraudRingStore()


def edge(edge_type, source, target, weight=1.0, fraud=True, **metadata):
    """Hand-built edge for graphs assembled outside the builder."""
    return GraphEdge(
        id=make_edge_id(edge_type, source, target),
        source=source,
        target=target,
        type=edge_type,
        weight=weight,
        is_fraud_indicator=fraud,
        metadata=metadata,
    )


@pytest.fixture
def make_edge():
    return edge


@pytest.fixture
def device_match_graph():
    """Two clients (risk 60 and 90) sharing a device, each owning one $25 trade."""
    graph = KnowledgeGraph()
    graph.add_node(GraphNode(id="client_a", type=NodeType.CLIENT, label="A", risk_score=60))
    graph.add_node(GraphNode(id="client_b", type=NodeType.CLIENT, label="B", risk_score=90))
    graph.add_edge(edge(EdgeType.DEVICE_MATCH, "client_a", "client_b", description="shared device"))
    for client_id, trade_id in (("client_a", "trade_a1"), ("client_b", "trade_b1")):
        graph.add_node(GraphNode(
            id=trade_id, type=NodeType.TRADE, label="CALL",
            metadata={"amount": 25.0, "contract_type": "CALL", "symbol": "R_50"},
        ))
        graph.add_edge(edge(EdgeType.TRADE_LINK, client_id, trade_id, fraud=False))
    return graph
