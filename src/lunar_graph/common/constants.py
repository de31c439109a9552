"""Centralized constants for Lunar Graph.

Tunable detection policy lives in DetectionThresholds; these are the fixed
values around it.
"""


# ===== GRAPH =====
class GraphConstants:
    AFFILIATE_PREFIX = "affiliate_"
    CLIENT_PREFIX = "client_"
    TRADE_PREFIX = "trade_"
    IP_PREFIX = "ip_"
    DEVICE_PREFIX = "device_"

    # Hash length for derived identifiers (cluster ids)
    ID_HASH_LENGTH = 12


# ===== RISK =====
class RiskConstants:
    RISK_SCORE_MIN = 0
    RISK_SCORE_MAX = 100

    # Ring confidence is capped below certainty
    RING_CONFIDENCE_MAX = 95


# ===== FETCH =====
class FetchConstants:
    FEED_AFFILIATES = "affiliates"
    FEED_CLIENTS = "clients"
    FEED_TRADES = "trades"
    FEED_TRACKING = "tracking"
    MAX_WORKERS = 4


# ===== PERSISTENCE =====
class StoreConstants:
    DEFAULT_LOAD_LIMIT = 50
    DEDUP_ENTITY_PREFIX = 3
    RING_FILE_NAME = "fraud_rings.json"
