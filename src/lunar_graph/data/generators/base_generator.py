"""Base generator with shared utilities for synthetic record feeds."""

import hashlib
import random
import string
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from lunar_graph.data.fetcher import RecordSnapshot
from lunar_graph.data.schemas import (
    AffiliateRecord,
    ClientRecord,
    TradeRecord,
    TrackingRecord,
)


# Synthetic indices offered by the broker
SYMBOLS = ["1HZ100V", "1HZ75V", "1HZ50V", "BOOM1000", "CRASH1000"]

FINGERPRINTS = [
    "fp_abc123def456",
    "fp_xyz789uvw012",
    "fp_mno345pqr678",
    "fp_stu901vwx234",
]

REFERRAL_CODE_CHARS = string.ascii_uppercase + string.digits
REFERRAL_CODE_LENGTH = 8

# Fixed anchor so generated timestamps are reproducible
BASE_TIME = datetime(2026, 1, 25, 14, 30, tzinfo=timezone.utc)


class BaseGenerator(ABC):
    """Base class for synthetic data generators.

    All generators must be deterministic given the same seed.
    """

    def __init__(self, seed: int = 42, base_time: datetime = BASE_TIME):
        """Initialize generator with seed for reproducibility."""
        self.seed = seed
        self.base_time = base_time
        self.rng = random.Random(seed)
        self._affiliate_counter = 0
        self._client_counter = 0
        self._trade_counter = 0
        self._visitor_counter = 0

    def reset(self):
        """Reset generator to initial state."""
        self.rng = random.Random(self.seed)
        self._affiliate_counter = 0
        self._client_counter = 0
        self._trade_counter = 0
        self._visitor_counter = 0

    def _generate_id(self, prefix: str, counter: int) -> str:
        """Generate deterministic ID."""
        raw = f"{prefix}_{self.seed}_{counter}"
        return f"{prefix}_{hashlib.sha256(raw.encode()).hexdigest()[:12]}"

    def _random_choice(self, items: list) -> Any:
        return self.rng.choice(items)

    def _random_float(self, low: float, high: float) -> float:
        return self.rng.uniform(low, high)

    def _random_bool(self, probability: float = 0.5) -> bool:
        return self.rng.random() < probability

    def generate_referral_code(self) -> str:
        return "".join(
            self.rng.choice(REFERRAL_CODE_CHARS) for _ in range(REFERRAL_CODE_LENGTH)
        )

    def generate_ip_address(self, base: Optional[str] = None) -> str:
        """Random host inside base's /24, or a random private address."""
        if base:
            a, b, c, _ = base.split(".")
            return f"{a}.{b}.{c}.{self.rng.randint(1, 254)}"
        return f"192.168.{self.rng.randint(0, 254)}.{self.rng.randint(1, 254)}"

    def generate_affiliate(self, name: str) -> AffiliateRecord:
        self._affiliate_counter += 1
        return AffiliateRecord(
            id=self._generate_id("aff", self._affiliate_counter),
            name=name,
            email=f"{name.lower().replace(' ', '.')}@demo.com",
            referral_code=self.generate_referral_code(),
            ip_address=self.generate_ip_address(),
            created_at=self.base_time - timedelta(days=30),
        )

    def generate_client(
        self,
        affiliate: AffiliateRecord,
        ip_address: Optional[str] = None,
    ) -> ClientRecord:
        """Generate a client referred by the affiliate."""
        self._client_counter += 1
        client_id = self._generate_id("cli", self._client_counter)
        return ClientRecord(
            id=client_id,
            affiliate_id=affiliate.id,
            referral_code=affiliate.referral_code,
            email=f"client_{client_id[-6:]}@demo.com",
            ip_address=ip_address or self.generate_ip_address(),
            device_id=self._generate_id("dev", self._client_counter)[-8:],
            created_at=self.base_time - timedelta(days=7),
        )

    def generate_tracking(self, client: ClientRecord, fingerprint: str) -> TrackingRecord:
        """Landing-page visit of the client, keyed by its device id."""
        self._visitor_counter += 1
        return TrackingRecord(
            visitor_id=client.device_id,
            session_id=self._generate_id("sess", self._visitor_counter),
            ip_address=client.ip_address,
            canvas_fingerprint=fingerprint,
            referral_code=client.referral_code,
            device_type="desktop",
            browser_name="Chrome",
            user_agent="Mozilla/5.0 Demo",
            created_at=self.base_time - timedelta(days=7),
        )

    def generate_trade(
        self,
        client: ClientRecord,
        contract_type: str,
        amount: float,
        symbol: str,
        timestamp: datetime,
        profit: Optional[float] = None,
    ) -> TradeRecord:
        self._trade_counter += 1
        return TradeRecord(
            id=self._generate_id("trd", self._trade_counter),
            client_id=client.id,
            affiliate_id=client.affiliate_id,
            contract_type=contract_type,
            symbol=symbol,
            amount=round(amount, 2),
            profit=round(profit, 2) if profit is not None else None,
            created_at=timestamp,
        )

    @abstractmethod
    def generate(self) -> RecordSnapshot:
        """Generate one snapshot of all four feeds. Must be implemented by subclasses."""
        pass
