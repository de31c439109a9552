"""Demo fraud scenarios.

Each scenario reproduces one ring pattern with a handful of affiliates,
clients and trades so the whole pipeline can be exercised without a
database.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Dict, List, Optional

from lunar_graph.common.constants import FetchConstants
from lunar_graph.data.fetcher import RecordSnapshot
from lunar_graph.data.generators.base_generator import (
    BaseGenerator,
    FINGERPRINTS,
    SYMBOLS,
)
from lunar_graph.detection.rings.schema import FraudRingType


@dataclass(frozen=True)
class DemoScenario:
    name: str
    description: str
    type: FraudRingType
    affiliates: int
    clients: int
    trades: int


DEMO_SCENARIOS: List[DemoScenario] = [
    DemoScenario(
        name="Opposite Trading Ring",
        description="5 clients trading mirror positions to guarantee profits",
        type=FraudRingType.OPPOSITE_TRADING,
        affiliates=2,
        clients=5,
        trades=20,
    ),
    DemoScenario(
        name="Multi-Account Abuse",
        description="Same device fingerprint across multiple accounts",
        type=FraudRingType.MULTI_ACCOUNT,
        affiliates=1,
        clients=4,
        trades=16,
    ),
    DemoScenario(
        name="IP Clustering",
        description="Multiple accounts from same IP range",
        type=FraudRingType.IP_CLUSTERING,
        affiliates=1,
        clients=6,
        trades=12,
    ),
    DemoScenario(
        name="Commission Pumping",
        description="High volume low-value trades for commission extraction",
        type=FraudRingType.COMMISSION_PUMPING,
        affiliates=1,
        clients=3,
        trades=50,
    ),
]


def get_scenario(scenario_type) -> DemoScenario:
    """Look up a scenario by ring type; unknown types fall back to the first."""
    for scenario in DEMO_SCENARIOS:
        if scenario.type == scenario_type:
            return scenario
    return DEMO_SCENARIOS[0]


def as_feeds(snapshot: RecordSnapshot) -> Dict[str, Callable[[], list]]:
    """Expose a snapshot as RecordFetcher feeds."""
    return {
        FetchConstants.FEED_AFFILIATES: lambda: list(snapshot.affiliates),
        FetchConstants.FEED_CLIENTS: lambda: list(snapshot.clients),
        FetchConstants.FEED_TRADES: lambda: list(snapshot.trades),
        FetchConstants.FEED_TRACKING: lambda: list(snapshot.tracking),
    }


class ScenarioGenerator(BaseGenerator):
    """Generates the demo scenarios.

    Usage:
        generator = ScenarioGenerator(seed=7)
        snapshot = generator.generate(FraudRingType.MULTI_ACCOUNT)
    """

    def generate(self, scenario_type: Optional[FraudRingType] = None) -> RecordSnapshot:
        """Generate one scenario; a seeded random pick when type is None."""
        if scenario_type is None:
            scenario = self._random_choice(DEMO_SCENARIOS)
        else:
            scenario = get_scenario(scenario_type)

        builders = {
            FraudRingType.OPPOSITE_TRADING: self._opposite_trading,
            FraudRingType.MULTI_ACCOUNT: self._multi_account,
            FraudRingType.IP_CLUSTERING: self._ip_clustering,
            FraudRingType.COMMISSION_PUMPING: self._commission_pumping,
        }
        return builders[scenario.type]()

    def generate_all(self) -> RecordSnapshot:
        """Every scenario merged into one snapshot."""
        merged = RecordSnapshot()
        for scenario in DEMO_SCENARIOS:
            snapshot = self.generate(scenario.type)
            merged.affiliates.extend(snapshot.affiliates)
            merged.clients.extend(snapshot.clients)
            merged.trades.extend(snapshot.trades)
            merged.tracking.extend(snapshot.tracking)
        return merged

    def _opposite_trading(self) -> RecordSnapshot:
        aff_a = self.generate_affiliate("Fraud Affiliate A")
        aff_b = self.generate_affiliate("Fraud Affiliate B")

        # Shared /24 links the two sides of the ring
        clients = [
            self.generate_client(aff_a if i < 3 else aff_b, self.generate_ip_address("10.0.1.100"))
            for i in range(5)
        ]

        trades = []
        for i in range(10):
            symbol = SYMBOLS[i % len(SYMBOLS)]
            amount = 10 + self.rng.random() * 40
            opened_at = self.base_time - timedelta(minutes=i)

            trades.append(self.generate_trade(
                clients[i % 3], "CALL", amount, symbol, opened_at,
                profit=amount * 0.8 if self._random_bool() else -amount,
            ))
            # Mirror position within 3 seconds at a similar stake
            offset_ms = self.rng.randint(0, 2999)
            trades.append(self.generate_trade(
                clients[3 + i % 2], "PUT", amount * (0.9 + self.rng.random() * 0.2), symbol,
                opened_at + timedelta(milliseconds=offset_ms),
                profit=amount * 0.8 if self._random_bool() else -amount,
            ))

        return RecordSnapshot(affiliates=[aff_a, aff_b], clients=clients, trades=trades)

    def _multi_account(self) -> RecordSnapshot:
        affiliate = self.generate_affiliate("Multi-Account Controller")
        clients = [self.generate_client(affiliate) for _ in range(4)]
        tracking = [self.generate_tracking(client, FINGERPRINTS[0]) for client in clients]

        trades = [
            self.generate_trade(
                clients[i % len(clients)],
                "CALL" if self._random_bool() else "PUT",
                5 + self.rng.random() * 20,
                self._random_choice(SYMBOLS),
                self.base_time - timedelta(seconds=30 * i),
            )
            for i in range(16)
        ]
        return RecordSnapshot(
            affiliates=[affiliate], clients=clients, trades=trades, tracking=tracking,
        )

    def _ip_clustering(self) -> RecordSnapshot:
        affiliate = self.generate_affiliate("IP Farm Controller")
        clients = [
            self.generate_client(affiliate, self.generate_ip_address("172.16.0.1"))
            for _ in range(6)
        ]
        # Different devices, same address range
        tracking = [
            self.generate_tracking(client, FINGERPRINTS[i % len(FINGERPRINTS)])
            for i, client in enumerate(clients)
        ]

        trades = [
            self.generate_trade(
                clients[i % len(clients)],
                "CALL" if self._random_bool() else "PUT",
                10 + self.rng.random() * 30,
                self._random_choice(SYMBOLS),
                self.base_time - timedelta(seconds=45 * i),
            )
            for i in range(12)
        ]
        return RecordSnapshot(
            affiliates=[affiliate], clients=clients, trades=trades, tracking=tracking,
        )

    def _commission_pumping(self) -> RecordSnapshot:
        affiliate = self.generate_affiliate("Commission Farmer")
        clients = [self.generate_client(affiliate) for _ in range(3)]

        trades = [
            self.generate_trade(
                clients[i % len(clients)],
                "CALL" if self._random_bool() else "PUT",
                1 + self.rng.random() * 3,
                SYMBOLS[0],
                self.base_time - timedelta(seconds=10 * i),
                profit=0.5 if self._random_bool() else -1.0,
            )
            for i in range(50)
        ]
        return RecordSnapshot(affiliates=[affiliate], clients=clients, trades=trades)
