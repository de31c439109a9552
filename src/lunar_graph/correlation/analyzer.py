"""Pairwise account correlation directly from trades.

A lighter alternative to the graph pipeline: no nodes, no edges, just every
account pair scored on how their trades line up in time, direction, size and
instrument.
"""

import logging
from itertools import combinations
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from lunar_graph.common.config import get_thresholds
from lunar_graph.common.config.thresholds import CorrelationThresholds
from lunar_graph.correlation.schema import (
    CorrelationAccount,
    CorrelationResult,
    CorrelationStatus,
    TradeMatch,
)
from lunar_graph.data.schemas import TradeRecord
from lunar_graph.data.validators import validate_trades
from lunar_graph.models.graph.heuristics import amounts_similar, is_opposite


logger = logging.getLogger(__name__)

AccountLike = Union[CorrelationAccount, Dict[str, Any], str]


def _as_account(account: AccountLike) -> CorrelationAccount:
    if isinstance(account, CorrelationAccount):
        return account
    if isinstance(account, str):
        return CorrelationAccount(id=account)
    return CorrelationAccount.model_validate(account)


def timing_matches(
    trades_a: Sequence[TradeRecord],
    trades_b: Sequence[TradeRecord],
    window_seconds: float,
) -> List[tuple]:
    """Every cross pair within the window, as (trade_a, trade_b, delta_ms)."""
    window_ms = window_seconds * 1000.0
    matches = []
    for trade_a in trades_a:
        for trade_b in trades_b:
            delta = abs(trade_a.timestamp_ms - trade_b.timestamp_ms)
            if delta <= window_ms:
                matches.append((trade_a, trade_b, delta))
    return matches


def correlation_status(score: float, thresholds: CorrelationThresholds) -> CorrelationStatus:
    if score >= thresholds.flagged_score:
        return CorrelationStatus.FLAGGED
    if score >= thresholds.suspicious_score:
        return CorrelationStatus.SUSPICIOUS
    return CorrelationStatus.NORMAL


def correlate_pair(
    account_a: CorrelationAccount,
    account_b: CorrelationAccount,
    trades_a: Sequence[TradeRecord],
    trades_b: Sequence[TradeRecord],
    thresholds: Optional[CorrelationThresholds] = None,
) -> Optional[CorrelationResult]:
    """Score one pair; None when no trades fall inside the window."""
    thresholds = thresholds or CorrelationThresholds()
    if not trades_a or not trades_b:
        return None

    matches = timing_matches(trades_a, trades_b, thresholds.window_seconds)
    if not matches:
        return None

    total = len(matches)
    timing = min(100.0, total / min(len(trades_a), len(trades_b)) * 100.0)
    direction = sum(
        1 for a, b, _ in matches if is_opposite(a.contract_type, b.contract_type)
    ) / total * 100.0
    amount = sum(
        1 for a, b, _ in matches
        if amounts_similar(a.amount, b.amount, thresholds.amount_tolerance)
    ) / total * 100.0
    symbol = sum(1 for a, b, _ in matches if a.symbol == b.symbol) / total * 100.0

    overall = (
        timing * thresholds.timing_weight
        + direction * thresholds.direction_weight
        + amount * thresholds.amount_weight
        + symbol * thresholds.symbol_weight
    )
    overall = max(0.0, min(100.0, overall))

    return CorrelationResult(
        account_a=account_a.id,
        account_b=account_b.id,
        account_a_type=account_a.type,
        account_b_type=account_b.type,
        timing_score=round(timing, 2),
        direction_score=round(direction, 2),
        amount_score=round(amount, 2),
        symbol_score=round(symbol, 2),
        overall_score=round(overall, 2),
        status=correlation_status(overall, thresholds),
        matched_trades=[
            TradeMatch(trade_a=a.id, trade_b=b.id, time_delta_ms=delta)
            for a, b, delta in matches
        ],
    )


def run_correlation_analysis(
    trades: Optional[Iterable[Any]],
    accounts: Optional[Iterable[AccountLike]] = None,
    thresholds: Optional[CorrelationThresholds] = None,
) -> List[CorrelationResult]:
    """Correlate every account pair.

    Args:
        trades: Trade records or raw dicts; invalid ones are skipped
        accounts: Accounts to compare; derived from trade owners when None
        thresholds: Correlation policy

    Returns:
        Results for pairs with at least one timing match, highest overall
        score first
    """
    thresholds = thresholds or get_thresholds().correlation
    trade_records, _ = validate_trades(trades)

    by_account: Dict[str, List[TradeRecord]] = {}
    for trade in trade_records:
        by_account.setdefault(trade.client_id, []).append(trade)

    if accounts is None:
        account_list = [CorrelationAccount(id=account_id) for account_id in sorted(by_account)]
    else:
        account_list = [_as_account(a) for a in accounts]

    results = []
    for account_a, account_b in combinations(account_list, 2):
        if account_a.id == account_b.id:
            continue
        result = correlate_pair(
            account_a,
            account_b,
            by_account.get(account_a.id, []),
            by_account.get(account_b.id, []),
            thresholds,
        )
        if result is not None:
            results.append(result)

    results.sort(key=lambda r: -r.overall_score)
    logger.info(
        f"Correlated {len(account_list)} accounts into {len(results)} scored pairs",
        extra={"accounts": len(account_list), "pairs": len(results)},
    )
    return results


def max_correlation_score(account_id: str, results: Iterable[CorrelationResult]) -> float:
    """Highest overall score among pairs involving the account."""
    scores = [
        r.overall_score for r in results
        if account_id in (r.account_a, r.account_b)
    ]
    return max(scores) if scores else 0.0


def summarize_correlations(results: Sequence[CorrelationResult]) -> str:
    """Plain-text digest of flagged and suspicious pairs."""
    flagged = [r for r in results if r.status == CorrelationStatus.FLAGGED]
    suspicious = [r for r in results if r.status == CorrelationStatus.SUSPICIOUS]

    if not flagged and not suspicious:
        return f"No correlated account pairs among {len(results)} analyzed."

    lines = [
        f"{len(flagged)} flagged and {len(suspicious)} suspicious account pairs "
        f"out of {len(results)} analyzed."
    ]
    for label, group in (("FLAGGED", flagged), ("SUSPICIOUS", suspicious)):
        for r in group:
            lines.append(
                f"- [{label}] {r.account_a} <-> {r.account_b}: overall {r.overall_score:.1f} "
                f"(timing {r.timing_score:.0f}, direction {r.direction_score:.0f}, "
                f"amount {r.amount_score:.0f}, symbol {r.symbol_score:.0f}), "
                f"{len(r.matched_trades)} matched trades"
            )
    return "\n".join(lines)
