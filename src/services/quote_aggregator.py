"""Greedy best-price order matching: pure functions, no I/O."""
from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Iterable, Sequence

from ..config import FeeConfig, QuotesConfig
from ..models import Order, Quote, Route, Side

logger = logging.getLogger(__name__)


def is_well_formed(order: Order) -> bool:
    """True when amount and rate are positive finite numbers."""
    amount = order.amount
    rate = order.rate_bps
    return (
        math.isfinite(amount) and amount > 0 and math.isfinite(rate) and rate > 0
    )


def select_eligible(side: Side, orders: Iterable[Order]) -> tuple[list[Order], int]:
    """Split ``orders`` into eligible orders and a count of rejected ones.

    Inactive orders are dropped without counting; wrong-side or
    non-positive / non-finite entries count as rejected.
    """
    eligible: list[Order] = []
    rejected = 0
    for order in orders:
        if order.side is not side:
            rejected += 1
            continue
        if not order.is_active:
            continue
        if not is_well_formed(order):
            rejected += 1
            continue
        eligible.append(order)
    return eligible, rejected


def sort_for_side(side: Side, orders: Iterable[Order]) -> list[Order]:
    """Cheapest offers first for borrowing, best-paying demands first for lending."""
    if side is Side.BORROW:
        return sorted(orders, key=lambda o: (o.rate_bps, o.id))
    return sorted(orders, key=lambda o: (-o.rate_bps, o.id))


def blended_rate(routes: Sequence[Route]) -> float:
    """Amount-weighted average rate of ``routes``."""
    total = sum(r.amount for r in routes)
    if not total:
        return routes[0].rate_bps if routes else 0.0
    return sum(r.rate_bps * r.amount for r in routes) / total


def estimate_fee(requested_amount: float, fee: FeeConfig) -> float:
    """max(floor, requested * bps)."""
    return max(fee.floor_fee_usd, requested_amount * fee.fee_bps / 10_000)


def validate_requested_amount(requested_amount: float) -> None:
    if not math.isfinite(requested_amount) or requested_amount <= 0:
        raise ValueError(f"requested_amount must be positive: {requested_amount!r}")


def _to_route(order: Order) -> Route:
    return Route(
        order_id=order.id,
        rate_bps=order.rate_bps,
        amount=order.amount,
        collateral_ratio_bps=getattr(order, "collateral_ratio_bps", None),
    )


def aggregate(
    side: Side,
    requested_amount: float,
    orders: Iterable[Order],
    fees: QuotesConfig | None = None,
) -> Quote | None:
    """Fill ``requested_amount`` greedily from the best-priced orders.

    Whole orders only: the order that crosses the requested amount is taken in
    full. Returns None when no order is eligible. Insufficient liquidity is
    reported through ``Quote.coverage`` / ``Quote.insufficient_liquidity``.
    """
    validate_requested_amount(requested_amount)

    fees = fees or QuotesConfig()
    eligible, rejected = select_eligible(side, orders)
    if rejected:
        logger.debug("Rejected %d malformed %s orders", rejected, side.value)
    if not eligible:
        return None

    routes: list[Route] = []
    covered = 0.0
    for order in sort_for_side(side, eligible):
        routes.append(_to_route(order))
        covered += order.amount
        if covered >= requested_amount:
            break

    rates = [r.rate_bps for r in routes]
    fee = fees.borrow if side is Side.BORROW else fees.lend

    return Quote(
        side=side,
        requested_amount=requested_amount,
        blended_rate_bps=blended_rate(routes),
        min_rate_bps=min(rates),
        max_rate_bps=max(rates),
        estimated_fee_usd=estimate_fee(requested_amount, fee),
        coverage=covered,
        routes=tuple(routes),
        quoted_at=datetime.now(timezone.utc),
        rejected_orders=rejected,
    )
