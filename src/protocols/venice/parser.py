"""Pure parsing functions for Venice order-book entries: no I/O.

Raw entries are the positional tuples returned by ``loanOffers(id)`` and
``loanDemands(id)``. Anything that does not match the expected shape is
rejected here with MalformedOrderError so aggregation only sees typed orders.
"""
from __future__ import annotations

import math
from typing import Any, Sequence

from ...errors import MalformedOrderError
from ...models import LoanDemand, LoanOffer

_OFFER_FIELDS = 9
_DEMAND_FIELDS = 10


def _uint(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise MalformedOrderError(f"{name} is not a uint: {value!r}")
    return value


def _flag(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise MalformedOrderError(f"{name} is not a bool: {value!r}")
    return value


def _address(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value.startswith("0x"):
        raise MalformedOrderError(f"{name} is not an address: {value!r}")
    return value


def from_units(raw_amount: int, decimals: int) -> float:
    """Convert a raw token amount to settlement units (USD)."""
    return raw_amount / (10**decimals)


def to_units(amount_usd: float, decimals: int) -> int:
    """Convert a USD amount to raw token units, rounding to nearest."""
    if not math.isfinite(amount_usd) or amount_usd < 0:
        raise ValueError(f"Amount must be a non-negative number: {amount_usd!r}")
    return int(round(amount_usd * 10**decimals))


def parse_loan_offer(raw: Sequence[Any], decimals: int) -> LoanOffer:
    """Parse a ``loanOffers(id)`` tuple.

    Layout: id, lender, asset, amount, interestRate, duration,
    collateralRatio, isActive, createdAt.
    """
    if raw is None or len(raw) != _OFFER_FIELDS:
        raise MalformedOrderError(f"Unexpected loan offer shape: {raw!r}")

    collateral_ratio = _uint(raw[6], "collateralRatio")
    return LoanOffer(
        id=_uint(raw[0], "id"),
        lender=_address(raw[1], "lender"),
        asset=_address(raw[2], "asset"),
        amount=from_units(_uint(raw[3], "amount"), decimals),
        rate_bps=float(_uint(raw[4], "interestRate")),
        duration=_uint(raw[5], "duration"),
        collateral_ratio_bps=collateral_ratio or None,
        is_active=_flag(raw[7], "isActive"),
        created_at=_uint(raw[8], "createdAt"),
    )


def parse_loan_demand(raw: Sequence[Any], decimals: int) -> LoanDemand:
    """Parse a ``loanDemands(id)`` tuple.

    Layout: id, borrower, asset, amount, maxInterestRate, duration,
    collateralAsset, collateralAmount, isActive, createdAt.
    """
    if raw is None or len(raw) != _DEMAND_FIELDS:
        raise MalformedOrderError(f"Unexpected loan demand shape: {raw!r}")

    return LoanDemand(
        id=_uint(raw[0], "id"),
        borrower=_address(raw[1], "borrower"),
        asset=_address(raw[2], "asset"),
        amount=from_units(_uint(raw[3], "amount"), decimals),
        max_rate_bps=float(_uint(raw[4], "maxInterestRate")),
        duration=_uint(raw[5], "duration"),
        collateral_asset=_address(raw[6], "collateralAsset"),
        collateral_amount=_uint(raw[7], "collateralAmount"),
        is_active=_flag(raw[8], "isActive"),
        created_at=_uint(raw[9], "createdAt"),
    )
