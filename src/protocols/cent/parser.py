"""Pure parsing and rate helpers for CENT ledger data: no I/O."""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Sequence

from ...models import TroveData

RATE_PRECISION = 10**18

# Field positions in TroveManager.LatestTroveData.
_ENTIRE_DEBT = 0
_ENTIRE_COLL = 1
_RECORDED_DEBT = 5
_ANNUAL_INTEREST_RATE = 6
_WEIGHTED_RECORDED_DEBT = 7
_LAST_INTEREST_RATE_ADJ_TIME = 9
_LATEST_TROVE_DATA_FIELDS = 10


def parse_latest_trove_data(trove_id: int, values: Sequence[Any]) -> TroveData:
    """Build TroveData from the decoded LatestTroveData struct."""
    if len(values) != _LATEST_TROVE_DATA_FIELDS:
        raise ValueError(
            f"Expected {_LATEST_TROVE_DATA_FIELDS} LatestTroveData fields, "
            f"got {len(values)}"
        )
    return TroveData(
        trove_id=trove_id,
        entire_debt=int(values[_ENTIRE_DEBT]),
        entire_coll=int(values[_ENTIRE_COLL]),
        annual_interest_rate=int(values[_ANNUAL_INTEREST_RATE]),
        last_interest_rate_adj_time=int(values[_LAST_INTEREST_RATE_ADJ_TIME]),
        recorded_debt=int(values[_RECORDED_DEBT]),
        weighted_recorded_debt=int(values[_WEIGHTED_RECORDED_DEBT]),
    )


def _scale(value: str | Decimal | float, what: str) -> int:
    try:
        number = Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Invalid {what}: {value!r}") from e
    if not number.is_finite() or number < 0:
        raise ValueError(f"{what.capitalize()} must be a non-negative number: {value!r}")
    return int(number * RATE_PRECISION)


def parse_rate(value: str | Decimal | float) -> int:
    """Convert a decimal annual rate ("0.05" = 5%) to its 1e18-scaled form."""
    return _scale(value, "rate")


def parse_amount(value: str | Decimal | float) -> int:
    """Convert a decimal token amount ("0.1") to raw 18-decimal units.

    BOLD and every branch collateral token use 18 decimals.
    """
    return _scale(value, "amount")


def format_rate(rate: int) -> str:
    """Format a 1e18-scaled rate as a percentage, e.g. 50000000000000000 → '5.00%'."""
    return f"{Decimal(rate) * 100 / RATE_PRECISION:.2f}%"
