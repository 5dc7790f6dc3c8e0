"""Data models: all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Union


class Side(str, Enum):
    """Quote side: borrow fills against offers, lend fills against demands."""

    BORROW = "borrow"
    LEND = "lend"


class HintSource(str, Enum):
    APPROXIMATE = "approximate"
    EXACT = "exact"
    NONE = "none"


# ---------------------------------------------------------------------------
# Positions (Troves)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TroveData:
    """Latest state of one Trove as reported by its TroveManager."""

    trove_id: int
    entire_debt: int
    entire_coll: int
    annual_interest_rate: int
    last_interest_rate_adj_time: int
    recorded_debt: int
    weighted_recorded_debt: int

    @property
    def is_active(self) -> bool:
        return self.entire_debt > 0 or self.entire_coll > 0


@dataclass(frozen=True)
class BranchPosition:
    """A Trove lookup result for one collateral branch."""

    coll_symbol: str
    data: TroveData | None = None
    error: str | None = None


@dataclass(frozen=True)
class ApproxHint:
    hint_id: int
    diff: int
    latest_seed: int


@dataclass(frozen=True)
class InsertionHint:
    approx_hint: int = 0
    upper_hint: int = 0
    lower_hint: int = 0
    source: HintSource = HintSource.NONE

    @property
    def is_empty(self) -> bool:
        return self.upper_hint == 0 and self.lower_hint == 0


# ---------------------------------------------------------------------------
# Order book
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoanOffer:
    """Lender-side order. ``amount`` is in settlement units (USD)."""

    id: int
    lender: str
    asset: str
    amount: float
    rate_bps: float
    duration: int
    collateral_ratio_bps: int | None
    is_active: bool
    created_at: int = 0

    side = Side.BORROW


@dataclass(frozen=True)
class LoanDemand:
    """Borrower-side order. ``amount`` is in settlement units (USD)."""

    id: int
    borrower: str
    asset: str
    amount: float
    max_rate_bps: float
    duration: int
    collateral_asset: str
    collateral_amount: int
    is_active: bool
    created_at: int = 0

    side = Side.LEND

    @property
    def rate_bps(self) -> float:
        return self.max_rate_bps


Order = Union[LoanOffer, LoanDemand]


@dataclass(frozen=True)
class Route:
    """One order's contribution to a Quote."""

    order_id: int
    rate_bps: float
    amount: float
    collateral_ratio_bps: int | None = None


@dataclass(frozen=True)
class Quote:
    side: Side
    requested_amount: float
    blended_rate_bps: float
    min_rate_bps: float
    max_rate_bps: float
    estimated_fee_usd: float
    coverage: float
    routes: tuple[Route, ...]
    quoted_at: datetime
    source: str = "venice"
    rejected_orders: int = 0
    scanned_orders: int = 0
    scan_truncated: bool = False

    @property
    def shortfall(self) -> float:
        return max(0.0, self.requested_amount - self.coverage)

    @property
    def insufficient_liquidity(self) -> bool:
        return self.coverage < self.requested_amount


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Receipt:
    tx_hash: str
    status: int
    block_number: int = 0
    gas_used: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status == 1
