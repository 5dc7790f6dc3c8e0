"""Ledger reader protocols: read-only access to the CDP ledger and order book."""
from typing import Protocol

from ..models import ApproxHint, Order, Side


class HintLedger(Protocol):
    """Rate-ordered list reads used to compute insertion hints."""

    async def get_list_size(self) -> int: ...

    async def get_approx_hint(
        self, rate: int, num_trials: int, seed: int
    ) -> ApproxHint: ...

    async def find_insert_position(
        self, rate: int, prev_id: int, next_id: int
    ) -> tuple[int, int]: ...


class OrderLedger(Protocol):
    """Order-book reads used to build quotes."""

    async def get_order(self, side: Side, order_id: int) -> Order | None: ...

    async def get_order_counter(self, side: Side) -> int: ...


class LedgerReader(HintLedger, OrderLedger, Protocol):
    """Full read surface of the external ledger."""
