"""Venice order-book reader: implements the OrderLedger protocol."""
from __future__ import annotations

import logging

from ...chains.evm.abi import ContractCall
from ...chains.evm.client import EvmClient
from ...config import OrderBookConfig, require_address
from ...models import Order, Side
from . import abi, parser

logger = logging.getLogger(__name__)


class VeniceOrderBook:
    """Read loan offers and demands from the Venice core contract."""

    def __init__(self, client: EvmClient, config: OrderBookConfig) -> None:
        self._client = client
        self._config = config

    @property
    def _core(self) -> str:
        return require_address(self._config.core_address, "Venice core")

    async def get_order_counter(self, side: Side) -> int:
        function = abi.NEXT_OFFER_ID if side is Side.BORROW else abi.NEXT_DEMAND_ID
        (counter,) = await self._client.call_function(ContractCall(self._core, function))
        return int(counter)

    async def get_order(self, side: Side, order_id: int) -> Order | None:
        """Fetch one order; borrow-side quotes read offers, lend-side demands.

        Raises MalformedOrderError when the entry cannot be parsed.
        """
        decimals = self._config.asset_decimals
        if side is Side.BORROW:
            raw = await self._client.call_function(
                ContractCall(self._core, abi.LOAN_OFFERS, (order_id,))
            )
            order: Order = parser.parse_loan_offer(raw, decimals)
        else:
            raw = await self._client.call_function(
                ContractCall(self._core, abi.LOAN_DEMANDS, (order_id,))
            )
            order = parser.parse_loan_demand(raw, decimals)

        if order.id == 0:
            logger.debug("%s order %d does not exist", side.value, order_id)
            return None
        return order
