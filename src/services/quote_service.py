"""Order-book quote service: bounded concurrent scan, then aggregation."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace

from ..config import OrderBookConfig, QuotesConfig
from ..errors import MalformedOrderError
from ..interfaces.ledger import OrderLedger
from ..models import Order, Quote, Side
from . import quote_aggregator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderScan:
    """Result of scanning one side of the order book."""

    side: Side
    orders: tuple[Order, ...]
    counter: int
    scanned: int
    failed: int = 0
    malformed: int = 0

    @property
    def truncated(self) -> bool:
        return self.counter > self.scanned


class QuoteService:
    """Build blended quotes from the live order book.

    The scan reads ids ``1..min(counter, max_scan)``; larger books are only
    partially read and the resulting quote is flagged ``scan_truncated``.
    """

    def __init__(
        self,
        order_book: OrderLedger,
        config: OrderBookConfig,
        fees: QuotesConfig | None = None,
    ) -> None:
        self._order_book = order_book
        self._config = config
        self._fees = fees or QuotesConfig()

    async def scan_orders(self, side: Side) -> OrderScan:
        """Fetch every order id in the scan window concurrently."""
        try:
            counter = await self._order_book.get_order_counter(side)
        except Exception as e:
            logger.warning("Could not read %s order counter: %s", side.value, e)
            counter = 0

        window = min(counter, self._config.max_scan)
        if window <= 0:
            return OrderScan(side=side, orders=(), counter=counter, scanned=0)

        semaphore = asyncio.Semaphore(self._config.max_concurrency)
        failed = 0
        malformed = 0

        async def fetch(order_id: int) -> Order | None:
            nonlocal failed, malformed
            async with semaphore:
                try:
                    return await self._order_book.get_order(side, order_id)
                except MalformedOrderError as e:
                    malformed += 1
                    logger.debug("Skipping malformed order %d: %s", order_id, e)
                except Exception as e:
                    failed += 1
                    logger.debug("Skipping order %d after fetch error: %s", order_id, e)
                return None

        results = await asyncio.gather(*(fetch(i) for i in range(1, window + 1)))
        orders = tuple(order for order in results if order is not None)

        if failed:
            logger.warning("%d of %d %s order reads failed", failed, window, side.value)

        return OrderScan(
            side=side,
            orders=orders,
            counter=counter,
            scanned=window,
            failed=failed,
            malformed=malformed,
        )

    async def best_quote(self, side: Side, requested_amount: float) -> Quote | None:
        """Scan the book and aggregate a quote for ``requested_amount``."""
        quote_aggregator.validate_requested_amount(requested_amount)
        scan = await self.scan_orders(side)
        quote = quote_aggregator.aggregate(
            side, requested_amount, scan.orders, self._fees
        )
        if quote is None:
            logger.info("No eligible %s orders among %d scanned", side.value, scan.scanned)
            return None

        quote = replace(
            quote,
            rejected_orders=quote.rejected_orders + scan.malformed,
            scanned_orders=scan.scanned,
            scan_truncated=scan.truncated,
        )
        logger.info(
            "Quote %s %.2f: blended %.2f bps, coverage %.2f across %d routes",
            side.value,
            requested_amount,
            quote.blended_rate_bps,
            quote.coverage,
            len(quote.routes),
        )
        if quote.insufficient_liquidity:
            logger.warning(
                "Insufficient %s liquidity: short by %.2f", side.value, quote.shortfall
            )
        return quote
