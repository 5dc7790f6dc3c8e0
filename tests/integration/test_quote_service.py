"""Integration tests for the order-book scan and quote service."""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.config import OrderBookConfig
from src.errors import MalformedOrderError
from src.models import Side
from src.services.quote_service import QuoteService
from tests.fakes import CORE, make_demand, make_offer


def _book(orders: dict, counter: int | None = None) -> AsyncMock:
    book = AsyncMock()
    book.get_order_counter.return_value = counter if counter is not None else len(orders) + 1

    async def get_order(side: Side, order_id: int):
        order = orders.get(order_id)
        if isinstance(order, Exception):
            raise order
        return order

    book.get_order.side_effect = get_order
    return book


class TestScanOrders:
    @pytest.mark.asyncio
    async def test_scans_ids_from_one(self) -> None:
        book = _book({1: make_offer(1, 100, 300), 2: make_offer(2, 100, 400)}, counter=3)
        service = QuoteService(book, OrderBookConfig(core_address=CORE))

        scan = await service.scan_orders(Side.BORROW)

        requested = sorted(c.args[1] for c in book.get_order.await_args_list)
        assert requested == [1, 2, 3]
        assert [o.id for o in scan.orders] == [1, 2]
        assert scan.scanned == 3
        assert not scan.truncated

    @pytest.mark.asyncio
    async def test_window_capped_by_max_scan(self) -> None:
        book = _book({}, counter=1000)
        service = QuoteService(book, OrderBookConfig(core_address=CORE, max_scan=250))

        scan = await service.scan_orders(Side.LEND)

        assert book.get_order.await_count == 250
        assert scan.counter == 1000
        assert scan.truncated

    @pytest.mark.asyncio
    async def test_concurrency_bounded(self) -> None:
        in_flight = 0
        peak = 0

        async def get_order(side: Side, order_id: int):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            in_flight -= 1
            return make_offer(order_id, 10, 300)

        book = AsyncMock()
        book.get_order_counter.return_value = 40
        book.get_order.side_effect = get_order
        service = QuoteService(book, OrderBookConfig(core_address=CORE, max_concurrency=5))

        scan = await service.scan_orders(Side.BORROW)

        assert len(scan.orders) == 40
        assert peak <= 5

    @pytest.mark.asyncio
    async def test_failures_and_malformed_skipped(self) -> None:
        book = _book(
            {
                1: make_offer(1, 100, 300),
                2: RuntimeError("rpc down"),
                3: MalformedOrderError("bad shape"),
                4: make_offer(4, 100, 200),
            }
        )
        scan = await QuoteService(book, OrderBookConfig()).scan_orders(Side.BORROW)

        assert sorted(o.id for o in scan.orders) == [1, 4]
        assert scan.failed == 1
        assert scan.malformed == 1

    @pytest.mark.asyncio
    async def test_unreadable_counter_scans_nothing(self) -> None:
        book = AsyncMock()
        book.get_order_counter.side_effect = RuntimeError("down")

        scan = await QuoteService(book, OrderBookConfig()).scan_orders(Side.BORROW)

        assert scan.orders == ()
        book.get_order.assert_not_awaited()


class TestBestQuote:
    @pytest.mark.asyncio
    async def test_worked_example(self) -> None:
        book = _book(
            {
                1: make_offer(1, 1000, 500),
                2: make_offer(2, 2000, 300),
                3: make_offer(3, 5000, 700),
            }
        )
        quote = await QuoteService(book, OrderBookConfig()).best_quote(Side.BORROW, 2500)

        assert [r.order_id for r in quote.routes] == [2, 1]
        assert quote.coverage == 3000
        assert quote.blended_rate_bps == pytest.approx(366.67, abs=0.01)
        assert quote.scanned_orders == 4
        assert quote.scan_truncated is False

    @pytest.mark.asyncio
    async def test_completion_order_irrelevant(self) -> None:
        delays = {1: 0.03, 2: 0.0, 3: 0.01}

        async def get_order(side: Side, order_id: int):
            await asyncio.sleep(delays[order_id])
            return make_demand(order_id, 1000, 100 * order_id)

        book = AsyncMock()
        book.get_order_counter.return_value = 3
        book.get_order.side_effect = get_order

        quote = await QuoteService(book, OrderBookConfig()).best_quote(Side.LEND, 1500)
        assert [r.order_id for r in quote.routes] == [3, 2]

    @pytest.mark.asyncio
    async def test_malformed_counted_as_rejected(self) -> None:
        book = _book({1: make_offer(1, 100, 300), 2: MalformedOrderError("bad")})
        quote = await QuoteService(book, OrderBookConfig()).best_quote(Side.BORROW, 50)
        assert quote.rejected_orders == 1

    @pytest.mark.asyncio
    async def test_insufficient_liquidity_flagged(self) -> None:
        book = _book({1: make_offer(1, 100, 300)})
        quote = await QuoteService(book, OrderBookConfig()).best_quote(Side.BORROW, 500)
        assert quote.insufficient_liquidity
        assert quote.shortfall == 400

    @pytest.mark.asyncio
    async def test_empty_book(self) -> None:
        book = _book({}, counter=0)
        assert await QuoteService(book, OrderBookConfig()).best_quote(Side.BORROW, 10) is None

    @pytest.mark.asyncio
    async def test_invalid_amount_checked_before_scan(self) -> None:
        book = _book({})
        with pytest.raises(ValueError):
            await QuoteService(book, OrderBookConfig()).best_quote(Side.BORROW, 0)
        book.get_order_counter.assert_not_awaited()
