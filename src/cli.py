"""Command-line interface for CENT hints and Troves, and Venice quotes and orders."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .chains.evm import EvmClient, LocalSigner
from .config import AppConfig, load_config, require_address
from .errors import CentError
from .identity import derive_trove_id
from .logging_setup import configure_logging
from .models import BranchPosition, Quote, Side, TroveData
from .protocols.cent import open_branch_ledger
from .protocols.cent.parser import format_rate, parse_amount, parse_rate
from .protocols.venice import VeniceOrderBook
from .services import (
    BorrowIntent,
    EarnIntent,
    Execution,
    ExecutionOrchestrator,
    HintFinder,
    OpenTroveParams,
    OrderIntents,
    PositionMutator,
    PositionService,
    QuoteService,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="cent-router",
        description="CENT insertion hints and Troves, Venice loan quotes and orders",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    quote_parser = sub.add_parser("quote", help="Blended quote from the order book")
    quote_parser.add_argument("side", choices=[s.value for s in Side])
    quote_parser.add_argument("amount", type=float, help="Amount in USD")

    hints_parser = sub.add_parser("hints", help="Insertion hints for a rate")
    hints_parser.add_argument("symbol", help="Collateral symbol, e.g. WBTC18")
    hints_parser.add_argument("rate", help="Annual rate as a decimal, e.g. 0.05")

    trove_parser = sub.add_parser("trove", help="Read one Trove")
    trove_parser.add_argument("symbol")
    trove_parser.add_argument("owner")
    trove_parser.add_argument("--index", type=int, default=0)

    troves_parser = sub.add_parser("troves", help="Read an owner's Troves on every branch")
    troves_parser.add_argument("owner")
    troves_parser.add_argument("--index", type=int, default=0)

    id_parser = sub.add_parser("trove-id", help="Derive a Trove id (offline)")
    id_parser.add_argument("owner")
    id_parser.add_argument("--index", type=int, default=0)

    # Write commands sign with signer.private_key.
    open_parser = sub.add_parser("open-trove", help="Open a Trove")
    open_parser.add_argument("symbol")
    open_parser.add_argument("coll", help="Collateral amount, e.g. 0.1")
    open_parser.add_argument("debt", help="BOLD to borrow, e.g. 2000")
    open_parser.add_argument("rate", help="Annual rate as a decimal, e.g. 0.05")
    open_parser.add_argument("--max-fee", required=True, help="Max upfront fee in BOLD")
    open_parser.add_argument("--index", type=int, default=0)

    adjust_parser = sub.add_parser("adjust-rate", help="Change a Trove's interest rate")
    adjust_parser.add_argument("symbol")
    adjust_parser.add_argument("trove_id", type=trove_id_arg)
    adjust_parser.add_argument("rate", help="Annual rate as a decimal, e.g. 0.05")
    adjust_parser.add_argument("--max-fee", required=True, help="Max upfront fee in BOLD")

    close_parser = sub.add_parser("close-trove", help="Repay and close a Trove")
    close_parser.add_argument("symbol")
    close_parser.add_argument("trove_id", type=trove_id_arg)

    borrow_parser = sub.add_parser("borrow", help="Post a loan demand")
    borrow_parser.add_argument("amount", type=float, help="Amount in USD")
    borrow_parser.add_argument("apr_bps", type=int)
    borrow_parser.add_argument("collateral_asset")
    borrow_parser.add_argument("collateral_amount", type=int, help="Raw units")
    borrow_parser.add_argument("--duration", type=int, default=None, help="Seconds")

    earn_parser = sub.add_parser("earn", help="Post a loan offer")
    earn_parser.add_argument("amount", type=float, help="Amount in USD")
    earn_parser.add_argument("apr_bps", type=int)
    earn_parser.add_argument("--asset", default=None, help="Default: settlement asset")

    cancel_parser = sub.add_parser("cancel", help="Cancel an order")
    cancel_parser.add_argument("kind", choices=["offer", "demand"])
    cancel_parser.add_argument("order_id", type=int)

    return parser


def trove_id_arg(value: str) -> int:
    """Parse a Trove id given in decimal or 0x hex."""
    try:
        return int(value, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid trove id: {value!r}") from None


# ------------------------------------------------------------------
# Formatting helpers
# ------------------------------------------------------------------


def format_quote(quote: Quote) -> str:
    lines = [
        f"{quote.side.value.upper()} {quote.requested_amount:,.2f} USD",
        f"  Blended rate:  {quote.blended_rate_bps:.2f} bps "
        f"(min {quote.min_rate_bps:.2f}, max {quote.max_rate_bps:.2f})",
        f"  Coverage:      {quote.coverage:,.2f} USD",
        f"  Estimated fee: ${quote.estimated_fee_usd:,.2f}",
        f"  Routes:        {', '.join(f'#{r.order_id}' for r in quote.routes)}",
    ]
    if quote.insufficient_liquidity:
        lines.append(f"  Insufficient liquidity: short {quote.shortfall:,.2f} USD")
    if quote.scan_truncated:
        lines.append(f"  Only the first {quote.scanned_orders} orders were scanned")
    return "\n".join(lines)


def format_trove(symbol: str, data: TroveData) -> str:
    return "\n".join(
        [
            f"{symbol} trove {hex(data.trove_id)}",
            f"  Debt:       {data.entire_debt / 10**18:,.4f}",
            f"  Collateral: {data.entire_coll / 10**18:,.6f}",
            f"  Rate:       {format_rate(data.annual_interest_rate)}",
        ]
    )


def format_position(position: BranchPosition) -> str:
    if position.error:
        return f"{position.coll_symbol}: error ({position.error})"
    if position.data is None or not position.data.is_active:
        return f"{position.coll_symbol}: no trove"
    return format_trove(position.coll_symbol, position.data)


def format_execution(execution: Execution) -> str:
    block = execution.receipt.block_number if execution.receipt else 0
    return f"{execution.intent.description} confirmed in block {block}: {execution.tx_hash}"


# ------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------


async def _quote(config: AppConfig, client: EvmClient, args: argparse.Namespace) -> None:
    service = QuoteService(
        VeniceOrderBook(client, config.order_book), config.order_book, config.quotes
    )
    quote = await service.best_quote(Side(args.side), args.amount)
    if quote is None:
        print(f"No eligible {args.side} orders")
        return
    print(format_quote(quote))


async def _hints(config: AppConfig, client: EvmClient, args: argparse.Namespace) -> None:
    rate = parse_rate(args.rate)
    finder = HintFinder(
        open_branch_ledger(client, config.cent, args.symbol),
        trials_factor=config.hints.trials_factor,
        rounds=config.hints.rounds,
        seed=config.hints.seed,
    )
    hint = await finder.find_hints(rate)
    print(f"{args.symbol} @ {format_rate(rate)} ({hint.source.value})")
    print(f"  Approx hint: {hex(hint.approx_hint)}")
    print(f"  Upper hint:  {hex(hint.upper_hint)}")
    print(f"  Lower hint:  {hex(hint.lower_hint)}")


async def _trove(config: AppConfig, client: EvmClient, args: argparse.Namespace) -> None:
    service = PositionService(config.cent, client)
    data = await service.get_trove(args.symbol, args.owner, args.index)
    print(format_trove(args.symbol, data))


async def _troves(config: AppConfig, client: EvmClient, args: argparse.Namespace) -> None:
    service = PositionService(config.cent, client)
    for position in await service.get_all_troves(args.owner, args.index):
        print(format_position(position))


def build_orchestrator(config: AppConfig, client: EvmClient) -> ExecutionOrchestrator:
    """Signer and orchestrator for the write commands."""
    signer = LocalSigner(
        client,
        config.signer.private_key,
        poll_interval=config.execution.poll_interval,
        confirmation_timeout=config.execution.confirmation_timeout,
    )
    return ExecutionOrchestrator(signer, config.execution.reset_allowance_after_tx)


def _mutator(config: AppConfig, client: EvmClient) -> PositionMutator:
    return PositionMutator(
        config.cent, build_orchestrator(config, client), client, config.hints
    )


async def _open_trove(
    config: AppConfig, client: EvmClient, args: argparse.Namespace
) -> None:
    params = OpenTroveParams(
        coll_symbol=args.symbol,
        owner_index=args.index,
        coll_amount=parse_amount(args.coll),
        debt_amount=parse_amount(args.debt),
        annual_interest_rate=parse_rate(args.rate),
        max_upfront_fee=parse_amount(args.max_fee),
    )
    execution = await _mutator(config, client).open_trove(params, print)
    print(format_execution(execution))


async def _adjust_rate(
    config: AppConfig, client: EvmClient, args: argparse.Namespace
) -> None:
    execution = await _mutator(config, client).adjust_interest_rate(
        args.symbol,
        args.trove_id,
        parse_rate(args.rate),
        parse_amount(args.max_fee),
        print,
    )
    print(format_execution(execution))


async def _close_trove(
    config: AppConfig, client: EvmClient, args: argparse.Namespace
) -> None:
    execution = await _mutator(config, client).close_trove(
        args.symbol, args.trove_id, print
    )
    print(format_execution(execution))


async def _borrow(config: AppConfig, client: EvmClient, args: argparse.Namespace) -> None:
    intents = OrderIntents(config.order_book, build_orchestrator(config, client))
    duration = args.duration or config.order_book.default_duration_seconds
    execution = await intents.submit_borrow_intent(
        BorrowIntent(
            amount_usd=args.amount,
            apr_bps=args.apr_bps,
            duration_seconds=duration,
            collateral_asset=args.collateral_asset,
            collateral_amount=args.collateral_amount,
        ),
        print,
    )
    print(format_execution(execution))


async def _earn(config: AppConfig, client: EvmClient, args: argparse.Namespace) -> None:
    intents = OrderIntents(config.order_book, build_orchestrator(config, client))
    asset = require_address(
        args.asset or config.order_book.settlement_asset, "Settlement asset"
    )
    execution = await intents.submit_earn_intent(
        EarnIntent(amount_usd=args.amount, asset=asset, apr_bps=args.apr_bps), print
    )
    print(format_execution(execution))


async def _cancel(config: AppConfig, client: EvmClient, args: argparse.Namespace) -> None:
    intents = OrderIntents(config.order_book, build_orchestrator(config, client))
    if args.kind == "offer":
        execution = await intents.cancel_offer(args.order_id, print)
    else:
        execution = await intents.cancel_demand(args.order_id, print)
    print(format_execution(execution))


_COMMANDS = {
    "quote": _quote,
    "hints": _hints,
    "trove": _trove,
    "troves": _troves,
    "open-trove": _open_trove,
    "adjust-rate": _adjust_rate,
    "close-trove": _close_trove,
    "borrow": _borrow,
    "earn": _earn,
    "cancel": _cancel,
}


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    config = load_config(args.config)
    client = EvmClient(config.chain)
    await _COMMANDS[args.command](config, client, args)


def main(argv: list[str] | None = None) -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.log_level)

    try:
        if args.command == "trove-id":
            print(hex(derive_trove_id(args.owner, args.index)))
            return
        asyncio.run(_run(args))
    except (CentError, ValueError, FileNotFoundError) as e:
        logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
