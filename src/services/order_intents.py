"""Venice order-book writes: borrow/earn intents and cancellations."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from ..chains.evm.abi import ContractCall
from ..config import OrderBookConfig, require_address
from ..interfaces.progress import ProgressCallback
from ..protocols.venice import abi
from ..protocols.venice.parser import to_units
from .orchestrator import ApprovalRequirement, Execution, ExecutionOrchestrator, Intent

logger = logging.getLogger(__name__)

# createLoanDemand / createLoanOffer trailing arguments.
ORDER_TYPE_LIMIT = 0
NO_SLIPPAGE = 0


@dataclass(frozen=True)
class BorrowIntent:
    """A loan demand: borrow ``amount_usd`` posting ``collateral_amount`` raw units."""

    amount_usd: float
    apr_bps: int
    duration_seconds: int
    collateral_asset: str
    collateral_amount: int


@dataclass(frozen=True)
class EarnIntent:
    """A loan offer: lend ``amount_usd`` of ``asset``."""

    amount_usd: float
    asset: str
    apr_bps: int


def _check_terms(amount_usd: float, apr_bps: int) -> None:
    if not amount_usd > 0:
        raise ValueError(f"amount_usd must be positive: {amount_usd!r}")
    if apr_bps < 0:
        raise ValueError(f"apr_bps must not be negative: {apr_bps!r}")


class OrderIntents:
    """Post and cancel orders on the Venice core contract."""

    def __init__(self, config: OrderBookConfig, orchestrator: ExecutionOrchestrator) -> None:
        self._config = config
        self._orchestrator = orchestrator

    @property
    def _core(self) -> str:
        return require_address(self._config.core_address, "Venice core")

    async def submit_borrow_intent(
        self, intent: BorrowIntent, on_progress: ProgressCallback | None = None
    ) -> Execution:
        _check_terms(intent.amount_usd, intent.apr_bps)
        core = self._core
        settlement_asset = require_address(
            self._config.settlement_asset, "Settlement asset"
        )
        borrower = self._orchestrator.signer.address
        amount = to_units(intent.amount_usd, self._config.asset_decimals)

        call = ContractCall(
            core,
            abi.CREATE_LOAN_DEMAND,
            (
                borrower,
                settlement_asset,
                amount,
                intent.apr_bps,
                intent.duration_seconds,
                intent.collateral_asset,
                intent.collateral_amount,
                ORDER_TYPE_LIMIT,
                NO_SLIPPAGE,
            ),
        )
        logger.info(
            "Borrow intent: %.2f USD at %d bps for %ds", intent.amount_usd,
            intent.apr_bps, intent.duration_seconds,
        )
        return await self._orchestrator.execute(
            Intent(
                call=call,
                approval=ApprovalRequirement(
                    intent.collateral_asset, core, intent.collateral_amount
                ),
                label="borrow intent",
            ),
            on_progress,
        )

    async def submit_earn_intent(
        self, intent: EarnIntent, on_progress: ProgressCallback | None = None
    ) -> Execution:
        _check_terms(intent.amount_usd, intent.apr_bps)
        core = self._core
        lender = self._orchestrator.signer.address
        amount = to_units(intent.amount_usd, self._config.asset_decimals)

        call = ContractCall(
            core,
            abi.CREATE_LOAN_OFFER,
            (
                lender,
                intent.asset,
                amount,
                intent.apr_bps,
                self._config.default_duration_seconds,
                self._config.default_collateral_ratio_bps,
                ORDER_TYPE_LIMIT,
                NO_SLIPPAGE,
            ),
        )
        logger.info("Earn intent: %.2f USD at %d bps", intent.amount_usd, intent.apr_bps)
        return await self._orchestrator.execute(
            Intent(
                call=call,
                approval=ApprovalRequirement(intent.asset, core, amount),
                label="deposit intent",
            ),
            on_progress,
        )

    async def cancel_offer(
        self, offer_id: int, on_progress: ProgressCallback | None = None
    ) -> Execution:
        call = ContractCall(self._core, abi.CANCEL_LOAN_OFFER, (offer_id,))
        return await self._orchestrator.execute(
            Intent(call=call, label=f"cancel offer {offer_id}"), on_progress
        )

    async def cancel_demand(
        self, demand_id: int, on_progress: ProgressCallback | None = None
    ) -> Execution:
        call = ContractCall(self._core, abi.CANCEL_LOAN_DEMAND, (demand_id,))
        return await self._orchestrator.execute(
            Intent(call=call, label=f"cancel demand {demand_id}"), on_progress
        )
