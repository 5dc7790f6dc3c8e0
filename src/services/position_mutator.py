"""Trove mutations routed through the ExecutionOrchestrator."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from ..chains.evm.abi import ContractCall
from ..chains.evm.client import EvmClient
from ..config import (
    ZERO_ADDRESS,
    BranchConfig,
    CentConfig,
    HintsConfig,
    get_branch,
    require_address,
)
from ..errors import NotConfiguredError
from ..interfaces.ledger import HintLedger
from ..interfaces.progress import ProgressCallback
from ..models import InsertionHint
from ..protocols.cent import abi, open_branch_ledger
from .hint_finder import HintFinder
from .orchestrator import ApprovalRequirement, Execution, ExecutionOrchestrator, Intent

logger = logging.getLogger(__name__)

LedgerFactory = Callable[[str], HintLedger]


@dataclass(frozen=True)
class OpenTroveParams:
    """Arguments for ``openTrove``. Amounts are raw 18-decimal integers.

    ``annual_interest_rate`` is 1e18-scaled (5% == 5 * 10**16).
    ``owner`` defaults to the signer's address.
    """

    coll_symbol: str
    owner_index: int
    coll_amount: int
    debt_amount: int
    annual_interest_rate: int
    max_upfront_fee: int
    owner: str | None = None


class PositionMutator:
    """Open, adjust and close Troves on the CENT ledger."""

    def __init__(
        self,
        cent: CentConfig,
        orchestrator: ExecutionOrchestrator,
        client: EvmClient | None = None,
        hints: HintsConfig | None = None,
        ledger_factory: LedgerFactory | None = None,
    ) -> None:
        if client is None and ledger_factory is None:
            raise ValueError("Either client or ledger_factory is required")
        self._cent = cent
        self._orchestrator = orchestrator
        self._hints = hints or HintsConfig()
        self._ledger_factory = ledger_factory or (
            lambda symbol: open_branch_ledger(client, cent, symbol)
        )

    def _branch(self, symbol: str) -> BranchConfig:
        if not self._cent.branches:
            raise NotConfiguredError("CENT addresses not configured")
        _, branch = get_branch(self._cent, symbol)
        return branch

    @staticmethod
    def _borrower_operations(branch: BranchConfig) -> str:
        return require_address(branch.borrower_operations, "BorrowerOperations")

    async def find_hints(self, symbol: str, annual_interest_rate: int) -> InsertionHint:
        finder = HintFinder(
            self._ledger_factory(symbol),
            trials_factor=self._hints.trials_factor,
            rounds=self._hints.rounds,
            seed=self._hints.seed,
        )
        return await finder.find_hints(annual_interest_rate)

    async def open_trove(
        self, params: OpenTroveParams, on_progress: ProgressCallback | None = None
    ) -> Execution:
        branch = self._branch(params.coll_symbol)
        borrower_operations = self._borrower_operations(branch)
        coll_token = require_address(branch.coll_token, f"{branch.coll_symbol} token")
        owner = params.owner or self._orchestrator.signer.address

        hint = await self.find_hints(params.coll_symbol, params.annual_interest_rate)
        logger.info(
            "Opening %s trove for %s: coll=%d debt=%d rate=%d hints=(%d, %d)",
            branch.coll_symbol, owner, params.coll_amount, params.debt_amount,
            params.annual_interest_rate, hint.upper_hint, hint.lower_hint,
        )
        call = ContractCall(
            borrower_operations,
            abi.OPEN_TROVE,
            (
                owner,
                params.owner_index,
                params.coll_amount,
                params.debt_amount,
                hint.upper_hint,
                hint.lower_hint,
                params.annual_interest_rate,
                params.max_upfront_fee,
                ZERO_ADDRESS,
                ZERO_ADDRESS,
                owner,
            ),
        )
        intent = Intent(
            call=call,
            approval=ApprovalRequirement(
                coll_token, borrower_operations, params.coll_amount
            ),
            label=f"open {branch.coll_symbol} trove",
        )
        return await self._orchestrator.execute(intent, on_progress)

    async def add_collateral(
        self,
        symbol: str,
        trove_id: int,
        amount: int,
        on_progress: ProgressCallback | None = None,
    ) -> Execution:
        branch = self._branch(symbol)
        borrower_operations = self._borrower_operations(branch)
        coll_token = require_address(branch.coll_token, f"{branch.coll_symbol} token")
        intent = Intent(
            call=ContractCall(borrower_operations, abi.ADD_COLL, (trove_id, amount)),
            approval=ApprovalRequirement(coll_token, borrower_operations, amount),
            label=f"add {branch.coll_symbol} collateral",
        )
        return await self._orchestrator.execute(intent, on_progress)

    async def withdraw_collateral(
        self,
        symbol: str,
        trove_id: int,
        amount: int,
        on_progress: ProgressCallback | None = None,
    ) -> Execution:
        branch = self._branch(symbol)
        intent = Intent(
            call=ContractCall(
                self._borrower_operations(branch), abi.WITHDRAW_COLL, (trove_id, amount)
            ),
            label=f"withdraw {branch.coll_symbol} collateral",
        )
        return await self._orchestrator.execute(intent, on_progress)

    async def withdraw_debt(
        self,
        symbol: str,
        trove_id: int,
        amount: int,
        max_upfront_fee: int,
        on_progress: ProgressCallback | None = None,
    ) -> Execution:
        branch = self._branch(symbol)
        intent = Intent(
            call=ContractCall(
                self._borrower_operations(branch),
                abi.WITHDRAW_BOLD,
                (trove_id, amount, max_upfront_fee),
            ),
            label="borrow more",
        )
        return await self._orchestrator.execute(intent, on_progress)

    async def repay_debt(
        self,
        symbol: str,
        trove_id: int,
        amount: int,
        on_progress: ProgressCallback | None = None,
    ) -> Execution:
        branch = self._branch(symbol)
        intent = Intent(
            call=ContractCall(
                self._borrower_operations(branch), abi.REPAY_BOLD, (trove_id, amount)
            ),
            label="repay",
        )
        return await self._orchestrator.execute(intent, on_progress)

    async def adjust_interest_rate(
        self,
        symbol: str,
        trove_id: int,
        new_annual_interest_rate: int,
        max_upfront_fee: int,
        on_progress: ProgressCallback | None = None,
    ) -> Execution:
        branch = self._branch(symbol)
        borrower_operations = self._borrower_operations(branch)
        hint = await self.find_hints(symbol, new_annual_interest_rate)
        intent = Intent(
            call=ContractCall(
                borrower_operations,
                abi.ADJUST_TROVE_INTEREST_RATE,
                (
                    trove_id,
                    new_annual_interest_rate,
                    hint.upper_hint,
                    hint.lower_hint,
                    max_upfront_fee,
                ),
            ),
            label="adjust interest rate",
        )
        return await self._orchestrator.execute(intent, on_progress)

    async def close_trove(
        self, symbol: str, trove_id: int, on_progress: ProgressCallback | None = None
    ) -> Execution:
        branch = self._branch(symbol)
        intent = Intent(
            call=ContractCall(
                self._borrower_operations(branch), abi.CLOSE_TROVE, (trove_id,)
            ),
            label=f"close {branch.coll_symbol} trove",
        )
        return await self._orchestrator.execute(intent, on_progress)
