"""Sequenced write-path execution: allowance check, approval, submission.

Each intent runs through a small state machine::

    idle -> approving -> approved -> submitting -> confirmed
                                                -> failed (from any live state)

``idle -> submitting`` is taken directly when no approval is needed or the
current allowance already covers the amount. The main call is never
submitted before the approval receipt has been observed with success status.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from ..chains.evm.abi import ContractCall
from ..errors import (
    AllowanceInsufficientError,
    AlreadySubmittedError,
    ExecutionCancelledError,
    ExecutionError,
    TransactionRevertedError,
    classify_error,
)
from ..interfaces.progress import ProgressCallback
from ..interfaces.signer import Signer
from ..models import Receipt

logger = logging.getLogger(__name__)


class IntentState(str, Enum):
    IDLE = "idle"
    APPROVING = "approving"
    APPROVED = "approved"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
    FAILED = "failed"


_TRANSITIONS: dict[IntentState, frozenset[IntentState]] = {
    IntentState.IDLE: frozenset(
        {IntentState.APPROVING, IntentState.SUBMITTING, IntentState.FAILED}
    ),
    IntentState.APPROVING: frozenset({IntentState.APPROVED, IntentState.FAILED}),
    IntentState.APPROVED: frozenset({IntentState.SUBMITTING, IntentState.FAILED}),
    IntentState.SUBMITTING: frozenset({IntentState.CONFIRMED, IntentState.FAILED}),
    IntentState.CONFIRMED: frozenset(),
    IntentState.FAILED: frozenset(),
}


@dataclass(frozen=True)
class ApprovalRequirement:
    """ERC-20 allowance the main call needs from the signer."""

    token: str
    spender: str
    amount: int


@dataclass(frozen=True)
class Intent:
    call: ContractCall
    approval: ApprovalRequirement | None = None
    label: str = ""

    @property
    def description(self) -> str:
        return self.label or self.call.label


@dataclass
class Execution:
    """Mutable progress record of one intent."""

    intent: Intent
    state: IntentState = IntentState.IDLE
    history: list[IntentState] = field(default_factory=lambda: [IntentState.IDLE])
    approval_tx_hash: str | None = None
    tx_hash: str | None = None
    receipt: Receipt | None = None
    error: ExecutionError | None = None
    cancelled: bool = False
    broadcasting: bool = False

    @property
    def broadcast_hash(self) -> str | None:
        """Most recent transaction this execution put on the wire."""
        return self.tx_hash or self.approval_tx_hash

    def transition(self, new_state: IntentState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Illegal transition {self.state.value} -> {new_state.value}"
            )
        self.state = new_state
        self.history.append(new_state)

    def cancel(self) -> None:
        """Stop the flow before its next step.

        Raises AlreadySubmittedError once a transaction has been handed to the
        signer, including while that call is still in flight.
        """
        if self.broadcasting or self.broadcast_hash is not None:
            raise AlreadySubmittedError(self.broadcast_hash)
        self.cancelled = True


def short_hash(tx_hash: str) -> str:
    return f"{tx_hash[:10]}…"


class ExecutionOrchestrator:
    """Run intents through a Signer, reporting progress strings as it goes."""

    def __init__(self, signer: Signer, reset_allowance_after_tx: bool = False) -> None:
        self._signer = signer
        self._reset_allowance_after_tx = reset_allowance_after_tx

    @property
    def signer(self) -> Signer:
        return self._signer

    @staticmethod
    def _notify(on_progress: ProgressCallback | None, message: str) -> None:
        logger.debug("progress: %s", message)
        if on_progress is None:
            return
        try:
            on_progress(message)
        except Exception as e:
            logger.warning("Progress callback raised, ignoring: %s", e)

    @staticmethod
    def _check_cancelled(execution: Execution) -> None:
        if execution.cancelled:
            raise ExecutionCancelledError(
                f"{execution.intent.description} cancelled before submission"
            )

    async def execute(
        self, intent: Intent, on_progress: ProgressCallback | None = None
    ) -> Execution:
        """Run ``intent`` from scratch; see ``run``."""
        return await self.run(Execution(intent), on_progress)

    async def run(
        self, execution: Execution, on_progress: ProgressCallback | None = None
    ) -> Execution:
        """Drive ``execution`` to ``confirmed``.

        Raises ExecutionError (kind, verbatim message, failing stage and any
        broadcast hash) on every failure. Nothing is retried.
        """
        if execution.state is not IntentState.IDLE:
            raise RuntimeError(f"Execution already {execution.state.value}")

        intent = execution.intent
        approved_now = False
        try:
            self._check_cancelled(execution)
            if intent.approval is not None:
                approved_now = await self._ensure_allowance(
                    execution, intent.approval, on_progress
                )

            self._check_cancelled(execution)
            execution.transition(IntentState.SUBMITTING)
            execution.broadcasting = True
            self._notify(on_progress, f"Submitting {intent.description}…")
            tx_hash = await self._signer.submit(intent.call)
            execution.tx_hash = tx_hash
            self._notify(on_progress, f"Submitted: {short_hash(tx_hash)}")

            receipt = await self._signer.wait_for_confirmation(tx_hash)
            execution.receipt = receipt
            if not receipt.succeeded:
                raise TransactionRevertedError(tx_hash)
            execution.transition(IntentState.CONFIRMED)
            self._notify(on_progress, "Confirmed.")
        except Exception as exc:
            stage = execution.state
            error = ExecutionError(
                kind=classify_error(exc),
                message=str(exc),
                stage=stage.value,
                tx_hash=execution.broadcast_hash,
            )
            execution.error = error
            if IntentState.FAILED in _TRANSITIONS[stage]:
                execution.transition(IntentState.FAILED)
            logger.error(
                "%s failed while %s (%s): %s",
                intent.description, stage.value, error.kind.value, exc,
            )
            raise error from exc

        logger.info(
            "%s confirmed in block %d: %s",
            intent.description, execution.receipt.block_number, execution.tx_hash,
        )

        if approved_now and self._reset_allowance_after_tx:
            await self._reset_allowance(intent.approval, on_progress)
        return execution

    async def _ensure_allowance(
        self,
        execution: Execution,
        approval: ApprovalRequirement,
        on_progress: ProgressCallback | None,
    ) -> bool:
        """Approve ``approval.amount`` if needed; True when an approval was sent."""
        self._notify(on_progress, "Checking allowance…")
        allowance = await self._signer.get_allowance(
            approval.token, self._signer.address, approval.spender
        )
        if allowance >= approval.amount:
            self._notify(on_progress, "Allowance sufficient.")
            return False

        self._check_cancelled(execution)
        execution.transition(IntentState.APPROVING)
        execution.broadcasting = True
        self._notify(on_progress, "Approving spending limit…")
        approve_hash = await self._signer.approve(
            approval.token, approval.spender, approval.amount
        )
        execution.approval_tx_hash = approve_hash
        self._notify(on_progress, f"Approval submitted: {short_hash(approve_hash)}")

        receipt = await self._signer.wait_for_confirmation(approve_hash)
        if not receipt.succeeded:
            raise AllowanceInsufficientError(
                f"Approval {approve_hash} reverted; allowance still {allowance}"
            )
        execution.transition(IntentState.APPROVED)
        self._notify(on_progress, "Approval confirmed.")
        return True

    async def _reset_allowance(
        self, approval: ApprovalRequirement, on_progress: ProgressCallback | None
    ) -> None:
        """Set the allowance back to zero. Failures are logged, never raised."""
        self._notify(on_progress, "Resetting allowance…")
        try:
            reset_hash = await self._signer.approve(approval.token, approval.spender, 0)
            await self._signer.wait_for_confirmation(reset_hash)
        except Exception as e:
            logger.warning("Allowance reset for %s failed: %s", approval.token, e)
            return
        self._notify(on_progress, "Allowance reset.")
