"""Error kinds and exception hierarchy shared by the read and write paths."""
from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any

import aiohttp


class ErrorKind(str, Enum):
    NOT_CONFIGURED = "not_configured"
    BRANCH_NOT_FOUND = "branch_not_found"
    INSUFFICIENT_LIQUIDITY = "insufficient_liquidity"
    ALLOWANCE_INSUFFICIENT = "allowance_insufficient"
    NETWORK_ERROR = "network_error"
    USER_REJECTED = "user_rejected"
    MALFORMED_ORDER = "malformed_order"
    TRANSACTION_REVERTED = "transaction_reverted"
    ALREADY_SUBMITTED = "already_submitted"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class CentError(Exception):
    """Base class for every error raised by this package."""

    kind: ErrorKind = ErrorKind.UNKNOWN


class NotConfiguredError(CentError, ValueError):
    """A required contract address or collaborator is missing."""

    kind = ErrorKind.NOT_CONFIGURED


class BranchNotFoundError(CentError, LookupError):
    kind = ErrorKind.BRANCH_NOT_FOUND


class NetworkError(CentError):
    """A collaborator call failed at the transport level or timed out."""

    kind = ErrorKind.NETWORK_ERROR


class RpcError(CentError):
    """JSON-RPC error response returned by a node."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        self.code = code
        self.message = message
        self.data = data
        self.kind = _kind_from_message(message, code)
        if self.kind is ErrorKind.UNKNOWN:
            self.kind = ErrorKind.NETWORK_ERROR
        super().__init__(f"RPC Error {code}: {message}")


class MalformedOrderError(CentError):
    kind = ErrorKind.MALFORMED_ORDER


class AllowanceInsufficientError(CentError):
    kind = ErrorKind.ALLOWANCE_INSUFFICIENT


class TransactionRevertedError(CentError):
    kind = ErrorKind.TRANSACTION_REVERTED

    def __init__(self, tx_hash: str) -> None:
        self.tx_hash = tx_hash
        super().__init__(f"Transaction {tx_hash} reverted")


class UserRejectedError(CentError):
    kind = ErrorKind.USER_REJECTED


class AlreadySubmittedError(CentError):
    """Raised when cancelling an intent whose transaction is already broadcast."""

    kind = ErrorKind.ALREADY_SUBMITTED

    def __init__(self, tx_hash: str | None) -> None:
        self.tx_hash = tx_hash
        super().__init__(f"Already submitted: {tx_hash or 'broadcast in progress'}")


class ExecutionCancelledError(CentError):
    kind = ErrorKind.CANCELLED


class ExecutionError(CentError):
    """Write-path failure surfaced to the caller with its classified kind.

    ``message`` is the collaborator's error text, unchanged.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        stage: str,
        tx_hash: str | None = None,
    ) -> None:
        self.kind = kind
        self.message = message
        self.stage = stage
        self.tx_hash = tx_hash
        super().__init__(message)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

_USER_REJECTED_MARKERS = ("user rejected", "user denied", "user cancelled")
_NETWORK_MARKERS = ("network", "timeout", "timed out", "connection")


def _kind_from_message(message: str, code: int | None = None) -> ErrorKind:
    text = message.lower()
    if code == 4001 or any(marker in text for marker in _USER_REJECTED_MARKERS):
        return ErrorKind.USER_REJECTED
    if "allowance" in text:
        return ErrorKind.ALLOWANCE_INSUFFICIENT
    if "revert" in text:
        return ErrorKind.TRANSACTION_REVERTED
    if any(marker in text for marker in _NETWORK_MARKERS):
        return ErrorKind.NETWORK_ERROR
    return ErrorKind.UNKNOWN


def classify_error(exc: BaseException) -> ErrorKind:
    """Map any exception raised by a collaborator onto an ErrorKind."""
    if isinstance(exc, CentError):
        return exc.kind
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError, ConnectionError)):
        return ErrorKind.NETWORK_ERROR
    if isinstance(exc, aiohttp.ClientError):
        return ErrorKind.NETWORK_ERROR
    return _kind_from_message(str(exc), getattr(exc, "code", None))
