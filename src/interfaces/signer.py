"""Signer protocol: transaction submission abstraction."""
from typing import Protocol

from ..chains.evm.abi import ContractCall
from ..models import Receipt


class Signer(Protocol):
    """Signs, broadcasts and tracks transactions for one account."""

    @property
    def address(self) -> str: ...

    async def get_allowance(self, token: str, owner: str, spender: str) -> int: ...

    async def approve(self, token: str, spender: str, amount: int) -> str: ...

    async def submit(self, call: ContractCall) -> str: ...

    async def wait_for_confirmation(self, tx_hash: str) -> Receipt: ...
