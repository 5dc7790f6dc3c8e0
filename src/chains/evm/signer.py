"""Local private-key signer: EIP-1559 transactions over EvmClient."""
from __future__ import annotations

import asyncio
import logging
import time

from eth_account import Account
from eth_utils import to_checksum_address, to_hex

from ...errors import NetworkError, NotConfiguredError
from ...models import Receipt
from .abi import ContractCall
from .client import EvmClient
from .erc20 import ALLOWANCE, APPROVE

logger = logging.getLogger(__name__)

# Headroom applied to eth_estimateGas results.
GAS_LIMIT_MULTIPLIER = 1.2


class LocalSigner:
    """Sign and broadcast transactions with a locally held key."""

    def __init__(
        self,
        client: EvmClient,
        private_key: str,
        poll_interval: float = 2.0,
        confirmation_timeout: float | None = None,
    ) -> None:
        if not private_key:
            raise NotConfiguredError("Signer private key not configured")
        self._client = client
        self._account = Account.from_key(private_key)
        self._poll_interval = poll_interval
        self._confirmation_timeout = confirmation_timeout

    @property
    def address(self) -> str:
        return self._account.address

    async def get_allowance(self, token: str, owner: str, spender: str) -> int:
        call = ContractCall(
            to_checksum_address(token),
            ALLOWANCE,
            (to_checksum_address(owner), to_checksum_address(spender)),
        )
        (allowance,) = await self._client.call_function(call)
        return int(allowance)

    async def approve(self, token: str, spender: str, amount: int) -> str:
        call = ContractCall(
            to_checksum_address(token),
            APPROVE,
            (to_checksum_address(spender), amount),
        )
        return await self.submit(call)

    async def _build_transaction(self, call: ContractCall) -> dict:
        chain_id = await self._client.get_chain_id()
        nonce = await self._client.get_transaction_count(self.address)
        gas_price = await self._client.get_gas_price()
        priority_fee = await self._client.get_max_priority_fee()

        tx = {
            "from": self.address,
            "to": to_checksum_address(call.to),
            "data": to_hex(call.data),
            "value": call.value,
        }
        gas = await self._client.estimate_gas(
            {**tx, "value": hex(call.value)}
        )

        max_fee = max(gas_price * 2, priority_fee)
        return {
            "chainId": chain_id,
            "nonce": nonce,
            "to": tx["to"],
            "data": tx["data"],
            "value": call.value,
            "gas": int(gas * GAS_LIMIT_MULTIPLIER),
            "maxFeePerGas": max_fee,
            "maxPriorityFeePerGas": min(priority_fee, max_fee),
        }

    async def submit(self, call: ContractCall) -> str:
        """Sign and broadcast ``call``; returns the transaction hash."""
        tx = await self._build_transaction(call)
        signed = self._account.sign_transaction(tx)
        tx_hash = await self._client.send_raw_transaction(signed.raw_transaction)
        logger.info("Broadcast %s to %s: %s", call.label, call.to, tx_hash)
        return tx_hash

    async def wait_for_confirmation(self, tx_hash: str) -> Receipt:
        """Poll for the receipt until mined.

        Waits indefinitely unless ``confirmation_timeout`` was given.
        """
        started = time.monotonic()
        while True:
            raw = await self._client.get_transaction_receipt(tx_hash)
            if raw:
                return Receipt(
                    tx_hash=tx_hash,
                    status=int(raw.get("status", "0x0"), 16),
                    block_number=int(raw.get("blockNumber", "0x0"), 16),
                    gas_used=int(raw.get("gasUsed", "0x0"), 16),
                )

            if (
                self._confirmation_timeout is not None
                and time.monotonic() - started >= self._confirmation_timeout
            ):
                raise NetworkError(
                    f"Timed out waiting for confirmation of {tx_hash}"
                )
            await asyncio.sleep(self._poll_interval)
