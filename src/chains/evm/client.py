"""EVM JSON-RPC client with fallback support."""
from __future__ import annotations

import logging
import ssl
from typing import Any

import aiohttp
import certifi
from eth_utils import to_bytes, to_hex

from ...config import ChainConfig
from ...errors import NetworkError, RpcError
from .abi import ContractCall

logger = logging.getLogger(__name__)


class EvmClient:
    """EVM JSON-RPC client with automatic endpoint fallback.

    Transport failures move on to the next endpoint. A JSON-RPC error response
    (revert, bad params) is deterministic and raised immediately as RpcError.
    """

    def __init__(self, config: ChainConfig) -> None:
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.chain_id = config.chain_id
        self.current_rpc_index = 0
        self._request_id = 0

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Make RPC call with fallback to alternative endpoints."""
        if not self.endpoints:
            raise NetworkError("No RPC endpoints configured")

        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        rpc_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        body = await response.json()
            except Exception as e:
                last_error = e
                logger.warning("RPC endpoint %s failed: %s", rpc_url, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

            if rpc_index != self.current_rpc_index:
                logger.info("Switched to RPC endpoint: %s", rpc_url)
                self.current_rpc_index = rpc_index

            if "error" in body:
                error = body["error"] or {}
                raise RpcError(
                    int(error.get("code", -1)),
                    str(error.get("message", "")),
                    error.get("data"),
                )
            return body.get("result")

        raise NetworkError(f"All RPC endpoints failed. Last error: {last_error}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def eth_call(self, call: ContractCall, block: str = "latest") -> bytes:
        """Execute a read-only call and return the raw return data."""
        result = await self.rpc_call(
            "eth_call", [{"to": call.to, "data": to_hex(call.data)}, block]
        )
        return to_bytes(hexstr=result or "0x")

    async def call_function(self, call: ContractCall) -> tuple[Any, ...]:
        """Execute a read-only call and decode its outputs."""
        data = await self.eth_call(call)
        return call.function.decode_output(data)

    async def get_chain_id(self) -> int:
        if self.chain_id is None:
            self.chain_id = int(await self.rpc_call("eth_chainId", []), 16)
        return self.chain_id

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return int(await self.rpc_call("eth_getTransactionCount", [address, block]), 16)

    async def get_gas_price(self) -> int:
        return int(await self.rpc_call("eth_gasPrice", []), 16)

    async def get_max_priority_fee(self) -> int:
        return int(await self.rpc_call("eth_maxPriorityFeePerGas", []), 16)

    async def estimate_gas(self, tx: dict[str, Any]) -> int:
        return int(await self.rpc_call("eth_estimateGas", [tx]), 16)

    async def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None:
        """Return the receipt, or None while the transaction is pending."""
        return await self.rpc_call("eth_getTransactionReceipt", [tx_hash])

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def send_raw_transaction(self, raw_tx: bytes) -> str:
        return await self.rpc_call("eth_sendRawTransaction", [to_hex(raw_tx)])
