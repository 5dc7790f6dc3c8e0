"""Integration tests for the EVM client: RPC fallback and error handling."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from eth_abi import encode

from src.chains.evm.abi import ContractCall
from src.chains.evm.client import EvmClient
from src.chains.evm.erc20 import ALLOWANCE
from src.config import ChainConfig
from src.errors import ErrorKind, NetworkError, RpcError
from tests.fakes import CORE, OWNER, USDC


@pytest.fixture()
def client() -> EvmClient:
    return EvmClient(
        ChainConfig(
            rpc_endpoints=(
                "https://rpc1.example.com",
                "https://rpc2.example.com",
                "https://rpc3.example.com",
            ),
            rpc_timeout=5,
        )
    )


def _mock_session(response_data: dict | None = None, error: Exception | None = None):
    """Create a mock aiohttp session that returns given data or raises error."""
    mock_response = AsyncMock()
    if error:
        mock_response.json = AsyncMock(side_effect=error)
    else:
        mock_response.json = AsyncMock(return_value=response_data or {})
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    if error:
        mock_session.post = MagicMock(side_effect=error)
    else:
        mock_session.post = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)

    return mock_session


class TestRpcCall:
    @pytest.mark.asyncio
    async def test_successful_call(self, client: EvmClient) -> None:
        mock_session = _mock_session({"jsonrpc": "2.0", "result": "0x2105"})

        with patch("src.chains.evm.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("src.chains.evm.client.aiohttp.TCPConnector"):
                result = await client.rpc_call("eth_chainId", [])

        assert result == "0x2105"
        payload = mock_session.post.call_args.kwargs["json"]
        assert payload["method"] == "eth_chainId"
        assert payload["jsonrpc"] == "2.0"

    @pytest.mark.asyncio
    async def test_rpc_error_raises_without_fallback(self, client: EvmClient) -> None:
        mock_session = _mock_session(
            {"jsonrpc": "2.0", "error": {"code": 3, "message": "execution reverted"}}
        )

        with patch("src.chains.evm.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("src.chains.evm.client.aiohttp.TCPConnector"):
                with pytest.raises(RpcError, match="execution reverted") as exc:
                    await client.rpc_call("eth_call", [])

        assert exc.value.code == 3
        assert exc.value.kind is ErrorKind.TRANSACTION_REVERTED
        assert mock_session.post.call_count == 1

    @pytest.mark.asyncio
    async def test_fallback_on_connection_error(self, client: EvmClient) -> None:
        """When first endpoint fails, should try the next one."""
        call_count = 0

        success_response = AsyncMock()
        success_response.json = AsyncMock(return_value={"jsonrpc": "2.0", "result": "0x1"})
        success_response.__aenter__ = AsyncMock(return_value=success_response)
        success_response.__aexit__ = AsyncMock(return_value=None)

        def side_effect(*args, **kwargs):
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                raise ConnectionError("first endpoint down")
            return success_response

        mock_session = AsyncMock()
        mock_session.post = MagicMock(side_effect=side_effect)
        mock_session.__aenter__ = AsyncMock(return_value=mock_session)
        mock_session.__aexit__ = AsyncMock(return_value=None)

        with patch("src.chains.evm.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("src.chains.evm.client.aiohttp.TCPConnector"):
                result = await client.rpc_call("eth_blockNumber", [])

        assert result == "0x1"
        assert client.current_rpc_index == 1
        assert mock_session.post.call_args.args[0] == "https://rpc2.example.com"

    @pytest.mark.asyncio
    async def test_all_endpoints_fail(self, client: EvmClient) -> None:
        mock_session = _mock_session(error=ConnectionError("down"))

        with patch("src.chains.evm.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("src.chains.evm.client.aiohttp.TCPConnector"):
                with pytest.raises(NetworkError, match="All RPC endpoints failed"):
                    await client.rpc_call("eth_blockNumber", [])

        assert mock_session.post.call_count == 3

    @pytest.mark.asyncio
    async def test_no_endpoints(self) -> None:
        with pytest.raises(NetworkError, match="No RPC endpoints"):
            await EvmClient(ChainConfig()).rpc_call("eth_chainId", [])


class TestReads:
    @pytest.mark.asyncio
    async def test_call_function_decodes(self, client: EvmClient) -> None:
        client.rpc_call = AsyncMock(return_value="0x" + encode(["uint256"], [77]).hex())

        result = await client.call_function(
            ContractCall(USDC, ALLOWANCE, (OWNER, CORE))
        )

        assert result == (77,)
        method, params = client.rpc_call.call_args.args
        assert method == "eth_call"
        assert params[0]["to"] == USDC
        assert params[0]["data"].startswith("0xdd62ed3e")
        assert params[1] == "latest"

    @pytest.mark.asyncio
    async def test_chain_id_cached(self, client: EvmClient) -> None:
        client.rpc_call = AsyncMock(return_value="0x14a34")

        assert await client.get_chain_id() == 84532
        assert await client.get_chain_id() == 84532
        client.rpc_call.assert_awaited_once_with("eth_chainId", [])

    @pytest.mark.asyncio
    async def test_configured_chain_id_skips_rpc(self) -> None:
        client = EvmClient(ChainConfig(rpc_endpoints=("https://x",), chain_id=1))
        client.rpc_call = AsyncMock()
        assert await client.get_chain_id() == 1
        client.rpc_call.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_hex_quantities(self, client: EvmClient) -> None:
        client.rpc_call = AsyncMock(return_value="0x10")
        assert await client.get_transaction_count(OWNER) == 16
        client.rpc_call.assert_awaited_with("eth_getTransactionCount", [OWNER, "pending"])
        assert await client.get_gas_price() == 16
        assert await client.estimate_gas({"to": CORE}) == 16

    @pytest.mark.asyncio
    async def test_pending_receipt_is_none(self, client: EvmClient) -> None:
        client.rpc_call = AsyncMock(return_value=None)
        assert await client.get_transaction_receipt("0xabc") is None

    @pytest.mark.asyncio
    async def test_send_raw_transaction_hex_encodes(self, client: EvmClient) -> None:
        client.rpc_call = AsyncMock(return_value="0xhash")
        assert await client.send_raw_transaction(b"\x01\x02") == "0xhash"
        client.rpc_call.assert_awaited_once_with("eth_sendRawTransaction", ["0x0102"])
