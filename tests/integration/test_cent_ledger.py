"""Integration tests for the CENT branch ledger."""
from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from src.config import BranchConfig, CentConfig
from src.errors import BranchNotFoundError, NotConfiguredError
from src.models import ApproxHint
from src.protocols.cent import CentLedger, open_branch_ledger
from tests.fakes import HINT_HELPERS, SORTED_TROVES, TROVE_MANAGER


@pytest.fixture()
def client() -> AsyncMock:
    return AsyncMock()


@pytest.fixture()
def ledger(client: AsyncMock, sample_branch: BranchConfig) -> CentLedger:
    return CentLedger(client, sample_branch, coll_index=1, hint_helpers=HINT_HELPERS)


class TestCentLedger:
    @pytest.mark.asyncio
    async def test_get_list_size(self, ledger: CentLedger, client: AsyncMock) -> None:
        client.call_function.return_value = (17,)
        assert await ledger.get_list_size() == 17
        call = client.call_function.call_args.args[0]
        assert (call.to, call.function.name) == (SORTED_TROVES, "getSize")

    @pytest.mark.asyncio
    async def test_get_approx_hint(self, ledger: CentLedger, client: AsyncMock) -> None:
        client.call_function.return_value = (555, 12, 99)

        hint = await ledger.get_approx_hint(5 * 10**16, 30, 42)

        assert hint == ApproxHint(hint_id=555, diff=12, latest_seed=99)
        call = client.call_function.call_args.args[0]
        assert call.to == HINT_HELPERS
        assert call.args == (1, 5 * 10**16, 30, 42)

    @pytest.mark.asyncio
    async def test_find_insert_position(self, ledger: CentLedger, client: AsyncMock) -> None:
        client.call_function.return_value = (10, 20)
        assert await ledger.find_insert_position(7, 3, 3) == (10, 20)
        assert client.call_function.call_args.args[0].args == (7, 3, 3)

    @pytest.mark.asyncio
    async def test_get_latest_trove_data(self, ledger: CentLedger, client: AsyncMock) -> None:
        client.call_function.return_value = ((1, 2, 0, 0, 0, 3, 4, 5, 0, 6),)

        data = await ledger.get_latest_trove_data(88)

        assert data.trove_id == 88
        assert (data.entire_debt, data.entire_coll) == (1, 2)
        assert data.annual_interest_rate == 4
        assert client.call_function.call_args.args[0].to == TROVE_MANAGER

    @pytest.mark.asyncio
    async def test_missing_hint_helpers(self, client: AsyncMock, sample_branch: BranchConfig) -> None:
        ledger = CentLedger(client, sample_branch, coll_index=0)
        with pytest.raises(NotConfiguredError, match="HintHelpers"):
            await ledger.get_approx_hint(1, 10, 42)
        client.call_function.assert_not_awaited()


class TestOpenBranchLedger:
    def test_resolves_index(self, client: AsyncMock, sample_cent_config: CentConfig) -> None:
        ledger = open_branch_ledger(client, sample_cent_config, "CBBTC18")
        assert ledger.coll_index == 1
        assert ledger.branch.coll_symbol == "cbBTC18"

    def test_unknown_symbol(self, client: AsyncMock, sample_cent_config: CentConfig) -> None:
        with pytest.raises(BranchNotFoundError):
            open_branch_ledger(client, sample_cent_config, "DOGE")

    def test_no_branches(self, client: AsyncMock) -> None:
        with pytest.raises(NotConfiguredError, match="CENT addresses not configured"):
            open_branch_ledger(client, CentConfig(), "WBTC18")
