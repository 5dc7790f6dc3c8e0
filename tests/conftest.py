"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from src.config import (
    AppConfig,
    BranchConfig,
    CentConfig,
    ChainConfig,
    OrderBookConfig,
)
from src.models import TroveData
from tests.fakes import (
    BORROWER_OPERATIONS,
    CBBTC,
    CORE,
    HINT_HELPERS,
    PERCENT,
    SORTED_TROVES,
    TROVE_MANAGER,
    USDC,
    WBTC,
    FakeSortedList,
)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
        rpc_timeout=10,
    )


@pytest.fixture()
def sample_branch() -> BranchConfig:
    return BranchConfig(
        coll_symbol="WBTC18",
        coll_token=WBTC,
        borrower_operations=BORROWER_OPERATIONS,
        sorted_troves=SORTED_TROVES,
        trove_manager=TROVE_MANAGER,
    )


@pytest.fixture()
def sample_cent_config(sample_branch: BranchConfig) -> CentConfig:
    return CentConfig(
        hint_helpers=HINT_HELPERS,
        branches=(
            sample_branch,
            BranchConfig(
                coll_symbol="cbBTC18",
                coll_token=CBBTC,
                borrower_operations=BORROWER_OPERATIONS,
                sorted_troves=SORTED_TROVES,
                trove_manager=TROVE_MANAGER,
            ),
        ),
    )


@pytest.fixture()
def sample_order_book_config() -> OrderBookConfig:
    return OrderBookConfig(core_address=CORE, settlement_asset=USDC)


@pytest.fixture()
def sample_app_config(
    sample_chain_config: ChainConfig,
    sample_cent_config: CentConfig,
    sample_order_book_config: OrderBookConfig,
) -> AppConfig:
    return AppConfig(
        chain=sample_chain_config,
        cent=sample_cent_config,
        order_book=sample_order_book_config,
    )


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_trove() -> TroveData:
    return TroveData(
        trove_id=123,
        entire_debt=2000 * 10**18,
        entire_coll=10**17,
        annual_interest_rate=5 * PERCENT,
        last_interest_rate_adj_time=1_700_000_000,
        recorded_debt=2000 * 10**18,
        weighted_recorded_debt=100 * 10**18,
    )


@pytest.fixture()
def sorted_list() -> FakeSortedList:
    """Six Troves in ascending rate order with a tie at 5%."""
    return FakeSortedList(
        [
            (101, 2 * PERCENT),
            (102, 4 * PERCENT),
            (103, 5 * PERCENT),
            (104, 5 * PERCENT),
            (105, 7 * PERCENT),
            (106, 10 * PERCENT),
        ]
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    chain:
      rpc_endpoints: ["https://rpc.example.com"]
      rpc_timeout: 10
      chain_id: 84532
    cent:
      hint_helpers: "0x9999999999999999999999999999999999999999"
      branches:
        - coll_symbol: WBTC18
          coll_token: "0x5555555555555555555555555555555555555555"
          borrower_operations: "0x6666666666666666666666666666666666666666"
          sorted_troves: "0x7777777777777777777777777777777777777777"
          trove_manager: "0x8888888888888888888888888888888888888888"
    order_book:
      core_address: "0x4444444444444444444444444444444444444444"
      settlement_asset: "0x3333333333333333333333333333333333333333"
      max_scan: 100
    quotes:
      borrow: {floor_fee_usd: 3.0}
    hints:
      trials_factor: 15
      rounds: 2
    execution:
      reset_allowance_after_tx: true
      confirmation_timeout: 120
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
