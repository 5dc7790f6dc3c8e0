"""CENT branch ledger: sorted-list hint reads and Trove reads for one branch."""
from __future__ import annotations

import logging

from ...chains.evm.abi import ContractCall
from ...chains.evm.client import EvmClient
from ...config import BranchConfig, CentConfig, get_branch, require_address
from ...errors import NotConfiguredError
from ...models import ApproxHint, TroveData
from . import abi, parser

logger = logging.getLogger(__name__)


class CentLedger:
    """Read access to one collateral branch of the CENT ledger.

    Implements the HintLedger protocol.
    """

    def __init__(
        self,
        client: EvmClient,
        branch: BranchConfig,
        coll_index: int,
        hint_helpers: str = "",
    ) -> None:
        self._client = client
        self._branch = branch
        self._coll_index = coll_index
        self._hint_helpers = hint_helpers

    @property
    def branch(self) -> BranchConfig:
        return self._branch

    @property
    def coll_index(self) -> int:
        return self._coll_index

    async def get_list_size(self) -> int:
        sorted_troves = require_address(self._branch.sorted_troves, "SortedTroves")
        (size,) = await self._client.call_function(
            ContractCall(sorted_troves, abi.GET_SIZE)
        )
        return int(size)

    async def get_approx_hint(self, rate: int, num_trials: int, seed: int) -> ApproxHint:
        hint_helpers = require_address(self._hint_helpers, "HintHelpers")
        hint_id, diff, latest_seed = await self._client.call_function(
            ContractCall(
                hint_helpers,
                abi.GET_APPROX_HINT,
                (self._coll_index, rate, num_trials, seed),
            )
        )
        return ApproxHint(
            hint_id=int(hint_id), diff=int(diff), latest_seed=int(latest_seed)
        )

    async def find_insert_position(
        self, rate: int, prev_id: int, next_id: int
    ) -> tuple[int, int]:
        sorted_troves = require_address(self._branch.sorted_troves, "SortedTroves")
        upper, lower = await self._client.call_function(
            ContractCall(sorted_troves, abi.FIND_INSERT_POSITION, (rate, prev_id, next_id))
        )
        return int(upper), int(lower)

    async def get_latest_trove_data(self, trove_id: int) -> TroveData:
        trove_manager = require_address(self._branch.trove_manager, "TroveManager")
        (values,) = await self._client.call_function(
            ContractCall(trove_manager, abi.GET_LATEST_TROVE_DATA, (trove_id,))
        )
        return parser.parse_latest_trove_data(trove_id, values)


def open_branch_ledger(client: EvmClient, config: CentConfig, symbol: str) -> CentLedger:
    """Build the ledger for the branch trading ``symbol`` as collateral."""
    if not config.branches:
        raise NotConfiguredError("CENT addresses not configured")
    coll_index, branch = get_branch(config, symbol)
    logger.debug("Using %s branch (collateral index %d)", branch.coll_symbol, coll_index)
    return CentLedger(client, branch, coll_index, config.hint_helpers)
