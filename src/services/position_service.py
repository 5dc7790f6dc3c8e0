"""CENT Trove reads across collateral branches."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable

from ..chains.evm.client import EvmClient
from ..config import CentConfig
from ..errors import NotConfiguredError
from ..identity import derive_trove_id
from ..models import BranchPosition, TroveData
from ..protocols.cent import CentLedger, open_branch_ledger

logger = logging.getLogger(__name__)


class PositionService:
    """Fetch Trove state for an owner on one branch or on all of them."""

    def __init__(
        self,
        cent: CentConfig,
        client: EvmClient | None = None,
        ledger_factory: Callable[[str], CentLedger] | None = None,
    ) -> None:
        if client is None and ledger_factory is None:
            raise ValueError("Either client or ledger_factory is required")
        self._cent = cent
        self._ledger_factory = ledger_factory or (
            lambda symbol: open_branch_ledger(client, cent, symbol)
        )

    async def get_trove(self, symbol: str, owner: str, owner_index: int = 0) -> TroveData:
        """Latest data of ``owner``'s Trove on the ``symbol`` branch."""
        ledger = self._ledger_factory(symbol)
        trove_id = derive_trove_id(owner, owner_index)
        return await ledger.get_latest_trove_data(trove_id)

    async def _branch_position(
        self, symbol: str, owner: str, owner_index: int
    ) -> BranchPosition:
        try:
            data = await self.get_trove(symbol, owner, owner_index)
        except Exception as e:
            logger.warning("Could not read %s trove for %s: %s", symbol, owner, e)
            return BranchPosition(coll_symbol=symbol, error=str(e))
        return BranchPosition(coll_symbol=symbol, data=data)

    async def get_all_troves(
        self, owner: str, owner_index: int = 0
    ) -> list[BranchPosition]:
        """Read every configured branch concurrently.

        A failing branch is reported through ``BranchPosition.error``; it never
        fails the whole call.
        """
        if not self._cent.branches:
            raise NotConfiguredError("CENT addresses not configured")

        # Validates the owner before any branch is read.
        derive_trove_id(owner, owner_index)

        symbols = [b.coll_symbol for b in self._cent.branches]
        positions = await asyncio.gather(
            *(self._branch_position(s, owner, owner_index) for s in symbols)
        )
        logger.info(
            "Read %d branches for %s (%d failed)",
            len(positions), owner, sum(1 for p in positions if p.error),
        )
        return list(positions)

    async def active_troves(
        self, owner: str, owner_index: int = 0
    ) -> list[BranchPosition]:
        """Branches where ``owner`` holds debt or collateral."""
        positions = await self.get_all_troves(owner, owner_index)
        return [p for p in positions if p.data is not None and p.data.is_active]
