"""Insertion-hint search over the ledger's rate-ordered Trove list.

Two phases, matching the ledger's cost model:

1. Approximate: ``trials_factor * ceil(sqrt(n))`` random probes through the
   HintHelpers oracle, keeping the candidate whose rate is closest to the
   target. O(sqrt(n)) probe work instead of O(n).
2. Exact: ``findInsertPosition`` walks a few links from that candidate and
   returns the true neighbours ``(upper_hint, lower_hint)``.

A zero hint pair is always a correct answer (the ledger then scans from the
head), so every read failure degrades towards zero hints instead of raising.
"""
from __future__ import annotations

import logging
import math
import random

from ..interfaces.ledger import HintLedger
from ..models import ApproxHint, HintSource, InsertionHint

logger = logging.getLogger(__name__)

DEFAULT_SEED = 42
DEFAULT_TRIALS_FACTOR = 10


def num_trials(list_size: int, trials_factor: int = DEFAULT_TRIALS_FACTOR) -> int:
    """Number of oracle probes for a list of ``list_size`` entries."""
    if list_size <= 0:
        return 0
    return trials_factor * math.ceil(math.sqrt(list_size))


class HintFinder:
    """Find near-optimal insertion hints for a target interest rate.

    Args:
        ledger: Sorted-list reads for one collateral branch.
        trials_factor: Multiplier on ``ceil(sqrt(list_size))``.
        rounds: Number of oracle calls the trials are split across. Each
            round continues from the previous round's returned seed.
        seed: Fixed seed for the first round when no ``rng`` is given.
        rng: Optional random source; when set, the first seed is drawn from it.
    """

    def __init__(
        self,
        ledger: HintLedger,
        trials_factor: int = DEFAULT_TRIALS_FACTOR,
        rounds: int = 1,
        seed: int = DEFAULT_SEED,
        rng: random.Random | None = None,
    ) -> None:
        if trials_factor <= 0 or rounds <= 0:
            raise ValueError("trials_factor and rounds must be positive")
        self._ledger = ledger
        self._trials_factor = trials_factor
        self._rounds = rounds
        self._seed = seed
        self._rng = rng

    def _initial_seed(self) -> int:
        if self._rng is not None:
            return self._rng.getrandbits(64)
        return self._seed

    async def _approximate(self, list_size: int, target_rate: int) -> ApproxHint:
        total = num_trials(list_size, self._trials_factor)
        per_round = math.ceil(total / self._rounds)

        trials = min(per_round, total)
        best = await self._ledger.get_approx_hint(
            target_rate, trials, self._initial_seed()
        )
        seed = best.latest_seed
        remaining = total - trials
        while remaining > 0:
            trials = min(per_round, remaining)
            candidate = await self._ledger.get_approx_hint(target_rate, trials, seed)
            if candidate.diff < best.diff:
                best = candidate
            seed = candidate.latest_seed
            remaining -= trials

        logger.debug(
            "Approximate hint %d (diff %d) after %d trials",
            best.hint_id, best.diff, total,
        )
        return best

    async def _exact(self, target_rate: int, approx_hint: int) -> tuple[int, int]:
        return await self._ledger.find_insert_position(
            target_rate, approx_hint, approx_hint
        )

    async def find_insertion_hint(self, list_size: int, target_rate: int) -> InsertionHint:
        """Return ``(approx, upper, lower)`` hints for inserting ``target_rate``.

        Never raises for ledger failures; the worst case is an empty hint pair.
        """
        if target_rate < 0:
            raise ValueError(f"target_rate must not be negative: {target_rate}")

        approx_hint = 0
        if list_size > 0:
            try:
                approx_hint = (await self._approximate(list_size, target_rate)).hint_id
            except Exception as e:
                logger.warning(
                    "Approximate hint unavailable, using exact search only: %s", e
                )

        try:
            upper, lower = await self._exact(target_rate, approx_hint)
            source = HintSource.APPROXIMATE if approx_hint else HintSource.EXACT
            return InsertionHint(approx_hint, upper, lower, source)
        except Exception as e:
            logger.warning(
                "findInsertPosition failed from hint %d: %s", approx_hint, e
            )

        if approx_hint:
            try:
                upper, lower = await self._exact(target_rate, 0)
                return InsertionHint(0, upper, lower, HintSource.EXACT)
            except Exception as e:
                logger.warning("findInsertPosition failed without hint: %s", e)

        logger.warning("Falling back to empty hints for rate %d", target_rate)
        return InsertionHint()

    async def find_hints(self, target_rate: int) -> InsertionHint:
        """Like ``find_insertion_hint`` but reads the list size itself."""
        try:
            list_size = await self._ledger.get_list_size()
        except Exception as e:
            logger.warning("Could not read sorted list size: %s", e)
            list_size = 0
        return await self.find_insertion_hint(list_size, target_rate)
