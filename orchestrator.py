"""
Two-tier balance computation.

Stored balances from the backend are the source of truth. When that endpoint
fails the balances are rebuilt locally by replaying every sale and receipt.
There is exactly one fallback step and no retry loop.

    IDLE -> FETCHING_AUTHORITATIVE -> SUCCESS -----------> SETTLED
                                   \\-> FALLBACK_RECOMPUTE -> SETTLED
"""
from __future__ import annotations
import asyncio
import enum
import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from computations import (
    aggregate_all,
    balances_from_stored,
    build_ledger,
    last_transaction_dates,
    zero_balances,
)
from errors import InvalidTransition, LedgerError, SourceUnavailable
from models import Balance, LedgerFilter, Party, TransactionSet

logger = logging.getLogger("receivables.orchestrator")

AUTHORITATIVE = "authoritative"
RECOMPUTED = "recomputed"
UNAVAILABLE = "unavailable"


class BalanceState(enum.Enum):
    IDLE = "idle"
    FETCHING_AUTHORITATIVE = "fetching_authoritative"
    SUCCESS = "success"
    FALLBACK_RECOMPUTE = "fallback_recompute"
    SETTLED = "settled"


TRANSITIONS = {
    BalanceState.IDLE: {BalanceState.FETCHING_AUTHORITATIVE},
    BalanceState.FETCHING_AUTHORITATIVE: {BalanceState.SUCCESS, BalanceState.FALLBACK_RECOMPUTE},
    BalanceState.SUCCESS: {BalanceState.SETTLED},
    BalanceState.FALLBACK_RECOMPUTE: {BalanceState.SETTLED},
    BalanceState.SETTLED: {BalanceState.IDLE},
}


@dataclass
class BalanceOutcome:
    balances: Dict[str, Balance]
    source: str
    error: Optional[LedgerError] = None
    last_dates: Dict[str, Optional[datetime]] = field(default_factory=dict)
    history: List[BalanceState] = field(default_factory=list)


class BalanceOrchestrator:
    """
    Runs one balance computation through the state machine.
    ``source`` is a TransactionSource (or anything with the same fetch methods).
    """

    def __init__(self, source: Any):
        self.source = source
        self.state = BalanceState.IDLE
        self.history: List[BalanceState] = [self.state]

    def transition(self, target: BalanceState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise InvalidTransition(self.state.value, target.value)
        logger.debug("Balance state change", extra={"from": self.state.value, "to": target.value})
        self.state = target
        self.history.append(target)

    def reset(self) -> None:
        if self.state is BalanceState.SETTLED:
            self.transition(BalanceState.IDLE)
        self.history = [self.state]

    async def run(self, parties: List[Party], flt: LedgerFilter) -> BalanceOutcome:
        self.reset()
        self.transition(BalanceState.FETCHING_AUTHORITATIVE)
        company_id = flt.company_id
        snapshot: Optional[TransactionSet] = None
        error: Optional[LedgerError] = None

        try:
            stored = await self.source.fetch_balances(company_id)
        except SourceUnavailable as exc:
            logger.warning(
                "Stored balances unavailable, recomputing from transactions",
                extra={"endpoint": exc.endpoint, "status": exc.status, "company_id": company_id},
            )
            self.transition(BalanceState.FALLBACK_RECOMPUTE)
            try:
                snapshot = await self.source.fetch_transactions(company_id)
            except SourceUnavailable as fallback_exc:
                logger.error(
                    "Balance recompute failed",
                    extra={
                        "endpoint": fallback_exc.endpoint,
                        "status": fallback_exc.status,
                        "company_id": company_id,
                    },
                )
                balances = zero_balances(parties)
                source = UNAVAILABLE
                error = fallback_exc
            else:
                balances = aggregate_all(build_ledger(snapshot, flt), parties)
                source = RECOMPUTED
        else:
            self.transition(BalanceState.SUCCESS)
            balances = balances_from_stored(stored, parties)
            source = AUTHORITATIVE

        self.transition(BalanceState.SETTLED)
        last_dates = await self._last_dates(parties, company_id, snapshot)
        return BalanceOutcome(
            balances=balances,
            source=source,
            error=error,
            last_dates=last_dates,
            history=list(self.history),
        )

    async def _last_dates(
        self,
        parties: List[Party],
        company_id: Optional[str],
        snapshot: Optional[TransactionSet],
    ) -> Dict[str, Optional[datetime]]:
        """Best effort; a failure here leaves the balances untouched"""
        if snapshot is None:
            try:
                snapshot = await self.source.fetch_transactions(company_id)
            except SourceUnavailable as exc:
                logger.warning(
                    "Last transaction dates unavailable",
                    extra={"endpoint": exc.endpoint, "status": exc.status},
                )
                return {}
        return last_transaction_dates(snapshot, parties, company_id)


_stamps = itertools.count()


class LatestWins:
    """
    Last-write-wins gate. A request takes a stamp when it starts; its result
    is applied only if no newer request has applied one already.
    """

    def __init__(self):
        self._applied = -1
        self.value: Any = None

    def begin(self) -> int:
        return next(_stamps)

    def commit(self, stamp: int, value: Any) -> bool:
        if stamp < self._applied:
            logger.debug("Discarding stale result", extra={"stamp": stamp, "applied": self._applied})
            return False
        self._applied = stamp
        self.value = value
        return True


class Debouncer:
    """
    Coalesces bursts of calls: ``await wait()`` returns True only for the
    last caller when nothing newer arrives within ``delay`` seconds.
    """

    def __init__(self, delay: float = 0.3):
        self.delay = delay
        self._generation = 0

    async def wait(self) -> bool:
        self._generation += 1
        mine = self._generation
        await asyncio.sleep(self.delay)
        if mine != self._generation:
            return False
        return True
