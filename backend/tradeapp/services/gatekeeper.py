"""Serialises risk validation and submission per user.

One asyncio.Lock per user id is held across validate, submit and record,
so each order is validated against state that includes every earlier
accepted order. A user's lock is dropped once nothing holds or awaits it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from tradecore.models import CandidateOrder, RiskVerdict
from tradecore.ports import OrderSubmitter
from tradecore.risk import RiskGate

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SubmissionResult:
    verdict: RiskVerdict
    order_id: str | None = None

    @property
    def accepted(self) -> bool:
        return self.order_id is not None


class OrderGatekeeper:
    def __init__(self, gate: RiskGate, submitter: OrderSubmitter):
        self._gate = gate
        self._submitter = submitter
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @property
    def active_users(self) -> frozenset[str]:
        """Users with an order being validated or queued behind one."""
        return frozenset(self._locks)

    def _acquire_slot(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        self._waiters[user_id] = self._waiters.get(user_id, 0) + 1
        return lock

    def _release_slot(self, user_id: str) -> None:
        remaining = self._waiters[user_id] - 1
        if remaining:
            self._waiters[user_id] = remaining
        else:
            del self._waiters[user_id]
            del self._locks[user_id]

    async def submit(self, user_id: str, order: CandidateOrder) -> SubmissionResult:
        """Validate ``order`` and, if approved, hand it to the submitter.

        Raises:
            UpstreamUnavailableError: If a risk read fails; nothing is submitted
        """
        lock = self._acquire_slot(user_id)
        try:
            async with lock:
                verdict = await self._gate.validate_order(user_id, order)
                if not verdict.valid:
                    return SubmissionResult(verdict=verdict)
                order_id = await self._submitter.submit(user_id, order)
                logger.info("Order %s submitted for user %s", order_id, user_id)
                return SubmissionResult(verdict=verdict, order_id=order_id)
        finally:
            self._release_slot(user_id)
