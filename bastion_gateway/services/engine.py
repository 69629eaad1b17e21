"""Ledger engine service: pending gate, simulated delay and atomic apply"""

import asyncio
import time
from dataclasses import replace
from decimal import Decimal
from typing import Awaitable, Callable, Dict, FrozenSet, Optional, Protocol, Set

from bastion_gateway.domain import commands
from bastion_gateway.domain.catalog import CatalogProvider
from bastion_gateway.domain.commands import Command
from bastion_gateway.domain.exceptions import OperationPendingError
from bastion_gateway.domain.ledger import LedgerContext, apply, initial_account
from bastion_gateway.domain.models import Account, OperationResult
from bastion_gateway.infrastructure.observability.logging import log_operation
from bastion_gateway.infrastructure.observability.metrics import (
    pending_conflict_counter,
    record_balances,
    record_operation,
)
from bastion_gateway.utils.money import Number

# Processing delay per operation in seconds
DEFAULT_DELAYS: Dict[str, float] = {
    "stake": 1.5,
    "unstake": 1.5,
    "lend": 2.0,
    "borrow": 2.5,
    "create_circle": 2.0,
    "join_circle": 1.5,
    "bid": 1.0,
    "distribute": 1.5,
}


class DelayStrategy(Protocol):
    async def wait(self, operation: str) -> None: ...


class NoDelay:
    """Apply immediately"""

    async def wait(self, operation: str) -> None:
        return None


class SimulatedDelay:
    """Pause before applying, mimicking network settlement"""

    def __init__(
        self,
        delays: Optional[Dict[str, float]] = None,
        scale: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.delays = dict(DEFAULT_DELAYS if delays is None else delays)
        self.scale = scale
        self._sleep = sleep

    async def wait(self, operation: str) -> None:
        seconds = self.delays.get(operation, 0.0) * self.scale
        if seconds > 0:
            await self._sleep(seconds)


def _dry_run_id(prefix: str) -> str:
    return f"{prefix}-dry-run"


class LedgerEngine:
    """
    Single owner of the account aggregate.

    Each submission goes idle -> pending -> applied | rejected:
    - a second submission for a slot that is still pending raises OperationPendingError
    - preconditions are checked up front so invalid requests return without delay
    - after the delay the command is re-run on the current account under one lock,
      and the new aggregate replaces the old one in a single assignment
    - once the delay has started the operation always completes, even if the
      awaiting caller is cancelled
    """

    def __init__(
        self,
        account: Optional[Account] = None,
        context: Optional[LedgerContext] = None,
        delay: Optional[DelayStrategy] = None,
    ):
        self._account = account or initial_account()
        self._context = context or LedgerContext()
        self._delay = delay or NoDelay()
        self._lock = asyncio.Lock()
        self._pending: Set[str] = set()
        record_balances(self._account.wallet_balance, self._account.staked_amount)

    @property
    def account(self) -> Account:
        return self._account

    @property
    def catalog(self) -> CatalogProvider:
        return self._context.catalog

    def use_catalog(self, catalog: CatalogProvider) -> None:
        self._context = replace(self._context, catalog=catalog)

    def pending_slots(self) -> FrozenSet[str]:
        return frozenset(self._pending)

    def is_pending(self, slot: str) -> bool:
        return slot in self._pending

    async def submit(self, command: Command, request_id: str = "unknown") -> OperationResult:
        """
        Validate, wait, then apply a command.

        Returns:
            OperationResult; rejected results leave the account untouched

        Raises:
            OperationPendingError: The command's slot already has a request in flight
        """
        slot = command.slot
        if slot in self._pending:
            pending_conflict_counter.labels(slot=slot).inc()
            raise OperationPendingError(slot)

        start_time = time.perf_counter()
        dry_run = replace(self._context, id_factory=_dry_run_id)
        _, precheck = apply(self._account, command, dry_run)
        if not precheck.applied:
            self._finish(precheck, start_time, request_id)
            return precheck

        self._pending.add(slot)
        task = asyncio.ensure_future(self._delayed_apply(command, start_time, request_id))
        return await asyncio.shield(task)

    async def _delayed_apply(self, command: Command, start_time: float, request_id: str) -> OperationResult:
        try:
            await self._delay.wait(command.operation)
            async with self._lock:
                self._account, result = apply(self._account, command, self._context)
        finally:
            self._pending.discard(command.slot)

        self._finish(result, start_time, request_id)
        return result

    def _finish(self, result: OperationResult, start_time: float, request_id: str) -> None:
        duration = time.perf_counter() - start_time
        amount = result.transaction.amount if result.transaction else None
        record_operation(result.operation, result.error, duration)
        record_balances(self._account.wallet_balance, self._account.staked_amount)
        log_operation(request_id, result.operation, result.applied, amount, duration * 1000, result.error)

    async def stake(self, amount: Number, request_id: str = "unknown") -> OperationResult:
        return await self.submit(commands.Stake(amount=amount), request_id)

    async def unstake(self, request_id: str = "unknown") -> OperationResult:
        return await self.submit(commands.Unstake(), request_id)

    async def lend(self, amount: Number, interest_rate: Number, duration: int, request_id: str = "unknown") -> OperationResult:
        return await self.submit(
            commands.Lend(amount=amount, interest_rate=interest_rate, duration=duration), request_id
        )

    async def borrow(self, amount: Number, collateral: Number, purpose: str, request_id: str = "unknown") -> OperationResult:
        return await self.submit(
            commands.Borrow(amount=amount, collateral=collateral, purpose=purpose), request_id
        )

    async def create_circle(self, name: str, monthly_amount: Number, member_count: int, request_id: str = "unknown") -> OperationResult:
        return await self.submit(
            commands.CreateCircle(name=name, monthly_amount=monthly_amount, member_count=member_count),
            request_id,
        )

    async def join_circle(self, circle_id: str, stake_amount: Number, request_id: str = "unknown") -> OperationResult:
        return await self.submit(commands.JoinCircle(circle_id=circle_id, stake_amount=stake_amount), request_id)

    async def bid(self, circle_id: str, bid_amount: Number, request_id: str = "unknown") -> OperationResult:
        return await self.submit(commands.Bid(circle_id=circle_id, bid_amount=bid_amount), request_id)

    async def distribute(self, circle_id: str, request_id: str = "unknown") -> OperationResult:
        return await self.submit(commands.Distribute(circle_id=circle_id), request_id)


def build_engine(
    initial_balance: Number = Decimal("1000"),
    history_limit: int = 10,
    catalog: Optional[CatalogProvider] = None,
    simulate_latency: bool = True,
    latency_scale: float = 1.0,
) -> LedgerEngine:
    """Assemble an engine from configuration values"""
    context = LedgerContext(history_limit=history_limit)
    if catalog is not None:
        context = replace(context, catalog=catalog)
    delay: DelayStrategy = SimulatedDelay(scale=latency_scale) if simulate_latency else NoDelay()
    return LedgerEngine(account=initial_account(initial_balance), context=context, delay=delay)
