"""Ledger engine - pure state transitions for the account aggregate"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Tuple

from bastion_gateway.domain.catalog import CatalogProvider, default_catalog
from bastion_gateway.domain.commands import (
    Bid,
    Borrow,
    Command,
    CreateCircle,
    Distribute,
    JoinCircle,
    Lend,
    Stake,
    Unstake,
)
from bastion_gateway.domain.exceptions import (
    InsufficientFundsError,
    InvalidParametersError,
    ValidationError,
)
from bastion_gateway.domain.models import (
    Account,
    Circle,
    Loan,
    OperationResult,
    Transaction,
    TransactionType,
)
from bastion_gateway.utils.money import Number, is_positive, to_decimal, within_limit

# Protocol constants
BORROW_INTEREST_RATE = Decimal("6.5")
BORROW_DURATION_DAYS = 30
MIN_COLLATERAL_RATIO = Decimal("1.5")
BID_FEE_RATE = Decimal("0.10")
MIN_CIRCLE_MEMBERS = 3
DEFAULT_HISTORY_LIMIT = 10

INSUFFICIENT_BALANCE = "Insufficient balance"
INVALID_AMOUNT = "Please enter a valid amount"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex}"


@dataclass(frozen=True)
class LedgerContext:
    """Collaborators an operation needs besides the account itself"""

    catalog: CatalogProvider = field(default_factory=default_catalog)
    clock: Callable[[], datetime] = utc_now
    id_factory: Callable[[str], str] = new_id
    history_limit: int = DEFAULT_HISTORY_LIMIT

    def __post_init__(self):
        if isinstance(self.history_limit, bool) or not isinstance(self.history_limit, int) or self.history_limit < 1:
            raise InvalidParametersError("Transaction history limit must be a positive integer")


def initial_account(wallet_balance: Number = Decimal("1000")) -> Account:
    """Fresh session account"""
    balance = to_decimal(wallet_balance)
    if not balance.is_finite() or balance < 0:
        raise InvalidParametersError("Initial wallet balance must be a non-negative amount")
    return Account(wallet_balance=balance)


def _record(account: Account, type: TransactionType, amount: Decimal, ctx: LedgerContext) -> Tuple[Account, Transaction]:
    """Prepend a transaction and evict entries beyond the history limit"""
    tx = Transaction(id=ctx.id_factory("tx"), type=type, amount=amount, timestamp=ctx.clock())
    history = ((tx,) + account.transactions)[: ctx.history_limit]
    return replace(account, transactions=history), tx


def parse_amount(value: Number) -> Decimal:
    """Caller-supplied amount as a Decimal, or InvalidParametersError"""
    try:
        value = to_decimal(value)
    except (TypeError, ValueError) as e:
        raise InvalidParametersError(INVALID_AMOUNT) from e
    if not within_limit(value):
        raise InvalidParametersError(INVALID_AMOUNT)
    return value


def stake(account: Account, amount: Number, ctx: LedgerContext) -> OperationResult:
    amount = parse_amount(amount)
    if not is_positive(amount):
        raise InvalidParametersError(INVALID_AMOUNT)
    if amount > account.wallet_balance:
        raise InsufficientFundsError(INSUFFICIENT_BALANCE)

    updated = replace(
        account,
        wallet_balance=account.wallet_balance - amount,
        staked_amount=account.staked_amount + amount,
    )
    updated, tx = _record(updated, "stake", amount, ctx)
    return OperationResult(operation="stake", applied=True, account=updated, transaction=tx)


def unstake(account: Account, ctx: LedgerContext) -> OperationResult:
    """Release the whole staked balance. No transaction is recorded."""
    if account.staked_amount <= 0:
        raise InvalidParametersError("Nothing is staked")

    updated = replace(
        account,
        wallet_balance=account.wallet_balance + account.staked_amount,
        staked_amount=Decimal("0"),
    )
    return OperationResult(operation="unstake", applied=True, account=updated)


def lend(account: Account, amount: Number, interest_rate: Number, duration: int, ctx: LedgerContext) -> OperationResult:
    amount = parse_amount(amount)
    interest_rate = parse_amount(interest_rate)
    if not is_positive(amount):
        raise InvalidParametersError(INVALID_AMOUNT)
    if amount > account.wallet_balance:
        raise InsufficientFundsError(INSUFFICIENT_BALANCE)
    if not interest_rate.is_finite() or interest_rate < 0:
        raise InvalidParametersError("Interest rate must not be negative")
    if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
        raise InvalidParametersError("Duration must be a positive number of days")

    loan = Loan(
        id=ctx.id_factory("loan"),
        amount=amount,
        interest_rate=interest_rate,
        duration=duration,
        status="active",
        type="lent",
        created_at=ctx.clock(),
    )
    updated = replace(
        account,
        wallet_balance=account.wallet_balance - amount,
        loans=account.loans + (loan,),
    )
    updated, tx = _record(updated, "lend", amount, ctx)
    return OperationResult(operation="lend", applied=True, account=updated, loan=loan, transaction=tx)


def borrow(account: Account, amount: Number, collateral: Number, purpose: str, ctx: LedgerContext) -> OperationResult:
    """
    Borrow against collateral escrowed from the same wallet.

    The loan's rate and duration are protocol constants (6.5%, 30 days).
    Net wallet change is amount - collateral, which must not overdraw the wallet.
    """
    amount = parse_amount(amount)
    collateral = parse_amount(collateral)
    if not is_positive(amount) or not is_positive(collateral):
        raise InvalidParametersError(INVALID_AMOUNT)
    minimum = amount * MIN_COLLATERAL_RATIO
    if collateral < minimum:
        raise InvalidParametersError(
            f"Collateral must be at least 150% of loan amount ({minimum})"
        )
    new_balance = account.wallet_balance + amount - collateral
    if new_balance < 0:
        raise InsufficientFundsError(INSUFFICIENT_BALANCE)

    loan = Loan(
        id=ctx.id_factory("loan"),
        amount=amount,
        interest_rate=BORROW_INTEREST_RATE,
        duration=BORROW_DURATION_DAYS,
        status="active",
        type="borrowed",
        collateral=collateral,
        purpose=purpose or "",
        created_at=ctx.clock(),
    )
    updated = replace(account, wallet_balance=new_balance, loans=account.loans + (loan,))
    updated, tx = _record(updated, "borrow", amount, ctx)
    return OperationResult(operation="borrow", applied=True, account=updated, loan=loan, transaction=tx)


def create_circle(account: Account, name: str, monthly_amount: Number, member_count: int, ctx: LedgerContext) -> OperationResult:
    """Start a circle as its creator. The first contribution is not charged."""
    monthly_amount = parse_amount(monthly_amount)
    if not name or not name.strip():
        raise InvalidParametersError("Circle name is required")
    if not is_positive(monthly_amount):
        raise InvalidParametersError(INVALID_AMOUNT)
    if isinstance(member_count, bool) or not isinstance(member_count, int) or member_count < MIN_CIRCLE_MEMBERS:
        raise InvalidParametersError(f"A circle needs at least {MIN_CIRCLE_MEMBERS} members")

    circle = Circle(
        id=ctx.id_factory("circle"),
        name=name,
        monthly_amount=monthly_amount,
        member_count=member_count,
        current_members=1,
        status="active",
        user_role="creator",
    )
    updated = replace(account, circles=account.circles + (circle,))
    updated, tx = _record(updated, "circle", monthly_amount, ctx)
    return OperationResult(operation="create_circle", applied=True, account=updated, circle=circle, transaction=tx)


def join_circle(account: Account, circle_id: str, stake_amount: Number, ctx: LedgerContext) -> OperationResult:
    """Join a catalog circle. Any positive stake up to the balance is accepted."""
    stake_amount = parse_amount(stake_amount)
    entry = ctx.catalog.get_circle(circle_id) if circle_id else None
    if entry is None:
        raise InvalidParametersError(f"Unknown circle: {circle_id!r}")
    if account.find_circle(entry.id) is not None:
        raise InvalidParametersError(f"Already a member of {entry.id}")
    if entry.is_full:
        raise InvalidParametersError(f"Circle {entry.id} is full")
    if not is_positive(stake_amount):
        raise InvalidParametersError(INVALID_AMOUNT)
    if stake_amount > account.wallet_balance:
        raise InsufficientFundsError(INSUFFICIENT_BALANCE)

    circle = Circle(
        id=entry.id,
        name=entry.name,
        monthly_amount=entry.monthly_amount,
        member_count=entry.member_count,
        current_members=entry.current_members + 1,
        status=entry.status,
        user_role="member",
    )
    updated = replace(
        account,
        wallet_balance=account.wallet_balance - stake_amount,
        circles=account.circles + (circle,),
    )
    updated, tx = _record(updated, "circle", stake_amount, ctx)
    return OperationResult(operation="join_circle", applied=True, account=updated, circle=circle, transaction=tx)


def bid(account: Account, circle_id: str, bid_amount: Number, ctx: LedgerContext) -> OperationResult:
    """Charge the 10% bid fee. No transaction is recorded."""
    bid_amount = parse_amount(bid_amount)
    if not circle_id or not circle_id.strip():
        raise InvalidParametersError("Circle id is required")
    if not is_positive(bid_amount):
        raise InvalidParametersError(INVALID_AMOUNT)
    fee = bid_amount * BID_FEE_RATE
    if fee > account.wallet_balance:
        raise InsufficientFundsError(INSUFFICIENT_BALANCE)

    updated = replace(account, wallet_balance=account.wallet_balance - fee)
    return OperationResult(operation="bid", applied=True, account=updated)


def distribute(account: Account, circle_id: str, ctx: LedgerContext) -> OperationResult:
    """
    Pay out monthly_amount * current_members from a held circle.

    The circle is left as is, so calling this again pays out again.
    """
    circle = account.find_circle(circle_id) if circle_id else None
    if circle is None:
        raise InvalidParametersError(f"Circle {circle_id!r} is not held by this account")

    payout = circle.monthly_amount * circle.current_members
    updated = replace(account, wallet_balance=account.wallet_balance + payout)
    updated, tx = _record(updated, "circle", payout, ctx)
    return OperationResult(operation="distribute", applied=True, account=updated, circle=circle, transaction=tx)


def execute(account: Account, command: Command, ctx: LedgerContext) -> OperationResult:
    """
    Run a command against the account.

    Raises:
        ValidationError: When a precondition does not hold
    """
    if isinstance(command, Stake):
        return stake(account, command.amount, ctx)
    if isinstance(command, Unstake):
        return unstake(account, ctx)
    if isinstance(command, Lend):
        return lend(account, command.amount, command.interest_rate, command.duration, ctx)
    if isinstance(command, Borrow):
        return borrow(account, command.amount, command.collateral, command.purpose, ctx)
    if isinstance(command, CreateCircle):
        return create_circle(account, command.name, command.monthly_amount, command.member_count, ctx)
    if isinstance(command, JoinCircle):
        return join_circle(account, command.circle_id, command.stake_amount, ctx)
    if isinstance(command, Bid):
        return bid(account, command.circle_id, command.bid_amount, ctx)
    if isinstance(command, Distribute):
        return distribute(account, command.circle_id, ctx)
    raise TypeError(f"Unsupported command: {type(command).__name__}")


def apply(account: Account, command: Command, ctx: LedgerContext | None = None) -> Tuple[Account, OperationResult]:
    """
    Main entry point: apply a command and return (new_account, result).

    A rejected command returns the very same account object with the
    validation error recorded on the result. Decimal arithmetic errors are
    reported as invalid parameters.
    """
    ctx = ctx or LedgerContext()
    try:
        result = execute(account, command, ctx)
    except ValidationError as e:
        result = OperationResult(
            operation=command.operation,
            applied=False,
            account=account,
            error=e.error,
            message=str(e),
        )
    except ArithmeticError:
        result = OperationResult(
            operation=command.operation,
            applied=False,
            account=account,
            error=InvalidParametersError.error,
            message=INVALID_AMOUNT,
        )
    return result.account, result
