"""Commands accepted by the ledger engine, one per state-changing operation"""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar, Union


@dataclass(frozen=True)
class Stake:
    operation: ClassVar[str] = "stake"
    slot: ClassVar[str] = "stake"

    amount: Decimal


@dataclass(frozen=True)
class Unstake:
    operation: ClassVar[str] = "unstake"
    slot: ClassVar[str] = "stake"


@dataclass(frozen=True)
class Lend:
    operation: ClassVar[str] = "lend"
    slot: ClassVar[str] = "lend"

    amount: Decimal
    interest_rate: Decimal
    duration: int


@dataclass(frozen=True)
class Borrow:
    operation: ClassVar[str] = "borrow"
    slot: ClassVar[str] = "borrow"

    amount: Decimal
    collateral: Decimal
    purpose: str = ""


@dataclass(frozen=True)
class CreateCircle:
    operation: ClassVar[str] = "create_circle"
    slot: ClassVar[str] = "circles"

    name: str
    monthly_amount: Decimal
    member_count: int


@dataclass(frozen=True)
class JoinCircle:
    operation: ClassVar[str] = "join_circle"
    slot: ClassVar[str] = "circles"

    circle_id: str
    stake_amount: Decimal


@dataclass(frozen=True)
class Bid:
    operation: ClassVar[str] = "bid"
    slot: ClassVar[str] = "circles"

    circle_id: str
    bid_amount: Decimal


@dataclass(frozen=True)
class Distribute:
    operation: ClassVar[str] = "distribute"
    slot: ClassVar[str] = "circles"

    circle_id: str


Command = Union[Stake, Unstake, Lend, Borrow, CreateCircle, JoinCircle, Bid, Distribute]
