"""Domain models - immutable dataclasses representing the account aggregate"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional, Tuple

LoanType = Literal["lent", "borrowed"]
LoanStatus = Literal["active", "completed"]
CircleStatus = Literal["active", "bidding", "distributing"]
CircleRole = Literal["creator", "member"]
TransactionType = Literal["stake", "lend", "borrow", "circle"]


@dataclass(frozen=True)
class Loan:
    """A loan position given or taken by the account"""

    id: str
    amount: Decimal
    interest_rate: Decimal  # percent per annum
    duration: int  # days
    status: LoanStatus
    type: LoanType
    collateral: Decimal = Decimal("0")
    purpose: str = ""
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Circle:
    """Rotating savings circle (ROSCA) held by the account"""

    id: str
    name: str
    monthly_amount: Decimal
    member_count: int  # capacity
    current_members: int
    status: CircleStatus
    user_role: Optional[CircleRole] = None


@dataclass(frozen=True)
class Transaction:
    """Entry in the account's bounded transaction history"""

    id: str
    type: TransactionType
    amount: Decimal
    timestamp: datetime


@dataclass(frozen=True)
class Account:
    """Session account aggregate; replaced wholesale on every applied operation"""

    wallet_balance: Decimal
    staked_amount: Decimal = Decimal("0")
    loans: Tuple[Loan, ...] = ()
    circles: Tuple[Circle, ...] = ()
    transactions: Tuple[Transaction, ...] = ()  # newest first

    def find_circle(self, circle_id: str) -> Optional[Circle]:
        return next((c for c in self.circles if c.id == circle_id), None)


@dataclass(frozen=True)
class CatalogCircle:
    """Circle offered by the external catalog"""

    id: str
    name: str
    monthly_amount: Decimal
    member_count: int
    current_members: int
    status: CircleStatus

    @property
    def is_full(self) -> bool:
        return self.current_members >= self.member_count


@dataclass(frozen=True)
class LoanOffer:
    """Loan listing shown in the marketplace (display only)"""

    id: str
    amount: Decimal
    interest_rate: Decimal
    duration: int
    lender: str
    reputation: Decimal


@dataclass(frozen=True)
class LendPreview:
    """Point-in-time economics of a prospective loan"""

    amount: Decimal
    interest_rate: Decimal
    duration: int
    expected_return: Decimal
    profit: Decimal


@dataclass(frozen=True)
class BorrowPreview:
    """Collateral requirement, repayment and wallet impact of a prospective borrow"""

    amount: Decimal
    minimum_collateral: Decimal
    interest_rate: Decimal
    duration: int
    total_repayment: Decimal
    net_wallet_change: Optional[Decimal] = None
    loan_to_value: Optional[Decimal] = None


@dataclass(frozen=True)
class OperationResult:
    """Outcome of applying a command to an account"""

    operation: str
    applied: bool
    account: Account
    loan: Optional[Loan] = None
    circle: Optional[Circle] = None
    transaction: Optional[Transaction] = None
    error: Optional[str] = None  # "insufficient_funds" | "invalid_parameters"
    message: Optional[str] = None
