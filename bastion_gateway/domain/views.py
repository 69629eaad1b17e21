"""Read-only views and previews derived from the account aggregate"""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple

from bastion_gateway.domain.catalog import CatalogProvider
from bastion_gateway.domain.exceptions import InvalidParametersError
from bastion_gateway.domain.ledger import (
    BORROW_DURATION_DAYS,
    BORROW_INTEREST_RATE,
    INVALID_AMOUNT,
    MIN_COLLATERAL_RATIO,
    parse_amount,
)
from bastion_gateway.domain.models import (
    Account,
    BorrowPreview,
    CatalogCircle,
    LendPreview,
    Loan,
    LoanType,
    Transaction,
)
from bastion_gateway.utils.money import Number, to_decimal

STAKING_APY = Decimal("8.5")
DAYS_PER_YEAR = 365


def expected_return(amount: Number, interest_rate: Number, duration: int) -> Decimal:
    """
    Simple interest prorated by days.

    amount * (1 + rate/100 * duration/365)

    Example:
        1000 at 5% for 30 days -> 1004.109589...
    """
    amount = to_decimal(amount)
    rate = to_decimal(interest_rate)
    return amount * (1 + rate / 100 * duration / DAYS_PER_YEAR)


def lend_preview(amount: Number, interest_rate: Number, duration: int) -> LendPreview:
    amount = parse_amount(amount)
    rate = parse_amount(interest_rate)
    total = expected_return(amount, rate, duration)
    return LendPreview(
        amount=amount,
        interest_rate=rate,
        duration=duration,
        expected_return=total,
        profit=total - amount,
    )


def borrow_preview(amount: Number, collateral: Optional[Number] = None) -> BorrowPreview:
    """
    Minimum collateral and total repayment for an amount, plus the wallet
    impact and loan-to-value ratio if collateral is given.

    Total repayment applies the flat 6.5% without proration by duration.

    Example:
        100 against 150 collateral -> repay 106.5, LTV 66.67%, wallet -50
    """
    amount = parse_amount(amount)
    net_change = None
    loan_to_value = None
    if collateral is not None:
        collateral = parse_amount(collateral)
        net_change = amount - collateral
        if collateral > 0:
            try:
                loan_to_value = amount / collateral * 100
            except ArithmeticError as e:
                raise InvalidParametersError(INVALID_AMOUNT) from e
    return BorrowPreview(
        amount=amount,
        minimum_collateral=amount * MIN_COLLATERAL_RATIO,
        interest_rate=BORROW_INTEREST_RATE,
        duration=BORROW_DURATION_DAYS,
        total_repayment=amount * (1 + BORROW_INTEREST_RATE / 100),
        net_wallet_change=net_change,
        loan_to_value=loan_to_value,
    )


def circle_pool(monthly_amount: Number, member_count: int) -> Decimal:
    """Total pot collected per round"""
    return to_decimal(monthly_amount) * member_count


def projected_staking_reward(staked_amount: Number, days: int = DAYS_PER_YEAR) -> Decimal:
    """Reward at the advertised APY over `days`. Display only; nothing accrues."""
    return to_decimal(staked_amount) * STAKING_APY / 100 * days / DAYS_PER_YEAR


def active_loans(account: Account, loan_type: Optional[LoanType] = None) -> List[Loan]:
    return [
        loan for loan in account.loans
        if loan.status == "active" and (loan_type is None or loan.type == loan_type)
    ]


@dataclass(frozen=True)
class LoanStats:
    active_count: int
    total_amount: Decimal
    average_interest_rate: Decimal
    collateral_locked: Decimal


def loan_stats(account: Account, loan_type: LoanType) -> LoanStats:
    loans = active_loans(account, loan_type)
    total = sum((loan.amount for loan in loans), Decimal("0"))
    avg_rate = (
        sum((loan.interest_rate for loan in loans), Decimal("0")) / len(loans)
        if loans
        else Decimal("0")
    )
    collateral = sum((loan.collateral for loan in loans), Decimal("0"))
    return LoanStats(
        active_count=len(loans),
        total_amount=total,
        average_interest_rate=avg_rate,
        collateral_locked=collateral,
    )


@dataclass(frozen=True)
class CircleStats:
    count: int
    monthly_commitment: Decimal
    circles_created: int


def circle_stats(account: Account) -> CircleStats:
    return CircleStats(
        count=len(account.circles),
        monthly_commitment=sum((c.monthly_amount for c in account.circles), Decimal("0")),
        circles_created=sum(1 for c in account.circles if c.user_role == "creator"),
    )


def available_circles(account: Account, catalog: CatalogProvider) -> List[CatalogCircle]:
    """Catalog circles the account does not hold yet (full ones included)"""
    held = {c.id for c in account.circles}
    return [c for c in catalog.list_circles() if c.id not in held]


@dataclass(frozen=True)
class DashboardSummary:
    wallet_balance: Decimal
    staked_amount: Decimal
    loans_given: int
    circle_count: int
    recent_transactions: Tuple[Transaction, ...]


def dashboard_summary(account: Account, recent: int = 5) -> DashboardSummary:
    return DashboardSummary(
        wallet_balance=account.wallet_balance,
        staked_amount=account.staked_amount,
        loans_given=sum(1 for loan in account.loans if loan.type == "lent"),
        circle_count=len(account.circles),
        recent_transactions=account.transactions[:recent],
    )
