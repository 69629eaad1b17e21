"""Unit tests for the pure ledger engine"""

import random
import pytest
from decimal import Decimal
from bastion_gateway.domain.catalog import StaticCatalog
from bastion_gateway.domain.commands import (
    Bid,
    Borrow,
    CreateCircle,
    Distribute,
    JoinCircle,
    Lend,
    Stake,
    Unstake,
)
from bastion_gateway.domain.exceptions import InsufficientFundsError, InvalidParametersError
from bastion_gateway.domain.ledger import (
    BORROW_DURATION_DAYS,
    BORROW_INTEREST_RATE,
    LedgerContext,
    apply,
    borrow,
    initial_account,
    stake,
)
from bastion_gateway.domain.models import Account, CatalogCircle, Circle


def test_stake_moves_funds_into_stake(account, ctx):
    """Stake debits the wallet and records a stake transaction"""
    new_account, result = apply(account, Stake(amount=Decimal("250")), ctx)

    assert result.applied is True
    assert new_account.wallet_balance == Decimal("750")
    assert new_account.staked_amount == Decimal("250")
    assert new_account.transactions[0].type == "stake"
    assert new_account.transactions[0].amount == Decimal("250")


@pytest.mark.parametrize("amount,error", [
    (Decimal("0"), "invalid_parameters"),
    (Decimal("-5"), "invalid_parameters"),
    (Decimal("1000.01"), "insufficient_funds"),
    (Decimal("NaN"), "invalid_parameters"),
])
def test_stake_rejected(account, ctx, amount, error):
    new_account, result = apply(account, Stake(amount=amount), ctx)

    assert result.applied is False
    assert result.error == error
    assert new_account is account


def test_stake_whole_balance_allowed(account, ctx):
    new_account, result = apply(account, Stake(amount=Decimal("1000")), ctx)

    assert result.applied is True
    assert new_account.wallet_balance == Decimal("0")


def test_stake_then_unstake_round_trip(account, ctx):
    """stake(x); unstake() restores the wallet and zeroes the stake"""
    staked, _ = apply(account, Stake(amount=Decimal("333.33")), ctx)
    restored, result = apply(staked, Unstake(), ctx)

    assert result.applied is True
    assert restored.wallet_balance == account.wallet_balance
    assert restored.staked_amount == Decimal("0")


def test_unstake_records_no_transaction(account, ctx):
    staked, _ = apply(account, Stake(amount=Decimal("100")), ctx)
    restored, _ = apply(staked, Unstake(), ctx)

    assert restored.transactions == staked.transactions


def test_unstake_without_stake_rejected(account, ctx):
    new_account, result = apply(account, Unstake(), ctx)

    assert result.applied is False
    assert result.error == "invalid_parameters"
    assert new_account is account


def test_lend_creates_active_lent_loan(account, ctx):
    new_account, result = apply(
        account, Lend(amount=Decimal("400"), interest_rate=Decimal("5"), duration=30), ctx
    )

    assert result.applied is True
    assert new_account.wallet_balance == Decimal("600")
    assert result.loan.type == "lent"
    assert result.loan.status == "active"
    assert result.loan.amount == Decimal("400")
    assert result.loan.interest_rate == Decimal("5")
    assert result.loan.duration == 30
    assert new_account.loans == (result.loan,)
    assert new_account.transactions[0].type == "lend"


def test_lend_zero_interest_allowed(account, ctx):
    _, result = apply(account, Lend(amount=Decimal("10"), interest_rate=Decimal("0"), duration=1), ctx)
    assert result.applied is True


@pytest.mark.parametrize("amount,rate,duration,error", [
    (Decimal("0"), Decimal("5"), 30, "invalid_parameters"),
    (Decimal("1001"), Decimal("5"), 30, "insufficient_funds"),
    (Decimal("100"), Decimal("-0.1"), 30, "invalid_parameters"),
    (Decimal("100"), Decimal("5"), 0, "invalid_parameters"),
    (Decimal("100"), Decimal("5"), -30, "invalid_parameters"),
])
def test_lend_rejected(account, ctx, amount, rate, duration, error):
    new_account, result = apply(account, Lend(amount=amount, interest_rate=rate, duration=duration), ctx)

    assert result.applied is False
    assert result.error == error
    assert new_account is account


def test_borrow_under_collateralized_rejected(account, ctx):
    """149 collateral for 100 is below the 150% minimum"""
    new_account, result = apply(account, Borrow(amount=Decimal("100"), collateral=Decimal("149"), purpose="x"), ctx)

    assert result.applied is False
    assert result.error == "invalid_parameters"
    assert new_account is account


def test_borrow_at_minimum_collateral(account, ctx):
    """borrow(100, 150) nets -50 and creates a 6.5% / 30 day loan"""
    new_account, result = apply(account, Borrow(amount=Decimal("100"), collateral=Decimal("150"), purpose="x"), ctx)

    assert result.applied is True
    assert new_account.wallet_balance == account.wallet_balance - Decimal("50")
    assert result.loan.amount == Decimal("100")
    assert result.loan.interest_rate == Decimal("6.5")
    assert result.loan.duration == 30
    assert result.loan.type == "borrowed"
    assert result.loan.collateral == Decimal("150")
    assert result.loan.purpose == "x"
    assert new_account.transactions[0].type == "borrow"
    assert new_account.transactions[0].amount == Decimal("100")


def test_borrow_terms_are_protocol_constants(account, ctx):
    assert BORROW_INTEREST_RATE == Decimal("6.5")
    assert BORROW_DURATION_DAYS == 30
    assert not hasattr(Borrow(amount=Decimal("1"), collateral=Decimal("2")), "interest_rate")

    result = borrow(account, Decimal("1000"), Decimal("1500"), "bridge", ctx)
    assert result.loan.interest_rate == BORROW_INTEREST_RATE
    assert result.loan.duration == BORROW_DURATION_DAYS


def test_borrow_that_would_overdraw_wallet_rejected(ctx):
    """Net cash flow of -50 cannot be covered by a balance of 40"""
    poor = initial_account(Decimal("40"))
    new_account, result = apply(poor, Borrow(amount=Decimal("100"), collateral=Decimal("150"), purpose="x"), ctx)

    assert result.applied is False
    assert result.error == "insufficient_funds"
    assert new_account is poor


@pytest.mark.parametrize("amount,collateral", [
    (Decimal("0"), Decimal("150")),
    (Decimal("100"), Decimal("0")),
    (Decimal("-100"), Decimal("150")),
])
def test_borrow_non_positive_rejected(account, ctx, amount, collateral):
    _, result = apply(account, Borrow(amount=amount, collateral=collateral, purpose="x"), ctx)
    assert result.error == "invalid_parameters"


@pytest.mark.parametrize("amount,collateral", [
    (Decimal("9e999999"), Decimal("9e999999")),
    (Decimal("100"), Decimal("9e999999")),
    (Decimal("1000000000000001"), Decimal("2000000000000000")),
])
def test_borrow_oversized_amount_rejected(account, ctx, amount, collateral):
    """Amounts beyond MAX_AMOUNT are invalid rather than overflowing the collateral check"""
    new_account, result = apply(account, Borrow(amount=amount, collateral=collateral, purpose="x"), ctx)

    assert result.applied is False
    assert result.error == "invalid_parameters"
    assert result.message == "Please enter a valid amount"
    assert new_account is account


def test_oversized_rate_rejected(account, ctx):
    new_account, result = apply(account, Lend(amount=Decimal("100"), interest_rate=Decimal("9e999999"), duration=30), ctx)

    assert result.error == "invalid_parameters"
    assert new_account is account


def test_arithmetic_overflow_reported_as_rejection(account, ctx):
    """A held circle whose payout overflows the decimal context is rejected, not raised"""
    circle = Circle(
        id="circle-huge",
        name="Whale Pot",
        monthly_amount=Decimal("9e999999"),
        member_count=10,
        current_members=5,
        status="distributing",
        user_role="member",
    )
    holder = Account(wallet_balance=account.wallet_balance, circles=(circle,))

    new_account, result = apply(holder, Distribute(circle_id="circle-huge"), ctx)

    assert result.applied is False
    assert result.error == "invalid_parameters"
    assert new_account is holder


def test_create_circle_minimum_members(account, ctx):
    """memberCount=2 is rejected; 3 members at 50/month succeeds with one member"""
    rejected, result = apply(account, CreateCircle(name="Family", monthly_amount=Decimal("50"), member_count=2), ctx)
    assert result.applied is False
    assert rejected is account

    created, result = apply(account, CreateCircle(name="Family", monthly_amount=Decimal("50"), member_count=3), ctx)
    assert result.applied is True
    assert result.circle.current_members == 1
    assert result.circle.member_count == 3
    assert result.circle.user_role == "creator"
    assert result.circle.status == "active"
    assert created.circles == (result.circle,)


def test_create_circle_does_not_debit_wallet(account, ctx):
    created, result = apply(account, CreateCircle(name="Family", monthly_amount=Decimal("50"), member_count=5), ctx)

    assert created.wallet_balance == account.wallet_balance
    assert created.transactions[0].type == "circle"
    assert created.transactions[0].amount == Decimal("50")


@pytest.mark.parametrize("name,monthly", [
    ("", Decimal("50")),
    ("   ", Decimal("50")),
    ("Family", Decimal("0")),
])
def test_create_circle_invalid(account, ctx, name, monthly):
    new_account, result = apply(account, CreateCircle(name=name, monthly_amount=monthly, member_count=5), ctx)

    assert result.error == "invalid_parameters"
    assert new_account is account


def test_join_circle_copies_catalog_entry(account, ctx):
    joined, result = apply(account, JoinCircle(circle_id="circle-1", stake_amount=Decimal("200")), ctx)

    assert result.applied is True
    assert joined.wallet_balance == Decimal("800")
    circle = joined.circles[0]
    assert circle.id == "circle-1"
    assert circle.name == "Startup Entrepreneurs"
    assert circle.monthly_amount == Decimal("200")
    assert circle.member_count == 8
    assert circle.current_members == 7
    assert circle.user_role == "member"
    assert joined.transactions[0].amount == Decimal("200")


def test_join_circle_accepts_any_positive_stake(account, ctx):
    """Stake need not match the monthly amount"""
    joined, result = apply(account, JoinCircle(circle_id="circle-2", stake_amount=Decimal("1")), ctx)

    assert result.applied is True
    assert joined.wallet_balance == Decimal("999")


def test_join_circle_rejections(account, ctx):
    _, unknown = apply(account, JoinCircle(circle_id="circle-99", stake_amount=Decimal("10")), ctx)
    _, empty = apply(account, JoinCircle(circle_id="", stake_amount=Decimal("10")), ctx)
    _, zero = apply(account, JoinCircle(circle_id="circle-1", stake_amount=Decimal("0")), ctx)
    _, too_much = apply(account, JoinCircle(circle_id="circle-1", stake_amount=Decimal("1500")), ctx)

    assert unknown.error == "invalid_parameters"
    assert empty.error == "invalid_parameters"
    assert zero.error == "invalid_parameters"
    assert too_much.error == "insufficient_funds"


def test_join_circle_twice_rejected(account, ctx):
    joined, _ = apply(account, JoinCircle(circle_id="circle-3", stake_amount=Decimal("300")), ctx)
    again, result = apply(joined, JoinCircle(circle_id="circle-3", stake_amount=Decimal("300")), ctx)

    assert result.error == "invalid_parameters"
    assert again is joined


def test_join_full_circle_rejected(account):
    full = CatalogCircle(
        id="circle-full",
        name="Packed",
        monthly_amount=Decimal("100"),
        member_count=3,
        current_members=3,
        status="active",
    )
    ctx = LedgerContext(catalog=StaticCatalog([full], []))

    new_account, result = apply(account, JoinCircle(circle_id="circle-full", stake_amount=Decimal("100")), ctx)

    assert result.error == "invalid_parameters"
    assert "full" in result.message
    assert new_account is account


def test_bid_charges_ten_percent_fee_without_transaction(account, ctx):
    new_account, result = apply(account, Bid(circle_id="circle-2", bid_amount=Decimal("250")), ctx)

    assert result.applied is True
    assert new_account.wallet_balance == Decimal("975")
    assert new_account.transactions == ()


@pytest.mark.parametrize("circle_id,bid_amount", [
    ("", Decimal("100")),
    ("  ", Decimal("100")),
    ("circle-2", Decimal("0")),
    ("circle-2", Decimal("-10")),
])
def test_bid_invalid(account, ctx, circle_id, bid_amount):
    new_account, result = apply(account, Bid(circle_id=circle_id, bid_amount=bid_amount), ctx)

    assert result.error == "invalid_parameters"
    assert new_account is account


def test_bid_fee_beyond_balance_rejected(ctx):
    poor = initial_account(Decimal("5"))
    _, result = apply(poor, Bid(circle_id="circle-2", bid_amount=Decimal("60")), ctx)
    assert result.error == "insufficient_funds"


def test_distribute_pays_monthly_amount_times_members(account_with_circle, ctx):
    paid, result = apply(account_with_circle, Distribute(circle_id="circle-held"), ctx)

    assert result.applied is True
    assert paid.wallet_balance == account_with_circle.wallet_balance + Decimal("400")
    assert paid.transactions[0].type == "circle"
    assert paid.transactions[0].amount == Decimal("400")


def test_distribute_repeats_payout(account_with_circle, ctx):
    """The circle is not reset, so a second call pays out again"""
    once, _ = apply(account_with_circle, Distribute(circle_id="circle-held"), ctx)
    twice, result = apply(once, Distribute(circle_id="circle-held"), ctx)

    assert result.applied is True
    assert twice.wallet_balance == account_with_circle.wallet_balance + Decimal("800")
    assert twice.circles == account_with_circle.circles


def test_distribute_unknown_circle_rejected(account, ctx):
    new_account, result = apply(account, Distribute(circle_id="circle-1"), ctx)

    assert result.error == "invalid_parameters"
    assert new_account is account


def test_history_keeps_ten_newest_first(account, ctx):
    current = account
    for i in range(1, 16):
        current, _ = apply(current, Stake(amount=Decimal(i)), ctx)

    assert len(current.transactions) == 10
    assert [tx.amount for tx in current.transactions] == [Decimal(i) for i in range(15, 5, -1)]


def test_history_limit_is_configurable(account, ctx):
    small = LedgerContext(catalog=ctx.catalog, clock=ctx.clock, id_factory=ctx.id_factory, history_limit=3)
    current = account
    for i in range(1, 6):
        current, _ = apply(current, Stake(amount=Decimal(i)), small)

    assert [tx.amount for tx in current.transactions] == [Decimal("5"), Decimal("4"), Decimal("3")]


@pytest.mark.parametrize("limit", [0, -1])
def test_history_limit_must_be_positive(ctx, limit):
    with pytest.raises(InvalidParametersError):
        LedgerContext(catalog=ctx.catalog, clock=ctx.clock, id_factory=ctx.id_factory, history_limit=limit)


def test_transaction_ids_are_unique(account):
    current = account
    for _ in range(5):
        current, _ = apply(current, Stake(amount=Decimal("1")), LedgerContext())

    assert len({tx.id for tx in current.transactions}) == 5


def test_execute_raises_while_apply_reports(account, ctx):
    with pytest.raises(InsufficientFundsError):
        stake(account, Decimal("5000"), ctx)
    with pytest.raises(InvalidParametersError):
        stake(account, Decimal("0"), ctx)

    _, result = apply(account, Stake(amount=Decimal("5000")), ctx)
    assert result.message == "Insufficient balance"


def test_initial_account_rejects_negative_balance():
    with pytest.raises(InvalidParametersError):
        initial_account(Decimal("-1"))


def _random_command(rng: random.Random, account: Account):
    circle_ids = [c.id for c in account.circles] + ["circle-1", "circle-2", "circle-3", "circle-4", ""]
    amount = Decimal(rng.randint(-50, 1500))
    kind = rng.randrange(8)
    if kind == 0:
        return Stake(amount=amount)
    if kind == 1:
        return Unstake()
    if kind == 2:
        return Lend(amount=amount, interest_rate=Decimal(rng.randint(-1, 12)), duration=rng.randint(-1, 90))
    if kind == 3:
        return Borrow(amount=amount, collateral=amount * Decimal(rng.choice(["1.2", "1.5", "2"])), purpose="p")
    if kind == 4:
        return CreateCircle(name=rng.choice(["", "Club"]), monthly_amount=amount, member_count=rng.randint(1, 8))
    if kind == 5:
        return JoinCircle(circle_id=rng.choice(circle_ids), stake_amount=amount)
    if kind == 6:
        return Bid(circle_id=rng.choice(circle_ids), bid_amount=amount)
    return Distribute(circle_id=rng.choice(circle_ids))


@pytest.mark.parametrize("seed", range(10))
def test_balances_never_negative(account, ctx, seed):
    """Wallet and stake stay non-negative over arbitrary operation sequences"""
    rng = random.Random(seed)
    current = account
    for _ in range(200):
        command = _random_command(rng, current)
        before = current
        current, result = apply(current, command, ctx)

        assert current.wallet_balance >= 0
        assert current.staked_amount >= 0
        assert len(current.transactions) <= 10
        if not result.applied:
            assert current is before
