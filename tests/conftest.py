"""Pytest fixtures for testing"""

import itertools
import pytest
from datetime import datetime, timezone
from decimal import Decimal
from fastapi.testclient import TestClient
from bastion_gateway.api.main import create_app
from bastion_gateway.domain.catalog import default_catalog
from bastion_gateway.domain.ledger import LedgerContext, initial_account
from bastion_gateway.domain.models import Account, Circle
from bastion_gateway.services.engine import LedgerEngine, NoDelay


FIXED_NOW = datetime(2025, 9, 24, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def ctx() -> LedgerContext:
    """Deterministic ids and clock, built-in catalog"""
    counter = itertools.count(1)
    return LedgerContext(
        catalog=default_catalog(),
        clock=lambda: FIXED_NOW,
        id_factory=lambda prefix: f"{prefix}-{next(counter)}",
    )


@pytest.fixture
def account() -> Account:
    """Fresh account with the default 1000 balance"""
    return initial_account(Decimal("1000"))


@pytest.fixture
def account_with_circle(account: Account) -> Account:
    """Account holding a 100/month circle with 4 current members"""
    circle = Circle(
        id="circle-held",
        name="Neighbourhood Pot",
        monthly_amount=Decimal("100"),
        member_count=6,
        current_members=4,
        status="distributing",
        user_role="member",
    )
    return Account(wallet_balance=account.wallet_balance, circles=(circle,))


@pytest.fixture
def engine(ctx: LedgerContext) -> LedgerEngine:
    """Engine that applies operations without the simulated delay"""
    return LedgerEngine(account=initial_account(Decimal("1000")), context=ctx, delay=NoDelay())


@pytest.fixture
def client(engine: LedgerEngine) -> TestClient:
    """Create FastAPI test client around a zero-delay engine"""
    app = create_app(engine=engine)
    return TestClient(app)
