"""GET /v1/account - Account state, dashboard summary and pending operations"""

from fastapi import APIRouter, Depends

from bastion_gateway.api.v1.schemas import AccountResponse, PendingResponse, SummaryResponse
from bastion_gateway.api.dependencies import get_engine
from bastion_gateway.domain.views import dashboard_summary
from bastion_gateway.services.engine import LedgerEngine

router = APIRouter()


@router.get("/account", response_model=AccountResponse)
def get_account(engine: LedgerEngine = Depends(get_engine)):
    return AccountResponse.model_validate(engine.account)


@router.get("/account/summary", response_model=SummaryResponse)
def get_summary(engine: LedgerEngine = Depends(get_engine)):
    """Wallet overview: balances, loans given, circles and the 5 latest transactions"""
    return SummaryResponse.model_validate(dashboard_summary(engine.account))


@router.get("/account/pending", response_model=PendingResponse)
def get_pending(engine: LedgerEngine = Depends(get_engine)):
    """Operation slots with a request still in flight"""
    return PendingResponse(pending=sorted(engine.pending_slots()))
