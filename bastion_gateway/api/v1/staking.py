"""POST /v1/stake, POST /v1/unstake - staking endpoints"""

from decimal import Decimal
from fastapi import APIRouter, Depends, Query, Request

from bastion_gateway.api.v1.schemas import OperationResponse, StakePreviewResponse, StakeRequest
from bastion_gateway.api.dependencies import operation_response, get_engine, get_request_id
from bastion_gateway.domain.views import STAKING_APY, projected_staking_reward
from bastion_gateway.services.engine import LedgerEngine
from bastion_gateway.utils.money import MAX_AMOUNT

router = APIRouter()


@router.post("/stake", response_model=OperationResponse)
async def stake(
    request_body: StakeRequest,
    request: Request,
    engine: LedgerEngine = Depends(get_engine),
):
    """Move funds from the wallet into stake"""
    result = await engine.stake(request_body.amount, get_request_id(request))
    return operation_response(result)


@router.post("/unstake", response_model=OperationResponse)
async def unstake(request: Request, engine: LedgerEngine = Depends(get_engine)):
    """Release the whole staked balance back to the wallet"""
    result = await engine.unstake(get_request_id(request))
    return operation_response(result)


@router.get("/stake/preview", response_model=StakePreviewResponse)
def stake_preview(
    amount: Decimal | None = Query(None, ge=0, le=MAX_AMOUNT, description="Amount to project; defaults to current stake"),
    days: int = Query(365, gt=0),
    engine: LedgerEngine = Depends(get_engine),
):
    staked = engine.account.staked_amount if amount is None else amount
    return StakePreviewResponse(
        staked_amount=staked,
        apy=STAKING_APY,
        days=days,
        projected_reward=projected_staking_reward(staked, days),
    )
