"""Savings circle (ROSCA) endpoints"""

from decimal import Decimal
from typing import List
from fastapi import APIRouter, Depends, Query, Request

from bastion_gateway.api.v1.schemas import (
    BidRequest,
    CatalogCircleSchema,
    CircleListResponse,
    CirclePreviewResponse,
    CircleSchema,
    CreateCircleRequest,
    JoinCircleRequest,
    OperationResponse,
)
from bastion_gateway.api.dependencies import get_engine, get_request_id, operation_response
from bastion_gateway.domain.views import available_circles, circle_pool, circle_stats
from bastion_gateway.services.engine import LedgerEngine
from bastion_gateway.utils.money import MAX_AMOUNT

router = APIRouter()


@router.post("/circles", response_model=OperationResponse)
async def create_circle(
    request_body: CreateCircleRequest,
    request: Request,
    engine: LedgerEngine = Depends(get_engine),
):
    """Start a new circle with the caller as creator"""
    result = await engine.create_circle(
        request_body.name,
        request_body.monthly_amount,
        request_body.member_count,
        get_request_id(request),
    )
    return operation_response(result)


@router.get("/circles", response_model=CircleListResponse)
def list_circles(engine: LedgerEngine = Depends(get_engine)):
    account = engine.account
    stats = circle_stats(account)
    return CircleListResponse(
        circles=[CircleSchema.model_validate(c) for c in account.circles],
        count=stats.count,
        monthly_commitment=stats.monthly_commitment,
        circles_created=stats.circles_created,
    )


@router.get("/circles/available", response_model=List[CatalogCircleSchema])
def list_available_circles(engine: LedgerEngine = Depends(get_engine)):
    """Catalog circles not yet joined; full ones are flagged with is_full"""
    return [
        CatalogCircleSchema.model_validate(c)
        for c in available_circles(engine.account, engine.catalog)
    ]


@router.get("/circles/preview", response_model=CirclePreviewResponse)
def preview_circle(
    monthly_amount: Decimal = Query(..., ge=0, le=MAX_AMOUNT),
    member_count: int = Query(5, ge=3),
):
    return CirclePreviewResponse(
        monthly_amount=monthly_amount,
        member_count=member_count,
        total_pool=circle_pool(monthly_amount, member_count),
    )


@router.post("/circles/join", response_model=OperationResponse)
async def join_circle(
    request_body: JoinCircleRequest,
    request: Request,
    engine: LedgerEngine = Depends(get_engine),
):
    result = await engine.join_circle(
        request_body.circle_id,
        request_body.stake_amount,
        get_request_id(request),
    )
    return operation_response(result)


@router.post("/circles/bid", response_model=OperationResponse)
async def bid(
    request_body: BidRequest,
    request: Request,
    engine: LedgerEngine = Depends(get_engine),
):
    """Place a bid; only the 10% bid fee is charged"""
    result = await engine.bid(
        request_body.circle_id,
        request_body.bid_amount,
        get_request_id(request),
    )
    return operation_response(result)


@router.post("/circles/{circle_id}/distribute", response_model=OperationResponse)
async def distribute(
    circle_id: str,
    request: Request,
    engine: LedgerEngine = Depends(get_engine),
):
    """Collect the circle payout: monthly amount times current members"""
    result = await engine.distribute(circle_id, get_request_id(request))
    return operation_response(result)
