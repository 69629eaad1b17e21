"""Lending and borrowing endpoints"""

from decimal import Decimal
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request

from bastion_gateway.api.v1.schemas import (
    BorrowPreviewResponse,
    BorrowRequest,
    LendPreviewResponse,
    LendRequest,
    LoanListResponse,
    LoanOfferSchema,
    LoanSchema,
    LoanStatsSchema,
    OperationResponse,
)
from bastion_gateway.api.dependencies import get_engine, get_request_id, operation_response
from bastion_gateway.domain.views import borrow_preview, lend_preview, loan_stats
from bastion_gateway.services.engine import LedgerEngine
from bastion_gateway.utils.money import MAX_AMOUNT, round_money

router = APIRouter()


@router.post("/loans/lend", response_model=OperationResponse)
async def lend(
    request_body: LendRequest,
    request: Request,
    engine: LedgerEngine = Depends(get_engine),
):
    """Lend from the wallet at a chosen rate and duration"""
    result = await engine.lend(
        request_body.amount,
        request_body.interest_rate,
        request_body.duration,
        get_request_id(request),
    )
    return operation_response(result)


@router.post("/loans/borrow", response_model=OperationResponse)
async def borrow(
    request_body: BorrowRequest,
    request: Request,
    engine: LedgerEngine = Depends(get_engine),
):
    """
    Borrow at the protocol's fixed 6.5% for 30 days.

    Collateral must be at least 150% of the amount and is escrowed from the
    wallet in the same step the borrowed cash arrives.
    """
    result = await engine.borrow(
        request_body.amount,
        request_body.collateral,
        request_body.purpose,
        get_request_id(request),
    )
    return operation_response(result)


@router.get("/loans", response_model=LoanListResponse)
def list_loans(
    type: Optional[str] = Query(None, pattern="^(lent|borrowed)$"),
    engine: LedgerEngine = Depends(get_engine),
):
    """All loan positions plus lending and borrowing totals"""
    account = engine.account
    loans = [loan for loan in account.loans if type is None or loan.type == type]
    return LoanListResponse(
        loans=[LoanSchema.model_validate(loan) for loan in loans],
        lent=LoanStatsSchema.model_validate(loan_stats(account, "lent")),
        borrowed=LoanStatsSchema.model_validate(loan_stats(account, "borrowed")),
    )


@router.get("/loans/preview", response_model=LendPreviewResponse)
def preview_lend(
    amount: Decimal = Query(..., ge=0, le=MAX_AMOUNT),
    interest_rate: Decimal = Query(Decimal("5"), ge=0, le=MAX_AMOUNT),
    duration: int = Query(30, gt=0),
):
    """Expected return and profit of a prospective loan (simple interest by days)"""
    preview = lend_preview(amount, interest_rate, duration)
    return LendPreviewResponse(
        amount=preview.amount,
        interest_rate=preview.interest_rate,
        duration=preview.duration,
        expected_return=preview.expected_return,
        profit=preview.profit,
        expected_return_display=round_money(preview.expected_return),
        profit_display=round_money(preview.profit),
    )


@router.get("/loans/borrow/preview", response_model=BorrowPreviewResponse)
def preview_borrow(
    amount: Decimal = Query(..., ge=0, le=MAX_AMOUNT),
    collateral: Optional[Decimal] = Query(None, ge=0, le=MAX_AMOUNT),
):
    return BorrowPreviewResponse.model_validate(borrow_preview(amount, collateral))


@router.get("/loans/offers", response_model=List[LoanOfferSchema])
def list_loan_offers(engine: LedgerEngine = Depends(get_engine)):
    """Loan marketplace listings from the catalog (display only)"""
    return [LoanOfferSchema.model_validate(offer) for offer in engine.catalog.list_loan_offers()]
