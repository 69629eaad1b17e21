"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from bastion_gateway.domain import views


class StakeRequest(BaseModel):
    """Request body for POST /v1/stake"""

    amount: Decimal = Field(..., description="Amount to move from wallet to stake")


class LendRequest(BaseModel):
    """Request body for POST /v1/loans/lend"""

    amount: Decimal
    interest_rate: Decimal = Field(Decimal("5"), description="Percent per annum")
    duration: int = Field(30, description="Duration in days")


class BorrowRequest(BaseModel):
    """Request body for POST /v1/loans/borrow"""

    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal
    collateral: Decimal = Field(..., description="Minimum 150% of loan amount")
    purpose: str = Field(..., min_length=1, description="What the loan is for")


class CreateCircleRequest(BaseModel):
    """Request body for POST /v1/circles"""

    name: str
    monthly_amount: Decimal
    member_count: int = 5


class JoinCircleRequest(BaseModel):
    """Request body for POST /v1/circles/join"""

    circle_id: str
    stake_amount: Decimal


class BidRequest(BaseModel):
    """Request body for POST /v1/circles/bid"""

    circle_id: str
    bid_amount: Decimal


class LoanSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    amount: Decimal
    interest_rate: Decimal
    duration: int
    status: str
    type: str
    collateral: Decimal
    purpose: str
    created_at: Optional[datetime] = None

    @computed_field
    @property
    def expected_return(self) -> Decimal:
        """Principal plus interest prorated over the loan duration"""
        return views.expected_return(self.amount, self.interest_rate, self.duration)


class CircleSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    monthly_amount: Decimal
    member_count: int
    current_members: int
    status: str
    user_role: Optional[str] = None


class TransactionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    amount: Decimal
    timestamp: datetime


class AccountResponse(BaseModel):
    """Response for GET /v1/account"""

    model_config = ConfigDict(from_attributes=True)

    wallet_balance: Decimal
    staked_amount: Decimal
    loans: List[LoanSchema]
    circles: List[CircleSchema]
    transactions: List[TransactionSchema]


class OperationResponse(BaseModel):
    """Response for every applied state-changing operation"""

    model_config = ConfigDict(from_attributes=True)

    operation: str
    applied: bool
    account: AccountResponse
    loan: Optional[LoanSchema] = None
    circle: Optional[CircleSchema] = None
    transaction: Optional[TransactionSchema] = None


class SummaryResponse(BaseModel):
    """Response for GET /v1/account/summary"""

    model_config = ConfigDict(from_attributes=True)

    wallet_balance: Decimal
    staked_amount: Decimal
    loans_given: int
    circle_count: int
    recent_transactions: List[TransactionSchema]


class PendingResponse(BaseModel):
    pending: List[str]


class StakePreviewResponse(BaseModel):
    staked_amount: Decimal
    apy: Decimal
    days: int
    projected_reward: Decimal


class LendPreviewResponse(BaseModel):
    """Response for GET /v1/loans/preview"""

    model_config = ConfigDict(from_attributes=True)

    amount: Decimal
    interest_rate: Decimal
    duration: int
    expected_return: Decimal
    profit: Decimal
    expected_return_display: Decimal
    profit_display: Decimal


class BorrowPreviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    amount: Decimal
    minimum_collateral: Decimal
    interest_rate: Decimal
    duration: int
    total_repayment: Decimal
    net_wallet_change: Optional[Decimal] = None
    loan_to_value: Optional[Decimal] = None


class LoanStatsSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    active_count: int
    total_amount: Decimal
    average_interest_rate: Decimal
    collateral_locked: Decimal


class LoanListResponse(BaseModel):
    """Response for GET /v1/loans"""

    loans: List[LoanSchema]
    lent: LoanStatsSchema
    borrowed: LoanStatsSchema


class LoanOfferSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    amount: Decimal
    interest_rate: Decimal
    duration: int
    lender: str
    reputation: Decimal

    @computed_field
    @property
    def expected_return(self) -> Decimal:
        return views.expected_return(self.amount, self.interest_rate, self.duration)


class CatalogCircleSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    monthly_amount: Decimal
    member_count: int
    current_members: int
    status: str
    is_full: bool


class CircleListResponse(BaseModel):
    """Response for GET /v1/circles"""

    circles: List[CircleSchema]
    count: int
    monthly_commitment: Decimal
    circles_created: int


class CirclePreviewResponse(BaseModel):
    monthly_amount: Decimal
    member_count: int
    total_pool: Decimal


class HistoryResponse(BaseModel):
    """Response for GET /v1/transactions"""

    transactions: List[TransactionSchema]


class CatalogResponse(BaseModel):
    """Response for POST /v1/catalog/refresh"""

    circles: List[CatalogCircleSchema]
    loan_offers: List[LoanOfferSchema]
