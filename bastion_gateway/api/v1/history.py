"""GET /v1/transactions - Fetch the account's transaction history"""

from fastapi import APIRouter, Depends, Query

from bastion_gateway.api.v1.schemas import HistoryResponse, TransactionSchema
from bastion_gateway.api.dependencies import get_engine
from bastion_gateway.services.engine import LedgerEngine

router = APIRouter()


@router.get("/transactions", response_model=HistoryResponse)
def get_transaction_history(
    limit: int | None = Query(None, gt=0, description="Return at most this many entries"),
    engine: LedgerEngine = Depends(get_engine),
):
    """
    Retrieve recent transactions, newest first.

    Returns:
        At most the retained history (10 entries by default)
    """
    transactions = engine.account.transactions
    if limit is not None:
        transactions = transactions[:limit]

    return HistoryResponse(
        transactions=[TransactionSchema.model_validate(tx) for tx in transactions]
    )
