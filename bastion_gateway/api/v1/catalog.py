"""POST /v1/catalog/refresh - Reload the catalog from the catalog service"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from bastion_gateway.api.v1.schemas import CatalogCircleSchema, CatalogResponse, LoanOfferSchema
from bastion_gateway.api.dependencies import get_catalog_client, get_engine, get_request_id
from bastion_gateway.domain.exceptions import CatalogUnavailableError
from bastion_gateway.infrastructure.clients.catalog import CatalogClient
from bastion_gateway.infrastructure.observability.metrics import catalog_fetch_failures_counter
from bastion_gateway.services.engine import LedgerEngine

router = APIRouter()


@router.post("/catalog/refresh", response_model=CatalogResponse)
async def refresh_catalog(
    request: Request,
    engine: LedgerEngine = Depends(get_engine),
    catalog_client: CatalogClient = Depends(get_catalog_client),
):
    """
    Fetch the catalog from the configured catalog service and swap it in.

    The previous catalog stays in place when the fetch fails.
    """
    request_id = get_request_id(request)
    try:
        catalog = await catalog_client.fetch_catalog()
    except CatalogUnavailableError as e:
        catalog_fetch_failures_counter.inc()
        logging.error(f"Catalog API error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Catalog service unavailable")

    engine.use_catalog(catalog)
    logging.info(
        "Catalog refreshed",
        extra={"request_id": request_id, "circles": len(catalog.list_circles())},
    )
    return CatalogResponse(
        circles=[CatalogCircleSchema.model_validate(c) for c in catalog.list_circles()],
        loan_offers=[LoanOfferSchema.model_validate(o) for o in catalog.list_loan_offers()],
    )
