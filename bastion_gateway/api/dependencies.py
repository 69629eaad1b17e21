"""Dependency injection for FastAPI endpoints"""

from fastapi import HTTPException, Request
from bastion_gateway.api.v1.schemas import OperationResponse
from bastion_gateway.domain.models import OperationResult
from bastion_gateway.infrastructure.clients.catalog import CatalogClient
from bastion_gateway.services.engine import LedgerEngine


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_engine(request: Request) -> LedgerEngine:
    """Provide the application's ledger engine"""
    return request.app.state.engine


def get_catalog_client() -> CatalogClient:
    """Provide Catalog API client instance"""
    return CatalogClient()


def operation_response(result: OperationResult) -> OperationResponse:
    """Serialize an applied operation; a rejected one becomes a 422 carrying its error category"""
    if not result.applied:
        raise HTTPException(
            status_code=422,
            detail={"error": result.error, "message": result.message},
        )
    return OperationResponse.model_validate(result)
