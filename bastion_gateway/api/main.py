"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from bastion_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from bastion_gateway.api.v1 import account, catalog, circles, history, loans, staking
from bastion_gateway.domain.exceptions import CatalogUnavailableError, OperationPendingError, ValidationError
from bastion_gateway.infrastructure.clients.catalog import CatalogClient
from bastion_gateway.infrastructure.observability.logging import setup_logging
from bastion_gateway.infrastructure.observability.metrics import catalog_fetch_failures_counter
from bastion_gateway.services.engine import LedgerEngine, build_engine
from bastion_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the remote catalog at startup when one is configured"""
    if settings.catalog_api_base:
        try:
            app.state.engine.use_catalog(await CatalogClient().fetch_catalog())
        except CatalogUnavailableError as e:
            catalog_fetch_failures_counter.inc()
            logging.error(f"Catalog API error at startup, keeping built-in catalog: {e}")
    yield


def create_app(engine: LedgerEngine | None = None) -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Bastion Gateway",
        description="Peer-to-peer lending, staking and savings circle ledger",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.engine = engine or build_engine(
        initial_balance=settings.initial_wallet_balance,
        history_limit=settings.transaction_history_limit,
        simulate_latency=settings.simulate_latency,
        latency_scale=settings.latency_scale,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.exception_handler(OperationPendingError)
    async def operation_pending_handler(request: Request, exc: OperationPendingError):
        logging.warning(
            f"Rejected concurrent request: {exc}",
            extra={"request_id": getattr(request.state, "request_id", "unknown")},
        )
        return JSONResponse(status_code=409, content={"detail": str(exc), "slot": exc.slot})

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"detail": {"error": exc.error, "message": str(exc)}})

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(account.router, prefix="/v1", tags=["account"])
    app.include_router(staking.router, prefix="/v1", tags=["staking"])
    app.include_router(loans.router, prefix="/v1", tags=["loans"])
    app.include_router(circles.router, prefix="/v1", tags=["circles"])
    app.include_router(history.router, prefix="/v1", tags=["history"])
    app.include_router(catalog.router, prefix="/v1", tags=["catalog"])

    return app


app = create_app()
