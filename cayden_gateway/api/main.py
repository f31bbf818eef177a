"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from cayden_gateway.api.dependencies import get_request_id
from cayden_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from cayden_gateway.api.v1 import (
    accounts,
    advances,
    auth,
    bills,
    goals,
    linked_accounts,
    notifications,
    pin,
    transactions,
)
from cayden_gateway.config import settings
from cayden_gateway.domain.exceptions import DomainException
from cayden_gateway.infrastructure.database.session import init_db
from cayden_gateway.infrastructure.observability.logging import setup_logging

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.create_tables_on_startup:
        init_db()
    yield


def error_body(message: str, **extra) -> dict:
    return {"status": "error", "message": message, **extra}


async def handle_domain_exception(request: Request, exc: DomainException) -> JSONResponse:
    logging.warning(
        f"{type(exc).__name__}: {exc.message}",
        extra={"request_id": get_request_id(request), "path": request.url.path, "status_code": exc.status_code},
    )
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, **exc.extra))


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content=error_body(message))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logging.error(
        f"Unexpected error: {exc}",
        extra={"request_id": get_request_id(request), "path": request.url.path},
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content=error_body("Internal server error"))


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Cayden Gateway",
        description="Neobank money-movement core: accounts, advances, goals, bills",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(DomainException, handle_domain_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(auth.router, prefix="/v1", tags=["auth"])
    app.include_router(accounts.router, prefix="/v1", tags=["accounts"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])
    app.include_router(advances.router, prefix="/v1", tags=["advances"])
    app.include_router(goals.router, prefix="/v1", tags=["goals"])
    app.include_router(bills.router, prefix="/v1", tags=["bills"])
    app.include_router(linked_accounts.router, prefix="/v1", tags=["linked-accounts"])
    app.include_router(pin.router, prefix="/v1", tags=["pin"])
    app.include_router(notifications.router, prefix="/v1", tags=["notifications"])

    return app


app = create_app()
