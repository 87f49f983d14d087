"""Dispatchline FastAPI application.

Operator-facing HTTP surface over the order lifecycle core: message
previews and sends, lifecycle actions, bulk overrides and on-demand courier
polling. Background polling and reminders run in ``server.py``.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.exceptions import ConfigurationError, ObjectNotFoundError, ValidationError

from fulfillment.api.routes import router as courier_router
from fulfillment.carrier.port import CourierSourceError
from ordering.api.routes import router as orders_router
from ordering.domain import init_ordering
from ordering.order.order import ArchivedOrderError
from shared.config import get_settings
from shared.logging import configure_logging

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Logging and domain initialization
# ---------------------------------------------------------------------------
configure_logging()
ordering = init_ordering()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Dispatchline API",
    description="Order lifecycle and customer notification orchestration",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the ordering domain context for each request."""
    with ordering.domain_context():
        return await call_next(request)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------
@app.exception_handler(ObjectNotFoundError)
async def not_found_handler(request: Request, exc: ObjectNotFoundError):
    return JSONResponse(status_code=404, content={"error": exc.messages})


@app.exception_handler(ArchivedOrderError)
async def archived_handler(request: Request, exc: ArchivedOrderError):
    return JSONResponse(status_code=409, content={"error": exc.messages})


@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"error": exc.messages})


@app.exception_handler(CourierSourceError)
async def courier_unavailable_handler(request: Request, exc: CourierSourceError):
    logger.warning("Courier feed unavailable", path=request.url.path, error=exc.messages)
    return JSONResponse(status_code=503, content={"error": exc.messages})


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error("Adapter misconfigured", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"error": {"configuration": [str(exc)]}})


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(orders_router)
app.include_router(courier_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    settings = get_settings()
    return JSONResponse(
        content={
            "status": "ok",
            "environment": settings.environment,
            "adapters": {
                "sender": settings.sender_adapter,
                "courier": settings.courier_adapter,
            },
        }
    )
