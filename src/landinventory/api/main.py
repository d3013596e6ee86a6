"""
FastAPI Main Application

Land Inventory REST API.
"""
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from config.settings import settings
from src import __version__
from src.landinventory.api.dependencies import get_engine_service
from src.landinventory.api.routers import configurations, land, stats
from src.landinventory.api.schemas import HealthCheck
from src.landinventory.db.session import close_connections
from src.landinventory.db.session import health_check as database_health_check
from src.landinventory.exceptions import (
    ConflictError,
    LandInventoryError,
    NotFoundError,
    ValidationError,
)
from src.landinventory.models.layout import summarize_errors
from src.landinventory.services.engine import LandInventoryEngine
from src.landinventory.utils.logger import get_logger, log_context, setup_logging

setup_logging()
logger = get_logger(__name__)

ERROR_STATUS = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("api_starting", version=__version__)
    yield
    close_connections()
    logger.info("api_stopped")


# Create FastAPI app
app = FastAPI(
    title="Land Inventory API",
    description="REST API for land blocks, plots, plot status history and layout configurations",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


@app.middleware("http")
async def bind_request_context(request: Request, call_next):
    """Tag every log event of a request with its id and path."""
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    with log_context(request_id=request_id, path=request.url.path, method=request.method):
        response = await call_next(request)
    response.headers["x-request-id"] = request_id
    return response


# Include routers
app.include_router(land.router)
app.include_router(configurations.router)
app.include_router(stats.router)


@app.exception_handler(LandInventoryError)
def handle_land_inventory_error(request: Request, exc: LandInventoryError):
    """
    Render engine errors as the structured error object.

    Internal detail is only included when debug is enabled.
    """
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.info(
        "request_failed",
        kind=exc.kind,
        status_code=status_code
    )
    return JSONResponse(status_code=status_code, content=exc.to_dict(debug=settings.debug))


@app.exception_handler(RequestValidationError)
def handle_request_validation_error(request: Request, exc: RequestValidationError):
    """Render malformed request bodies and parameters as a validation_error."""
    error = ValidationError(f"Invalid request: {summarize_errors(exc)}", detail=str(exc.errors()))
    return handle_land_inventory_error(request, error)


@app.get("/health", response_model=HealthCheck, tags=["health"])
def health_check(engine: LandInventoryEngine = Depends(get_engine_service)):
    """
    Health check endpoint.

    Returns:
        Health status with database connectivity check
    """
    database_status = "connected" if database_health_check(engine.session_factory) else "unavailable"

    return HealthCheck(
        status="healthy" if database_status == "connected" else "degraded",
        version=__version__,
        database=database_status,
        timestamp=datetime.now(timezone.utc),
    )


@app.get("/", tags=["root"])
def root():
    """
    Root endpoint.

    Returns:
        API information
    """
    return {
        "name": "Land Inventory API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.landinventory.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
