"""
Main FastAPI application.

This file wires together all layers:
- Domain: Business entities and rules
- Infrastructure: Remote user directory client
- Repositories: Local store, preference store, read-through repositories
- Services: Session orchestration and the deny-list
- Routers: HTTP endpoints
"""

import time
import uuid
from contextlib import asynccontextmanager

import redis.asyncio as redis
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from . import __version__
from .config import settings
from .database import dispose_engine, get_engine, init_db
from .dependencies import set_user_search_service
from .infrastructure.http_user_api_client import HttpUserAPIClient
from .logging_config import configure_logging
from .metrics import http_request_duration_seconds, http_requests_total
from .repositories.image_repository import ImageRepository
from .repositories.key_value_store import (
    IKeyValueStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    RedisKeyValueStore,
)
from .repositories.sql_local_store import SqlLocalStore
from .repositories.user_repository import UserSearchRepository
from .routers import avatar_router, health_router, search_router
from .services.deny_list import DenyListManager
from .services.user_search_service import UserSearchService

configure_logging(log_level=settings.LOG_LEVEL, use_json=settings.LOG_JSON)

logger = structlog.get_logger(__name__)


def create_key_value_store() -> IKeyValueStore:
    """
    Create the preference store selected by KEY_VALUE_BACKEND.

    Returns:
        Preference store holding the persisted deny-list
    """
    if settings.KEY_VALUE_BACKEND == "redis":
        logger.info("Using Redis preference store", url=settings.REDIS_URL)
        return RedisKeyValueStore(redis.from_url(settings.REDIS_URL, decode_responses=True))
    if settings.KEY_VALUE_BACKEND == "memory":
        logger.info("Using in-memory preference store")
        return InMemoryKeyValueStore()
    logger.info("Using preference file", path=settings.PREFERENCES_PATH)
    return JsonFileKeyValueStore(settings.PREFERENCES_PATH)


def create_user_search_service(
    local_store: SqlLocalStore,
    api_client: HttpUserAPIClient,
    deny_list: DenyListManager,
) -> UserSearchService:
    """
    Create the user search service with all dependencies.

    Args:
        local_store: Local store for users and avatars
        api_client: Remote user directory client
        deny_list: Loaded deny-list

    Returns:
        Configured UserSearchService instance
    """
    return UserSearchService(
        user_repository=UserSearchRepository(api_client, local_store),
        image_repository=ImageRepository(api_client, local_store),
        deny_list=deny_list,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting User Search Service...", version=__version__)

    engine = get_engine()
    try:
        init_db(engine)
    except Exception as e:
        logger.error("Failed to initialize local store", error=str(e))
        dispose_engine()
        raise

    api_client = HttpUserAPIClient(settings.USER_API_URL, timeout=settings.REQUEST_TIMEOUT)
    preferences = create_key_value_store()
    deny_list = DenyListManager(preferences, default_resource=settings.DENY_LIST_PATH)
    await deny_list.load()

    service = create_user_search_service(SqlLocalStore(engine), api_client, deny_list)
    set_user_search_service(service)
    logger.info("User Search Service started successfully")

    yield

    logger.info("Shutting down User Search Service...")
    set_user_search_service(None)

    try:
        await service.suspend()
    except Exception as e:
        logger.error("Failed to save deny-list", error=str(e), exc_info=True)

    await api_client.close()
    await preferences.close()
    dispose_engine()
    logger.info("User Search Service shut down complete")


# Create FastAPI app
app = FastAPI(
    title="User Search Service",
    description="Prefix search over a remote user directory with a local cache",
    version=__version__,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)


# Request ID middleware
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add request ID for tracing."""
    request_id = request.headers.get("X-Request-ID") or f"req-{uuid.uuid4().hex[:12]}"

    structlog.contextvars.bind_contextvars(request_id=request_id)
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()

    response.headers["X-Request-ID"] = request_id
    return response


# Metrics middleware
@app.middleware("http")
async def track_metrics(request: Request, call_next):
    """Track Prometheus metrics."""
    start_time = time.time()

    response = await call_next(request)

    duration = time.time() - start_time
    http_requests_total.labels(
        method=request.method, endpoint=request.url.path, status=response.status_code
    ).inc()
    http_request_duration_seconds.labels(
        method=request.method, endpoint=request.url.path
    ).observe(duration)

    return response


# Include routers
app.include_router(search_router.router)
app.include_router(avatar_router.router)
app.include_router(health_router.router)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with service information."""
    return {
        "service": "User Search Service",
        "version": __version__,
        "status": "operational",
        "docs": "/api/docs",
        "health": "/api/v1/health",
        "ready": "/api/v1/ready",
        "metrics": "/api/v1/metrics",
    }


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "internal_server_error",
            "message": "An unexpected error occurred",
            "request_id": request.headers.get("X-Request-ID"),
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("user_search.app:app", host="0.0.0.0", port=8000, log_level="info")
