"""
Portfolio Projects API - Main FastAPI Application
"""
import asyncio
import contextlib
import logging
import os
from contextlib import asynccontextmanager
from typing import Any

import psutil
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.database import check_db_connection
from app.services.errors import PortfolioError, RateLimitedError
from app.services.projects import ProjectListCache
from app.services.rate_limit import RateLimiter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

settings = get_settings()

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler for startup/shutdown events.
    """
    # Startup
    logger.info("Starting Portfolio Projects API...")
    logger.info(f"Environment: debug={settings.debug}, project_store={settings.project_store}")

    if settings.project_store == "database":
        if await check_db_connection():
            logger.info("Database connection verified")
        else:
            logger.warning("Database connection failed - service may not work correctly")

    sweeper = asyncio.create_task(
        app.state.rate_limiter.run_sweeper(settings.rate_limit_sweep_interval_s)
    )

    yield

    # Shutdown
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper
    logger.info("Shutting down Portfolio Projects API...")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Projects, content blocks and contact form for a personal portfolio site",
    version=API_VERSION,
    lifespan=lifespan,
)

# App-scoped shared state: listing cache and rate-limit table
app.state.project_cache = ProjectListCache()
app.state.rate_limiter = RateLimiter()

# =============================================================================
# CORS Middleware (must be added early, before routes)
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["Retry-After"],
)

# =============================================================================
# Exception Handlers (with CORS headers for cross-origin error responses)
# =============================================================================


def _get_cors_headers(request: Request) -> dict[str, str]:
    """Get CORS headers based on request origin."""
    origin = request.headers.get("origin", "")
    if origin in settings.cors_origins:
        return {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Credentials": "true",
            "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
            "Access-Control-Allow-Headers": "*",
        }
    return {}


@app.exception_handler(PortfolioError)
async def portfolio_exception_handler(request: Request, exc: PortfolioError) -> JSONResponse:
    """Render service errors as {"error": message} with their mapped status."""
    headers = _get_cors_headers(request)
    if isinstance(exc, RateLimitedError):
        headers["Retry-After"] = str(exc.retry_after)
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request validation failures are 400s with a readable message."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "Invalid value").removeprefix("Value error, ")
        messages.append(f"{location}: {message}" if location else message)

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "; ".join(messages) or "Invalid request"},
        headers=_get_cors_headers(request),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent JSON response and CORS headers."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers={**_get_cors_headers(request), **(exc.headers or {})},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions with CORS headers."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
        headers=_get_cors_headers(request),
    )


# =============================================================================
# Health Check Endpoints
# =============================================================================


@app.get("/health", tags=["Health"])
async def health() -> dict[str, str]:
    """
    Basic liveness check endpoint.

    Returns 200 OK if the service is running.
    """
    return {"status": "ok"}


@app.get("/health/ready", tags=["Health"])
async def health_ready() -> dict[str, Any]:
    """
    Readiness check that verifies the project store is reachable.

    Returns 503 if the database is configured and not accessible.
    """
    if settings.project_store == "file":
        return {"status": "ready", "store": "file"}

    if not await check_db_connection():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database connection failed",
        )

    return {
        "status": "ready",
        "store": "database",
        "database": "connected",
    }


@app.get("/health/live", tags=["Health"])
async def health_live() -> dict[str, Any]:
    """
    Detailed health report for monitoring dashboards.

    Always returns 200 with per-dependency status.
    """
    health_status: dict[str, Any] = {
        "status": "ok",
        "version": API_VERSION,
        "checks": {},
    }

    if settings.project_store == "database":
        try:
            db_healthy = await check_db_connection()
            health_status["checks"]["database"] = {
                "status": "healthy" if db_healthy else "unhealthy",
                "message": "Connection successful" if db_healthy else "Connection failed",
            }
            if not db_healthy:
                health_status["status"] = "degraded"
        except Exception as e:
            health_status["checks"]["database"] = {
                "status": "unhealthy",
                "message": str(e),
            }
            health_status["status"] = "degraded"

    health_status["checks"]["rate_limiter"] = {
        "status": "healthy",
        "tracked_keys": len(app.state.rate_limiter),
    }

    # System resources
    try:
        process = psutil.Process(os.getpid())
        memory_info = process.memory_info()
        health_status["checks"]["resources"] = {
            "status": "healthy",
            "memory_mb": round(memory_info.rss / 1024 / 1024, 2),
            "cpu_percent": process.cpu_percent(),
        }
    except psutil.Error:
        health_status["checks"]["resources"] = {
            "status": "unknown",
            "message": "Could not retrieve resource info",
        }

    return health_status


# =============================================================================
# API Info
# =============================================================================


@app.get("/", tags=["Info"])
async def root() -> dict[str, str]:
    """API root - returns basic info."""
    return {
        "name": settings.app_name,
        "version": API_VERSION,
        "docs": "/docs",
    }


# =============================================================================
# API Routes
# =============================================================================

from app.api.auth import router as auth_router
from app.api.contact import router as contact_router
from app.api.projects import router as projects_router
from app.api.uploads import router as uploads_router

app.include_router(projects_router)
app.include_router(contact_router)
app.include_router(uploads_router)
app.include_router(auth_router)

# API endpoints:
# - GET    /api/projects
# - POST   /api/projects             (rate-limited, auth)
# - GET    /api/projects/slugs
# - GET    /api/projects/slug/{slug}
# - GET    /api/projects/{id}
# - PUT    /api/projects/{id}        (auth)
# - DELETE /api/projects/{id}        (auth)
# - POST   /api/contact              (rate-limited)
# - POST   /api/uploads/images       (auth)
# - DELETE /api/uploads/images       (auth)
# - POST   /api/auth/login
# - POST   /api/auth/logout
# - GET    /api/me
