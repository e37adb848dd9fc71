"""
RewardHub API - promotional rewards hub for a casino affiliate

Main application entry point with FastAPI setup, middleware configuration,
and lifecycle management.
"""
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rewardhub import __version__
from rewardhub.api import admin, challenges, free_spins, leaderboard, milestones, system
from rewardhub.config import get_settings
from rewardhub.middleware import RateLimitMiddleware, RequestLoggingMiddleware, SecurityHeadersMiddleware
from rewardhub.monitoring import init_agent
from rewardhub.store import get_store

settings = get_settings()


def configure_logging() -> None:
    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file))
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )


configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager for startup and shutdown events.

    Handles:
    - Store connection setup
    - New Relic agent initialization
    - Admin gate warnings
    - Store shutdown
    """
    logger.info("=" * 60)
    logger.info("RewardHub API Starting Up")
    logger.info("=" * 60)

    try:
        store = get_store()
    except Exception as e:
        logger.error(f"Store initialization failed: {str(e)}", exc_info=True)
        raise

    if store.ping():
        logger.info(f"Store reachable ({store.product})")
    else:
        logger.error(f"Store not reachable ({store.product}); requests will fail until it is")

    init_agent()

    if not settings.admin_token:
        if settings.is_production:
            logger.warning("REWARDHUB_ADMIN_TOKEN not set: admin endpoints are disabled")
        else:
            logger.warning("REWARDHUB_ADMIN_TOKEN not set: admin endpoints are open (development only)")

    logger.info(f"Environment: {settings.environment}")
    logger.info(f"API Documentation available at: http://{settings.api_host}:{settings.api_port}/docs")
    logger.info("=" * 60)

    yield

    logger.info("RewardHub API Shutting Down")
    store.close()
    get_store.cache_clear()
    logger.info("Application shutdown complete")


tags_metadata = [
    {"name": "leaderboard", "description": "Wager leaderboard rows and the prize pool / end date settings."},
    {"name": "milestones", "description": "VIP level milestones and their rewards, lowest tier first."},
    {"name": "challenges", "description": "Multiplier challenges and player claims."},
    {"name": "free-spins", "description": "Free spins code offers and claim counting."},
    {"name": "admin", "description": "Admin gate status and token verification."},
    {"name": "system", "description": "Server time and health."},
    {"name": "root", "description": "API information."},
]

app = FastAPI(
    title="RewardHub API",
    description="""
    ## Rewards hub for a casino affiliate

    Public leaderboard, level milestones, challenges and free spins offers,
    plus content management for operators.

    ### Admin access
    Create, update and delete endpoints require the `X-Admin-Token` header
    when `REWARDHUB_ADMIN_TOKEN` is configured. In production without a token
    they are disabled.

    ### Data formats
    Money and multiplier values are decimal strings; timestamps are ISO-8601.
    """,
    version=__version__,
    lifespan=lifespan,
    openapi_tags=tags_metadata,
)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    RateLimitMiddleware,
    requests_per_minute=settings.rate_limit_requests,
    window_seconds=settings.rate_limit_window,
)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_origin_regex=r"http://localhost:\d+|http://127\.0\.0\.1:\d+",
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Origin", "X-Admin-Token", "X-Request-ID"],
    expose_headers=["X-Request-ID", "X-RateLimit-Limit", "X-RateLimit-Remaining"],
    max_age=3600,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Answer 400 with the first validation message up front."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    logger.warning(f"Validation error on {request.method} {request.url.path}: {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": first.get("msg", "Invalid request data"),
            "field": ".".join(location) or None,
            "detail": jsonable_encoder(errors),
        },
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions with consistent error format."""
    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code} on {request.url.path}: {exc.detail}")
    else:
        logger.warning(f"HTTP {exc.status_code} on {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "status_code": exc.status_code},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with logging."""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


app.include_router(leaderboard.router)
app.include_router(leaderboard.settings_router)
app.include_router(milestones.router)
app.include_router(challenges.router)
app.include_router(free_spins.router)
app.include_router(system.router)
app.include_router(admin.router)


@app.get("/", tags=["root"])
async def root():
    """API metadata and the main endpoints."""
    return {
        "message": "Welcome to RewardHub API",
        "version": __version__,
        "docs": "/docs",
        "health": "/api/health",
        "endpoints": {
            "leaderboard": "/api/leaderboard/entries",
            "leaderboard_settings": "/api/leaderboard/settings",
            "milestones": "/api/milestones",
            "challenges": "/api/challenges",
            "free_spins": "/api/free-spins",
            "time": "/api/time",
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "rewardhub.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=not settings.is_production,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
