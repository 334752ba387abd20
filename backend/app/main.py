"""
Race Events Admin API - Main Application Entry Point

JSON API behind the events grid:
- CRUD over races and their legs in a single events table
- Event listing cached behind a tag-invalidated cache (Redis in production)
- Per-field 422 validation errors, generic 500s for storage failures
- Structured logging with request correlation and Prometheus metrics
"""

from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import register_exception_handlers
from app.core.logging import setup_logging, get_logger
from app.core.metrics import metrics_endpoint
from app.api.router import api_router
from app.api.middleware import RequestLoggingMiddleware
from app.db.session import engine, get_db
from app.services.cache_factory import close_event_cache, get_event_cache
from app.services.interfaces.event_cache import EventCache

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    cache = await get_event_cache()
    logger.info("event_cache_ready", backend=type(cache).__name__)

    yield

    await close_event_cache()
    await engine.dispose()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Admin API for running events, their legs, categories and registration fees",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)

app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check(
    db: AsyncSession = Depends(get_db),
    cache: EventCache = Depends(get_event_cache),
):
    """Health check endpoint for Docker and load balancers."""
    try:
        await db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError:
        database = "unavailable"

    return {
        "status": "healthy" if database == "connected" else "degraded",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "database": database,
        "cache": await cache.stats(),
    }


@app.get("/metrics", include_in_schema=False)
def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
