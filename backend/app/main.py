"""Sweaquity Backend API - FastAPI application."""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from sweaquity.logging_config import setup_sweaquity_logging

from .config import get_settings
from .database import (
    ACCEPTED_JOBS_TABLE,
    BUSINESSES_TABLE,
    JOB_APPLICATIONS_TABLE,
    PROJECTS_TABLE,
    TICKETS_TABLE,
    Database,
)
from .errors import register_error_handlers
from .logging_config import get_logger
from .rate_limit import limiter
from .routes import (
    applications_router,
    businesses_router,
    equity_router,
    profiles_router,
    projects_router,
    tickets_router,
)

logger = get_logger("sweaquity.api")

HEALTH_TABLES = (
    BUSINESSES_TABLE,
    PROJECTS_TABLE,
    JOB_APPLICATIONS_TABLE,
    ACCEPTED_JOBS_TABLE,
    TICKETS_TABLE,
)
SLOW_REQUEST_MS = 1000


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    setup_sweaquity_logging(level=settings.log_level)
    logger.info(f"Starting Sweaquity Backend API (debug={settings.debug})")
    yield
    logger.info("Shutting down Sweaquity Backend API")


app = FastAPI(
    title="Sweaquity Backend API",
    description="Equity-for-work marketplace API",
    version="0.1.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Domain errors -> HTTP errors
register_error_handlers(app)

# CORS middleware
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_slow_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    if elapsed_ms > SLOW_REQUEST_MS:
        logger.warning(
            f"Slow request | {request.method} {request.url.path} "
            f"status={response.status_code} took={elapsed_ms:.0f}ms"
        )
    return response


# Include routers
app.include_router(businesses_router)
app.include_router(profiles_router)
app.include_router(projects_router)
app.include_router(applications_router)
app.include_router(equity_router)
app.include_router(tickets_router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "service": "sweaquity-backend",
        "version": "0.1.0",
        "status": "ok",
    }


@app.get("/health")
async def health(db: Database):
    """Probe each marketplace table; any failure marks the API degraded."""
    tables = {}
    for table in HEALTH_TABLES:
        try:
            db.table(table).select("*").limit(1).execute()
            tables[table] = "ok"
        except Exception as e:
            logger.warning(f"Health check failed for {table}: {e}")
            tables[table] = f"error: {str(e)[:50]}"

    healthy = all(state == "ok" for state in tables.values())
    return {
        "status": "healthy" if healthy else "degraded",
        "database": "connected" if healthy else "degraded",
        "tables": tables,
    }
