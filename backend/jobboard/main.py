"""
FastAPI application entry point for the job board API.

This is the main app that:
- Initializes FastAPI with CORS and cookie sessions
- Maps application errors to JSON {"detail": ...} responses
- Registers all API routers
- Provides health check endpoint
- Sets up database connection lifecycle
"""
import logging
import time
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError
from starlette.middleware.sessions import SessionMiddleware

from jobboard.config import settings
from jobboard.database import engine
from jobboard.errors import AppError, app_error_handler, create_error_response
# Import API routers
from jobboard.api import (
    admin,
    applications,
    auth,
    companies,
    employer,
    jobs,
    oidc,
    payments,
    saved,
    talents,
    uploads,
)

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

SESSION_COOKIE = "jobboard_session"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    Tables are managed by Alembic (`alembic upgrade head`), not here.
    """
    logger.info("Starting job board API...")
    logger.info(f"Database: {settings.database_url.split('@')[1] if '@' in settings.database_url else settings.database_url.split(':')[0]}")
    logger.info(f"Debug mode: {settings.debug}")
    if settings.secret_key == "dev-secret-change-in-production":
        logger.warning("SECRET_KEY is the development default; set it in production")

    yield

    logger.info("Shutting down job board API...")
    await engine.dispose()


# Initialize FastAPI app
app = FastAPI(
    title="Web3 Job Board API",
    description="Jobs, companies, applications and messaging for a Web3 job board",
    version="1.0.0",
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    session_cookie=SESSION_COOKIE,
    max_age=int(timedelta(days=settings.session_max_age_days).total_seconds()),
    same_site="lax",
    https_only=settings.session_https_only,
)

# Set ALLOWED_ORIGINS environment variable with comma-separated domains
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_api_requests(request: Request, call_next):
    """One line per /api request: method, path, status, duration."""
    if not request.url.path.startswith("/api"):
        return await call_next(request)
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(f"{request.method} {request.url.path} {response.status_code} in {duration_ms:.0f}ms")
    return response


# ============================================================
# ERROR HANDLERS
# ============================================================

app.add_exception_handler(AppError, app_error_handler)


def _format_validation_errors(errors) -> str:
    parts = []
    for error in errors:
        loc = ".".join(str(p) for p in error.get("loc", ()) if p not in ("body", "query", "path"))
        parts.append(f"{loc}: {error.get('msg')}" if loc else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Request bodies and query strings that fail validation are 400s."""
    detail = _format_validation_errors(exc.errors())
    logger.warning(f"Validation error on {request.method} {request.url.path}: {detail}")
    return create_error_response(400, detail)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    """Unique constraint races that slipped past the service checks."""
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
    return create_error_response(409, "Resource already exists")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    return create_error_response(500, "Internal server error")


# Health check endpoint
@app.get("/health")
async def health_check():
    """Simple health check endpoint."""
    return {
        "status": "healthy",
        "service": "Web3 Job Board API",
        "version": "1.0.0",
    }


# Root endpoint
@app.get("/")
async def root():
    """API root with basic info."""
    return {
        "message": "Web3 Job Board API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


# Register API routers
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(oidc.router, prefix="/api", tags=["auth"])
app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
app.include_router(companies.router, prefix="/api/companies", tags=["companies"])
app.include_router(employer.router, prefix="/api/employer", tags=["employer"])
app.include_router(applications.router, prefix="/api/applications", tags=["applications"])
app.include_router(saved.router, prefix="/api", tags=["saved"])
app.include_router(talents.router, prefix="/api", tags=["talents"])
app.include_router(payments.router, prefix="/api", tags=["payments"])
app.include_router(uploads.router, prefix="/api/uploads", tags=["uploads"])
app.include_router(uploads.objects_router, tags=["uploads"])
app.include_router(admin.dashboard_router, prefix="/api/dashboard", tags=["dashboard"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
