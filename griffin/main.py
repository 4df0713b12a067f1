"""FastAPI application — main entry point."""

import structlog
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from griffin.config import get_settings
from griffin.infrastructure.database import engine, Base
from griffin.core.logging import configure_logging
from griffin.core.middleware import setup_middleware
from griffin.core.exceptions import register_exception_handlers

# Import all models so SQLAlchemy knows about them
from griffin.domain.models.user import User  # noqa: F401
from griffin.domain.models.review_job import ReviewJob  # noqa: F401
from griffin.domain.models.revoked_token import RevokedToken  # noqa: F401
from griffin.domain.models.password_reset_token import PasswordResetToken  # noqa: F401

# Import routers
from griffin.interfaces.api.auth import router as auth_router
from griffin.interfaces.api.reviews import router as reviews_router
from griffin.interfaces.api.ai import router as ai_router

settings = get_settings()

# Configure logging immediately
configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — startup and shutdown events."""
    logger.info("Starting Griffin Review API...", env=settings.ENVIRONMENT)

    # Create DB tables (use migrations in production)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    if settings.SCHEDULER_ENABLED:
        from griffin.scheduler.jobs import start_scheduler
        start_scheduler()

    yield

    if settings.SCHEDULER_ENABLED:
        from griffin.scheduler.jobs import stop_scheduler
        stop_scheduler()
    logger.info("Griffin Review API stopped")


app = FastAPI(
    title="Griffin — AI Code Review",
    description="API Backend — asynchronous code reviews with LLMs",
    version="1.0.0",
    lifespan=lifespan,
)

# Setup Middleware (Correlation ID, Logging)
setup_middleware(app)

# Error envelope for every failure
register_exception_handlers(app)

# CORS is added last so it wraps everything else
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router)
app.include_router(reviews_router)
app.include_router(ai_router)


@app.get("/")
def root():
    return {
        "name": "Griffin Review API",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
def health():
    return {"status": "healthy"}
