"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
security headers, request logging), registers exception handlers and includes
all API routers. It serves as the root of the web server.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from commitlabs.core.logging_config import get_logger, setup_logging
from commitlabs.core.monitoring import initialize_logfire

from .api.v1 import (
    attestations,
    auth,
    commitments,
    health,
    marketplace,
    metrics,
)
from .core import constant
from .core.config import settings, validate_backend_config
from .core.database import init_db
from .exception_handlers import setup_exception_handlers
from .middleware import LogfireMiddleware, SecurityHeadersMiddleware
from .services.auth import get_nonce_store, get_session_store
from .services.background import Sweeper
from .services.deps import get_services
from .services.rate_limit import get_rate_limiter
from .services.seed import seed_mock_data

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Startup validates configuration, creates tables, seeds demo data and starts
    the expiry sweeper. Shutdown stops the sweeper.
    """
    logger.info(f"Starting up {constant.PROJECT_NAME} ({settings.environment.value})...")
    validate_backend_config(settings)

    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)
        raise

    if settings.seed_mock_data:
        await seed_mock_data(get_services().repos)

    sweeper = Sweeper(
        nonce_store=get_nonce_store(),
        session_store=get_session_store(),
        rate_limiter=get_rate_limiter(),
        interval_seconds=settings.auth.sweep_interval_seconds,
    )
    sweeper.start()

    yield

    logger.info(f"Shutting down {constant.PROJECT_NAME}...")
    await sweeper.stop()


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    CommitLabs Backend API

    Liquidity commitments on Stellar/Soroban: create and settle commitments, record
    attestations, trade commitments on the marketplace and sign in with a wallet.
    """,
    version=constant.API_VERSION,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

initialize_logfire(app)
setup_exception_handlers(app)

app.add_middleware(SecurityHeadersMiddleware, enable_hsts=settings.is_production)
app.add_middleware(LogfireMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=settings.cors.allow_methods,
    allow_headers=settings.cors.allow_headers,
)


app.include_router(health.router, tags=["health"])
app.include_router(health.chain_router, prefix=f"{constant.API_V1_STR}/health", tags=["health"])
app.include_router(metrics.router, prefix=f"{constant.API_V1_STR}/metrics", tags=["metrics"])
app.include_router(auth.router, prefix=f"{constant.API_V1_STR}/auth", tags=["auth"])
app.include_router(commitments.router, prefix=f"{constant.API_V1_STR}/commitments", tags=["commitments"])
app.include_router(attestations.router, prefix=f"{constant.API_V1_STR}/attestations", tags=["attestations"])
app.include_router(
    marketplace.router, prefix=f"{constant.API_V1_STR}/marketplace/listings", tags=["marketplace"]
)
