"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures exception handlers, and lifespan events.

Startup is strict: missing settings (database URL, signing secret) or an
unreachable database abort the lifespan, so the process never serves
traffic with a degraded configuration.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresCredentialStore, run_migrations
from src.adapters.security.jwt import JwtTokenIssuer
from src.adapters.smtp.console import ConsoleNotifier
from src.adapters.smtp.smtp import SmtpNotifier
from src.api.errors import register_exception_handlers
from src.api.v1 import router as v1_router
from src.config.settings import Settings, get_settings
from src.domain.administration import AdministrationService
from src.domain.credentials import PasswordHasher
from src.domain.ports import Notifier

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "auth",
        "description": "Registration, email verification, login and password reset",
    },
    {
        "name": "admin",
        "description": "Customer admission and administrative accounts (bearer token required)",
    },
]


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger().setLevel(level)


def build_notifier(settings: Settings) -> Notifier:
    if settings.notifier_backend == "smtp":
        return SmtpNotifier(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password.get_secret_value(),
            sender=settings.mail_from,
            encryption=settings.smtp_encryption,
            timeout=settings.smtp_timeout_seconds,
        )
    return ConsoleNotifier()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Loads settings and builds the token issuer, notifier and hasher
    - Creates database connection pool on startup
    - Runs migrations and provisions the root superadmin
    - Closes connection pool on shutdown
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    logger.info("Starting application...")
    token_issuer = JwtTokenIssuer(
        secret=settings.jwt_secret.get_secret_value(),
        algorithm=settings.jwt_algorithm,
        ttl_seconds=settings.token_ttl_seconds,
    )
    password_hasher = PasswordHasher(rounds=settings.bcrypt_cost)

    logger.info("Connecting to database...")
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        open=True,
    )

    logger.info("Running database migrations...")
    run_migrations(pool)

    # Store process-wide resources in app state for dependency injection
    app.state.settings = settings
    app.state.pool = pool
    app.state.token_issuer = token_issuer
    app.state.notifier = build_notifier(settings)
    app.state.password_hasher = password_hasher

    AdministrationService(
        store=PostgresCredentialStore(pool), password_hasher=password_hasher
    ).bootstrap_root(
        settings.root_admin_name,
        settings.root_admin_email,
        settings.root_admin_password.get_secret_value(),
    )

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="crm-identity",
    description="Identity, credential and admission control for the CRM",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

register_exception_handlers(app)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    A database failure is reported by the store error handler.
    """
    pool = request.app.state.pool
    with pool.connection() as conn:
        conn.execute("SELECT 1")

    return {"status": "healthy"}
