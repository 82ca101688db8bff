"""FastAPI application factory and lifespan management."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from appify import __version__
from appify.config import settings
from appify.db.engine import create_db_engine, create_session_factory
from appify.integrations.codemagic import CodemagicClient
from appify.integrations.github import GitHubContentsClient
from appify.integrations.resend import ResendClient
from appify.integrations.stripe_checkout import StripeCheckout
from appify.logging_config import configure_logging

# Configure logging at import time
_json_logs = os.environ.get("APPIFY_LOCAL", "0") != "1"
configure_logging(log_level=settings.log_level, json_output=_json_logs)

logger = logging.getLogger(__name__)


def create_vendor_clients(app: FastAPI) -> None:
    """Attach the outbound vendor clients to app state."""
    timeout = settings.vendor_timeout_seconds
    app.state.github = GitHubContentsClient(
        settings.github_token,
        settings.github_repo_owner,
        settings.github_repo_name,
        branch=settings.github_branch,
        api_base=settings.github_api_base,
        timeout=timeout,
    )
    app.state.codemagic = CodemagicClient(
        settings.codemagic_api_token,
        settings.codemagic_app_id,
        api_base=settings.codemagic_api_base,
        timeout=timeout,
    )
    app.state.email = ResendClient(
        settings.resend_api_key,
        settings.email_from,
        api_base=settings.resend_api_base,
        timeout=timeout,
    )
    app.state.checkout = StripeCheckout(
        settings.stripe_secret_key,
        webhook_secret=settings.stripe_webhook_secret,
        api_version=settings.stripe_api_version,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown resources."""
    db_url = settings.effective_database_url
    engine = create_db_engine(db_url)

    # Auto-create tables for SQLite (local dev, no Alembic migrations)
    if "sqlite" in db_url:
        from appify.db.base import Base
        import appify.db.models  # noqa: F401 - register all ORM models

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("SQLite tables created (local mode)")

    app.state.db_engine = engine
    app.state.db_session_factory = create_session_factory(engine)
    create_vendor_clients(app)

    if not app.state.github.configured:
        logger.warning("GitHub credentials not configured; build submissions will fail to publish")
    if not app.state.codemagic.configured:
        logger.warning("Codemagic token not configured; builds will be queued without a CI job")

    logger.info("Appify API started (db=%s)", "sqlite" if "sqlite" in db_url else "postgresql")
    yield

    await engine.dispose()
    logger.info("Appify API shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Appify API",
        version=__version__,
        description="Turns a website into Android and iOS apps: generates sources, runs CI builds, gates downloads on payment.",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add middleware (order matters: last added = first executed)
    from appify.api.middleware.auth import AuthMiddleware
    from appify.api.middleware.trace_id import TraceIdMiddleware
    app.add_middleware(AuthMiddleware)
    app.add_middleware(TraceIdMiddleware)

    from appify.errors.handlers import register_exception_handlers
    register_exception_handlers(app)

    from appify.api.router import api_router
    app.include_router(api_router)

    return app


app = create_app()
