"""FastAPI dependency injection providers."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from appify.config import settings
from appify.errors.exceptions import AuthenticationError
from appify.integrations.codemagic import CodemagicClient
from appify.integrations.github import GitHubContentsClient
from appify.integrations.resend import ResendClient
from appify.integrations.stripe_checkout import StripeCheckout
from appify.services.dispatcher import BuildDispatcher
from appify.services.notifier import BuildNotifier
from appify.services.payment_gate import PaymentGate
from appify.services.pipeline import BuildPipeline
from appify.services.publisher import ArtifactPublisher
from appify.services.status_sync import StatusSynchronizer


async def get_db(request: Request) -> AsyncGenerator:
    """Yield a database session from the app's session factory."""
    session_factory = request.app.state.db_session_factory
    async with session_factory() as session:
        yield session


def get_trace_id(request: Request) -> str:
    """Extract trace_id from request state (set by middleware)."""
    return getattr(request.state, "trace_id", "unknown")


def get_user_id(request: Request) -> str | None:
    """Return the caller's user id, or None for anonymous callers."""
    user = getattr(request.state, "user", {}) or {}
    sub = user.get("sub")
    if not sub or sub == "anonymous" or "_auth_error" in user:
        return None
    return sub


async def get_current_user(request: Request) -> dict:
    """Return the authenticated user dict or raise 401."""
    user = getattr(request.state, "user", {})
    if "_auth_error" in (user or {}):
        raise AuthenticationError(user["_auth_error"])
    if not user or user.get("sub") in ("anonymous", ""):
        raise AuthenticationError("Authentication required")
    return user


def get_github(request: Request) -> GitHubContentsClient:
    return request.app.state.github


def get_codemagic(request: Request) -> CodemagicClient:
    return request.app.state.codemagic


def get_email(request: Request) -> ResendClient:
    return request.app.state.email


def get_checkout(request: Request) -> StripeCheckout:
    return request.app.state.checkout


def get_publisher(github: GitHubContentsClient = Depends(get_github)) -> ArtifactPublisher:
    return ArtifactPublisher(github)


def get_pipeline(
    db: AsyncSession = Depends(get_db),
    publisher: ArtifactPublisher = Depends(get_publisher),
    codemagic: CodemagicClient = Depends(get_codemagic),
) -> BuildPipeline:
    return BuildPipeline(db, publisher, BuildDispatcher(db, codemagic, branch=settings.github_branch))


def get_synchronizer(
    db: AsyncSession = Depends(get_db),
    codemagic: CodemagicClient = Depends(get_codemagic),
    email: ResendClient = Depends(get_email),
) -> StatusSynchronizer:
    notifier = BuildNotifier(db, email, settings.public_site_url)
    return StatusSynchronizer(db, codemagic, notifier)


def get_payment_gate(
    db: AsyncSession = Depends(get_db),
    checkout: StripeCheckout = Depends(get_checkout),
) -> PaymentGate:
    return PaymentGate(db, checkout)


# Type aliases for dependency injection
DBSession = Annotated[AsyncSession, Depends(get_db)]
TraceId = Annotated[str, Depends(get_trace_id)]
UserId = Annotated[str | None, Depends(get_user_id)]
CurrentUser = Annotated[dict, Depends(get_current_user)]
Publisher = Annotated[ArtifactPublisher, Depends(get_publisher)]
Pipeline = Annotated[BuildPipeline, Depends(get_pipeline)]
Synchronizer = Annotated[StatusSynchronizer, Depends(get_synchronizer)]
Gate = Annotated[PaymentGate, Depends(get_payment_gate)]
Checkout = Annotated[StripeCheckout, Depends(get_checkout)]
