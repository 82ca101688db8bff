"""Shared test fixtures."""

import base64
import json
from urllib.parse import unquote

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from appify.config import settings
from appify.db.base import Base
# Import all models to register with Base.metadata
import appify.db.models  # noqa: F401
from appify.errors.exceptions import PaymentProcessorError, SignatureVerificationError
from appify.integrations.codemagic import CodemagicClient
from appify.integrations.github import GitHubContentsClient
from appify.integrations.resend import ResendClient
from appify.integrations.stripe_checkout import CheckoutSession


# ---------------------------------------------------------------------------
# Vendor fakes
# ---------------------------------------------------------------------------


class FakeGitHub:
    """In-memory contents API behind an httpx.MockTransport."""

    def __init__(self):
        self.files: dict[str, tuple[str, str]] = {}
        self.requests: list[tuple[str, str, dict | None]] = []
        self.fail_paths: set[str] = set()
        self._revision = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = unquote(request.url.path.split("/contents/", 1)[1])
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, path, body))

        if request.method == "GET":
            if path in self.files:
                sha, content = self.files[path]
                return httpx.Response(200, json={"path": path, "sha": sha, "content": content})
            return httpx.Response(404, json={"message": "Not Found"})

        if path in self.fail_paths:
            return httpx.Response(500, json={"message": "Server Error"})
        existing = self.files.get(path)
        if existing and body.get("sha") != existing[0]:
            return httpx.Response(409, json={"message": f"{path} does not match"})
        if not existing and body.get("sha"):
            return httpx.Response(422, json={"message": "sha supplied for a new file"})
        self._revision += 1
        sha = f"sha{self._revision:04d}"
        self.files[path] = (sha, body["content"])
        return httpx.Response(200 if existing else 201, json={"content": {"path": path, "sha": sha}})

    def client(self, token: str = "ghp_test") -> GitHubContentsClient:
        return GitHubContentsClient(token, "acme", "app-template", transport=httpx.MockTransport(self.handler))

    def text(self, path: str) -> str:
        return base64.b64decode(self.files[path][1]).decode("utf-8")

    def puts(self) -> list[str]:
        return [path for method, path, _ in self.requests if method == "PUT"]


class FakeCodemagic:
    """Build API fake: starts numbered builds and serves stored snapshots."""

    def __init__(self):
        self.started: list[dict] = []
        self.fail_workflows: set[str] = set()
        self.builds: dict[str, dict] = {}
        self.status_requests: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST" and request.url.path == "/builds":
            body = json.loads(request.content)
            if body["workflowId"] in self.fail_workflows:
                return httpx.Response(503, json={"error": "unavailable"})
            self.started.append(body)
            return httpx.Response(200, json={"buildId": f"cm-{body['workflowId']}-{len(self.started)}"})

        build_id = request.url.path.rsplit("/", 1)[1]
        self.status_requests.append(build_id)
        if build_id in self.builds:
            return httpx.Response(200, json={"build": self.builds[build_id]})
        return httpx.Response(404, json={"error": "not found"})

    def client(self, token: str = "cm-token") -> CodemagicClient:
        return CodemagicClient(token, "app-123", transport=httpx.MockTransport(self.handler))


class FakeResend:
    def __init__(self):
        self.sent: list[dict] = []
        self.fail = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.fail:
            return httpx.Response(500, json={"message": "provider down"})
        body = json.loads(request.content)
        self.sent.append(body)
        return httpx.Response(200, json={"id": f"email_{len(self.sent)}"})

    def client(self) -> ResendClient:
        return ResendClient("re_test", "Appify <builds@appify.test>", transport=httpx.MockTransport(self.handler))


class FakeCheckout:
    """Stands in for StripeCheckout without network calls."""

    configured = True

    def __init__(self, webhook_secret: str = ""):
        self.webhook_secret = webhook_secret
        self.created: list[dict] = []
        self.sessions: dict[str, CheckoutSession] = {}
        self.fail = False

    async def create_session(self, **kwargs) -> CheckoutSession:
        if self.fail:
            raise PaymentProcessorError("Stripe checkout creation failed: card_declined")
        self.created.append(kwargs)
        session_id = f"cs_test_{len(self.created)}"
        session = CheckoutSession(
            session_id=session_id,
            url=f"https://checkout.stripe.test/{session_id}",
            payment_status="unpaid",
            amount_total=kwargs["amount"],
            currency=kwargs["currency"],
            metadata={"build_id": kwargs["build_id"], "user_id": kwargs["user_id"] or ""},
        )
        self.sessions[session_id] = session
        return session

    async def retrieve_session(self, session_id: str) -> CheckoutSession:
        if session_id not in self.sessions:
            raise PaymentProcessorError(f"Stripe session lookup failed: no such session {session_id}")
        return self.sessions[session_id]

    def mark_paid(self, session_id: str, payment_intent: str = "pi_test_1") -> None:
        session = self.sessions[session_id]
        self.sessions[session_id] = CheckoutSession(
            session_id=session.session_id,
            url=session.url,
            payment_status="paid",
            payment_intent=payment_intent,
            amount_total=session.amount_total,
            currency=session.currency,
            metadata=session.metadata,
        )

    def parse_event(self, payload: bytes, signature: str | None) -> dict:
        if self.webhook_secret and signature != f"t=1,v1={self.webhook_secret}":
            raise SignatureVerificationError()
        return json.loads(payload)


def make_token(user_id: str, email: str = "owner@example.com") -> str:
    claims = {"sub": user_id, "email": email, "aud": settings.jwt_audience}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def auth_headers(user_id: str = "user-1") -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


def checkout_completed_event(build_id: str | None, session_id: str, event_id: str = "evt_1", **extra) -> dict:
    metadata = {"user_id": "user-1"}
    if build_id:
        metadata["build_id"] = build_id
    return {
        "id": event_id,
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "payment_intent": extra.get("payment_intent", "pi_test_1"),
                "amount_total": extra.get("amount_total", 280000),
                "currency": extra.get("currency", "inr"),
                "metadata": metadata,
            }
        },
    }


# ---------------------------------------------------------------------------
# Database and app
# ---------------------------------------------------------------------------


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Create a test database session."""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def github():
    return FakeGitHub()


@pytest.fixture
def codemagic():
    return FakeCodemagic()


@pytest.fixture
def resend():
    return FakeResend()


@pytest.fixture
def checkout():
    return FakeCheckout()


@pytest.fixture
def wizard_payload() -> dict:
    """A BuildConfig as the builder UI sends it."""
    return {
        "websiteUrl": "https://shop.example.com",
        "appName": "Example Shop",
        "packageId": "com.example.shop",
        "appDescription": "Shop on the go",
        "splashConfig": {"backgroundColor": "#112233", "resizeMode": "cover"},
        "enableNavigation": True,
        "navigationType": "tabs",
        "navItems": [
            {"label": "Home", "url": "/", "icon": "home"},
            {"label": "Cart", "url": "/cart", "icon": "cart"},
            {"label": "Blog", "url": "https://blog.example.org", "icon": "book", "isExternal": True},
        ],
        "navBarStyle": {
            "backgroundColor": "#ffffff",
            "activeIconColor": "#007aff",
            "inactiveIconColor": "#8e8e93",
            "activeTextColor": "#007aff",
            "inactiveTextColor": "#8e8e93",
        },
        "platforms": ["android", "ios"],
    }


@pytest.fixture
def app(db_engine, github, codemagic, resend, checkout):
    """Create a test application instance with in-memory DB and fake vendors."""
    from appify.main import create_app

    _app = create_app()
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    _app.state.db_engine = db_engine
    _app.state.db_session_factory = session_factory
    _app.state.github = github.client()
    _app.state.codemagic = codemagic.client()
    _app.state.email = resend.client()
    _app.state.checkout = checkout
    return _app


@pytest.fixture
async def client(app):
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
