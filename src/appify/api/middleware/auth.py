"""JWT Bearer authentication middleware.

Tokens are issued by the external identity provider; this service only
verifies them. Requests without a token continue as anonymous and
individual routes decide whether that is allowed.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from appify.config import settings
from appify.logging_config import bind_request_context

logger = logging.getLogger(__name__)

ANONYMOUS = {"sub": "anonymous", "email": ""}


def _decode_jwt(token: str) -> dict:
    from jose import JWTError, jwt

    options = {"verify_aud": bool(settings.jwt_audience)}
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience or None,
            options=options,
        )
    except JWTError as exc:
        logger.debug("JWT decode failed: %s", exc)
        raise ValueError(f"Invalid token: {exc}") from exc


class AuthMiddleware(BaseHTTPMiddleware):
    """Validate a Bearer token and attach user info to request.state."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        auth_header = request.headers.get("authorization", "")

        if auth_header.startswith("Bearer "):
            try:
                payload = _decode_jwt(auth_header[7:])
            except ValueError:
                request.state.user = {**ANONYMOUS, "_auth_error": "invalid_token"}
            else:
                bind_request_context(getattr(request.state, "trace_id", "unknown"), user_id=payload.get("sub"))
                request.state.user = {
                    "sub": payload.get("sub", ""),
                    "email": payload.get("email", ""),
                }
        else:
            request.state.user = dict(ANONYMOUS)

        return await call_next(request)
