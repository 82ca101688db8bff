"""Inbound vendor webhooks: CI build status and payment events."""

import hmac
import json
import logging

from fastapi import APIRouter, Request

from appify.config import settings
from appify.dependencies import Checkout, Gate, Synchronizer
from appify.errors.exceptions import AuthenticationError, ValidationError
from appify.logging_config import bind_build_context
from appify.models.build import CodemagicWebhookPayload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Webhooks"])


def _verify_codemagic_token(request: Request) -> None:
    """Check the shared webhook token when one is configured."""
    expected = settings.codemagic_webhook_token
    if not expected:
        return
    supplied = request.headers.get("x-codemagic-token") or request.query_params.get("token") or ""
    if not hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8")):
        raise AuthenticationError("Invalid webhook token")


@router.post("/webhooks/codemagic")
async def codemagic_webhook(payload: CodemagicWebhookPayload, request: Request, sync: Synchronizer) -> dict:
    """Record a build-status callback from the CI service."""
    _verify_codemagic_token(request)
    bind_build_context(payload.build_id)
    outcome = await sync.handle_webhook(payload)
    return {"success": True, "build_id": payload.build_id, "status": outcome.status}


@router.post("/webhooks/stripe")
async def stripe_webhook(request: Request, checkout: Checkout, gate: Gate) -> dict:
    """Apply a payment-processor event; signature is verified when a secret is configured."""
    body = await request.body()
    try:
        event = checkout.parse_event(body, request.headers.get("stripe-signature"))
    except json.JSONDecodeError as exc:
        raise ValidationError("Webhook body is not valid JSON") from exc

    applied = await gate.handle_event(event)
    return {"received": True, "duplicate": not applied}
