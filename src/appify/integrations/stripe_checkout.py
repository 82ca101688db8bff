"""Stripe Checkout wrapper: create and read sessions, verify webhooks.

The Stripe SDK is synchronous; calls run in a worker thread.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field

import stripe

from appify.errors.exceptions import PaymentProcessorError, SignatureVerificationError

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    url: str | None = None
    payment_status: str | None = None
    payment_intent: str | None = None
    amount_total: int | None = None
    currency: str | None = None
    metadata: dict = field(default_factory=dict)


def _as_dict(obj) -> dict:
    if obj is None:
        return {}
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


def _to_session(session) -> CheckoutSession:
    payment_intent = getattr(session, "payment_intent", None)
    if payment_intent is not None and not isinstance(payment_intent, str):
        payment_intent = getattr(payment_intent, "id", None)
    return CheckoutSession(
        session_id=session.id,
        url=getattr(session, "url", None),
        payment_status=getattr(session, "payment_status", None),
        payment_intent=payment_intent,
        amount_total=getattr(session, "amount_total", None),
        currency=getattr(session, "currency", None),
        metadata=_as_dict(getattr(session, "metadata", None)),
    )


class StripeCheckout:
    def __init__(self, secret_key: str, webhook_secret: str = "", api_version: str | None = None) -> None:
        self._secret_key = secret_key
        self._webhook_secret = webhook_secret
        self._api_version = api_version

    @property
    def configured(self) -> bool:
        return bool(self._secret_key)

    def _require_key(self) -> None:
        if not self.configured:
            raise PaymentProcessorError("Stripe secret key not configured")

    async def create_session(
        self,
        *,
        build_id: str,
        app_name: str | None,
        user_id: str | None,
        amount: int,
        currency: str,
        description: str,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        self._require_key()
        params = {
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": currency,
                        "product_data": {
                            "name": f"App Download - {app_name or 'Mobile App'}",
                            "description": description,
                        },
                        "unit_amount": amount,
                    },
                    "quantity": 1,
                }
            ],
            "mode": "payment",
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": {
                "build_id": build_id,
                "user_id": user_id or "",
                "app_name": app_name or "",
            },
        }
        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.create,
                api_key=self._secret_key,
                stripe_version=self._api_version,
                **params,
            )
        except stripe.StripeError as exc:
            raise PaymentProcessorError(f"Stripe checkout creation failed: {exc}") from exc
        return _to_session(session)

    async def retrieve_session(self, session_id: str) -> CheckoutSession:
        self._require_key()
        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.retrieve,
                session_id,
                api_key=self._secret_key,
                stripe_version=self._api_version,
            )
        except stripe.StripeError as exc:
            raise PaymentProcessorError(f"Stripe session lookup failed: {exc}") from exc
        return _to_session(session)

    def parse_event(self, payload: bytes, signature: str | None) -> dict:
        """Verify (when a webhook secret is configured) and decode a webhook event.

        Raises:
            SignatureVerificationError: on a missing or invalid signature.
            ValueError: if the body is not JSON.
        """
        if self._webhook_secret:
            if not signature:
                raise SignatureVerificationError("Missing Stripe-Signature header")
            try:
                stripe.WebhookSignature.verify_header(
                    payload.decode("utf-8"),
                    signature,
                    self._webhook_secret,
                    stripe.Webhook.DEFAULT_TOLERANCE,
                )
            except stripe.SignatureVerificationError as exc:
                logger.warning("Stripe webhook signature verification failed: %s", exc)
                raise SignatureVerificationError() from exc
        else:
            logger.warning("Processing Stripe webhook without signature verification")
        return json.loads(payload)
