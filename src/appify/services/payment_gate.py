"""Payment gate: Stripe checkout per build and the ``is_paid`` check.

A build counts as paid while at least one completed payment row exists for
it. A database index allows at most one completed row per build; a second
completion for the same build is logged and dropped.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from appify.config import settings
from appify.db.base import new_id
from appify.db.models.build import BuildRow
from appify.db.models.payment import PaymentRow
from appify.errors.exceptions import NotFoundError, PaymentRequiredError, ValidationError
from appify.integrations.stripe_checkout import CHECKOUT_COMPLETED, StripeCheckout
from appify.models.enums import ArtifactKind, PaymentStatus, Platform
from appify.models.payment import (
    CheckoutRequest,
    CheckoutResponse,
    PaymentCheckResponse,
    PaymentSummary,
)
from appify.repositories.payment_repo import PaymentRepository, StripeEventRepository

logger = logging.getLogger(__name__)

SESSION_ID_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


def _summary(row: PaymentRow) -> PaymentSummary:
    return PaymentSummary(amount=row.amount, currency=row.currency, paid_at=row.updated_at)


def artifact_url(row: BuildRow, kind: ArtifactKind) -> str | None:
    """The stored link for one artifact kind of a build, if it has one."""
    if kind == ArtifactKind.AAB:
        return row.aab_download_url
    if kind == ArtifactKind.APK and row.platform != Platform.ANDROID.value:
        return None
    if kind == ArtifactKind.IPA and row.platform != Platform.IOS.value:
        return None
    return row.download_url


class PaymentGate:
    def __init__(self, session: AsyncSession, checkout: StripeCheckout) -> None:
        self.session = session
        self.checkout = checkout
        self.payments = PaymentRepository(session)
        self.events = StripeEventRepository(session)

    async def is_paid(self, build_id: str) -> bool:
        return await self.payments.get_completed_for_build(build_id) is not None

    def _redirect_urls(self, request: CheckoutRequest) -> tuple[str, str]:
        site = settings.public_site_url.rstrip("/")
        if request.success_url:
            separator = "&" if "?" in request.success_url else "?"
            success_url = f"{request.success_url}{separator}session_id={SESSION_ID_PLACEHOLDER}"
        else:
            success_url = (
                f"{site}/builder?payment=success&build_id={request.build_id}"
                f"&session_id={SESSION_ID_PLACEHOLDER}"
            )
        cancel_url = request.cancel_url or f"{site}/builder?payment=cancelled"
        return success_url, cancel_url

    async def start_checkout(self, request: CheckoutRequest, user_id: str | None) -> CheckoutResponse:
        """Open a checkout session for a build, unless it is already paid."""
        if await self.is_paid(request.build_id):
            return CheckoutResponse(already_paid=True)

        success_url, cancel_url = self._redirect_urls(request)
        session = await self.checkout.create_session(
            build_id=request.build_id,
            app_name=request.app_name,
            user_id=user_id,
            amount=settings.download_price_minor,
            currency=settings.download_currency,
            description=settings.download_product_description,
            success_url=success_url,
            cancel_url=cancel_url,
        )

        try:
            await self.payments.create(
                payment_id=new_id("pay_"),
                user_id=user_id,
                build_id=request.build_id,
                stripe_session_id=session.session_id,
                amount=settings.download_price_minor,
                currency=settings.download_currency,
                status=PaymentStatus.PENDING.value,
            )
            await self.session.commit()
        except SQLAlchemyError as exc:
            # The session is live at Stripe; completion will still record it
            await self.session.rollback()
            logger.error("Failed to record pending payment for build %s: %s", request.build_id, exc)

        logger.info("Checkout session %s created for build %s", session.session_id, request.build_id)
        return CheckoutResponse(url=session.url, session_id=session.session_id)

    async def complete_checkout(
        self,
        *,
        session_id: str,
        build_id: str,
        user_id: str | None = None,
        payment_intent: str | None = None,
        amount: int | None = None,
        currency: str | None = None,
    ) -> PaymentRow | None:
        """Record a paid checkout session and commit.

        Updates the row created at checkout when there is one, otherwise
        inserts a completed row. Returns the completed row for the build, or
        None when the session was recorded for a different build.
        """
        existing_completed = await self.payments.get_completed_for_build(build_id)
        if existing_completed is not None:
            if existing_completed.stripe_session_id != session_id:
                logger.warning(
                    "Build %s already has a completed payment; ignoring session %s",
                    build_id,
                    session_id,
                )
            return existing_completed

        row = await self.payments.get_by_session(session_id)
        if row is not None and row.build_id != build_id:
            logger.warning(
                "Session %s belongs to build %s, not %s; not completing",
                session_id,
                row.build_id,
                build_id,
            )
            return None
        try:
            if row is not None:
                await self.payments.update(
                    row,
                    status=PaymentStatus.COMPLETED.value,
                    stripe_payment_intent_id=payment_intent,
                )
            else:
                row = await self.payments.create(
                    payment_id=new_id("pay_"),
                    user_id=user_id or None,
                    build_id=build_id,
                    stripe_session_id=session_id,
                    stripe_payment_intent_id=payment_intent,
                    amount=amount if amount is not None else settings.download_price_minor,
                    currency=currency or settings.download_currency,
                    status=PaymentStatus.COMPLETED.value,
                )
            await self.session.commit()
        except IntegrityError as exc:
            # A concurrent completion for this build won
            await self.session.rollback()
            logger.warning("Duplicate completed payment for build %s dropped: %s", build_id, exc.orig)
            return await self.payments.get_completed_for_build(build_id)

        logger.info("Payment completed for build %s (session %s)", build_id, session_id)
        return row

    async def check_payment(self, build_id: str, session_id: str | None = None) -> PaymentCheckResponse:
        """Report whether a build is paid, reconciling a returned checkout session."""
        completed = await self.payments.get_completed_for_build(build_id)
        if completed is not None:
            return PaymentCheckResponse(paid=True, payment=_summary(completed))

        if session_id:
            session = await self.checkout.retrieve_session(session_id)
            session_build = session.metadata.get("build_id")
            if session_build != build_id:
                logger.warning(
                    "Session %s was opened for build %s, not %s",
                    session_id,
                    session_build,
                    build_id,
                )
            elif session.payment_status == "paid":
                row = await self.complete_checkout(
                    session_id=session.session_id,
                    build_id=build_id,
                    user_id=session.metadata.get("user_id"),
                    payment_intent=session.payment_intent,
                    amount=session.amount_total,
                    currency=session.currency,
                )
                if row is not None:
                    return PaymentCheckResponse(paid=True, payment=_summary(row))

        return PaymentCheckResponse(paid=False)

    async def handle_event(self, event: dict) -> bool:
        """Apply one verified Stripe event. Returns False for a replayed event.

        Raises:
            ValidationError: if a completed checkout carries no build id.
        """
        event_id = event.get("id")
        event_type = event.get("type", "")
        if event_id and await self.events.get(event_id):
            logger.info("Stripe event %s already processed", event_id)
            return False

        logger.info("Stripe event received: %s", event_type)
        if event_type == CHECKOUT_COMPLETED:
            obj = event.get("data", {}).get("object", {})
            metadata = obj.get("metadata") or {}
            build_id = metadata.get("build_id")
            if not build_id:
                raise ValidationError("No build_id in checkout session metadata")
            await self.complete_checkout(
                session_id=obj.get("id", ""),
                build_id=build_id,
                user_id=metadata.get("user_id"),
                payment_intent=obj.get("payment_intent"),
                amount=obj.get("amount_total"),
                currency=obj.get("currency"),
            )

        if event_id:
            try:
                await self.events.create(event_id=event_id, event_type=event_type)
                await self.session.commit()
            except IntegrityError:
                await self.session.rollback()
        return True

    async def download_url(self, build: BuildRow, kind: ArtifactKind) -> str:
        """Resolve the artifact link for a paid build.

        Raises:
            PaymentRequiredError: if the build is not paid.
            NotFoundError: if the build has no artifact of this kind.
        """
        if not await self.is_paid(build.build_id):
            raise PaymentRequiredError(build.build_id)
        url = artifact_url(build, kind)
        if not url:
            raise NotFoundError("Artifact", f"{build.build_id}/{kind}")
        return url
