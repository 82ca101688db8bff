"""Checkout and payment status for build downloads."""

from fastapi import APIRouter

from appify.dependencies import Gate, UserId
from appify.models.payment import (
    CheckoutRequest,
    CheckoutResponse,
    PaymentCheckRequest,
    PaymentCheckResponse,
)

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout(body: CheckoutRequest, gate: Gate, user_id: UserId) -> CheckoutResponse:
    return await gate.start_checkout(body, user_id)


@router.post("/check", response_model=PaymentCheckResponse)
async def check_payment(body: PaymentCheckRequest, gate: Gate) -> PaymentCheckResponse:
    return await gate.check_payment(body.build_id, body.session_id)
