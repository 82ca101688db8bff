"""Pydantic models for checkout and payment checks."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _ClientModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class CheckoutRequest(_ClientModel):
    build_id: str = Field(..., min_length=1)
    app_name: str | None = None
    success_url: str | None = None
    cancel_url: str | None = None


class CheckoutResponse(BaseModel):
    url: str | None = None
    session_id: str | None = None
    already_paid: bool = False


class PaymentCheckRequest(_ClientModel):
    build_id: str = Field(..., min_length=1)
    session_id: str | None = None


class PaymentSummary(BaseModel):
    amount: int | None = None
    currency: str | None = None
    paid_at: datetime | None = None


class PaymentCheckResponse(BaseModel):
    paid: bool
    payment: PaymentSummary | None = None
