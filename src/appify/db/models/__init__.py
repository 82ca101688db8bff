"""SQLAlchemy ORM models - import all to register with Base.metadata."""

from appify.db.models.build import BuildRow
from appify.db.models.payment import PaymentRow, StripeEventRow
from appify.db.models.profile import ProfileRow

__all__ = [
    "BuildRow",
    "PaymentRow",
    "StripeEventRow",
    "ProfileRow",
]
