"""Payment and processed-event repositories."""

from appify.db.models.payment import PaymentRow, StripeEventRow
from appify.models.enums import PaymentStatus
from appify.repositories.base import BaseRepository


class PaymentRepository(BaseRepository[PaymentRow]):
    model_class = PaymentRow

    async def get_by_session(self, session_id: str) -> PaymentRow | None:
        return await self.first_where(
            PaymentRow.stripe_session_id == session_id,
            order_by=PaymentRow.created_at,
        )

    async def get_completed_for_build(self, build_id: str) -> PaymentRow | None:
        return await self.first_where(
            PaymentRow.build_id == build_id,
            PaymentRow.status == PaymentStatus.COMPLETED.value,
        )

    async def list_by_build(self, build_id: str) -> list[PaymentRow]:
        return await self.list_where(PaymentRow.build_id == build_id, order_by=PaymentRow.created_at)


class StripeEventRepository(BaseRepository[StripeEventRow]):
    model_class = StripeEventRow

    async def get(self, event_id: str) -> StripeEventRow | None:
        return await self.get_by(event_id=event_id)
