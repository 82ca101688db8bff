"""Build repository."""

from appify.db.models.build import BuildRow
from appify.repositories.base import BaseRepository


class BuildRepository(BaseRepository[BuildRow]):
    model_class = BuildRow

    async def get(self, build_id: str) -> BuildRow | None:
        return await self.get_by(build_id=build_id)

    async def list_by_user(self, user_id: str, limit: int = 100) -> list[BuildRow]:
        return await self.list_where(
            BuildRow.user_id == user_id,
            order_by=BuildRow.created_at.desc(),
            limit=limit,
        )

    async def list_by_idempotency_key(self, key: str) -> list[BuildRow]:
        return await self.list_where(BuildRow.idempotency_key == key, order_by=BuildRow.created_at)
