"""Profile repository (read-only to this service outside of tests)."""

from appify.db.models.profile import ProfileRow
from appify.repositories.base import BaseRepository


class ProfileRepository(BaseRepository[ProfileRow]):
    model_class = ProfileRow

    async def get(self, user_id: str) -> ProfileRow | None:
        return await self.get_by(user_id=user_id)
