"""User profile table, owned by the identity provider's sign-up flow."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from appify.db.base import Base, TimestampMixin


class ProfileRow(Base, TimestampMixin):
    __tablename__ = "profiles"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    full_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
