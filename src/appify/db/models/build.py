"""Build table: one row per platform per submission."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from appify.db.base import Base, TimestampMixin


class BuildRow(Base, TimestampMixin):
    __tablename__ = "builds"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    build_id: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    platform: Mapped[str] = mapped_column(String(20), nullable=False)
    app_name: Mapped[str] = mapped_column(String(200), nullable=False)
    package_id: Mapped[str | None] = mapped_column(String(200), nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="queued")
    download_url: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    aab_download_url: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    artifact_url: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    user_id: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    is_synthesized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    idempotency_key: Mapped[str | None] = mapped_column(String(200), nullable=True, index=True)
