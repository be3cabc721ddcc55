"""Per-user digest schedule and content preferences."""

import uuid

from sqlalchemy import JSON, Boolean, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from vortex.models.base import Base, TimestampMixin


class DigestSettings(Base, TimestampMixin):
    """Digest configuration for one user (registered or guest).

    utc_hour/utc_minute cache the absolute trigger time derived from
    schedule_time and timezone, so the hourly selection is a plain
    equality filter.
    """

    __tablename__ = "digest_settings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    schedule_time: Mapped[str] = mapped_column(String(5), default="08:00")
    timezone: Mapped[str] = mapped_column(String(64), default="Asia/Jakarta")
    topics: Mapped[list[str]] = mapped_column(JSON, default=list)
    custom_prompt: Mapped[str | None] = mapped_column(Text, default=None)
    language: Mapped[str] = mapped_column(String(5), default="id")
    push_token: Mapped[str | None] = mapped_column(String(255), default=None)
    utc_hour: Mapped[int] = mapped_column(Integer, index=True, default=1)
    utc_minute: Mapped[int] = mapped_column(Integer, default=0)

    def __repr__(self) -> str:
        return f"<DigestSettings {self.user_id} {self.schedule_time} {self.timezone}>"
