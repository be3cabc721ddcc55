"""Generated digests delivered to users."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import JSON, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from vortex.models.base import Base


class DigestHistory(Base):
    """A digest generated for one user in one delivery cycle.

    Rows are written once; only read_at changes afterwards.
    """

    __tablename__ = "digest_history"
    __table_args__ = (Index("ix_digest_history_user_sent", "user_id", "sent_at"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id: Mapped[str] = mapped_column(String(128), index=True)
    title: Mapped[str] = mapped_column(String(255))
    content: Mapped[str] = mapped_column(Text)
    topics: Mapped[list[str]] = mapped_column(JSON, default=list)
    language: Mapped[str] = mapped_column(String(5), default="id")
    sources: Mapped[list[dict]] = mapped_column(JSON, default=list)
    sent_at: Mapped[datetime] = mapped_column(index=True)
    read_at: Mapped[datetime | None] = mapped_column(default=None)
    notification_id: Mapped[str | None] = mapped_column(String(64), default=None)

    def __repr__(self) -> str:
        return f"<DigestHistory {self.id} user={self.user_id}>"
