"""SQLAlchemy-backed digest store."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from vortex.core.exceptions import PersistenceError
from vortex.core.logging import get_logger
from vortex.models.digest_history import DigestHistory
from vortex.models.digest_settings import DigestSettings
from vortex.schemas.digest import DigestHistoryRecord, DigestSettingsRecord

from .base import BaseDigestStore

logger = get_logger(__name__)

# Settings columns written on upsert (timestamps are managed by the database)
_SETTINGS_FIELDS = (
    "enabled",
    "schedule_time",
    "timezone",
    "topics",
    "custom_prompt",
    "language",
    "push_token",
    "utc_hour",
    "utc_minute",
)


def _settings_record(row: DigestSettings) -> DigestSettingsRecord:
    return DigestSettingsRecord(
        **{name: getattr(row, name) for name in DigestSettingsRecord.model_fields}
    )


def _history_record(row: DigestHistory) -> DigestHistoryRecord:
    return DigestHistoryRecord(
        **{name: getattr(row, name) for name in DigestHistoryRecord.model_fields}
    )


class SqlDigestStore(BaseDigestStore):
    """Digest store on the application database.

    Each operation runs in its own session and commits before returning.
    SQLAlchemy errors are re-raised as PersistenceError.
    """

    backend_name = "database"

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: AsyncEngine | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._engine = engine

    async def close(self) -> None:
        """Dispose the engine's connection pool, if this store owns one."""
        if self._engine is not None:
            await self._engine.dispose()
            logger.debug("digest_store_closed")

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                await session.rollback()
                logger.bind(operation=operation, error=str(e)).error("digest_store_error")
                raise PersistenceError(f"{operation} failed: {e}") from e

    async def get_settings(self, user_id: str) -> DigestSettingsRecord | None:
        async with self._session("get_settings") as db:
            row = await db.scalar(select(DigestSettings).where(DigestSettings.user_id == user_id))
            return _settings_record(row) if row else None

    async def upsert_settings(self, settings: DigestSettingsRecord) -> DigestSettingsRecord:
        values: dict[str, Any] = settings.model_dump(include=set(_SETTINGS_FIELDS))

        async with self._session("upsert_settings") as db:
            row = await db.scalar(
                select(DigestSettings).where(DigestSettings.user_id == settings.user_id)
            )
            if row is None:
                row = DigestSettings(user_id=settings.user_id, **values)
                db.add(row)
            else:
                for name, value in values.items():
                    setattr(row, name, value)

            await db.commit()
            await db.refresh(row)
            return _settings_record(row)

    async def find_due_settings(self, utc_hour: int) -> list[DigestSettingsRecord]:
        async with self._session("find_due_settings") as db:
            result = await db.scalars(
                select(DigestSettings)
                .where(
                    DigestSettings.enabled == True,  # noqa: E712
                    DigestSettings.push_token.is_not(None),
                    DigestSettings.push_token != "",
                    DigestSettings.utc_hour == utc_hour,
                )
                .order_by(DigestSettings.user_id)
            )
            return [_settings_record(row) for row in result.all()]

    async def save_history(self, history: DigestHistoryRecord) -> DigestHistoryRecord:
        values = history.model_dump(exclude={"id"})

        async with self._session("save_history") as db:
            row = DigestHistory(**values)
            db.add(row)
            await db.commit()
            await db.refresh(row)
            return _history_record(row)

    async def list_history(
        self, user_id: str, limit: int = 20, offset: int = 0
    ) -> list[DigestHistoryRecord]:
        async with self._session("list_history") as db:
            result = await db.scalars(
                select(DigestHistory)
                .where(DigestHistory.user_id == user_id)
                .order_by(DigestHistory.sent_at.desc())
                .offset(offset)
                .limit(limit)
            )
            return [_history_record(row) for row in result.all()]

    async def count_history(self, user_id: str) -> int:
        async with self._session("count_history") as db:
            total = await db.scalar(
                select(func.count(DigestHistory.id)).where(DigestHistory.user_id == user_id)
            )
            return total or 0

    async def get_history(self, user_id: str, digest_id: str) -> DigestHistoryRecord | None:
        async with self._session("get_history") as db:
            row = await db.scalar(
                select(DigestHistory).where(
                    DigestHistory.id == digest_id,
                    DigestHistory.user_id == user_id,
                )
            )
            return _history_record(row) if row else None

    async def mark_history_read(
        self, user_id: str, digest_id: str, read_at: datetime
    ) -> DigestHistoryRecord | None:
        async with self._session("mark_history_read") as db:
            row = await db.scalar(
                select(DigestHistory).where(
                    DigestHistory.id == digest_id,
                    DigestHistory.user_id == user_id,
                )
            )
            if row is None:
                return None

            if row.read_at is None:
                row.read_at = read_at
                await db.commit()
                await db.refresh(row)

            return _history_record(row)

    async def last_sent_at(self, user_id: str) -> datetime | None:
        async with self._session("last_sent_at") as db:
            return await db.scalar(
                select(func.max(DigestHistory.sent_at)).where(DigestHistory.user_id == user_id)
            )
