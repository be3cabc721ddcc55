"""Abstract base class for digest storage backends."""

from abc import ABC, abstractmethod
from datetime import datetime

from vortex.schemas.digest import DigestHistoryRecord, DigestSettingsRecord


class BaseDigestStore(ABC):
    """Persistence for digest settings and digest history.

    Implementations are interchangeable and selected once at process start
    (see get_digest_store).
    """

    backend_name: str = "unknown"

    # --- Settings ---

    @abstractmethod
    async def get_settings(self, user_id: str) -> DigestSettingsRecord | None:
        """Get a user's settings, or None if none were saved."""

    @abstractmethod
    async def upsert_settings(self, settings: DigestSettingsRecord) -> DigestSettingsRecord:
        """
        Insert or replace the settings for settings.user_id.

        Args:
            settings: Complete settings record, derived UTC fields included

        Returns:
            The stored record
        """

    @abstractmethod
    async def find_due_settings(self, utc_hour: int) -> list[DigestSettingsRecord]:
        """
        Find settings whose trigger falls in the given UTC hour.

        Only enabled users with a non-empty push token are returned.
        """

    # --- History ---

    @abstractmethod
    async def save_history(self, history: DigestHistoryRecord) -> DigestHistoryRecord:
        """Persist a new digest and return it with its assigned id."""

    @abstractmethod
    async def list_history(
        self, user_id: str, limit: int = 20, offset: int = 0
    ) -> list[DigestHistoryRecord]:
        """List a user's digests, newest first."""

    @abstractmethod
    async def count_history(self, user_id: str) -> int:
        """Count a user's digests."""

    @abstractmethod
    async def get_history(self, user_id: str, digest_id: str) -> DigestHistoryRecord | None:
        """Get one of a user's digests by id."""

    @abstractmethod
    async def mark_history_read(
        self, user_id: str, digest_id: str, read_at: datetime
    ) -> DigestHistoryRecord | None:
        """
        Set read_at on a digest if it is still unread.

        An already-read digest keeps its original read_at.

        Returns:
            The digest after the update, or None if it does not exist
        """

    @abstractmethod
    async def last_sent_at(self, user_id: str) -> datetime | None:
        """Most recent sent_at among a user's digests."""

    async def close(self) -> None:  # noqa: B027
        """Release backend resources."""
