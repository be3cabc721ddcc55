"""In-memory digest store for development, tests and database-less deployments."""

from datetime import datetime
from itertools import count
from uuid import uuid4

from vortex.core.datetime_utils import utc_now
from vortex.schemas.digest import DigestHistoryRecord, DigestSettingsRecord

from .base import BaseDigestStore


class InMemoryDigestStore(BaseDigestStore):
    """
    Process-local store backed by dictionaries owned by the instance.

    Records are copied on the way in and out so callers never share
    mutable state with the store. Contents are lost on restart.
    """

    backend_name = "memory"

    def __init__(self) -> None:
        self._settings: dict[str, DigestSettingsRecord] = {}
        self._history: dict[str, DigestHistoryRecord] = {}
        # Insertion order breaks ties between digests with equal sent_at
        self._history_seq: dict[str, int] = {}
        self._seq = count()

    async def get_settings(self, user_id: str) -> DigestSettingsRecord | None:
        stored = self._settings.get(user_id)
        return stored.model_copy(deep=True) if stored else None

    async def upsert_settings(self, settings: DigestSettingsRecord) -> DigestSettingsRecord:
        existing = self._settings.get(settings.user_id)
        now = utc_now()
        stored = settings.model_copy(
            deep=True,
            update={
                "created_at": existing.created_at if existing else now,
                "updated_at": now,
            },
        )
        self._settings[settings.user_id] = stored
        return stored.model_copy(deep=True)

    async def find_due_settings(self, utc_hour: int) -> list[DigestSettingsRecord]:
        due = [
            s
            for s in self._settings.values()
            if s.enabled and s.push_token and s.utc_hour == utc_hour
        ]
        return [s.model_copy(deep=True) for s in sorted(due, key=lambda s: s.user_id)]

    async def save_history(self, history: DigestHistoryRecord) -> DigestHistoryRecord:
        stored = history.model_copy(deep=True, update={"id": str(uuid4())})
        self._history[stored.id] = stored
        self._history_seq[stored.id] = next(self._seq)
        return stored.model_copy(deep=True)

    def _user_history(self, user_id: str) -> list[DigestHistoryRecord]:
        items = [h for h in self._history.values() if h.user_id == user_id]
        items.sort(key=lambda h: (h.sent_at, self._history_seq[h.id]), reverse=True)
        return items

    async def list_history(
        self, user_id: str, limit: int = 20, offset: int = 0
    ) -> list[DigestHistoryRecord]:
        page = self._user_history(user_id)[offset : offset + limit]
        return [h.model_copy(deep=True) for h in page]

    async def count_history(self, user_id: str) -> int:
        return sum(1 for h in self._history.values() if h.user_id == user_id)

    async def get_history(self, user_id: str, digest_id: str) -> DigestHistoryRecord | None:
        stored = self._history.get(digest_id)
        if stored is None or stored.user_id != user_id:
            return None
        return stored.model_copy(deep=True)

    async def mark_history_read(
        self, user_id: str, digest_id: str, read_at: datetime
    ) -> DigestHistoryRecord | None:
        stored = self._history.get(digest_id)
        if stored is None or stored.user_id != user_id:
            return None
        if stored.read_at is None:
            stored.read_at = read_at
        return stored.model_copy(deep=True)

    async def last_sent_at(self, user_id: str) -> datetime | None:
        sent = [h.sent_at for h in self._history.values() if h.user_id == user_id]
        return max(sent) if sent else None
