"""Hourly digest scheduling.

Each trigger tick supplies the current UTC hour. Users whose cached
utc_hour matches get a freshly generated digest, saved to history and
announced with a push notification.

Users are processed one at a time with a fixed pause in between, to stay
under the content provider's rate limits. A failure for one user is logged
and counted; it never stops the rest of the batch.
"""

import asyncio

from vortex.config import get_config
from vortex.core.datetime_utils import start_of_utc_day, utc_now
from vortex.core.exceptions import SettingsNotFoundError
from vortex.core.logging import get_logger
from vortex.schemas.digest import DigestHistoryRecord, DigestRunResult, DigestSettingsRecord
from vortex.services.grounding import BaseContentProvider, get_content_provider
from vortex.services.push_notification import (
    BaseNotificationDispatcher,
    get_notification_dispatcher,
)
from vortex.storage import BaseDigestStore, get_digest_store

logger = get_logger(__name__)

DEFAULT_PREVIEW = "Rangkuman berita terbaru"


def build_preview(content: str, fallback: str = DEFAULT_PREVIEW) -> str:
    """First non-empty line that is not a markdown heading, else the fallback."""
    for line in content.split("\n"):
        if line.strip() and not line.startswith("#"):
            return line.strip()
    return fallback


class DigestOrchestrator:
    """Runs scheduled and manual digest generation for users."""

    def __init__(
        self,
        store: BaseDigestStore,
        content_provider: BaseContentProvider,
        dispatcher: BaseNotificationDispatcher,
        pacing_seconds: float = 1.0,
        skip_if_sent_today: bool = False,
        preview_fallback: str = DEFAULT_PREVIEW,
    ) -> None:
        """
        Args:
            store: Settings and history persistence
            content_provider: Generates digest text and sources
            dispatcher: Delivers push notifications
            pacing_seconds: Pause between users within one pass
            skip_if_sent_today: Skip users who already got a digest this UTC day
            preview_fallback: Notification body when the content has no usable line
        """
        self.store = store
        self.content_provider = content_provider
        self.dispatcher = dispatcher
        self.pacing_seconds = pacing_seconds
        self.skip_if_sent_today = skip_if_sent_today
        self.preview_fallback = preview_fallback

    async def users_due_at(self, current_utc_hour: int) -> list[DigestSettingsRecord]:
        """
        Get users who should receive a digest in this UTC hour.

        A user is due if:
        1. Their digest is enabled
        2. They have registered a push token
        3. Their cached utc_hour equals current_utc_hour

        Minutes are not compared; a 08:30 schedule fires in the 08:00 tick.

        Args:
            current_utc_hour: Hour of the trigger tick (0-23)

        Returns:
            Matching settings, possibly empty
        """
        if not 0 <= current_utc_hour <= 23:
            raise ValueError(f"UTC hour must be in 0..23, got {current_utc_hour}")

        users = await self.store.find_due_settings(current_utc_hour)
        logger.bind(utc_hour=current_utc_hour, count=len(users)).info("digest_users_selected")
        return users

    async def process_one(self, settings: DigestSettingsRecord) -> bool:
        """
        Generate, save and announce one user's digest.

        Success means the digest was generated and saved. The notification is
        best effort: an error ticket is logged and does not affect the result.

        Args:
            settings: The user's digest settings

        Returns:
            True on success, False if any step raised
        """
        user_id = settings.user_id
        try:
            logger.bind(user_id=user_id).debug("digest_processing")

            result = await self.content_provider.generate_digest(
                settings.topics,
                settings.language,
                settings.custom_prompt,
            )

            saved = await self.store.save_history(
                DigestHistoryRecord(
                    user_id=user_id,
                    title=result.title,
                    content=result.content,
                    topics=list(settings.topics),
                    language=settings.language,
                    sources=result.sources,
                    sent_at=utc_now(),
                )
            )

            if settings.has_push_token:
                ticket = await self.dispatcher.send_digest_notification(
                    settings.push_token,
                    saved.id,
                    result.title,
                    build_preview(result.content, self.preview_fallback),
                )
                if not ticket.ok:
                    logger.bind(
                        user_id=user_id,
                        digest_id=saved.id,
                        error=ticket.message,
                    ).warning("digest_notification_failed")

            logger.bind(user_id=user_id, digest_id=saved.id).info("digest_delivered")
            return True

        except Exception as e:
            logger.bind(
                user_id=user_id,
                error_type=type(e).__name__,
                error=str(e),
            ).error("digest_processing_failed")
            return False

    async def _sent_today(self, user_id: str) -> bool:
        last_sent = await self.store.last_sent_at(user_id)
        return last_sent is not None and last_sent >= start_of_utc_day()

    async def run_for_hour(self, current_utc_hour: int) -> DigestRunResult:
        """
        Run one scheduler pass for a UTC hour.

        Not idempotent unless skip_if_sent_today is set: running the same
        hour twice sends every due user a second digest.

        Args:
            current_utc_hour: Hour of the trigger tick (0-23)

        Returns:
            DigestRunResult with success/failed/skipped counts
        """
        logger.bind(utc_hour=current_utc_hour).info("digest_run_started")

        users = await self.users_due_at(current_utc_hour)
        result = DigestRunResult()

        if not users:
            logger.bind(utc_hour=current_utc_hour).debug("digest_run_no_users")
            return result

        for index, user in enumerate(users):
            try:
                already_sent = self.skip_if_sent_today and await self._sent_today(user.user_id)
            except Exception as e:
                logger.bind(
                    user_id=user.user_id,
                    error_type=type(e).__name__,
                    error=str(e),
                ).error("digest_processing_failed")
                result.failed_count += 1
                continue

            if already_sent:
                result.skipped_count += 1
                logger.bind(user_id=user.user_id).debug("digest_already_sent_today")
                continue

            if await self.process_one(user):
                result.success_count += 1
            else:
                result.failed_count += 1

            if index < len(users) - 1 and self.pacing_seconds > 0:
                await asyncio.sleep(self.pacing_seconds)

        logger.bind(
            utc_hour=current_utc_hour,
            success=result.success_count,
            failed=result.failed_count,
            skipped=result.skipped_count,
        ).info("digest_run_completed")
        return result

    async def trigger_for_user(self, user_id: str) -> bool:
        """
        Generate a digest for one user outside the schedule.

        Eligibility (enabled flag, hour) is not checked.

        Raises:
            SettingsNotFoundError: If the user has no saved settings
        """
        settings = await self.store.get_settings(user_id)
        if settings is None:
            raise SettingsNotFoundError(user_id)

        logger.bind(user_id=user_id).info("digest_manual_trigger")
        return await self.process_one(settings)


def get_orchestrator() -> DigestOrchestrator:
    """Build an orchestrator wired to the configured collaborators."""
    digest = get_config().digest
    return DigestOrchestrator(
        store=get_digest_store(),
        content_provider=get_content_provider(),
        dispatcher=get_notification_dispatcher(),
        pacing_seconds=digest.pacing_seconds,
        skip_if_sent_today=digest.skip_if_sent_today,
        preview_fallback=digest.preview_fallback,
    )
