"""Reading and writing per-user digest settings.

Every write goes through with_utc_schedule so the cached utc_hour/utc_minute
always match the stored schedule_time and timezone.
"""

from vortex.config import AppConfig, get_config
from vortex.core.datetime_utils import resolve_timezone_offset, to_utc_schedule
from vortex.core.logging import get_logger
from vortex.schemas.digest import (
    DigestSettingsRecord,
    DigestSettingsUpdate,
    normalize_topics,
    validate_custom_prompt,
    validate_language,
    validate_schedule_time,
)
from vortex.storage import BaseDigestStore

logger = get_logger(__name__)

# Fields where an explicit null in an update means "leave unchanged"
_REQUIRED_FIELDS = {"enabled", "schedule_time", "timezone", "topics", "language"}


def with_utc_schedule(settings: DigestSettingsRecord) -> DigestSettingsRecord:
    """Return a copy with utc_hour/utc_minute recomputed from the local schedule."""
    offset = resolve_timezone_offset(settings.timezone)
    utc_hour, utc_minute = to_utc_schedule(settings.schedule_time, offset)
    return settings.model_copy(update={"utc_hour": utc_hour, "utc_minute": utc_minute})


def default_settings(user_id: str, config: AppConfig | None = None) -> DigestSettingsRecord:
    """Settings for a user who has never saved any (feature disabled)."""
    digest = (config or get_config()).digest
    return with_utc_schedule(
        DigestSettingsRecord(
            user_id=user_id,
            enabled=False,
            schedule_time=digest.default_schedule_time,
            timezone=digest.default_timezone,
            topics=list(digest.default_topics),
            language=digest.default_language,
        )
    )


def validate_settings(settings: DigestSettingsRecord) -> DigestSettingsRecord:
    """
    Validate a complete settings record and normalize its values.

    Raises:
        SettingsValidationError: If any field is malformed
    """
    return settings.model_copy(
        update={
            "schedule_time": validate_schedule_time(settings.schedule_time),
            "topics": normalize_topics(settings.topics),
            "custom_prompt": validate_custom_prompt(settings.custom_prompt) or None,
            "language": validate_language(settings.language),
            "push_token": settings.push_token or None,
        }
    )


async def get_or_create_settings(store: BaseDigestStore, user_id: str) -> DigestSettingsRecord:
    """Get a user's settings, persisting defaults on first access."""
    settings = await store.get_settings(user_id)
    if settings is not None:
        return settings

    settings = await store.upsert_settings(default_settings(user_id))
    logger.bind(user_id=user_id).info("digest_settings_created")
    return settings


async def save_settings(store: BaseDigestStore, update: DigestSettingsUpdate) -> DigestSettingsRecord:
    """
    Apply a partial settings update.

    Fields omitted from the request keep their stored (or default) value.
    The UTC trigger is recomputed from the merged record before saving.

    Args:
        store: Digest store
        update: Validated request body

    Returns:
        The stored settings

    Raises:
        SettingsValidationError: If the merged settings are invalid
    """
    current = await store.get_settings(update.user_id) or default_settings(update.user_id)

    changes = {
        name: value
        for name, value in update.model_dump(exclude_unset=True, exclude={"user_id"}).items()
        if value is not None or name not in _REQUIRED_FIELDS
    }

    merged = with_utc_schedule(validate_settings(current.model_copy(update=changes)))
    saved = await store.upsert_settings(merged)

    logger.bind(
        user_id=saved.user_id,
        schedule_time=saved.schedule_time,
        timezone=saved.timezone,
        utc_hour=saved.utc_hour,
        utc_minute=saved.utc_minute,
        enabled=saved.enabled,
    ).info("digest_settings_updated")
    return saved


async def register_push_token(
    store: BaseDigestStore, user_id: str, push_token: str
) -> DigestSettingsRecord:
    """Store a device push token, creating default settings if needed."""
    current = await store.get_settings(user_id) or default_settings(user_id)
    saved = await store.upsert_settings(current.model_copy(update={"push_token": push_token}))

    logger.bind(user_id=user_id).info("push_token_registered")
    return saved
