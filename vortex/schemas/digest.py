from datetime import datetime
from enum import Enum

from pydantic import Field, field_validator

from vortex.core.datetime_utils import is_valid_schedule_time
from vortex.core.exceptions import SettingsValidationError
from vortex.schemas.common import CamelModel

MAX_TOPICS = 5
MAX_TOPIC_LENGTH = 64
MAX_CUSTOM_PROMPT_LENGTH = 500


class DigestLanguage(str, Enum):
    """Languages a digest can be written in."""

    INDONESIAN = "id"
    ENGLISH = "en"
    SPANISH = "es"
    CHINESE = "zh"
    JAPANESE = "ja"


# Topic catalog shown in the app's settings screen
DIGEST_TOPICS = [
    {"id": "technology", "label": "Teknologi", "label_en": "Technology", "icon": "🔧"},
    {"id": "business", "label": "Bisnis", "label_en": "Business", "icon": "💼"},
    {"id": "sports", "label": "Olahraga", "label_en": "Sports", "icon": "⚽"},
    {"id": "entertainment", "label": "Entertainment", "label_en": "Entertainment", "icon": "🎬"},
    {"id": "science", "label": "Sains", "label_en": "Science", "icon": "🔬"},
    {"id": "gaming", "label": "Gaming", "label_en": "Gaming", "icon": "🎮"},
    {"id": "world", "label": "Berita Dunia", "label_en": "World News", "icon": "🌍"},
    {"id": "indonesia", "label": "Berita Indonesia", "label_en": "Indonesia News", "icon": "🇮🇩"},
]

DIGEST_LANGUAGES = [
    {"code": "id", "label": "Bahasa Indonesia", "flag": "🇮🇩"},
    {"code": "en", "label": "English", "flag": "🇺🇸"},
    {"code": "es", "label": "Español", "flag": "🇪🇸"},
    {"code": "zh", "label": "中文", "flag": "🇨🇳"},
    {"code": "ja", "label": "日本語", "flag": "🇯🇵"},
]


# =============================================================================
# Validation helpers (shared by request schemas and the settings service)
# =============================================================================


def normalize_topics(topics: list[str]) -> list[str]:
    """Strip, de-duplicate (keeping first occurrence) and bound a topic list.

    Raises:
        SettingsValidationError: If fewer than 1 or more than 5 topics remain,
            or a topic is longer than MAX_TOPIC_LENGTH
    """
    normalized: list[str] = []
    for topic in topics:
        topic = topic.strip()
        if len(topic) > MAX_TOPIC_LENGTH:
            raise SettingsValidationError(
                f"Topic must be at most {MAX_TOPIC_LENGTH} characters"
            )
        if topic and topic not in normalized:
            normalized.append(topic)

    if not 1 <= len(normalized) <= MAX_TOPICS:
        raise SettingsValidationError(f"Must select 1-{MAX_TOPICS} topics")
    return normalized


def validate_schedule_time(value: str) -> str:
    if not is_valid_schedule_time(value):
        raise SettingsValidationError("Schedule time must be in HH:mm format")
    return value


def validate_custom_prompt(value: str | None) -> str | None:
    if value is not None and len(value) > MAX_CUSTOM_PROMPT_LENGTH:
        raise SettingsValidationError(
            f"Custom prompt must be at most {MAX_CUSTOM_PROMPT_LENGTH} characters"
        )
    return value


def validate_language(value: str) -> str:
    try:
        return DigestLanguage(value).value
    except ValueError as e:
        raise SettingsValidationError(f"Unsupported language: {value}") from e


# =============================================================================
# Records
# =============================================================================


class GroundingSource(CamelModel):
    """A web citation returned alongside generated content."""

    title: str
    url: str


class DigestResult(CamelModel):
    """Output of the content provider."""

    title: str
    content: str
    sources: list[GroundingSource] = Field(default_factory=list)


class DigestSettingsRecord(CamelModel):
    """A user's digest settings as stored."""

    user_id: str
    enabled: bool = False
    schedule_time: str = "08:00"
    timezone: str = "Asia/Jakarta"
    topics: list[str] = Field(default_factory=lambda: ["technology"])
    custom_prompt: str | None = None
    language: str = DigestLanguage.INDONESIAN.value
    push_token: str | None = None
    utc_hour: int = Field(default=1, ge=0, le=23)
    utc_minute: int = Field(default=0, ge=0, le=59)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def has_push_token(self) -> bool:
        return bool(self.push_token)


class DigestHistoryRecord(CamelModel):
    """A generated digest as stored. The id is assigned on save."""

    id: str | None = None
    user_id: str
    title: str
    content: str
    topics: list[str]
    language: str
    sources: list[GroundingSource] = Field(default_factory=list)
    sent_at: datetime
    read_at: datetime | None = None
    notification_id: str | None = None


class DigestRunResult(CamelModel):
    """Aggregate outcome of one scheduler pass."""

    success_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0


# =============================================================================
# Requests / responses
# =============================================================================


class DigestSettingsUpdate(CamelModel):
    """Request body for saving digest settings. Omitted fields keep their value."""

    user_id: str = Field(min_length=1, max_length=128)
    enabled: bool | None = None
    schedule_time: str | None = None
    timezone: str | None = Field(default=None, max_length=64)
    topics: list[str] | None = None
    custom_prompt: str | None = None
    language: str | None = None
    push_token: str | None = Field(default=None, max_length=255)

    @field_validator("schedule_time")
    @classmethod
    def check_schedule_time(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return validate_schedule_time(v)

    @field_validator("topics")
    @classmethod
    def check_topics(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        return normalize_topics(v)

    @field_validator("custom_prompt")
    @classmethod
    def check_custom_prompt(cls, v: str | None) -> str | None:
        return validate_custom_prompt(v)

    @field_validator("language")
    @classmethod
    def check_language(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return validate_language(v)


class PushTokenRequest(CamelModel):
    """Request body for registering a device push token."""

    user_id: str = Field(min_length=1, max_length=128)
    push_token: str = Field(min_length=1, max_length=255)


class ManualDigestRequest(CamelModel):
    """Request body for a manual, ad-hoc digest generation."""

    user_id: str | None = Field(default=None, max_length=128)
    topics: list[str] = Field(default_factory=lambda: ["technology"])
    language: str = DigestLanguage.INDONESIAN.value
    custom_prompt: str | None = None

    @field_validator("topics")
    @classmethod
    def check_topics(cls, v: list[str]) -> list[str]:
        return normalize_topics(v)

    @field_validator("custom_prompt")
    @classmethod
    def check_custom_prompt(cls, v: str | None) -> str | None:
        return validate_custom_prompt(v)

    @field_validator("language")
    @classmethod
    def check_language(cls, v: str) -> str:
        return validate_language(v)


class TopicOption(CamelModel):
    id: str
    label: str
    label_en: str
    icon: str


class LanguageOption(CamelModel):
    code: str
    label: str
    flag: str


class DigestOptions(CamelModel):
    """Topic and language catalog."""

    topics: list[TopicOption]
    languages: list[LanguageOption]


class TriggerResult(CamelModel):
    """Outcome of a manual per-user trigger."""

    delivered: bool
