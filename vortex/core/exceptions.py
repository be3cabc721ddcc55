"""Error taxonomy for the digest feature.

Per-user errors raised while generating or delivering a digest are caught at
the user boundary by the orchestrator. Settings errors are raised at write time
and never reach the scheduler.
"""


class DigestError(Exception):
    """Base class for digest errors."""


class ConfigurationError(DigestError):
    """A required upstream credential or setting is missing."""


class ContentGenerationError(DigestError):
    """The content provider failed or returned an unusable result."""


class PersistenceError(DigestError):
    """Reading or writing a digest record failed."""


class NotificationError(DigestError):
    """The push service could not accept a notification."""


class SettingsValidationError(DigestError, ValueError):
    """Digest settings input is malformed."""


class SettingsNotFoundError(DigestError, LookupError):
    """No digest settings exist for the requested user."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"Digest settings not found for user {user_id}")
