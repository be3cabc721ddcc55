"""Digest storage with interchangeable backends."""

from vortex.config import get_settings
from vortex.core.exceptions import ConfigurationError
from vortex.core.logging import get_logger

from .base import BaseDigestStore
from .memory import InMemoryDigestStore
from .sql import SqlDigestStore

__all__ = [
    "BaseDigestStore",
    "InMemoryDigestStore",
    "SqlDigestStore",
    "get_digest_store",
    "reset_digest_store",
]

logger = get_logger(__name__)

_store_instance: BaseDigestStore | None = None


def get_digest_store() -> BaseDigestStore:
    """
    Get the configured digest store instance.

    The backend is chosen on first call from STORAGE_BACKEND ("database" or
    "memory") and reused for the life of the process.
    """
    global _store_instance
    if _store_instance is not None:
        return _store_instance

    settings = get_settings()
    backend = settings.storage_backend.lower()

    if backend == "memory":
        _store_instance = InMemoryDigestStore()
    elif backend == "database":
        from vortex.core.database import AsyncSessionLocal, engine

        _store_instance = SqlDigestStore(AsyncSessionLocal, engine=engine)
    else:
        raise ConfigurationError(f"Unknown storage backend: {settings.storage_backend}")

    logger.bind(backend=_store_instance.backend_name).info("digest_store_selected")
    return _store_instance


def reset_digest_store() -> None:
    """Reset the store instance. Useful for testing."""
    global _store_instance
    _store_instance = None
