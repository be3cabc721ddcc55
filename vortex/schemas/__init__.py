from vortex.schemas.common import ApiResponse, CamelModel, PaginatedResponse, Pagination
from vortex.schemas.digest import (
    DigestHistoryRecord,
    DigestResult,
    DigestRunResult,
    DigestSettingsRecord,
    DigestSettingsUpdate,
    GroundingSource,
    ManualDigestRequest,
    PushTokenRequest,
)
from vortex.schemas.push import PushMessage, PushTicket

__all__ = [
    "ApiResponse",
    "CamelModel",
    "PaginatedResponse",
    "Pagination",
    "DigestHistoryRecord",
    "DigestResult",
    "DigestRunResult",
    "DigestSettingsRecord",
    "DigestSettingsUpdate",
    "GroundingSource",
    "ManualDigestRequest",
    "PushTokenRequest",
    "PushMessage",
    "PushTicket",
]
