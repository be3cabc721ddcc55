from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class PushMessage(BaseModel):
    """A message in the Expo push API format."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    to: str
    title: str
    body: str
    data: dict[str, Any] | None = None
    sound: Literal["default"] | None = None
    badge: int | None = None
    channel_id: str | None = None
    priority: Literal["default", "normal", "high"] | None = None
    ttl: int | None = None  # seconds


class PushTicket(BaseModel):
    """Delivery ticket returned for one push message."""

    status: Literal["ok", "error"]
    id: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"
