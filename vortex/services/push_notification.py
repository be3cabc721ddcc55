"""
Push notifications via the Expo push API.

Dispatchers never raise: every outcome, including transport failures, comes
back as a PushTicket so callers can treat delivery as best effort.
"""

from abc import ABC, abstractmethod
from typing import Any

import httpx

from vortex.config import get_settings
from vortex.core.exceptions import NotificationError
from vortex.core.logging import get_logger
from vortex.schemas.push import PushMessage, PushTicket

logger = get_logger(__name__)

EXPO_TOKEN_PREFIXES = ("ExponentPushToken[", "ExpoPushToken[")

MAX_BODY_LENGTH = 100


def is_valid_push_token(token: str) -> bool:
    """Check the Expo push token format."""
    return token.startswith(EXPO_TOKEN_PREFIXES)


def truncate_body(text: str, max_length: int = MAX_BODY_LENGTH) -> str:
    """Shorten a notification body to max_length, ending with '...'."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


class BaseNotificationDispatcher(ABC):
    """Abstract base class for push notification dispatchers."""

    provider_name: str = "unknown"

    @abstractmethod
    async def send(self, message: PushMessage) -> PushTicket:
        """Send one message. Never raises."""

    @abstractmethod
    async def send_batch(self, messages: list[PushMessage]) -> list[PushTicket]:
        """Send several messages in one request. Never raises."""

    async def send_digest_notification(
        self,
        push_token: str,
        digest_id: str,
        title: str,
        preview: str,
    ) -> PushTicket:
        """
        Notify a user that a new digest is ready.

        Args:
            push_token: The user's device push token
            digest_id: Saved digest id, used by the app to open the digest
            title: Digest title
            preview: Short preview of the digest content

        Returns:
            Delivery ticket
        """
        if not is_valid_push_token(push_token):
            return PushTicket(status="error", message="Invalid push token format")

        return await self.send(
            PushMessage(
                to=push_token,
                title=f"📰 {title}",
                body=truncate_body(preview),
                data={
                    "type": "digest",
                    "digestId": digest_id,
                    "screen": "DigestDetail",
                },
                sound="default",
                priority="high",
                channel_id="digest",
            )
        )


class ExpoPushDispatcher(BaseNotificationDispatcher):
    """Push notifications through https://exp.host."""

    provider_name = "expo"

    HEADERS = {
        "Accept": "application/json",
        "Accept-Encoding": "gzip, deflate",
        "Content-Type": "application/json",
    }

    def __init__(
        self,
        push_url: str = "https://exp.host/--/api/v2/push/send",
        timeout_seconds: float = 15.0,
    ) -> None:
        self.push_url = push_url
        self.timeout_seconds = timeout_seconds

    async def send(self, message: PushMessage) -> PushTicket:
        logger.bind(to=message.to[:20]).debug("push_sending")

        try:
            tickets = await self._post(message.model_dump(by_alias=True, exclude_none=True))
            ticket = tickets[0]
        except NotificationError as e:
            logger.bind(error=str(e)).error("push_failed")
            return PushTicket(status="error", message=str(e))

        if ticket.ok:
            logger.bind(ticket_id=ticket.id).info("push_sent")
        else:
            logger.bind(error=ticket.message).error("push_rejected")
        return ticket

    async def send_batch(self, messages: list[PushMessage]) -> list[PushTicket]:
        if not messages:
            return []

        payload = [m.model_dump(by_alias=True, exclude_none=True) for m in messages]
        try:
            tickets = await self._post(payload)
        except NotificationError as e:
            logger.bind(count=len(messages), error=str(e)).error("push_batch_failed")
            return [PushTicket(status="error", message=str(e)) for _ in messages]

        ok_count = sum(1 for t in tickets if t.ok)
        logger.bind(sent=ok_count, total=len(messages)).info("push_batch_sent")
        return tickets

    async def _post(self, payload: dict[str, Any] | list[dict[str, Any]]) -> list[PushTicket]:
        """POST to Expo and parse the tickets.

        Raises:
            NotificationError: On transport failure or a response without tickets
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                resp = await client.post(self.push_url, json=payload, headers=self.HEADERS)
            body = resp.json()
        except httpx.HTTPError as e:
            raise NotificationError(f"Push request failed: {e}") from e
        except ValueError as e:
            raise NotificationError("Push service returned invalid JSON") from e

        data = body.get("data") if isinstance(body, dict) else None
        if isinstance(data, dict):
            data = [data]
        if not data:
            raise NotificationError("No ticket returned")

        try:
            return [PushTicket.model_validate(t) for t in data]
        except ValueError as e:
            raise NotificationError(f"Malformed push ticket: {e}") from e


def get_notification_dispatcher() -> BaseNotificationDispatcher:
    """Build the notification dispatcher from settings."""
    settings = get_settings()
    return ExpoPushDispatcher(
        push_url=settings.expo_push_url,
        timeout_seconds=settings.push_timeout_seconds,
    )
