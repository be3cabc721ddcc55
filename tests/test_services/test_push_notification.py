"""Tests for Expo push notifications."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from vortex.schemas.push import PushMessage
from vortex.services.push_notification import ExpoPushDispatcher

pytestmark = pytest.mark.asyncio

TOKEN = "ExponentPushToken[abc123]"


def _mock_response(payload) -> MagicMock:
    response = MagicMock()
    response.status_code = 200
    response.json.return_value = payload
    return response


class TestExpoPushDispatcher:
    """Tests for ExpoPushDispatcher."""

    @pytest.fixture
    def dispatcher(self):
        return ExpoPushDispatcher(push_url="https://push.test/send")

    async def test_send_digest_notification_payload(self, dispatcher):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client.post.return_value = _mock_response({"data": {"status": "ok", "id": "t-1"}})
            mock_client_class.return_value.__aenter__.return_value = mock_client

            ticket = await dispatcher.send_digest_notification(
                TOKEN, "digest-1", "Daily Digest: technology", "z" * 120
            )

        assert ticket.ok
        assert ticket.id == "t-1"

        args, kwargs = mock_client.post.call_args
        assert args[0] == "https://push.test/send"
        assert kwargs["json"] == {
            "to": TOKEN,
            "title": "📰 Daily Digest: technology",
            "body": "z" * 97 + "...",
            "data": {"type": "digest", "digestId": "digest-1", "screen": "DigestDetail"},
            "sound": "default",
            "channelId": "digest",
            "priority": "high",
        }

    async def test_invalid_token_is_not_sent(self, dispatcher):
        with patch("httpx.AsyncClient") as mock_client_class:
            ticket = await dispatcher.send_digest_notification("bad-token", "d", "t", "p")

            mock_client_class.assert_not_called()

        assert not ticket.ok
        assert ticket.message == "Invalid push token format"

    async def test_error_ticket_is_returned(self, dispatcher):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client.post.return_value = _mock_response(
                {
                    "data": {
                        "status": "error",
                        "message": "Device not registered",
                        "details": {"error": "DeviceNotRegistered"},
                    }
                }
            )
            mock_client_class.return_value.__aenter__.return_value = mock_client

            ticket = await dispatcher.send(PushMessage(to=TOKEN, title="t", body="b"))

        assert not ticket.ok
        assert ticket.details == {"error": "DeviceNotRegistered"}

    async def test_missing_ticket(self, dispatcher):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client.post.return_value = _mock_response({"errors": [{"code": "X"}]})
            mock_client_class.return_value.__aenter__.return_value = mock_client

            ticket = await dispatcher.send(PushMessage(to=TOKEN, title="t", body="b"))

        assert not ticket.ok
        assert ticket.message == "No ticket returned"

    async def test_transport_error_never_raises(self, dispatcher):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client.post.side_effect = httpx.ConnectTimeout("timed out")
            mock_client_class.return_value.__aenter__.return_value = mock_client

            ticket = await dispatcher.send(PushMessage(to=TOKEN, title="t", body="b"))

        assert not ticket.ok
        assert "timed out" in ticket.message

    async def test_send_batch(self, dispatcher):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client.post.return_value = _mock_response(
                {"data": [{"status": "ok", "id": "t-1"}, {"status": "error", "message": "bad"}]}
            )
            mock_client_class.return_value.__aenter__.return_value = mock_client

            tickets = await dispatcher.send_batch(
                [
                    PushMessage(to=TOKEN, title="a", body="a"),
                    PushMessage(to=TOKEN, title="b", body="b"),
                ]
            )

        assert [t.ok for t in tickets] == [True, False]
        assert len(mock_client.post.call_args.kwargs["json"]) == 2

    async def test_send_batch_empty(self, dispatcher):
        with patch("httpx.AsyncClient") as mock_client_class:
            assert await dispatcher.send_batch([]) == []

            mock_client_class.assert_not_called()

    async def test_send_batch_failure_marks_every_message(self, dispatcher):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client.post.side_effect = httpx.ConnectError("down")
            mock_client_class.return_value.__aenter__.return_value = mock_client

            tickets = await dispatcher.send_batch(
                [PushMessage(to=TOKEN, title="a", body="a")] * 3
            )

        assert len(tickets) == 3
        assert all(not t.ok for t in tickets)
