"""Tests for push token validation and body truncation."""

from vortex.services.push_notification import is_valid_push_token, truncate_body


class TestHelpers:
    """Tests for token validation and body truncation."""

    def test_valid_tokens(self):
        assert is_valid_push_token("ExponentPushToken[xxx]") is True
        assert is_valid_push_token("ExpoPushToken[xxx]") is True

    def test_invalid_tokens(self):
        assert is_valid_push_token("fcm:abc") is False
        assert is_valid_push_token("") is False

    def test_short_body_unchanged(self):
        assert truncate_body("short") == "short"
        assert truncate_body("x" * 100) == "x" * 100

    def test_long_body_truncated(self):
        body = truncate_body("y" * 150)

        assert len(body) == 100
        assert body.endswith("...")
        assert body.startswith("y" * 97)
