"""Tests for digest settings reads and writes."""

import pytest

from vortex.core.exceptions import SettingsValidationError
from vortex.schemas.digest import DigestSettingsRecord, DigestSettingsUpdate
from vortex.services.digest_settings import (
    get_or_create_settings,
    register_push_token,
    save_settings,
)

pytestmark = pytest.mark.asyncio


class TestGetOrCreateSettings:
    """Tests for get_or_create_settings."""

    async def test_creates_and_persists_defaults(self, memory_store):
        settings = await get_or_create_settings(memory_store, "new-user")

        assert settings.enabled is False
        assert await memory_store.get_settings("new-user") is not None

    async def test_returns_existing(self, memory_store, settings_factory):
        await settings_factory(user_id="u1", topics=["science"])

        settings = await get_or_create_settings(memory_store, "u1")

        assert settings.topics == ["science"]
        assert settings.enabled is True


class TestSaveSettings:
    """Tests for save_settings."""

    async def test_first_save_merges_over_defaults(self, memory_store):
        saved = await save_settings(
            memory_store,
            DigestSettingsUpdate(user_id="u1", enabled=True, schedule_time="05:00"),
        )

        assert saved.enabled is True
        assert saved.schedule_time == "05:00"
        assert saved.timezone == "Asia/Jakarta"
        assert (saved.utc_hour, saved.utc_minute) == (22, 0)

    async def test_partial_update_keeps_other_fields(self, memory_store, settings_factory):
        await settings_factory(user_id="u1", topics=["science", "gaming"], language="en")

        saved = await save_settings(
            memory_store, DigestSettingsUpdate(user_id="u1", timezone="Asia/Tokyo")
        )

        assert saved.topics == ["science", "gaming"]
        assert saved.language == "en"
        assert saved.timezone == "Asia/Tokyo"
        assert saved.utc_hour == 23

    async def test_null_required_field_is_ignored(self, memory_store, settings_factory):
        await settings_factory(user_id="u1")

        saved = await save_settings(
            memory_store, DigestSettingsUpdate(user_id="u1", enabled=None, topics=None)
        )

        assert saved.enabled is True
        assert saved.topics == ["technology"]

    async def test_null_optional_field_clears_it(self, memory_store, settings_factory):
        await settings_factory(user_id="u1", custom_prompt="Keep it short")

        saved = await save_settings(
            memory_store, DigestSettingsUpdate(user_id="u1", custom_prompt=None)
        )

        assert saved.custom_prompt is None

    async def test_invalid_stored_record_raises(self, memory_store):
        await memory_store.upsert_settings(DigestSettingsRecord(user_id="u1", topics=[]))

        with pytest.raises(SettingsValidationError):
            await save_settings(memory_store, DigestSettingsUpdate(user_id="u1", enabled=True))


class TestRegisterPushToken:
    """Tests for register_push_token."""

    async def test_creates_settings_for_new_user(self, memory_store):
        saved = await register_push_token(memory_store, "u1", "ExponentPushToken[xyz]")

        assert saved.push_token == "ExponentPushToken[xyz]"
        assert saved.enabled is False
        assert saved.utc_hour == 1

    async def test_keeps_existing_preferences(self, memory_store, settings_factory):
        await settings_factory(user_id="u1", schedule_time="19:00", push_token=None)

        saved = await register_push_token(memory_store, "u1", "ExponentPushToken[xyz]")

        assert saved.schedule_time == "19:00"
        assert saved.utc_hour == 12
        assert saved.push_token == "ExponentPushToken[xyz]"
