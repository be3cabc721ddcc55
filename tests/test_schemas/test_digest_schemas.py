"""Tests for digest request and response schemas."""

import pytest
from pydantic import ValidationError

from vortex.core.exceptions import SettingsValidationError
from vortex.schemas.common import ApiResponse, PaginatedResponse, Pagination
from vortex.schemas.digest import (
    MAX_TOPIC_LENGTH,
    DigestRunResult,
    DigestSettingsUpdate,
    ManualDigestRequest,
    normalize_topics,
)


class TestNormalizeTopics:
    """Tests for normalize_topics."""

    def test_strips_and_dedupes_in_order(self):
        assert normalize_topics(["sports", " tech ", "sports", "", "tech"]) == ["sports", "tech"]

    def test_out_of_catalog_topics_allowed(self):
        assert normalize_topics(["quantum"]) == ["quantum"]

    @pytest.mark.parametrize("topics", [[], ["  "], ["a", "b", "c", "d", "e", "f"]])
    def test_bounds(self, topics):
        with pytest.raises(SettingsValidationError):
            normalize_topics(topics)

    def test_duplicates_count_once(self):
        assert len(normalize_topics(["a", "b", "c", "d", "e", "a"])) == 5

    def test_topic_length_capped(self):
        assert normalize_topics(["x" * MAX_TOPIC_LENGTH]) == ["x" * MAX_TOPIC_LENGTH]

        with pytest.raises(SettingsValidationError, match="at most 64 characters"):
            normalize_topics(["technology", "x" * (MAX_TOPIC_LENGTH + 1)])


class TestDigestSettingsUpdate:
    """Tests for DigestSettingsUpdate."""

    def test_accepts_camel_case(self):
        update = DigestSettingsUpdate.model_validate(
            {"userId": "u1", "scheduleTime": "09:15", "customPrompt": "Short please"}
        )

        assert update.schedule_time == "09:15"
        assert update.model_dump(exclude_unset=True) == {
            "user_id": "u1",
            "schedule_time": "09:15",
            "custom_prompt": "Short please",
        }

    @pytest.mark.parametrize("value", ["9.15", "08:00\n"])
    def test_rejects_bad_time(self, value):
        with pytest.raises(ValidationError, match="HH:mm"):
            DigestSettingsUpdate(user_id="u1", schedule_time=value)

    def test_rejects_long_topic(self):
        with pytest.raises(ValidationError, match="at most 64 characters"):
            DigestSettingsUpdate(user_id="u1", topics=["x" * 65])

    def test_requires_user_id(self):
        with pytest.raises(ValidationError):
            DigestSettingsUpdate(user_id="")


class TestManualDigestRequest:
    """Tests for ManualDigestRequest."""

    def test_defaults(self):
        request = ManualDigestRequest()

        assert request.user_id is None
        assert request.topics == ["technology"]
        assert request.language == "id"

    def test_rejects_unsupported_language(self):
        with pytest.raises(ValidationError, match="Unsupported language"):
            ManualDigestRequest(language="de")


class TestEnvelope:
    """Tests for the response envelope."""

    def test_serializes_camel_case(self):
        response = ApiResponse[DigestRunResult](data=DigestRunResult(success_count=2))

        assert response.model_dump(by_alias=True, exclude_none=True) == {
            "success": True,
            "data": {"successCount": 2, "failedCount": 0, "skippedCount": 0},
        }

    def test_paginated(self):
        response = PaginatedResponse[list[int]](
            data=[1, 2], pagination=Pagination(total=5, limit=2, offset=0)
        )

        dumped = response.model_dump(by_alias=True)
        assert dumped["pagination"] == {"total": 5, "limit": 2, "offset": 0}
        assert dumped["data"] == [1, 2]
