"""
Unit tests for per-user generation credits.

Tests:
- Default row creation
- Credit consumption and exhaustion
- Fail-open behavior when the limits table is unavailable
"""

import pytest

from momentful.services.generation_limits import (
    DEFAULT_IMAGE_LIMIT,
    DEFAULT_VIDEO_LIMIT,
    TABLE,
    GenerationLimitReached,
    consume_credit,
    get_or_create_limits,
    to_response,
)


class TestGetOrCreateLimits:
    @pytest.mark.asyncio
    async def test_creates_defaults(self, supabase):
        row = await get_or_create_limits("user-1")

        assert row["images_remaining"] == DEFAULT_IMAGE_LIMIT == 10
        assert row["videos_remaining"] == DEFAULT_VIDEO_LIMIT == 5
        assert len(supabase.tables[TABLE]) == 1

    @pytest.mark.asyncio
    async def test_existing_row_returned(self, supabase):
        supabase.tables[TABLE] = [{
            "user_id": "user-1",
            "images_remaining": 2,
            "videos_remaining": 0,
            "images_limit": 10,
            "videos_limit": 5,
        }]

        row = await get_or_create_limits("user-1")

        assert to_response(row) == {
            "imagesRemaining": 2,
            "videosRemaining": 0,
            "imagesLimit": 10,
            "videosLimit": 5,
        }
        assert len(supabase.tables[TABLE]) == 1


class TestConsumeCredit:
    @pytest.mark.asyncio
    async def test_decrements(self, supabase):
        assert await consume_credit("user-1", "image") == DEFAULT_IMAGE_LIMIT - 1
        assert await consume_credit("user-1", "video") == DEFAULT_VIDEO_LIMIT - 1

        row = supabase.tables[TABLE][0]
        assert row["images_remaining"] == 9
        assert row["videos_remaining"] == 4

    @pytest.mark.asyncio
    async def test_exhausted_raises(self, supabase):
        supabase.tables[TABLE] = [{
            "user_id": "user-1",
            "images_remaining": 0,
            "videos_remaining": 3,
            "images_limit": 10,
            "videos_limit": 5,
        }]

        with pytest.raises(GenerationLimitReached) as exc_info:
            await consume_credit("user-1", "image")

        err = exc_info.value
        assert err.status_code == 403
        assert err.to_dict()["error"] == "Image generation limit reached"
        assert "hello@momentful.ai" in err.to_dict()["message"]
        assert supabase.tables[TABLE][0]["images_remaining"] == 0

    @pytest.mark.asyncio
    async def test_fails_open_when_table_unavailable(self, supabase):
        supabase.failing_tables.add(TABLE)
        assert await consume_credit("user-1", "video") is None
