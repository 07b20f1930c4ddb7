"""
Integration tests for the signed URL endpoints.

Tests:
- POST /api/signed-urls (auth, ownership, expiry bounds, storage errors)
- POST /api/signed-urls/external
"""

import pytest
from httpx import AsyncClient


class TestUserSignedUrl:
    """Tests for POST /api/signed-urls"""

    @pytest.mark.asyncio
    async def test_requires_auth(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/signed-urls", json={"bucket": "user-uploads", "path": "user-123/p/a.png"},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_rejects_unknown_token(self, async_client: AsyncClient, supabase):
        response = await async_client.post(
            "/api/signed-urls",
            headers={"Authorization": "Bearer forged"},
            json={"bucket": "user-uploads", "path": "user-123/p/a.png"},
        )
        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required"}

    @pytest.mark.asyncio
    async def test_signs_own_path(self, async_client: AsyncClient, auth_headers, supabase):
        response = await async_client.post(
            "/api/signed-urls",
            headers=auth_headers,
            json={"bucket": "edited-images", "path": "user-123/proj/edit.png"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["signedUrl"].startswith("https://storage.test/edited-images/user-123/proj/edit.png")
        assert body["expiresIn"] == 3600
        assert body["expiresAt"]
        assert supabase.storage.signed == [("edited-images", "user-123/proj/edit.png", 3600)]

    @pytest.mark.asyncio
    async def test_forbids_other_users_path(self, async_client: AsyncClient, auth_headers, supabase):
        response = await async_client.post(
            "/api/signed-urls",
            headers=auth_headers,
            json={"bucket": "user-uploads", "path": "user-999/proj/a.png"},
        )

        assert response.status_code == 403
        assert response.json()["error"] == "Storage path must start with user ID: user-123/"
        assert supabase.storage.signed == []

    @pytest.mark.asyncio
    async def test_invalid_bucket(self, async_client: AsyncClient, auth_headers):
        response = await async_client.post(
            "/api/signed-urls",
            headers=auth_headers,
            json={"bucket": "secrets", "path": "user-123/p/a.png"},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("expires_in", [0, 86401])
    async def test_expiry_bounds(self, async_client: AsyncClient, auth_headers, expires_in):
        response = await async_client.post(
            "/api/signed-urls",
            headers=auth_headers,
            json={"bucket": "user-uploads", "path": "user-123/p/a.png", "expiresIn": expires_in},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_storage_error_mapped(self, async_client: AsyncClient, auth_headers, supabase):
        supabase.storage.sign_error = RuntimeError({"message": "Bucket not found", "statusCode": 404})

        response = await async_client.post(
            "/api/signed-urls",
            headers=auth_headers,
            json={"bucket": "user-uploads", "path": "user-123/p/a.png"},
        )

        assert response.status_code == 500
        assert response.json() == {
            "error": "Storage bucket not found. Please contact support.",
            "retryable": False,
        }

    @pytest.mark.asyncio
    async def test_no_url_returned_is_not_found(
        self, async_client: AsyncClient, auth_headers, supabase, monkeypatch
    ):
        class NoUrlBucket:
            def create_signed_url(self, path, expires_in):
                return {"signedURL": None}

        monkeypatch.setattr(supabase.storage, "from_", lambda bucket: NoUrlBucket())

        response = await async_client.post(
            "/api/signed-urls",
            headers=auth_headers,
            json={"bucket": "user-uploads", "path": "user-123/p/gone.png"},
        )

        assert response.status_code == 404
        assert response.json() == {"error": "File not found or access denied"}


class TestExternalSignedUrl:
    """Tests for POST /api/signed-urls/external"""

    @pytest.mark.asyncio
    async def test_default_expiry_no_auth(self, async_client: AsyncClient, supabase):
        response = await async_client.post(
            "/api/signed-urls/external",
            json={"bucket": "user-uploads", "path": "any-user/p/a.png"},
        )

        assert response.status_code == 200
        assert response.json()["expiresIn"] == 300

    @pytest.mark.asyncio
    async def test_max_expiry(self, async_client: AsyncClient, supabase):
        ok = await async_client.post(
            "/api/signed-urls/external",
            json={"bucket": "user-uploads", "path": "u/p/a.png", "expiresIn": 600},
        )
        too_long = await async_client.post(
            "/api/signed-urls/external",
            json={"bucket": "user-uploads", "path": "u/p/a.png", "expiresIn": 601},
        )

        assert ok.status_code == 200
        assert too_long.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_fields(self, async_client: AsyncClient, supabase):
        response = await async_client.post("/api/signed-urls/external", json={"bucket": "user-uploads"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"
