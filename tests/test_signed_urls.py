"""
Unit tests for storage-path detection and recursive signed URL conversion.

Tests:
- is_storage_path heuristics
- convert_storage_paths_to_signed_urls over nested payloads
- Fail-open behavior and idempotence
- generate_external_signed_url validation against the storage backend
"""

import pytest
from pydantic import BaseModel

from momentful.errors import StorageError
from momentful.services.signed_urls import convert_storage_paths_to_signed_urls, is_storage_path
from momentful.services.storage import generate_external_signed_url


class RecordingSigner:
    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.calls: list[tuple[str, str, int | None]] = []
        self.fail_on = fail_on or set()

    async def __call__(self, bucket: str, path: str, expires_in: int | None) -> str:
        self.calls.append((bucket, path, expires_in))
        if path in self.fail_on:
            raise StorageError("Bucket not found", 404)
        return f"https://signed.test/{bucket}/{path}"


class TestIsStoragePath:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("user-1/project-1/photo.png", True),
            ("a/b/c/d.mp4", True),
            ("user-1/photo.png", False),
            ("photo.png", False),
            ("", False),
            ("https://cdn.test/a/b/c.png", False),
            ("http://cdn.test/a/b/c.png", False),
        ],
    )
    def test_classification(self, value, expected):
        assert is_storage_path(value) is expected


class TestConvertStoragePaths:
    @pytest.mark.asyncio
    async def test_nested_payload(self):
        signer = RecordingSigner()
        payload = {
            "prompt": "make it blue",
            "input_image": "u1/p1/source.png",
            "seed": 42,
            "flags": [True, None, "u1/p1/mask.png"],
            "nested": {"images": ["https://cdn.test/x.png", "u1/p1/ref.jpg"]},
        }

        result = await convert_storage_paths_to_signed_urls(payload, signer=signer)

        assert result == {
            "prompt": "make it blue",
            "input_image": "https://signed.test/user-uploads/u1/p1/source.png",
            "seed": 42,
            "flags": [True, None, "https://signed.test/user-uploads/u1/p1/mask.png"],
            "nested": {
                "images": [
                    "https://cdn.test/x.png",
                    "https://signed.test/user-uploads/u1/p1/ref.jpg",
                ]
            },
        }
        assert [c[1] for c in signer.calls] == ["u1/p1/source.png", "u1/p1/mask.png", "u1/p1/ref.jpg"]

    @pytest.mark.asyncio
    async def test_input_not_mutated(self):
        payload = {"image": "u1/p1/a.png"}
        await convert_storage_paths_to_signed_urls(payload, signer=RecordingSigner())
        assert payload == {"image": "u1/p1/a.png"}

    @pytest.mark.asyncio
    async def test_scalars_pass_through(self):
        signer = RecordingSigner()
        for value in (None, 3, 2.5, False, "plain text", "one/slash"):
            assert await convert_storage_paths_to_signed_urls(value, signer=signer) == value
        assert signer.calls == []

    @pytest.mark.asyncio
    async def test_failed_signing_keeps_path(self):
        signer = RecordingSigner(fail_on={"u1/p1/missing.png"})
        result = await convert_storage_paths_to_signed_urls(
            ["u1/p1/missing.png", "u1/p1/ok.png"], signer=signer,
        )
        assert result == ["u1/p1/missing.png", "https://signed.test/user-uploads/u1/p1/ok.png"]

    @pytest.mark.asyncio
    async def test_idempotent_on_own_output(self):
        signer = RecordingSigner()
        once = await convert_storage_paths_to_signed_urls({"a": "u1/p1/x.png"}, signer=signer)
        twice = await convert_storage_paths_to_signed_urls(once, signer=signer)
        assert twice == once
        assert len(signer.calls) == 1

    @pytest.mark.asyncio
    async def test_pydantic_model_dumped(self):
        class Body(BaseModel):
            prompt_image: str

        result = await convert_storage_paths_to_signed_urls(
            Body(prompt_image="u1/p1/x.png"), signer=RecordingSigner(),
        )
        assert result == {"prompt_image": "https://signed.test/user-uploads/u1/p1/x.png"}

    @pytest.mark.asyncio
    async def test_bucket_and_expiry_forwarded(self):
        signer = RecordingSigner()
        await convert_storage_paths_to_signed_urls(
            "u1/p1/x.png", bucket="edited-images", expires_in=120, signer=signer,
        )
        assert signer.calls == [("edited-images", "u1/p1/x.png", 120)]


class TestGenerateExternalSignedUrl:
    @pytest.mark.asyncio
    async def test_default_expiry(self, supabase):
        url = await generate_external_signed_url("user-uploads", "u1/p1/x.png")
        assert url.startswith("https://storage.test/user-uploads/u1/p1/x.png")
        assert supabase.storage.signed == [("user-uploads", "u1/p1/x.png", 300)]

    @pytest.mark.asyncio
    async def test_invalid_bucket(self, supabase):
        with pytest.raises(StorageError, match="Invalid bucket"):
            await generate_external_signed_url("private-stuff", "u1/p1/x.png")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("expires_in", [0, -5, 601])
    async def test_invalid_expiry(self, supabase, expires_in):
        with pytest.raises(StorageError, match="Invalid expiry"):
            await generate_external_signed_url("user-uploads", "u1/p1/x.png", expires_in)

    @pytest.mark.asyncio
    async def test_max_expiry_allowed(self, supabase):
        await generate_external_signed_url("user-uploads", "u1/p1/x.png", 600)
        assert supabase.storage.signed[-1][2] == 600

    @pytest.mark.asyncio
    async def test_backend_error_wrapped(self, supabase):
        supabase.storage.sign_error = RuntimeError({"message": "Object not found", "statusCode": 404})
        with pytest.raises(StorageError) as exc_info:
            await generate_external_signed_url("user-uploads", "u1/p1/x.png")
        assert exc_info.value.status_code == 404
        assert "Object not found" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_end_to_end_conversion_uses_storage(self, supabase):
        result = await convert_storage_paths_to_signed_urls({"image": "u1/p1/x.png"})
        assert result["image"].startswith("https://storage.test/user-uploads/u1/p1/x.png")
