"""
WordShelf Backend: Image Blob Service Tests
============================================

What we test:
    ✅ Path scheme <prefix>/<ms timestamp>_<file name> and public URL
    ✅ Uploads never overwrite an existing path
    ✅ Extension, emptiness and size checks raise UploadFailed
    ✅ Path traversal rejected by LocalBlobStorage.resolve()
    ✅ Supabase Storage request shape
"""

from pathlib import Path

import httpx
import pytest

from wordshelf.exceptions import UploadFailed, ValidationFailed
from wordshelf.services.blob_service import (
    ImageUploader,
    LocalBlobStorage,
    SupabaseBlobStorage,
)

NOW = 1718000000.0


class TestImageUploaderLocal:

    @pytest.fixture(autouse=True)
    def _storage(self, temp_storage):
        self.root = Path(temp_storage)
        self.storage = LocalBlobStorage(temp_storage, "http://test")
        self.uploader = ImageUploader(
            self.storage, prefix="words", max_file_size=1024, clock=lambda: NOW
        )

    @pytest.mark.asyncio
    async def test_upload_writes_file_and_returns_public_url(self, sample_image_bytes):
        url = await self.uploader.upload(sample_image_bytes, "nihao.png")

        assert url == "http://test/files/words/1718000000000_nihao.png"
        stored = self.root / "words" / "1718000000000_nihao.png"
        assert stored.read_bytes() == sample_image_bytes

    def test_path_uses_base_name_only(self):
        assert self.uploader.build_path("C:\\Users\\me\\Pictures\\cat.jpg") == "words/1718000000000_cat.jpg"
        assert self.uploader.build_path("../../etc/cat.jpg") == "words/1718000000000_cat.jpg"

    @pytest.mark.asyncio
    async def test_public_url_is_quoted(self, sample_image_bytes):
        url = await self.uploader.upload(sample_image_bytes, "my cat.png")
        assert url == "http://test/files/words/1718000000000_my%20cat.png"

    @pytest.mark.asyncio
    async def test_existing_path_is_never_overwritten(self, sample_image_bytes):
        await self.uploader.upload(sample_image_bytes, "nihao.png")

        with pytest.raises(UploadFailed):
            await self.uploader.upload(b"different bytes", "nihao.png")

        stored = self.root / "words" / "1718000000000_nihao.png"
        assert stored.read_bytes() == sample_image_bytes

    @pytest.mark.asyncio
    async def test_unsupported_extension(self, sample_image_bytes):
        with pytest.raises(UploadFailed) as exc_info:
            await self.uploader.upload(sample_image_bytes, "notes.pdf")
        assert ".pdf" in exc_info.value.message
        assert not (self.root / "words").exists()

    @pytest.mark.asyncio
    async def test_extension_check_is_case_insensitive(self, sample_image_bytes):
        url = await self.uploader.upload(sample_image_bytes, "PHOTO.JPG")
        assert url.endswith("_PHOTO.JPG")

    @pytest.mark.asyncio
    async def test_empty_file(self):
        with pytest.raises(UploadFailed):
            await self.uploader.upload(b"", "empty.png")

    @pytest.mark.asyncio
    async def test_oversized_file(self):
        with pytest.raises(UploadFailed) as exc_info:
            await self.uploader.upload(b"x" * 1025, "big.png")
        assert exc_info.value.context["max_size"] == 1024

    @pytest.mark.asyncio
    async def test_unstorable_file_name_is_upload_failed(self, sample_image_bytes):
        with pytest.raises(UploadFailed) as exc_info:
            await self.uploader.upload(sample_image_bytes, "a\x00b.png")
        assert exc_info.value.context["os_error"] == "ValueError"

    def test_resolve_rejects_traversal(self):
        with pytest.raises(ValidationFailed):
            self.storage.resolve("../outside.png")

    def test_resolve_inside_root(self):
        assert self.storage.resolve("quotes/a.png") == self.root.resolve() / "quotes" / "a.png"


class TestSupabaseBlobStorage:

    def setup_method(self):
        self.requests = []
        self.status = 200

    def _handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, json={"Key": "quote-images/x"})

    def _uploader(self):
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(self._handler),
            base_url="https://project.supabase.co",
        )
        storage = SupabaseBlobStorage(client, bucket="quote-images", project_url="https://project.supabase.co")
        return ImageUploader(storage, prefix="quotes", max_file_size=1024, clock=lambda: NOW)

    @pytest.mark.asyncio
    async def test_upload_request_and_public_url(self, sample_image_bytes):
        url = await self._uploader().upload(sample_image_bytes, "sunrise.png")

        request = self.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/storage/v1/object/quote-images/quotes/1718000000000_sunrise.png"
        assert request.headers["x-upsert"] == "false"
        assert request.headers["content-type"] == "image/png"
        assert request.headers["cache-control"] == "max-age=3600"
        assert request.content == sample_image_bytes
        assert url == (
            "https://project.supabase.co/storage/v1/object/public/"
            "quote-images/quotes/1718000000000_sunrise.png"
        )

    @pytest.mark.asyncio
    async def test_duplicate_path_is_upload_failed(self, sample_image_bytes):
        self.status = 409
        with pytest.raises(UploadFailed) as exc_info:
            await self._uploader().upload(sample_image_bytes, "sunrise.png")
        assert exc_info.value.context["bucket"] == "quote-images"
