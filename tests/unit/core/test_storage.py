"""
Tests for the Supabase storage wrapper in src/core/storage.py
"""

from unittest.mock import Mock

import pytest

from src.core.storage import StorageService
from src.shared.exceptions import StorageError


class TestStorageService:
    @pytest.fixture
    def bucket(self) -> Mock:
        return Mock()

    @pytest.fixture
    def storage(self, bucket: Mock) -> StorageService:
        client = Mock()
        client.storage.from_.return_value = bucket
        return StorageService(client=client)

    def test_build_path_layout(self):
        path = StorageService.build_path("group-doc", "user-1", "pdf")

        scope, owner, filename = path.split("/")
        assert scope == "group-doc"
        assert owner == "user-1"
        assert filename.endswith(".pdf")
        assert "_" in filename

    def test_build_path_is_unique(self):
        first = StorageService.build_path("group-doc", "user-1", "jpg")
        second = StorageService.build_path("group-doc", "user-1", "jpg")
        assert first != second

    @pytest.mark.asyncio
    async def test_upload_file(self, storage: StorageService, bucket: Mock):
        path = await storage.upload_file(b"%PDF", "group-doc/u/1.pdf", "application/pdf")

        assert path == "group-doc/u/1.pdf"
        kwargs = bucket.upload.call_args[1]
        assert kwargs["path"] == "group-doc/u/1.pdf"
        assert kwargs["file"] == b"%PDF"
        assert kwargs["file_options"]["content-type"] == "application/pdf"

    @pytest.mark.asyncio
    async def test_upload_failure_raises_storage_error(
        self, storage: StorageService, bucket: Mock
    ):
        bucket.upload.side_effect = RuntimeError("bucket not found")

        with pytest.raises(StorageError) as exc_info:
            await storage.upload_file(b"x", "a/b/c.jpg", "image/jpeg")

        assert exc_info.value.status_code == 500
        assert "bucket not found" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_get_file_url(self, storage: StorageService, bucket: Mock):
        bucket.create_signed_url.return_value = {"signedURL": "https://signed/url"}

        url = await storage.get_file_url("a/b/c.pdf", expires_in=600)

        assert url == "https://signed/url"
        bucket.create_signed_url.assert_called_once_with("a/b/c.pdf", 600)

    @pytest.mark.asyncio
    async def test_get_file_url_without_url_raises(
        self, storage: StorageService, bucket: Mock
    ):
        bucket.create_signed_url.return_value = {}

        with pytest.raises(StorageError):
            await storage.get_file_url("a/b/c.pdf")
