"""
Tests for group document uploads and signed URLs in src/domains/uploads/service.py
"""

import hashlib
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi import UploadFile

from src.core.settings import settings
from src.core.storage import StorageService
from src.domains.uploads.service import (
    SIGNED_URL_TTL_SECONDS,
    get_document_url,
    upload_group_document,
    validate_upload,
)
from src.shared.exceptions import (
    InvalidDataError,
    PayloadTooLargeError,
    ResourceNotFoundError,
    StorageNotConfiguredError,
)
from tests.fixtures.relief_group_fixtures import make_document


@pytest.fixture
def mock_storage() -> Mock:
    storage = Mock(spec=StorageService)
    storage.upload_file = AsyncMock(side_effect=lambda content, path, ctype: path)
    storage.get_file_url = AsyncMock(return_value="https://storage.example/signed")
    return storage


def make_upload(
    content: bytes, content_type: str = "application/pdf", filename: str = "cert.pdf"
) -> Mock:
    upload = Mock(spec=UploadFile)
    upload.content_type = content_type
    upload.filename = filename
    upload.read = AsyncMock(return_value=content)
    return upload


class TestValidateUpload:
    @pytest.mark.parametrize(
        "content_type,extension",
        [("image/jpeg", "jpg"), ("image/png", "png"), ("application/pdf", "pdf")],
    )
    def test_allowed_types(self, content_type, extension):
        assert validate_upload(content_type, 1024) == extension

    def test_rejects_other_types(self):
        with pytest.raises(InvalidDataError):
            validate_upload("application/zip", 1024)

    def test_rejects_empty_file(self):
        with pytest.raises(InvalidDataError) as exc_info:
            validate_upload("image/png", 0)

        assert exc_info.value.detail == "Uploaded file is empty"

    def test_rejects_oversize_file(self):
        with pytest.raises(PayloadTooLargeError):
            validate_upload("image/png", settings.MAX_UPLOAD_BYTES + 1)

    def test_accepts_file_at_limit(self):
        assert validate_upload("image/png", settings.MAX_UPLOAD_BYTES) == "png"


class TestUploadGroupDocument:
    @pytest.mark.asyncio
    async def test_upload_returns_path_checksum_and_size(
        self, mock_storage: Mock, mock_group_rep_user: Mock
    ):
        content = b"%PDF-1.4 registration certificate"

        result = await upload_group_document(
            mock_storage, make_upload(content), mock_group_rep_user
        )

        assert result.path.startswith("group-doc/rep-user-id-1/")
        assert result.path.endswith(".pdf")
        assert result.filename == "cert.pdf"
        assert result.size_bytes == len(content)
        assert result.checksum == hashlib.sha256(content).hexdigest()
        mock_storage.upload_file.assert_called_once()

    @pytest.mark.asyncio
    async def test_reads_one_byte_past_limit(
        self, mock_storage: Mock, mock_group_rep_user: Mock
    ):
        upload = make_upload(b"x" * (settings.MAX_UPLOAD_BYTES + 1))

        with pytest.raises(PayloadTooLargeError):
            await upload_group_document(mock_storage, upload, mock_group_rep_user)

        upload.read.assert_called_once_with(settings.MAX_UPLOAD_BYTES + 1)
        mock_storage.upload_file.assert_not_called()

    @pytest.mark.asyncio
    async def test_storage_not_configured(self, mock_group_rep_user: Mock):
        with pytest.raises(StorageNotConfiguredError):
            await upload_group_document(
                None, make_upload(b"data"), mock_group_rep_user
            )


class TestGetDocumentUrl:
    @pytest.mark.asyncio
    async def test_signed_url_for_document(self, mock_prisma: Mock, mock_storage: Mock):
        mock_prisma.document.find_unique.return_value = make_document()

        result = await get_document_url(mock_prisma, mock_storage, "doc-id-1")

        assert result.url == "https://storage.example/signed"
        assert result.expires_in == SIGNED_URL_TTL_SECONDS
        mock_storage.get_file_url.assert_called_once_with(
            "group-doc/rep-user-id-1/abc.pdf", SIGNED_URL_TTL_SECONDS
        )

    @pytest.mark.asyncio
    async def test_unknown_document(self, mock_prisma: Mock, mock_storage: Mock):
        mock_prisma.document.find_unique.return_value = None

        with pytest.raises(ResourceNotFoundError):
            await get_document_url(mock_prisma, mock_storage, "nope")
