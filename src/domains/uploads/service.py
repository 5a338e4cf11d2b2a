import hashlib
import logging
from typing import Optional

from fastapi import UploadFile
from prisma.models import User

from prisma import Prisma
from src.core.settings import settings
from src.core.storage import StorageService
from src.domains.uploads.models import DocumentUploadResponse, FileUrlResponse
from src.shared.exceptions import (
    InvalidDataError,
    PayloadTooLargeError,
    ResourceNotFoundError,
    StorageNotConfiguredError,
)

logger = logging.getLogger(__name__)

GROUP_DOC_SCOPE = "group-doc"
SIGNED_URL_TTL_SECONDS = 3600
ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "application/pdf": "pdf",
}


def require_storage(storage: Optional[StorageService]) -> StorageService:
    if storage is None:
        raise StorageNotConfiguredError()
    return storage


def validate_upload(content_type: Optional[str], size: int) -> str:
    """Return the file extension for an accepted upload."""
    extension = ALLOWED_CONTENT_TYPES.get(content_type or "")
    if not extension:
        raise InvalidDataError("Only JPEG, PNG and PDF files are allowed")
    if size == 0:
        raise InvalidDataError("Uploaded file is empty")
    if size > settings.MAX_UPLOAD_BYTES:
        raise PayloadTooLargeError(
            f"File exceeds the {settings.MAX_UPLOAD_BYTES // 1024} KB limit"
        )
    return extension


async def upload_group_document(
    storage: Optional[StorageService], file: UploadFile, user: User
) -> DocumentUploadResponse:
    """Store a registration document and report what registration should record."""
    storage = require_storage(storage)

    # One byte past the limit is enough to detect an oversize file
    content = await file.read(settings.MAX_UPLOAD_BYTES + 1)
    extension = validate_upload(file.content_type, len(content))

    path = StorageService.build_path(GROUP_DOC_SCOPE, user.id, extension)
    stored_path = await storage.upload_file(content, path, file.content_type or "")
    logger.info(f"Group document uploaded by {user.id}: {stored_path} ({len(content)} bytes)")

    return DocumentUploadResponse(
        path=stored_path,
        filename=file.filename or path.rsplit("/", 1)[-1],
        content_type=file.content_type or "",
        size_bytes=len(content),
        checksum=hashlib.sha256(content).hexdigest(),
    )


async def get_document_url(
    db: Prisma, storage: Optional[StorageService], document_id: str
) -> FileUrlResponse:
    storage = require_storage(storage)
    document = await db.document.find_unique(where={"id": document_id})
    if not document:
        raise ResourceNotFoundError("Document")

    url = await storage.get_file_url(document.url, SIGNED_URL_TTL_SECONDS)
    return FileUrlResponse(url=url, expires_in=SIGNED_URL_TTL_SECONDS)
