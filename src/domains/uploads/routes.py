from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile, status
from prisma.models import User

from prisma import Prisma
from src.core.database import get_db
from src.core.storage import StorageService, get_storage
from src.domains.auth.dependencies import get_current_user
from src.domains.uploads.models import DocumentUploadResponse, FileUrlResponse
from src.domains.uploads.service import get_document_url, upload_group_document
from src.shared.permissions import Permission, require_permission

router = APIRouter(prefix="/uploads", tags=["Uploads"])


@router.post(
    "/group-docs",
    response_model=DocumentUploadResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="uploadGroupDocument",
)
async def upload_group_doc(
    file: UploadFile = File(..., description="JPEG, PNG or PDF, at most 300 KB"),
    user: User = Depends(get_current_user),
    storage: Optional[StorageService] = Depends(get_storage),
) -> DocumentUploadResponse:
    """
    Upload a representative ID or organisation certificate.

    The returned path, checksum and size are passed back in the relief
    group registration.
    """
    return await upload_group_document(storage, file, user)


@router.get(
    "/documents/{document_id}/url",
    response_model=FileUrlResponse,
    operation_id="getGroupDocumentUrl",
)
async def group_document_url(
    document_id: str,
    user: User = Depends(require_permission(Permission.VIEW_GROUP_DOCUMENTS)),
    storage: Optional[StorageService] = Depends(get_storage),
    db: Prisma = Depends(get_db),
) -> FileUrlResponse:
    return await get_document_url(db, storage, document_id)
