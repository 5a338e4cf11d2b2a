import logging
import secrets
from datetime import datetime, timezone
from typing import Optional

from supabase import Client, create_client

from src.core.settings import settings
from src.shared.exceptions import StorageError

logger = logging.getLogger(__name__)


class StorageService:
    """
    Supabase storage service for relief group documents.
    Manages the private documents bucket (ID proofs, registration certificates).
    """

    def __init__(self, client: Optional[Client] = None) -> None:
        if client is None:
            if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
                raise ValueError(
                    "Supabase configuration is required for storage service"
                )
            client = create_client(
                settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY
            )

        self.client: Client = client
        self.bucket_name = settings.DOCUMENTS_BUCKET

    @staticmethod
    def build_path(scope: str, owner_id: str, extension: str) -> str:
        """Build `<scope>/<owner>/<timestamp>_<random>.<ext>`."""
        timestamp = int(datetime.now(timezone.utc).timestamp() * 1000)
        suffix = secrets.token_hex(4)
        return f"{scope}/{owner_id}/{timestamp}_{suffix}.{extension}"

    async def upload_file(
        self, file_content: bytes, storage_path: str, content_type: str
    ) -> str:
        """
        Upload a file to the documents bucket.

        Args:
            file_content: The file content as bytes
            storage_path: Destination path inside the bucket
            content_type: MIME type of the file

        Returns:
            The storage path of the uploaded file

        Raises:
            StorageError: If upload fails
        """
        try:
            self.client.storage.from_(self.bucket_name).upload(
                path=storage_path,
                file=file_content,
                file_options={
                    "content-type": content_type,
                    "cache-control": "3600",
                    "upsert": "false",
                },
            )
        except Exception as e:
            logger.error(f"Upload of {storage_path} failed: {e}")
            raise StorageError(f"Failed to upload file to storage: {str(e)}")

        return storage_path

    async def get_file_url(self, storage_path: str, expires_in: int = 3600) -> str:
        """
        Get a signed URL for a private document.

        Args:
            storage_path: The storage path of the file
            expires_in: URL expiration time in seconds (default: 1 hour)

        Raises:
            StorageError: If URL generation fails
        """
        try:
            result = self.client.storage.from_(self.bucket_name).create_signed_url(
                storage_path, expires_in
            )
        except Exception as e:
            logger.error(f"Signed URL for {storage_path} failed: {e}")
            raise StorageError(f"Failed to generate file URL: {str(e)}")

        signed_url = result.get("signedURL") or result.get("signedUrl")
        if not signed_url:
            raise StorageError("Storage did not return a signed URL")
        return str(signed_url)


# Global storage service instance
storage_service = (
    StorageService()
    if (settings.SUPABASE_URL and settings.SUPABASE_SERVICE_ROLE_KEY)
    else None
)


def get_storage() -> Optional[StorageService]:
    """Storage dependency; None when Supabase is not configured."""
    return storage_service
