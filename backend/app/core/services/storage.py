from typing import Optional
import time
import uuid

from supabase import Client

from app.core.config import settings
from app.core.exceptions import UploadFailed
from app.core.logging import get_logger

logger = get_logger()


def build_document_path(folder: str, filename: str) -> str:
    """
    ``{folder}/{ms-timestamp}-{uuid4}.{ext}``

    Unique without coordination; identical files still get distinct objects.
    """
    extension = filename.split(".")[-1]
    return f"{folder}/{int(time.time() * 1000)}-{uuid.uuid4()}.{extension}"


class DocumentStorageService:
    """
    Supabase Storage wrapper for verification documents.

    Objects are never overwritten (``upsert: false``) and are not removed
    when a later database write fails.
    """

    def __init__(self, client: Client, bucket_name: Optional[str] = None):
        self.client = client
        self.bucket_name = bucket_name or settings.DOCUMENTS_BUCKET

    def _bucket(self):
        return self.client.storage.from_(self.bucket_name)

    async def upload(
        self, file_content: bytes, path: str, content_type: Optional[str] = None
    ) -> str:
        """
        Upload file to the documents bucket.
        Returns: public URL
        """
        try:
            self._bucket().upload(
                path=path,
                file=file_content,
                file_options={
                    "content-type": content_type or "application/octet-stream",
                    "cache-control": settings.STORAGE_CACHE_CONTROL,
                    "upsert": "false",
                },
            )
        except Exception as e:
            logger.error(f"Upload failed for {path}: {e}")
            raise UploadFailed(details=str(e))

        return self.get_public_url(path)

    def get_public_url(self, path: str) -> str:
        """Get public URL for a file"""
        return self._bucket().get_public_url(path)
