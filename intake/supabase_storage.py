"""
Supabase Storage for project photos.
Saves files to the 'project-images' bucket under public/<timestamp>-<sanitized name>.
"""

import re
import time
import logging
import unicodedata
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from storage3.exceptions import StorageApiError

from intake.config import BUCKET_NAME
from intake.errors import BucketNotFoundError, UploadError
from intake.schema import Attachment

logger = logging.getLogger(__name__)

MAX_WORKERS = 5


def sanitize_file_name(name: str) -> str:
    """
    Make a filename safe for a storage path.

    Examples:
        "Fachada Norte.jpg" -> "Fachada_Norte.jpg"
        "situação (1).png" -> "situacao__1_.png"
    """
    decomposed = unicodedata.normalize("NFD", name)
    without_accents = re.sub(r"[\u0300-\u036f]", "", decomposed)
    underscored = re.sub(r"\s+", "_", without_accents)
    return re.sub(r"[^\w.-]", "_", underscored, flags=re.ASCII)


def build_storage_path(filename: str, timestamp_ms: Optional[int] = None) -> str:
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"public/{timestamp_ms}-{sanitize_file_name(filename)}"


def _is_bucket_missing(error: Exception) -> bool:
    message = f"{getattr(error, 'message', '')} {error}".lower()
    return "bucket not found" in message


class ImageStorage:
    """Uploads attachments and resolves their public URLs."""

    def __init__(self, client, bucket: str = BUCKET_NAME):
        self.client = client
        self.bucket = bucket

    def upload_image(self, attachment: Attachment, timestamp_ms: Optional[int] = None) -> str:
        """
        Upload one attachment and return its public URL.

        Raises:
            BucketNotFoundError: if the bucket has not been created in Supabase
            UploadError: if the upload or the public URL lookup fails
        """
        file_path = build_storage_path(attachment.filename, timestamp_ms)
        bucket = self.client.storage.from_(self.bucket)

        try:
            bucket.upload(
                path=file_path,
                file=attachment.data,
                file_options={"content-type": attachment.mimetype or "application/octet-stream"},
            )
        except StorageApiError as e:
            logger.error(f"❌ Error uploading image {attachment.filename}: {e}")
            if _is_bucket_missing(e):
                raise BucketNotFoundError(attachment.filename, self.bucket) from e
            raise UploadError(attachment.filename) from e
        except Exception as e:
            logger.error(f"❌ Error uploading image {attachment.filename}: {e}", exc_info=True)
            raise UploadError(attachment.filename) from e

        try:
            public_url = bucket.get_public_url(file_path)
        except Exception as e:
            logger.error(f"❌ Error getting public URL for {file_path}: {e}")
            raise UploadError(
                attachment.filename,
                f"Falha ao obter URL pública para a imagem: {attachment.filename}",
            ) from e

        if not public_url:
            raise UploadError(
                attachment.filename,
                f"Falha ao obter URL pública para a imagem: {attachment.filename}",
            )

        logger.info(f"📤 Uploaded {attachment.filename} -> {file_path}")
        return str(public_url)

    def upload_images(self, attachments: Sequence[Attachment]) -> List[str]:
        """
        Upload every attachment concurrently.

        Returns:
            Public URLs in the same order as attachments ([] with no network call when empty)
        """
        attachments = list(attachments or [])
        if not attachments:
            return []

        with ThreadPoolExecutor(max_workers=min(MAX_WORKERS, len(attachments))) as executor:
            return list(executor.map(self.upload_image, attachments))
