"""
Storage for uploaded images and videos.

Files are written under ``UPLOAD_DIR/<field>/<unique name><ext>`` and exposed
at ``MEDIA_BASE_URL/<field>/<unique name><ext>``. The rest of the application
only ever deals with the returned URLs.
"""

import os
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from w3pets.utils.config import Settings, get_settings
from w3pets.utils.exceptions import StorageError, ValidationError
from w3pets.utils.logger import get_logger

logger = get_logger(__name__)


ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/gif", "video/mp4", "video/quicktime"}
MAX_FILE_SIZE = 20 * 1024 * 1024  # 20MB


@dataclass
class UploadedFile:
    """A file received in a multipart request, fully read into memory."""
    field: str
    filename: str
    content_type: str
    data: bytes

    @property
    def is_empty(self) -> bool:
        return not self.data


def validate_upload(upload: UploadedFile) -> None:
    """
    Check the content type and size of an uploaded file.

    Raises:
        ValidationError: If the file type is not allowed or the file is too large
    """
    if upload.content_type not in ALLOWED_CONTENT_TYPES:
        raise ValidationError(
            "Invalid file type. Only images and videos are allowed.",
            field=upload.field,
            value=upload.content_type
        )
    if len(upload.data) > MAX_FILE_SIZE:
        raise ValidationError("File exceeds the 20MB size limit", field=upload.field)


class FileStorage:
    """Writes uploads to the local media directory."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.root = Path(settings.upload_dir)
        self.base_url = settings.media_base_url.rstrip("/")

    def put_file(self, upload: UploadedFile) -> str:
        """
        Store an uploaded file.

        Returns:
            Public URL of the stored file

        Raises:
            StorageError: If the file cannot be written
        """
        ext = os.path.splitext(upload.filename or "")[1].lower()
        name = f"{int(time.time() * 1000)}-{secrets.token_hex(6)}{ext}"
        target = self.root / upload.field / name

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(upload.data)
        except OSError as e:
            logger.error(f"Failed to store {upload.field} upload: {e}")
            raise StorageError("Failed to store uploaded file", details={"field": upload.field}) from e

        url = f"{self.base_url}/{upload.field}/{name}"
        logger.debug(f"Stored {upload.field} upload at {target}")
        return url

    def delete_file(self, url: str) -> bool:
        """
        Remove a file previously returned by ``put_file``.

        Returns:
            True if a file was removed
        """
        prefix = f"{self.base_url}/"
        if not url.startswith(prefix):
            logger.warning(f"Not a stored media URL: {url}")
            return False

        target = (self.root / url[len(prefix):]).resolve()
        if self.root.resolve() not in target.parents:
            logger.warning(f"Refusing to delete outside the media directory: {url}")
            return False

        try:
            target.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Failed to delete stored file {target}: {e}")
            return False

        logger.debug(f"Deleted stored file {target}")
        return True


_file_storage: Optional[FileStorage] = None


def get_file_storage() -> FileStorage:
    """Get or create global file storage."""
    global _file_storage
    if _file_storage is None:
        _file_storage = FileStorage()
    return _file_storage
