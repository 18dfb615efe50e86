"""
CrudLab Backend — Upload Temp Storage
======================================

What:  Validates uploaded images and parks them on local disk until the
       media service has pushed them to Cloudinary.
Who:   Called by UserService for avatar and cover-image updates.

Lifecycle of an uploaded file:
    1. Extension check (fast, rejects obviously wrong files)
    2. Size check (empty files and files over MAX_FILE_SIZE are rejected)
    3. Written to <storage_root>/temp/<uuid><ext>
    4. Uploaded to Cloudinary by MediaService
    5. cleanup_file() removes it, whether the upload succeeded or not

Filenames are UUIDs; nothing from the client's filename except the
extension reaches the file system.
"""

import logging
import os
import uuid
from pathlib import Path
from typing import Optional

import aiofiles

from crudlab.config import settings
from crudlab.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}


class FileService:
    """Validation and temp-file lifecycle for image uploads."""

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                         If None, uses settings.storage_root.
        """
        self._storage_root = storage_root

    @property
    def temp_dir(self) -> Path:
        # Resolved per call so tests can point settings.storage_root elsewhere
        return Path(self._storage_root or settings.storage_root).resolve() / "temp"

    def validate_extension(self, filename: str) -> str:
        """Returns the lower-cased extension, or raises ValidationError."""
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or 'none'}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Checks the reported Content-Length and the real byte count.

        Some clients send a Content-Length that does not match the body, so
        both are compared against the limit.
        """
        max_mb = settings.max_file_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(message="Uploaded file is empty.", field="file")

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller image.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    async def store_file(self, content: bytes, extension: str) -> str:
        """Writes `content` to a fresh temp file and returns its absolute path."""
        path = self.temp_dir / f"{uuid.uuid4()}{extension}"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store upload at %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(path), "os_error": str(e)},
            )

        logger.info("Upload stored in temp: %s (%d bytes)", path.name, len(content))
        return str(path)

    async def cleanup_file(self, file_path: str) -> None:
        """
        Remove a temp file. Best effort: a failure is logged, never raised,
        because the caller's response does not depend on it.
        """
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up temp file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))

    async def validate_and_store(
        self,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> str:
        """Cheapest checks first, then the disk write. Returns the temp path."""
        ext = self.validate_extension(filename)
        self.validate_size(content_length, len(content))
        return await self.store_file(content, ext)


file_service = FileService()
