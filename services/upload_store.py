"""
Temporary storage for uploaded documents.

Files are written to the upload folder under unique names so concurrent
requests never collide, and removed once the request (including its
background notification) is done. Removal is best-effort and idempotent.
"""

from __future__ import annotations

import secrets
import time
from pathlib import Path
from typing import Iterable

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from logging_config import get_logger
from models.order import UploadedFile


logger = get_logger(__name__)

MAX_FILENAME_LENGTH = 255


class UploadStore:
    """Saves multipart file parts to disk and deletes them again."""

    def __init__(self, upload_folder: str | Path):
        self.upload_folder = Path(upload_folder)
        self.upload_folder.mkdir(parents=True, exist_ok=True)

    def _unique_name(self, filename: str) -> str:
        safe_name = secure_filename(filename) or "upload"
        prefix = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
        # Keep the stored name within common filesystem limits
        return f"{prefix}-{safe_name}"[:MAX_FILENAME_LENGTH]

    def save(self, file_storage: FileStorage) -> UploadedFile:
        """
        Store one multipart file part.

        Args:
            file_storage: werkzeug file from ``request.files``

        Returns:
            UploadedFile pointing at the stored copy
        """
        original_name = file_storage.filename or "upload"
        stored_path = self.upload_folder / self._unique_name(original_name)

        file_storage.save(stored_path)
        size = stored_path.stat().st_size

        logger.info(f"Stored upload '{original_name}' ({size} bytes) as {stored_path.name}")
        return UploadedFile(
            filename=original_name,
            mimetype=file_storage.mimetype or "application/octet-stream",
            size=size,
            path=stored_path,
        )

    def save_all(self, file_storages: Iterable[FileStorage]) -> list[UploadedFile]:
        """Store several parts; if one fails, the ones already stored are removed."""
        stored: list[UploadedFile] = []
        try:
            for file_storage in file_storages:
                stored.append(self.save(file_storage))
        except Exception:
            self.discard(stored)
            raise
        return stored

    def discard(self, uploads: Iterable[UploadedFile]) -> None:
        """
        Delete stored uploads.

        Already-missing files count as deleted. Other errors are logged and
        swallowed so cleanup never masks the outcome of the request.
        """
        for upload in uploads:
            try:
                Path(upload.path).unlink(missing_ok=True)
                logger.debug(f"Removed upload {Path(upload.path).name}")
            except OSError as exc:
                logger.warning(f"Could not remove upload {upload.path}: {exc}")
