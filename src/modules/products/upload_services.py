"""Staff image uploads to the CDN.

The uploaded file is checked against the configured MIME allow-list and
size cap before it is handed to the storage adapter.  The returned URL is
what a client then attaches to a product as an image.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Sequence

import structlog
from django.conf import settings

from modules.products.dtos import UploadOutputDTO
from modules.products.exceptions import (
    FileTooLarge,
    InvalidFileType,
    InvalidUploadData,
    NoFileProvided,
)
from modules.products.validators import validate_upload_folder

if TYPE_CHECKING:
    from modules.products.storage import StorageService

logger = structlog.get_logger(__name__)

BYTES_PER_MB = 1024 * 1024


class UploadService:
    def __init__(
        self,
        storage: StorageService,
        allowed_types: Optional[Sequence[str]] = None,
        max_size_mb: Optional[int] = None,
    ) -> None:
        self._storage = storage
        self._allowed_types = tuple(
            allowed_types if allowed_types is not None else settings.ALLOWED_UPLOAD_TYPES
        )
        self._max_size_mb = max_size_mb if max_size_mb is not None else settings.MAX_UPLOAD_SIZE_MB

    def upload_image(self, file: Any, folder: Any = None) -> UploadOutputDTO:
        """Store one uploaded file under the optional *folder*.

        Raises:
            NoFileProvided: *file* is missing.
            InvalidFileType: the MIME type is not allowed.
            FileTooLarge: the file exceeds ``MAX_UPLOAD_SIZE_MB``.
            InvalidUploadData: empty file or malformed folder name.
            UploadFailed: the CDN rejected the upload.
        """
        if file is None:
            raise NoFileProvided(field="file")

        mime_type = getattr(file, "content_type", None) or ""
        if mime_type not in self._allowed_types:
            raise InvalidFileType(f"File type {mime_type or 'unknown'} is not allowed", field="file")

        size = getattr(file, "size", 0) or 0
        if size <= 0:
            raise InvalidUploadData("File is empty", field="file")
        if size > self._max_size_mb * BYTES_PER_MB:
            raise FileTooLarge(
                f"File size exceeds maximum allowed size of {self._max_size_mb} MB",
                field="file",
            )

        folder = validate_upload_folder(folder)
        result = self._storage.upload(file, folder)
        logger.info(
            "upload.stored",
            public_id=result.public_id,
            size=result.size,
            mime_type=mime_type,
        )
        return UploadOutputDTO(
            url=result.url,
            filename=result.public_id,
            size=result.size,
            mime_type=mime_type,
        )
