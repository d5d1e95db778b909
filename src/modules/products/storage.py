"""Image CDN collaborator.

``StorageService`` is the port the image service talks to;
``CloudinaryStorage`` implements it with the Cloudinary SDK.  Credentials
come from ``CLOUDINARY_URL`` or the individual ``CLOUDINARY_*`` settings.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, NamedTuple, Optional

import cloudinary
import cloudinary.uploader
import structlog
from django.conf import settings

from modules.products.exceptions import UploadFailed

logger = structlog.get_logger(__name__)

_EXTENSION_RE = re.compile(r"\.[^/.]+$")


class UploadResult(NamedTuple):
    url: str
    public_id: str
    size: int


class StorageService(ABC):
    @abstractmethod
    def upload(
        self, data: Any, folder: Optional[str] = None, filename: Optional[str] = None
    ) -> UploadResult:
        """Store *data* under *folder* and return its public URL."""

    @abstractmethod
    def delete(self, public_id: str) -> None:
        """Remove the object; a missing object is not an error."""


def extract_public_id(url: str) -> Optional[str]:
    """Public id of a CDN URL: the path after ``/upload/<version>/``, minus extension.

    ``https://res.cloudinary.com/demo/image/upload/v17/storefront/products/a.jpg``
    gives ``storefront/products/a``.  Returns ``None`` for URLs that are not
    CDN delivery URLs.
    """
    parts = (url or "").split("/")
    if "upload" not in parts:
        return None
    index = parts.index("upload")
    path = "/".join(parts[index + 2 :])
    if not path:
        return None
    return _EXTENSION_RE.sub("", path)


class CloudinaryStorage(StorageService):
    def __init__(self, root_folder: Optional[str] = None) -> None:
        self._root_folder = root_folder or getattr(
            settings, "CLOUDINARY_ROOT_FOLDER", "storefront"
        )
        cloud_name = getattr(settings, "CLOUDINARY_CLOUD_NAME", "")
        if cloud_name:
            cloudinary.config(
                cloud_name=cloud_name,
                api_key=getattr(settings, "CLOUDINARY_API_KEY", ""),
                api_secret=getattr(settings, "CLOUDINARY_API_SECRET", ""),
                secure=True,
            )

    def upload(
        self, data: Any, folder: Optional[str] = None, filename: Optional[str] = None
    ) -> UploadResult:
        options = {"folder": f"{self._root_folder}/{folder or 'misc'}"}
        if filename:
            options["public_id"] = filename
        try:
            result = cloudinary.uploader.upload(data, **options)
        except Exception as exc:
            logger.error("storage.upload_failed", folder=options["folder"], error=str(exc))
            raise UploadFailed(f"File upload failed: {exc}") from exc
        if not result:
            raise UploadFailed("File upload failed: no result from Cloudinary")
        logger.info("storage.uploaded", public_id=result["public_id"], size=result.get("bytes"))
        return UploadResult(
            url=result["secure_url"],
            public_id=result["public_id"],
            size=result.get("bytes", 0),
        )

    def delete(self, public_id: str) -> None:
        try:
            result = cloudinary.uploader.destroy(public_id)
        except Exception as exc:
            raise UploadFailed(f"File delete failed: {exc}") from exc
        outcome = (result or {}).get("result")
        if outcome not in ("ok", "not found"):
            raise UploadFailed(f"File delete failed: unexpected result {outcome!r}")
        logger.info("storage.deleted", public_id=public_id, result=outcome)
