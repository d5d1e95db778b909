"""Product image service layer.

Keeps at most one primary image per product: whenever an image is added
or updated with ``is_primary=True`` the existing primary is cleared and
the write applied inside one store transaction that first row-locks the
parent product, so two concurrent swaps on one product serialize instead
of colliding on the single-primary index.  Deleting an image
removes the row first and then asks the CDN to drop the file; CDN
failures are logged and ignored.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Type

import structlog
from django.db.models import Q

from modules.core.exceptions import NotFound
from modules.core.models import LIVE
from modules.products.exceptions import (
    InvalidProductImageData,
    ProductImageNotFound,
    ProductNotFound,
)
from modules.products.models import ProductImage
from modules.products.storage import extract_public_id
from modules.products.validators import validate_uuid

if TYPE_CHECKING:
    from modules.products.dtos import CreateProductImageDTO, UpdateProductImageDTO
    from modules.products.repositories.interfaces import (
        IProductImageRepository,
        IProductRepository,
    )
    from modules.products.storage import StorageService

logger = structlog.get_logger(__name__)


class ProductImageService:
    """Application service for product images.

    Receives the image and product repositories plus the CDN adapter via
    constructor injection.
    """

    def __init__(
        self,
        repository: IProductImageRepository,
        product_repository: IProductRepository,
        storage: StorageService,
    ) -> None:
        self._repo = repository
        self._products = product_repository
        self._storage = storage

    def list_images(self, product_id: str) -> List[ProductImage]:
        """Images of a Live product, in display order.

        Raises:
            ProductNotFound: the product is missing or soft-deleted.
        """
        product_id = self._product_uuid(product_id)
        self._live_product(product_id)
        return self._repo.find_many(
            Q(product_id=product_id),
            order_by=("sort_order", "created_at"),
        )

    def add_image(self, product_id: str, dto: CreateProductImageDTO) -> ProductImage:
        """Attach an image to a Live product.

        Raises:
            ProductNotFound: the product is missing or soft-deleted.
        """
        product_id = self._product_uuid(product_id)
        self._live_product(product_id)

        data = {"product_id": product_id, **dto.model_dump()}
        if dto.is_primary:

            def swap_primary() -> ProductImage:
                self._lock_live_product(product_id, ProductNotFound)
                self._repo.clear_primary(product_id)
                return self._repo.insert(data)

            image = self._repo.run_transaction(swap_primary)
        else:
            image = self._repo.insert(data)

        logger.info(
            "product_image.added",
            product_id=str(product_id),
            image_id=str(image.id),
            is_primary=image.is_primary,
        )
        return image

    def update_image(
        self, product_id: str, image_id: str, dto: UpdateProductImageDTO
    ) -> ProductImage:
        """Apply a partial update to an image owned by the product.

        Raises:
            ProductImageNotFound: no such image on a Live product.
        """
        product_id = self._product_uuid(product_id)
        image_id = validate_uuid(image_id, "imageId", InvalidProductImageData)
        self._owned_image(product_id, image_id)

        patch = dto.changes()
        if patch.get("is_primary") is True:

            def swap_primary() -> ProductImage:
                self._lock_live_product(product_id, ProductImageNotFound)
                self._repo.clear_primary(product_id)
                return self._repo.update(image_id, patch)

            image = self._repo.run_transaction(swap_primary)
        else:
            image = self._repo.update(image_id, patch)

        logger.info(
            "product_image.updated",
            product_id=str(product_id),
            image_id=str(image_id),
            fields=sorted(patch),
        )
        return image

    def delete_image(self, product_id: str, image_id: str) -> None:
        """Remove the image row, then the CDN file on a best-effort basis.

        Raises:
            ProductImageNotFound: no such image on a Live product.
        """
        product_id = self._product_uuid(product_id)
        image_id = validate_uuid(image_id, "imageId", InvalidProductImageData)
        image = self._owned_image(product_id, image_id)

        self._repo.delete(image_id)
        log = logger.bind(product_id=str(product_id), image_id=str(image_id))
        log.info("product_image.deleted")

        public_id = extract_public_id(image.url)
        if public_id is None:
            log.info("product_image.cdn_skip", url=image.url)
            return
        try:
            self._storage.delete(public_id)
        except Exception as exc:
            log.error(
                "product_image.cdn_delete_failed",
                url=image.url,
                public_id=public_id,
                error=str(exc),
            )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _product_uuid(product_id: str) -> str:
        return validate_uuid(product_id, "productId", InvalidProductImageData)

    def _owned_image(self, product_id: str, image_id: str) -> ProductImage:
        image = self._repo.find_one(
            Q(pk=image_id, product_id=product_id, product__deleted_at__isnull=True)
        )
        if image is None:
            raise ProductImageNotFound()
        return image

    def _live_product(self, product_id: str) -> None:
        if self._products.find_one(LIVE & Q(pk=product_id)) is None:
            raise ProductNotFound()

    def _lock_live_product(self, product_id: str, missing: Type[NotFound]) -> None:
        """Row-lock the parent so concurrent primary swaps run one at a time."""
        if self._products.lock(LIVE & Q(pk=product_id)) is None:
            raise missing()
