"""Product service layer (Use Cases).

Orchestrates the catalog rules for the Product aggregate, delegating
persistence to the injected repositories.

Rules enforced here:
- Slugs are allocated by attempting the insert and retrying on a slug
  collision (``camiseta``, ``camiseta-1`` ... ``camiseta-10``).  There is
  no pre-check query, the unique index is the arbiter.
- A price change and its ``PriceHistory`` row commit together or not at
  all; an update that leaves the price untouched writes no history.
- A supplied ``compare_at_price`` must exceed the price in the same
  patch, or the stored price when the patch leaves it alone.
- Only Live products can be read, updated or deleted; only Deleted ones
  can be restored.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, List, Optional

import structlog
from django.db.models import Q

from modules.core.integrity import UniqueViolation
from modules.core.models import DELETED, LIVE
from modules.products.dtos import PaginationMeta, ProductListItemDTO, ProductPage
from modules.products.exceptions import (
    InvalidProductData,
    ProductNotFound,
    ProductSlugAlreadyExists,
)
from modules.products.models import Product
from modules.products.queries import (
    build_ordering,
    build_product_filter,
    fetch_page_and_count,
    page_window,
)
from modules.products.slugs import base_slug, candidate_slugs
from modules.products.tasks import dispatch_view_increment
from modules.products.validators import validate_slug, validate_uuid

if TYPE_CHECKING:
    from modules.products.dtos import CreateProductDTO, ListProductsDTO, UpdateProductDTO
    from modules.products.models import PriceHistory
    from modules.products.repositories.interfaces import (
        IPriceHistoryRepository,
        IProductRepository,
    )

logger = structlog.get_logger(__name__)


class ProductService:
    """Application service for Product use-cases.

    Receives its repositories and the view counter via constructor
    injection (DIP).
    """

    def __init__(
        self,
        repository: IProductRepository,
        price_history_repository: IPriceHistoryRepository,
        view_counter: Callable[[Any], None] = dispatch_view_increment,
    ) -> None:
        self._repo = repository
        self._history = price_history_repository
        self._count_view = view_counter

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_product(self, dto: CreateProductDTO) -> Product:
        """Insert a product, allocating a free slug when none was given.

        Raises:
            ProductSlugAlreadyExists: the explicit slug is taken, every
                candidate slug is taken, or another unique rule rejected
                the row.
        """
        data = dto.to_model_data()
        if dto.slug:
            candidates = iter((dto.slug,))
        else:
            candidates = candidate_slugs(base_slug(dto.title["es"]))

        for slug in candidates:
            try:
                product = self._repo.insert({**data, "slug": slug})
            except UniqueViolation as exc:
                if not exc.involves("slug") or dto.slug:
                    logger.warning(
                        "product.create_conflict",
                        slug=slug,
                        columns=list(exc.columns),
                    )
                    raise ProductSlugAlreadyExists() from exc
                logger.info("product.slug_collision", slug=slug)
                continue
            logger.info("product.created", product_id=str(product.id), slug=slug)
            return product

        logger.warning("product.slug_exhausted", title=dto.title["es"])
        raise ProductSlugAlreadyExists()

    def update_product(
        self,
        id: str,
        dto: UpdateProductDTO,
        changed_by_user_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Product:
        """Apply a partial update; a price change is recorded in the history.

        Raises:
            ProductNotFound: no Live product with this id.
            InvalidProductData: ``compare_at_price`` would not exceed the price.
            ProductSlugAlreadyExists: the new slug belongs to another product.
        """
        id = validate_uuid(id)
        existing = self._repo.find_one(LIVE & _by_id(id))
        if existing is None:
            raise ProductNotFound()

        patch = dto.changes()
        self._check_compare_at_price(existing, patch)

        log = logger.bind(product_id=str(id))
        new_price = patch.get("price")
        price_changed = new_price is not None and Decimal(new_price) != existing.price

        try:
            if price_changed:

                def change_price() -> Product:
                    product = self._repo.update(id, patch)
                    self._history.insert(
                        {
                            "product_id": id,
                            "price": new_price,
                            "changed_by_user_id": changed_by_user_id or None,
                            "reason": reason or None,
                        }
                    )
                    return product

                product = self._repo.run_transaction(change_price)
                log.info(
                    "product.price_changed",
                    old_price=str(existing.price),
                    new_price=str(new_price),
                )
            else:
                product = self._repo.update(id, patch)
        except UniqueViolation as exc:
            if exc.involves("slug"):
                log.warning("product.slug_taken", slug=patch.get("slug"))
                raise ProductSlugAlreadyExists() from exc
            raise

        log.info("product.updated", fields=sorted(patch))
        return product

    def soft_delete_product(self, id: str) -> None:
        """Mark a Live product as Deleted.

        Raises:
            ProductNotFound: missing or already deleted.
        """
        id = validate_uuid(id)
        if self._repo.find_one(LIVE & _by_id(id)) is None:
            raise ProductNotFound()
        self._repo.update(id, {"deleted_at": Product.deletion_timestamp()})
        logger.info("product.soft_deleted", product_id=str(id))

    def restore_product(self, id: str) -> Product:
        """Bring a Deleted product back to Live.

        Raises:
            ProductNotFound: missing or not deleted.
        """
        id = validate_uuid(id)
        if self._repo.find_one(DELETED & _by_id(id)) is None:
            raise ProductNotFound()
        product = self._repo.update(id, {"deleted_at": None})
        logger.info("product.restored", product_id=str(id))
        return product

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_products(self, dto: ListProductsDTO) -> ProductPage:
        predicate = build_product_filter(dto)
        ordering = build_ordering(dto)
        offset, limit = page_window(dto.page, dto.limit)

        products, total = fetch_page_and_count(
            lambda: self._repo.find_many(predicate, ordering, offset, limit),
            lambda: self._repo.count(predicate),
        )
        return ProductPage(
            items=[ProductListItemDTO.from_entity(p) for p in products],
            pagination=PaginationMeta.build(dto.page, dto.limit, total),
        )

    def get_product_by_id(self, id: str, include_soft_deleted: bool = False) -> Product:
        id = validate_uuid(id)
        predicate = _by_id(id) if include_soft_deleted else LIVE & _by_id(id)
        product = self._repo.find_one(predicate)
        if product is None:
            raise ProductNotFound()
        return product

    def list_price_history(self, id: str) -> List[PriceHistory]:
        """Price changes of a product, newest first; soft-deleted products included."""
        product = self.get_product_by_id(id, include_soft_deleted=True)
        return self._history.find_many(
            Q(product_id=product.id), order_by=("-created_at", "-id")
        )

    def get_product_by_slug(self, slug: str) -> Product:
        slug = validate_slug(slug)
        product = self._repo.find_one(LIVE & _by_slug(slug))
        if product is None:
            raise ProductNotFound()
        return product

    def get_product_detail_by_slug(self, slug: str) -> Product:
        """Storefront detail; queues a view-count increment as a side effect."""
        slug = validate_slug(slug)
        product = self._repo.find_detail(LIVE & _by_slug(slug))
        if product is None:
            raise ProductNotFound()
        try:
            self._count_view(product.id)
        except Exception as exc:
            logger.warning(
                "product.view_count_dispatch_failed",
                product_id=str(product.id),
                error=str(exc),
            )
        return product

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_compare_at_price(existing: Product, patch: dict) -> None:
        """Only a patch that carries ``compare_at_price`` is checked.

        A price-only patch is not compared with the stored value.
        """
        compare_at = patch.get("compare_at_price")
        if compare_at is None:
            return
        price = patch.get("price", existing.price)
        if Decimal(compare_at) <= Decimal(price):
            raise InvalidProductData(
                "Compare at price must be greater than price",
                field="compareAtPrice",
            )


def _by_id(id: str) -> Q:
    return Q(pk=id)


def _by_slug(slug: str) -> Q:
    return Q(slug=slug)
