"""Django ORM implementations of the catalog repositories.

Reads return ``None`` for a missing entity instead of raising; the
Service Layer decides how to translate absence into a domain error.
Writes surface ``UniqueViolation`` through ``DjangoRepository``.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

import structlog
from django.db import transaction
from django.db.models import F, Prefetch, Q
from django.db.models.deletion import ProtectedError

from modules.core.repositories.django_repository import DjangoRepository
from modules.products.models import PriceHistory, Product, ProductImage, ProductType
from modules.products.repositories.interfaces import (
    IPriceHistoryRepository,
    IProductImageRepository,
    IProductRepository,
    IProductTypeRepository,
)

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(DjangoRepository[Product], IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    model = Product

    def find_many(
        self,
        predicate: Q,
        order_by: Sequence[str] = (),
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[Product]:
        primary = Prefetch(
            "images",
            queryset=ProductImage.objects.filter(is_primary=True).order_by("sort_order")[:1],
            to_attr="primary_images",
        )
        queryset = (
            Product.objects.filter(predicate)
            .select_related("product_type")
            .prefetch_related(primary)
        )
        if order_by:
            queryset = queryset.order_by(*order_by)
        if limit is not None:
            queryset = queryset[offset : offset + limit]
        elif offset:
            queryset = queryset[offset:]
        return list(queryset)

    def find_detail(self, predicate: Q) -> Optional[Product]:
        images = Prefetch(
            "images",
            queryset=ProductImage.objects.order_by("sort_order", "created_at"),
        )
        return (
            Product.objects.filter(predicate)
            .select_related("product_type")
            .prefetch_related(images)
            .first()
        )

    def lock(self, predicate: Q) -> Optional[Product]:
        return Product.objects.select_for_update().filter(predicate).first()

    def increment_view_count(self, id: Any) -> int:
        touched = Product.objects.filter(pk=id).update(view_count=F("view_count") + 1)
        logger.debug("product.view_counted", product_id=str(id), rows=touched)
        return touched


class ProductImageDjangoRepository(DjangoRepository[ProductImage], IProductImageRepository):
    """Concrete ProductImage repository backed by Django ORM."""

    model = ProductImage

    def clear_primary(self, product_id: Any) -> int:
        return self.update_where(
            Q(product_id=product_id, is_primary=True),
            {"is_primary": False},
        )


class PriceHistoryDjangoRepository(DjangoRepository[PriceHistory], IPriceHistoryRepository):
    model = PriceHistory


class ProductTypeDjangoRepository(DjangoRepository[ProductType], IProductTypeRepository):
    """Concrete ProductType repository backed by Django ORM."""

    model = ProductType

    def delete_unreferenced(self, id: Any) -> bool:
        try:
            with transaction.atomic():
                ProductType.objects.filter(pk=id).delete()
        except ProtectedError:
            logger.info("product_type.delete_protected", product_type_id=str(id))
            return False
        return True
