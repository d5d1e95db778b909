"""Catalog repository interfaces.

Extend ``IRepository`` with the eager-loading reads and counter updates
the catalog services need.  Predicates stay ``Q`` objects; soft-delete
state is always part of the predicate the caller passes in.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from django.db.models import Q

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import PriceHistory, Product, ProductImage, ProductType


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate.

    ``find_many`` returns list projections: each product carries its
    product type and a ``primary_images`` list holding at most one image.
    """

    @abstractmethod
    def find_detail(self, predicate: Q) -> Optional[Product]:
        """First match with its product type and every image, ordered."""

    @abstractmethod
    def lock(self, predicate: Q) -> Optional[Product]:
        """First match, row-locked until the surrounding transaction ends."""

    @abstractmethod
    def increment_view_count(self, id: Any) -> int:
        """Atomically add one to ``view_count``; returns rows touched."""


class IProductImageRepository(IRepository["ProductImage"]):
    """Repository contract for product images."""

    @abstractmethod
    def clear_primary(self, product_id: Any) -> int:
        """Unset ``is_primary`` on every image of the product."""


class IPriceHistoryRepository(IRepository["PriceHistory"]):
    """Append-only price audit trail; ``update`` is never used."""


class IProductTypeRepository(IRepository["ProductType"]):
    """Repository contract for product types."""

    @abstractmethod
    def delete_unreferenced(self, id: Any) -> bool:
        """Delete the type unless a product points at it; ``False`` when refused."""
