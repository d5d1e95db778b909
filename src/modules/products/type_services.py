"""Product type service layer.

Product types are managed by staff and read by everyone.  Slugs are
unique; the unique index decides, there is no pre-check query.  A type
still referenced by any product (live or soft-deleted) cannot be
deleted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

import structlog
from django.db.models import Q

from modules.core.integrity import UniqueViolation
from modules.products.exceptions import (
    InvalidProductTypeData,
    ProductTypeInUse,
    ProductTypeNotFound,
    ProductTypeSlugAlreadyExists,
)
from modules.products.models import ProductType
from modules.products.validators import validate_uuid

if TYPE_CHECKING:
    from modules.products.dtos import (
        CreateProductTypeDTO,
        ListProductTypesDTO,
        UpdateProductTypeDTO,
    )
    from modules.products.repositories.interfaces import IProductTypeRepository

logger = structlog.get_logger(__name__)

TYPE_ORDERING = ("sort_order", "name")


class ProductTypeService:
    """Application service for product types (constructor-injected store)."""

    def __init__(self, repository: IProductTypeRepository) -> None:
        self._repo = repository

    def create_product_type(self, dto: CreateProductTypeDTO) -> ProductType:
        """Raises ``ProductTypeSlugAlreadyExists`` when the slug is taken."""
        try:
            product_type = self._repo.insert(dto.model_dump())
        except UniqueViolation as exc:
            logger.warning("product_type.slug_taken", slug=dto.slug)
            raise ProductTypeSlugAlreadyExists() from exc
        logger.info(
            "product_type.created",
            product_type_id=str(product_type.id),
            slug=product_type.slug,
        )
        return product_type

    def update_product_type(self, id: str, dto: UpdateProductTypeDTO) -> ProductType:
        id = self._type_uuid(id)
        self.get_product_type_by_id(id)

        patch = dto.changes()
        try:
            product_type = self._repo.update(id, patch)
        except UniqueViolation as exc:
            logger.warning("product_type.slug_taken", slug=patch.get("slug"))
            raise ProductTypeSlugAlreadyExists() from exc
        logger.info("product_type.updated", product_type_id=str(id), fields=sorted(patch))
        return product_type

    def delete_product_type(self, id: str) -> None:
        """Hard delete.

        Raises:
            ProductTypeNotFound: no such type.
            ProductTypeInUse: products still reference it.
        """
        id = self._type_uuid(id)
        self.get_product_type_by_id(id)
        if not self._repo.delete_unreferenced(id):
            raise ProductTypeInUse()
        logger.info("product_type.deleted", product_type_id=str(id))

    def get_product_type_by_id(self, id: str) -> ProductType:
        id = self._type_uuid(id)
        product_type = self._repo.find_one(Q(pk=id))
        if product_type is None:
            raise ProductTypeNotFound()
        return product_type

    def list_product_types(
        self, dto: ListProductTypesDTO, active_only: bool = True
    ) -> List[ProductType]:
        """Types in display order.

        With ``active_only`` (storefront callers) inactive types are hidden
        and the ``is_active`` filter is ignored; otherwise the filter
        applies when given.
        """
        if active_only:
            predicate = Q(is_active=True)
        elif dto.is_active is not None:
            predicate = Q(is_active=dto.is_active)
        else:
            predicate = Q()
        return self._repo.find_many(predicate, order_by=TYPE_ORDERING)

    @staticmethod
    def _type_uuid(id: str) -> str:
        return validate_uuid(id, "id", InvalidProductTypeData)
