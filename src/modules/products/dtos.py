"""Catalog DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  Input DTOs
are the only shape that crosses from the API layer into the services:
they are immutable (``frozen=True``), fully typed and carry their
defaults.  Clients speak camelCase (``compareAtPrice``); the DTO fields
are snake_case and accept both spellings.

Input:
- ``CreateProductDTO`` / ``UpdateProductDTO``
- ``ListProductsDTO`` (filters, sorting, pagination)
- ``CreateProductImageDTO`` / ``UpdateProductImageDTO``
- ``CreateProductTypeDTO`` / ``UpdateProductTypeDTO`` / ``ListProductTypesDTO``

Output:
- ``ProductOutputDTO`` and its list / detail projections
- ``ProductTypeOutputDTO``, ``ProductImageOutputDTO``, ``PriceHistoryOutputDTO``
- ``UploadOutputDTO``
- ``PaginationMeta`` / ``ProductPage``
"""

from __future__ import annotations

import math
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from modules.products import rules

if TYPE_CHECKING:
    from modules.products.models import PriceHistory, Product, ProductImage, ProductType

SORTABLE_FIELDS = ("price", "createdAt", "salesCount")
SORT_DIRECTIONS = ("asc", "desc")
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100

_INPUT_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
)
_OUTPUT_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


# ---------------------------------------------------------------------------
# Product input
# ---------------------------------------------------------------------------


class CreateProductDTO(BaseModel):
    """Immutable DTO for product creation requests.

    ``slug`` is optional: when absent the service derives one from the
    Spanish title.  ``compare_at_price`` is checked against ``price``
    here because both values are known.
    """

    model_config = _INPUT_CONFIG

    title: Dict[str, str]
    description: Dict[str, str]
    slug: Optional[str] = None
    price: Decimal
    compare_at_price: Optional[Decimal] = None
    available_sizes: Optional[List[str]] = None
    product_type_id: str
    color: str
    is_active: bool = True
    is_hot: bool = False
    created_by_user_id: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def title_is_localized(cls, v: Any) -> Dict[str, str]:
        return rules.localized_text(v, "Title", rules.MAX_TITLE_LENGTH)

    @field_validator("description", mode="before")
    @classmethod
    def description_is_localized(cls, v: Any) -> Dict[str, str]:
        return rules.localized_text(v, "Description", rules.MAX_DESCRIPTION_LENGTH)

    @field_validator("slug", mode="before")
    @classmethod
    def slug_is_url_safe(cls, v: Any) -> Optional[str]:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return rules.slug(v)

    @field_validator("price", mode="before")
    @classmethod
    def price_is_money(cls, v: Any) -> Decimal:
        return rules.money(v, "Price")

    @field_validator("compare_at_price", mode="before")
    @classmethod
    def compare_at_price_is_money(cls, v: Any) -> Optional[Decimal]:
        if v is None:
            return None
        return rules.money(v, "Compare at price")

    @field_validator("compare_at_price")
    @classmethod
    def compare_at_price_exceeds_price(
        cls, v: Optional[Decimal], info: ValidationInfo
    ) -> Optional[Decimal]:
        price = info.data.get("price")
        if v is not None and price is not None and v <= price:
            raise ValueError("Compare at price must be greater than price")
        return v

    @field_validator("available_sizes", mode="before")
    @classmethod
    def sizes_are_labels(cls, v: Any) -> Optional[List[str]]:
        if v is None:
            return None
        return rules.sizes(v)

    @field_validator("product_type_id", mode="before")
    @classmethod
    def product_type_is_uuid(cls, v: Any) -> str:
        return rules.uuid_string(v)

    @field_validator("color", mode="before")
    @classmethod
    def color_is_text(cls, v: Any) -> str:
        return rules.bounded_text(v, "Color", rules.MAX_COLOR_LENGTH)

    @field_validator("is_active", "is_hot", mode="before")
    @classmethod
    def flags_are_booleans(cls, v: Any, info: ValidationInfo) -> bool:
        return rules.strict_bool(v, to_camel(info.field_name))

    def to_model_data(self) -> Dict[str, Any]:
        """Field values for ``Product`` minus the slug (allocated separately)."""
        return self.model_dump(exclude={"slug"})


class UpdateProductDTO(BaseModel):
    """Immutable DTO for partial product updates.

    Only the fields present in the payload are applied; ``changes()``
    returns exactly those.  ``compare_at_price`` is checked against a
    price supplied in the same payload; the check against the stored
    price happens in the service, which knows it.
    """

    model_config = _INPUT_CONFIG

    title: Optional[Dict[str, str]] = None
    description: Optional[Dict[str, str]] = None
    slug: Optional[str] = None
    price: Optional[Decimal] = None
    compare_at_price: Optional[Decimal] = None
    available_sizes: Optional[List[str]] = None
    color: Optional[str] = None
    is_active: Optional[bool] = None
    is_hot: Optional[bool] = None

    @field_validator("title", mode="before")
    @classmethod
    def title_is_localized(cls, v: Any) -> Dict[str, str]:
        return rules.localized_text(v, "Title", rules.MAX_TITLE_LENGTH)

    @field_validator("description", mode="before")
    @classmethod
    def description_is_localized(cls, v: Any) -> Dict[str, str]:
        return rules.localized_text(v, "Description", rules.MAX_DESCRIPTION_LENGTH)

    @field_validator("slug", mode="before")
    @classmethod
    def slug_is_url_safe(cls, v: Any) -> str:
        return rules.slug(v)

    @field_validator("price", mode="before")
    @classmethod
    def price_is_money(cls, v: Any) -> Decimal:
        return rules.money(v, "Price")

    @field_validator("compare_at_price", mode="before")
    @classmethod
    def compare_at_price_is_money(cls, v: Any) -> Optional[Decimal]:
        if v is None:
            return None
        return rules.money(v, "Compare at price")

    @field_validator("compare_at_price")
    @classmethod
    def compare_at_price_exceeds_price(
        cls, v: Optional[Decimal], info: ValidationInfo
    ) -> Optional[Decimal]:
        price = info.data.get("price")
        if v is not None and price is not None and v <= price:
            raise ValueError("Compare at price must be greater than price")
        return v

    @field_validator("available_sizes", mode="before")
    @classmethod
    def sizes_are_labels(cls, v: Any) -> Optional[List[str]]:
        if v is None:
            return None
        return rules.sizes(v)

    @field_validator("color", mode="before")
    @classmethod
    def color_is_text(cls, v: Any) -> str:
        return rules.bounded_text(v, "Color", rules.MAX_COLOR_LENGTH)

    @field_validator("is_active", "is_hot", mode="before")
    @classmethod
    def flags_are_booleans(cls, v: Any, info: ValidationInfo) -> bool:
        return rules.strict_bool(v, to_camel(info.field_name))

    def changes(self) -> Dict[str, Any]:
        """Supplied fields only, keyed by model field name."""
        return self.model_dump(exclude_unset=True)


# ---------------------------------------------------------------------------
# Listing input
# ---------------------------------------------------------------------------


class ListProductsDTO(BaseModel):
    """Typed listing request: filters, sort and page window.

    Values may arrive as query-string text (``"2"``, ``"true"``); they are
    coerced here so the query builder only ever sees typed values.
    """

    model_config = _INPUT_CONFIG

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    product_type_id: Optional[str] = None
    is_active: Optional[bool] = None
    is_hot: Optional[bool] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    search: Optional[str] = None
    sort_by: str = "createdAt"
    sort_direction: str = "desc"
    include_soft_deleted: bool = False

    @field_validator("page")
    @classmethod
    def page_is_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("page must be greater than or equal to 1")
        return v

    @field_validator("limit")
    @classmethod
    def limit_in_range(cls, v: int) -> int:
        if v < 1 or v > MAX_LIMIT:
            raise ValueError(f"limit must be between 1 and {MAX_LIMIT}")
        return v

    @field_validator("product_type_id", mode="before")
    @classmethod
    def product_type_is_uuid(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        return rules.uuid_string(v)

    @field_validator("min_price", mode="before")
    @classmethod
    def min_price_is_bound(cls, v: Any) -> Optional[Decimal]:
        return rules.price_bound(v, "minPrice")

    @field_validator("max_price", mode="before")
    @classmethod
    def max_price_is_bound(cls, v: Any) -> Optional[Decimal]:
        return rules.price_bound(v, "maxPrice")

    @field_validator("max_price")
    @classmethod
    def max_price_not_below_min(
        cls, v: Optional[Decimal], info: ValidationInfo
    ) -> Optional[Decimal]:
        low = info.data.get("min_price")
        if v is not None and low is not None and low > v:
            raise ValueError("minPrice must be less than or equal to maxPrice")
        return v

    @field_validator("search", mode="before")
    @classmethod
    def search_is_trimmed(cls, v: Any) -> Optional[str]:
        return rules.search_term(v)

    @field_validator("sort_by", mode="before")
    @classmethod
    def sort_by_is_allowed(cls, v: Any) -> str:
        if v not in SORTABLE_FIELDS:
            raise ValueError(f"sortBy must be one of: {', '.join(SORTABLE_FIELDS)}")
        return v

    @field_validator("sort_direction", mode="before")
    @classmethod
    def sort_direction_is_allowed(cls, v: Any) -> str:
        if v not in SORT_DIRECTIONS:
            raise ValueError(f"sortDirection must be one of: {', '.join(SORT_DIRECTIONS)}")
        return v


# ---------------------------------------------------------------------------
# Image input
# ---------------------------------------------------------------------------


class CreateProductImageDTO(BaseModel):
    model_config = _INPUT_CONFIG

    url: str
    alt_text: Optional[Dict[str, str]] = None
    is_primary: bool = False
    sort_order: int = 0

    @field_validator("url", mode="before")
    @classmethod
    def url_is_http(cls, v: Any) -> str:
        return rules.image_url(v)

    @field_validator("alt_text", mode="before")
    @classmethod
    def alt_text_is_localized(cls, v: Any) -> Optional[Dict[str, str]]:
        if v is None:
            return None
        return rules.localized_text(v, "altText", rules.MAX_ALT_TEXT_LENGTH)

    @field_validator("is_primary", mode="before")
    @classmethod
    def is_primary_is_boolean(cls, v: Any) -> bool:
        return rules.strict_bool(v, "isPrimary")

    @field_validator("sort_order", mode="before")
    @classmethod
    def sort_order_is_index(cls, v: Any) -> int:
        return rules.sort_order(v)


class UpdateProductImageDTO(BaseModel):
    model_config = _INPUT_CONFIG

    alt_text: Optional[Dict[str, str]] = None
    is_primary: Optional[bool] = None
    sort_order: Optional[int] = None

    @field_validator("alt_text", mode="before")
    @classmethod
    def alt_text_is_localized(cls, v: Any) -> Optional[Dict[str, str]]:
        if v is None:
            return None
        return rules.localized_text(v, "altText", rules.MAX_ALT_TEXT_LENGTH)

    @field_validator("is_primary", mode="before")
    @classmethod
    def is_primary_is_boolean(cls, v: Any) -> bool:
        return rules.strict_bool(v, "isPrimary")

    @field_validator("sort_order", mode="before")
    @classmethod
    def sort_order_is_index(cls, v: Any) -> int:
        return rules.sort_order(v)

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


# ---------------------------------------------------------------------------
# Product type input
# ---------------------------------------------------------------------------


class CreateProductTypeDTO(BaseModel):
    model_config = _INPUT_CONFIG

    name: str
    slug: str
    has_sizes: bool = False
    is_active: bool = True
    sort_order: int = 0

    @field_validator("name", mode="before")
    @classmethod
    def name_is_text(cls, v: Any) -> str:
        return rules.bounded_text(v, "Name", rules.MAX_TYPE_NAME_LENGTH)

    @field_validator("slug", mode="before")
    @classmethod
    def slug_is_url_safe(cls, v: Any) -> str:
        return rules.slug(v)

    @field_validator("has_sizes", "is_active", mode="before")
    @classmethod
    def flags_are_booleans(cls, v: Any, info: ValidationInfo) -> bool:
        return rules.strict_bool(v, to_camel(info.field_name))

    @field_validator("sort_order", mode="before")
    @classmethod
    def sort_order_is_index(cls, v: Any) -> int:
        return rules.sort_order(v)


class UpdateProductTypeDTO(BaseModel):
    """Partial product type update; ``changes()`` holds the supplied fields."""

    model_config = _INPUT_CONFIG

    name: Optional[str] = None
    slug: Optional[str] = None
    has_sizes: Optional[bool] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None

    @field_validator("name", mode="before")
    @classmethod
    def name_is_text(cls, v: Any) -> str:
        return rules.bounded_text(v, "Name", rules.MAX_TYPE_NAME_LENGTH)

    @field_validator("slug", mode="before")
    @classmethod
    def slug_is_url_safe(cls, v: Any) -> str:
        return rules.slug(v)

    @field_validator("has_sizes", "is_active", mode="before")
    @classmethod
    def flags_are_booleans(cls, v: Any, info: ValidationInfo) -> bool:
        return rules.strict_bool(v, to_camel(info.field_name))

    @field_validator("sort_order", mode="before")
    @classmethod
    def sort_order_is_index(cls, v: Any) -> int:
        return rules.sort_order(v)

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class ListProductTypesDTO(BaseModel):
    """Listing filter; ``is_active`` may arrive as query-string text."""

    model_config = _INPUT_CONFIG

    is_active: Optional[bool] = None


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class ProductTypeOutputDTO(BaseModel):
    model_config = _OUTPUT_CONFIG

    id: UUID
    name: str
    slug: str
    has_sizes: bool
    is_active: bool
    sort_order: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, product_type: ProductType) -> ProductTypeOutputDTO:
        return cls(
            id=product_type.id,
            name=product_type.name,
            slug=product_type.slug,
            has_sizes=product_type.has_sizes,
            is_active=product_type.is_active,
            sort_order=product_type.sort_order,
            created_at=product_type.created_at,
            updated_at=product_type.updated_at,
        )


class ProductImageOutputDTO(BaseModel):
    model_config = _OUTPUT_CONFIG

    id: UUID
    product_id: UUID
    url: str
    alt_text: Optional[Dict[str, str]] = None
    is_primary: bool
    sort_order: int
    created_at: datetime

    @classmethod
    def from_entity(cls, image: ProductImage) -> ProductImageOutputDTO:
        return cls(
            id=image.id,
            product_id=image.product_id,
            url=image.url,
            alt_text=image.alt_text,
            is_primary=image.is_primary,
            sort_order=image.sort_order,
            created_at=image.created_at,
        )


class PriceHistoryOutputDTO(BaseModel):
    model_config = _OUTPUT_CONFIG

    id: UUID
    product_id: UUID
    price: Decimal
    changed_by_user_id: Optional[str] = None
    reason: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, entry: PriceHistory) -> PriceHistoryOutputDTO:
        return cls(
            id=entry.id,
            product_id=entry.product_id,
            price=entry.price,
            changed_by_user_id=entry.changed_by_user_id,
            reason=entry.reason,
            created_at=entry.created_at,
        )


class UploadOutputDTO(BaseModel):
    """Stored CDN object; ``filename`` is the CDN public id."""

    model_config = _OUTPUT_CONFIG

    url: str
    filename: str
    size: int
    mime_type: str


class ProductOutputDTO(BaseModel):
    """Immutable DTO for product API responses."""

    model_config = _OUTPUT_CONFIG

    id: UUID
    title: Dict[str, str]
    description: Dict[str, str]
    slug: str
    price: Decimal
    compare_at_price: Optional[Decimal] = None
    available_sizes: Optional[List[str]] = None
    product_type_id: UUID
    color: str
    is_active: bool
    is_hot: bool
    sales_count: int
    view_count: int
    created_by_user_id: Optional[str] = None
    deleted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @staticmethod
    def entity_fields(product: Product) -> Dict[str, Any]:
        return {
            "id": product.id,
            "title": product.title,
            "description": product.description,
            "slug": product.slug,
            "price": product.price,
            "compare_at_price": product.compare_at_price,
            "available_sizes": product.available_sizes,
            "product_type_id": product.product_type_id,
            "color": product.color,
            "is_active": product.is_active,
            "is_hot": product.is_hot,
            "sales_count": product.sales_count,
            "view_count": product.view_count,
            "created_by_user_id": product.created_by_user_id,
            "deleted_at": product.deleted_at,
            "created_at": product.created_at,
            "updated_at": product.updated_at,
        }

    @classmethod
    def from_entity(cls, product: Product) -> ProductOutputDTO:
        return cls(**cls.entity_fields(product))


def _cached_product_type(product: Product) -> Optional[ProductTypeOutputDTO]:
    field = product._meta.get_field("product_type")
    if not field.is_cached(product):
        return None
    return ProductTypeOutputDTO.from_entity(product.product_type)


class ProductListItemDTO(ProductOutputDTO):
    """List projection: the image set collapses to ``primary_image``."""

    product_type: Optional[ProductTypeOutputDTO] = None
    primary_image: Optional[ProductImageOutputDTO] = None

    @classmethod
    def from_entity(cls, product: Product) -> ProductListItemDTO:
        primaries = getattr(product, "primary_images", None) or []
        primary = primaries[0] if primaries else None
        return cls(
            **cls.entity_fields(product),
            product_type=_cached_product_type(product),
            primary_image=ProductImageOutputDTO.from_entity(primary) if primary else None,
        )


class ProductDetailDTO(ProductOutputDTO):
    """Storefront detail: every image, ordered, plus the product type."""

    product_type: Optional[ProductTypeOutputDTO] = None
    images: List[ProductImageOutputDTO] = []

    @classmethod
    def from_entity(cls, product: Product) -> ProductDetailDTO:
        return cls(
            **cls.entity_fields(product),
            product_type=_cached_product_type(product),
            images=[ProductImageOutputDTO.from_entity(i) for i in product.images.all()],
        )


class PaginationMeta(BaseModel):
    model_config = _OUTPUT_CONFIG

    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> PaginationMeta:
        total_pages = math.ceil(total / limit) if total > 0 else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class ProductPage(BaseModel):
    model_config = _OUTPUT_CONFIG

    items: List[ProductListItemDTO]
    pagination: PaginationMeta
