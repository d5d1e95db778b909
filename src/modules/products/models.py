"""Catalog models: ProductType, Product, ProductImage and PriceHistory.

Rules backed by the schema:
- ``Product.slug`` is UNIQUE across every row, live or soft-deleted.
- ``Product.price`` is strictly positive (check constraint).
- At most one ``ProductImage`` per product has ``is_primary=True``
  (partial unique index; MySQL ignores the condition, the service-level
  transaction still enforces the rule there).
- ``PriceHistory`` rows are append-only snapshots.

Localized text (``title``, ``description``, ``alt_text``) is stored as a
JSON mapping of language code to text; the Spanish entry (``es``) is
mandatory and validated before it reaches the model.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel, SoftDeleteModel

SLUG_MAX_LENGTH = 100


class ProductType(BaseModel):
    """Garment family a product belongs to (t-shirt, hoodie, mug...).

    ``has_sizes`` tells the storefront whether products of this type offer
    a size picker.  Inactive types are hidden from the public listing.
    """

    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=SLUG_MAX_LENGTH, unique=True)
    has_sizes = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "product_types"
        ordering = ["sort_order", "name"]

    def __str__(self) -> str:
        return self.name


class Product(SoftDeleteModel):
    """Product aggregate root."""

    title = models.JSONField()
    description = models.JSONField()
    slug = models.CharField(max_length=SLUG_MAX_LENGTH, unique=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    compare_at_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        default=None,
    )
    available_sizes = models.JSONField(null=True, blank=True, default=None)
    product_type = models.ForeignKey(
        ProductType,
        on_delete=models.PROTECT,
        related_name="products",
    )
    color = models.CharField(max_length=50)
    is_active = models.BooleanField(default=True)
    is_hot = models.BooleanField(default=False)
    sales_count = models.PositiveIntegerField(default=0)
    view_count = models.PositiveIntegerField(default=0)
    created_by_user_id = models.CharField(  # noqa: DJ01
        max_length=64,
        null=True,
        blank=True,
        default=None,
    )

    class Meta:
        db_table = "products"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["is_active", "is_hot"], name="products_flags_idx"),
            models.Index(fields=["price"], name="products_price_idx"),
            models.Index(fields=["-sales_count"], name="products_sales_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="products_price_positive",
            ),
        ]

    @property
    def display_title(self) -> str:
        return (self.title or {}).get("es", "")

    def __str__(self) -> str:
        return f"{self.slug} - {self.display_title}"


class ProductImage(BaseModel):
    """Image attached to a product; the CDN object is referenced by ``url``."""

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="images",
    )
    url = models.CharField(max_length=500)
    alt_text = models.JSONField(null=True, blank=True, default=None)
    is_primary = models.BooleanField(default=False)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "product_images"
        ordering = ["sort_order", "created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["product"],
                condition=models.Q(is_primary=True),
                name="product_images_single_primary",
            ),
        ]

    def __str__(self) -> str:
        flag = " (primary)" if self.is_primary else ""
        return f"{self.url}{flag}"


class PriceHistory(BaseModel):
    """Append-only audit trail of price changes.

    Inherits ``BaseModel`` (not ``SoftDeleteModel``): audit rows are never
    edited nor soft-deleted.  ``changed_by_user_id`` is ``None`` when the
    change was not attributed to a user.
    """

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="price_history",
    )
    price = models.DecimalField(max_digits=10, decimal_places=2)
    changed_by_user_id = models.CharField(  # noqa: DJ01
        max_length=64,
        null=True,
        blank=True,
        default=None,
    )
    reason = models.CharField(  # noqa: DJ01
        max_length=255,
        null=True,
        blank=True,
        default=None,
    )

    class Meta:
        db_table = "price_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["product", "-created_at"],
                name="price_history_product_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product_id} @ {self.price}"
