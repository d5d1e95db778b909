"""Catalog domain exceptions.

Raised by validators and the Service Layer.  The API layer (Views)
translates them into HTTP responses by category:

- ``ValidationFailure`` subclasses (invalid product, image, product type
  or upload input) -> 400
- ``NotFound`` subclasses -> 404
- ``Conflict`` subclasses (taken slugs, a product type still in use) -> 409
- ``UploadFailed`` -> 500
"""

from __future__ import annotations

from modules.core.exceptions import Conflict, DomainError, NotFound, ValidationFailure


class InvalidProductData(ValidationFailure):
    """Product input failed validation; ``field`` names the culprit."""

    code = "INVALID_PRODUCT_DATA"
    default_message = "Invalid product data"


class ProductNotFound(NotFound):
    """The product does not exist or is excluded by its soft-delete state."""

    code = "PRODUCT_NOT_FOUND"
    default_message = "Product not found"


class ProductSlugAlreadyExists(Conflict):
    """No free slug could be allocated, or an edited slug is taken."""

    code = "PRODUCT_SLUG_ALREADY_EXISTS"
    default_message = "A product with this slug already exists"


class InvalidProductImageData(ValidationFailure):
    code = "INVALID_PRODUCT_IMAGE_DATA"
    default_message = "Invalid product image data"


class ProductImageNotFound(NotFound):
    """The image does not exist or does not belong to the stated product."""

    code = "PRODUCT_IMAGE_NOT_FOUND"
    default_message = "Product image not found"


class InvalidProductTypeData(ValidationFailure):
    code = "INVALID_PRODUCT_TYPE_DATA"
    default_message = "Invalid product type data"


class ProductTypeNotFound(NotFound):
    code = "PRODUCT_TYPE_NOT_FOUND"
    default_message = "Product type not found"


class ProductTypeSlugAlreadyExists(Conflict):
    code = "PRODUCT_TYPE_SLUG_ALREADY_EXISTS"
    default_message = "A product type with this slug already exists"


class ProductTypeInUse(Conflict):
    """Products, live or soft-deleted, still reference the type."""

    code = "PRODUCT_TYPE_IN_USE"
    default_message = "Product type is assigned to existing products"


class NoFileProvided(ValidationFailure):
    code = "NO_FILE"
    default_message = "No file provided"


class InvalidFileType(ValidationFailure):
    code = "INVALID_FILE_TYPE"
    default_message = "File type is not allowed"


class FileTooLarge(ValidationFailure):
    code = "FILE_TOO_LARGE"
    default_message = "File is too large"


class InvalidUploadData(ValidationFailure):
    code = "INVALID_UPLOAD_DATA"
    default_message = "Invalid upload data"


class UploadFailed(DomainError):
    """The CDN rejected an upload or delete request."""

    code = "UPLOAD_FAILED"
    default_message = "File upload failed"
