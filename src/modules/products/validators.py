"""Validation entry points for catalog input.

Each function takes the raw mapping a client sent (camelCase or
snake_case keys), builds the matching frozen DTO and returns it.  A
pydantic ``ValidationError`` is reported as the first failing field,
wrapped in the domain exception the API layer knows how to map.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Type

from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_camel

from modules.core.exceptions import ValidationFailure
from modules.products import rules
from modules.products.dtos import (
    CreateProductDTO,
    CreateProductImageDTO,
    CreateProductTypeDTO,
    ListProductsDTO,
    ListProductTypesDTO,
    UpdateProductDTO,
    UpdateProductImageDTO,
    UpdateProductTypeDTO,
)
from modules.products.exceptions import (
    InvalidProductData,
    InvalidProductImageData,
    InvalidProductTypeData,
    InvalidUploadData,
)


def _field_label(dto_cls: Type[BaseModel], name: str) -> str:
    field = dto_cls.model_fields.get(name)
    if field is None:
        return name
    return field.alias or to_camel(name)


def _first_error(dto_cls: Type[BaseModel], exc: ValidationError) -> tuple:
    error = exc.errors()[0]
    loc = error.get("loc") or ()
    field = _field_label(dto_cls, str(loc[0])) if loc else None
    if error["type"] == "value_error":
        message = str(error.get("ctx", {}).get("error", error["msg"]))
    elif error["type"] == "missing":
        message = f"{field} is required"
    else:
        message = f"{field}: {error['msg']}" if field else error["msg"]
    return message, field


def _build(
    dto_cls: Type[BaseModel],
    data: Optional[Mapping[str, Any]],
    error_cls: Type[ValidationFailure],
) -> Any:
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise error_cls("Request body must be an object")
    try:
        return dto_cls.model_validate(dict(data))
    except ValidationError as exc:
        message, field = _first_error(dto_cls, exc)
        raise error_cls(message, field=field) from exc


def validate_create_product(data: Mapping[str, Any]) -> CreateProductDTO:
    return _build(CreateProductDTO, data, InvalidProductData)


def validate_update_product(data: Mapping[str, Any]) -> UpdateProductDTO:
    return _build(UpdateProductDTO, data, InvalidProductData)


def validate_list_products(params: Optional[Mapping[str, Any]] = None) -> ListProductsDTO:
    return _build(ListProductsDTO, params, InvalidProductData)


def validate_create_image(data: Mapping[str, Any]) -> CreateProductImageDTO:
    return _build(CreateProductImageDTO, data, InvalidProductImageData)


def validate_update_image(data: Mapping[str, Any]) -> UpdateProductImageDTO:
    return _build(UpdateProductImageDTO, data, InvalidProductImageData)


def validate_create_product_type(data: Mapping[str, Any]) -> CreateProductTypeDTO:
    return _build(CreateProductTypeDTO, data, InvalidProductTypeData)


def validate_update_product_type(data: Mapping[str, Any]) -> UpdateProductTypeDTO:
    return _build(UpdateProductTypeDTO, data, InvalidProductTypeData)


def validate_list_product_types(
    params: Optional[Mapping[str, Any]] = None,
) -> ListProductTypesDTO:
    return _build(ListProductTypesDTO, params, InvalidProductTypeData)


def validate_uuid(
    value: Any,
    field: str = "id",
    error_cls: Type[ValidationFailure] = InvalidProductData,
) -> str:
    """Shape check for identifiers taken from the URL or the payload."""
    try:
        return rules.uuid_string(value)
    except ValueError as exc:
        raise error_cls(str(exc), field=field) from exc


def validate_price_change_reason(value: Any) -> Optional[str]:
    """Free-text note stored with a price history entry; blank means none."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return rules.bounded_text(value, "priceChangeReason", rules.MAX_REASON_LENGTH)
    except ValueError as exc:
        raise InvalidProductData(str(exc), field="priceChangeReason") from exc


def validate_slug(value: Any) -> str:
    try:
        return rules.slug(value)
    except ValueError as exc:
        raise InvalidProductData(str(exc), field="slug") from exc


def validate_upload_folder(value: Any) -> Optional[str]:
    try:
        return rules.upload_folder(value)
    except ValueError as exc:
        raise InvalidUploadData(str(exc), field="folder") from exc
