"""Catalog API views.

Expose the catalog services (products, images, product types and
uploads) via HTTP using DRF ViewSets.  Domain exceptions are caught and translated into HTTP status
codes; anything else (store failures included) propagates to DRF's
generic 500 path.

Reads are public; mutations and admin reads (soft-deleted rows, lookup
by id) require a staff user.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.core.exceptions import Conflict, DomainError, NotFound, ValidationFailure
from modules.products import validators
from modules.products.dtos import (
    PriceHistoryOutputDTO,
    ProductDetailDTO,
    ProductImageOutputDTO,
    ProductOutputDTO,
    ProductTypeOutputDTO,
)
from modules.products.exceptions import UploadFailed
from modules.products.image_services import ProductImageService
from modules.products.repositories.django_repository import (
    PriceHistoryDjangoRepository,
    ProductDjangoRepository,
    ProductImageDjangoRepository,
    ProductTypeDjangoRepository,
)
from modules.products.rules import UUID_RE
from modules.products.services import ProductService
from modules.products.storage import CloudinaryStorage
from modules.products.type_services import ProductTypeService
from modules.products.upload_services import UploadService

PUBLIC_ACTIONS = ("list", "retrieve")


def _status_for(exc: DomainError) -> int:
    if isinstance(exc, UploadFailed):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    if isinstance(exc, ValidationFailure):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, NotFound):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, Conflict):
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


def error_response(exc: DomainError) -> Response:
    return Response({"success": False, "error": exc.as_dict()}, status=_status_for(exc))


def success_response(data: Any, status_code: int = status.HTTP_200_OK) -> Response:
    return Response({"success": True, "data": data}, status=status_code)


def _dump(dto) -> Dict[str, Any]:
    return dto.model_dump(mode="json", by_alias=True)


def _user_id(request: Request) -> Optional[str]:
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return None
    return str(user.pk)


def _is_staff(request: Request) -> bool:
    user = getattr(request, "user", None)
    return bool(user and user.is_authenticated and user.is_staff)


class ProductViewSet(ViewSet):
    """Product endpoints.

    Uses ``ProductService`` with the Django repositories (DIP).  Does
    **not** extend ``ModelViewSet``: all ORM access goes through the
    service/repository layer.
    """

    lookup_value_regex = "[^/]+"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProductService(
            repository=ProductDjangoRepository(),
            price_history_repository=PriceHistoryDjangoRepository(),
        )

    def get_permissions(self):
        if self.action in PUBLIC_ACTIONS:
            return [AllowAny()]
        return [IsAdminUser()]

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/products/"""
        params = request.query_params.dict()
        if not _is_staff(request):
            params.pop("includeSoftDeleted", None)
            params.pop("include_soft_deleted", None)
        try:
            dto = validators.validate_list_products(params)
            page = self._service.list_products(dto)
        except DomainError as exc:
            return error_response(exc)
        body = _dump(page)
        return Response({"success": True, "data": body["items"], "pagination": body["pagination"]})

    def retrieve(self, request: Request, pk: Optional[str] = None) -> Response:
        """GET /api/v1/products/{slug-or-id}/

        A slug gives the public storefront detail; a UUID is the admin
        lookup and includes soft-deleted products.
        """
        try:
            if pk and UUID_RE.match(pk):
                if not _is_staff(request):
                    return Response(
                        {
                            "success": False,
                            "error": {"message": "Insufficient permissions", "code": "FORBIDDEN"},
                        },
                        status=status.HTTP_403_FORBIDDEN,
                    )
                product = self._service.get_product_by_id(pk, include_soft_deleted=True)
                return success_response(_dump(ProductOutputDTO.from_entity(product)))
            product = self._service.get_product_detail_by_slug(pk)
        except DomainError as exc:
            return error_response(exc)
        return success_response(_dump(ProductDetailDTO.from_entity(product)))

    # ------------------------------------------------------------------
    # Create / Update / Destroy
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/products/"""
        payload = dict(request.data)
        payload["createdByUserId"] = _user_id(request)
        try:
            dto = validators.validate_create_product(payload)
            product = self._service.create_product(dto)
        except DomainError as exc:
            return error_response(exc)
        return success_response(
            _dump(ProductOutputDTO.from_entity(product)), status.HTTP_201_CREATED
        )

    def partial_update(self, request: Request, pk: Optional[str] = None) -> Response:
        """PATCH /api/v1/products/{id}/

        ``priceChangeReason`` is recorded with the price history entry.
        """
        payload = dict(request.data)
        try:
            reason = validators.validate_price_change_reason(payload.pop("priceChangeReason", None))
            dto = validators.validate_update_product(payload)
            product = self._service.update_product(
                pk, dto, changed_by_user_id=_user_id(request), reason=reason
            )
        except DomainError as exc:
            return error_response(exc)
        return success_response(_dump(ProductOutputDTO.from_entity(product)))

    def destroy(self, request: Request, pk: Optional[str] = None) -> Response:
        """DELETE /api/v1/products/{id}/ (soft delete)"""
        try:
            self._service.soft_delete_product(pk)
        except DomainError as exc:
            return error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def restore(self, request: Request, pk: Optional[str] = None) -> Response:
        """POST /api/v1/products/{id}/restore/"""
        try:
            product = self._service.restore_product(pk)
        except DomainError as exc:
            return error_response(exc)
        return success_response(_dump(ProductOutputDTO.from_entity(product)))

    @action(detail=True, methods=["post"])
    def activate(self, request: Request, pk: Optional[str] = None) -> Response:
        """POST /api/v1/products/{id}/activate/"""
        return self._set_active(request, pk, True)

    @action(detail=True, methods=["post"])
    def deactivate(self, request: Request, pk: Optional[str] = None) -> Response:
        """POST /api/v1/products/{id}/deactivate/"""
        return self._set_active(request, pk, False)

    @action(detail=True, methods=["get"], url_path="price-history")
    def price_history(self, request: Request, pk: Optional[str] = None) -> Response:
        """GET /api/v1/products/{id}/price-history/"""
        try:
            entries = self._service.list_price_history(pk)
        except DomainError as exc:
            return error_response(exc)
        return success_response([_dump(PriceHistoryOutputDTO.from_entity(e)) for e in entries])

    def _set_active(self, request: Request, pk: Optional[str], active: bool) -> Response:
        try:
            dto = validators.validate_update_product({"isActive": active})
            product = self._service.update_product(pk, dto, changed_by_user_id=_user_id(request))
        except DomainError as exc:
            return error_response(exc)
        return success_response(_dump(ProductOutputDTO.from_entity(product)))


class ProductImageViewSet(ViewSet):
    """Images of one product: ``/api/v1/products/{product_id}/images/``."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProductImageService(
            repository=ProductImageDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            storage=CloudinaryStorage(),
        )

    def get_permissions(self):
        if self.action in PUBLIC_ACTIONS:
            return [AllowAny()]
        return [IsAdminUser()]

    def list(self, request: Request, product_id: Optional[str] = None) -> Response:
        try:
            images = self._service.list_images(product_id)
        except DomainError as exc:
            return error_response(exc)
        return success_response([_dump(ProductImageOutputDTO.from_entity(i)) for i in images])

    def create(self, request: Request, product_id: Optional[str] = None) -> Response:
        try:
            dto = validators.validate_create_image(request.data)
            image = self._service.add_image(product_id, dto)
        except DomainError as exc:
            return error_response(exc)
        return success_response(
            _dump(ProductImageOutputDTO.from_entity(image)), status.HTTP_201_CREATED
        )

    def partial_update(
        self, request: Request, product_id: Optional[str] = None, pk: Optional[str] = None
    ) -> Response:
        try:
            dto = validators.validate_update_image(request.data)
            image = self._service.update_image(product_id, pk, dto)
        except DomainError as exc:
            return error_response(exc)
        return success_response(_dump(ProductImageOutputDTO.from_entity(image)))

    def destroy(
        self, request: Request, product_id: Optional[str] = None, pk: Optional[str] = None
    ) -> Response:
        try:
            self._service.delete_image(product_id, pk)
        except DomainError as exc:
            return error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ProductTypeViewSet(ViewSet):
    """Product type endpoints.

    Listing is public but role-aware: storefront callers only see active
    types, staff see every type and may filter on ``isActive``.
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProductTypeService(repository=ProductTypeDjangoRepository())

    def get_permissions(self):
        if self.action == "list":
            return [AllowAny()]
        return [IsAdminUser()]

    def list(self, request: Request) -> Response:
        """GET /api/v1/product-types/"""
        try:
            dto = validators.validate_list_product_types(request.query_params.dict())
            types = self._service.list_product_types(dto, active_only=not _is_staff(request))
        except DomainError as exc:
            return error_response(exc)
        return success_response([_dump(ProductTypeOutputDTO.from_entity(t)) for t in types])

    def create(self, request: Request) -> Response:
        try:
            dto = validators.validate_create_product_type(request.data)
            product_type = self._service.create_product_type(dto)
        except DomainError as exc:
            return error_response(exc)
        return success_response(
            _dump(ProductTypeOutputDTO.from_entity(product_type)), status.HTTP_201_CREATED
        )

    def partial_update(self, request: Request, pk: Optional[str] = None) -> Response:
        try:
            dto = validators.validate_update_product_type(request.data)
            product_type = self._service.update_product_type(pk, dto)
        except DomainError as exc:
            return error_response(exc)
        return success_response(_dump(ProductTypeOutputDTO.from_entity(product_type)))

    def destroy(self, request: Request, pk: Optional[str] = None) -> Response:
        try:
            self._service.delete_product_type(pk)
        except DomainError as exc:
            return error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)


class UploadViewSet(ViewSet):
    """Staff image upload: multipart ``file`` plus optional ``folder``."""

    permission_classes = [IsAdminUser]
    parser_classes = [MultiPartParser, FormParser]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = UploadService(storage=CloudinaryStorage())

    def create(self, request: Request) -> Response:
        """POST /api/v1/uploads/images/"""
        try:
            result = self._service.upload_image(
                request.FILES.get("file"), request.data.get("folder")
            )
        except DomainError as exc:
            return error_response(exc)
        return success_response(_dump(result), status.HTTP_201_CREATED)
