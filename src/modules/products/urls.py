"""Catalog URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.products.views import (
    ProductImageViewSet,
    ProductTypeViewSet,
    ProductViewSet,
    UploadViewSet,
)

router = DefaultRouter(trailing_slash=True)
router.register("products", ProductViewSet, basename="product")
router.register("product-types", ProductTypeViewSet, basename="product-type")

image_list = ProductImageViewSet.as_view({"get": "list", "post": "create"})
image_detail = ProductImageViewSet.as_view({"patch": "partial_update", "delete": "destroy"})
image_upload = UploadViewSet.as_view({"post": "create"})

urlpatterns = router.urls + [
    path("products/<str:product_id>/images/", image_list, name="product-image-list"),
    path(
        "products/<str:product_id>/images/<str:pk>/",
        image_detail,
        name="product-image-detail",
    ),
    path("uploads/images/", image_upload, name="upload-image"),
]
