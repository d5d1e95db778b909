"""Performance regression tests: constant query count (N+1 prevention).

Verifies that the catalog list and detail endpoints execute a bounded
number of SQL queries regardless of the number of products and images,
proving that ``select_related`` / ``prefetch_related`` are applied.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.products.models import Product, ProductImage, ProductType

CDN = "https://res.cloudinary.com/demo/image/upload/v1/storefront/products"


@pytest.fixture()
def catalog():
    product_type = ProductType.objects.create(name="Taza", slug="mug")
    products = []
    for i in range(10):
        product = Product.objects.create(
            title={"es": f"Taza {i}"},
            description={"es": "Cerámica"},
            slug=f"taza-{i}",
            price=Decimal("9.90"),
            product_type=product_type,
            color="white",
        )
        ProductImage.objects.create(product=product, url=f"{CDN}/{i}-a.jpg", is_primary=True)
        ProductImage.objects.create(product=product, url=f"{CDN}/{i}-b.jpg", sort_order=1)
        products.append(product)
    return products


@pytest.mark.django_db
class TestProductListQueryCount:
    def test_list_query_count_is_constant(self, api_client, catalog, django_assert_max_num_queries):
        """GET /api/v1/products/ should not increase queries with more records.

        Expected queries:
        1. COUNT for pagination
        2. SELECT products with JOIN product_types (select_related)
        3. SELECT primary images (prefetch)
        """
        with django_assert_max_num_queries(3):
            response = api_client.get("/api/v1/products/")

        assert response.status_code == 200
        body = response.json()
        assert body["pagination"]["total"] == 10
        assert all(item["primaryImage"]["isPrimary"] for item in body["data"])


@pytest.mark.django_db
class TestProductDetailQueryCount:
    def test_detail_query_count_is_constant(self, api_client, catalog, django_assert_max_num_queries):
        """GET /api/v1/products/{slug}/ uses bounded queries.

        Expected queries:
        1. SELECT product with JOIN product_types (select_related)
        2. SELECT images (prefetch)
        3. UPDATE view_count (eager Celery task)
        """
        with django_assert_max_num_queries(3):
            response = api_client.get("/api/v1/products/taza-3/")

        assert response.status_code == 200
        assert len(response.json()["data"]["images"]) == 2
