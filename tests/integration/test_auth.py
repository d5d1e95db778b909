"""Integration tests for JWT authentication on the catalog API.

Validates:
  - /health and catalog reads are public.
  - Catalog mutations return 401 without a token or with a bad one.
  - SimpleJWT issues tokens that unlock staff endpoints.
"""

import pytest
from django.contrib.auth import get_user_model

pytestmark = pytest.mark.integration

User = get_user_model()


class TestPublicEndpoints:
    def test_health_is_public(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_catalog_list_is_public(self, api_client):
        response = api_client.get("/api/v1/products/")
        assert response.status_code == 200


class TestProtectedEndpoints:
    def test_no_token_returns_401(self, api_client):
        response = api_client.post("/api/v1/products/", {}, format="json")
        assert response.status_code == 401

    def test_invalid_token_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer invalid.token.here")
        response = api_client.post("/api/v1/products/", {}, format="json")
        assert response.status_code == 401

    def test_malformed_auth_header_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Token some-token")
        response = api_client.post("/api/v1/products/", {}, format="json")
        assert response.status_code == 401

    def test_401_includes_www_authenticate_header(self, api_client):
        response = api_client.post("/api/v1/products/", {}, format="json")
        assert response.status_code == 401
        assert "Bearer" in response.get("WWW-Authenticate", "")


class TestTokenFlow:
    def test_staff_token_reaches_validation(self, api_client):
        User.objects.create_user(username="admin", password="testpass123", is_staff=True)
        token = api_client.post(
            "/api/v1/auth/token/",
            {"username": "admin", "password": "testpass123"},
            format="json",
        ).json()["access"]

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        response = api_client.post("/api/v1/products/", {}, format="json")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_PRODUCT_DATA"

    def test_non_staff_token_is_forbidden(self, api_client):
        User.objects.create_user(username="shopper", password="testpass123")
        token = api_client.post(
            "/api/v1/auth/token/",
            {"username": "shopper", "password": "testpass123"},
            format="json",
        ).json()["access"]

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        response = api_client.post("/api/v1/products/", {}, format="json")

        assert response.status_code == 403
