import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient


@pytest.fixture(autouse=True)
def _use_db(db):
    """Every test runs against the test database."""


@pytest.fixture()
def api_client():
    """Anonymous client, as a storefront visitor."""
    return APIClient()


@pytest.fixture()
def staff_user():
    return get_user_model().objects.create_user(
        username="admin", password="testpass123", is_staff=True
    )


@pytest.fixture()
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture()
def user_client():
    """Authenticated but not staff: may read, may not edit the catalog."""
    client = APIClient()
    user = get_user_model().objects.create_user(username="shopper", password="testpass123")
    client.force_authenticate(user=user)
    return client
