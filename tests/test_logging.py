import logging

import pytest

from modules.products.models import ProductType


def _messages(caplog, event: str) -> list[str]:
    return [r.getMessage() for r in caplog.records if event in r.getMessage()]


class TestDomainEventsCarryCorrelationId:
    @pytest.fixture()
    def payload(self):
        product_type = ProductType.objects.create(name="Gorra", slug="cap")
        return {
            "title": {"es": "Gorra Doge"},
            "description": {"es": "Bordada"},
            "price": 15,
            "productTypeId": str(product_type.pk),
            "color": "navy",
        }

    def test_product_created_event(self, staff_client, payload, caplog):
        with caplog.at_level(logging.INFO):
            response = staff_client.post(
                "/api/v1/products/", payload, format="json", HTTP_X_REQUEST_ID="cid-create-1"
            )

        assert response.status_code == 201
        [line] = _messages(caplog, "product.created")
        assert "cid-create-1" in line
        assert "gorra-doge" in line

    def test_correlation_id_does_not_leak_between_requests(self, staff_client, payload, caplog):
        staff_client.post("/api/v1/products/", payload, format="json", HTTP_X_REQUEST_ID="first")
        caplog.clear()
        with caplog.at_level(logging.INFO):
            staff_client.post(
                "/api/v1/products/", payload, format="json", HTTP_X_REQUEST_ID="second"
            )

        [line] = _messages(caplog, "product.created")
        assert "second" in line
        assert "first" not in line
