import logging
import uuid

import pytest

pytestmark = pytest.mark.integration


class TestCorrelationIdMiddleware:
    def test_echoes_client_request_id(self, api_client):
        response = api_client.get("/api/v1/products/", HTTP_X_REQUEST_ID="storefront-abc-123")
        assert response["X-Request-ID"] == "storefront-abc-123"

    def test_generates_uuid4_when_missing(self, api_client):
        response = api_client.get("/api/v1/products/")
        request_id = response["X-Request-ID"]
        assert str(uuid.UUID(request_id, version=4)) == request_id

    def test_error_responses_carry_request_id(self, api_client):
        response = api_client.get("/api/v1/products/no-such-slug/", HTTP_X_REQUEST_ID="cid-404")

        assert response.status_code == 404
        assert response["X-Request-ID"] == "cid-404"

    def test_request_log_line_carries_correlation_id(self, api_client, caplog):
        with caplog.at_level(logging.INFO):
            api_client.get("/api/v1/products/", HTTP_X_REQUEST_ID="cid-log-456")

        messages = [record.getMessage() for record in caplog.records]
        assert any("request.finished" in m and "cid-log-456" in m for m in messages), messages
