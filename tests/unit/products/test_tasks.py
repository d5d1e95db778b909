from __future__ import annotations

import logging
import uuid
from unittest.mock import patch

import pytest

from modules.products.tasks import dispatch_view_increment, increment_view_count

pytestmark = pytest.mark.unit

PRODUCT_ID = "0190a5b2-7c1e-7d3a-9f4b-2a6c8e0d1f23"


class TestDispatchViewIncrement:
    @patch("modules.products.tasks.increment_view_count")
    def test_queues_task_with_string_id(self, mock_task):
        dispatch_view_increment(PRODUCT_ID)

        mock_task.apply_async.assert_called_once_with(args=(PRODUCT_ID,), retry=False)

    @patch("modules.products.tasks.increment_view_count")
    def test_uuid_is_sent_as_text(self, mock_task):
        dispatch_view_increment(uuid.UUID(PRODUCT_ID))

        assert mock_task.apply_async.call_args.kwargs["args"] == (PRODUCT_ID,)

    @patch("modules.products.tasks.increment_view_count")
    def test_broker_failure_is_swallowed(self, mock_task, caplog):
        mock_task.apply_async.side_effect = ConnectionError("broker down")

        with caplog.at_level(logging.WARNING):
            dispatch_view_increment(PRODUCT_ID)

        assert "product.view_count_dispatch_failed" in caplog.text


class TestIncrementViewCountTask:
    @patch("modules.products.repositories.django_repository.ProductDjangoRepository.increment_view_count")
    def test_calls_repository(self, mock_increment):
        increment_view_count(PRODUCT_ID)

        mock_increment.assert_called_once_with(PRODUCT_ID)

    @patch("modules.products.repositories.django_repository.ProductDjangoRepository.increment_view_count")
    def test_store_failure_is_logged(self, mock_increment, caplog):
        mock_increment.side_effect = RuntimeError("db gone")

        with caplog.at_level(logging.ERROR):
            increment_view_count(PRODUCT_ID)

        assert "product.view_count_failed" in caplog.text
