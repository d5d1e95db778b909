"""Unit tests for ProductService.

Covers:
- create_product: slug derivation, collision retry, exhaustion, explicit slug.
- update_product: price-change transaction vs plain update, compare-at-price
  cross-check, slug conflict, not found.
- soft_delete_product / restore_product: lifecycle transitions.
- get_product_detail_by_slug: view-count dispatch never fails the read.
- list_price_history: newest first, soft-deleted products included.
- list_products: same predicate for page and count, pagination metadata.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from django.db.models import Q

from modules.core.integrity import UniqueViolation
from modules.core.models import LIVE
from modules.products.dtos import ListProductsDTO
from modules.products.exceptions import (
    InvalidProductData,
    ProductNotFound,
    ProductSlugAlreadyExists,
)
from modules.products.models import Product
from modules.products.services import ProductService
from modules.products.validators import validate_create_product, validate_update_product

pytestmark = pytest.mark.unit

PRODUCT_ID = "0190a5b2-7c1e-7d3a-9f4b-2a6c8e0d1f23"
TYPE_ID = "0190a5b2-7c1e-7d3a-9f4b-2a6c8e0d1f99"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_repo():
    repo = MagicMock()
    repo.run_transaction.side_effect = lambda unit_of_work: unit_of_work()
    return repo


@pytest.fixture()
def mock_history():
    return MagicMock()


@pytest.fixture()
def view_counter():
    return MagicMock()


@pytest.fixture()
def service(mock_repo, mock_history, view_counter):
    return ProductService(
        repository=mock_repo,
        price_history_repository=mock_history,
        view_counter=view_counter,
    )


def _create_dto(**overrides):
    payload = {
        "title": {"es": "Camiseta"},
        "description": {"es": "Algodón"},
        "price": Decimal("19.99"),
        "productTypeId": TYPE_ID,
        "color": "black",
    }
    payload.update(overrides)
    return validate_create_product(payload)


def _product(**overrides) -> Product:
    defaults = {
        "title": {"es": "Camiseta"},
        "description": {"es": "Algodón"},
        "slug": "camiseta",
        "price": Decimal("19.99"),
        "product_type_id": TYPE_ID,
        "color": "black",
    }
    defaults.update(overrides)
    return Product(**defaults)


def _inserted_slugs(mock_repo):
    return [c.args[0]["slug"] for c in mock_repo.insert.call_args_list]


# ===========================================================================
# create_product
# ===========================================================================


class TestCreateProduct:
    def test_slug_derived_from_spanish_title(self, service, mock_repo):
        mock_repo.insert.side_effect = lambda data: _product(**data)

        product = service.create_product(_create_dto(title={"es": "Camiseta Ñandú", "en": "Shirt"}))

        assert product.slug == "camiseta-nandu"
        mock_repo.insert.assert_called_once()
        mock_repo.find_one.assert_not_called()

    def test_collision_retries_with_suffix(self, service, mock_repo):
        mock_repo.insert.side_effect = [
            UniqueViolation(("slug",)),
            UniqueViolation(("slug",)),
            _product(slug="camiseta-2"),
        ]

        product = service.create_product(_create_dto())

        assert product.slug == "camiseta-2"
        assert _inserted_slugs(mock_repo) == ["camiseta", "camiseta-1", "camiseta-2"]

    def test_exhausting_candidates_raises_conflict(self, service, mock_repo):
        mock_repo.insert.side_effect = UniqueViolation(("slug",))

        with pytest.raises(ProductSlugAlreadyExists):
            service.create_product(_create_dto())

        assert mock_repo.insert.call_count == 11
        assert _inserted_slugs(mock_repo)[-1] == "camiseta-10"

    def test_explicit_slug_single_attempt(self, service, mock_repo):
        mock_repo.insert.side_effect = UniqueViolation(("slug",))

        with pytest.raises(ProductSlugAlreadyExists):
            service.create_product(_create_dto(slug="mi-camiseta"))

        assert _inserted_slugs(mock_repo) == ["mi-camiseta"]

    def test_other_unique_violation_is_terminal(self, service, mock_repo):
        mock_repo.insert.side_effect = UniqueViolation(("id",))

        with pytest.raises(ProductSlugAlreadyExists):
            service.create_product(_create_dto())

        mock_repo.insert.assert_called_once()

    def test_non_unique_store_error_propagates(self, service, mock_repo):
        mock_repo.insert.side_effect = RuntimeError("connection lost")

        with pytest.raises(RuntimeError, match="connection lost"):
            service.create_product(_create_dto())

    def test_insert_carries_fields(self, service, mock_repo):
        mock_repo.insert.side_effect = lambda data: _product(**data)

        service.create_product(_create_dto(createdByUserId="42", isHot=True))

        data = mock_repo.insert.call_args.args[0]
        assert data["product_type_id"] == TYPE_ID
        assert data["created_by_user_id"] == "42"
        assert data["is_hot"] is True

    def test_collision_logged(self, service, mock_repo, caplog):
        mock_repo.insert.side_effect = [UniqueViolation(("slug",)), _product(slug="camiseta-1")]

        with caplog.at_level(logging.INFO):
            service.create_product(_create_dto())

        assert "product.slug_collision" in caplog.text


# ===========================================================================
# update_product
# ===========================================================================


class TestUpdateProduct:
    def test_price_change_runs_transaction_with_history(self, service, mock_repo, mock_history):
        existing = _product(price=Decimal("19.99"))
        mock_repo.find_one.return_value = existing
        mock_repo.update.return_value = existing

        service.update_product(
            PRODUCT_ID,
            validate_update_product({"price": Decimal("24.99")}),
            changed_by_user_id="7",
            reason="Rebajas",
        )

        mock_repo.run_transaction.assert_called_once()
        mock_repo.update.assert_called_once_with(PRODUCT_ID, {"price": Decimal("24.99")})
        mock_history.insert.assert_called_once_with(
            {
                "product_id": PRODUCT_ID,
                "price": Decimal("24.99"),
                "changed_by_user_id": "7",
                "reason": "Rebajas",
            }
        )

    def test_same_price_value_is_not_a_change(self, service, mock_repo, mock_history):
        existing = _product(price=Decimal("19.99"))
        mock_repo.find_one.return_value = existing
        mock_repo.update.return_value = existing

        service.update_product(PRODUCT_ID, validate_update_product({"price": Decimal("19.990")}))

        mock_repo.run_transaction.assert_not_called()
        mock_history.insert.assert_not_called()
        mock_repo.update.assert_called_once()

    def test_update_without_price_skips_transaction(self, service, mock_repo, mock_history):
        mock_repo.find_one.return_value = _product()

        service.update_product(PRODUCT_ID, validate_update_product({"color": "red"}))

        mock_repo.run_transaction.assert_not_called()
        mock_history.insert.assert_not_called()
        mock_repo.update.assert_called_once_with(PRODUCT_ID, {"color": "red"})

    def test_fetch_excludes_soft_deleted(self, service, mock_repo):
        mock_repo.find_one.return_value = None

        with pytest.raises(ProductNotFound):
            service.update_product(PRODUCT_ID, validate_update_product({"color": "red"}))

        predicate = mock_repo.find_one.call_args.args[0]
        assert ("deleted_at__isnull", True) in predicate.children
        mock_repo.update.assert_not_called()

    def test_compare_at_checked_against_stored_price(self, service, mock_repo):
        mock_repo.find_one.return_value = _product(price=Decimal("30.00"))

        with pytest.raises(InvalidProductData) as exc_info:
            service.update_product(
                PRODUCT_ID, validate_update_product({"compareAtPrice": Decimal("25.00")})
            )

        assert exc_info.value.field == "compareAtPrice"
        mock_repo.update.assert_not_called()

    def test_price_only_update_ignores_stored_compare_at(self, service, mock_repo, mock_history):
        existing = _product(price=Decimal("20.00"), compare_at_price=Decimal("30.00"))
        mock_repo.find_one.return_value = existing
        mock_repo.update.return_value = existing

        service.update_product(PRODUCT_ID, validate_update_product({"price": 35}))

        mock_repo.run_transaction.assert_called_once()
        mock_repo.update.assert_called_once_with(PRODUCT_ID, {"price": Decimal("35")})
        mock_history.insert.assert_called_once()

    def test_clearing_compare_at_allows_higher_price(self, service, mock_repo):
        existing = _product(price=Decimal("20.00"), compare_at_price=Decimal("25.00"))
        mock_repo.find_one.return_value = existing
        mock_repo.update.return_value = existing

        service.update_product(
            PRODUCT_ID,
            validate_update_product({"price": Decimal("26.00"), "compareAtPrice": None}),
        )

        mock_repo.run_transaction.assert_called_once()

    def test_slug_violation_becomes_conflict(self, service, mock_repo):
        mock_repo.find_one.return_value = _product()
        mock_repo.update.side_effect = UniqueViolation(("slug",))

        with pytest.raises(ProductSlugAlreadyExists):
            service.update_product(PRODUCT_ID, validate_update_product({"slug": "otra"}))

    def test_other_unique_violation_propagates(self, service, mock_repo):
        mock_repo.find_one.return_value = _product()
        mock_repo.update.side_effect = UniqueViolation(("id",))

        with pytest.raises(UniqueViolation):
            service.update_product(PRODUCT_ID, validate_update_product({"color": "red"}))

    def test_history_failure_propagates(self, service, mock_repo, mock_history):
        mock_repo.find_one.return_value = _product(price=Decimal("19.99"))
        mock_history.insert.side_effect = RuntimeError("disk full")

        with pytest.raises(RuntimeError, match="disk full"):
            service.update_product(PRODUCT_ID, validate_update_product({"price": Decimal("9.99")}))

    def test_invalid_id_rejected_before_store(self, service, mock_repo):
        with pytest.raises(InvalidProductData, match="Invalid ID format"):
            service.update_product("nope", validate_update_product({"color": "red"}))

        mock_repo.find_one.assert_not_called()


# ===========================================================================
# Soft-delete lifecycle
# ===========================================================================


class TestLifecycle:
    def test_soft_delete_live_product(self, service, mock_repo):
        mock_repo.find_one.return_value = _product()

        service.soft_delete_product(PRODUCT_ID)

        predicate = mock_repo.find_one.call_args.args[0]
        assert ("deleted_at__isnull", True) in predicate.children
        patch = mock_repo.update.call_args.args[1]
        assert patch["deleted_at"] is not None

    def test_soft_delete_missing_raises(self, service, mock_repo):
        mock_repo.find_one.return_value = None

        with pytest.raises(ProductNotFound):
            service.soft_delete_product(PRODUCT_ID)

        mock_repo.update.assert_not_called()

    def test_restore_looks_only_at_deleted(self, service, mock_repo):
        restored = _product()
        mock_repo.find_one.return_value = _product()
        mock_repo.update.return_value = restored

        assert service.restore_product(PRODUCT_ID) is restored

        predicate = mock_repo.find_one.call_args.args[0]
        assert ("deleted_at__isnull", False) in predicate.children
        mock_repo.update.assert_called_once_with(PRODUCT_ID, {"deleted_at": None})

    def test_restore_live_product_raises(self, service, mock_repo):
        mock_repo.find_one.return_value = None

        with pytest.raises(ProductNotFound):
            service.restore_product(PRODUCT_ID)


# ===========================================================================
# Reads
# ===========================================================================


class TestReads:
    def test_get_by_id_live_only_by_default(self, service, mock_repo):
        mock_repo.find_one.return_value = None

        with pytest.raises(ProductNotFound):
            service.get_product_by_id(PRODUCT_ID)

        predicate = mock_repo.find_one.call_args.args[0]
        assert ("deleted_at__isnull", True) in predicate.children

    def test_get_by_id_including_deleted(self, service, mock_repo):
        product = _product()
        mock_repo.find_one.return_value = product

        assert service.get_product_by_id(PRODUCT_ID, include_soft_deleted=True) is product

        predicate = mock_repo.find_one.call_args.args[0]
        assert ("deleted_at__isnull", True) not in predicate.children

    def test_get_by_slug(self, service, mock_repo):
        product = _product()
        mock_repo.find_one.return_value = product

        assert service.get_product_by_slug("camiseta") is product

    def test_detail_dispatches_view_count(self, service, mock_repo, view_counter):
        product = _product()
        mock_repo.find_detail.return_value = product

        assert service.get_product_detail_by_slug("camiseta") is product

        view_counter.assert_called_once_with(product.id)

    def test_detail_survives_dispatch_failure(self, service, mock_repo, view_counter, caplog):
        product = _product()
        mock_repo.find_detail.return_value = product
        view_counter.side_effect = ConnectionError("broker down")

        with caplog.at_level(logging.WARNING):
            assert service.get_product_detail_by_slug("camiseta") is product

        assert "product.view_count_dispatch_failed" in caplog.text

    def test_detail_missing_does_not_count(self, service, mock_repo, view_counter):
        mock_repo.find_detail.return_value = None

        with pytest.raises(ProductNotFound):
            service.get_product_detail_by_slug("camiseta")

        view_counter.assert_not_called()

    def test_price_history_newest_first(self, service, mock_repo, mock_history):
        product = _product()
        mock_repo.find_one.return_value = product
        mock_history.find_many.return_value = ["newer", "older"]

        assert service.list_price_history(PRODUCT_ID) == ["newer", "older"]

        mock_history.find_many.assert_called_once_with(
            Q(product_id=product.id), order_by=("-created_at", "-id")
        )
        predicate = mock_repo.find_one.call_args.args[0]
        assert ("deleted_at__isnull", True) not in predicate.children

    def test_price_history_of_missing_product(self, service, mock_repo, mock_history):
        mock_repo.find_one.return_value = None

        with pytest.raises(ProductNotFound):
            service.list_price_history(PRODUCT_ID)

        mock_history.find_many.assert_not_called()


class TestListProducts:
    def test_page_and_count_share_predicate(self, service, mock_repo):
        mock_repo.find_many.return_value = []
        mock_repo.count.return_value = 0

        service.list_products(ListProductsDTO.model_validate({"page": 3, "limit": 5}))

        predicate, ordering, offset, limit = mock_repo.find_many.call_args.args
        assert mock_repo.count.call_args.args[0] is predicate
        assert ordering == ("-created_at",)
        assert (offset, limit) == (10, 5)

    def test_pagination_metadata(self, service, mock_repo):
        mock_repo.find_many.return_value = []
        mock_repo.count.return_value = 11

        page = service.list_products(ListProductsDTO.model_validate({"limit": 5}))

        assert page.items == []
        assert page.pagination.total == 11
        assert page.pagination.total_pages == 3
        assert page.pagination.has_next is True
        assert page.pagination.has_prev is False

    def test_default_excludes_deleted(self, service, mock_repo):
        mock_repo.find_many.return_value = []
        mock_repo.count.return_value = 0

        service.list_products(ListProductsDTO.model_validate({}))

        assert mock_repo.count.call_args.args[0] == LIVE

    def test_include_deleted(self, service, mock_repo):
        mock_repo.find_many.return_value = []
        mock_repo.count.return_value = 0

        service.list_products(ListProductsDTO.model_validate({"includeSoftDeleted": True}))

        assert mock_repo.count.call_args.args[0] == Q()
