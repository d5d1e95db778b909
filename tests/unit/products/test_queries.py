from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from django.db.models import Q

from modules.core.models import LIVE
from modules.products.dtos import ListProductsDTO
from modules.products.queries import (
    build_ordering,
    build_product_filter,
    fetch_page_and_count,
    page_window,
)

pytestmark = pytest.mark.unit


def _dto(**params) -> ListProductsDTO:
    return ListProductsDTO.model_validate(params)


class TestBuildProductFilter:
    def test_default_excludes_soft_deleted(self):
        assert build_product_filter(_dto()) == Q() & LIVE

    def test_include_soft_deleted_drops_lifecycle_filter(self):
        assert build_product_filter(_dto(includeSoftDeleted=True)) == Q()

    def test_price_range_is_inclusive(self):
        predicate = build_product_filter(
            _dto(minPrice="10", maxPrice="20", includeSoftDeleted=True)
        )
        children = dict(predicate.children)
        assert children["price__gte"] == Decimal("10")
        assert children["price__lte"] == Decimal("20")

    def test_flags_and_type(self):
        type_id = "0190a5b2-7c1e-7d3a-9f4b-2a6c8e0d1f23"
        predicate = build_product_filter(
            _dto(productTypeId=type_id, isActive=True, isHot=False, includeSoftDeleted=True)
        )
        children = dict(predicate.children)
        assert children["product_type_id"] == type_id
        assert children["is_active"] is True
        assert children["is_hot"] is False

    def test_search_matches_spanish_or_english_title(self):
        predicate = build_product_filter(_dto(search="doge", includeSoftDeleted=True))
        expected = Q() & (Q(title__es__icontains="doge") | Q(title__en__icontains="doge"))
        assert predicate == expected


class TestBuildOrdering:
    @pytest.mark.parametrize(
        "sort_by, direction, expected",
        [
            ("price", "asc", ("price",)),
            ("price", "desc", ("-price",)),
            ("createdAt", "desc", ("-created_at",)),
            ("salesCount", "asc", ("sales_count",)),
        ],
    )
    def test_mapping(self, sort_by, direction, expected):
        assert build_ordering(_dto(sortBy=sort_by, sortDirection=direction)) == expected


class TestPageWindow:
    @pytest.mark.parametrize(
        "page, limit, expected",
        [(1, 20, (0, 20)), (2, 20, (20, 20)), (3, 5, (10, 5))],
    )
    def test_offsets(self, page, limit, expected):
        assert page_window(page, limit) == expected


class TestFetchPageAndCount:
    def test_sequential_by_default(self, settings):
        settings.CATALOG_PARALLEL_LIST_QUERIES = False
        page_query = MagicMock(return_value=["a", "b"])
        count_query = MagicMock(return_value=7)

        assert fetch_page_and_count(page_query, count_query) == (["a", "b"], 7)
        page_query.assert_called_once_with()
        count_query.assert_called_once_with()

    def test_parallel_when_enabled(self, settings):
        settings.CATALOG_PARALLEL_LIST_QUERIES = True
        page_query = MagicMock(return_value=["a"])
        count_query = MagicMock(return_value=1)

        assert fetch_page_and_count(page_query, count_query) == (["a"], 1)
        page_query.assert_called_once_with()
        count_query.assert_called_once_with()
