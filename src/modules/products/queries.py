"""Listing query construction.

Turns a validated ``ListProductsDTO`` into the ``Q`` predicate, ordering
and page window the repository understands.  The same predicate object
feeds both the page query and the count query so ``total`` always
describes the rows being paged.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Tuple, TypeVar

import structlog
from django.conf import settings
from django.db import connection
from django.db.models import Q

from modules.core.models import LIVE
from modules.products.dtos import ListProductsDTO

logger = structlog.get_logger(__name__)

T = TypeVar("T")

SORT_FIELDS = {
    "price": "price",
    "createdAt": "created_at",
    "salesCount": "sales_count",
}


def build_product_filter(dto: ListProductsDTO) -> Q:
    predicate = Q()
    if not dto.include_soft_deleted:
        predicate &= LIVE
    if dto.product_type_id is not None:
        predicate &= Q(product_type_id=dto.product_type_id)
    if dto.is_active is not None:
        predicate &= Q(is_active=dto.is_active)
    if dto.is_hot is not None:
        predicate &= Q(is_hot=dto.is_hot)
    if dto.min_price is not None:
        predicate &= Q(price__gte=dto.min_price)
    if dto.max_price is not None:
        predicate &= Q(price__lte=dto.max_price)
    if dto.search:
        predicate &= Q(title__es__icontains=dto.search) | Q(title__en__icontains=dto.search)
    return predicate


def build_ordering(dto: ListProductsDTO) -> Tuple[str, ...]:
    column = SORT_FIELDS[dto.sort_by]
    return (f"-{column}" if dto.sort_direction == "desc" else column,)


def page_window(page: int, limit: int) -> Tuple[int, int]:
    """``(offset, limit)`` for a 1-based page number."""
    return (page - 1) * limit, limit


def _in_worker(query: Callable[[], T]) -> T:
    # Each worker thread gets its own connection from Django; close it
    # before the thread goes back to the pool.
    try:
        return query()
    finally:
        connection.close()


def fetch_page_and_count(
    page_query: Callable[[], List[T]],
    count_query: Callable[[], int],
) -> Tuple[List[T], int]:
    """Run the page and count queries, concurrently when enabled."""
    if not getattr(settings, "CATALOG_PARALLEL_LIST_QUERIES", False):
        return page_query(), count_query()

    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="catalog-list") as pool:
        items_future = pool.submit(_in_worker, page_query)
        total_future = pool.submit(_in_worker, count_query)
        items, total = items_future.result(), total_future.result()
    logger.debug("product.list_parallel", rows=len(items), total=total)
    return items, total
