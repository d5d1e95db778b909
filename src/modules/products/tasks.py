"""Asynchronous catalog tasks."""

import structlog
from celery import shared_task

logger = structlog.get_logger(__name__)


@shared_task(name="products.increment_view_count", ignore_result=True)
def increment_view_count(product_id):
    """Add one to a product's view counter; failures are logged, never raised."""
    from modules.products.repositories.django_repository import ProductDjangoRepository

    try:
        ProductDjangoRepository().increment_view_count(product_id)
    except Exception:
        logger.exception("product.view_count_failed", product_id=str(product_id))


def dispatch_view_increment(product_id) -> None:
    """Queue a view increment; never raises into the caller.

    Publishing is a single attempt, so an unreachable broker costs the
    request at most ``CELERY_BROKER_CONNECTION_TIMEOUT`` seconds.
    """
    try:
        increment_view_count.apply_async(args=(str(product_id),), retry=False)
    except Exception as exc:
        logger.warning(
            "product.view_count_dispatch_failed",
            product_id=str(product_id),
            error=str(exc),
        )
