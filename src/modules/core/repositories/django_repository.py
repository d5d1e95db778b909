"""Django ORM implementation of the generic store contract.

Every write runs inside its own ``transaction.atomic()`` block.  Outside
a transaction that is a plain commit; inside one (a unit of work, or a
request wrapped in ``ATOMIC_REQUESTS``) it becomes a savepoint, so a
rejected insert leaves the surrounding transaction usable and the caller
can retry with a different value.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, Type, TypeVar

import structlog
from django.db import IntegrityError, models, transaction
from django.db.models import Q

from modules.core.integrity import unique_violation_from
from modules.core.repositories.interfaces import IRepository

logger = structlog.get_logger(__name__)

M = TypeVar("M", bound=models.Model)
R = TypeVar("R")


class DjangoRepository(IRepository[M], Generic[M]):
    """Concrete store for a single Django model.

    Subclasses set ``model`` and may override ``get_queryset`` to add
    eager loading.
    """

    model: Type[M]

    def get_queryset(self) -> models.QuerySet:
        return self.model._default_manager.all()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_one(self, predicate: Q) -> Optional[M]:
        return self.get_queryset().filter(predicate).first()

    def find_many(
        self,
        predicate: Q,
        order_by: Sequence[str] = (),
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[M]:
        queryset = self.get_queryset().filter(predicate)
        if order_by:
            queryset = queryset.order_by(*order_by)
        if limit is not None:
            queryset = queryset[offset : offset + limit]
        elif offset:
            queryset = queryset[offset:]
        return list(queryset)

    def count(self, predicate: Q) -> int:
        return self.model._default_manager.filter(predicate).count()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, data: Dict[str, Any]) -> M:
        entity = self.model(**data)
        try:
            with transaction.atomic():
                entity.save(force_insert=True)
        except IntegrityError as exc:
            self._raise_translated(exc)
        return entity

    def update(self, id: Any, patch: Dict[str, Any]) -> M:
        entity = self.model._default_manager.get(pk=id)
        for field, value in patch.items():
            setattr(entity, field, value)
        try:
            with transaction.atomic():
                entity.save(update_fields=list(patch))
        except IntegrityError as exc:
            self._raise_translated(exc)
        return entity

    def update_where(self, predicate: Q, patch: Dict[str, Any]) -> int:
        try:
            with transaction.atomic():
                return self.model._default_manager.filter(predicate).update(**patch)
        except IntegrityError as exc:
            self._raise_translated(exc)

    def delete(self, id: Any) -> None:
        self.model._default_manager.filter(pk=id).delete()

    def run_transaction(self, unit_of_work: Callable[[], R]) -> R:
        with transaction.atomic():
            return unit_of_work()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _raise_translated(self, exc: IntegrityError) -> None:
        violation = unique_violation_from(exc, self.model)
        if violation is None:
            raise exc
        logger.info(
            "store.unique_violation",
            model=self.model._meta.label,
            columns=list(violation.columns),
        )
        raise violation from exc
