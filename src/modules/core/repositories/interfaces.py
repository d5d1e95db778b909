"""Generic store contract (Dependency Inversion Principle).

``IRepository[T]`` is the persistence boundary consumed by every catalog
service.  Predicates are Django ``Q`` objects built by the service or the
query builder; the repository never sees untyped request data.

Write methods raise ``modules.core.integrity.UniqueViolation`` (carrying
the violating columns) when a unique constraint rejects the change.  Any
other database error propagates unchanged.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, TypeVar

from django.db.models import Q

T = TypeVar("T")
R = TypeVar("R")


class IRepository(ABC, Generic[T]):
    """Base store contract.

    Type parameter ``T`` is the entity managed by the repository
    (e.g. ``Product``, ``ProductImage``).
    """

    @abstractmethod
    def find_one(self, predicate: Q) -> Optional[T]:
        """Return the first entity matching *predicate*, or ``None``."""

    @abstractmethod
    def find_many(
        self,
        predicate: Q,
        order_by: Sequence[str] = (),
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[T]:
        """Return a window of entities matching *predicate*."""

    @abstractmethod
    def count(self, predicate: Q) -> int:
        """Count entities matching *predicate*."""

    @abstractmethod
    def insert(self, data: Dict[str, Any]) -> T:
        """Create an entity from field values."""

    @abstractmethod
    def update(self, id: Any, patch: Dict[str, Any]) -> T:
        """Apply *patch* to the entity with primary key *id* and return it."""

    @abstractmethod
    def update_where(self, predicate: Q, patch: Dict[str, Any]) -> int:
        """Bulk-apply *patch* to every entity matching *predicate*."""

    @abstractmethod
    def delete(self, id: Any) -> None:
        """Physically remove the entity with primary key *id*."""

    @abstractmethod
    def run_transaction(self, unit_of_work: Callable[[], R]) -> R:
        """Run *unit_of_work* atomically; any exception rolls everything back."""
