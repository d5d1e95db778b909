"""Base abstract models shared by every catalog aggregate.

Provides:
- ``BaseModel``: UUIDv7 primary key + created_at / updated_at timestamps.
- ``SoftDeleteModel``: Extends BaseModel with a nullable ``deleted_at``
  marker.  ``NULL`` means *live*; a timestamp means *deleted*.
- ``LIVE`` / ``DELETED``: reusable ``Q`` predicates for the two lifecycle
  states, used by the fetch-before-mutate step of every service.

The default manager is **unfiltered**.  Callers opt into ``.alive()`` or
combine ``LIVE`` into their predicate explicitly, so an admin read that
includes deleted rows is never a silent default.
"""

from __future__ import annotations

import uuid6
from django.db import models
from django.utils import timezone

LIVE = models.Q(deleted_at__isnull=True)
DELETED = models.Q(deleted_at__isnull=False)


# ---------------------------------------------------------------------------
# BaseModel
# ---------------------------------------------------------------------------


class BaseModel(models.Model):
    """Abstract base with UUIDv7 PK and timestamp bookkeeping."""

    id = models.UUIDField(
        primary_key=True,
        default=uuid6.uuid7,
        editable=False,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        """Keep ``updated_at`` in ``update_fields`` so partial saves refresh it."""
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["updated_at"]
        super().save(*args, **kwargs)


# ---------------------------------------------------------------------------
# Soft delete
# ---------------------------------------------------------------------------


class SoftDeleteQuerySet(models.QuerySet):
    def alive(self) -> SoftDeleteQuerySet:
        return self.filter(LIVE)

    def dead(self) -> SoftDeleteQuerySet:
        return self.filter(DELETED)


class SoftDeleteManager(models.Manager.from_queryset(SoftDeleteQuerySet)):
    """Unfiltered manager exposing ``.alive()`` / ``.dead()``."""


class SoftDeleteModel(BaseModel):
    """Abstract model whose rows are marked, never physically removed.

    State transitions (Live -> Deleted, Deleted -> Live) are driven by the
    service layer through the repository, which checks the current state
    first; the helpers below only describe the state.
    """

    deleted_at = models.DateTimeField(
        null=True,
        blank=True,
        default=None,
        db_index=True,
    )

    objects = SoftDeleteManager()

    class Meta:
        abstract = True

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @staticmethod
    def deletion_timestamp():
        """Timestamp written into ``deleted_at`` on soft delete."""
        return timezone.now()
