"""Domain error taxonomy shared by every catalog module.

Four categories reach the API boundary:

- ``ValidationFailure``: caller error detected before any store access.
- ``NotFound``: entity absent, soft-deleted, or not owned by the parent.
- ``Conflict``: a uniqueness rule could not be satisfied.
- Anything else (``django.db.DatabaseError`` and friends) is a store
  failure and propagates uninterpreted.

Each error carries a stable machine-readable ``code`` and, for
validation failures, the offending ``field``.
"""

from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    code = "DOMAIN_ERROR"
    default_message = "Domain rule violated"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None) -> None:
        self.message = message or self.default_message
        self.field = field
        super().__init__(self.message)

    def as_dict(self) -> dict:
        payload = {"message": self.message, "code": self.code}
        if self.field:
            payload["field"] = self.field
        return payload


class ValidationFailure(DomainError):
    code = "VALIDATION_FAILED"
    default_message = "Invalid input"


class NotFound(DomainError):
    code = "NOT_FOUND"
    default_message = "Resource not found"


class Conflict(DomainError):
    code = "CONFLICT"
    default_message = "Resource already exists"
