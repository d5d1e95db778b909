"""Unique-constraint violation decoding.

Django surfaces every constraint failure as a bare ``IntegrityError``.
The catalog needs to know *which* column collided (a slug collision is
retried, anything else is not), so this module inspects the driver error
and maps it back onto the model's columns.

Resolution order:

1. ``diag.constraint_name`` on the driver exception (psycopg 2 and 3).
2. The error text: SQLite (``UNIQUE constraint failed: table.col``),
   PostgreSQL (``Key (col)=(...)`` / ``constraint "name"``) and MySQL
   (``Duplicate entry '...' for key 'name'``).

A constraint name is matched against the model's ``UniqueConstraint``
declarations first, then against ``unique=True`` columns using Django's
naming conventions (``<table>_<column>_key``, ``<table>_<column>_<hash>_uniq``,
``<table>.<column>``).
"""

from __future__ import annotations

import re
from typing import Optional, Tuple, Type

from django.db import IntegrityError, models

_SQLITE_RE = re.compile(r"UNIQUE constraint failed: (?P<columns>[\w.]+(?:,\s*[\w.]+)*)")
_POSTGRES_KEY_RE = re.compile(r"Key \((?P<columns>[^)]+)\)=")
_POSTGRES_NAME_RE = re.compile(r'unique constraint "(?P<name>[^"]+)"')
_MYSQL_RE = re.compile(r"Duplicate entry .* for key '(?P<name>[^']+)'")


class UniqueViolation(IntegrityError):
    """A unique constraint rejected an insert or update.

    ``columns`` lists the violating database columns; it is empty when the
    backend did not expose enough detail to tell.
    """

    def __init__(self, columns: Tuple[str, ...], message: str = "") -> None:
        super().__init__(message or f"Unique constraint violated on {columns or '?'}")
        self.columns = tuple(columns)

    def involves(self, column: str) -> bool:
        return column in self.columns


def _columns_for_constraint(model: Type[models.Model], name: str) -> Tuple[str, ...]:
    opts = model._meta
    for constraint in opts.constraints:
        if isinstance(constraint, models.UniqueConstraint) and constraint.name == name:
            return tuple(opts.get_field(f).column for f in constraint.fields)

    bare = name.split(".")[-1]
    prefix = f"{opts.db_table}_"
    if bare.startswith(prefix):
        bare = bare[len(prefix):]

    for field in opts.concrete_fields:
        if not field.unique or field.primary_key:
            continue
        if bare == field.column or bare.startswith(f"{field.column}_"):
            return (field.column,)
    if bare in ("PRIMARY", opts.pk.column):
        return (opts.pk.column,)
    return ()


_PG_UNIQUE_VIOLATION = "23505"


def _driver_constraint_name(exc: BaseException) -> Optional[str]:
    """Constraint name reported by psycopg for a unique violation only."""
    cause = exc.__cause__ or exc.__context__
    sqlstate = getattr(cause, "sqlstate", None) or getattr(cause, "pgcode", None)
    if sqlstate != _PG_UNIQUE_VIOLATION:
        return None
    diag = getattr(cause, "diag", None)
    return getattr(diag, "constraint_name", None)


def unique_violation_from(
    exc: IntegrityError, model: Type[models.Model]
) -> Optional[UniqueViolation]:
    """Translate *exc* into a ``UniqueViolation`` or return ``None``.

    ``None`` means the error is not a uniqueness failure (foreign key,
    check constraint, NOT NULL) and must be propagated unchanged.
    """
    if isinstance(exc, UniqueViolation):
        return exc

    name = _driver_constraint_name(exc)
    if name:
        return UniqueViolation(_columns_for_constraint(model, name), str(exc))

    text = str(exc)
    lowered = text.lower()
    if "unique" not in lowered and "duplicate" not in lowered:
        return None

    match = _SQLITE_RE.search(text)
    if match:
        columns = tuple(
            part.strip().split(".")[-1] for part in match.group("columns").split(",")
        )
        return UniqueViolation(columns, text)

    match = _POSTGRES_KEY_RE.search(text)
    if match:
        columns = tuple(c.strip().strip('"') for c in match.group("columns").split(","))
        return UniqueViolation(columns, text)

    match = _POSTGRES_NAME_RE.search(text) or _MYSQL_RE.search(text)
    if match:
        return UniqueViolation(_columns_for_constraint(model, match.group("name")), text)

    return UniqueViolation((), text)
