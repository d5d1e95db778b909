"""Field rules shared by the catalog DTOs.

Pure functions: each takes a raw value, returns the normalised value or
raises ``ValueError`` with a human-readable message.  The DTO validators
wrap them and ``validators.py`` turns the resulting pydantic error into a
``ValidationFailure`` that names the field.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)
SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
FOLDER_RE = re.compile(r"^[a-zA-Z0-9-]+$")

PRIMARY_LANGUAGE = "es"

MAX_SLUG_LENGTH = 100
MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000
MAX_ALT_TEXT_LENGTH = 200
MAX_COLOR_LENGTH = 50
MAX_URL_LENGTH = 500
MAX_SEARCH_LENGTH = 100
MAX_REASON_LENGTH = 255
MAX_PRICE_DECIMAL_PLACES = 2
MAX_TYPE_NAME_LENGTH = 100
MAX_FOLDER_LENGTH = 50
MAX_SORT_ORDER = 2147483647


def localized_text(value: Any, label: str, max_length: int) -> Dict[str, str]:
    if not isinstance(value, dict):
        raise ValueError(f"{label} must be an object")
    if not value.get(PRIMARY_LANGUAGE):
        raise ValueError(f"{label} must include Spanish translation ({PRIMARY_LANGUAGE})")
    for language, text in value.items():
        if not isinstance(text, str):
            raise ValueError(f"{label}.{language} must be a string")
        if not text.strip():
            raise ValueError(f"{label}.{language} cannot be empty")
        if len(text) > max_length:
            raise ValueError(f"{label}.{language} exceeds {max_length} characters")
    return dict(value)


def decimal_places(amount: Decimal) -> int:
    """Fractional digits of *amount* once trailing zeros are dropped."""
    exponent = amount.normalize().as_tuple().exponent
    if not isinstance(exponent, int):
        return 0
    return max(0, -exponent)


def money(value: Any, label: str) -> Decimal:
    """A strictly positive amount with at most two decimal places.

    Floats go through ``str`` so ``19.99`` is read as written rather than
    as its binary approximation.  Booleans and strings are rejected.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ValueError(f"{label} must be a number")
    amount = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    if not amount.is_finite():
        raise ValueError(f"{label} must be a number")
    if amount <= 0:
        raise ValueError(f"{label} must be greater than 0")
    if decimal_places(amount) > MAX_PRICE_DECIMAL_PLACES:
        raise ValueError(
            f"{label} must have at most {MAX_PRICE_DECIMAL_PLACES} decimal places"
        )
    return amount


def price_bound(value: Any, label: str) -> Optional[Decimal]:
    """A non-negative price filter; query strings are accepted."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"{label} must be a number")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"{label} must be a number") from None
    if not amount.is_finite():
        raise ValueError(f"{label} must be a number")
    if amount < 0:
        raise ValueError(f"{label} must be greater than or equal to 0")
    return amount


def slug(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("Slug must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValueError("Slug cannot be empty")
    if len(trimmed) > MAX_SLUG_LENGTH:
        raise ValueError(f"Slug exceeds {MAX_SLUG_LENGTH} characters")
    if trimmed != trimmed.lower():
        raise ValueError("Slug must be lowercase")
    if not SLUG_RE.match(trimmed):
        raise ValueError("Slug must contain only lowercase letters, numbers, and hyphens")
    return trimmed


def uuid_string(value: Any) -> str:
    """UUID shape check only; existence is the store's business."""
    if not value or not isinstance(value, str):
        raise ValueError("ID is required")
    if not UUID_RE.match(value):
        raise ValueError("Invalid ID format")
    return value


def sizes(value: Any) -> List[str]:
    if not isinstance(value, list):
        raise ValueError("Available sizes must be an array")
    for size in value:
        if not isinstance(size, str):
            raise ValueError("All sizes must be strings")
        if not size.strip():
            raise ValueError("All sizes must be non-empty strings")
    return list(value)


def bounded_text(value: Any, label: str, max_length: int) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"{label} cannot be empty")
    if not isinstance(value, str):
        raise ValueError(f"{label} must be a string")
    trimmed = value.strip()
    if len(trimmed) > max_length:
        raise ValueError(f"{label} exceeds {max_length} characters")
    return trimmed


def strict_bool(value: Any, label: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{label} must be a boolean")
    return value


def image_url(value: Any) -> str:
    if not value or not isinstance(value, str) or not value.strip():
        raise ValueError("URL is required")
    trimmed = value.strip()
    if len(trimmed) > MAX_URL_LENGTH:
        raise ValueError(f"URL exceeds {MAX_URL_LENGTH} characters")
    if not trimmed.startswith(("http://", "https://")):
        raise ValueError("URL must start with http:// or https://")
    return trimmed


def sort_order(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("sortOrder must be a number")
    if value < 0:
        raise ValueError("sortOrder must be greater than or equal to 0")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError("sortOrder must be an integer")
    if value > MAX_SORT_ORDER:
        raise ValueError(f"sortOrder cannot exceed {MAX_SORT_ORDER}")
    return int(value)


def search_term(value: Any) -> Optional[str]:
    """Trimmed search text; blank collapses to ``None``."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError("search must be a string")
    trimmed = value.strip()
    if not trimmed:
        return None
    if len(trimmed) > MAX_SEARCH_LENGTH:
        raise ValueError(f"search exceeds {MAX_SEARCH_LENGTH} characters")
    return trimmed


def upload_folder(value: Any) -> Optional[str]:
    """CDN sub-folder for an upload; blank collapses to ``None``."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError("folder must be a string")
    trimmed = value.strip()
    if not trimmed:
        return None
    if len(trimmed) > MAX_FOLDER_LENGTH:
        raise ValueError(f"folder exceeds {MAX_FOLDER_LENGTH} characters")
    if not FOLDER_RE.match(trimmed):
        raise ValueError("folder must contain only letters, numbers, and hyphens")
    return trimmed
