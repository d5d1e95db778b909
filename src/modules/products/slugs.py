"""URL slug derivation for products.

Slugs come from the Spanish title: accents are folded, anything outside
``[a-z0-9]`` becomes a single hyphen.  When a slug is taken the service
walks ``candidate_slugs`` (``camiseta``, ``camiseta-1`` ... ``camiseta-10``)
and relies on the unique index to detect collisions.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Iterator

from modules.products.models import SLUG_MAX_LENGTH

MAX_SLUG_RETRIES = 10
FALLBACK_SLUG = "product"

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def slugify_title(text: str) -> str:
    # Not django.utils.text.slugify: it deletes punctuation ("2/3" gives
    # "23") and keeps underscores, while slugs here split words on both.
    decomposed = unicodedata.normalize("NFD", text or "")
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    slug = _NON_ALNUM_RE.sub("-", stripped.lower()).strip("-")
    return slug or FALLBACK_SLUG


def base_slug(title: str) -> str:
    """Slug for *title*, short enough to take any retry suffix."""
    room = SLUG_MAX_LENGTH - len(f"-{MAX_SLUG_RETRIES}")
    return slugify_title(title)[:room].rstrip("-") or FALLBACK_SLUG


def candidate_slugs(base: str) -> Iterator[str]:
    yield base
    for attempt in range(1, MAX_SLUG_RETRIES + 1):
        yield f"{base}-{attempt}"
