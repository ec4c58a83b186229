"""URL slug helpers for public budget links."""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable

MAX_BUDGET_SLUG_LENGTH = 60


def generate_slug(text: str) -> str:
    """Lowercase ASCII slug: accents stripped, spaces to hyphens, other symbols dropped."""
    normalized = unicodedata.normalize("NFD", text.lower())
    ascii_text = "".join(ch for ch in normalized if not unicodedata.combining(ch))
    ascii_text = re.sub(r"[^a-z0-9\s-]", "", ascii_text)
    ascii_text = re.sub(r"\s+", "-", ascii_text.strip())
    ascii_text = re.sub(r"-+", "-", ascii_text)
    return ascii_text.strip("-")


def generate_budget_slug(
    contact_name: str | None = None,
    lead_name: str | None = None,
    budget_title: str | None = None,
) -> str:
    name = contact_name or lead_name or "cliente"
    title = budget_title or "presupuesto"
    full_slug = f"{generate_slug(name)}-{generate_slug(title)}".strip("-")
    if len(full_slug) > MAX_BUDGET_SLUG_LENGTH:
        full_slug = full_slug[:MAX_BUDGET_SLUG_LENGTH].rstrip("-")
    return full_slug or "presupuesto"


def generate_unique_slug(base_slug: str, existing_slugs: Iterable[str]) -> str:
    """Append `-1`, `-2`, ... until the slug is not taken."""
    taken = set(existing_slugs)
    slug = base_slug
    counter = 1
    while slug in taken:
        slug = f"{base_slug}-{counter}"
        counter += 1
    return slug
