"""
Text normalization for catalog matching.

Two names refer to the same catalog entry when their normalized forms are
equal: case, accents and surrounding or repeated whitespace are ignored.
"""

import re
import unicodedata
from typing import Iterable, TypeVar

_WHITESPACE = re.compile(r"\s+")

T = TypeVar("T")


def normalize_text(text: str) -> str:
    """
    Canonical form of a name.

    Lower-cases, decomposes (NFD) and drops combining marks, trims and
    collapses internal whitespace runs to a single space.

        >>> normalize_text("  Jalapeño   POPPERS ")
        'jalapeno poppers'
    """
    decomposed = unicodedata.normalize("NFD", text.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE.sub(" ", stripped).strip()


def normalized_equals(a: str, b: str) -> bool:
    return normalize_text(a) == normalize_text(b)


def normalized_includes(text: str, search: str) -> bool:
    """True if the normalized ``search`` occurs inside the normalized ``text``."""
    return normalize_text(search) in normalize_text(text)


def find_by_normalized_name(items: Iterable[T], name: str, attr: str = "name") -> T | None:
    """First item whose ``attr`` normalizes to the same value as ``name``."""
    target = normalize_text(name)
    for item in items:
        if normalize_text(getattr(item, attr)) == target:
            return item
    return None
