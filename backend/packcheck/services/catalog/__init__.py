"""
Catalog services: name normalization, resolution against the tenant
catalog, money conversion and expected-weight estimation.
"""

from .normalize import normalize_text, normalized_equals
from .pricing import to_cents, unit_price_cents
from .resolver import CatalogResolver, ResolvedLine, ResolvedModifier
from .weight import estimate_expected_weight

__all__ = [
    "normalize_text",
    "normalized_equals",
    "to_cents",
    "unit_price_cents",
    "CatalogResolver",
    "ResolvedLine",
    "ResolvedModifier",
    "estimate_expected_weight",
]
