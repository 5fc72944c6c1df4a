"""
Expected weight of an order, computed from catalog data.
"""

from typing import Iterable

from packcheck.services.catalog.resolver import ResolvedLine
from shared.utils.exceptions import ResolutionError


def estimate_expected_weight(lines: Iterable[ResolvedLine]) -> int:
    """
    Sum in grams of product.weight * quantity plus, for each modifier on a
    line, modifier.weight * the line's quantity.

    Modifier weights may be negative; the total is not clamped.
    Raises ResolutionError if any product or modifier is unbound.
    """
    total = 0
    for line in lines:
        if line.product is None:
            raise ResolutionError("Unbound product line", names=[line.source.name])
        total += line.product.weight * line.quantity
        for resolved in line.modifiers:
            if resolved.modifier is None:
                raise ResolutionError("Unbound modifier", names=[resolved.source.name])
            total += resolved.modifier.weight * line.quantity
    return total
