"""
Weight conversion between grams (storage) and ounces (operator display).
"""

GRAMS_PER_OUNCE = 28.3495


def grams_to_ounces(grams: float) -> float:
    """Grams to ounces, rounded to 2 decimals."""
    return round(grams / GRAMS_PER_OUNCE, 2)


def ounces_to_grams(ounces: float) -> int:
    """Ounces to whole grams."""
    return int(round(ounces * GRAMS_PER_OUNCE))


def format_weight(grams: float) -> str:
    """
    Human-readable weight in ounces, switching to pounds from 16 oz.

        >>> format_weight(28.3495 * 20)
        '1 lb 4.0 oz'
    """
    ounces = grams_to_ounces(grams)
    if abs(ounces) >= 16:
        sign = "-" if ounces < 0 else ""
        pounds, remaining = divmod(abs(ounces), 16)
        remaining = round(remaining, 2)
        if remaining == 0:
            return f"{sign}{int(pounds)} lb"
        return f"{sign}{int(pounds)} lb {remaining} oz"
    return f"{ounces} oz"
