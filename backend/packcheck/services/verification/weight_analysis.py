"""
Weight Verification Analyzer.

Classifies the difference between a bag's measured and expected weight
and, for light bags, guesses which item is missing. Pure and advisory:
nothing here reads or writes the store.
"""

from dataclasses import dataclass
from typing import Any, Iterable

from packcheck.services.catalog.normalize import normalize_text
from packcheck.services.verification.weight_units import grams_to_ounces
from shared.config.constants import WeightAction, WeightStatus

# Typical single-unit weights in ounces
ITEM_WEIGHT_ESTIMATES: dict[str, float] = {
    # Tacos
    "taco": 6,
    "taco al pastor": 6,
    "taco de asada": 6,
    "taco de carnitas": 6,
    "taco de pollo": 5.5,
    "taco de pescado": 5,
    "taco veggie": 4.5,
    # Mains
    "burrito": 14,
    "quesadilla": 12,
    "quesabirria": 15,
    "nachos": 16,
    "torta": 18,
    "empanada": 6,
    # Sides
    "elote": 8,
    "esquite": 6,
    "chips": 2,
    "guacamole": 4,
    "queso dip": 6,
    "rice": 4,
    "beans": 4,
    # Drinks
    "agua fresca": 1,
    "soda": 1,
    "beer": 1,
    "margarita": 2,
}
DEFAULT_ITEM_WEIGHT_OZ = 8.0
MIN_SUGGESTION_CONFIDENCE = 30.0

# (upper bound in oz, label, confidence) used when no order line fits
_FALLBACK_BANDS: tuple[tuple[float, str, float], ...] = (
    (4, "Small side item", 50),
    (8, "Taco or side", 60),
    (16, "Main item (burrito/quesadilla)", 70),
)
_FALLBACK_LARGE = ("Large item or multiple items", 40.0)


@dataclass(frozen=True)
class WeightAnalysis:
    status: str
    action: str
    message: str
    delta: int
    suggested_item: str | None = None
    confidence: float | None = None


def estimate_item_weight_oz(name: str) -> float:
    """Estimated single-unit weight of an item, by name."""
    normalized = normalize_text(name)
    if normalized in ITEM_WEIGHT_ESTIMATES:
        return ITEM_WEIGHT_ESTIMATES[normalized]
    for key, weight in ITEM_WEIGHT_ESTIMATES.items():
        if key in normalized or normalized in key:
            return weight
    return DEFAULT_ITEM_WEIGHT_OZ


def _item_name(item: Any) -> str:
    return item if isinstance(item, str) else item.name


def find_missing_item(missing_oz: float, items: Iterable[Any]) -> tuple[str, float]:
    """
    Most likely missing item for ``missing_oz`` ounces.

    Each order line is scored by how close one unit's estimated weight is
    to the missing weight; only scores above 30 count. Without a candidate
    the suggestion comes from the weight band.
    """
    best: tuple[str, float] | None = None
    for item in items:
        name = _item_name(item)
        unit_oz = estimate_item_weight_oz(name)
        confidence = max(0.0, 100 - abs(missing_oz - unit_oz) / unit_oz * 100)
        if confidence > MIN_SUGGESTION_CONFIDENCE and (best is None or confidence > best[1]):
            best = (f"1x {name}", confidence)

    if best is not None:
        return best

    for upper, label, confidence in _FALLBACK_BANDS:
        if missing_oz < upper:
            return label, confidence
    return _FALLBACK_LARGE


def analyze_order_weight(
    actual_weight: int,
    expected_weight: int,
    items: Iterable[Any] = (),
    tolerance: int = 100,
) -> WeightAnalysis:
    """
    Classify a measured weight against the expectation (all grams).

    |delta| <= tolerance is perfect, a lighter bag is underweight (with a
    missing-item guess) and a heavier one is overweight.
    """
    delta = actual_weight - expected_weight
    abs_delta_oz = grams_to_ounces(abs(delta))

    if abs(delta) <= tolerance:
        return WeightAnalysis(
            status=WeightStatus.PERFECT,
            action=WeightAction.READY,
            message="Weight verified - Ready for delivery",
            delta=delta,
        )

    if delta < 0:
        suggested, confidence = find_missing_item(abs_delta_oz, items)
        return WeightAnalysis(
            status=WeightStatus.UNDERWEIGHT,
            action=WeightAction.REWEIGH,
            message=f"{abs_delta_oz:.1f} oz under - Possibly missing: {suggested}",
            delta=delta,
            suggested_item=suggested,
            confidence=round(confidence, 1),
        )

    return WeightAnalysis(
        status=WeightStatus.OVERWEIGHT,
        action=WeightAction.REVIEW,
        message=f"{abs_delta_oz:.1f} oz over - Check for extra items",
        delta=delta,
    )
