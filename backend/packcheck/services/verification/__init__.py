"""
Verification services.

- weight_analysis.py: pure, advisory weight classification
- weight_units.py: gram/ounce conversion for operator-facing messages
- visual.py: photo verification through the vision collaborator
"""

from .weight_analysis import (
    WeightAnalysis,
    analyze_order_weight,
    estimate_item_weight_oz,
    find_missing_item,
)
from .weight_units import format_weight, grams_to_ounces, ounces_to_grams
from .visual import (
    VisualVerificationService,
    build_verification_prompt,
    classify_visual_result,
)

__all__ = [
    "WeightAnalysis",
    "analyze_order_weight",
    "estimate_item_weight_oz",
    "find_missing_item",
    "format_weight",
    "grams_to_ounces",
    "ounces_to_grams",
    "VisualVerificationService",
    "build_verification_prompt",
    "classify_visual_result",
]
