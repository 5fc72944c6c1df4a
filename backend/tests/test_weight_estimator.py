"""
Tests for expected-weight estimation.
"""

from types import SimpleNamespace

import pytest

from packcheck.services.catalog import (
    CatalogResolver,
    ResolvedLine,
    estimate_expected_weight,
)
from packcheck.services.catalog.resolver import ResolvedModifier
from shared.utils.exceptions import ResolutionError
from shared.utils.schemas import StructuredItem, StructuredModifier


def _line(quantity, product_weight, modifier_weights=()):
    source = StructuredItem(
        name="Taco",
        quantity=quantity,
        modifiers=[{"name": f"mod {i}"} for i, _ in enumerate(modifier_weights)],
    )
    return ResolvedLine(
        source=source,
        product=SimpleNamespace(weight=product_weight),
        modifiers=[
            ResolvedModifier(source=mod, modifier=SimpleNamespace(weight=weight))
            for mod, weight in zip(source.modifiers, modifier_weights)
        ],
    )


class TestEstimateExpectedWeight:

    def test_one_taco_with_extra_cheese(self):
        assert estimate_expected_weight([_line(1, 170, [20])]) == 190

    def test_negative_modifier_scales_with_quantity(self):
        assert estimate_expected_weight([_line(2, 170, [-30])]) == 280

    def test_sums_across_lines(self):
        lines = [_line(2, 170, [20]), _line(1, 400)]
        assert estimate_expected_weight(lines) == 2 * 190 + 400

    def test_auto_created_products_weigh_nothing(self):
        assert estimate_expected_weight([_line(3, 0, [0])]) == 0

    def test_total_is_not_clamped(self):
        assert estimate_expected_weight([_line(1, 10, [-50])]) == -40

    def test_unbound_product_raises(self):
        line = ResolvedLine(source=StructuredItem(name="Taco", quantity=1), product=None)
        with pytest.raises(ResolutionError):
            estimate_expected_weight([line])

    def test_unbound_modifier_raises(self):
        line = _line(1, 170, [20])
        line.modifiers[0] = ResolvedModifier(source=StructuredModifier(name="x"), modifier=None)
        with pytest.raises(ResolutionError):
            estimate_expected_weight([line])


class TestEstimateFromCatalog:

    def test_resolved_order_uses_catalog_weights(
        self, db_session, seed_tenant, seed_catalog, make_structured
    ):
        structured = make_structured(
            items=[
                {"name": "Taco", "quantity": 2, "price": 7, "modifiers": [{"name": "No Onion"}]},
                {"name": "Burrito", "quantity": 1, "price": 12},
            ]
        )
        lines = CatalogResolver(db_session, seed_tenant.id).resolve(structured)

        assert estimate_expected_weight(lines) == 2 * 170 - 2 * 30 + 400
