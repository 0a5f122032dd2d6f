import math
from decimal import Decimal

import pytest

from conftest import WATER, DictProductCatalog, ListPalletCatalog
from packaging_core.errors import NotFoundError
from packaging_core.layout import ARRANGEMENT_LIMIT
from packaging_core.metrics import ERROR
from packaging_core.models import (
    CompositionConstraints,
    CompositionProduct,
    CompositionRequest,
    PalletSpec,
    ProductSpec,
)
from packaging_core.planner import CompositionPlanner, CompositionResult, effective_limits

HEAVY = 2
WIDE = 3


def _planner(catalog, settings, *pallets):
    products = DictProductCatalog(
        ProductSpec(id=WATER, weight=0.5, width=10, length=10, height=20),
        ProductSpec(id=HEAVY, weight=50, width=40, length=60, height=30),
        ProductSpec(id=WIDE, weight=5, width=150, length=150, height=10),
    )
    if not pallets:
        pallets = (PalletSpec(1, "EUR", 80, 120, 160, 1000),)
    return CompositionPlanner(products, ListPalletCatalog(*pallets), catalog, settings)


def _request(*products, pallet_id=None, constraints=None):
    return CompositionRequest(
        tuple(CompositionProduct(pid, Decimal(str(q))) for pid, q in products),
        pallet_id,
        constraints,
    )


def test_overweight_load_is_invalid(catalog, settings):
    pallet = PalletSpec(5, "LIGHT", 80, 120, 160, 100)
    result = _planner(catalog, settings, pallet).calculate_optimal_composition(
        _request((HEAVY, 3), pallet_id=5)
    )
    assert result.weight.total == 150
    assert result.weight.utilization == 1.5
    assert not result.is_valid
    errors = [v for v in result.violations if v.severity == ERROR]
    assert [(v.type, v.affected_products) for v in errors] == [("weight", [HEAVY])]


def test_totals_and_layout(catalog, settings):
    result = _planner(catalog, settings).calculate_optimal_composition(_request((WATER, 120)))
    assert result.is_valid
    assert result.pallet_id == 1
    assert math.isclose(result.weight.total, 60)
    assert math.isclose(result.volume.total, 120 * 2000 / 1_000_000)
    assert result.layout.items_per_layer == 96
    assert result.layout.layers == 2
    assert result.height.total == 40
    assert result.products[0].packaging_type_id == 1
    assert result.products[0].can_fit


def test_efficiency_uses_weighted_clamped_utilizations(catalog, settings):
    result = _planner(catalog, settings).calculate_optimal_composition(_request((WATER, 120)))
    expected = (
        0.4 * result.weight.utilization
        + 0.4 * result.volume.utilization
        + 0.2 * result.height.utilization
    )
    assert result.efficiency == pytest.approx(expected)
    assert 0.0 <= result.efficiency <= 1.0


def test_limits_are_minimum_of_pallet_and_overrides():
    pallet = PalletSpec(1, "EUR", 80, 120, 160, 1000)
    limits = effective_limits(pallet, CompositionConstraints(max_weight=400, max_height=300))
    assert limits["weight"] == 400
    assert limits["height"] == 160
    assert math.isclose(limits["volume"], 1.536)


def test_height_override_makes_load_invalid(catalog, settings):
    request = _request((WATER, 200), constraints=CompositionConstraints(max_height=30))
    result = _planner(catalog, settings).calculate_optimal_composition(request)
    assert result.height.limit == 30
    assert not result.is_valid
    assert any(v.type == "height" and v.severity == ERROR for v in result.violations)


def test_default_pallet_skips_unavailable(catalog, settings):
    pallets = (
        PalletSpec(1, "BROKEN", 80, 120, 160, 1000, status="maintenance"),
        PalletSpec(2, "IND", 100, 120, 180, 1500),
    )
    result = _planner(catalog, settings, *pallets).calculate_optimal_composition(
        _request((WATER, 10))
    )
    assert result.pallet_id == 2


def test_missing_pallet_and_product_are_not_found(catalog, settings):
    planner = _planner(catalog, settings)
    with pytest.raises(NotFoundError):
        planner.calculate_optimal_composition(_request((WATER, 1), pallet_id=99))
    with pytest.raises(NotFoundError):
        planner.calculate_optimal_composition(_request((404, 1)))
    empty = _planner(catalog, settings, PalletSpec(1, "X", 80, 120, 160, 10, status="retired"))
    with pytest.raises(NotFoundError):
        empty.calculate_optimal_composition(_request((WATER, 1)))


def test_negative_and_nan_quantities_are_violations(catalog, settings):
    result = _planner(catalog, settings).calculate_optimal_composition(
        _request((WATER, -5), (HEAVY, "NaN"))
    )
    assert not result.is_valid
    quantity_errors = [v for v in result.violations if v.type == "quantity"]
    assert [v.affected_products for v in quantity_errors] == [[WATER], [HEAVY]]
    assert result.weight.total == 0


def test_zero_quantity_only_warns(catalog, settings):
    result = _planner(catalog, settings).calculate_optimal_composition(_request((WATER, 0)))
    assert result.is_valid
    assert any("zero quantity" in warning for warning in result.warnings)


def test_oversized_product_is_reported(catalog, settings):
    result = _planner(catalog, settings).calculate_optimal_composition(_request((WIDE, 2)))
    assert not result.is_valid
    assert not result.products[0].can_fit
    assert result.products[0].issues
    assert result.layout.layers == 0
    assert "No product fits the pallet footprint" in result.warnings
    footprint = [v for v in result.violations if v.type == "footprint"]
    assert [(v.severity, v.affected_products) for v in footprint] == [(ERROR, [WIDE])]


def test_oversized_product_with_zero_quantity_stays_valid(catalog, settings):
    result = _planner(catalog, settings).calculate_optimal_composition(
        _request((WATER, 10), (WIDE, 0))
    )
    assert result.is_valid
    assert not result.products[1].can_fit


def test_low_usage_recommendations(catalog, settings):
    result = _planner(catalog, settings).calculate_optimal_composition(_request((WATER, 10)))
    assert any("efficiency" in warning for warning in result.warnings)
    assert len(result.recommendations) == 2


def test_many_layers_warn_about_stability(catalog, settings):
    result = _planner(catalog, settings).calculate_optimal_composition(_request((WATER, 400)))
    assert result.layout.layers == 5
    assert "Many layers may compromise load stability" in result.warnings


def test_validate_reports_metrics_and_risk(catalog, settings):
    pallet = PalletSpec(5, "LIGHT", 80, 120, 160, 100)
    planner = _planner(catalog, settings, pallet)
    validation = planner.validate_composition_constraints(_request((HEAVY, 3)))
    assert not validation.is_valid
    assert validation.metrics["risk_level"] == "high"
    assert validation.metrics["total_weight"] == 150

    ok = planner.validate_composition_constraints(_request((HEAVY, 1)))
    assert ok.is_valid
    assert ok.metrics["risk_level"] in ("low", "medium")


def test_result_dict_round_trip(catalog, settings):
    result = _planner(catalog, settings).calculate_optimal_composition(
        _request((WATER, 30), (HEAVY, 2))
    )
    restored = CompositionResult.from_dict(result.to_dict())
    assert restored == result


def test_result_from_malformed_dict_raises_value_error():
    with pytest.raises(ValueError):
        CompositionResult.from_dict({"is_valid": True})
    with pytest.raises(ValueError):
        CompositionResult.from_dict(["not", "a", "mapping"])


def test_large_quantity_keeps_totals_and_caps_arrangement(catalog, settings):
    result = _planner(catalog, settings).calculate_optimal_composition(_request((WATER, 200000)))
    assert result.layout.total_items == 200000
    assert len(result.layout.arrangement) == ARRANGEMENT_LIMIT
    assert result.weight.total == pytest.approx(100000)
    assert any("Arrangement lists the first" in warning for warning in result.warnings)
