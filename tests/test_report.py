from decimal import Decimal

import pytest

from conftest import WATER, DictProductCatalog, ListPalletCatalog
from packaging_core.errors import NotFoundError
from packaging_core.lifecycle import CompositionLifecycleManager
from packaging_core.metrics import ERROR, Violation
from packaging_core.models import CompositionProduct, CompositionRequest, PalletSpec, ProductSpec
from packaging_core.planner import CompositionPlanner
from packaging_core.report import derive_recommendations, overall_rating
from warehouse_app.data import InMemoryCompositionRepository

HEAVY = 2


def _manager(catalog, inventory, settings, repository):
    planner = CompositionPlanner(
        DictProductCatalog(
            ProductSpec(id=WATER, weight=10, width=40, length=60, height=40),
            ProductSpec(id=HEAVY, weight=400, width=40, length=60, height=40),
        ),
        ListPalletCatalog(PalletSpec(1, "EUR", 80, 120, 160, 1000)),
        catalog,
        settings,
    )
    return CompositionLifecycleManager(repository, planner, catalog, inventory)


def _create(manager, product_id, quantity):
    request = CompositionRequest((CompositionProduct(product_id, Decimal(quantity)),))
    return manager.create(request, user_id=1, name=f"P{product_id}x{quantity}")


def test_report_for_nearly_full_pallet_is_rated_good(catalog, inventory, settings):
    manager = _manager(catalog, inventory, settings, InMemoryCompositionRepository())
    composition = _create(manager, WATER, 15)
    report = manager.generate_report(composition.id)

    summary = report.executive_summary
    assert report.composition.efficiency == pytest.approx(0.4 * 0.15 + 0.4 * 15 / 16 + 0.2 * 1.0)
    assert summary["overall_rating"] == "good"
    assert summary["major_issues"] == []
    assert [m["name"] for m in summary["key_metrics"]] == [
        "Efficiency",
        "Weight utilization",
        "Space utilization",
    ]
    assert report.metrics["overall_efficiency"] == report.composition.efficiency
    assert report.to_dict()["status"] == "draft"


def test_report_for_overloaded_pallet_is_poor(catalog, inventory, settings):
    manager = _manager(catalog, inventory, settings, InMemoryCompositionRepository())
    composition = _create(manager, HEAVY, 3)
    report = manager.generate_report(composition.id)

    assert report.executive_summary["overall_rating"] == "poor"
    assert report.executive_summary["major_issues"]
    assert report.metrics["risk_assessment"]["level"] == "high"
    assert report.recommendations[0].priority == "high"
    assert report.recommendations[0].action_required
    assert len(report.executive_summary["top_recommendations"]) <= 3


def test_report_sections_can_be_skipped(catalog, inventory, settings):
    manager = _manager(catalog, inventory, settings, InMemoryCompositionRepository())
    composition = _create(manager, WATER, 4)
    report = manager.generate_report(
        composition.id, include_metrics=False, include_recommendations=False
    )
    assert report.metrics is None
    assert report.recommendations == []
    assert report.executive_summary["overall_rating"]


def test_unusable_stored_result_is_not_found(catalog, inventory, settings):
    repository = InMemoryCompositionRepository()
    manager = _manager(catalog, inventory, settings, repository)
    composition = _create(manager, WATER, 4)
    composition.result = {"broken": True}
    repository.save(composition)
    with pytest.raises(NotFoundError):
        manager.generate_report(composition.id)


@pytest.mark.parametrize(
    "efficiency, expected",
    [(0.85, "excellent"), (0.8, "excellent"), (0.65, "good"), (0.55, "satisfactory"), (0.2, "needs_improvement")],
)
def test_rating_bands(catalog, inventory, settings, efficiency, expected):
    manager = _manager(catalog, inventory, settings, InMemoryCompositionRepository())
    result = manager.planner.calculate_optimal_composition(
        CompositionRequest((CompositionProduct(WATER, Decimal(1)),))
    )
    result.efficiency = efficiency
    assert overall_rating(result, settings) == expected


def test_recommendations_are_ordered_by_priority(catalog, inventory, settings):
    manager = _manager(catalog, inventory, settings, InMemoryCompositionRepository())
    result = manager.planner.calculate_optimal_composition(
        CompositionRequest((CompositionProduct(WATER, Decimal(1)),))
    )
    result.violations.append(Violation("weight", ERROR, "too heavy", [WATER], "split"))
    items = derive_recommendations(result)
    assert [item.priority for item in items] == sorted(
        (item.priority for item in items), key=["high", "medium", "low"].index
    )
    assert items[0].message == "too heavy. split"
