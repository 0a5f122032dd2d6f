from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .metrics import ERROR, WARNING, risk_level
from .models import Composition
from .planner import CompositionResult
from .settings import load_settings

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}

# name, attribute, benchmark (%)
KEY_METRICS = (
    ("Efficiency", "efficiency", 80.0),
    ("Weight utilization", "weight", 70.0),
    ("Space utilization", "volume", 70.0),
)


@dataclass(frozen=True)
class RecommendationItem:
    type: str
    priority: str
    message: str
    action_required: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "priority": self.priority,
            "message": self.message,
            "action_required": self.action_required,
        }


@dataclass
class CompositionReport:
    composition_id: int
    name: str
    status: str
    generated_at: datetime
    composition: CompositionResult
    executive_summary: Dict[str, Any]
    metrics: Optional[Dict[str, Any]] = None
    recommendations: List[RecommendationItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "composition_id": self.composition_id,
            "name": self.name,
            "status": self.status,
            "generated_at": self.generated_at.isoformat(),
            "composition": self.composition.to_dict(),
            "metrics": self.metrics,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "executive_summary": self.executive_summary,
        }


def overall_rating(result: CompositionResult, settings: Dict[str, float]) -> str:
    if not result.is_valid:
        return "poor"
    if result.efficiency >= settings["rating_excellent"]:
        return "excellent"
    if result.efficiency >= settings["rating_good"]:
        return "good"
    if result.efficiency >= settings["rating_satisfactory"]:
        return "satisfactory"
    return "needs_improvement"


def derive_recommendations(result: CompositionResult) -> List[RecommendationItem]:
    items: List[RecommendationItem] = []
    for violation in result.violations:
        message = violation.message
        if violation.suggested_solution:
            message = f"{message}. {violation.suggested_solution}"
        if violation.severity == ERROR:
            items.append(RecommendationItem("constraint", "high", message, True))
        elif violation.severity == WARNING:
            items.append(RecommendationItem("constraint", "medium", message, False))
    for text in result.recommendations:
        items.append(RecommendationItem("optimization", "medium", text, False))
    for text in result.warnings:
        items.append(RecommendationItem("stability", "low", text, False))
    # stable sort keeps insertion order within a priority
    items.sort(key=lambda item: PRIORITY_ORDER.get(item.priority, len(PRIORITY_ORDER)))
    return items


def build_metrics(result: CompositionResult) -> Dict[str, Any]:
    return {
        "space_utilization": result.volume.utilization,
        "weight_utilization": result.weight.utilization,
        "height_utilization": result.height.utilization,
        "overall_efficiency": result.efficiency,
        "risk_assessment": {
            "level": risk_level(result.violations, result.warnings),
            "factors": [v.message for v in result.violations] + list(result.warnings),
            "mitigation": sorted({v.suggested_solution for v in result.violations if v.suggested_solution}),
        },
    }


def _benchmark_status(value: float, benchmark: float) -> str:
    if abs(value - benchmark) <= 1.0:
        return "at"
    return "above" if value > benchmark else "below"


def build_executive_summary(
    result: CompositionResult,
    recommendations: List[RecommendationItem],
    settings: Dict[str, float],
) -> Dict[str, Any]:
    key_metrics = []
    for name, attribute, benchmark in KEY_METRICS:
        if attribute == "efficiency":
            value = result.efficiency * 100
        else:
            value = getattr(result, attribute).utilization * 100
        key_metrics.append(
            {
                "name": name,
                "value": value,
                "unit": "%",
                "benchmark": benchmark,
                "status": _benchmark_status(value, benchmark),
            }
        )
    return {
        "overall_rating": overall_rating(result, settings),
        "key_metrics": key_metrics,
        "major_issues": [v.message for v in result.violations if v.severity == ERROR],
        "top_recommendations": [item.message for item in recommendations[:3]],
    }


def build_report(
    composition: Composition,
    result: CompositionResult,
    generated_at: datetime,
    include_metrics: bool = True,
    include_recommendations: bool = True,
    settings: Optional[Dict[str, float]] = None,
) -> CompositionReport:
    """Read-only report over a stored composition result."""
    settings = settings or load_settings()
    recommendations = derive_recommendations(result)
    return CompositionReport(
        composition_id=composition.id,
        name=composition.name,
        status=composition.status.value,
        generated_at=generated_at,
        composition=result,
        metrics=build_metrics(result) if include_metrics else None,
        recommendations=recommendations if include_recommendations else [],
        executive_summary=build_executive_summary(result, recommendations, settings),
    )


__all__ = [
    "RecommendationItem",
    "CompositionReport",
    "overall_rating",
    "derive_recommendations",
    "build_metrics",
    "build_executive_summary",
    "build_report",
]
