"""
Scores one risk category from its data points.
Each data point is banded good/average/negative against its parsed thresholds; good earns
full credit, average half, negative none, unless the data point carries its own band
points. The category score is the (optionally weighted) credit share scaled to max_score.
A data point with a malformed threshold, a missing value, or a value outside every band
is excluded and reported; scoring carries on without it.
"""
from __future__ import annotations

from typing import Any, Iterable, Literal, Mapping

import structlog

from schemas.enums import Band, RiskCategory
from schemas.risk import CategoryScore, DataPoint, ExcludedDataPoint
from services.exceptions import UnparseableThresholdError

logger = structlog.get_logger()

BAND_CREDIT: dict[Band, float] = {
    Band.GOOD: 1.0,
    Band.AVERAGE: 0.5,
    Band.NEGATIVE: 0.0,
}

CategorySelector = RiskCategory | Literal["all"]


def select_data_points(data_points: Iterable[DataPoint], category: CategorySelector = "all") -> list[DataPoint]:
    """Data points for the active category, or every data point for "all"."""
    if category == "all":
        return list(data_points)
    category = RiskCategory(category)
    return [dp for dp in data_points if dp.category == category]


def score(
    category: RiskCategory,
    data_points: Iterable[DataPoint],
    actuals: Mapping[str, Any],
    weights: Mapping[str, float] | None = None,
    max_score: float = 100.0,
) -> CategoryScore:
    banding: dict[str, Band] = {}
    labels: dict[str, str] = {}
    excluded: list[ExcludedDataPoint] = []
    earned = 0.0
    total_weight = 0.0

    for dp in select_data_points(data_points, category):
        value = actuals.get(dp.id)
        if value is None:
            excluded.append(ExcludedDataPoint(data_point_id=dp.id, category=category, reason="missing value"))
            continue
        try:
            band = dp.classify(value)
        except UnparseableThresholdError as e:
            logger.warning("threshold_unparseable", data_point=dp.id, threshold=e.text)
            excluded.append(ExcludedDataPoint(data_point_id=dp.id, category=category, reason=str(e)))
            continue
        if band is None:
            excluded.append(
                ExcludedDataPoint(data_point_id=dp.id, category=category, reason=f"value {value!r} outside every band")
            )
            continue

        weight = _weight_for(dp, weights)
        banding[dp.id] = band
        labels[dp.id] = dp.label
        earned += _credit(dp, band) * weight
        total_weight += weight

    category_score = None
    if total_weight > 0:
        category_score = round(earned / total_weight * max_score, 4)

    return CategoryScore(
        category=category,
        category_score=category_score,
        max_score=max_score,
        banding=banding,
        labels=labels,
        excluded=excluded,
    )


def _credit(dp: DataPoint, band: Band) -> float:
    if dp.points is not None:
        return dp.points.credit(band)
    return BAND_CREDIT[band]


def _weight_for(dp: DataPoint, weights: Mapping[str, float] | None) -> float:
    if weights is not None and dp.id in weights:
        return float(weights[dp.id])
    if dp.weight is not None:
        return dp.weight
    return 1.0
