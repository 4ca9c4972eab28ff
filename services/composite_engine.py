"""
Combines category scores into the EVA composite score and letter grade.

total (0-100) = sum(score[c] * weight[c]) / sum(weight[c]) over categories that produced a score.
On the 850-point scale the 0-100 total is mapped linearly onto 300-850. Grade bands are
inclusive at their lower edge. A failed required minimum sets blocked=True; callers must
check blocked before trusting total_score.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import structlog

from schemas.configuration import InstrumentConfiguration
from schemas.enums import Band, RequirementType, RiskCategory, ScoreScale
from schemas.risk import (
    CATEGORY_FIELDS,
    AgencyScore,
    AssessmentDetails,
    CategoryScore,
    DataPoint,
    EVARiskAssessment,
    NegativeFactor,
    RequirementResult,
    RiskScoreCustomization,
)
from services import category_scorer, requirement_evaluator
from services.category_scorer import CategorySelector
from services.defaults import default_data_points, default_weights
from services.exceptions import NoWeightError, ScoreOutOfRangeError

logger = structlog.get_logger()

FICO_FLOOR = 300.0
FICO_CEILING = 850.0


@dataclass(frozen=True)
class GradeBand:
    grade: str
    rating: str
    lower: float


GRADE_BANDS: dict[ScoreScale, tuple[GradeBand, ...]] = {
    ScoreScale.HUNDRED: (
        GradeBand("A", "Excellent", 90),
        GradeBand("B", "Very Good", 80),
        GradeBand("C", "Good", 70),
        GradeBand("D", "Fair", 60),
        GradeBand("F", "Poor", 0),
    ),
    ScoreScale.FICO: (
        GradeBand("A", "Excellent", 800),
        GradeBand("B", "Very Good", 740),
        GradeBand("C", "Good", 670),
        GradeBand("D", "Fair", 580),
        GradeBand("F", "Poor", 300),
    ),
}

SCALE_BOUNDS: dict[ScoreScale, tuple[float, float]] = {
    ScoreScale.HUNDRED: (0.0, 100.0),
    ScoreScale.FICO: (FICO_FLOOR, FICO_CEILING),
}

# Owning category reported for a failed requirement
REQUIREMENT_CATEGORY: dict[RequirementType, RiskCategory] = {
    RequirementType.CREDIT_SCORE: RiskCategory.CREDITWORTHINESS,
    RequirementType.REVENUE: RiskCategory.FINANCIAL,
    RequirementType.TIME_IN_BUSINESS: RiskCategory.CREDITWORTHINESS,
    RequirementType.CASH_FLOW: RiskCategory.CASHFLOW,
    RequirementType.DEBT_RATIO: RiskCategory.FINANCIAL,
    RequirementType.COLLATERAL_VALUE: RiskCategory.PROPERTY,
}


def derive_grade(total_score: float, scale: ScoreScale = ScoreScale.HUNDRED) -> GradeBand:
    low, high = SCALE_BOUNDS[scale]
    if not low <= total_score <= high:
        raise ValueError(f"Score {total_score} outside {low:g}-{high:g} scale")
    for band in GRADE_BANDS[scale]:
        if total_score >= band.lower:
            return band
    raise ValueError(f"No grade band for score {total_score}")  # unreachable: last band starts at the floor


def to_scale(percent: float, scale: ScoreScale) -> float:
    """Map a 0-100 weighted mean onto the requested scale."""
    if scale == ScoreScale.FICO:
        return float(round(FICO_FLOOR + percent / 100.0 * (FICO_CEILING - FICO_FLOOR)))
    return round(percent, 2)


def compute(
    config: InstrumentConfiguration,
    category_scores: Mapping[RiskCategory, CategoryScore | float | None],
    weights: RiskScoreCustomization | None = None,
    requirement_results: Iterable[RequirementResult] = (),
    scale: ScoreScale = ScoreScale.HUNDRED,
    customized_by: str | None = None,
    default: RiskScoreCustomization | None = None,
) -> EVARiskAssessment:
    """
    Build the composite assessment. category_scores may hold CategoryScore results
    (banding feeds negative_factors) or plain 0-100 numbers; other numbers raise
    ScoreOutOfRangeError. Raises NoWeightError when the weights sum to zero or the
    categories that scored carry no weight. When no category scored at all the result
    has scored=False and no grade.
    """
    default = default or config.category_weights or default_weights(config.instrument_type)
    weights = weights or default
    requirement_results = list(requirement_results)

    sub_scores: dict[RiskCategory, float | None] = {}
    negative_factors: list[NegativeFactor] = []
    excluded = []
    for category in RiskCategory:
        entry = category_scores.get(category)
        if isinstance(entry, CategoryScore):
            sub_scores[category] = entry.percent
            excluded.extend(entry.excluded)
            negative_factors.extend(_negative_data_points(entry))
        elif entry is not None:
            value = float(entry)
            if not 0.0 <= value <= 100.0:
                raise ScoreOutOfRangeError(category.value, value)
            sub_scores[category] = value
        else:
            sub_scores[category] = None

    if weights.total() <= 0:
        raise NoWeightError("Category weights sum to zero; no composite score can be computed")
    weighted_sum = 0.0
    weight_total = 0.0
    scored = False
    for category, sub in sub_scores.items():
        if sub is None:
            continue
        scored = True
        w = weights.for_category(category)
        weighted_sum += sub * w
        weight_total += w
    if scored and weight_total <= 0:
        raise NoWeightError("Every category that produced a score has zero weight")

    # Nothing scored: still report requirements, blocked and exclusions
    total_score = None
    band = None
    if scored:
        total_score = to_scale(weighted_sum / weight_total, scale)
        band = derive_grade(total_score, scale)

    for result in requirement_results:
        if result.required_not_met:
            negative_factors.append(
                NegativeFactor(
                    category=REQUIREMENT_CATEGORY[result.type].value,
                    source="requirement",
                    id=result.requirement_id,
                    label=result.name,
                    detail="value missing" if result.missing else f"{result.actual_value:g} below minimum {result.minimum_value:g}",
                )
            )

    blocked = any(r.required_not_met for r in requirement_results)
    is_custom = weights != default

    assessment = EVARiskAssessment(
        configuration_id=config.id,
        instrument_type=config.instrument_type,
        scale=scale,
        scored=scored,
        grade=band.grade if band else None,
        rating=band.rating if band else None,
        total_score=total_score,
        requirement_score=sum(r.contribution for r in requirement_results),
        requirement_results=requirement_results,
        negative_factors=negative_factors,
        excluded_data_points=excluded,
        blocked=blocked,
        is_custom_weighted=is_custom,
        customized_by=customized_by if is_custom else None,
        risk_score_customization=weights,
        **{
            f"{CATEGORY_FIELDS[c]}_score": (round(s, 2) if s is not None else None)
            for c, s in sub_scores.items()
        },
    )
    logger.info(
        "assessment_computed",
        configuration_id=config.id,
        total_score=total_score,
        grade=band.grade if band else None,
        scored=scored,
        blocked=blocked,
        excluded=len(excluded),
    )
    return assessment


def _negative_data_points(entry: CategoryScore) -> list[NegativeFactor]:
    return [
        NegativeFactor(
            category=entry.category.value,
            source="data_point",
            id=dp_id,
            label=entry.labels.get(dp_id, dp_id),
            detail="classified negative",
        )
        for dp_id, band in entry.banding.items()
        if band == Band.NEGATIVE
    ]


def blend_agency_scores(scores: Iterable[AgencyScore]) -> float | None:
    """Weighted mean of the enabled credit-agency scores."""
    enabled = [s for s in scores if s.enabled and s.weight > 0]
    if not enabled:
        return None
    total = sum(s.weight for s in enabled)
    return round(sum(s.score * s.weight for s in enabled) / total, 1)


def details_to_facts(details: AssessmentDetails) -> dict[str, Any]:
    """Flatten nested detail blocks into data-point facts keyed by catalog id."""
    facts: dict[str, Any] = {}

    def put(key: str, value: Any) -> None:
        if value is not None:
            facts[key] = value

    pcw = details.personal_credit_worthiness
    if pcw is not None:
        blended = pcw.blended_credit_score
        if blended is None:
            blended = blend_agency_scores(pcw.credit_agency_scores)
        put("credit-score", blended)
        put("payment-history", pcw.missed_payments)
        put("public-records", pcw.public_records)
    if details.business_credit_scores is not None:
        put("paynet-score", details.business_credit_scores.paynet_master_score)
    fin = details.financial_statements_ratios
    if fin is not None:
        put("debt-to-equity", fin.debt_to_equity_ratio)
        put("current-ratio", fin.current_ratio)
        put("interest-coverage", fin.interest_coverage_ratio)
    cash = details.business_cash_flow_variables
    if cash is not None:
        put("annual-cash-flow", cash.operating_cash_flow_growth)
        put("cash-conversion-cycle", cash.cash_conversion_cycle)
        put("days-accounts-receivable", cash.days_accounts_receivable)
    legal = details.legal_regulatory_compliance
    if legal is not None:
        put("compliance-history", legal.compliance_issues)
        put("legal-disputes", legal.legal_disputes)
    equip = details.equipment_factors
    if equip is not None:
        put("equipment-age", equip.equipment_age)
        put("utilization-rate", equip.utilization_rate)
        put("residual-value", equip.residual_value)
    prop = details.property_factors
    if prop is not None:
        put("loan-to-value", prop.loan_to_value_ratio)
        put("debt-service-coverage", prop.debt_service_coverage)
        if prop.property_grade is not None:
            facts["property-class"] = f"Class {prop.property_grade}"
    return facts


def assess(
    config: InstrumentConfiguration,
    facts: Mapping[str, Any],
    data_points: Iterable[DataPoint] | None = None,
    weights: RiskScoreCustomization | None = None,
    scale: ScoreScale = ScoreScale.HUNDRED,
    customized_by: str | None = None,
    category: CategorySelector = "all",
    details: AssessmentDetails | None = None,
) -> EVARiskAssessment:
    """
    Full pipeline: requirements, per-category scores, composite.
    Facts given explicitly take precedence over values derived from details. Data points
    come from the argument, then the configuration, then the built-in catalog.
    """
    merged: dict[str, Any] = details_to_facts(details) if details is not None else {}
    merged.update(facts)

    if data_points is None:
        data_points = config.data_points if config.data_points is not None else default_data_points()
    points = category_scorer.select_data_points(data_points, category)
    requirement_results = requirement_evaluator.evaluate_all(config.minimum_requirements, merged)
    categories = sorted({dp.category for dp in points}, key=list(RiskCategory).index)
    category_scores = {c: category_scorer.score(c, points, merged) for c in categories}

    assessment = compute(
        config,
        category_scores,
        weights=weights,
        requirement_results=requirement_results,
        scale=scale,
        customized_by=customized_by,
    )
    if details is not None:
        assessment.details = details
    return assessment
