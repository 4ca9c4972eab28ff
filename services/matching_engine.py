"""
Ranks lenders for a deal by relationship quality, historical transaction performance and
client feedback. Older transactions and feedback are decayed by age bucket; negative
feedback is a multiplicative penalty, so one recent severe complaint can outweigh a long
positive record. The result is then scaled by the lender's preference fit. Scores are
unitless and only meaningful for ordering candidates.
"""
from __future__ import annotations

from datetime import date
from typing import Any, Iterable

import structlog

from schemas.enums import ComplexityLevel
from schemas.matching import (
    Deal,
    DealSizeRange,
    FeedbackIntegrationSystem,
    FeedbackRecord,
    MatchCandidate,
    MatchingConfiguration,
    MatchingPreferences,
    MatchResult,
    Relationship,
    RelationshipMatchingAlgorithm,
    TransactionHistoryAnalysis,
    TransactionRecord,
)

logger = structlog.get_logger()

RELATIONSHIP_SHARE = 0.40
TRANSACTION_SHARE = 0.35
FEEDBACK_SHARE = 0.25
RECENT_SUCCESS_BOOST = 1.15
SIZE_MATCH_BONUS = 1.10
GEOGRAPHIC_BONUS = 1.10
SIZE_MATCH_TOLERANCE = 0.5

OUT_OF_RANGE_SIZE_FIT = 0.5
SIZE_EDGE_FIT = 0.8
OUT_OF_STATE_FIT = 0.85
INDUSTRY_BASE_FIT = 0.8
INDUSTRY_STRENGTH_STEP = 0.04
COMPLEXITY_STEP_PENALTY = 0.2
COMPLEXITY_RANK: dict[ComplexityLevel, int] = {
    ComplexityLevel.LOW: 0,
    ComplexityLevel.MEDIUM: 1,
    ComplexityLevel.HIGH: 2,
}

HIGH_VOLUME_MIN = 20
MEDIUM_VOLUME_MIN = 5
ESTABLISHED_YEARS = 1.0
LONG_TERM_YEARS = 3.0


def _age_days(when: date, as_of: date) -> int:
    return max(0, (as_of - when).days)


def transaction_decay(age_days: int, analysis: TransactionHistoryAnalysis) -> float:
    decay = analysis.transaction_recency_decay
    if age_days <= 30:
        return decay.last_30_days
    if age_days <= 90:
        return decay.last_90_days
    if age_days <= 180:
        return decay.last_180_days
    if age_days <= 365:
        return decay.last_year
    return decay.older


def feedback_decay(age_days: int, system: FeedbackIntegrationSystem) -> float:
    decay = system.feedback_recency_decay
    if age_days <= 30:
        return decay.last_30_days
    if age_days <= 90:
        return decay.last_90_days
    if age_days <= 180:
        return decay.last_180_days
    return decay.older


def volume_tier(count: int) -> str:
    if count >= HIGH_VOLUME_MIN:
        return "high"
    if count >= MEDIUM_VOLUME_MIN:
        return "medium"
    return "low"


def longevity_bucket(relationship: Relationship, as_of: date) -> str:
    years = _age_days(relationship.started_at, as_of) / 365.25
    if years < ESTABLISHED_YEARS:
        return "new"
    if years < LONG_TERM_YEARS:
        return "established"
    return "long_term"


def relationship_contribution(
    relationship: Relationship,
    algorithm: RelationshipMatchingAlgorithm,
    as_of: date,
) -> float:
    status = algorithm.relationship_status_multipliers.for_status(relationship.status)
    longevity = getattr(algorithm.relationship_longevity_factor, longevity_bucket(relationship, as_of))
    value = algorithm.relationship_weighting_factor * status * longevity

    issues = relationship.open_issues + relationship.resolved_issues
    if issues:
        value *= 1.0 - algorithm.issue_resolution_impact * (relationship.open_issues / issues)
    return value


def transaction_contribution(
    deal: Deal,
    transactions: list[TransactionRecord],
    analysis: TransactionHistoryAnalysis,
    algorithm: RelationshipMatchingAlgorithm,
    as_of: date,
    size_range: DealSizeRange | None = None,
) -> float:
    if not transactions:
        return 0.0
    volume = getattr(analysis.volume_based_scoring, f"{volume_tier(len(transactions))}_volume")

    total = 0.0
    for tx in transactions:
        if not tx.succeeded:
            continue
        term = transaction_decay(_age_days(tx.completed_at, as_of), analysis) * volume
        if tx.deal_type == deal.deal_type:
            term *= analysis.similar_deal_success_factor
        if analysis.transaction_size_match and _size_matches(deal.amount, tx.amount, size_range):
            term *= SIZE_MATCH_BONUS
        if analysis.geographic_performance and deal.state and tx.state == deal.state:
            term *= GEOGRAPHIC_BONUS
        total += term
    average = total / len(transactions)

    # Below the performance threshold the history counts proportionally less
    success_rate = sum(1 for tx in transactions if tx.succeeded) / len(transactions)
    threshold = algorithm.performance_threshold
    if threshold > 0 and success_rate < threshold:
        average *= success_rate / threshold
    return average


def _size_matches(
    deal_amount: float | None,
    tx_amount: float | None,
    size_range: DealSizeRange | None = None,
) -> bool:
    """Within the lender's own size range when it has one, else within the tolerance of the deal."""
    if not deal_amount or tx_amount is None:
        return False
    if size_range is not None:
        return size_range.contains(deal_amount) and size_range.contains(tx_amount)
    return abs(tx_amount - deal_amount) <= deal_amount * SIZE_MATCH_TOLERANCE


def feedback_contribution(
    deal: Deal,
    feedback: list[FeedbackRecord],
    system: FeedbackIntegrationSystem,
    as_of: date,
) -> float:
    records = feedback
    if system.specific_deal_type_feedback:
        records = [f for f in feedback if f.deal_type == deal.deal_type]
    if not records:
        return 0.0

    decays = [feedback_decay(_age_days(f.submitted_at, as_of), system) for f in records]
    base = sum(d * system.client_feedback_weight * (f.rating / 5.0) for d, f in zip(decays, records)) / len(records)

    penalty = 1.0
    for d, f in zip(decays, records):
        if f.severity is not None:
            penalty *= 1.0 - system.negative_feedback_impact.for_severity(f.severity) * d
    value = base * penalty

    threshold = system.continuous_feedback_threshold
    if threshold and len(records) < threshold:
        value *= len(records) / threshold
    return value


def preference_fit(deal: Deal, preferences: MatchingPreferences | None) -> tuple[float, dict[str, float]]:
    """
    Multiplier for how well the deal suits the lender's stated preferences, with the
    factor behind each part. A deal type the lender has not switched on scores 0.
    """
    if preferences is None:
        return 1.0, {}
    factors: dict[str, float] = {}

    if preferences.deal_types:
        wanted = {t.id.lower() for t in preferences.deal_types if t.is_active}
        wanted |= {t.name.lower() for t in preferences.deal_types if t.is_active}
        factors["deal_type"] = 1.0 if deal.deal_type.lower() in wanted else 0.0

    size_range = preferences.deal_size_range
    if size_range is not None and deal.amount is not None:
        factors["deal_size"] = _size_fit(deal.amount, size_range)

    states = {g.state.upper() for g in preferences.geographic_preferences if g.is_active}
    if states and deal.state:
        factors["geography"] = 1.0 if deal.state.upper() in states else OUT_OF_STATE_FIT

    if preferences.industry_preferences and deal.industry:
        strength = next(
            (p.strength for p in preferences.industry_preferences if p.industry.lower() == deal.industry.lower()),
            0.0,
        )
        factors["industry"] = INDUSTRY_BASE_FIT + INDUSTRY_STRENGTH_STEP * strength

    if deal.complexity is not None:
        over = COMPLEXITY_RANK[deal.complexity] - COMPLEXITY_RANK[preferences.deal_complexity_tolerance]
        factors["complexity"] = max(0.0, 1.0 - COMPLEXITY_STEP_PENALTY * max(0, over))

    fit = 1.0
    for value in factors.values():
        fit *= value
    return fit, factors


def _size_fit(amount: float, size_range: DealSizeRange) -> float:
    # 1.0 at the sweet spot, falling linearly to SIZE_EDGE_FIT at either edge
    if not size_range.contains(amount):
        return OUT_OF_RANGE_SIZE_FIT
    if amount <= size_range.sweet_spot:
        span = size_range.sweet_spot - size_range.min
        distance = size_range.sweet_spot - amount
    else:
        span = size_range.max - size_range.sweet_spot
        distance = amount - size_range.sweet_spot
    if span <= 0:
        return 1.0
    return 1.0 - (1.0 - SIZE_EDGE_FIT) * distance / span


def match_score(
    candidate_id: str,
    deal: Deal,
    relationship: Relationship,
    transactions: Iterable[TransactionRecord],
    feedback: Iterable[FeedbackRecord],
    config: MatchingConfiguration | None = None,
    as_of: date | None = None,
    preferences: MatchingPreferences | None = None,
) -> MatchResult:
    """
    Match quality of one lender for a deal, scaled by how well the deal fits the lender's
    preferences.
    Pure function of its arguments; pass as_of to make results reproducible.
    """
    config = config or MatchingConfiguration()
    as_of = as_of or date.today()
    transactions = list(transactions)
    feedback = list(feedback)
    algorithm = config.relationship_matching_algorithm

    rel = relationship_contribution(relationship, algorithm, as_of)
    size_range = preferences.deal_size_range if preferences is not None else None
    txn = transaction_contribution(deal, transactions, config.transaction_history_analysis, algorithm, as_of, size_range)
    fbk = feedback_contribution(deal, feedback, config.feedback_integration_system, as_of)

    score = 100.0 * (RELATIONSHIP_SHARE * rel + TRANSACTION_SHARE * txn + FEEDBACK_SHARE * fbk)
    boosted = algorithm.recent_success_boost and any(
        tx.succeeded and _age_days(tx.completed_at, as_of) <= 30 for tx in transactions
    )
    if boosted:
        score *= RECENT_SUCCESS_BOOST
    fit, fit_factors = preference_fit(deal, preferences)
    score *= fit

    breakdown: dict[str, Any] = {
        "relationship": round(rel, 4),
        "transactions": round(txn, 4),
        "feedback": round(fbk, 4),
        "longevity": longevity_bucket(relationship, as_of),
        "volume_tier": volume_tier(len(transactions)),
        "recent_success_boost": boosted,
        "preference_fit": round(fit, 4),
        "preference_factors": {k: round(v, 4) for k, v in fit_factors.items()},
    }
    return MatchResult(candidate_id=candidate_id, match_score=round(score, 4), breakdown=breakdown)


def rank_candidates(
    deal: Deal,
    candidates: Iterable[MatchCandidate],
    config: MatchingConfiguration | None = None,
    as_of: date | None = None,
) -> list[MatchResult]:
    """Score every candidate; highest first, ties broken by candidate id."""
    as_of = as_of or date.today()
    results = [
        match_score(
            c.candidate_id,
            deal,
            c.relationship,
            c.transactions,
            c.feedback,
            config=config,
            as_of=as_of,
            preferences=c.preferences,
        )
        for c in candidates
    ]
    results.sort(key=lambda r: (-r.match_score, r.candidate_id))
    logger.info("candidates_ranked", deal_id=deal.id, candidates=len(results))
    return results
