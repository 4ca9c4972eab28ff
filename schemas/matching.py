"""
Relationship, transaction-history and feedback weighting parameters for lender/deal
matching, lender preferences, and the history records the matching engine consumes.
"""
from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import Field, model_validator

from schemas.base import CamelModel
from schemas.enums import ComplexityLevel, FeedbackSeverity, RelationshipStatus


def _non_increasing(values: list[float], name: str) -> None:
    for newer, older in zip(values, values[1:]):
        if older > newer:
            raise ValueError(f"{name} must not increase with age")


class LongevityFactors(CamelModel):
    new: float = Field(0.8, ge=0)
    established: float = Field(1.0, ge=0)
    long_term: float = Field(1.2, ge=0)


class StatusMultipliers(CamelModel):
    preferred: float = Field(1.5, ge=0)
    active: float = Field(1.0, ge=0)
    probation: float = Field(0.6, ge=0)
    inactive: float = Field(0.3, ge=0)
    terminated: float = Field(0.0, ge=0)

    def for_status(self, status: RelationshipStatus) -> float:
        return getattr(self, status.value)


class RelationshipMatchingAlgorithm(CamelModel):
    relationship_weighting_factor: float = Field(1.0, ge=0)
    performance_threshold: float = Field(0.6, ge=0, le=1, description="Minimum historical success rate")
    recent_success_boost: bool = True
    relationship_longevity_factor: LongevityFactors = Field(default_factory=LongevityFactors)
    issue_resolution_impact: float = Field(0.3, ge=0, le=1)
    relationship_status_multipliers: StatusMultipliers = Field(default_factory=StatusMultipliers)


class TransactionRecencyDecay(CamelModel):
    last_30_days: float = Field(1.0, ge=0)
    last_90_days: float = Field(0.85, ge=0)
    last_180_days: float = Field(0.7, ge=0)
    last_year: float = Field(0.5, ge=0)
    older: float = Field(0.25, ge=0)

    @model_validator(mode="after")
    def _check_decay(self) -> "TransactionRecencyDecay":
        _non_increasing(
            [self.last_30_days, self.last_90_days, self.last_180_days, self.last_year, self.older],
            "transaction_recency_decay",
        )
        return self


class VolumeBasedScoring(CamelModel):
    high_volume: float = Field(1.2, ge=0)
    medium_volume: float = Field(1.0, ge=0)
    low_volume: float = Field(0.8, ge=0)


class TransactionHistoryAnalysis(CamelModel):
    similar_deal_success_factor: float = Field(1.25, ge=0)
    transaction_recency_decay: TransactionRecencyDecay = Field(default_factory=TransactionRecencyDecay)
    volume_based_scoring: VolumeBasedScoring = Field(default_factory=VolumeBasedScoring)
    transaction_size_match: bool = True
    geographic_performance: bool = False


class FeedbackRecencyDecay(CamelModel):
    last_30_days: float = Field(1.0, ge=0)
    last_90_days: float = Field(0.8, ge=0)
    last_180_days: float = Field(0.6, ge=0)
    older: float = Field(0.3, ge=0)

    @model_validator(mode="after")
    def _check_decay(self) -> "FeedbackRecencyDecay":
        _non_increasing(
            [self.last_30_days, self.last_90_days, self.last_180_days, self.older],
            "feedback_recency_decay",
        )
        return self


class NegativeFeedbackImpact(CamelModel):
    severe: float = Field(0.6, ge=0, le=1)
    moderate: float = Field(0.3, ge=0, le=1)
    minor: float = Field(0.1, ge=0, le=1)

    def for_severity(self, severity: FeedbackSeverity) -> float:
        return getattr(self, severity.value)


class FeedbackIntegrationSystem(CamelModel):
    client_feedback_weight: float = Field(1.0, ge=0)
    feedback_recency_decay: FeedbackRecencyDecay = Field(default_factory=FeedbackRecencyDecay)
    specific_deal_type_feedback: bool = False
    continuous_feedback_threshold: int = Field(3, ge=0, description="Records needed for full feedback confidence")
    negative_feedback_impact: NegativeFeedbackImpact = Field(default_factory=NegativeFeedbackImpact)


class MatchingConfiguration(CamelModel):
    relationship_matching_algorithm: RelationshipMatchingAlgorithm = Field(default_factory=RelationshipMatchingAlgorithm)
    transaction_history_analysis: TransactionHistoryAnalysis = Field(default_factory=TransactionHistoryAnalysis)
    feedback_integration_system: FeedbackIntegrationSystem = Field(default_factory=FeedbackIntegrationSystem)


class Relationship(CamelModel):
    status: RelationshipStatus = RelationshipStatus.ACTIVE
    started_at: date
    open_issues: int = Field(0, ge=0)
    resolved_issues: int = Field(0, ge=0)


class TransactionRecord(CamelModel):
    id: str
    completed_at: date
    deal_type: str
    amount: float | None = Field(None, ge=0)
    succeeded: bool = True
    state: str | None = None


class FeedbackRecord(CamelModel):
    id: str
    submitted_at: date
    rating: float = Field(..., ge=0, le=5)
    deal_type: str | None = None
    severity: FeedbackSeverity | None = Field(None, description="Set on negative feedback only")


class DealTypePreference(CamelModel):
    id: str
    name: str
    is_active: bool = True


class DealSizeRange(CamelModel):
    min: float = Field(..., ge=0)
    max: float = Field(..., ge=0)
    sweet_spot: float = Field(..., ge=0)

    @model_validator(mode="after")
    def _check_order(self) -> "DealSizeRange":
        if not self.min <= self.sweet_spot <= self.max:
            raise ValueError("deal size range must satisfy min <= sweet_spot <= max")
        return self

    def contains(self, amount: float) -> bool:
        return self.min <= amount <= self.max


class GeographicPreference(CamelModel):
    state: str
    is_active: bool = True


class IndustryPreference(CamelModel):
    industry: str
    strength: float = Field(5, ge=0, le=10)


class MatchingPreferences(CamelModel):
    """What a lender wants to see; empty lists mean no preference."""
    deal_types: list[DealTypePreference] = Field(default_factory=list)
    deal_size_range: DealSizeRange | None = None
    geographic_preferences: list[GeographicPreference] = Field(default_factory=list)
    industry_preferences: list[IndustryPreference] = Field(default_factory=list)
    deal_complexity_tolerance: ComplexityLevel = ComplexityLevel.MEDIUM


class Deal(CamelModel):
    id: str
    deal_type: str
    amount: float | None = Field(None, ge=0)
    state: str | None = None
    industry: str | None = None
    complexity: ComplexityLevel | None = None


class MatchCandidate(CamelModel):
    candidate_id: str
    name: str | None = None
    relationship: Relationship
    transactions: list[TransactionRecord] = Field(default_factory=list)
    feedback: list[FeedbackRecord] = Field(default_factory=list)
    preferences: MatchingPreferences | None = None


class MatchResult(CamelModel):
    candidate_id: str
    match_score: float
    breakdown: dict[str, Any] = Field(default_factory=dict)


class RankRequest(CamelModel):
    deal: Deal
    candidates: list[MatchCandidate]
    config: MatchingConfiguration = Field(default_factory=MatchingConfiguration)
    as_of: date | None = None
