"""
Risk data points, category results and the composite EVA risk assessment.
"""
from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, PrivateAttr, model_validator

from schemas.base import CamelModel
from schemas.enums import Band, InstrumentType, RequirementType, RiskCategory, ScoreScale
from services.exceptions import UnparseableThresholdError
from services.thresholds import ThresholdRange, parse_threshold

BAND_ORDER = (Band.GOOD, Band.AVERAGE, Band.NEGATIVE)


class BandPoints(CamelModel):
    """Points per band; credit is points relative to the good band."""
    good: float = Field(2, gt=0)
    average: float = Field(1, ge=0)
    negative: float = Field(0, ge=0)

    @model_validator(mode="after")
    def _check_order(self) -> "BandPoints":
        if not self.good > self.average > self.negative:
            raise ValueError("band points must satisfy good > average > negative")
        return self

    def credit(self, band: Band) -> float:
        return getattr(self, band.value) / self.good


class DataPoint(CamelModel):
    """
    A measurable attribute with good/average/negative thresholds.
    Thresholds are parsed once when the model is built; a malformed threshold
    is kept and reported when the data point is scored.
    """
    id: str
    label: str
    category: RiskCategory
    good: str
    average: str
    negative: str
    source: str = ""
    weight: float | None = Field(None, ge=0)
    points: BandPoints | None = None

    _ranges: dict[Band, ThresholdRange | UnparseableThresholdError] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        for band in BAND_ORDER:
            try:
                self._ranges[band] = parse_threshold(getattr(self, band.value))
            except UnparseableThresholdError as e:
                self._ranges[band] = e

    def threshold(self, band: Band) -> ThresholdRange:
        parsed = self._ranges[band]
        if isinstance(parsed, UnparseableThresholdError):
            raise parsed
        return parsed

    def classify(self, value: Any) -> Band | None:
        """First band (good, then average, then negative) containing value, or None."""
        for band in BAND_ORDER:
            if self.threshold(band).contains(value):
                return band
        return None


class ExcludedDataPoint(CamelModel):
    data_point_id: str
    category: RiskCategory
    reason: str


class CategoryScore(CamelModel):
    category: RiskCategory
    category_score: float | None = Field(None, description="None when every data point was excluded")
    max_score: float = 100.0
    banding: dict[str, Band] = Field(default_factory=dict)
    labels: dict[str, str] = Field(default_factory=dict)
    excluded: list[ExcludedDataPoint] = Field(default_factory=list)

    @property
    def percent(self) -> float | None:
        if self.category_score is None or not self.max_score:
            return None
        return self.category_score / self.max_score * 100.0


class RequirementResult(CamelModel):
    requirement_id: str
    name: str
    type: RequirementType
    minimum_value: float
    actual_value: float | None = None
    passed: bool
    contribution: float
    required_not_met: bool = False
    missing: bool = False


class NegativeFactor(CamelModel):
    category: str
    source: Literal["data_point", "requirement"]
    id: str
    label: str
    detail: str = ""


class RiskScoreCustomization(CamelModel):
    credit_worthiness_weight: float = Field(0, ge=0)
    financial_ratio_weight: float = Field(0, ge=0)
    cash_flow_weight: float = Field(0, ge=0)
    compliance_weight: float = Field(0, ge=0)
    equipment_weight: float = Field(0, ge=0)
    property_weight: float = Field(0, ge=0)

    def for_category(self, category: RiskCategory) -> float:
        return getattr(self, CATEGORY_FIELDS[category] + "_weight")

    def total(self) -> float:
        return sum(self.for_category(c) for c in RiskCategory)


# EVA sub-score name per data-point category
CATEGORY_FIELDS: dict[RiskCategory, str] = {
    RiskCategory.CREDITWORTHINESS: "credit_worthiness",
    RiskCategory.FINANCIAL: "financial_ratio",
    RiskCategory.CASHFLOW: "cash_flow",
    RiskCategory.LEGAL: "compliance",
    RiskCategory.EQUIPMENT: "equipment",
    RiskCategory.PROPERTY: "property",
}


# --- Nested detail blocks supplied by the data layer ---


class AgencyScore(CamelModel):
    agency: Literal["equifax", "transunion", "experian"]
    enabled: bool = True
    score: int = Field(..., ge=300, le=850)
    model: str = "FICO 8"
    weight: float = Field(1.0, ge=0)


class PersonalCreditWorthiness(CamelModel):
    credit_agency_scores: list[AgencyScore] = Field(default_factory=list)
    blended_credit_score: float | None = None
    missed_payments: int | None = Field(None, ge=0)
    public_records: int | None = Field(None, ge=0)
    age_of_credit_history: float | None = None
    recent_inquiries: int | None = None
    total_trades: int | None = None


class BusinessCreditScores(CamelModel):
    business_intel_score: float | None = None
    paynet_master_score: float | None = None
    equifax_one_score: float | None = None
    lexis_nexis_score: float | None = None
    dunn_paydex_score: float | None = None


class FinancialStatementsRatios(CamelModel):
    debt_to_equity_ratio: float | None = None
    current_ratio: float | None = None
    quick_ratio: float | None = None
    gross_margin: float | None = None
    net_margin: float | None = None
    return_on_assets: float | None = None
    return_on_equity: float | None = None
    interest_coverage_ratio: float | None = None
    ebitda: float | None = None


class BusinessCashFlowVariables(CamelModel):
    operating_cash_flow: float | None = None
    operating_cash_flow_growth: float | None = Field(None, description="Percent per year")
    free_cash_flow: float | None = None
    cash_flow_coverage_ratio: float | None = None
    cash_conversion_cycle: float | None = Field(None, description="Days")
    days_accounts_receivable: float | None = None
    days_payable_outstanding: float | None = None
    days_inventory_outstanding: float | None = None
    working_capital: float | None = None
    cash_flow_volatility: float | None = None


class LegalRegulatoryCompliance(CamelModel):
    compliance_issues: int | None = Field(None, ge=0)
    legal_type: Literal["LLC", "Corporation", "Partnership", "Sole Proprietorship", "Other"] | None = None
    legal_disputes: int | None = Field(None, ge=0)
    license_requirements: list[str] = Field(default_factory=list)
    regulatory_audits: list[str] = Field(default_factory=list)


class EquipmentFactors(CamelModel):
    equipment_age: float | None = Field(None, description="Years")
    utilization_rate: float | None = Field(None, description="Percent")
    residual_value: float | None = Field(None, description="Percent of cost")
    depreciation_rate: float | None = None
    replacement_cost: float | None = None
    maintenance_costs: float | None = None


class PropertyFactors(CamelModel):
    loan_to_value_ratio: float | None = Field(None, description="Percent")
    debt_service_coverage: float | None = None
    property_grade: Literal["A", "B", "C"] | None = None
    loan_rate_type: Literal["Fixed", "Hybrid", "Variable"] | None = None
    average_lease_length: float | None = None


class AssessmentDetails(CamelModel):
    personal_credit_worthiness: PersonalCreditWorthiness | None = None
    business_credit_scores: BusinessCreditScores | None = None
    financial_statements_ratios: FinancialStatementsRatios | None = None
    business_cash_flow_variables: BusinessCashFlowVariables | None = None
    legal_regulatory_compliance: LegalRegulatoryCompliance | None = None
    equipment_factors: EquipmentFactors | None = None
    property_factors: PropertyFactors | None = None


class EVARiskAssessment(CamelModel):
    """
    Composite result. scored=False means no category produced a score (every data point
    was excluded); grade, rating and total_score are then None. Check blocked first.
    """
    configuration_id: str
    instrument_type: InstrumentType
    scale: ScoreScale = ScoreScale.HUNDRED
    scored: bool = True
    grade: Literal["A", "B", "C", "D", "F"] | None = None
    rating: str | None = None
    total_score: float | None = None

    credit_worthiness_score: float | None = None
    financial_ratio_score: float | None = None
    cash_flow_score: float | None = None
    compliance_score: float | None = None
    equipment_score: float | None = None
    property_score: float | None = None

    requirement_score: float = 0.0
    requirement_results: list[RequirementResult] = Field(default_factory=list)
    negative_factors: list[NegativeFactor] = Field(default_factory=list)
    excluded_data_points: list[ExcludedDataPoint] = Field(default_factory=list)
    blocked: bool = False

    is_custom_weighted: bool = False
    customized_by: str | None = None
    risk_score_customization: RiskScoreCustomization

    details: AssessmentDetails | None = None


class AssessmentRequest(CamelModel):
    configuration_id: str
    facts: dict[str, float | str] = Field(default_factory=dict)
    weights: RiskScoreCustomization | None = None
    customized_by: str | None = None
    scale: ScoreScale | None = None
    category: RiskCategory | Literal["all"] = "all"
    details: AssessmentDetails | None = None
    # Replaces the configuration's data-point catalog for this request only
    data_points: list[DataPoint] | None = None
