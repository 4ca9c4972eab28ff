"""
Instrument configuration schema: minimum requirements, required documents,
risk factors and loan parameter bounds for one financial-instrument type.
Weights are relative contributions (0-100) and are never normalized.
"""
from __future__ import annotations

from datetime import datetime

from pydantic import Field, model_validator

from schemas.base import CamelModel
from schemas.enums import (
    DocumentCategory,
    InstrumentType,
    RequirementType,
    RiskFactorCategory,
    RiskImpact,
)
from schemas.risk import DataPoint, RiskScoreCustomization


class MinimumRequirement(CamelModel):
    id: str
    name: str
    type: RequirementType
    minimum_value: float
    weight: float = Field(..., ge=0, le=100)
    is_required: bool = True


class RequiredDocument(CamelModel):
    id: str
    name: str
    category: DocumentCategory
    is_required: bool = True
    description: str = ""


class RiskFactor(CamelModel):
    id: str
    name: str
    category: RiskFactorCategory
    weight: float = Field(..., ge=0, le=100)
    impact: RiskImpact
    description: str = ""


class InstrumentConfiguration(CamelModel):
    id: str
    name: str
    instrument_type: InstrumentType
    is_active: bool = True
    is_default: bool = False

    minimum_requirements: list[MinimumRequirement] = Field(default_factory=list)
    required_documents: list[RequiredDocument] = Field(default_factory=list)
    risk_factors: list[RiskFactor] = Field(default_factory=list)
    # Per-configuration data-point catalog and category weights; None uses the built-in defaults
    data_points: list[DataPoint] | None = None
    category_weights: RiskScoreCustomization | None = None

    min_loan_amount: float = Field(..., ge=0)
    max_loan_amount: float = Field(..., ge=0)
    min_term: int = Field(..., ge=0, description="Months")
    max_term: int = Field(..., ge=0, description="Months")
    base_interest_rate: float = Field(..., ge=0, description="Annual percentage")

    created_at: datetime
    last_modified: datetime
    version: int = Field(1, ge=1)

    @model_validator(mode="after")
    def _check_bounds(self) -> "InstrumentConfiguration":
        if self.min_loan_amount > self.max_loan_amount:
            raise ValueError("min_loan_amount must not exceed max_loan_amount")
        if self.min_term > self.max_term:
            raise ValueError("min_term must not exceed max_term")
        return self


class ConfigurationCreate(CamelModel):
    name: str = Field(..., min_length=1)
    instrument_type: InstrumentType


class ConfigurationUpdate(CamelModel):
    """Partial update; only fields that were sent are merged."""
    name: str | None = None
    is_active: bool | None = None
    minimum_requirements: list[MinimumRequirement] | None = None
    required_documents: list[RequiredDocument] | None = None
    risk_factors: list[RiskFactor] | None = None
    data_points: list[DataPoint] | None = None
    category_weights: RiskScoreCustomization | None = None
    min_loan_amount: float | None = None
    max_loan_amount: float | None = None
    min_term: int | None = None
    max_term: int | None = None
    base_interest_rate: float | None = None
    expected_version: int | None = Field(None, description="Reject the update if the stored version differs")


class ChecklistItem(CamelModel):
    document_id: str
    name: str
    category: DocumentCategory
    is_required: bool
    submitted: bool


class DocumentChecklist(CamelModel):
    configuration_id: str
    items: list[ChecklistItem] = Field(default_factory=list)
    outstanding_required: list[str] = Field(default_factory=list)
    unknown_submissions: list[str] = Field(default_factory=list)
    complete: bool


class ChecklistRequest(CamelModel):
    submitted_document_ids: list[str] = Field(default_factory=list)
