"""
Built-in defaults: the requirement/document/risk-factor sets a new configuration starts
from, the risk data-point catalog, and the sub-score weights per instrument type.
"""
from __future__ import annotations

from typing import Any

from schemas.configuration import MinimumRequirement, RequiredDocument, RiskFactor
from schemas.enums import InstrumentType, RiskCategory
from schemas.risk import DataPoint, RiskScoreCustomization

_BASE_REQUIREMENTS: list[dict[str, Any]] = [
    {"id": "min_credit_score", "name": "Minimum Credit Score", "type": "credit_score", "minimum_value": 650, "weight": 30, "is_required": True},
    {"id": "min_revenue", "name": "Minimum Annual Revenue", "type": "revenue", "minimum_value": 500_000, "weight": 25, "is_required": True},
    {"id": "time_in_business", "name": "Minimum Time in Business (months)", "type": "time_in_business", "minimum_value": 24, "weight": 20, "is_required": True},
]

_BASE_DOCUMENTS: list[dict[str, Any]] = [
    {"id": "financial_statements", "name": "Financial Statements (Last 2 Years)", "category": "financial", "is_required": True, "description": "Audited or reviewed financial statements for the past 2 years"},
    {"id": "bank_statements", "name": "Bank Statements (Last 6 Months)", "category": "financial", "is_required": True, "description": "Business bank statements for the last 6 months"},
    {"id": "business_license", "name": "Business License", "category": "legal", "is_required": True, "description": "Current business license and registration documents"},
]

_BASE_RISK_FACTORS: list[dict[str, Any]] = [
    {"id": "industry_risk", "name": "Industry Risk Assessment", "category": "market", "weight": 20, "impact": "negative", "description": "Assessment of industry stability and growth prospects"},
    {"id": "cash_flow_stability", "name": "Cash Flow Stability", "category": "financial", "weight": 25, "impact": "positive", "description": "Consistency and predictability of cash flows"},
    {"id": "debt_service_coverage", "name": "Debt Service Coverage Ratio", "category": "financial", "weight": 30, "impact": "positive", "description": "Ability to service debt obligations"},
]

# Additions on top of the base sets, per instrument type
_EXTRA_REQUIREMENTS: dict[InstrumentType, list[dict[str, Any]]] = {
    InstrumentType.EQUIPMENT_FINANCING: [
        {"id": "min_collateral_value", "name": "Minimum Equipment Value", "type": "collateral_value", "minimum_value": 50_000, "weight": 15, "is_required": False},
    ],
    InstrumentType.COMMERCIAL_REAL_ESTATE: [
        {"id": "min_collateral_value", "name": "Minimum Appraised Property Value", "type": "collateral_value", "minimum_value": 500_000, "weight": 20, "is_required": True},
        {"id": "min_debt_service_coverage", "name": "Minimum Debt Service Coverage", "type": "debt_ratio", "minimum_value": 1.25, "weight": 15, "is_required": False},
    ],
    InstrumentType.WORKING_CAPITAL: [
        {"id": "min_cash_flow", "name": "Minimum Monthly Operating Cash Flow", "type": "cash_flow", "minimum_value": 25_000, "weight": 20, "is_required": False},
    ],
    InstrumentType.INVOICE_FACTORING: [
        {"id": "min_cash_flow", "name": "Minimum Monthly Receivables", "type": "cash_flow", "minimum_value": 50_000, "weight": 25, "is_required": True},
    ],
    InstrumentType.TERM_LOAN: [
        {"id": "min_debt_service_coverage", "name": "Minimum Debt Service Coverage", "type": "debt_ratio", "minimum_value": 1.2, "weight": 15, "is_required": False},
    ],
    InstrumentType.CONSTRUCTION: [
        {"id": "min_collateral_value", "name": "Minimum Land and Improvement Value", "type": "collateral_value", "minimum_value": 750_000, "weight": 20, "is_required": True},
    ],
}

_EXTRA_DOCUMENTS: dict[InstrumentType, list[dict[str, Any]]] = {
    InstrumentType.EQUIPMENT_FINANCING: [
        {"id": "equipment_quote", "name": "Equipment Quote or Invoice", "category": "collateral", "is_required": True, "description": "Vendor quote or purchase order for the financed equipment"},
    ],
    InstrumentType.COMMERCIAL_REAL_ESTATE: [
        {"id": "property_appraisal", "name": "Property Appraisal", "category": "collateral", "is_required": True, "description": "Independent appraisal dated within 12 months"},
        {"id": "rent_roll", "name": "Rent Roll", "category": "operational", "is_required": False, "description": "Current tenant list with lease terms"},
    ],
    InstrumentType.WORKING_CAPITAL: [],
    InstrumentType.INVOICE_FACTORING: [
        {"id": "ar_aging", "name": "Accounts Receivable Aging Report", "category": "financial", "is_required": True, "description": "Receivables aging as of the last month end"},
    ],
    InstrumentType.TERM_LOAN: [
        {"id": "tax_returns", "name": "Business Tax Returns (Last 2 Years)", "category": "financial", "is_required": False, "description": "Filed federal business tax returns"},
    ],
    InstrumentType.CONSTRUCTION: [
        {"id": "construction_budget", "name": "Construction Budget", "category": "operational", "is_required": True, "description": "Line-item budget signed by the general contractor"},
        {"id": "building_permits", "name": "Building Permits", "category": "legal", "is_required": True, "description": "Approved permits for the planned works"},
    ],
}

_EXTRA_RISK_FACTORS: dict[InstrumentType, list[dict[str, Any]]] = {
    InstrumentType.EQUIPMENT_FINANCING: [
        {"id": "equipment_residual", "name": "Equipment Residual Value", "category": "operational", "weight": 15, "impact": "positive", "description": "Expected resale value at end of term"},
    ],
    InstrumentType.COMMERCIAL_REAL_ESTATE: [
        {"id": "market_vacancy", "name": "Market Vacancy Rate", "category": "market", "weight": 15, "impact": "negative", "description": "Vacancy trend in the property's submarket"},
    ],
    InstrumentType.WORKING_CAPITAL: [],
    InstrumentType.INVOICE_FACTORING: [
        {"id": "debtor_concentration", "name": "Debtor Concentration", "category": "credit", "weight": 20, "impact": "negative", "description": "Share of receivables owed by the largest debtor"},
    ],
    InstrumentType.TERM_LOAN: [],
    InstrumentType.CONSTRUCTION: [
        {"id": "completion_risk", "name": "Completion Risk", "category": "operational", "weight": 20, "impact": "negative", "description": "Likelihood of schedule or budget overrun"},
    ],
}

# min_loan_amount, max_loan_amount, min_term, max_term, base_interest_rate
LOAN_PARAMETERS: dict[InstrumentType, dict[str, float]] = {
    InstrumentType.EQUIPMENT_FINANCING: {"min_loan_amount": 50_000, "max_loan_amount": 2_000_000, "min_term": 12, "max_term": 84, "base_interest_rate": 6.5},
    InstrumentType.COMMERCIAL_REAL_ESTATE: {"min_loan_amount": 250_000, "max_loan_amount": 10_000_000, "min_term": 60, "max_term": 300, "base_interest_rate": 7.0},
    InstrumentType.WORKING_CAPITAL: {"min_loan_amount": 25_000, "max_loan_amount": 1_000_000, "min_term": 6, "max_term": 36, "base_interest_rate": 9.5},
    InstrumentType.INVOICE_FACTORING: {"min_loan_amount": 10_000, "max_loan_amount": 5_000_000, "min_term": 1, "max_term": 12, "base_interest_rate": 12.0},
    InstrumentType.TERM_LOAN: {"min_loan_amount": 50_000, "max_loan_amount": 5_000_000, "min_term": 12, "max_term": 120, "base_interest_rate": 7.5},
    InstrumentType.CONSTRUCTION: {"min_loan_amount": 500_000, "max_loan_amount": 20_000_000, "min_term": 12, "max_term": 36, "base_interest_rate": 8.5},
}

# Sub-score weights, in percent
_DEFAULT_WEIGHTS: dict[InstrumentType, tuple[float, float, float, float, float, float]] = {
    InstrumentType.EQUIPMENT_FINANCING: (20, 25, 30, 10, 15, 0),
    InstrumentType.COMMERCIAL_REAL_ESTATE: (20, 25, 20, 10, 0, 25),
    InstrumentType.WORKING_CAPITAL: (25, 30, 25, 10, 10, 0),
    InstrumentType.INVOICE_FACTORING: (25, 25, 25, 15, 5, 5),
    InstrumentType.TERM_LOAN: (25, 30, 25, 10, 10, 0),
    InstrumentType.CONSTRUCTION: (20, 25, 20, 10, 0, 25),
}

# Configurations seeded on a fresh database; the first is the default for its type
SEED_CONFIGURATIONS: list[tuple[str, InstrumentType]] = [
    ("Equipment Financing", InstrumentType.EQUIPMENT_FINANCING),
    ("Commercial Real Estate", InstrumentType.COMMERCIAL_REAL_ESTATE),
    ("Working Capital", InstrumentType.WORKING_CAPITAL),
    ("Term Loan", InstrumentType.TERM_LOAN),
]


def default_requirements(instrument_type: InstrumentType) -> list[MinimumRequirement]:
    rows = _BASE_REQUIREMENTS + _EXTRA_REQUIREMENTS.get(instrument_type, [])
    return [MinimumRequirement.model_validate(r) for r in rows]


def default_documents(instrument_type: InstrumentType) -> list[RequiredDocument]:
    rows = _BASE_DOCUMENTS + _EXTRA_DOCUMENTS.get(instrument_type, [])
    return [RequiredDocument.model_validate(r) for r in rows]


def default_risk_factors(instrument_type: InstrumentType) -> list[RiskFactor]:
    rows = _BASE_RISK_FACTORS + _EXTRA_RISK_FACTORS.get(instrument_type, [])
    return [RiskFactor.model_validate(r) for r in rows]


def default_weights(instrument_type: InstrumentType) -> RiskScoreCustomization:
    cw, fr, cf, co, eq, pr = _DEFAULT_WEIGHTS[instrument_type]
    return RiskScoreCustomization(
        credit_worthiness_weight=cw,
        financial_ratio_weight=fr,
        cash_flow_weight=cf,
        compliance_weight=co,
        equipment_weight=eq,
        property_weight=pr,
    )


_DATA_POINTS: list[dict[str, Any]] = [
    # creditworthiness
    {"id": "credit-score", "label": "Credit Score", "category": "creditworthiness", "good": "720-850", "average": "650-719", "negative": "300-649", "source": "Borrower EIN from MicroVu or Equifax One Score"},
    {"id": "payment-history", "label": "Payment History", "category": "creditworthiness", "good": "0-2 missed payments", "average": "3-5 missed payments", "negative": "5+ missed payments", "source": "Equifax One Score, Paynet API"},
    {"id": "public-records", "label": "Public Records", "category": "creditworthiness", "good": "0 issues", "average": "1 minor issue", "negative": "1+ issue", "source": "Equifax One Score, Paynet API, D&B"},
    {"id": "paynet-score", "label": "PayNet MasterScore", "category": "creditworthiness", "good": ">= 70", "average": "50-69", "negative": "< 50", "source": "Paynet API"},
    # financial
    {"id": "debt-to-equity", "label": "Debt-to-Equity Ratio", "category": "financial", "good": "< 1.0", "average": "1.0-2.0", "negative": "> 2.0", "source": "OCR of Borrower Inc Stat & Bal Sheet"},
    {"id": "current-ratio", "label": "Current Ratio", "category": "financial", "good": "> 2.0", "average": "1.0-2.0", "negative": "< 1.0", "source": "OCR of Borrower Uploaded Inc Stat & Bal Sheet"},
    {"id": "interest-coverage", "label": "Interest Coverage Ratio", "category": "financial", "good": ">= 3.0", "average": "1.5-2.99", "negative": "< 1.5", "source": "OCR of Borrower Inc Stat"},
    # cashflow
    {"id": "annual-cash-flow", "label": "Annual Cash Flow", "category": "cashflow", "good": "> 5% annual increase", "average": "0 - 5% annual growth", "negative": "< 0% annual decrease", "source": "OCR + Borrower Uploaded Statement of Cash Flows"},
    {"id": "cash-conversion-cycle", "label": "Cash Conversion Cycle", "category": "cashflow", "good": "< 30 days", "average": "30-60 days", "negative": "> 60 days", "source": "OCR of Borrower Uploaded Statement of Cash Flows"},
    {"id": "days-accounts-receivable", "label": "Days Accounts Receivable", "category": "cashflow", "good": "<= 30 days", "average": "31-60 days", "negative": "> 60 days", "source": "Accounting integration"},
    # legal
    {"id": "compliance-history", "label": "Compliance History", "category": "legal", "good": "0 issues", "average": "1 issue", "negative": "2+ issues", "source": "Credit Agencies"},
    {"id": "legal-disputes", "label": "Legal Disputes", "category": "legal", "good": "0 disputes", "average": "1 - 2 Disputes", "negative": "> 2 Disputes", "source": "Credit Agencies or PitchPoint CRS API"},
    # equipment
    {"id": "equipment-age", "label": "Equipment Age", "category": "equipment", "good": "New/Recent (i.e. 0-2.66y)", "average": "Moderate (2.67-5.33yrs)", "negative": "Old (i.e. > 5.33 yrs old)", "source": "User input or uploaded Purchase Order"},
    {"id": "utilization-rate", "label": "Utilization Rate", "category": "equipment", "good": "> 80%", "average": "50%-80%", "negative": "< 50%", "source": "User input or industry benchmark"},
    {"id": "residual-value", "label": "Residual Value", "category": "equipment", "good": ">= 60%", "average": "40%-59.99%", "negative": "< 40%", "source": "Equipment valuation guides"},
    # property
    {"id": "loan-to-value", "label": "Loan-to-Value Ratio", "category": "property", "good": "< 65%", "average": "65% - 75%", "negative": "> 75%", "source": "Loan application + Appraised Value"},
    {"id": "debt-service-coverage", "label": "Debt Service Coverage", "category": "property", "good": ">= 1.35", "average": "1.2-1.34", "negative": "< 1.2", "source": "Rent roll and operating statements"},
    {"id": "property-class", "label": "Property Class", "category": "property", "good": "Class A", "average": "Class B", "negative": "Class C", "source": "Public records by property address"},
]


def default_data_points() -> list[DataPoint]:
    return [DataPoint.model_validate(dp) for dp in _DATA_POINTS]


def data_points_for(category: RiskCategory) -> list[DataPoint]:
    return [dp for dp in default_data_points() if dp.category == category]
