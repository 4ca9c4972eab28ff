"""
Closed enumerations shared by the configurator, the scorers and the matching engine.
Values are the snake_case strings stored in the database and sent over the API.
"""
from enum import Enum


class InstrumentType(str, Enum):
    EQUIPMENT_FINANCING = "equipment_financing"
    COMMERCIAL_REAL_ESTATE = "commercial_real_estate"
    WORKING_CAPITAL = "working_capital"
    INVOICE_FACTORING = "invoice_factoring"
    TERM_LOAN = "term_loan"
    CONSTRUCTION = "construction"


class RequirementType(str, Enum):
    CREDIT_SCORE = "credit_score"
    REVENUE = "revenue"
    TIME_IN_BUSINESS = "time_in_business"
    CASH_FLOW = "cash_flow"
    DEBT_RATIO = "debt_ratio"
    COLLATERAL_VALUE = "collateral_value"


class DocumentCategory(str, Enum):
    FINANCIAL = "financial"
    LEGAL = "legal"
    OPERATIONAL = "operational"
    COLLATERAL = "collateral"


class RiskFactorCategory(str, Enum):
    CREDIT = "credit"
    FINANCIAL = "financial"
    OPERATIONAL = "operational"
    MARKET = "market"


class RiskImpact(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class RiskCategory(str, Enum):
    """Data-point categories, one per EVA sub-score."""
    CREDITWORTHINESS = "creditworthiness"
    FINANCIAL = "financial"
    CASHFLOW = "cashflow"
    LEGAL = "legal"
    EQUIPMENT = "equipment"
    PROPERTY = "property"


class Band(str, Enum):
    GOOD = "good"
    AVERAGE = "average"
    NEGATIVE = "negative"


class RelationshipStatus(str, Enum):
    PREFERRED = "preferred"
    ACTIVE = "active"
    PROBATION = "probation"
    INACTIVE = "inactive"
    TERMINATED = "terminated"


class FeedbackSeverity(str, Enum):
    SEVERE = "severe"
    MODERATE = "moderate"
    MINOR = "minor"


class ScoreScale(int, Enum):
    HUNDRED = 100
    FICO = 850


class ComplexityLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
