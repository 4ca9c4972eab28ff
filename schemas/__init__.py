from schemas.configuration import (
    ChecklistRequest,
    ConfigurationCreate,
    ConfigurationUpdate,
    DocumentChecklist,
    InstrumentConfiguration,
    MinimumRequirement,
    RequiredDocument,
    RiskFactor,
)
from schemas.matching import (
    Deal,
    MatchCandidate,
    MatchingConfiguration,
    MatchingPreferences,
    MatchResult,
    RankRequest,
)
from schemas.risk import (
    AssessmentRequest,
    BandPoints,
    CategoryScore,
    DataPoint,
    EVARiskAssessment,
    RiskScoreCustomization,
)

__all__ = [
    "ChecklistRequest",
    "ConfigurationCreate",
    "ConfigurationUpdate",
    "DocumentChecklist",
    "InstrumentConfiguration",
    "MinimumRequirement",
    "RequiredDocument",
    "RiskFactor",
    "Deal",
    "MatchCandidate",
    "MatchingConfiguration",
    "MatchingPreferences",
    "MatchResult",
    "RankRequest",
    "AssessmentRequest",
    "BandPoints",
    "CategoryScore",
    "DataPoint",
    "EVARiskAssessment",
    "RiskScoreCustomization",
]
