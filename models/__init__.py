from models.assessment import AssessmentRun
from models.configuration import InstrumentConfigurationRecord

__all__ = [
    "AssessmentRun",
    "InstrumentConfigurationRecord",
]
