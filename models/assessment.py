from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text, func

from database import Base


class AssessmentRun(Base):
    __tablename__ = "assessment_runs"

    id = Column(String(64), primary_key=True, index=True)
    configuration_id = Column(
        String(128), ForeignKey("instrument_configurations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status = Column(String(32), nullable=False, default="pending", index=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    error_message = Column(Text, nullable=True)
    # EVARiskAssessment as camelCase JSON
    result = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
