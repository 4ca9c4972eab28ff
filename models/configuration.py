from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Integer, String, func

from database import Base


class InstrumentConfigurationRecord(Base):
    __tablename__ = "instrument_configurations"

    id = Column(String(128), primary_key=True, index=True)
    name = Column(String(256), nullable=False)
    instrument_type = Column(String(64), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_default = Column(Boolean, nullable=False, default=False, index=True)
    # Ordered lists of requirement / document / risk-factor dicts (snake_case)
    minimum_requirements = Column(JSON, nullable=False, default=list)
    required_documents = Column(JSON, nullable=False, default=list)
    risk_factors = Column(JSON, nullable=False, default=list)
    # Overrides of the data-point catalog and category weights; NULL uses the defaults
    data_points = Column(JSON, nullable=True)
    category_weights = Column(JSON, nullable=True)
    min_loan_amount = Column(Float, nullable=False)
    max_loan_amount = Column(Float, nullable=False)
    min_term = Column(Integer, nullable=False)
    max_term = Column(Integer, nullable=False)
    base_interest_rate = Column(Float, nullable=False)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_modified = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
