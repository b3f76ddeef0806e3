from sqlalchemy import Column, String, ForeignKey, Integer, Boolean, Numeric, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from src.database import Base
from src.shared.models import TimestampMixin, UUIDMixin, CreatedAtMixin


class ComplianceRule(Base, TimestampMixin):
    __tablename__ = "compliance_rules"

    id = Column(String(10), primary_key=True)  # e.g. "e1", "s2", "g4"
    category = Column(String(20), nullable=False)  # environmental | social | governance
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    enabled = Column(Boolean, default=True, nullable=False)
    threshold = Column(Numeric(3, 2), default=0.8, nullable=False)


class ComplianceResult(Base, UUIDMixin, CreatedAtMixin):
    """One stored compliance check; several may exist per analysis, newest wins on read."""
    __tablename__ = "compliance_results"

    analysis_id = Column(ForeignKey("analysis_results.id"), nullable=False, index=True)
    overall_rate = Column(Integer, nullable=False)
    passed_count = Column(Integer, nullable=False)
    warnings_count = Column(Integer, nullable=False)
    failed_count = Column(Integer, nullable=False)

    # The per-category report: {"environmental": {"rate": .., "rules": [..]}, ...}
    detailed_results = Column(JSONB, nullable=False)

    # "deepseek-api" or "local-rules"
    source = Column(String(50), nullable=True)

    analysis = relationship("AnalysisResult", back_populates="compliance_results")
