from sqlalchemy import Column, String, Text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import relationship
from src.database import Base
from src.shared.models import AuditMixin


class AnalysisResult(Base, AuditMixin):
    """A scored input text. Written once; only ever removed by explicit deletion."""
    __tablename__ = "analysis_results"

    input_text = Column(Text, nullable=False)
    file_name = Column(String(255), nullable=True)

    # [{"type": "公司名称", "value": "...", "confidence": 0.95}, ...]
    entities = Column(JSONB, nullable=False, default=list)
    # {"environmental": 8.5, "social": 7.8, "governance": 8.9, "overall": 8.4}
    esg_scores = Column(JSONB, nullable=False)
    key_insights = Column(ARRAY(Text), nullable=False, default=list)
    # [{"level": "high|medium|low", "description": "..."}, ...]
    risks = Column(JSONB, nullable=False, default=list)
    recommendations = Column(ARRAY(Text), nullable=False, default=list)

    status = Column(String(20), default="completed", nullable=False)
    source = Column(String(50), default="deepseek-api", nullable=False)

    compliance_results = relationship(
        "ComplianceResult",
        back_populates="analysis",
        passive_deletes=True,
    )
