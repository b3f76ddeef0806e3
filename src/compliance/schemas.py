from datetime import datetime
from typing import Dict, List, Literal, Optional
from uuid import UUID

from pydantic import ConfigDict, Field

from src.compliance.rules import RuleCategory
from src.shared.schemas import CamelModel

RuleStatus = Literal["passed", "warning", "failed"]
RULE_STATUSES = ("passed", "warning", "failed")


class RuleVerdict(CamelModel):
    id: str
    name: str
    status: RuleStatus
    reason: str
    details: str
    improvements: str
    future_direction: str
    risk_alert: str
    industry_benchmark: str


class CategoryReport(CamelModel):
    rate: int = Field(..., ge=0, le=100)
    rules: List[RuleVerdict] = Field(default_factory=list)


class OverallSummary(CamelModel):
    rate: int = Field(..., ge=0, le=100)
    passed: int = 0
    warnings: int = 0
    failed: int = 0


class ComplianceReport(CamelModel):
    overall: OverallSummary
    categories: Dict[str, CategoryReport]

    @property
    def total(self) -> int:
        return self.overall.passed + self.overall.warnings + self.overall.failed


class RuleSelection(CamelModel):
    """A rule as configured client-side; only ``id`` and ``enabled`` matter."""

    id: str
    enabled: bool = False

    model_config = ConfigDict(extra="ignore")


class ComplianceCheckRequest(CamelModel):
    analysis_id: Optional[UUID] = None
    rules: Optional[List[RuleSelection]] = None


class RuleResponse(CamelModel):
    id: str
    category: RuleCategory
    name: str
    description: Optional[str] = None
    enabled: bool
    threshold: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RuleUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    enabled: Optional[bool] = None
    threshold: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class ComplianceResultResponse(CamelModel):
    id: UUID
    analysis_id: UUID
    source: Optional[str] = None
    created_at: datetime
    overall: OverallSummary
    categories: Dict[str, CategoryReport]
