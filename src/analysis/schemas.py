from datetime import datetime
from typing import Any, List, Literal, Optional
from uuid import UUID

from pydantic import ConfigDict, Field, field_validator

from src.shared.schemas import CamelModel

RiskLevel = Literal["high", "medium", "low"]

# Entity types that name the reporting company, in lookup priority
COMPANY_ENTITY_TYPES = ("公司名称", "company", "organization")


def _as_list(value: Any) -> Any:
    return [] if value is None else value


def _as_score(value: Any) -> Any:
    return 0.0 if value is None or value == "" else value


class Entity(CamelModel):
    type: str
    value: str
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    @field_validator("value", mode="before")
    @classmethod
    def _stringify_value(cls, value: Any) -> Any:
        return str(value) if isinstance(value, (int, float)) else value

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> Any:
        if value is None:
            return 0.0
        if isinstance(value, (int, float)):
            return min(max(float(value), 0.0), 1.0)
        return value


class EsgScores(CamelModel):
    environmental: float = 0.0
    social: float = 0.0
    governance: float = 0.0
    overall: float = 0.0

    @field_validator("environmental", "social", "governance", "overall", mode="before")
    @classmethod
    def _missing_score_is_zero(cls, value: Any) -> Any:
        return _as_score(value)


class Risk(CamelModel):
    level: RiskLevel = "medium"
    description: str = ""
    title: Optional[str] = None

    @field_validator("level", mode="before")
    @classmethod
    def _normalise_level(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() in ("high", "medium", "low"):
            return value.strip().lower()
        return "medium"


class AnalysisPayload(CamelModel):
    """What an analysis run produces, before it is stored."""

    entities: List[Entity] = Field(default_factory=list)
    esg_scores: EsgScores = Field(default_factory=EsgScores)
    key_insights: List[str] = Field(default_factory=list)
    risks: List[Risk] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    status: str = "completed"
    source: str = "deepseek-api"

    @field_validator("entities", "key_insights", "risks", "recommendations", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return _as_list(value)

    @field_validator("esg_scores", mode="before")
    @classmethod
    def _none_to_zero_scores(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value: Any) -> Any:
        return value or "completed"


class AnalysisRecord(AnalysisPayload):
    id: Optional[UUID] = None
    input_text: str = ""
    file_name: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("input_text", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    def company_name(self) -> Optional[str]:
        return find_company_name(self.entities)


def find_company_name(entities: List[Any]) -> Optional[str]:
    """Return the first company-typed entity value, honouring type priority."""
    for entity_type in COMPANY_ENTITY_TYPES:
        for entity in entities or []:
            kind = entity.get("type") if isinstance(entity, dict) else getattr(entity, "type", None)
            value = entity.get("value") if isinstance(entity, dict) else getattr(entity, "value", None)
            if kind == entity_type and value:
                return str(value)
    return None


class AnalyzeOptions(CamelModel):
    file_name: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class AnalyzeRequest(CamelModel):
    text: Optional[str] = None
    options: AnalyzeOptions = Field(default_factory=AnalyzeOptions)


class HistoryPage(CamelModel):
    results: List[AnalysisRecord]
    total: int
    page: int
    limit: int
    total_pages: int


class StatsResponse(CamelModel):
    today_analysis: int
    avg_esg_score: Optional[float] = None
    compliance_rate: Optional[int] = None
    risk_alerts: int
    total_analysis: int


class RiskAlert(CamelModel):
    id: str
    title: str
    company: str
    severity: RiskLevel
    description: str
    analysis_date: str
    esg_score: float
