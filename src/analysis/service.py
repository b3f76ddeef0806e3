import logging
import math
from typing import List, Optional
from uuid import UUID

from sqlalchemy import Numeric, delete, func, or_, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.agents.analysis.agent import analyze_text
from src.analysis.models import AnalysisResult
from src.analysis.schemas import AnalysisPayload, AnalysisRecord, HistoryPage, RiskAlert, StatsResponse, find_company_name
from src.compliance.models import ComplianceResult

logger = logging.getLogger(__name__)

UNKNOWN_COMPANY = "未知公司"
DEFAULT_ALERT_TITLE = "风险预警"
DEFAULT_ALERT_DESCRIPTION = "需要关注的ESG风险项"


def _has_risks():
    # NULL risks count as an empty list
    return func.jsonb_array_length(func.coalesce(AnalysisResult.risks, text("'[]'::jsonb"))) > 0


def _overall_score():
    return AnalysisResult.esg_scores["overall"].astext.cast(Numeric)


def alert_severity(overall: float, level: Optional[str]) -> str:
    if overall < 5 or level == "high":
        return "high"
    if overall < 7 or level == "medium":
        return "medium"
    return "low"


def alert_title(risk: dict) -> str:
    if risk.get("title"):
        return str(risk["title"])
    if risk.get("description"):
        return f"{str(risk['description'])[:20]}..."
    return DEFAULT_ALERT_TITLE


def _score_value(scores) -> float:
    value = (scores or {}).get("overall") if isinstance(scores, dict) else None
    try:
        return float(value) if value not in (None, "") else 0.0
    except (TypeError, ValueError):
        return 0.0


class AnalysisService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def analyze(self, text_in: str, file_name: Optional[str], llm) -> AnalysisResult:
        """Run the ESG analysis for ``text_in`` and store the outcome."""
        if not text_in or not text_in.strip():
            raise ValueError("Text must not be empty")
        payload = await analyze_text(text_in, llm)
        logger.info("Analysis finished with source=%s", payload.source)
        return await self.save_analysis_result(text_in, payload, file_name)

    async def save_analysis_result(
        self, input_text: str, payload: AnalysisPayload, file_name: Optional[str] = None
    ) -> AnalysisResult:
        if not input_text or not input_text.strip():
            raise ValueError("Text must not be empty")

        data = payload.model_dump()
        analysis = AnalysisResult(
            input_text=input_text,
            file_name=file_name,
            entities=data["entities"],
            esg_scores=data["esg_scores"],
            key_insights=data["key_insights"],
            risks=data["risks"],
            recommendations=data["recommendations"],
            status=data["status"],
            source=data["source"],
        )
        self.db.add(analysis)
        await self.db.commit()
        await self.db.refresh(analysis)
        return analysis

    async def get_analysis_results(
        self,
        page: int = 1,
        limit: int = 10,
        search: str = "",
        status: str = "all",
    ) -> HistoryPage:
        filters = []
        if search:
            pattern = f"%{search}%"
            filters.append(or_(
                AnalysisResult.input_text.ilike(pattern),
                AnalysisResult.file_name.ilike(pattern),
            ))
        if status and status != "all":
            filters.append(AnalysisResult.status == status)

        count_result = await self.db.execute(
            select(func.count()).select_from(AnalysisResult).where(*filters)
        )
        total = count_result.scalar() or 0

        result = await self.db.execute(
            select(AnalysisResult)
            .where(*filters)
            .order_by(AnalysisResult.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        rows = result.scalars().all()

        return HistoryPage(
            results=[AnalysisRecord.model_validate(row) for row in rows],
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if limit else 0,
        )

    async def get_analysis_by_id(self, analysis_id: UUID) -> Optional[AnalysisResult]:
        result = await self.db.execute(
            select(AnalysisResult).where(AnalysisResult.id == analysis_id)
        )
        return result.scalars().first()

    async def delete_analysis_result(self, analysis_id: UUID) -> bool:
        # Compliance results reference the analysis, so they go first
        await self.db.execute(
            delete(ComplianceResult).where(ComplianceResult.analysis_id == analysis_id)
        )
        result = await self.db.execute(
            delete(AnalysisResult).where(AnalysisResult.id == analysis_id)
        )
        await self.db.commit()
        return result.rowcount > 0

    async def get_stats(self) -> StatsResponse:
        today = await self.db.execute(
            select(func.count()).select_from(AnalysisResult).where(
                func.date(AnalysisResult.created_at) == func.current_date()
            )
        )
        average = await self.db.execute(
            select(func.avg(_overall_score())).where(
                AnalysisResult.esg_scores["overall"].astext.isnot(None),
                _overall_score() > 0,
            )
        )
        risky = await self.db.execute(
            select(func.count()).select_from(AnalysisResult).where(_has_risks())
        )
        total = await self.db.execute(select(func.count()).select_from(AnalysisResult))

        avg_score = average.scalar()
        avg_score = float(avg_score) if avg_score else None
        return StatsResponse(
            today_analysis=today.scalar() or 0,
            avg_esg_score=round(avg_score, 1) if avg_score else None,
            compliance_rate=math.floor(avg_score * 10 + 0.5) if avg_score else None,
            risk_alerts=risky.scalar() or 0,
            total_analysis=total.scalar() or 0,
        )

    async def get_risk_alerts(self, limit: int = 10) -> List[RiskAlert]:
        """One alert per stored risk, newest analyses first, at most ``limit`` alerts."""
        result = await self.db.execute(
            select(AnalysisResult)
            .where(_has_risks())
            .order_by(AnalysisResult.created_at.desc())
            .limit(limit)
        )

        alerts: List[RiskAlert] = []
        for row in result.scalars().all():
            company = find_company_name(row.entities or []) or UNKNOWN_COMPANY
            overall = _score_value(row.esg_scores)
            created = row.created_at
            analysis_date = f"{created.year}/{created.month}/{created.day}" if created else ""

            for risk in row.risks or []:
                if not isinstance(risk, dict):
                    continue
                alerts.append(RiskAlert(
                    id=f"{row.id}_{len(alerts)}",
                    title=alert_title(risk),
                    company=company,
                    severity=alert_severity(overall, risk.get("level")),
                    description=risk.get("description") or DEFAULT_ALERT_DESCRIPTION,
                    analysis_date=analysis_date,
                    esg_score=overall,
                ))

        return alerts[:limit]
