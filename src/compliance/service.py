import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.agents.compliance.agent import evaluate_with_source
from src.analysis.models import AnalysisResult
from src.analysis.schemas import AnalysisRecord
from src.compliance.models import ComplianceResult, ComplianceRule
from src.compliance.rules import enabled_rule_ids
from src.compliance.schemas import ComplianceReport, ComplianceResultResponse, RuleSelection, RuleUpdate

logger = logging.getLogger(__name__)


class ComplianceService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_analysis(self, analysis_id: UUID) -> Optional[AnalysisResult]:
        result = await self.db.execute(
            select(AnalysisResult).where(AnalysisResult.id == analysis_id)
        )
        return result.scalars().first()

    async def get_compliance_rules(self) -> List[ComplianceRule]:
        result = await self.db.execute(
            select(ComplianceRule).order_by(ComplianceRule.category, ComplianceRule.id)
        )
        return list(result.scalars().all())

    async def update_compliance_rule(self, rule_id: str, rule_in: RuleUpdate) -> Optional[ComplianceRule]:
        result = await self.db.execute(
            select(ComplianceRule).where(ComplianceRule.id == rule_id)
        )
        rule = result.scalars().first()
        if not rule:
            return None

        # Absent and null fields both leave the stored value alone
        for field, value in rule_in.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(rule, field, value)
        rule.updated_at = datetime.utcnow()

        await self.db.commit()
        await self.db.refresh(rule)
        return rule

    async def save_compliance_result(
        self, analysis_id: UUID, report: ComplianceReport, source: Optional[str] = None
    ) -> ComplianceResult:
        if await self._get_analysis(analysis_id) is None:
            raise ValueError(f"Analysis {analysis_id} does not exist")

        compliance_result = ComplianceResult(
            analysis_id=analysis_id,
            overall_rate=report.overall.rate,
            passed_count=report.overall.passed,
            warnings_count=report.overall.warnings,
            failed_count=report.overall.failed,
            detailed_results={
                category: section.model_dump(by_alias=True)
                for category, section in report.categories.items()
            },
            source=source,
        )
        self.db.add(compliance_result)
        await self.db.commit()
        await self.db.refresh(compliance_result)
        return compliance_result

    async def get_latest_compliance_result(self, analysis_id: UUID) -> Optional[ComplianceResultResponse]:
        result = await self.db.execute(
            select(ComplianceResult)
            .where(ComplianceResult.analysis_id == analysis_id)
            .order_by(ComplianceResult.created_at.desc())
            .limit(1)
        )
        stored = result.scalars().first()
        if not stored:
            return None

        return ComplianceResultResponse(
            id=stored.id,
            analysis_id=stored.analysis_id,
            source=stored.source,
            created_at=stored.created_at,
            overall={
                "rate": stored.overall_rate,
                "passed": stored.passed_count,
                "warnings": stored.warnings_count,
                "failed": stored.failed_count,
            },
            categories=stored.detailed_results or {},
        )

    async def check_compliance(
        self, analysis_id: UUID, rules: Optional[List[RuleSelection]], llm
    ) -> ComplianceReport:
        analysis = await self._get_analysis(analysis_id)
        if not analysis:
            raise HTTPException(status_code=404, detail="Analysis not found")

        record = AnalysisRecord.model_validate(analysis)
        rule_ids = enabled_rule_ids(rules)
        logger.info("Checking compliance of analysis %s against %d rules", analysis_id, len(rule_ids))

        report, source = await evaluate_with_source(record, rule_ids, llm)
        await self.save_compliance_result(analysis_id, report, source)
        return report
