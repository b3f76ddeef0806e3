import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import get_db
from src.llm.factory import get_compliance_llm
from src.compliance.schemas import (
    ComplianceCheckRequest,
    ComplianceReport,
    ComplianceResultResponse,
    RuleResponse,
    RuleUpdate,
)
from src.compliance.service import ComplianceService
from src.shared.schemas import ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/compliance",
    tags=["compliance"],
    responses={code: {"model": ErrorResponse} for code in (400, 404, 500)},
)


@router.post("/check", response_model=ComplianceReport)
async def check_compliance(
    request: ComplianceCheckRequest,
    db: AsyncSession = Depends(get_db),
    llm=Depends(get_compliance_llm),
):
    if request.analysis_id is None:
        raise HTTPException(status_code=400, detail="analysisId is required")

    service = ComplianceService(db)
    try:
        return await service.check_compliance(request.analysis_id, request.rules, llm)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Compliance check failed for %s: %s", request.analysis_id, e)
        raise HTTPException(
            status_code=500,
            detail={"error": "Compliance check failed", "details": str(e)},
        )


@router.get("/rules", response_model=List[RuleResponse])
async def list_rules(db: AsyncSession = Depends(get_db)):
    service = ComplianceService(db)
    return await service.get_compliance_rules()


@router.put("/rules/{rule_id}", response_model=RuleResponse)
async def update_rule(
    rule_id: str,
    rule_in: RuleUpdate,
    db: AsyncSession = Depends(get_db),
):
    service = ComplianceService(db)
    rule = await service.update_compliance_rule(rule_id, rule_in)
    if not rule:
        raise HTTPException(status_code=404, detail="Rule not found")
    return rule


@router.get("/results/{analysis_id}", response_model=ComplianceResultResponse)
async def get_compliance_result(
    analysis_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    service = ComplianceService(db)
    result = await service.get_latest_compliance_result(analysis_id)
    if not result:
        raise HTTPException(status_code=404, detail="Compliance result not found")
    return result
