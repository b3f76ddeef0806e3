import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.database import get_db
from src.ingestion.service import IngestionService
from src.llm.factory import get_analysis_llm
from src.shared.schemas import ErrorResponse, MessageResponse
from src.analysis.schemas import AnalysisRecord, AnalyzeRequest, HistoryPage, RiskAlert, StatsResponse
from src.analysis.service import AnalysisService

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["analysis"],
    responses={code: {"model": ErrorResponse} for code in (400, 404, 413, 500)},
)


@router.post("/analyze", response_model=AnalysisRecord)
async def analyze(
    request: AnalyzeRequest,
    db: AsyncSession = Depends(get_db),
    llm=Depends(get_analysis_llm),
):
    if not request.text or not request.text.strip():
        raise HTTPException(status_code=400, detail="Text is required for analysis")

    service = AnalysisService(db)
    try:
        analysis = await service.analyze(request.text, request.options.file_name, llm)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return AnalysisRecord.model_validate(analysis)


@router.post("/analyze/upload", response_model=AnalysisRecord)
async def analyze_upload(
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    llm=Depends(get_analysis_llm),
):
    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(status_code=413, detail="File exceeds the upload size limit")

    ingestion = IngestionService()
    if not ingestion.is_supported(file.filename):
        raise HTTPException(status_code=400, detail="Only .txt, .pdf and .docx files are supported")

    try:
        text = ingestion.extract_text(content, file.filename)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not text.strip():
        raise HTTPException(status_code=400, detail="No text could be extracted from the file")

    logger.info("Analyzing upload %s (%d characters)", file.filename, len(text))
    service = AnalysisService(db)
    analysis = await service.analyze(text, file.filename, llm)
    return AnalysisRecord.model_validate(analysis)


@router.get("/history", response_model=HistoryPage)
async def get_history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str = "",
    status: str = "all",
    db: AsyncSession = Depends(get_db),
):
    service = AnalysisService(db)
    return await service.get_analysis_results(page, limit, search, status)


@router.get("/analysis/{analysis_id}", response_model=AnalysisRecord)
async def get_analysis(
    analysis_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    service = AnalysisService(db)
    analysis = await service.get_analysis_by_id(analysis_id)
    if not analysis:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return AnalysisRecord.model_validate(analysis)


@router.delete("/analysis/{analysis_id}", response_model=MessageResponse)
async def delete_analysis(
    analysis_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    service = AnalysisService(db)
    if not await service.delete_analysis_result(analysis_id):
        raise HTTPException(status_code=404, detail="Analysis not found")
    return {"message": "Analysis deleted"}


@router.get("/stats", response_model=StatsResponse)
async def get_stats(db: AsyncSession = Depends(get_db)):
    service = AnalysisService(db)
    return await service.get_stats()


@router.get("/risk-alerts", response_model=List[RiskAlert])
async def get_risk_alerts(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    service = AnalysisService(db)
    return await service.get_risk_alerts(limit)
