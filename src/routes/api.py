from fastapi import APIRouter

from src.analysis.router import router as analysis_router
from src.compliance.router import router as compliance_router

api_router = APIRouter()

api_router.include_router(analysis_router)
api_router.include_router(compliance_router)
