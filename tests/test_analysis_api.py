"""API tests for analysis, history, stats and risk alert routes."""
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from src.analysis.models import AnalysisResult
from src.analysis.schemas import HistoryPage, RiskAlert, StatsResponse
from src.analysis.service import AnalysisService
from src.config import settings
from factories import execute_result, make_analysis_row


class TestAnalyze:
    @pytest.mark.asyncio
    async def test_empty_text_is_rejected(self, async_client):
        response = await async_client.post("/api/analyze", json={"text": "   "})
        assert response.status_code == 400
        assert response.json() == {"error": "Text is required for analysis"}

    @pytest.mark.asyncio
    async def test_unreachable_model_stores_local_backup(self, async_client, mock_db):
        response = await async_client.post("/api/analyze", json={
            "text": "Huawei公司发布2023年可持续发展报告",
            "options": {"fileName": "report.txt"},
        })

        assert response.status_code == 200
        body = response.json()
        assert body["source"] == "local-backup"
        assert body["esgScores"]["overall"] == 7.5
        assert body["fileName"] == "report.txt"

        stored = mock_db.add.call_args.args[0]
        assert isinstance(stored, AnalysisResult)
        assert stored.input_text == "Huawei公司发布2023年可持续发展报告"
        assert stored.risks == [{"level": "medium", "description": "需要加强ESG信息透明度", "title": None}]


class TestUpload:
    @pytest.mark.asyncio
    async def test_text_upload(self, async_client, mock_db):
        files = {"file": ("esg.txt", "公司重视环境保护".encode("utf-8"), "text/plain")}
        response = await async_client.post("/api/analyze/upload", files=files)

        assert response.status_code == 200
        assert response.json()["fileName"] == "esg.txt"
        assert mock_db.add.call_args.args[0].input_text == "公司重视环境保护"

    @pytest.mark.asyncio
    async def test_unsupported_type_is_rejected(self, async_client):
        files = {"file": ("logo.png", b"\x89PNG", "image/png")}
        response = await async_client.post("/api/analyze/upload", files=files)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_oversized_file_is_413(self, async_client):
        with patch.object(settings, "MAX_UPLOAD_SIZE", 10):
            files = {"file": ("big.txt", b"x" * 11, "text/plain")}
            response = await async_client.post("/api/analyze/upload", files=files)
        assert response.status_code == 413

    @pytest.mark.asyncio
    async def test_blank_file_is_rejected(self, async_client):
        files = {"file": ("empty.txt", b"  \n", "text/plain")}
        response = await async_client.post("/api/analyze/upload", files=files)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_file_is_rejected(self, async_client):
        response = await async_client.post("/api/analyze/upload")
        assert response.status_code == 400


class TestAnalysisRecords:
    @pytest.mark.asyncio
    async def test_get_analysis(self, async_client, mock_db):
        row = make_analysis_row()
        mock_db.execute.return_value = execute_result([row])

        response = await async_client.get(f"/api/analysis/{row.id}")

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == str(row.id)
        assert body["inputText"] == row.input_text
        assert body["esgScores"]["social"] == 3

    @pytest.mark.asyncio
    async def test_unknown_analysis_is_404(self, async_client, mock_db):
        mock_db.execute.return_value = execute_result([])
        response = await async_client.get(f"/api/analysis/{uuid4()}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete(self, async_client):
        with patch.object(AnalysisService, "delete_analysis_result", new_callable=AsyncMock, return_value=True):
            response = await async_client.delete(f"/api/analysis/{uuid4()}")
        assert response.status_code == 200
        assert "message" in response.json()

    @pytest.mark.asyncio
    async def test_delete_unknown_is_404(self, async_client):
        with patch.object(AnalysisService, "delete_analysis_result", new_callable=AsyncMock, return_value=False):
            response = await async_client.delete(f"/api/analysis/{uuid4()}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_history_passes_filters(self, async_client):
        page = HistoryPage(results=[], total=0, page=2, limit=5, total_pages=0)
        with patch.object(AnalysisService, "get_analysis_results", new_callable=AsyncMock, return_value=page) as mocked:
            response = await async_client.get("/api/history", params={"page": 2, "limit": 5, "search": "碳", "status": "completed"})

        assert response.status_code == 200
        assert response.json() == {"results": [], "total": 0, "page": 2, "limit": 5, "totalPages": 0}
        mocked.assert_awaited_once_with(2, 5, "碳", "completed")


class TestDashboard:
    @pytest.mark.asyncio
    async def test_stats(self, async_client):
        stats = StatsResponse(today_analysis=2, avg_esg_score=7.4, compliance_rate=74, risk_alerts=1, total_analysis=9)
        with patch.object(AnalysisService, "get_stats", new_callable=AsyncMock, return_value=stats):
            response = await async_client.get("/api/stats")
        assert response.json() == {
            "todayAnalysis": 2,
            "avgEsgScore": 7.4,
            "complianceRate": 74,
            "riskAlerts": 1,
            "totalAnalysis": 9,
        }

    @pytest.mark.asyncio
    async def test_risk_alerts(self, async_client):
        alert = RiskAlert(
            id="a_0", title="t", company="c", severity="high",
            description="d", analysis_date="2024/3/5", esg_score=4.0,
        )
        with patch.object(AnalysisService, "get_risk_alerts", new_callable=AsyncMock, return_value=[alert]) as mocked:
            response = await async_client.get("/api/risk-alerts", params={"limit": 3})
        assert response.json()[0]["analysisDate"] == "2024/3/5"
        mocked.assert_awaited_once_with(3)
