"""Service-level tests for the persistence contract, using a mocked AsyncSession."""
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from src.analysis.schemas import AnalysisPayload
from src.analysis.service import AnalysisService, alert_severity, alert_title
from src.compliance.aggregator import aggregate
from src.compliance.models import ComplianceRule
from src.compliance.schemas import RuleUpdate
from src.compliance.service import ComplianceService
from factories import execute_result, make_analysis_row


def _mock_db() -> AsyncMock:
    db = AsyncMock()
    db.add = MagicMock()
    return db


def _statement_table(call) -> str:
    return call.args[0].table.name


class TestDeleteAnalysis:
    @pytest.mark.asyncio
    async def test_compliance_results_are_deleted_first(self):
        db = _mock_db()
        db.execute.side_effect = [execute_result(rowcount=2), execute_result(rowcount=1)]

        deleted = await AnalysisService(db).delete_analysis_result(uuid4())

        assert deleted is True
        tables = [_statement_table(call) for call in db.execute.call_args_list]
        assert tables == ["compliance_results", "analysis_results"]
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_nothing_deleted(self):
        db = _mock_db()
        db.execute.side_effect = [execute_result(rowcount=0), execute_result(rowcount=0)]
        assert await AnalysisService(db).delete_analysis_result(uuid4()) is False


class TestSaveComplianceResult:
    @pytest.mark.asyncio
    async def test_rejects_unknown_analysis(self):
        db = _mock_db()
        db.execute.return_value = execute_result([])

        with pytest.raises(ValueError):
            await ComplianceService(db).save_compliance_result(uuid4(), aggregate([]), "local-rules")
        db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_stores_counts_and_categories(self):
        db = _mock_db()
        row = make_analysis_row()
        db.execute.return_value = execute_result([row])

        stored = await ComplianceService(db).save_compliance_result(row.id, aggregate([]), "deepseek-api")

        assert stored.overall_rate == 0
        assert stored.passed_count == stored.warnings_count == stored.failed_count == 0
        assert set(stored.detailed_results) == {"environmental", "social", "governance"}
        assert stored.source == "deepseek-api"
        db.commit.assert_awaited_once()


class TestUpdateRule:
    @pytest.mark.asyncio
    async def test_only_supplied_fields_change(self):
        db = _mock_db()
        rule = ComplianceRule(
            id="e1", category="environmental", name="碳排放披露", description="原描述",
            enabled=True, threshold=0.8, updated_at=datetime(2020, 1, 1),
        )
        db.execute.return_value = execute_result([rule])

        updated = await ComplianceService(db).update_compliance_rule(
            "e1", RuleUpdate.model_validate({"enabled": False, "description": None})
        )

        assert updated.enabled is False
        assert updated.name == "碳排放披露"
        assert updated.description == "原描述"
        assert updated.threshold == 0.8
        assert updated.updated_at > datetime(2020, 1, 1)

    @pytest.mark.asyncio
    async def test_unknown_rule(self):
        db = _mock_db()
        db.execute.return_value = execute_result([])
        assert await ComplianceService(db).update_compliance_rule("zz", RuleUpdate(name="x")) is None
        db.commit.assert_not_awaited()


class TestSaveAnalysis:
    @pytest.mark.asyncio
    async def test_empty_text_is_rejected(self):
        db = _mock_db()
        with pytest.raises(ValueError):
            await AnalysisService(db).save_analysis_result("  ", AnalysisPayload())
        db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_history_page_count(self):
        db = _mock_db()
        rows = [make_analysis_row(), make_analysis_row()]
        db.execute.side_effect = [execute_result(scalar=12), execute_result(rows)]

        page = await AnalysisService(db).get_analysis_results(page=2, limit=5, search="碳")

        assert page.total == 12
        assert page.total_pages == 3
        assert len(page.results) == 2


class TestStatsAndAlerts:
    @pytest.mark.asyncio
    async def test_stats_without_scores(self):
        db = _mock_db()
        db.execute.side_effect = [
            execute_result(scalar=0),
            execute_result(scalar=None),
            execute_result(scalar=0),
            execute_result(scalar=0),
        ]
        stats = await AnalysisService(db).get_stats()
        assert stats.avg_esg_score is None
        assert stats.compliance_rate is None
        assert stats.total_analysis == 0

    @pytest.mark.asyncio
    async def test_stats_rounding(self):
        db = _mock_db()
        db.execute.side_effect = [
            execute_result(scalar=1),
            execute_result(scalar=7.46),
            execute_result(scalar=2),
            execute_result(scalar=5),
        ]
        stats = await AnalysisService(db).get_stats()
        assert stats.compliance_rate == 75
        assert stats.risk_alerts == 2
        assert stats.total_analysis == 5

    @pytest.mark.asyncio
    async def test_one_alert_per_risk(self):
        db = _mock_db()
        row = make_analysis_row(
            esg_scores={"overall": 6.5},
            risks=[
                {"level": "low", "description": "供应链披露不足，需要补充供应商审核信息以及整改计划"},
                {"level": "high", "description": "碳排放超标", "title": "碳排放预警"},
            ],
        )
        db.execute.return_value = execute_result([row])

        alerts = await AnalysisService(db).get_risk_alerts(limit=10)

        assert [a.id for a in alerts] == [f"{row.id}_0", f"{row.id}_1"]
        assert alerts[0].severity == "medium"
        assert alerts[0].title == row.risks[0]["description"][:20] + "..."
        assert alerts[1].severity == "high"
        assert alerts[1].title == "碳排放预警"
        assert alerts[0].company == "绿色科技公司"
        assert alerts[0].analysis_date == "2024/3/5"
        assert alerts[0].esg_score == 6.5

    @pytest.mark.asyncio
    async def test_alerts_are_capped_at_limit(self):
        db = _mock_db()
        row = make_analysis_row(entities=[], risks=[{"level": "low"}] * 4)
        db.execute.return_value = execute_result([row])

        alerts = await AnalysisService(db).get_risk_alerts(limit=3)

        assert len(alerts) == 3
        assert alerts[0].company == "未知公司"
        assert alerts[0].title == "风险预警"
        assert alerts[0].description == "需要关注的ESG风险项"


class TestAlertRules:
    @pytest.mark.parametrize("overall,level,expected", [
        (4.9, "low", "high"),
        (8, "high", "high"),
        (6.9, "low", "medium"),
        (8, "medium", "medium"),
        (7, "low", "low"),
        (9, None, "low"),
    ])
    def test_severity(self, overall, level, expected):
        assert alert_severity(overall, level) == expected

    def test_title_prefers_explicit_title(self):
        assert alert_title({"title": "T", "description": "D"}) == "T"
        assert alert_title({"description": "短描述"}) == "短描述..."
        assert alert_title({}) == "风险预警"
