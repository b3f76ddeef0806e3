"""Tests for compliance report aggregation."""
import pytest

from src.compliance.aggregator import aggregate, pass_rate
from src.compliance.evaluator import evaluate
from src.compliance.schemas import RuleVerdict
from factories import make_record


def verdict(rule_id: str, status: str) -> RuleVerdict:
    return RuleVerdict(
        id=rule_id,
        name=rule_id,
        status=status,
        reason="r",
        details="d",
        improvements="i",
        future_direction="f",
        risk_alert="a",
        industry_benchmark="b",
    )


class TestPassRate:
    def test_empty_is_zero(self):
        assert pass_rate([]) == 0

    @pytest.mark.parametrize("passed,total,expected", [
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),  # 12.5 rounds up
        (3, 8, 38),  # 37.5 rounds up
        (3, 12, 25),
        (4, 4, 100),
        (0, 5, 0),
    ])
    def test_rounds_half_up(self, passed, total, expected):
        verdicts = [verdict("e1", "passed")] * passed + [verdict("e1", "warning")] * (total - passed)
        assert pass_rate(verdicts) == expected


class TestAggregate:
    def test_counts_add_up_overall_and_per_category(self):
        record = make_record(8, 3, 6, text="公司建立了反腐败制度和风险管理体系")
        report = aggregate(evaluate(record))

        overall = report.overall
        assert overall.passed + overall.warnings + overall.failed == 12
        assert report.total == 12
        assert overall.rate == 25
        assert sum(len(c.rules) for c in report.categories.values()) == 12
        for category in report.categories.values():
            assert 0 <= category.rate <= 100

    def test_categories_follow_the_catalog(self):
        report = aggregate([verdict("g1", "passed"), verdict("e2", "failed"), verdict("s4", "warning")])
        assert list(report.categories) == ["environmental", "social", "governance"]
        assert [v.id for v in report.categories["environmental"].rules] == ["e2"]
        assert [v.id for v in report.categories["social"].rules] == ["s4"]
        assert [v.id for v in report.categories["governance"].rules] == ["g1"]
        assert report.categories["governance"].rate == 100
        assert report.categories["environmental"].rate == 0

    def test_empty_input_keeps_every_category(self):
        report = aggregate([])
        assert report.overall.rate == 0
        assert report.total == 0
        for category in ("environmental", "social", "governance"):
            assert report.categories[category].rate == 0
            assert report.categories[category].rules == []

    def test_unknown_and_repeated_ids_are_dropped(self):
        report = aggregate([
            verdict("e1", "passed"),
            verdict("zz", "passed"),
            verdict("e1", "failed"),
        ])
        assert report.total == 1
        assert report.overall.passed == 1
        assert report.categories["environmental"].rules[0].status == "passed"

    def test_report_serialises_in_camel_case(self):
        report = aggregate([verdict("e1", "passed")])
        body = report.model_dump(by_alias=True)
        rule = body["categories"]["environmental"]["rules"][0]
        assert "futureDirection" in rule
        assert "riskAlert" in rule
        assert "industryBenchmark" in rule
