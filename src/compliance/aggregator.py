import logging
from typing import Dict, Iterable, List

from src.compliance.rules import CATEGORY_ORDER, get_rule
from src.compliance.schemas import CategoryReport, ComplianceReport, OverallSummary, RuleVerdict

logger = logging.getLogger(__name__)


def pass_rate(verdicts: List[RuleVerdict]) -> int:
    """Percentage of passed verdicts, rounded half up; 0 for an empty list."""
    total = len(verdicts)
    if total == 0:
        return 0
    passed = sum(1 for verdict in verdicts if verdict.status == "passed")
    # Integer form of floor(100 * passed / total + 0.5)
    return (200 * passed + total) // (2 * total)


def aggregate(verdicts: Iterable[RuleVerdict]) -> ComplianceReport:
    """Group verdicts by catalog category and compute overall and per-category rates.

    A verdict whose id is not in the catalog has no category and is dropped;
    a repeated id keeps its first verdict.
    """
    by_category: Dict[str, List[RuleVerdict]] = {category.value: [] for category in CATEGORY_ORDER}
    seen = set()
    for verdict in verdicts:
        rule = get_rule(verdict.id)
        if rule is None:
            logger.warning("Dropping verdict for unknown rule id %r", verdict.id)
            continue
        if verdict.id in seen:
            continue
        seen.add(verdict.id)
        by_category[rule.category.value].append(verdict)

    evaluated = [verdict for rules in by_category.values() for verdict in rules]
    overall = OverallSummary(
        rate=pass_rate(evaluated),
        passed=sum(1 for v in evaluated if v.status == "passed"),
        warnings=sum(1 for v in evaluated if v.status == "warning"),
        failed=sum(1 for v in evaluated if v.status == "failed"),
    )
    categories = {
        category: CategoryReport(rate=pass_rate(rules), rules=rules)
        for category, rules in by_category.items()
    }
    return ComplianceReport(overall=overall, categories=categories)
