"""Static catalog of the twelve ESG disclosure rules.

The catalog is the correlation table shared by both evaluators, the
aggregator and the ``compliance_rules`` seed: a rule id maps to exactly one
category, and verdicts are re-joined against it to find that category.
"""

from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict


class RuleCategory(str, Enum):
    ENVIRONMENTAL = "environmental"
    SOCIAL = "social"
    GOVERNANCE = "governance"


# Report order for categories
CATEGORY_ORDER: Tuple[RuleCategory, ...] = (
    RuleCategory.ENVIRONMENTAL,
    RuleCategory.SOCIAL,
    RuleCategory.GOVERNANCE,
)


class CatalogRule(BaseModel):
    id: str
    category: RuleCategory
    name: str
    description: str
    # Seeded into the rules table; no evaluator reads it
    threshold: float = 0.8

    model_config = ConfigDict(frozen=True)


RULE_CATALOG: Dict[str, CatalogRule] = {
    rule.id: rule
    for rule in (
        CatalogRule(id="e1", category=RuleCategory.ENVIRONMENTAL, name="碳排放披露",
                    description="企业应披露碳排放数据及减排目标", threshold=0.8),
        CatalogRule(id="e2", category=RuleCategory.ENVIRONMENTAL, name="能源使用效率",
                    description="企业应披露能源使用效率及改进措施", threshold=0.8),
        CatalogRule(id="e3", category=RuleCategory.ENVIRONMENTAL, name="废弃物管理",
                    description="企业应披露废弃物处理方法及减量措施", threshold=0.7),
        CatalogRule(id="e4", category=RuleCategory.ENVIRONMENTAL, name="水资源管理",
                    description="企业应披露水资源使用及节水措施", threshold=0.7),
        CatalogRule(id="s1", category=RuleCategory.SOCIAL, name="员工健康安全",
                    description="企业应确保工作环境安全并披露相关措施", threshold=0.85),
        CatalogRule(id="s2", category=RuleCategory.SOCIAL, name="多元化与包容性",
                    description="企业应促进员工多元化并防止歧视", threshold=0.7),
        CatalogRule(id="s3", category=RuleCategory.SOCIAL, name="供应链劳工标准",
                    description="企业应确保供应链符合劳工标准", threshold=0.8),
        CatalogRule(id="s4", category=RuleCategory.SOCIAL, name="社区参与",
                    description="企业应积极参与社区发展并披露相关活动", threshold=0.6),
        CatalogRule(id="g1", category=RuleCategory.GOVERNANCE, name="董事会独立性",
                    description="董事会应包含足够比例的独立董事", threshold=0.5),
        CatalogRule(id="g2", category=RuleCategory.GOVERNANCE, name="反腐败政策",
                    description="企业应制定并实施反腐败政策", threshold=0.8),
        CatalogRule(id="g3", category=RuleCategory.GOVERNANCE, name="高管薪酬透明度",
                    description="企业应披露高管薪酬及其决定机制", threshold=0.7),
        CatalogRule(id="g4", category=RuleCategory.GOVERNANCE, name="风险管理体系",
                    description="企业应建立全面的风险管理体系", threshold=0.8),
    )
}


# Filler for advisory fields that neither the model nor a rule template supplies
ADVISORY_DEFAULTS: Dict[str, str] = {
    "improvements": "建议加强相关制度建设和信息披露",
    "future_direction": "持续关注行业发展趋势，制定长期战略规划",
    "risk_alert": "需要关注相关合规风险，建立预警机制",
    "industry_benchmark": "参考行业领先企业的最佳实践",
}


def get_rule(rule_id: object) -> Optional[CatalogRule]:
    if not isinstance(rule_id, str):
        return None
    return RULE_CATALOG.get(rule_id)


def enabled_rule_ids(selections: Optional[Iterable]) -> List[str]:
    """Resolve the rule ids a check should evaluate.

    ``None`` means "no client configuration" and selects the whole catalog.
    Otherwise only selections flagged ``enabled`` are kept, in request order;
    ids are passed through unvalidated so evaluators can skip unknown ones.
    """
    if selections is None:
        return list(RULE_CATALOG)
    return [selection.id for selection in selections if selection.enabled is True]
