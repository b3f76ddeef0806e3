"""Rule-based compliance evaluation used whenever the LLM path is unavailable.

Every rule is described by a ``RulePolicy`` row in ``RULE_POLICIES``. A row
says which signal decides the status (a score tier, keyword presence, or
both) and carries the text templates for the verdict. ``evaluate`` walks the
requested ids, looks each one up in the table and renders a ``RuleVerdict``.

The evaluator is total: it never raises for a well-typed ``AnalysisRecord``.
Unknown rule ids are skipped, missing scores count as zero and an empty
source text simply fails every keyword check.
"""

import logging
import re
from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from src.analysis.schemas import AnalysisRecord, EsgScores
from src.compliance.rules import ADVISORY_DEFAULTS, RULE_CATALOG
from src.compliance.schemas import RuleStatus, RuleVerdict

logger = logging.getLogger(__name__)

DEFAULT_COMPANY_NAME = "该公司"

_REPORT_EXTENSION = re.compile(r"\.(txt|pdf|docx?)$", re.IGNORECASE)


class PolicyKind(str, Enum):
    # Three-way tier on one ESG dimension
    SCORE = "score"
    # Binary: any keyword present passes, otherwise warning
    KEYWORD = "keyword"
    # Binary: dimension above the bar AND a keyword present
    SCORE_AND_KEYWORD = "score_and_keyword"


class RulePolicy(NamedTuple):
    kind: PolicyKind
    dimension: Optional[str]
    # SCORE: (pass_above, warn_above); SCORE_AND_KEYWORD: (pass_above,)
    bounds: Tuple[float, ...]
    keywords: Tuple[str, ...]
    # Keywords reported in ``details``; for keyword rules the same as ``keywords``
    evidence: Tuple[str, ...]
    reasons: Dict[str, str]
    details: Tuple[str, str]  # (evidence found, evidence missing)
    # field -> {status or "*": template}
    advisory: Dict[str, Dict[str, str]] = {}


RULE_POLICIES: Dict[str, RulePolicy] = {
    "e1": RulePolicy(
        kind=PolicyKind.SCORE,
        dimension="environmental",
        bounds=(7, 4),
        keywords=(),
        evidence=("碳排放", "温室气体"),
        reasons={
            "passed": "{company}在碳排放披露方面表现优秀，ESG环境评分达到{score}/10，已建立完善的碳排放监测和报告体系，数据披露透明度高，符合国际标准要求。",
            "warning": "{company}的碳排放披露存在改进空间，ESG环境评分为{score}/10，虽有基础披露但缺乏系统性和完整性，需要进一步提升数据质量和透明度。",
            "failed": "{company}在碳排放披露方面存在重大缺陷，ESG环境评分仅为{score}/10，缺乏基本的碳排放数据披露，急需建立完整的碳排放监测、核算和报告体系。",
        },
        details=(
            "文本中包含碳排放、温室气体等相关关键词，显示企业对碳排放管理有一定认知和实践",
            "文本中未发现明确的碳排放披露信息，缺乏具体的排放数据、减排目标或相关管理措施",
        ),
        advisory={
            "improvements": {
                "passed": "建议进一步完善碳排放数据的第三方验证机制，加强供应链碳足迹管理，探索碳中和路径规划。",
                "warning": "建议建立完整的碳排放核算体系，设定科学的减排目标，加强数据收集和监测能力，提升披露频率和质量。",
                "failed": "建议立即启动碳排放基线调研，建立数据收集体系，制定减排目标和行动计划，参考GHG Protocol等国际标准。",
            },
            "future_direction": {
                "*": "未来3-5年应重点关注：1）实现碳中和目标路径规划；2）发展清洁能源和节能技术；3）建立碳资产管理体系；4）参与碳交易市场；5）推动供应链低碳转型。",
            },
            "risk_alert": {
                "failed": "高风险：面临碳税、碳边境调节机制等政策风险，可能影响国际贸易和投资吸引力，建议尽快制定应对策略。",
                "*": "中等风险：需关注碳价格波动、监管政策变化对业务的潜在影响，建立风险预警和应对机制。",
            },
            "industry_benchmark": {
                "*": "参考行业领先企业如微软、苹果等的碳中和承诺和实践，学习CDP、SBTi等国际倡议的最佳实践，对标同行业头部企业的披露标准。",
            },
        },
    ),
    "e2": RulePolicy(
        kind=PolicyKind.SCORE,
        dimension="environmental",
        bounds=(6, 3),
        keywords=(),
        evidence=("节能", "能源效率"),
        reasons={
            "passed": "{company}在能源使用效率方面达标，环境管理措施较为完善。",
            "warning": "{company}的能源使用效率有待提升，建议制定更明确的节能目标和措施。",
            "failed": "{company}在能源使用效率方面存在重大缺陷，缺乏有效的能源管理体系。",
        },
        details=("文本中提及节能或能源效率相关措施", "文本中缺乏能源使用效率的具体信息"),
    ),
    "e3": RulePolicy(
        kind=PolicyKind.KEYWORD,
        dimension=None,
        bounds=(),
        keywords=("废弃物", "回收"),
        evidence=("废弃物", "回收"),
        reasons={
            "passed": "{company}在废弃物管理方面有相关披露，显示了环境责任意识。",
            "warning": "{company}在废弃物管理方面的披露不够充分，建议加强废弃物处理和回收利用的信息披露。",
        },
        details=("文本中包含废弃物管理相关内容", "文本中未发现废弃物管理的具体措施"),
    ),
    "e4": RulePolicy(
        kind=PolicyKind.KEYWORD,
        dimension=None,
        bounds=(),
        keywords=("水资源", "节水"),
        evidence=("水资源", "节水"),
        reasons={
            "passed": "{company}在水资源管理方面有相关措施，体现了环境保护意识。",
            "warning": "{company}在水资源管理方面的披露不够充分，建议加强水资源使用效率和节水措施的信息披露。",
        },
        details=("文本中包含水资源管理相关内容", "文本中未发现水资源管理的具体措施"),
    ),
    "s1": RulePolicy(
        kind=PolicyKind.SCORE,
        dimension="social",
        bounds=(7, 4),
        keywords=(),
        evidence=("安全", "健康"),
        reasons={
            "passed": "{company}在员工健康安全方面表现优秀，ESG社会评分为{score}/10，建立了完善的安全保障体系。",
            "warning": "{company}的员工健康安全措施需要改进，ESG社会评分为{score}/10，建议加强安全培训和防护措施。",
            "failed": "{company}在员工健康安全方面存在严重不足，ESG社会评分仅为{score}/10，急需建立完整的职业健康安全管理体系。",
        },
        details=("文本中提及员工安全或健康相关措施", "文本中缺乏员工健康安全的具体保障措施"),
    ),
    "s2": RulePolicy(
        kind=PolicyKind.KEYWORD,
        dimension=None,
        bounds=(),
        keywords=("多元化", "平等"),
        evidence=("多元化", "平等"),
        reasons={
            "passed": "{company}在多元化与包容性方面有积极表现，体现了企业的社会责任。",
            "warning": "{company}在多元化与包容性方面的披露有限，建议加强相关政策的制定和实施。",
        },
        details=("文本中体现了多元化和包容性理念", "文本中未明确体现多元化和包容性政策"),
    ),
    "s3": RulePolicy(
        kind=PolicyKind.SCORE_AND_KEYWORD,
        dimension="social",
        bounds=(6,),
        keywords=("供应链", "供应商"),
        evidence=("供应链", "供应商"),
        reasons={
            "passed": "{company}对供应链劳工标准有相关管理措施，体现了负责任的供应链管理。",
            "warning": "{company}在供应链劳工标准方面需要加强管理，建议建立更完善的供应商评估和监督机制。",
        },
        details=("文本中提及供应链管理相关内容", "文本中缺乏供应链劳工标准的管理措施"),
    ),
    "s4": RulePolicy(
        kind=PolicyKind.KEYWORD,
        dimension=None,
        bounds=(),
        keywords=("社区", "公益"),
        evidence=("社区", "公益"),
        reasons={
            "passed": "{company}在社区参与方面有积极表现，体现了企业的社会责任担当。",
            "warning": "{company}在社区参与方面的披露有限，建议加强社区发展项目的参与和信息披露。",
        },
        details=("文本中体现了社区参与相关活动", "文本中未明确体现社区参与和发展项目"),
    ),
    "g1": RulePolicy(
        kind=PolicyKind.SCORE,
        dimension="governance",
        bounds=(7, 4),
        keywords=(),
        evidence=("董事会", "独立董事"),
        reasons={
            "passed": "{company}的董事会独立性良好，ESG治理评分为{score}/10，治理结构较为完善。",
            "warning": "{company}的董事会独立性有待提升，ESG治理评分为{score}/10，建议增加独立董事比例。",
            "failed": "{company}的董事会独立性存在重大缺陷，ESG治理评分仅为{score}/10，治理结构需要重大改革。",
        },
        details=("文本中提及董事会治理相关内容", "文本中缺乏董事会独立性的具体信息"),
    ),
    "g2": RulePolicy(
        kind=PolicyKind.KEYWORD,
        dimension=None,
        bounds=(),
        keywords=("反腐", "廉洁", "合规"),
        evidence=("反腐", "廉洁", "合规"),
        reasons={
            "passed": "{company}建立了反腐败相关政策，体现了良好的商业道德标准。",
            "warning": "{company}在反腐败政策方面的披露不够明确，建议建立更完善的反腐败制度和培训体系。",
        },
        details=("文本中体现了反腐败或合规管理措施", "文本中未明确提及反腐败政策"),
    ),
    "g3": RulePolicy(
        kind=PolicyKind.KEYWORD,
        dimension=None,
        bounds=(),
        keywords=("薪酬", "高管"),
        evidence=("薪酬", "高管"),
        reasons={
            "passed": "{company}在高管薪酬透明度方面有相关披露，体现了良好的治理透明度。",
            "warning": "{company}在高管薪酬透明度方面的披露不够充分，建议加强高管薪酬决定机制的透明度。",
        },
        details=("文本中提及高管薪酬相关内容", "文本中缺乏高管薪酬透明度的具体信息"),
    ),
    "g4": RulePolicy(
        kind=PolicyKind.SCORE_AND_KEYWORD,
        dimension="governance",
        bounds=(6,),
        keywords=("风险",),
        evidence=("风险",),
        reasons={
            "passed": "{company}建立了较为完善的风险管理体系，能够有效识别和控制各类风险。",
            "warning": "{company}的风险管理体系需要进一步完善，建议加强风险识别、评估和应对机制。",
        },
        details=("文本中提及风险管理相关措施", "文本中缺乏风险管理体系的具体描述"),
    ),
}


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def _score(scores: EsgScores, dimension: Optional[str]) -> float:
    if dimension is None:
        return 0.0
    return getattr(scores, dimension, 0.0) or 0.0


def format_score(value: float) -> str:
    """Render a score the way a person writes it: ``8`` not ``8.0``."""
    return f"{value:g}"


def rule_status(policy: RulePolicy, scores: EsgScores, text: str) -> RuleStatus:
    if policy.kind is PolicyKind.SCORE:
        pass_above, warn_above = policy.bounds
        score = _score(scores, policy.dimension)
        if score > pass_above:
            return "passed"
        if score > warn_above:
            return "warning"
        return "failed"

    if policy.kind is PolicyKind.SCORE_AND_KEYWORD:
        (pass_above,) = policy.bounds
        if _score(scores, policy.dimension) > pass_above and _contains_any(text, policy.keywords):
            return "passed"
        return "warning"

    return "passed" if _contains_any(text, policy.keywords) else "warning"


def _advice(policy: RulePolicy, field: str, status: str) -> str:
    templates = policy.advisory.get(field, {})
    return templates.get(status) or templates.get("*") or ADVISORY_DEFAULTS[field]


def resolve_company_name(record: AnalysisRecord) -> str:
    name = record.company_name()
    if name:
        return name
    if record.file_name:
        stem = _REPORT_EXTENSION.sub("", record.file_name)
        if stem:
            return stem
    return DEFAULT_COMPANY_NAME


def evaluate_rule(rule_id: str, record: AnalysisRecord, company: Optional[str] = None) -> Optional[RuleVerdict]:
    """Evaluate a single rule; ``None`` when the id is not in the catalog."""
    policy = RULE_POLICIES.get(rule_id) if isinstance(rule_id, str) else None
    rule = RULE_CATALOG.get(rule_id) if policy else None
    if policy is None or rule is None:
        return None

    text = record.input_text or ""
    scores = record.esg_scores
    company = company or resolve_company_name(record)
    status = rule_status(policy, scores, text)

    found, missing = policy.details
    return RuleVerdict(
        id=rule.id,
        name=rule.name,
        status=status,
        reason=policy.reasons[status].format(
            company=company, score=format_score(_score(scores, policy.dimension))
        ),
        details=found if _contains_any(text, policy.evidence) else missing,
        improvements=_advice(policy, "improvements", status),
        future_direction=_advice(policy, "future_direction", status),
        risk_alert=_advice(policy, "risk_alert", status),
        industry_benchmark=_advice(policy, "industry_benchmark", status),
    )


def evaluate(record: AnalysisRecord, rule_ids: Optional[Iterable[str]] = None) -> List[RuleVerdict]:
    """Evaluate the requested rules (all twelve when ``rule_ids`` is None).

    Returns exactly one verdict per distinct known id, in request order.
    """
    requested = list(RULE_CATALOG) if rule_ids is None else list(rule_ids)
    company = resolve_company_name(record)

    verdicts: List[RuleVerdict] = []
    seen = set()
    for rule_id in requested:
        if not isinstance(rule_id, str) or rule_id in seen:
            continue
        seen.add(rule_id)
        verdict = evaluate_rule(rule_id, record, company)
        if verdict is None:
            logger.warning("Skipping unknown compliance rule id %r", rule_id)
            continue
        verdicts.append(verdict)

    logger.info(
        "Rule-based evaluation produced %d verdicts for %d requested rules",
        len(verdicts), len(requested),
    )
    return verdicts
