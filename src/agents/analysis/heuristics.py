"""Keyword heuristics used when the analysis model is unreachable or its answer is not JSON."""

import re
from typing import List, Sequence

from src.analysis.schemas import AnalysisPayload, Entity, EsgScores, Risk

SOURCE_PARSED = "deepseek-api-parsed"
SOURCE_LOCAL_BACKUP = "local-backup"

COMPANY_PATTERN = re.compile(
    r"([A-Z][a-z]*(?:\s+[A-Z][a-z]*)*(?:公司|集团|股份|有限|Corporation|Corp|Inc|Ltd))"
)
YEAR_PATTERN = re.compile(r"(20\d{2})")

ENVIRONMENTAL_KEYWORDS = ("环境", "碳排放", "节能", "绿色", "可持续", "环保")
SOCIAL_KEYWORDS = ("员工", "社会", "公益", "慈善", "社区", "健康", "安全")
GOVERNANCE_KEYWORDS = ("治理", "董事会", "合规", "透明", "监督", "风险管理")

BASE_SCORE = 6.0
KEYWORD_BONUS = 0.5
MAX_BONUS = 2.0
RISK_THRESHOLD = 7.0


def company_entity(text: str, confidence: float) -> List[Entity]:
    match = COMPANY_PATTERN.search(text or "")
    if not match:
        return []
    return [Entity(type="公司名称", value=match.group(1), confidence=confidence)]


def year_entity(text: str) -> List[Entity]:
    years = YEAR_PATTERN.findall(text or "")
    if not years:
        return []
    return [Entity(type="报告年份", value=f"{years[-1]}年", confidence=0.80)]


def keyword_score(text: str, keywords: Sequence[str]) -> float:
    hits = sum(1 for keyword in keywords if keyword in text)
    return round(BASE_SCORE + min(hits * KEYWORD_BONUS, MAX_BONUS), 1)


def extract_insights(text: str) -> List[str]:
    insights = []
    if "环境" in text or "绿色" in text:
        insights.append("公司在环境保护方面有相关举措")
    if "员工" in text or "社会" in text:
        insights.append("公司注重社会责任和员工权益")
    if "治理" in text or "管理" in text:
        insights.append("公司具备一定的治理结构")
    return insights or ["基于文本内容进行了ESG分析"]


def assess_risks(environmental: float, social: float, governance: float) -> List[Risk]:
    risks = []
    if environmental < RISK_THRESHOLD:
        risks.append(Risk(level="medium", description="环境风险需要关注"))
    if social < RISK_THRESHOLD:
        risks.append(Risk(level="medium", description="社会责任风险需要关注"))
    if governance < RISK_THRESHOLD:
        risks.append(Risk(level="medium", description="治理风险需要关注"))
    return risks or [Risk(level="low", description="整体ESG风险较低")]


def parse_analysis_from_text(response_text: str, source_text: str) -> AnalysisPayload:
    """Estimate an analysis from a free-text model answer.

    Entities come from the submitted text; scores, insights and risks come
    from keywords in the model's answer.
    """
    response_text = response_text or ""
    environmental = keyword_score(response_text, ENVIRONMENTAL_KEYWORDS)
    social = keyword_score(response_text, SOCIAL_KEYWORDS)
    governance = keyword_score(response_text, GOVERNANCE_KEYWORDS)

    return AnalysisPayload(
        entities=company_entity(source_text, 0.85) + year_entity(source_text),
        esg_scores=EsgScores(
            environmental=environmental,
            social=social,
            governance=governance,
            overall=round((environmental + social + governance) / 3, 1),
        ),
        key_insights=extract_insights(response_text),
        risks=assess_risks(environmental, social, governance),
        status="completed",
        source=SOURCE_PARSED,
    )


def local_backup_analysis(source_text: str) -> AnalysisPayload:
    return AnalysisPayload(
        entities=company_entity(source_text, 0.80),
        esg_scores=EsgScores(environmental=7.5, social=7.2, governance=7.8, overall=7.5),
        key_insights=[
            "基于本地分析的ESG评估",
            "建议进一步完善ESG信息披露",
            "整体ESG表现处于中等水平",
        ],
        risks=[Risk(level="medium", description="需要加强ESG信息透明度")],
        status="completed",
        source=SOURCE_LOCAL_BACKUP,
    )
