"""Compliance Analyst: rule verdicts from the chat model, with a deterministic fallback.

Graph topology::

    START → request_verdicts ─┬─→ parse_verdicts ─┬─→ END
                              │                   │
                              └───────────────────┴─→ fallback → END

Any failure (transport, missing JSON, bad payload, missing rule ids) routes to ``fallback``,
which evaluates the whole batch with the keyword/threshold rules. Model and
fallback verdicts are never mixed within one check.
"""

import logging
import operator
from typing import Annotated, Any, List, Optional, Tuple, TypedDict

from langchain_core.prompts import ChatPromptTemplate
from langgraph.graph import StateGraph, END

from src.agents.compliance.prompts import (
    COMPLIANCE_ANALYST_SYSTEM_PROMPT,
    COMPLIANCE_CHECK_USER_PROMPT,
)
from src.agents.compliance.verdicts import format_rules, parse_rule_verdicts
from src.analysis.schemas import AnalysisRecord
from src.compliance.aggregator import aggregate
from src.compliance.evaluator import evaluate, format_score, resolve_company_name
from src.compliance.schemas import ComplianceReport, RuleVerdict
from src.llm.parsing import message_text

logger = logging.getLogger(__name__)

SOURCE_LLM = "deepseek-api"
SOURCE_FALLBACK = "local-rules"


class ComplianceAgentState(TypedDict):
    record: AnalysisRecord
    rule_ids: List[str]
    company_name: str
    raw_response: Optional[str]
    verdicts: List[RuleVerdict]
    source: Optional[str]
    errors: Annotated[List[str], operator.add]


def _check_errors(next_node: str):
    def route(state: ComplianceAgentState):
        return "fallback" if state.get("errors") else next_node
    return route


def create_compliance_agent(llm):
    prompt = ChatPromptTemplate.from_messages([
        ("system", COMPLIANCE_ANALYST_SYSTEM_PROMPT),
        ("user", COMPLIANCE_CHECK_USER_PROMPT),
    ])
    chain = prompt | llm

    async def request_verdicts_node(state: ComplianceAgentState):
        record = state["record"]
        scores = record.esg_scores
        try:
            response = await chain.ainvoke({
                "company_name": state["company_name"],
                "environmental": format_score(scores.environmental),
                "social": format_score(scores.social),
                "governance": format_score(scores.governance),
                "rules_text": format_rules(state["rule_ids"]),
                "input_text": record.input_text,
            })
        except Exception as e:
            logger.warning("Compliance model call failed: %s", e)
            return {"errors": [f"request_verdicts: {e}"]}
        return {"raw_response": message_text(response)}

    async def parse_verdicts_node(state: ComplianceAgentState):
        try:
            verdicts = parse_rule_verdicts(state.get("raw_response") or "", state["rule_ids"])
        except ValueError as e:
            logger.warning("Compliance model answer rejected: %s", e)
            return {"errors": [f"parse_verdicts: {e}"]}
        return {"verdicts": verdicts, "source": SOURCE_LLM}

    async def fallback_node(state: ComplianceAgentState):
        logger.info(
            "Falling back to rule-based evaluation for %d rules", len(state["rule_ids"])
        )
        return {
            "verdicts": evaluate(state["record"], state["rule_ids"]),
            "source": SOURCE_FALLBACK,
        }

    workflow = StateGraph(ComplianceAgentState)

    # Nodes
    workflow.add_node("request_verdicts", request_verdicts_node)
    workflow.add_node("parse_verdicts", parse_verdicts_node)
    workflow.add_node("fallback", fallback_node)

    # Edges
    workflow.set_entry_point("request_verdicts")
    workflow.add_conditional_edges("request_verdicts", _check_errors("parse_verdicts"), {
        "parse_verdicts": "parse_verdicts",
        "fallback": "fallback",
    })
    workflow.add_conditional_edges("parse_verdicts", _check_errors(END), {
        END: END,
        "fallback": "fallback",
    })
    workflow.add_edge("fallback", END)

    return workflow.compile()


async def run_compliance_agent(record: AnalysisRecord, rule_ids: List[str], llm) -> dict[str, Any]:
    agent = create_compliance_agent(llm)
    return await agent.ainvoke({
        "record": record,
        "rule_ids": list(rule_ids),
        "company_name": resolve_company_name(record),
        "raw_response": None,
        "verdicts": [],
        "source": None,
        "errors": [],
    })


async def evaluate_with_source(
    record: AnalysisRecord, rule_ids: List[str], llm
) -> Tuple[ComplianceReport, str]:
    """Run the agent and return the aggregated report with the path that produced it."""
    state = await run_compliance_agent(record, rule_ids, llm)
    return aggregate(state["verdicts"]), state["source"]


async def evaluate_via_llm(record: AnalysisRecord, rule_ids: List[str], llm) -> ComplianceReport:
    report, _ = await evaluate_with_source(record, rule_ids, llm)
    return report
