"""ESG Analyst: entities, dimension scores, insights and risks for a piece of text.

Graph topology::

    START → request_analysis ─┬─→ parse_analysis → END
                              └─→ local_backup → END

A failed call yields the fixed local backup analysis. An answer that is not
a usable JSON object is still mined for keywords by ``parse_analysis``.
"""

import logging
import operator
from typing import Annotated, List, Optional, TypedDict

from langchain_core.prompts import ChatPromptTemplate
from langgraph.graph import StateGraph, END
from pydantic import ValidationError

from src.agents.analysis.heuristics import local_backup_analysis, parse_analysis_from_text
from src.agents.analysis.prompts import ESG_ANALYST_SYSTEM_PROMPT, ESG_ANALYSIS_USER_PROMPT
from src.analysis.schemas import AnalysisPayload
from src.llm.parsing import LLMResponseError, extract_json_object, message_text

logger = logging.getLogger(__name__)

SOURCE_LLM = "deepseek-api"


class AnalysisAgentState(TypedDict):
    input_text: str
    raw_response: Optional[str]
    analysis: Optional[AnalysisPayload]
    errors: Annotated[List[str], operator.add]


def _check_after_request(state: AnalysisAgentState):
    return "local_backup" if state.get("errors") else "parse_analysis"


def parse_analysis_response(content: str, source_text: str) -> AnalysisPayload:
    """Turn a model answer into an analysis, degrading to keyword parsing."""
    try:
        payload = extract_json_object(content)
        payload["source"] = SOURCE_LLM
        return AnalysisPayload.model_validate(payload)
    except (LLMResponseError, ValidationError) as e:
        logger.warning("Analysis answer is not usable JSON, parsing keywords instead: %s", e)
        return parse_analysis_from_text(content, source_text)


def create_analysis_agent(llm):
    prompt = ChatPromptTemplate.from_messages([
        ("system", ESG_ANALYST_SYSTEM_PROMPT),
        ("user", ESG_ANALYSIS_USER_PROMPT),
    ])
    chain = prompt | llm

    async def request_analysis_node(state: AnalysisAgentState):
        logger.info("Requesting ESG analysis for %d characters", len(state["input_text"]))
        try:
            response = await chain.ainvoke({"input_text": state["input_text"]})
        except Exception as e:
            logger.error("Analysis model call failed: %s", e)
            return {"errors": [f"request_analysis: {e}"]}
        return {"raw_response": message_text(response)}

    async def parse_analysis_node(state: AnalysisAgentState):
        return {
            "analysis": parse_analysis_response(state.get("raw_response") or "", state["input_text"])
        }

    async def local_backup_node(state: AnalysisAgentState):
        logger.info("Using local backup analysis")
        return {"analysis": local_backup_analysis(state["input_text"])}

    workflow = StateGraph(AnalysisAgentState)
    workflow.add_node("request_analysis", request_analysis_node)
    workflow.add_node("parse_analysis", parse_analysis_node)
    workflow.add_node("local_backup", local_backup_node)

    workflow.set_entry_point("request_analysis")
    workflow.add_conditional_edges("request_analysis", _check_after_request, {
        "parse_analysis": "parse_analysis",
        "local_backup": "local_backup",
    })
    workflow.add_edge("parse_analysis", END)
    workflow.add_edge("local_backup", END)

    return workflow.compile()


async def analyze_text(text: str, llm) -> AnalysisPayload:
    agent = create_analysis_agent(llm)
    state = await agent.ainvoke({
        "input_text": text,
        "raw_response": None,
        "analysis": None,
        "errors": [],
    })
    return state["analysis"]
