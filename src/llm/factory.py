from __future__ import annotations

from langchain_core.language_models.chat_models import BaseChatModel

from src.config import settings

# Module-level cache of configured clients; they hold no per-request state
_llm_cache: dict[str, BaseChatModel] = {}


def clear_llm_cache() -> None:
    """Drop all cached LLM instances so they're recreated on next call."""
    _llm_cache.clear()


# ---------------------------------------------------------------------------
# Internal constructor (lazy import to keep module import cheap)
# ---------------------------------------------------------------------------

def _create_chat_model(
    *,
    temperature: float,
    max_tokens: int,
    timeout: float,
    max_retries: int,
) -> BaseChatModel:
    from langchain_openai import ChatOpenAI

    if not settings.DEEPSEEK_API_KEY:
        raise ValueError("DEEPSEEK_API_KEY is required to reach the DeepSeek API")
    return ChatOpenAI(
        model=settings.DEEPSEEK_MODEL,
        api_key=settings.DEEPSEEK_API_KEY,
        base_url=settings.DEEPSEEK_BASE_URL,
        temperature=temperature,
        max_tokens=max_tokens,
        timeout=timeout,
        max_retries=max_retries,
        streaming=False,
    )


# ---------------------------------------------------------------------------
# Public factory functions (also usable as FastAPI dependencies)
# ---------------------------------------------------------------------------

def get_analysis_llm() -> BaseChatModel:
    """ESG text analysis: scores, entities, insights and risks."""
    key = "analysis"
    if key not in _llm_cache:
        _llm_cache[key] = _create_chat_model(
            temperature=settings.ANALYSIS_TEMPERATURE,
            max_tokens=settings.ANALYSIS_MAX_TOKENS,
            timeout=settings.DEEPSEEK_TIMEOUT,
            max_retries=settings.DEEPSEEK_MAX_RETRIES,
        )
    return _llm_cache[key]


def get_compliance_llm() -> BaseChatModel:
    """Rule-by-rule compliance verdicts over the full source text."""
    key = "compliance"
    if key not in _llm_cache:
        _llm_cache[key] = _create_chat_model(
            temperature=settings.COMPLIANCE_TEMPERATURE,
            max_tokens=settings.COMPLIANCE_MAX_TOKENS,
            timeout=settings.COMPLIANCE_TIMEOUT,
            max_retries=settings.COMPLIANCE_MAX_RETRIES,
        )
    return _llm_cache[key]
