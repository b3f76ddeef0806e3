from src.llm.factory import (
    get_analysis_llm,
    get_compliance_llm,
    clear_llm_cache,
)
from src.llm.parsing import LLMResponseError, extract_json_object, message_text
