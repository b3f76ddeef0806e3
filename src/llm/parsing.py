"""Helpers for treating model output as untrusted text."""

import json
import re
from typing import Any, Dict

# Greedy: from the first "{" to the last "}", which also strips markdown fences
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class LLMResponseError(ValueError):
    """The model answered, but not with something we can use."""


def message_text(message: Any) -> str:
    """Return the text of a chat model reply, or ``""`` for non-text content."""
    content = getattr(message, "content", message)
    return content if isinstance(content, str) else ""


def extract_json_object(content: str) -> Dict[str, Any]:
    match = _JSON_OBJECT.search(content or "")
    if not match:
        raise LLMResponseError("No JSON object found in model response")
    try:
        payload = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise LLMResponseError(f"Model response is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise LLMResponseError("Model response JSON is not an object")
    return payload
