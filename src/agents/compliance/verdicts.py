"""Validation of the compliance model's JSON answer.

The model output is an untrusted payload. ``parse_rule_verdicts`` either
returns verdicts that satisfy the same contract as the rule-based evaluator
(known, requested, unique ids; tri-state status; no empty text field) and
cover every requested catalog rule, or raises ``LLMResponseError`` so the
caller can fall back for the whole batch.
"""

import logging
from typing import Any, Dict, Iterable, List

from src.compliance.rules import ADVISORY_DEFAULTS, CatalogRule, RULE_CATALOG
from src.compliance.schemas import RULE_STATUSES, RuleVerdict
from src.llm.parsing import LLMResponseError, extract_json_object

logger = logging.getLogger(__name__)

DEFAULT_REASON = "未提供分析原因"
DEFAULT_DETAILS = "未提供检测依据"

# verdict field -> key used in the model's JSON
_ADVISORY_KEYS = {
    "improvements": "improvements",
    "future_direction": "futureDirection",
    "risk_alert": "riskAlert",
    "industry_benchmark": "industryBenchmark",
}


def format_rules(rule_ids: Iterable[str]) -> str:
    """Render the enabled rules as prompt lines: ``- id: name - description``."""
    lines = []
    for rule_id in rule_ids:
        rule = RULE_CATALOG.get(rule_id) if isinstance(rule_id, str) else None
        if rule is not None:
            lines.append(f"- {rule.id}: {rule.name} - {rule.description}")
    return "\n".join(lines)


def _text(item: Dict[str, Any], key: str, default: str) -> str:
    value = item.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _status(item: Dict[str, Any]) -> str:
    value = item.get("status")
    if isinstance(value, str) and value.strip().lower() in RULE_STATUSES:
        return value.strip().lower()
    return "warning"


def verdict_from_item(item: Dict[str, Any], rule: CatalogRule) -> RuleVerdict:
    advisory = {
        field: _text(item, key, ADVISORY_DEFAULTS[field])
        for field, key in _ADVISORY_KEYS.items()
    }
    return RuleVerdict(
        id=rule.id,
        name=_text(item, "name", rule.name),
        status=_status(item),
        reason=_text(item, "reason", DEFAULT_REASON),
        details=_text(item, "details", DEFAULT_DETAILS),
        **advisory,
    )


def parse_rule_verdicts(content: str, rule_ids: Iterable[str]) -> List[RuleVerdict]:
    payload = extract_json_object(content)
    items = payload.get("rules")
    if not isinstance(items, list):
        raise LLMResponseError("Model response has no 'rules' list")

    requested = {
        rule_id for rule_id in rule_ids
        if isinstance(rule_id, str) and rule_id in RULE_CATALOG
    }
    verdicts: List[RuleVerdict] = []
    seen = set()
    for item in items:
        if not isinstance(item, dict):
            continue
        rule_id = item.get("id")
        rule = RULE_CATALOG.get(rule_id) if isinstance(rule_id, str) else None
        if rule is None or rule_id not in requested or rule_id in seen:
            logger.debug("Discarding model verdict for rule id %r", rule_id)
            continue
        seen.add(rule_id)
        verdicts.append(verdict_from_item(item, rule))

    missing = requested - seen
    if missing:
        raise LLMResponseError(
            f"Model response is missing rule ids: {', '.join(sorted(missing))}"
        )
    return verdicts
