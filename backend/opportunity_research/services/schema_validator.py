"""
Deterministic shape check for the Phase 2 reply.

Rules run in a fixed order and the first one violated becomes the failure
reason. Nothing is repaired or default-filled: a reply either passes whole or
the request fails.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Union

from ..core.exceptions import MalformedResponseError, SchemaViolationError
from ..schemas.opportunities import ResearchPayload

logger = logging.getLogger(__name__)


RESEARCH_FIELDS = ("person", "role", "company")
OPPORTUNITY_FIELDS = ("title", "description")


def parse_json_object(raw: str) -> Any:
    """
    Parse a model reply as JSON.

    Falls back to the outermost `{...}` span when the model added stray text
    around the object. Raises MalformedResponseError if neither parses,
    including replies the decoder refuses outright (oversized integers,
    nesting deep enough to exhaust the recursion limit).
    """
    if not raw or not raw.strip():
        raise MalformedResponseError("empty reply")

    try:
        return json.loads(raw)
    except (ValueError, RecursionError) as e:
        first_error = e

    start = raw.find("{")
    end = raw.rfind("}")
    if start != -1 and end != -1 and end > start:
        try:
            data = json.loads(raw[start : end + 1])
        except (ValueError, RecursionError):
            pass
        else:
            logger.warning(
                "Reply had text around its JSON object; parsed the outermost {...} span "
                "(%d leading, %d trailing chars dropped)",
                start,
                len(raw) - end - 1,
            )
            return data

    raise MalformedResponseError(f"reply is not valid JSON: {_describe_decode_error(first_error)}") from first_error


def _describe_decode_error(error: Exception) -> str:
    if isinstance(error, json.JSONDecodeError):
        return error.msg
    if isinstance(error, RecursionError):
        return "nesting too deep"
    return str(error)


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def validate_research_payload(candidate: Union[str, Mapping[str, Any]]) -> ResearchPayload:
    if isinstance(candidate, str):
        data = parse_json_object(candidate)
    else:
        data = candidate

    if not isinstance(data, Mapping):
        raise SchemaViolationError("top-level value is not an object")

    missing = [key for key in ("research", "opportunities") if key not in data]
    if missing:
        raise SchemaViolationError(f"missing required key(s): {', '.join(missing)}")

    opportunities = data["opportunities"]
    if not isinstance(opportunities, list):
        raise SchemaViolationError("opportunities must be an array")
    if not opportunities:
        raise SchemaViolationError("opportunities must not be empty")

    for index, item in enumerate(opportunities):
        if not isinstance(item, Mapping):
            raise SchemaViolationError(f"opportunities[{index}] is not an object")
        for field in OPPORTUNITY_FIELDS:
            if not _non_empty_str(item.get(field)):
                raise SchemaViolationError(f"opportunities[{index}].{field} is missing or empty")

    research = data["research"]
    if not isinstance(research, Mapping):
        raise SchemaViolationError("research is not an object")
    for field in RESEARCH_FIELDS:
        if not _non_empty_str(research.get(field)):
            raise SchemaViolationError(f"research.{field} is missing or empty")

    normalized: Dict[str, Any] = {
        "research": {field: research[field] for field in RESEARCH_FIELDS},
        "opportunities": [
            {field: item[field] for field in OPPORTUNITY_FIELDS} for item in opportunities
        ],
    }
    return ResearchPayload.model_validate(normalized)
