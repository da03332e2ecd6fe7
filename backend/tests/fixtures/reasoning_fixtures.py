"""
Shared test fixtures for pipeline tests.

Canned reasoning-service replies for both phases and a scripted stand-in for
the reasoning client that records every call it receives.
"""
import json
from dataclasses import dataclass
from typing import Any, List

from opportunity_research.schemas.opportunities import ResearchPayload, Subject
from opportunity_research.services.reasoning_client import ToolConfig


JANE = Subject(name="Jane Doe", title="VP Engineering", company="Acme Corp")


# ---------------------------------------------------------------------------
# Phase 1 replies
# ---------------------------------------------------------------------------

VERIFIED_RECORD = {
    "verified": True,
    "identity_url": "https://www.linkedin.com/in/janedoe-acme",
    "confirmed_name": "Jane Doe",
    "confirmed_title": "VP Engineering",
    "confirmed_company": "Acme Corp",
    "evidence": ["https://www.linkedin.com/in/janedoe-acme"],
    "notes": "Single profile matching name, title and company.",
}

VERIFIED_REPLY = json.dumps(VERIFIED_RECORD)

VERIFIED_REPLY_FENCED = "```json\n" + json.dumps(VERIFIED_RECORD, indent=2) + "\n```"

# Valid JSON, but not a verification record
VERIFICATION_MISSING_KEYS_REPLY = json.dumps({"verified": True, "notes": "looks right"})

GARBAGE_REPLY = "I could not find anything conclusive about this person, sorry!"

# Text the JSON decoder itself refuses: more digits than the int conversion
# limit, and nesting far past the recursion limit.
OVERSIZED_INTEGER_REPLY = '{"verified": ' + "1" * 5000 + "}"
DEEPLY_NESTED_REPLY = "[" * 200000 + "]" * 200000


# ---------------------------------------------------------------------------
# Phase 2 replies
# ---------------------------------------------------------------------------

RESEARCH_DATA = {
    "research": {
        "person": "Jane Doe leads engineering at Acme Corp (https://acme.example/team).",
        "role": "As VP Engineering she runs platform and delivery teams of about 80 engineers.",
        "company": "Acme Corp builds industrial logistics software for mid-size manufacturers.",
    },
    "opportunities": [
        {
            "title": "Automated incident triage for on-call",
            "description": "Route and summarise alerts so on-call engineers act faster.",
        },
        {
            "title": "AI-assisted code review at scale",
            "description": "Flag risky changes early to cut review time for her teams.",
        },
    ],
}

RESEARCH_REPLY = json.dumps(RESEARCH_DATA)

RESEARCH_REPLY_FENCED = "```json\n" + json.dumps(RESEARCH_DATA, indent=2) + "\n```"

EMPTY_OPPORTUNITIES_REPLY = json.dumps({"opportunities": []})


def research_payload() -> ResearchPayload:
    return ResearchPayload.model_validate(RESEARCH_DATA)


# ---------------------------------------------------------------------------
# Scripted reasoning client
# ---------------------------------------------------------------------------

@dataclass
class ReasoningCall:
    instruction: str
    tool_config: ToolConfig
    timeout_seconds: float


class ScriptedReasoningClient:
    """
    Returns (or raises) the scripted steps in order, one per `invoke`.
    """

    def __init__(self, *steps: Any) -> None:
        self._steps: List[Any] = list(steps)
        self.calls: List[ReasoningCall] = []

    async def invoke(self, instruction: str, tool_config: ToolConfig, timeout_seconds: float) -> str:
        self.calls.append(ReasoningCall(instruction, tool_config, timeout_seconds))
        if not self._steps:
            raise AssertionError("unexpected extra reasoning call")
        step = self._steps.pop(0)
        if isinstance(step, BaseException):
            raise step
        return step
