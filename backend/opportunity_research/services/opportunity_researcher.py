# backend/opportunity_research/services/opportunity_researcher.py

from __future__ import annotations

import json
import logging
from typing import Optional

from ..core.exceptions import (
    PipelineError,
    PipelineErrorKind,
    ReasoningServiceError,
    ReasoningTimeout,
    UnrecognizedResponseShape,
)
from ..schemas.opportunities import ResearchPayload, Subject, VerificationRecord
from .reasoning_client import ReasoningClient, ToolConfig
from .sanitizer import sanitize
from .schema_validator import validate_research_payload

logger = logging.getLogger(__name__)


def build_research_prompt(subject: Subject, record: VerificationRecord) -> str:
    """
    Prompt for the caller-visible research narrative and automation
    opportunities, seeded with the Phase 1 record.
    """
    name, title, company = subject.name, subject.title, subject.company
    record_json = json.dumps(record.model_dump(), indent=2)

    if record.verified:
        verification_guidance = (
            f"The identity check above confirmed {name} at {company}. Use the confirmed profile "
            "as your anchor, but still discard any source that is about a different person or a "
            "different company.\n"
        )
    else:
        verification_guidance = (
            f"The identity check above could NOT confirm that {name} works at {company}. "
            "Before anything else, independently verify the employment through other reputable "
            "sources (company website, press releases, conference bios, reputable news). "
            f"If you still cannot tie {name} to {company}, say so explicitly in \"person\".\n"
        )

    return (
        "You are researching AI and automation opportunities for a SPECIFIC INDIVIDUAL at their company.\n\n"
        "Use the web_search tool. You must research the CORRECT person at the CORRECT company; "
        "do not confuse similar company names or people with similar names.\n\n"
        "TARGET PERSON INFORMATION:\n"
        f"- Name: {name}\n"
        f"- Title: {title}\n"
        f"- Company: {company}\n\n"
        "IDENTITY CHECK RESULT (from a prior verification step):\n"
        f"{record_json}\n\n"
        f"{verification_guidance}\n"
        "RESEARCH PROCESS:\n"
        f"1. Establish what {name} actually does at {company}: responsibilities, projects, sphere of influence.\n"
        f"2. Establish what {company} does: industry, products, business model, location, scale.\n"
        f"3. Generate 3-6 AI/automation opportunities that {name} can realistically implement or champion "
        "in their actual role. Avoid company-wide initiatives outside their domain.\n\n"
        "Return your answer as a single JSON object with this exact shape:\n"
        "{\n"
        '  "research": {\n'
        f'    "person": "A paragraph about {name}: their background and actual role at {company}. '
        f'If you could not verify they work at {company}, or found them at a different company, state that clearly.",\n'
        f'    "role": "A paragraph on what {name} does day-to-day as {title} at {company}, based on what you found '
        'about them rather than generic duties for the title.",\n'
        f'    "company": "A paragraph about the correct {company}: what they do, industry, relevant context."\n'
        "  },\n"
        '  "opportunities": [\n'
        '    {"title": "Opportunity title (5-8 words)", '
        f'"description": "2-3 sentences on how this helps {name} specifically in their role."}}\n'
        "  ]\n"
        "}\n\n"
        "CRITICAL RULES:\n"
        f"- If information is about \"{name}\" at a company other than \"{company}\", do NOT use it.\n"
        f"- If a company has a similar name to \"{company}\" but is a different business, do NOT use it.\n"
        f"- Never fabricate a match: if {name} cannot be tied to {company}, say so in \"person\".\n"
        f"- Every source URL cited in \"person\" or \"role\" must mention BOTH {name} AND {company}.\n"
        "- Include source URLs inline in the research paragraphs.\n"
        "- The response must be valid JSON. Do not include comments, markdown, or prose outside the JSON.\n"
    )


async def research_opportunities(
    client: ReasoningClient,
    subject: Subject,
    record: VerificationRecord,
    *,
    timeout_seconds: float,
    request_id: Optional[str] = None,
) -> ResearchPayload:
    """
    Phase 2. Returns a validated payload or raises PipelineError; there is no
    fallback payload.
    """
    log_extra = {"request_id": request_id, "phase": "opportunity_research"}
    prompt = build_research_prompt(subject, record)

    try:
        raw = await client.invoke(prompt, ToolConfig.unrestricted(), timeout_seconds)
    except ReasoningTimeout as e:
        raise PipelineError(PipelineErrorKind.UPSTREAM_TIMEOUT, str(e)) from e
    except UnrecognizedResponseShape as e:
        raise PipelineError(PipelineErrorKind.MALFORMED_RESPONSE, str(e)) from e
    except ReasoningServiceError as e:
        raise PipelineError(PipelineErrorKind.UPSTREAM_SERVICE_ERROR, str(e)) from e

    cleaned = sanitize(raw)
    try:
        payload = validate_research_payload(cleaned)
    except PipelineError as e:
        logger.warning("Research reply rejected: %s", e.reason, extra={**log_extra, "kind": e.kind.value})
        logger.debug("Rejected research reply: %s", cleaned, extra=log_extra)
        raise

    logger.info(
        "Research finished with %d opportunities",
        len(payload.opportunities),
        extra=log_extra,
    )
    return payload
