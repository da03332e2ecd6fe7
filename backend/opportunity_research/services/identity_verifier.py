# backend/opportunity_research/services/identity_verifier.py

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from ..core.exceptions import PipelineError, ReasoningError
from ..schemas.opportunities import Subject, VerificationRecord
from .reasoning_client import ReasoningClient, ToolConfig
from .sanitizer import sanitize
from .schema_validator import parse_json_object

logger = logging.getLogger(__name__)

UNVERIFIED_NOTE = (
    "Identity could not be verified from the identity network; "
    "employment must be confirmed from other sources."
)


def unverified_record() -> VerificationRecord:
    """Canonical stand-in used whenever Phase 1 yields nothing usable."""
    return VerificationRecord(
        verified=False,
        identity_url=None,
        confirmed_name=None,
        confirmed_title=None,
        confirmed_company=None,
        evidence=[],
        notes=UNVERIFIED_NOTE,
    )


def build_verification_prompt(subject: Subject, identity_domain: str) -> str:
    """
    Prompt for confirming who the subject is and where they work, searching
    only the identity network.
    """
    return (
        "You are a research assistant verifying a professional's identity and current employer.\n\n"
        f"Use the web_search tool to search ONLY {identity_domain}. Do not rely on any other site.\n"
        "Find the profile that belongs to the person described below.\n\n"
        "RULES:\n"
        "- If several profiles match the name, pick the best match on name + company + title together.\n"
        "- Only set \"verified\" to true when the profile clearly shows this person at this company.\n"
        "- If the result is inconclusive, set \"verified\" to false. Never guess.\n"
        "- \"evidence\" lists the URLs you relied on.\n\n"
        "Return your answer as a single JSON object with this exact shape:\n"
        "{\n"
        '  "verified": true | false,\n'
        '  "identity_url": "https://..." | null,\n'
        '  "confirmed_name": "..." | null,\n'
        '  "confirmed_title": "..." | null,\n'
        '  "confirmed_company": "..." | null,\n'
        '  "evidence": ["https://...", ...],\n'
        '  "notes": "One or two sentences on how the match was decided."\n'
        "}\n\n"
        "The response must be valid JSON. Do not include comments, markdown, or prose outside the JSON.\n\n"
        "TARGET PERSON INFORMATION:\n"
        f"- Name: {subject.name}\n"
        f"- Title: {subject.title}\n"
        f"- Company: {subject.company}\n"
    )


def parse_verification_record(raw: str) -> VerificationRecord:
    """
    Parse a sanitized Phase 1 reply. Raises PipelineError or
    pydantic.ValidationError when the reply does not fit the record shape.
    """
    data = parse_json_object(raw)
    return VerificationRecord.model_validate(data)


async def verify_identity(
    client: ReasoningClient,
    subject: Subject,
    *,
    identity_domain: str,
    timeout_seconds: float,
    request_id: Optional[str] = None,
) -> VerificationRecord:
    """
    Phase 1. Never raises: any failure yields `unverified_record()`, since the
    record only enriches Phase 2 and does not gate it.
    """
    log_extra = {"request_id": request_id, "phase": "identity_verification"}
    prompt = build_verification_prompt(subject, identity_domain)

    try:
        raw = await client.invoke(
            prompt,
            ToolConfig.restricted_to(identity_domain),
            timeout_seconds,
        )
    except ReasoningError as e:
        logger.warning("Identity verification call failed: %s", e, extra=log_extra)
        return unverified_record()
    except Exception:
        logger.exception("Unexpected error during identity verification", extra=log_extra)
        return unverified_record()

    cleaned = sanitize(raw)
    try:
        record = parse_verification_record(cleaned)
    except (PipelineError, ValidationError) as e:
        logger.warning("Identity verification reply unusable: %s", e, extra=log_extra)
        logger.debug("Unusable verification reply: %s", cleaned, extra=log_extra)
        return unverified_record()

    logger.info(
        "Identity verification finished (verified=%s)",
        record.verified,
        extra=log_extra,
    )
    return record
