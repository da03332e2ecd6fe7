# backend/opportunity_research/schemas/opportunities.py
from __future__ import annotations

import re
from typing import Any, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

MAX_NAME_LEN = 100
MAX_TITLE_LEN = 150
MAX_COMPANY_LEN = 150

# Basic markup/script injection screen applied to every field
SUSPICIOUS_PATTERN = re.compile(r"<script|javascript:|on\w+=", re.IGNORECASE)


class Subject(BaseModel):
    """The person being researched, as supplied (trimmed) by the caller."""

    model_config = ConfigDict(frozen=True)

    name: str
    title: str
    company: str


class VerificationRecord(BaseModel):
    """
    Phase 1 output. Every key is required on the wire; a reply missing any of
    them is treated as a failed verification.
    """

    model_config = ConfigDict(frozen=True)

    verified: bool
    identity_url: Optional[str]
    confirmed_name: Optional[str]
    confirmed_title: Optional[str]
    confirmed_company: Optional[str]
    evidence: List[str]
    notes: str


class Research(BaseModel):
    model_config = ConfigDict(frozen=True)

    person: str = Field(min_length=1)
    role: str = Field(min_length=1)
    company: str = Field(min_length=1)


class Opportunity(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1)
    description: str = Field(min_length=1)


class ResearchPayload(BaseModel):
    """The validated Phase 2 result released to callers."""

    model_config = ConfigDict(frozen=True)

    research: Research
    opportunities: List[Opportunity] = Field(min_length=1)


class OpportunitiesResponse(BaseModel):
    success: Literal[True] = True
    opportunities: ResearchPayload


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str


def validate_subject_fields(
    name: Any,
    title: Any,
    company: Any,
) -> Tuple[Optional[Subject], List[str]]:
    """
    Check the raw request fields and return `(subject, errors)`.

    Every violated rule is reported, in a fixed order, so the client can fix
    them all at once. Values are trimmed before checking; non-string values
    count as missing. `subject` is None whenever `errors` is non-empty.
    """
    fields = [v.strip() if isinstance(v, str) else "" for v in (name, title, company)]
    clean_name, clean_title, clean_company = fields

    errors: List[str] = []
    if not all(fields):
        errors.append("All fields are required")

    if len(clean_name) > MAX_NAME_LEN:
        errors.append(f"Name must be less than {MAX_NAME_LEN} characters")
    if len(clean_title) > MAX_TITLE_LEN:
        errors.append(f"Title must be less than {MAX_TITLE_LEN} characters")
    if len(clean_company) > MAX_COMPANY_LEN:
        errors.append(f"Company must be less than {MAX_COMPANY_LEN} characters")

    if any(SUSPICIOUS_PATTERN.search(v) for v in fields):
        errors.append("Invalid characters detected")

    if errors:
        return None, errors

    return Subject(name=clean_name, title=clean_title, company=clean_company), []
