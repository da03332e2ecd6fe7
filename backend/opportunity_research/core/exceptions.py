"""
Error taxonomy for the verification-and-research pipeline.

Reasoning errors are raised by the reasoning client and never leave the
pipeline as-is: Phase 1 absorbs them, Phase 2 re-raises them as a
`PipelineError` with a coarse kind the HTTP layer can map to a safe message.
"""
from __future__ import annotations

from enum import Enum


class ReasoningError(Exception):
    """Base class for failures talking to the reasoning service."""


class ReasoningTimeout(ReasoningError):
    """The call did not finish inside its budget and was cancelled."""


class ReasoningServiceError(ReasoningError):
    """The service rejected the call, was unreachable, or is not configured."""


class UnrecognizedResponseShape(ReasoningError):
    """The reply carried none of the known text-bearing shapes."""


class PipelineErrorKind(str, Enum):
    UPSTREAM_TIMEOUT = "upstream_timeout"
    UPSTREAM_SERVICE_ERROR = "upstream_service_error"
    MALFORMED_RESPONSE = "malformed_response"
    SCHEMA_VIOLATION = "schema_violation"


SERVICE_UNAVAILABLE_MESSAGE = "Service temporarily unavailable. Please try again."
UNEXPECTED_FORMAT_MESSAGE = (
    "The research service returned an unexpected format. Please try again."
)

_USER_MESSAGES = {
    PipelineErrorKind.UPSTREAM_TIMEOUT: SERVICE_UNAVAILABLE_MESSAGE,
    PipelineErrorKind.UPSTREAM_SERVICE_ERROR: SERVICE_UNAVAILABLE_MESSAGE,
    PipelineErrorKind.MALFORMED_RESPONSE: UNEXPECTED_FORMAT_MESSAGE,
    PipelineErrorKind.SCHEMA_VIOLATION: UNEXPECTED_FORMAT_MESSAGE,
}


class PipelineError(Exception):
    """
    Terminal failure of one pipeline run.

    `reason` is for logs only; callers get `user_message`.
    """

    def __init__(self, kind: PipelineErrorKind, reason: str):
        self.kind = kind
        self.reason = reason
        super().__init__(f"{kind.value}: {reason}")

    @property
    def user_message(self) -> str:
        return _USER_MESSAGES[self.kind]


class MalformedResponseError(PipelineError):
    def __init__(self, reason: str):
        super().__init__(PipelineErrorKind.MALFORMED_RESPONSE, reason)


class SchemaViolationError(PipelineError):
    def __init__(self, reason: str):
        super().__init__(PipelineErrorKind.SCHEMA_VIOLATION, reason)
