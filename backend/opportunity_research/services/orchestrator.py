from __future__ import annotations

import logging
from typing import Optional

from ..core.config import Settings, get_settings
from ..schemas.opportunities import ResearchPayload, Subject
from .identity_verifier import verify_identity
from .opportunity_researcher import research_opportunities
from .reasoning_client import ReasoningClient

logger = logging.getLogger(__name__)


class OpportunityPipeline:
    """
    Two-phase verification-and-research run for one subject.

    Phase 1 (identity verification) is best-effort and always yields a
    record; Phase 2 (opportunity research) is seeded with that record and
    either returns a validated payload or raises PipelineError. Each phase
    gets its own timeout; nothing is retried.
    """

    def __init__(
        self,
        client: ReasoningClient,
        *,
        identity_domain: str,
        phase1_timeout_seconds: float,
        phase2_timeout_seconds: float,
    ) -> None:
        self._client = client
        self._identity_domain = identity_domain
        self._phase1_timeout = phase1_timeout_seconds
        self._phase2_timeout = phase2_timeout_seconds

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        client: Optional[ReasoningClient] = None,
    ) -> "OpportunityPipeline":
        settings = settings or get_settings()
        return cls(
            client or ReasoningClient(),
            identity_domain=settings.IDENTITY_DOMAIN,
            phase1_timeout_seconds=settings.PHASE1_TIMEOUT_SECONDS,
            phase2_timeout_seconds=settings.PHASE2_TIMEOUT_SECONDS,
        )

    async def run(self, subject: Subject, request_id: Optional[str] = None) -> ResearchPayload:
        logger.info(
            "Starting identity verification",
            extra={"request_id": request_id, "phase": "identity_verification", "step": "start"},
        )
        record = await verify_identity(
            self._client,
            subject,
            identity_domain=self._identity_domain,
            timeout_seconds=self._phase1_timeout,
            request_id=request_id,
        )

        logger.info(
            "Starting opportunity research",
            extra={"request_id": request_id, "phase": "opportunity_research", "step": "start"},
        )
        return await research_opportunities(
            self._client,
            subject,
            record,
            timeout_seconds=self._phase2_timeout,
            request_id=request_id,
        )
