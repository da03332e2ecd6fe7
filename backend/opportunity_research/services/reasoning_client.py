# backend/opportunity_research/services/reasoning_client.py

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from openai import APITimeoutError, AsyncOpenAI, OpenAIError

from ..core.config import get_settings
from ..core.exceptions import (
    ReasoningServiceError,
    ReasoningTimeout,
    UnrecognizedResponseShape,
)
from .llm import get_llm_client, limit_llm_concurrency

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolConfig:
    """
    Search scope granted to the reasoning service for one call.

    `allowed_domains=()` means the open web.
    """

    allowed_domains: Tuple[str, ...] = ()

    @classmethod
    def unrestricted(cls) -> "ToolConfig":
        return cls()

    @classmethod
    def restricted_to(cls, domain: str) -> "ToolConfig":
        return cls(allowed_domains=(domain,))

    def to_tools(self) -> List[Dict[str, Any]]:
        tool: Dict[str, Any] = {"type": "web_search"}
        if self.allowed_domains:
            tool["filters"] = {"allowed_domains": list(self.allowed_domains)}
        return [tool]


# ----------------------------------------------------------------------
# Reply shapes
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class OutputTextReply:
    """The SDK's aggregated top-level `output_text` was populated."""

    text: str


@dataclass(frozen=True)
class MessageReply:
    """Text taken from the first `message` item's first `output_text` block."""

    text: str
    item_index: int


ReasoningReply = Union[OutputTextReply, MessageReply]


def _attr(source: Any, key: str) -> Any:
    if source is None:
        return None
    if isinstance(source, dict):
        return source.get(key)
    return getattr(source, key, None)


def classify_response(response: Any) -> ReasoningReply:
    """
    Map a Responses API reply (SDK object or plain dict) onto a known shape.

    Raises UnrecognizedResponseShape rather than guessing at other fields.
    """
    output_text = _attr(response, "output_text")
    if isinstance(output_text, str) and output_text.strip():
        return OutputTextReply(text=output_text)

    for index, item in enumerate(_attr(response, "output") or []):
        if _attr(item, "type") != "message":
            continue
        content = _attr(item, "content") or []
        first_block = content[0] if content else None
        if _attr(first_block, "type") == "output_text":
            return MessageReply(text=_attr(first_block, "text") or "", item_index=index)
        break

    raise UnrecognizedResponseShape("reply carried no output_text and no message text block")


def _count_web_searches(response: Any) -> int:
    return sum(
        1 for item in (_attr(response, "output") or []) if _attr(item, "type") == "web_search_call"
    )


class ReasoningClient:
    """
    Thin adapter over the OpenAI Responses API with the `web_search` tool.

    One outbound call per `invoke`, no retries. The call runs as its own task
    under `asyncio.wait_for`, so on expiry it is cancelled and the timer is
    cleared whether the call succeeds or fails.
    """

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        *,
        model: Optional[str] = None,
        reasoning_effort: Optional[str] = None,
    ) -> None:
        settings = get_settings()
        # Resolved lazily so a missing key fails the call, not the import
        self._client = client
        self._model = model or settings.REASONING_MODEL
        self._reasoning_effort = reasoning_effort or settings.REASONING_EFFORT

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            try:
                self._client = get_llm_client()
            except RuntimeError as e:
                raise ReasoningServiceError(str(e)) from e
        return self._client

    async def _create(self, client: AsyncOpenAI, instruction: str, tool_config: ToolConfig) -> Any:
        async with limit_llm_concurrency():
            return await client.responses.create(
                model=self._model,
                reasoning={"effort": self._reasoning_effort},
                tools=tool_config.to_tools(),
                tool_choice="auto",
                input=instruction,
            )

    async def invoke(
        self,
        instruction: str,
        tool_config: ToolConfig,
        timeout_seconds: float,
    ) -> str:
        """
        Send one instruction and return the reply's text.

        Raises ReasoningTimeout, ReasoningServiceError or
        UnrecognizedResponseShape.
        """
        client = self._get_client()
        started = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._create(client, instruction, tool_config),
                timeout=timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise ReasoningTimeout(f"no reply within {timeout_seconds:g}s") from e
        except APITimeoutError as e:
            raise ReasoningTimeout("client-side request timeout") from e
        except OpenAIError as e:
            raise ReasoningServiceError(f"{type(e).__name__}: {e}") from e

        usage = _attr(response, "usage")
        logger.info(
            "Reasoning call completed",
            extra={
                "step": "reasoning_call",
                "model": _attr(response, "model") or self._model,
                "elapsed_s": round(time.monotonic() - started, 2),
                "input_tokens": _attr(usage, "input_tokens"),
                "output_tokens": _attr(usage, "output_tokens"),
                "web_search_calls": _count_web_searches(response),
            },
        )

        return classify_response(response).text
