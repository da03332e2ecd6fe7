from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from functools import lru_cache

from openai import AsyncOpenAI

from ..core.config import get_settings

_llm_semaphore: asyncio.BoundedSemaphore | None = None


def _get_semaphore() -> asyncio.BoundedSemaphore:
    """
    Lazy-initialised global semaphore for limiting concurrent reasoning calls.
    """
    global _llm_semaphore
    if _llm_semaphore is None:
        settings = get_settings()
        _llm_semaphore = asyncio.BoundedSemaphore(settings.LLM_MAX_CONCURRENCY)
    return _llm_semaphore


@asynccontextmanager
async def limit_llm_concurrency():
    """
    Bound concurrent calls to the reasoning provider.

    Usage:

        async with limit_llm_concurrency():
            await client.responses.create(...)
    """
    sem = _get_semaphore()
    async with sem:
        yield


@lru_cache(maxsize=1)
def get_llm_client() -> AsyncOpenAI:
    """
    Centralised factory for the OpenAI client used by both pipeline phases.

    SDK-level retries are disabled: each phase makes exactly one attempt and
    owns its own timeout. Cached so all callers in a process share one client.
    """
    settings = get_settings()

    if settings.OPENAI_API_KEY:
        return AsyncOpenAI(api_key=settings.OPENAI_API_KEY.strip(), max_retries=0)

    raise RuntimeError("No reasoning API key configured. Set OPENAI_API_KEY.")
