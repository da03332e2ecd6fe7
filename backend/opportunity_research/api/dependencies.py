from functools import lru_cache

from fastapi import Request

from ..services.orchestrator import OpportunityPipeline
from ..services.rate_limiter import FixedWindowRateLimiter
from ..services.sheet_log import SheetLogSink


def get_client_ip(request: Request) -> str:
    """
    First hop of X-Forwarded-For, then X-Real-IP, then the socket peer.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


def get_rate_limiter(request: Request) -> FixedWindowRateLimiter:
    # Built once per process in main.py
    return request.app.state.rate_limiter


@lru_cache(maxsize=1)
def get_pipeline() -> OpportunityPipeline:
    return OpportunityPipeline.from_settings()


@lru_cache(maxsize=1)
def get_log_sink() -> SheetLogSink:
    return SheetLogSink.from_settings()
