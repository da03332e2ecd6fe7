from math import ceil
from uuid import uuid4
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request

from ..core.exceptions import PipelineError
from ..schemas.opportunities import (
    ErrorResponse,
    OpportunitiesResponse,
    validate_subject_fields,
)
from ..services.orchestrator import OpportunityPipeline
from ..services.rate_limiter import FixedWindowRateLimiter
from ..services.sheet_log import SheetLogSink, build_log_entry
from .dependencies import get_client_ip, get_log_sink, get_pipeline, get_rate_limiter

router = APIRouter(tags=["opportunities"])

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An error occurred. Please try again."


def _describe_window(seconds: float) -> str:
    if seconds == 60:
        return "a minute"
    return f"{ceil(seconds)} seconds"


@router.post(
    "/opportunities",
    response_model=OpportunitiesResponse,
    responses={
        400: {"model": ErrorResponse},
        415: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def generate_opportunities(
    request: Request,
    background_tasks: BackgroundTasks,
    limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
    pipeline: OpportunityPipeline = Depends(get_pipeline),
    sink: SheetLogSink = Depends(get_log_sink),
):
    client_ip = get_client_ip(request)
    request_id = str(uuid4())
    log_extra = {"request_id": request_id, "client_ip": client_ip}

    if not limiter.check(client_ip):
        logger.warning("Rate limit exceeded", extra={**log_extra, "step": "rate_limit"})
        retry_after = ceil(limiter.retry_after(client_ip)) or ceil(limiter.window_seconds)
        raise HTTPException(
            status_code=429,
            detail=(
                "Too many requests. Please try again in "
                f"{_describe_window(limiter.window_seconds)}."
            ),
            headers={"Retry-After": str(retry_after)},
        )

    content_type = request.headers.get("content-type", "")
    if content_type.split(";")[0].strip().lower() != "application/json":
        raise HTTPException(status_code=415, detail="Content-Type must be application/json")

    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be valid JSON")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")

    subject, errors = validate_subject_fields(
        body.get("name"),
        body.get("title"),
        body.get("company"),
    )
    if errors:
        raise HTTPException(status_code=400, detail=". ".join(errors))

    logger.info(
        "Received opportunities request for %s (%s, %s)",
        subject.name,
        subject.title,
        subject.company,
        extra={**log_extra, "step": "request_received"},
    )

    try:
        payload = await pipeline.run(subject, request_id=request_id)
    except PipelineError as e:
        logger.error(
            "Pipeline failed: %s",
            e.reason,
            extra={**log_extra, "kind": e.kind.value, "step": "pipeline_failed"},
        )
        raise HTTPException(status_code=502, detail=e.user_message)
    except Exception:
        logger.exception("Unexpected pipeline failure", extra=log_extra)
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)

    # Runs after the response is sent; its outcome never changes it
    background_tasks.add_task(sink.log_result, build_log_entry(subject, payload), request_id)

    return OpportunitiesResponse(opportunities=payload)
