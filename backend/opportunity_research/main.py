from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import get_settings
from .core.logging import configure_logging
from .api.routes_opportunities import router as opportunities_router
from .services.rate_limiter import FixedWindowRateLimiter

configure_logging()
settings = get_settings()

app = FastAPI(title="Opportunity Research API")

# CORS:
# - In prod, FRONTEND_ORIGIN is required and we never fall back to "*".
# - In non-prod, wide-open CORS is only enabled if CORS_ALLOW_ALL_ORIGINS=True.
if settings.ENV.lower() == "prod":
    if not settings.FRONTEND_ORIGIN:
        raise RuntimeError(
            "FRONTEND_ORIGIN must be set in production; refusing to start with wide-open CORS."
        )
    origins = [
        o.strip()
        for o in settings.FRONTEND_ORIGIN.split(",")
        if o.strip()
    ]
elif settings.CORS_ALLOW_ALL_ORIGINS:
    origins = ["*"]
else:
    origins = [
        o.strip()
        for o in (settings.FRONTEND_ORIGIN or "").split(",")
        if o.strip()
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
    allow_credentials=False,
    max_age=3600,
)

# One limiter per process, shared by every request this worker serves
app.state.rate_limiter = FixedWindowRateLimiter(
    max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
    window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Every error body uses the same {success, error} envelope
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


app.include_router(opportunities_router, prefix=settings.API_PREFIX)
