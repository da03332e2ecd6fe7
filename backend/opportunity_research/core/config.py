from pydantic_settings import BaseSettings
from functools import lru_cache

DEFAULT_FRONTEND_ORIGINS = ",".join(
    [
        "https://helloeiko.com",
        "https://www.helloeiko.com",
        "http://helloeiko.com",
        "http://www.helloeiko.com",
    ]
)


class Settings(BaseSettings):
    # core
    ENV: str = "dev"
    API_PREFIX: str = "/api"

    # reasoning service
    OPENAI_API_KEY: str | None = None
    REASONING_MODEL: str = "gpt-5"
    REASONING_EFFORT: str = "low"
    # Hard cap on concurrent reasoning calls per process
    LLM_MAX_CONCURRENCY: int = 4

    # two-phase pipeline
    IDENTITY_DOMAIN: str = "linkedin.com"
    PHASE1_TIMEOUT_SECONDS: float = 60.0
    PHASE2_TIMEOUT_SECONDS: float = 120.0

    # per-IP limiter (fixed window, per process)
    RATE_LIMIT_MAX_REQUESTS: int = 10
    RATE_LIMIT_WINDOW_SECONDS: float = 60.0

    # auth / security
    FRONTEND_ORIGIN: str | None = DEFAULT_FRONTEND_ORIGINS
    # Explicit debug-only switch for wide-open CORS in non-prod envs
    CORS_ALLOW_ALL_ORIGINS: bool = False

    # spreadsheet log sink; disabled unless both are set
    GOOGLE_SHEET_ID: str | None = None
    SERVICE_ACCOUNT_KEY: str | None = None  # service-account JSON, inline

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    return Settings()
