# Fichier: lexify/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List
from pydantic import AnyHttpUrl, ValidationError, field_validator
import sys


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./lexify_local.db"
    ENVIRONMENT: str = "development"

    # --- Auth ---
    # Tokens are issued upstream; we only verify them.
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]
    FRONTEND_BASE_URL: Optional[AnyHttpUrl] = None

    # --- Quiz generation ---
    GOOGLE_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-1.5-flash-latest"
    GEMINI_TIMEOUT_SECONDS: float = 60.0
    QUIZ_PROVIDER: str = "gemini"  # "gemini" | "fallback"
    QUIZ_FALLBACK_SHUFFLE: bool = True
    QUIZ_GENERATION_WORKERS: int = 1

    # --- Database instrumentation ---
    SQLALCHEMY_SLOW_QUERY_THRESHOLD_MS: int = 300
    DATABASE_CONNECTION_MAX_RETRIES: int = 3
    DATABASE_CONNECTION_RETRY_BACKOFF_SECONDS: float = 1.0

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def _normalize_database_url(cls, value: str) -> str:
        """Rewrite Postgres URLs so SQLAlchemy's synchronous engine accepts them.

        Managed Postgres providers still hand out ``postgres://`` URLs, an alias
        SQLAlchemy dropped, and some deployments were configured for an async
        driver. Every Postgres scheme without a sync driver is pinned to
        psycopg2, the driver we ship; SQLite and explicit sync drivers are left
        as they are.
        """

        if not isinstance(value, str):
            return value

        replacements = {
            "postgres://": "postgresql+psycopg2://",
            "postgresql://": "postgresql+psycopg2://",
            "postgresql+asyncpg://": "postgresql+psycopg2://",
            "sqlite+aiosqlite://": "sqlite://",
        }

        for prefix, target in replacements.items():
            if value.startswith(prefix):
                return target + value[len(prefix):]

        return value

    @field_validator("QUIZ_PROVIDER", mode="before")
    @classmethod
    def _normalize_quiz_provider(cls, value: str) -> str:
        if not isinstance(value, str):
            return value
        provider = value.strip().lower()
        if provider not in {"gemini", "fallback"}:
            raise ValueError("QUIZ_PROVIDER must be 'gemini' or 'fallback'")
        return provider

    @field_validator("QUIZ_GENERATION_WORKERS")
    @classmethod
    def _clamp_workers(cls, value: int) -> int:
        return max(1, value)


def _log_settings_validation_error(exc: ValidationError) -> None:
    """Print each missing or invalid environment variable on stderr.

    The exception is raised while the module is imported, which buries it in
    a long traceback on most hosts; one line per field makes the culprit
    obvious in the server logs.
    """

    print("Configuration error while loading environment variables:", file=sys.stderr)

    details = exc.errors()
    if not details:
        print(exc, file=sys.stderr)
        return

    for error in details:
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "Unknown validation error")
        type_name = error.get("type")
        hint = f"{message} (type={type_name})" if type_name else message
        print(f"  - {location}: {hint}", file=sys.stderr)


try:
    settings = Settings()
except ValidationError as exc:  # pragma: no cover - exercised at runtime
    _log_settings_validation_error(exc)
    raise
