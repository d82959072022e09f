"""Application settings and CORS configuration."""

import json
import os
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(".env"), env_file_encoding="utf-8")

    # App
    APP_NAME: str = "Sharkbid"
    ENVIRONMENT: str = "development"  # development | production | test

    # Security
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30  # in minutes

    # CORS
    # Accept list or CSV/JSON string from env; normalized to list[str] by validators
    CORS_ORIGINS: list[str] | str = [
        "http://localhost:8080",
        "http://127.0.0.1:8080",
    ]
    ALLOW_CREDENTIALS: bool = True

    # Remote-call resilience. Reads favour availability (short timeouts, more
    # attempts); writes favour completion (longer timeouts, fewer attempts).
    READ_MAX_ATTEMPTS: int = 4
    READ_TIMEOUT_MS: float = 5000
    READ_BASE_DELAY_MS: float = 200
    READ_DELAY_CAP_MS: float = 1500
    DASHBOARD_MAX_ATTEMPTS: int = 6
    DASHBOARD_TIMEOUT_MS: float = 3000
    DASHBOARD_BASE_DELAY_MS: float = 100
    DASHBOARD_DELAY_CAP_MS: float = 1000
    WRITE_MAX_ATTEMPTS: int = 3
    WRITE_TIMEOUT_MS: float = 10000
    WRITE_BASE_DELAY_MS: float = 500
    WRITE_DELAY_CAP_MS: float = 4000
    RETRY_JITTER_MS: float = 50
    RETRY_GROWTH_FACTOR: float = 2.0

    # Matching
    MATCH_RESULT_LIMIT: int = 5
    DEFAULT_MAX_CONCURRENT_PROJECTS: int = 3

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: object) -> list[str]:
        """Allow list, CSV string, or JSON array string for CORS origins."""
        if isinstance(v, list):
            return [str(i).strip() for i in v]
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return []
            if s.startswith("["):
                try:
                    parsed = json.loads(s)
                except json.JSONDecodeError as e:
                    raise ValueError(
                        "CORS_ORIGINS must be a CSV list or JSON array string"
                    ) from e
                if not isinstance(parsed, list):
                    raise ValueError("CORS_ORIGINS JSON must be a list")
                return [str(i).strip() for i in parsed]
            # CSV fallback
            return [i.strip() for i in s.split(",") if i.strip()]
        raise ValueError("Invalid CORS_ORIGINS type; expected str or list[str]")

    @model_validator(mode="after")
    def _validate_cors_credentials(self) -> "Settings":
        """Ensure wildcard origins are not used when credentials are allowed."""
        if isinstance(self.CORS_ORIGINS, str):
            self.CORS_ORIGINS = self.assemble_cors_origins(self.CORS_ORIGINS)
        if self.ALLOW_CREDENTIALS and any(
            o.strip() == "*" for o in (self.CORS_ORIGINS or [])
        ):
            raise ValueError(
                "CORS configuration error: ALLOW_CREDENTIALS=True but "
                "CORS_ORIGINS contains '*'. Use explicit origins when credentials "
                "are allowed."
            )
        return self

    @model_validator(mode="after")
    def _validate_retry_knobs(self) -> "Settings":
        """Reject retry settings that could never form a valid policy."""
        for prefix in ("READ", "DASHBOARD", "WRITE"):
            attempts = getattr(self, f"{prefix}_MAX_ATTEMPTS")
            base = getattr(self, f"{prefix}_BASE_DELAY_MS")
            cap = getattr(self, f"{prefix}_DELAY_CAP_MS")
            if attempts < 1:
                raise ValueError(f"{prefix}_MAX_ATTEMPTS must be at least 1")
            if cap < base:
                raise ValueError(
                    f"{prefix}_DELAY_CAP_MS must be >= {prefix}_BASE_DELAY_MS"
                )
        if self.RETRY_GROWTH_FACTOR <= 1:
            raise ValueError("RETRY_GROWTH_FACTOR must be greater than 1")
        return self


@lru_cache
def get_settings() -> Settings:
    env = os.getenv("ENVIRONMENT", "development").lower()
    if env not in {"development", "production", "test"}:
        raise ValueError("ENVIRONMENT must be 'development', 'production', or 'test'")

    if env == "production":
        env_file = ".env.prod"
    elif env == "development":
        env_file = ".env.dev"
    else:
        # test environment - no env file needed, use defaults
        env_file = ""
    if env_file and not os.path.exists(env_file):  # pragma: no cover - defensive
        # Only provide a dev fallback in non-production environments
        if env == "development":
            os.environ.setdefault("SECRET_KEY", "dev-test-secret")
    # If we're in production, ensure SECRET_KEY is set and not the dev default
    if env == "production":
        sec = os.getenv("SECRET_KEY")
        if not sec or sec == "dev-test-secret":
            raise RuntimeError("SECRET_KEY must be set to a secure value in production")

    # pydantic-settings accepts a runtime-only `_env_file` kwarg that mypy's
    # stub doesn't know about.
    return Settings(_env_file=env_file)  # type: ignore[call-arg]
