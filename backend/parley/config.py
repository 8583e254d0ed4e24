"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Secrets (AUTH_JWT_SECRET, DATABASE_URL) come from the environment or .env
    - get_settings() is cached (lru_cache) — single instance per process
    - Timing knobs ending in _ms are milliseconds, matching stored timestamps
    - The unsigned "none" JWT algorithm can never be configured
"""

import json
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Env values for these lists may be JSON ("[\"a\"]") or comma-separated ("a,b")
StrList = Annotated[list[str], NoDecode]


def _split_csv(v):
    if not isinstance(v, str):
        return v
    if v.lstrip().startswith("["):
        return json.loads(v)
    return [item.strip() for item in v.split(",") if item.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # ─── Database ────────────────────────────────────────────────
    database_url: str = "postgresql+asyncpg://parley:parley@db:5432/parley"
    database_pool_size: int = Field(20, ge=1)
    database_max_overflow: int = Field(10, ge=0)

    # ─── Auth (tokens minted by the external identity provider) ──
    auth_jwt_secret: str = "change-me"
    auth_jwt_algorithms: StrList = ["HS256"]
    auth_jwt_issuer: str | None = None
    auth_jwt_audience: str | None = None
    auth_jwt_leeway_seconds: int = Field(60, ge=0)

    # ─── Conversations ───────────────────────────────────────────
    typing_ttl_ms: int = Field(2_000, gt=0)
    typing_sweep_interval_seconds: int = Field(0, ge=0)  # 0 disables the sweeper
    typing_sweep_grace_ms: int = Field(60_000, ge=0)
    online_threshold_ms: int = Field(30_000, gt=0)
    user_search_limit: int = Field(50, ge=1, le=500)

    # ─── API / Observability ─────────────────────────────────────
    cors_origins: StrList = ["http://localhost:3000"]
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    @field_validator("database_url", mode="before")
    @classmethod
    def use_asyncpg_driver(cls, v):
        """Hosted providers hand out postgresql:// but the app needs asyncpg."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    @field_validator("auth_jwt_algorithms", "cors_origins", mode="before")
    @classmethod
    def accept_comma_separated(cls, v):
        return _split_csv(v)

    @field_validator("auth_jwt_algorithms")
    @classmethod
    def reject_unsigned_tokens(cls, v: list[str]) -> list[str]:
        if not v or any(alg.lower() == "none" for alg in v):
            raise ValueError("at least one signing algorithm is required; 'none' is not allowed")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
