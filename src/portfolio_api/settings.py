"""
portfolio_api.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Describe the gateway contract (identity header name, admin role, admin prefixes).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PORTFOLIO_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables and dev helpers.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "portfolio-api"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Gateway identity. The header is injected by the platform gateway for signed-in users.
    principal_header: str = "x-ms-client-principal"
    admin_role: str = "admin"
    admin_route_prefixes: list[str] = Field(
        default_factory=lambda: ["/api/manage", "/api/dashboard"]
    )
    public_route_prefixes: list[str] = Field(
        default_factory=lambda: ["/api/projects", "/api/me", "/api/dev", "/healthz", "/readyz"]
    )

    # Audit sink
    audit_backend: Literal["log", "database"] = "log"
    audit_queue_size: int = Field(default=1000, ge=1)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./portfolio.db"
    list_page_size: int = Field(default=100, ge=1)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# The route policy table is derived from these settings exactly once, in the app
# factory; nothing reads the prefixes at request time.
