"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - persona_endpoints() is the ONLY place persona → (model, credential) is resolved

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support (ADR: developer UX)
    - Per-persona API keys optional: fall back to anthropic_api_key so a single-account
      deployment needs one secret, a multi-account deployment can split rate limits
    - Missing model/credential is NOT validated here: the invoker raises PersonaConfigError
      so the failure is reported as a typed run error, not a startup crash
"""

from dataclasses import dataclass
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from verdict_engine.core.domain_types import Persona


@dataclass(frozen=True)
class PersonaEndpoint:
    """Resolved upstream configuration for one persona."""
    model: str
    api_key: str
    base_url: str | None = None


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://verdict:verdict@db:5432/verdict"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Anthropic (shared defaults)
    anthropic_api_key: str = ""
    anthropic_base_url: str | None = None
    anthropic_timeout_seconds: int = 120

    # Personas — one model (and optionally one credential) each
    persona_value_model: str = "claude-sonnet-4-5"
    persona_value_api_key: str | None = None
    persona_growth_model: str = "claude-opus-4-1"
    persona_growth_api_key: str | None = None
    persona_macro_model: str = "claude-sonnet-4-5"
    persona_macro_api_key: str | None = None

    # Agent call shape
    agent_max_tokens: int = 3000
    agent_temperature: float = 0.8

    # Debate
    debate_pacing_seconds: float = 1.0
    debate_summary_chars: int = 300
    debate_log_chars: int = 500

    # Calendar — default verdict date is "today" in this zone
    verdict_timezone: str = "Asia/Seoul"

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    def persona_endpoints(self) -> dict[Persona, PersonaEndpoint]:
        """Resolve persona → endpoint. Empty strings mean "not configured"."""
        return {
            persona: PersonaEndpoint(
                model=getattr(self, f"persona_{persona.value}_model") or "",
                api_key=(
                    getattr(self, f"persona_{persona.value}_api_key")
                    or self.anthropic_api_key
                ),
                base_url=self.anthropic_base_url,
            )
            for persona in Persona
        }


@lru_cache
def get_settings() -> Settings:
    return Settings()
