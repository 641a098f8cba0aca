import json
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from blogwriter.errors import ConfigurationError

# Env var name -> Settings attribute, for Settings.require()
CREDENTIALS = {
    "PERPLEXITY_API_KEY": "perplexity_api_key",
    "ANTHROPIC_API_KEY": "anthropic_api_key",
    "SUPABASE_URL": "supabase_url",
    "SUPABASE_SERVICE_ROLE_KEY": "supabase_service_key",
}

DEFAULT_CORS_ORIGINS = ["*"]


@dataclass
class Settings:
    perplexity_api_key: str = ""
    anthropic_api_key: str = ""
    supabase_url: str = ""
    supabase_service_key: str = ""
    search_model: str = "sonar"
    generation_model: str = "claude-sonnet-4-6"
    request_timeout: float = 60.0
    research_max_workers: int = 1
    validation_error_status: int = 500
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls, env: Optional[dict] = None) -> "Settings":
        """Build settings from the process environment (after loading .env)."""
        if env is None:
            load_dotenv()
            env = os.environ

        return cls(
            perplexity_api_key=env.get("PERPLEXITY_API_KEY", ""),
            anthropic_api_key=env.get("ANTHROPIC_API_KEY", ""),
            supabase_url=env.get("SUPABASE_URL", "").rstrip("/"),
            supabase_service_key=env.get("SUPABASE_SERVICE_ROLE_KEY", ""),
            search_model=env.get("SEARCH_MODEL", "sonar"),
            generation_model=env.get("GENERATION_MODEL", "claude-sonnet-4-6"),
            request_timeout=float(env.get("REQUEST_TIMEOUT", "60")),
            research_max_workers=max(1, int(env.get("RESEARCH_MAX_WORKERS", "1"))),
            validation_error_status=int(env.get("VALIDATION_ERROR_STATUS", "500")),
            cors_origins=_parse_origins(env.get("CORS_ORIGINS", "")),
            log_level=env.get("LOG_LEVEL", "INFO"),
            host=env.get("BACKEND_HOST", "127.0.0.1"),
            port=int(env.get("BACKEND_PORT", "8000")),
        )

    def require(self, name: str) -> str:
        """Return the credential stored under env var ``name`` or raise."""
        value = getattr(self, CREDENTIALS[name], "")
        if not value:
            raise ConfigurationError(f"{name} not configured")
        return value

    @property
    def brand_store_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)


def _parse_origins(raw: str) -> list[str]:
    if not raw:
        return list(DEFAULT_CORS_ORIGINS)
    try:
        origins = json.loads(raw)
    except json.JSONDecodeError:
        origins = [o.strip() for o in raw.split(",") if o.strip()]
    if not isinstance(origins, list) or not origins:
        return list(DEFAULT_CORS_ORIGINS)
    return [str(o) for o in origins]
