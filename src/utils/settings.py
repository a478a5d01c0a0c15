"""Environment-backed application settings."""

import os
from typing import Optional
from pydantic import BaseModel, Field
from src.utils.errors import ConfigError

# Boards reachable through the CLAW RESO feed
DEFAULT_MLS_IDS = (
    "CLAW", "SDMLS", "CRMLS", "PS", "IMPERIAL", "BridgeMLS",
    "ITECH", "VCRDS", "CDAR", "MLSL", "CRISNET",
)


class Settings(BaseModel):
    """Runtime configuration read from environment variables."""
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_anon_key: str = Field(..., description="Public anon API key")
    supabase_service_role_key: Optional[str] = Field(None, description="Service role key (server only)")
    mls_api_url: str = Field(
        default="https://rets2.themls.com/CLAWResoApi-v1/Property",
        description="RESO property endpoint for MLS lookups"
    )
    mls_access_token: Optional[str] = Field(None, description="MLS API access token")
    mls_ids: list[str] = Field(
        default_factory=lambda: list(DEFAULT_MLS_IDS),
        description="MlsID values a lookup may match; empty means any board"
    )
    nominatim_url: str = Field(default="https://nominatim.openstreetmap.org/search")
    llm_provider: str = Field(default="anthropic", description="anthropic or openai")
    llm_model: str = Field(default="claude-sonnet-4-20250514")
    http_timeout_seconds: float = Field(default=10.0, gt=0)

    @property
    def rest_url(self) -> str:
        return f"{self.supabase_url.rstrip('/')}/rest/v1"

    @property
    def auth_url(self) -> str:
        return f"{self.supabase_url.rstrip('/')}/auth/v1"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        url = os.environ.get("SUPABASE_URL") or os.environ.get("NEXT_PUBLIC_SUPABASE_URL")
        key = os.environ.get("SUPABASE_ANON_KEY") or os.environ.get("NEXT_PUBLIC_SUPABASE_ANON_KEY")

        if not url or not key:
            raise ConfigError("SUPABASE_URL and SUPABASE_ANON_KEY must be set")

        values = {
            "supabase_url": url.strip(),
            "supabase_anon_key": key.strip(),
            "supabase_service_role_key": os.environ.get("SUPABASE_SERVICE_ROLE_KEY"),
            "mls_access_token": os.environ.get("MLS_ACCESS_TOKEN"),
            "llm_provider": os.environ.get("LLM_PROVIDER", "anthropic").lower(),
            "llm_model": os.environ.get("LLM_MODEL", "claude-sonnet-4-20250514"),
        }
        if os.environ.get("MLS_API_URL"):
            values["mls_api_url"] = os.environ["MLS_API_URL"]
        if os.environ.get("MLS_IDS") is not None:
            values["mls_ids"] = [v.strip() for v in os.environ["MLS_IDS"].split(",") if v.strip()]
        if os.environ.get("NOMINATIM_URL"):
            values["nominatim_url"] = os.environ["NOMINATIM_URL"]
        if os.environ.get("HTTP_TIMEOUT_SECONDS"):
            values["http_timeout_seconds"] = float(os.environ["HTTP_TIMEOUT_SECONDS"])

        return cls(**values)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the settings singleton."""
    global _settings

    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings (tests change the environment)."""
    global _settings
    _settings = None
