"""Application settings loaded from environment variables."""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


def _env(name: str) -> AliasChoices:
    """Accept both NAME and the legacy REACT_APP_NAME spelling (unprefixed wins)."""
    return AliasChoices(name, f"REACT_APP_{name}")


class Settings(BaseSettings):
    # Server
    host: str = "0.0.0.0"
    port: int = 5001
    # Comma-separated list of allowed CORS origins ("*" = any)
    allowed_origins: str = "*"

    # Preview UAT (bearer auth)
    api_url_preview_uat: str = Field(
        default="https://preview-uat-print.api.apteancloud.com",
        validation_alias=_env("API_URL_PREVIEW_UAT"),
    )
    uat_account_id: str | None = Field(default=None, validation_alias=_env("UAT_ACCOUNT_ID"))
    uat_api_key: str | None = Field(default=None, validation_alias=_env("UAT_API_KEY"))
    uat_agent_key: str | None = Field(default=None, validation_alias=_env("UAT_AGENT_KEY"))

    # Production (basic auth)
    api_url_production: str = Field(
        default="https://print.api.apteancloud.com",
        validation_alias=_env("API_URL_PRODUCTION"),
    )
    prod_account_id: str | None = Field(default=None, validation_alias=_env("PROD_ACCOUNT_ID"))
    prod_api_key: str | None = Field(default=None, validation_alias=_env("PROD_API_KEY"))
    prod_agent_key: str = Field(default="", validation_alias=_env("PROD_AGENT_KEY"))

    # Upstream timeouts (seconds)
    login_timeout: float = 15.0
    register_timeout: float = 15.0
    probe_timeout: float = 5.0

    # Logging
    log_level: str = "INFO"
    audit_log_file: str = ""  # Empty = stdout only

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @property
    def allowed_origins_list(self) -> list[str]:
        """Parse comma-separated origins, dropping blanks."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
