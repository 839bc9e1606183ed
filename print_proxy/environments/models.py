"""Environment configuration models."""

from dataclasses import dataclass, field
from enum import Enum

# Declaration order for credential fields: (wire name, attribute name).
# Missing-field reports always follow this order.
CREDENTIAL_FIELDS: tuple[tuple[str, str], ...] = (
    ("accountId", "account_id"),
    ("apiKey", "api_key"),
    ("agentKey", "agent_key"),
)

PREVIEW_UAT = "previewUat"
PRODUCTION = "production"
DEFAULT_ENVIRONMENT = PREVIEW_UAT


class AuthMode(str, Enum):
    BEARER = "bearer"
    BASIC = "basic"


@dataclass(frozen=True)
class EnvironmentConfig:
    key: str  # "previewUat" | "production"
    name: str  # display name, e.g. "Preview UAT"
    base_url: str
    auth_mode: AuthMode
    account_id: str | None = None
    api_key: str | None = None
    agent_key: str | None = None
    required_fields: frozenset[str] = field(default_factory=frozenset)  # wire names

    @property
    def login_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/api/v1/print/login"

    @property
    def register_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/api/v1/print/register"


@dataclass(frozen=True)
class CredentialCheckResult:
    is_valid: bool
    missing: list[str] = field(default_factory=list)
