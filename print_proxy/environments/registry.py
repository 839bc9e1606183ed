"""Environment registry: immutable map of environment id → config.

Built once from settings. The set of environments is fixed; lookups
for anything else return None.
"""

from collections.abc import Iterator, Mapping
from functools import lru_cache
from types import MappingProxyType

from print_proxy.config.settings import Settings, get_settings
from print_proxy.environments.models import (
    PREVIEW_UAT,
    PRODUCTION,
    AuthMode,
    EnvironmentConfig,
)


class EnvironmentRegistry:
    """Read-only lookup of environment configs by identifier."""

    def __init__(self, environments: Mapping[str, EnvironmentConfig]):
        self._environments = MappingProxyType(dict(environments))

    def resolve(self, environment_id: str | None) -> EnvironmentConfig | None:
        if not isinstance(environment_id, str):
            return None
        return self._environments.get(environment_id)

    def keys(self) -> list[str]:
        return list(self._environments)

    def __iter__(self) -> Iterator[EnvironmentConfig]:
        return iter(self._environments.values())

    def __len__(self) -> int:
        return len(self._environments)

    def __contains__(self, environment_id: object) -> bool:
        return isinstance(environment_id, str) and environment_id in self._environments


def build_registry(settings: Settings) -> EnvironmentRegistry:
    """Build the two fixed environments from settings."""
    preview_uat = EnvironmentConfig(
        key=PREVIEW_UAT,
        name="Preview UAT",
        base_url=settings.api_url_preview_uat,
        auth_mode=AuthMode.BEARER,
        account_id=settings.uat_account_id,
        api_key=settings.uat_api_key,
        agent_key=settings.uat_agent_key,
        required_fields=frozenset({"accountId", "apiKey", "agentKey"}),
    )
    production = EnvironmentConfig(
        key=PRODUCTION,
        name="Production",
        base_url=settings.api_url_production,
        auth_mode=AuthMode.BASIC,
        account_id=settings.prod_account_id,
        api_key=settings.prod_api_key,
        agent_key=settings.prod_agent_key or "",
        required_fields=frozenset({"accountId", "apiKey"}),
    )
    return EnvironmentRegistry({PREVIEW_UAT: preview_uat, PRODUCTION: production})


@lru_cache
def get_registry() -> EnvironmentRegistry:
    return build_registry(get_settings())
