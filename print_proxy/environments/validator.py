"""Credential validation.

A single pure function decides whether an environment is configured well
enough to attempt a login. Health, debug and startup reporting call the
same function that gates the upstream call, so the two can never disagree.
"""

from print_proxy.environments.models import (
    CREDENTIAL_FIELDS,
    CredentialCheckResult,
    EnvironmentConfig,
)


def check_credentials(config: EnvironmentConfig) -> CredentialCheckResult:
    """Report which required credentials are empty, in declaration order."""
    missing = [
        wire_name
        for wire_name, attr in CREDENTIAL_FIELDS
        if wire_name in config.required_fields and not getattr(config, attr)
    ]
    return CredentialCheckResult(is_valid=not missing, missing=missing)


def credential_presence(config: EnvironmentConfig) -> dict[str, bool]:
    """Presence booleans for every credential field. Never exposes values."""
    return {wire_name: bool(getattr(config, attr)) for wire_name, attr in CREDENTIAL_FIELDS}
