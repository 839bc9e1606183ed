"""Upstream authenticator: login handshake against the print API.

Flow: resolve environment -> validate credentials -> build payload ->
POST /api/v1/print/login -> normalize token -> broadcast login-success.

Every call re-authenticates; tokens are never cached here.
"""

from print_proxy.broadcast.broadcaster import SessionEventBroadcaster
from print_proxy.broadcast.events import BroadcastEvent, EventType
from print_proxy.config.settings import get_settings
from print_proxy.environments.models import PREVIEW_UAT, EnvironmentConfig
from print_proxy.environments.registry import EnvironmentRegistry
from print_proxy.environments.validator import check_credentials
from print_proxy.logging.audit import RequestTimer, get_audit_logger
from print_proxy.upstream.base import (
    DEFAULT_HEADERS,
    TRANSPORT_ERRORS,
    UpstreamService,
    invalid_environment,
    parse_body,
    unreachable,
)
from print_proxy.upstream.outcomes import (
    ErrorKind,
    Failure,
    LoginOutcome,
    LoginSuccess,
    ProbeOutcome,
    ProbeResult,
)

BEARER_PREFIX = "Bearer "


def build_login_payload(config: EnvironmentConfig) -> dict:
    """Build the environment-specific login body.

    Preview UAT always sends agentKey (empty when unset); other environments
    send it only when it has a value.
    """
    payload = {
        "accountId": config.account_id,
        "apiKey": config.api_key,
    }
    if config.agent_key:
        payload["agentKey"] = config.agent_key
    elif config.key == PREVIEW_UAT:
        payload["agentKey"] = ""
    return payload


def normalize_token(token: str) -> str:
    """Strip a leading "Bearer " and surrounding whitespace."""
    token = token.strip()
    if token.startswith(BEARER_PREFIX):
        token = token[len(BEARER_PREFIX):]
    return token.strip()


class UpstreamAuthenticator(UpstreamService):
    """Performs logins and reachability probes against the print API."""

    def __init__(self, registry: EnvironmentRegistry, broadcaster: SessionEventBroadcaster):
        super().__init__(registry)
        self._broadcaster = broadcaster

    async def login(self, environment_id: str) -> LoginOutcome:
        logger = get_audit_logger()
        config = self._registry.resolve(environment_id)
        if config is None:
            return invalid_environment(environment_id)

        check = check_credentials(config)
        if not check.is_valid:
            logger.warning(
                "Login skipped: missing credentials",
                extra={"audit_data": {"environment": config.key, "missing": check.missing}},
            )
            return Failure(
                kind=ErrorKind.MISSING_CREDENTIALS,
                message=f"Missing required credentials for {config.name}",
                environment=config.name,
                missing=check.missing,
            )

        settings = get_settings()
        client = await self._get_client()
        try:
            with RequestTimer() as timer:
                response = await client.post(
                    config.login_url,
                    json=build_login_payload(config),
                    headers=DEFAULT_HEADERS,
                    timeout=settings.login_timeout,
                )
        except TRANSPORT_ERRORS as e:
            logger.error(
                "Login failed: upstream unreachable",
                extra={"audit_data": {"environment": config.key, "error": str(e)}},
            )
            return unreachable(e, config.name)

        body = parse_body(response)
        audit = {
            "environment": config.key,
            "upstream_status": response.status_code,
            "latency_ms": timer.elapsed_ms,
        }

        if response.status_code >= 500:
            logger.error("Login rejected upstream", extra={"audit_data": audit})
            return Failure(
                kind=ErrorKind.UPSTREAM_REJECTED,
                message=f"API Error {response.status_code}",
                environment=config.name,
                status=response.status_code,
                details=body,
            )

        raw_token = body.get("token") if isinstance(body, dict) else None
        if not raw_token:
            logger.warning("Login response carried no token", extra={"audit_data": audit})
            return Failure(
                kind=ErrorKind.NO_TOKEN_RETURNED,
                message="No token received in response",
                environment=config.name,
                status=response.status_code,
                details=body,
            )

        raw_token = str(raw_token)
        logger.info("Login succeeded", extra={"audit_data": audit})
        await self._broadcaster.publish(
            BroadcastEvent(type=EventType.LOGIN_SUCCESS, environment=config.name),
            target_environment=config.key,
        )
        return LoginSuccess(environment=config.name, token=raw_token, jwt=normalize_token(raw_token))

    async def probe(self, environment_id: str) -> ProbeOutcome:
        """Check the login endpoint answers at all, without logging in."""
        config = self._registry.resolve(environment_id)
        if config is None:
            return invalid_environment(environment_id)

        settings = get_settings()
        client = await self._get_client()
        try:
            response = await client.options(config.login_url, timeout=settings.probe_timeout)
        except TRANSPORT_ERRORS as e:
            get_audit_logger().warning(
                "Reachability probe failed",
                extra={"audit_data": {"environment": config.key, "error": str(e)}},
            )
            return unreachable(e, config.name)

        return ProbeResult(
            environment=config.name,
            status=response.status_code,
            message=f"{config.base_url} is reachable",
        )
