"""Registration forwarder: injects credentials and forwards sign-ups."""

import base64

from print_proxy.broadcast.broadcaster import SessionEventBroadcaster
from print_proxy.broadcast.events import BroadcastEvent, EventType
from print_proxy.config.settings import get_settings
from print_proxy.environments.models import AuthMode, EnvironmentConfig
from print_proxy.environments.registry import EnvironmentRegistry
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
    RegistrationOutcome,
    RegistrationSuccess,
)


def build_auth_header(
    config: EnvironmentConfig,
    token: str | None = None,
    credentials: dict | None = None,
) -> str | None:
    """Build the Authorization header value for the environment's auth mode.

    Returns None when the material that mode needs was not supplied.
    """
    if config.auth_mode is AuthMode.BASIC:
        if not isinstance(credentials, dict):
            return None
        account_id = credentials.get("accountId")
        api_key = credentials.get("apiKey")
        if not account_id or not api_key:
            return None
        encoded = base64.b64encode(f"{account_id}:{api_key}".encode()).decode("ascii")
        return f"Basic {encoded}"

    if not token or not isinstance(token, str):
        return None
    return f"Bearer {token}"


class RegistrationForwarder(UpstreamService):
    """Forwards registration payloads with environment-specific auth."""

    def __init__(self, registry: EnvironmentRegistry, broadcaster: SessionEventBroadcaster):
        super().__init__(registry)
        self._broadcaster = broadcaster

    async def register(
        self,
        environment_id: str,
        user_data: dict | None,
        token: str | None = None,
        credentials: dict | None = None,
    ) -> RegistrationOutcome:
        logger = get_audit_logger()
        config = self._registry.resolve(environment_id)
        if config is None:
            return invalid_environment(environment_id)

        authorization = build_auth_header(config, token=token, credentials=credentials)
        if authorization is None:
            needed = "credentials (accountId, apiKey)" if config.auth_mode is AuthMode.BASIC else "token"
            return Failure(
                kind=ErrorKind.MISSING_AUTHENTICATION,
                message=f"Missing authentication: {config.name} requires {needed}",
                environment=config.name,
            )

        settings = get_settings()
        client = await self._get_client()
        try:
            with RequestTimer() as timer:
                response = await client.post(
                    config.register_url,
                    json=user_data or {},
                    headers={**DEFAULT_HEADERS, "Authorization": authorization},
                    timeout=settings.register_timeout,
                )
        except TRANSPORT_ERRORS as e:
            logger.error(
                "Registration failed: upstream unreachable",
                extra={"audit_data": {"environment": config.key, "error": str(e)}},
            )
            return unreachable(e, config.name)

        body = parse_body(response)
        audit = {
            "environment": config.key,
            "upstream_status": response.status_code,
            "latency_ms": timer.elapsed_ms,
        }

        if not 200 <= response.status_code < 300:
            logger.warning("Registration rejected upstream", extra={"audit_data": audit})
            return Failure(
                kind=ErrorKind.UPSTREAM_REJECTED,
                message=f"API Error {response.status_code}",
                environment=config.name,
                status=response.status_code,
                details=body,
            )

        logger.info("Registration forwarded", extra={"audit_data": audit})
        company = user_data.get("company") if isinstance(user_data, dict) else None
        await self._broadcaster.publish(
            BroadcastEvent(
                type=EventType.REGISTRATION,
                environment=config.name,
                payload={"company": company},
            ),
            target_environment=config.key,
        )

        merged = body if isinstance(body, dict) else ({} if body is None else {"data": body})
        return RegistrationSuccess(environment=config.name, body={**merged, "environment": config.name})
