"""Print Proxy: FastAPI application entry point.

A credential-aware proxy between client applications and the print
service API. Injects per-environment credentials into login and
registration calls and pushes session events to WebSocket subscribers.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from print_proxy.api.realtime import EXAMPLE_MESSAGES, MESSAGE_TYPES, WS_PATH
from print_proxy.api.realtime import router as realtime_router
from print_proxy.api.serializers import serialize_login, serialize_probe, serialize_registration
from print_proxy.broadcast.broadcaster import get_broadcaster
from print_proxy.broadcast.events import BroadcastEvent, EventType
from print_proxy.config.settings import get_settings
from print_proxy.environments.models import CREDENTIAL_FIELDS, DEFAULT_ENVIRONMENT
from print_proxy.environments.registry import get_registry
from print_proxy.environments.validator import check_credentials, credential_presence
from print_proxy.logging.audit import begin_request, get_audit_logger, setup_logging, utc_timestamp
from print_proxy.upstream.services import close_upstream, get_authenticator, get_forwarder

VERSION = "2.0.0"

_started_at = time.monotonic()


def log_credential_status() -> None:
    """One record per environment: presence booleans and readiness, never values."""
    logger = get_audit_logger()
    for env in get_registry():
        check = check_credentials(env)
        logger.info(
            "Environment credential status",
            extra={"audit_data": {
                "environment": env.key,
                "base_url": env.base_url,
                "auth_mode": env.auth_mode.value,
                "credentials": credential_presence(env),
                "ready": check.is_valid,
                "missing": check.missing,
            }},
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle hooks."""
    global _started_at
    _started_at = time.monotonic()
    setup_logging()
    settings = get_settings()
    get_audit_logger().info(
        "Proxy started",
        extra={"audit_data": {"port": settings.port, "websocket_path": WS_PATH}},
    )
    log_credential_status()
    yield
    await close_upstream()
    get_audit_logger().info("Proxy stopped")


app = FastAPI(
    title="Print Proxy",
    description="Credential-aware proxy for the print service API",
    version=VERSION,
    lifespan=lifespan,
)

_settings = get_settings()
_origins = _settings.allowed_origins_list
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    # Browsers reject credentialed responses with a wildcard origin
    allow_credentials="*" not in _origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Upgrade"],
)
app.include_router(realtime_router)


async def _read_body(request: Request) -> dict:
    """Parse a JSON object body; anything else counts as empty."""
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _ws_url(request: Request) -> str:
    scheme = "wss" if request.url.scheme == "https" else "ws"
    return f"{scheme}://{request.url.netloc}{WS_PATH}"


@app.get("/")
async def index(request: Request):
    return {
        "name": "Print Proxy Server",
        "version": VERSION,
        "features": {"rest": True, "websocket": True},
        "endpoints": {
            "rest": {
                "health": "/health",
                "debug": "/api/proxy/debug",
                "autoLogin": "/api/proxy/auto-login",
                "testLogin": "/api/proxy/test-login",
                "register": "/api/proxy/register",
                "wsInfo": "/ws-info",
            },
            "websocket": {"url": _ws_url(request), "protocols": MESSAGE_TYPES},
        },
    }


@app.get("/health")
async def health():
    environments = {}
    for env in get_registry():
        check = check_credentials(env)
        environments[env.key] = {"configured": check.is_valid, "missing": check.missing}
    return {
        "status": "healthy",
        "version": VERSION,
        "uptime": round(time.monotonic() - _started_at, 3),
        "timestamp": utc_timestamp(),
        "connections": {"websocket": get_broadcaster().count},
        "environments": environments,
    }


@app.get("/api/proxy/debug")
async def debug():
    """Credential presence report. Secret values are never echoed."""
    report = {}
    for env in get_registry():
        check = check_credentials(env)
        report[env.key] = {
            "name": env.name,
            "baseUrl": env.base_url,
            "authMode": env.auth_mode.value,
            "credentials": credential_presence(env),
            "required": [f for f, _ in CREDENTIAL_FIELDS if f in env.required_fields],
            "isValid": check.is_valid,
            "missing": check.missing,
        }
    return {
        "server": {
            "status": "running",
            "version": VERSION,
            "timestamp": utc_timestamp(),
        },
        "environments": report,
        "websocket": {
            "enabled": True,
            "path": WS_PATH,
            "currentConnections": get_broadcaster().count,
        },
    }


@app.post("/api/proxy/auto-login")
async def auto_login(request: Request):
    """Log in upstream with the server-held credentials for an environment."""
    begin_request()
    body = await _read_body(request)
    environment = body.get("environment") or DEFAULT_ENVIRONMENT

    outcome = await get_authenticator().login(environment)
    status, content = serialize_login(outcome)

    if outcome.success:
        await get_broadcaster().publish(
            BroadcastEvent(type=EventType.REST_LOGIN, environment=outcome.environment)
        )

    return JSONResponse(status_code=status, content={**content, "timestamp": utc_timestamp()})


@app.post("/api/proxy/test-login")
async def test_login(request: Request):
    """Reachability probe of the login endpoint; does not authenticate."""
    begin_request()
    body = await _read_body(request)
    environment = body.get("environment") or DEFAULT_ENVIRONMENT

    outcome = await get_authenticator().probe(environment)
    status, content = serialize_probe(outcome)
    return JSONResponse(status_code=status, content=content)


@app.post("/api/proxy/register")
async def register(request: Request):
    """Forward a registration with Bearer (UAT) or Basic (production) auth."""
    begin_request()
    body = await _read_body(request)

    outcome = await get_forwarder().register(
        body.get("environment") or DEFAULT_ENVIRONMENT,
        user_data=body.get("userData"),
        token=body.get("token"),
        credentials=body.get("credentials"),
    )
    status, content = serialize_registration(outcome)
    return JSONResponse(status_code=status, content=content)


@app.get("/ws-info")
async def ws_info(request: Request):
    return {
        "websocket": {
            "url": _ws_url(request),
            "path": WS_PATH,
            "protocols": MESSAGE_TYPES,
            "example": EXAMPLE_MESSAGES,
            "currentConnections": get_broadcaster().count,
        }
    }
