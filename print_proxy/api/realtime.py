"""Real-time endpoint: one long-lived WebSocket per client.

Protocol: JSON objects with a "type" discriminator, sent as text frames or
as UTF-8 binary frames.

    ping                      -> pong
    login {environment}       -> login-result (serialized login outcome)
    subscribe {environment}   -> subscribed (adds an environment filter)
    anything else             -> error

Every connection is registered with the broadcaster as soon as it opens
(no filter = all events) and removed when it closes.
"""

import json

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from print_proxy.api.serializers import serialize_login
from print_proxy.broadcast.broadcaster import get_broadcaster
from print_proxy.environments.models import DEFAULT_ENVIRONMENT
from print_proxy.environments.registry import get_registry
from print_proxy.logging.audit import begin_request, get_audit_logger, utc_timestamp
from print_proxy.upstream.services import get_authenticator

WS_PATH = "/ws"
MESSAGE_TYPES = ["ping", "login", "subscribe"]
EXAMPLE_MESSAGES = {
    "ping": {"type": "ping"},
    "login": {"type": "login", "environment": "previewUat"},
    "subscribe": {"type": "subscribe", "environment": "production"},
}

router = APIRouter()


def _error(message: str, **extra) -> dict:
    return {"type": "error", "message": message, **extra, "timestamp": utc_timestamp()}


async def handle_message(websocket: WebSocket, raw: str | bytes) -> dict:
    """Process one inbound text or binary frame and return the reply message."""
    try:
        data = json.loads(raw)
    except ValueError as e:  # JSONDecodeError, or UnicodeDecodeError for binary frames
        return _error("Invalid message format", error=str(e))
    if not isinstance(data, dict):
        return _error("Invalid message format", error="Expected a JSON object")

    msg_type = data.get("type")

    if msg_type == "ping":
        return {"type": "pong", "timestamp": utc_timestamp()}

    if msg_type == "login":
        outcome = await get_authenticator().login(data.get("environment") or DEFAULT_ENVIRONMENT)
        _, body = serialize_login(outcome)
        return {"type": "login-result", **body, "timestamp": utc_timestamp()}

    if msg_type == "subscribe":
        environment = data.get("environment")
        if not environment:
            return _error("Missing environment to subscribe to")
        if get_registry().resolve(environment) is None:
            return _error(f"Invalid environment specified: {environment!r}")
        await get_broadcaster().subscribe(websocket, environment)
        return {
            "type": "subscribed",
            "environment": environment,
            "message": f"Subscribed to {environment} updates",
            "timestamp": utc_timestamp(),
        }

    return _error("Unknown message type", received=msg_type)


@router.websocket(WS_PATH)
async def websocket_endpoint(websocket: WebSocket):
    logger = get_audit_logger()
    broadcaster = get_broadcaster()

    await websocket.accept()
    begin_request()
    client_ip = websocket.client.host if websocket.client else "unknown"
    await broadcaster.subscribe(websocket)
    logger.info(
        "WebSocket client connected",
        extra={"audit_data": {"client_ip": client_ip, "subscribers": broadcaster.count}},
    )

    try:
        await websocket.send_json({
            "type": "connection",
            "message": "Connected to print proxy WebSocket",
            "timestamp": utc_timestamp(),
        })
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text") or message.get("bytes") or ""
            reply = await handle_message(websocket, raw)
            logger.debug(
                "WebSocket message handled",
                extra={"audit_data": {"client_ip": client_ip, "reply_type": reply["type"]}},
            )
            await websocket.send_json(reply)
    except WebSocketDisconnect:
        pass
    finally:
        await broadcaster.unsubscribe(websocket)
        logger.info(
            "WebSocket client disconnected",
            extra={"audit_data": {"client_ip": client_ip, "subscribers": broadcaster.count}},
        )
