"""Result types for upstream calls.

Upstream services never raise to their callers. Every call ends in one
of these tagged outcomes, and the HTTP/WebSocket layer serializes them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    INVALID_ENVIRONMENT = "InvalidEnvironment"
    MISSING_CREDENTIALS = "MissingCredentials"
    MISSING_AUTHENTICATION = "MissingAuthentication"
    NO_TOKEN_RETURNED = "NoTokenReturned"
    UPSTREAM_REJECTED = "UpstreamRejected"
    UNREACHABLE = "Unreachable"


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str
    environment: str | None = None  # display name, when resolved
    missing: list[str] = field(default_factory=list)  # MissingCredentials only
    status: int | None = None  # upstream HTTP status, when one was received
    details: Any = None  # upstream response body, when one was received

    success = False


@dataclass(frozen=True)
class LoginSuccess:
    environment: str
    token: str  # as returned upstream, possibly "Bearer ..."
    jwt: str  # normalized, prefix stripped

    success = True


@dataclass(frozen=True)
class RegistrationSuccess:
    environment: str
    body: dict

    success = True


@dataclass(frozen=True)
class ProbeResult:
    environment: str
    status: int
    message: str

    success = True
    reachable = True


LoginOutcome = LoginSuccess | Failure
RegistrationOutcome = RegistrationSuccess | Failure
ProbeOutcome = ProbeResult | Failure
