"""Boundary serialization: outcome objects -> (HTTP status, JSON body)."""

from print_proxy.upstream.outcomes import (
    ErrorKind,
    Failure,
    LoginOutcome,
    LoginSuccess,
    ProbeOutcome,
    ProbeResult,
    RegistrationOutcome,
    RegistrationSuccess,
)

_FAILURE_STATUS = {
    ErrorKind.INVALID_ENVIRONMENT: 400,
    ErrorKind.MISSING_CREDENTIALS: 400,
    ErrorKind.MISSING_AUTHENTICATION: 400,
    ErrorKind.NO_TOKEN_RETURNED: 502,
    ErrorKind.UNREACHABLE: 502,
}


def failure_status(failure: Failure) -> int:
    """HTTP status for a failure. Upstream rejections pass their status through."""
    if failure.kind is ErrorKind.UPSTREAM_REJECTED:
        return failure.status or 502
    return _FAILURE_STATUS[failure.kind]


def _failure_body(failure: Failure) -> dict:
    body = {
        "success": False,
        "environment": failure.environment,
        "error": failure.message,
        "kind": failure.kind.value,
    }
    if failure.kind is ErrorKind.MISSING_CREDENTIALS:
        body["missing"] = list(failure.missing)
    if failure.status is not None:
        body["status"] = failure.status
    if failure.details is not None:
        body["details"] = failure.details
    return body


def serialize_login(outcome: LoginOutcome) -> tuple[int, dict]:
    if isinstance(outcome, LoginSuccess):
        return 200, {
            "success": True,
            "environment": outcome.environment,
            "token": outcome.token,
            "jwt": outcome.jwt,
        }
    if isinstance(outcome, Failure):
        return failure_status(outcome), {**_failure_body(outcome), "token": None, "jwt": None}
    raise TypeError(f"Unexpected login outcome: {type(outcome).__name__}")


def serialize_registration(outcome: RegistrationOutcome) -> tuple[int, dict]:
    if isinstance(outcome, RegistrationSuccess):
        return 200, outcome.body
    if isinstance(outcome, Failure):
        return failure_status(outcome), _failure_body(outcome)
    raise TypeError(f"Unexpected registration outcome: {type(outcome).__name__}")


def serialize_probe(outcome: ProbeOutcome) -> tuple[int, dict]:
    if isinstance(outcome, ProbeResult):
        return 200, {
            "success": True,
            "environment": outcome.environment,
            "reachable": True,
            "status": outcome.status,
            "message": outcome.message,
        }
    if isinstance(outcome, Failure):
        return failure_status(outcome), {
            **_failure_body(outcome),
            "reachable": False,
            "status": None,
        }
    raise TypeError(f"Unexpected probe outcome: {type(outcome).__name__}")
