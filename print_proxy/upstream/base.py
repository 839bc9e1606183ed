"""Shared plumbing for services that call the print API."""

import httpx

from print_proxy.environments.registry import EnvironmentRegistry
from print_proxy.upstream.outcomes import ErrorKind, Failure

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "accept": "*/*",
}


class UpstreamService:
    """Base class owning a lazily created httpx client."""

    def __init__(self, registry: EnvironmentRegistry):
        self._registry = registry
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            # No transport-level retries; callers decide whether to re-invoke
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(15.0, connect=10.0))
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None


def parse_body(response: httpx.Response):
    """Decode a JSON body, falling back to text (or None when empty)."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def invalid_environment(environment_id) -> Failure:
    return Failure(
        kind=ErrorKind.INVALID_ENVIRONMENT,
        message=f"Invalid environment specified: {environment_id!r}",
    )


# A malformed base URL raises InvalidURL, which is not an HTTPError
TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


def unreachable(exc: Exception, environment: str) -> Failure:
    if isinstance(exc, httpx.TimeoutException):
        cause = "timed out"
    else:
        cause = f"failed ({type(exc).__name__})"
    return Failure(
        kind=ErrorKind.UNREACHABLE,
        message=(
            f"No response from {environment} API: request {cause}. "
            "Check network connectivity and CORS configuration."
        ),
        environment=environment,
    )
