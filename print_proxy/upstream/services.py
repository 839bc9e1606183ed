"""Upstream service singletons, wired to the shared registry and broadcaster."""

from print_proxy.broadcast.broadcaster import get_broadcaster
from print_proxy.environments.registry import get_registry
from print_proxy.upstream.authenticator import UpstreamAuthenticator
from print_proxy.upstream.registration import RegistrationForwarder

_authenticator: UpstreamAuthenticator | None = None
_forwarder: RegistrationForwarder | None = None


def get_authenticator() -> UpstreamAuthenticator:
    global _authenticator
    if _authenticator is None:
        _authenticator = UpstreamAuthenticator(get_registry(), get_broadcaster())
    return _authenticator


def get_forwarder() -> RegistrationForwarder:
    global _forwarder
    if _forwarder is None:
        _forwarder = RegistrationForwarder(get_registry(), get_broadcaster())
    return _forwarder


async def close_upstream() -> None:
    """Gracefully close upstream HTTP clients on shutdown."""
    global _authenticator, _forwarder
    for service in (_authenticator, _forwarder):
        if service is not None:
            await service.close()
    _authenticator = None
    _forwarder = None
