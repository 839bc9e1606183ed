"""Session event broadcaster.

Tracks live real-time connections and fans out lifecycle events to them.
Each subscriber carries an environment filter; an empty filter receives
every event.

The subscriber map is mutated by connection open/close while publishes may
be in flight. Mutations happen under an asyncio.Lock; publish copies the
subscriber list under the lock and delivers outside it, re-checking that a
subscriber is still registered before each send.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Protocol

from print_proxy.broadcast.events import BroadcastEvent
from print_proxy.logging.audit import get_audit_logger


class Connection(Protocol):
    async def send_json(self, data: Any) -> None: ...


@dataclass
class Subscriber:
    connection: Connection
    environments: set[str] = field(default_factory=set)  # empty = all environments
    subscribed_at: float = field(default_factory=time.time)

    def accepts(self, environment: str | None) -> bool:
        return environment is None or not self.environments or environment in self.environments


class SessionEventBroadcaster:
    """Registry of live subscribers with best-effort fan-out."""

    def __init__(self):
        # Keyed by id(connection); the Subscriber holds the connection, so ids stay unique
        self._subscribers: dict[int, Subscriber] = {}
        self._lock = asyncio.Lock()

    @property
    def count(self) -> int:
        return len(self._subscribers)

    async def subscribe(self, connection: Connection, environment: str | None = None) -> Subscriber:
        """Register a connection, or widen the filter of an existing one."""
        async with self._lock:
            subscriber = self._subscribers.get(id(connection))
            if subscriber is None:
                subscriber = Subscriber(connection=connection)
                self._subscribers[id(connection)] = subscriber
            if environment:
                subscriber.environments.add(environment)
            return subscriber

    async def unsubscribe(self, connection: Connection) -> None:
        """Remove a connection. Unknown connections are ignored."""
        async with self._lock:
            self._subscribers.pop(id(connection), None)

    async def publish(self, event: BroadcastEvent, target_environment: str | None = None) -> int:
        """Deliver an event to matching subscribers.

        Args:
            event: Event to send.
            target_environment: Environment id the event is scoped to. None
                delivers to every subscriber.

        Returns:
            Number of subscribers the event was delivered to.
        """
        async with self._lock:
            targets = [s for s in self._subscribers.values() if s.accepts(target_environment)]

        message = event.to_message()
        delivered = 0
        for subscriber in targets:
            # Closed while an earlier send was awaiting
            if self._subscribers.get(id(subscriber.connection)) is not subscriber:
                continue
            try:
                await subscriber.connection.send_json(message)
                delivered += 1
            except Exception as e:
                get_audit_logger().warning(
                    "Broadcast delivery failed",
                    extra={"audit_data": {
                        "event_type": event.type.value,
                        "target_environment": target_environment,
                        "error": str(e),
                    }},
                )
        return delivered


_broadcaster: SessionEventBroadcaster | None = None


def get_broadcaster() -> SessionEventBroadcaster:
    """Get the process-wide broadcaster singleton."""
    global _broadcaster
    if _broadcaster is None:
        _broadcaster = SessionEventBroadcaster()
    return _broadcaster
