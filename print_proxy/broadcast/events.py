"""Session lifecycle events pushed to real-time subscribers."""

from dataclasses import dataclass, field
from enum import Enum

from print_proxy.logging.audit import utc_timestamp


class EventType(str, Enum):
    LOGIN_SUCCESS = "login-success"
    REGISTRATION = "registration"
    REST_LOGIN = "rest-login"


@dataclass(frozen=True)
class BroadcastEvent:
    type: EventType
    environment: str  # display name
    payload: dict = field(default_factory=dict)
    timestamp: str = field(default_factory=utc_timestamp)

    def to_message(self) -> dict:
        """Wire shape: type, environment, payload fields, timestamp."""
        return {
            "type": self.type.value,
            "environment": self.environment,
            **self.payload,
            "timestamp": self.timestamp,
        }
