"""
Gateway layer - handles communication with the actuators over the bus.

Provides:
- ActuatorGateway protocol (interface)
- MockGateway for testing
- (MqttGateway in separate file for production)
"""

from __future__ import annotations

import json
from typing import Callable, Iterable, List, Optional, Protocol, Tuple, Union

Payload = Union[dict, str]
MessageHandler = Callable[[str, str], None]


def encode_payload(payload: Payload) -> str:
    """Objects go on the wire as JSON, strings as-is."""
    return json.dumps(payload) if isinstance(payload, dict) else str(payload)


class ActuatorGateway(Protocol):
    """Protocol for the actuator message bus."""

    def publish(self, topic: str, payload: Payload) -> None:
        """Publish a command. Fire-and-forget: no acknowledgement."""
        ...

    def subscribe(self, topics: Iterable[str], handler: MessageHandler) -> None:
        """Deliver every message on `topics` to handler(topic, text)."""
        ...

    @property
    def is_connected(self) -> bool:
        """Check if gateway is connected."""
        ...


class MockGateway:
    """
    Mock gateway for testing without a broker.

    Records every published command and lets tests push inbound status
    messages to the subscribed handler.
    """

    def __init__(self):
        self.published: List[Tuple[str, Payload]] = []
        self.subscriptions: List[str] = []
        self._handler: Optional[MessageHandler] = None
        self._connected: bool = True
        self.fail_publish: bool = False

    @property
    def command_count(self) -> int:
        """Number of commands published."""
        return len(self.published)

    def publish(self, topic: str, payload: Payload) -> None:
        if not self._connected:
            raise ConnectionError("Not connected")
        if self.fail_publish:
            raise ConnectionError(f"Simulated publish failure on {topic}")
        self.published.append((topic, payload))

    def subscribe(self, topics: Iterable[str], handler: MessageHandler) -> None:
        self.subscriptions.extend(topics)
        self._handler = handler

    def inject(self, topic: str, payload: Payload) -> None:
        """Simulate an inbound message from an actuator."""
        if self._handler is None:
            raise RuntimeError("No subscriber")
        self._handler(topic, encode_payload(payload))

    def published_to(self, topic: str) -> List[Payload]:
        """Payloads published on one topic, in order."""
        return [payload for t, payload in self.published if t == topic]

    @property
    def is_connected(self) -> bool:
        return self._connected

    def disconnect(self) -> None:
        """Simulate disconnection (for testing error handling)."""
        self._connected = False

    def reconnect(self) -> None:
        self._connected = True

    def clear_history(self) -> None:
        """Clear published commands history."""
        self.published.clear()
