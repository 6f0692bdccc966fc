"""
Command execution layer.

Provides:
- CommandDispatcher: resolves topics, publishes through the gateway, keeps history
- DispatchResult: publish result with timestamp
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, TYPE_CHECKING

from .config import Topics
from .gateway import Payload, encode_payload
from .logger import log_bus, log_critical
from .types import AnyCommand

if TYPE_CHECKING:
    from .gateway import ActuatorGateway


@dataclass
class DispatchResult:
    """
    Result of publishing a command.

    Immutable record for audit trail.
    """
    command: AnyCommand
    topic: str
    payload: Payload
    timestamp: datetime
    success: bool
    error: str = ""

    def __str__(self) -> str:
        status = "✓" if self.success else "✗"
        line = f"[{self.timestamp:%H:%M:%S}] {status} {self.topic} ← {encode_payload(self.payload)}"
        return f"{line} ({self.error})" if self.error else line

    def to_dict(self) -> dict:
        return {
            "topic": self.topic,
            "payload": self.payload,
            "success": self.success,
            "error": self.error,
            "timestamp": self.timestamp.isoformat(),
        }


class CommandDispatcher:
    """
    Publishes commands and records an auditable history.

    Batches are published in order, but the commands in a batch target
    independent axes, so their relative order carries no meaning.
    No command is ever retried.
    """

    def __init__(self, topics: Topics, history_limit: int = 500):
        self._topics = topics
        self._history: List[DispatchResult] = []
        self._history_limit = history_limit

    def dispatch(self, command: AnyCommand, gateway: "ActuatorGateway") -> DispatchResult:
        """Publish a single command and record the result."""
        topic = self._topics.command_topic(command.device)
        payload = command.to_payload()
        timestamp = datetime.now()

        log_bus(">>>", topic, encode_payload(payload))
        try:
            gateway.publish(topic, payload)
            result = DispatchResult(command, topic, payload, timestamp, success=True)
        except (ConnectionError, OSError, RuntimeError) as e:
            log_critical(f"Publish to {topic} failed: {e}")
            result = DispatchResult(command, topic, payload, timestamp, success=False, error=str(e))

        self._record(result)
        return result

    def dispatch_all(self, commands: Iterable[AnyCommand], gateway: "ActuatorGateway") -> List[DispatchResult]:
        """Publish a batch of commands. Returns results for this batch."""
        return [self.dispatch(command, gateway) for command in commands]

    def get_history(self, limit: int | None = None) -> List[DispatchResult]:
        """
        Get dispatch history.

        Args:
            limit: Optional max number of recent entries to return.
        """
        if limit is None:
            return list(self._history)
        return list(self._history[-limit:]) if limit > 0 else []

    def get_last_result(self) -> DispatchResult | None:
        return self._history[-1] if self._history else None

    def clear_history(self) -> None:
        self._history.clear()

    def _record(self, result: DispatchResult) -> None:
        self._history.append(result)
        if len(self._history) > self._history_limit:
            del self._history[: len(self._history) - self._history_limit]
