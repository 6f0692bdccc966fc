"""
API Dependencies - Dependency injection for FastAPI
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from core.config import AutomationConfig, BrokerSettings, ConfigError, load_config
from core.gateway import MockGateway
from core.logger import log_critical, log_ok
from core.mqtt_gateway import MqttGateway
from controller import RunController

from .broadcast import StatusBroadcaster


@dataclass
class AppState:
    """
    Application state container.

    Holds the gateway and the RunController built on top of it. The
    controller only exists while connected.
    """
    config: AutomationConfig = field(default_factory=load_config)
    controller: Optional[RunController] = None
    broadcaster: StatusBroadcaster = field(default_factory=StatusBroadcaster)
    _gateway: Optional[Any] = None
    broker: Optional[str] = None

    @property
    def is_connected(self) -> bool:
        return self._gateway is not None and self._gateway.is_connected

    def connect(self, broker: str) -> bool:
        """Connect to the bus and build the controller."""
        if self.controller is not None:
            self.disconnect()

        try:
            # Use mock for testing, MQTT for production
            if broker == "mock":
                gateway: Any = MockGateway()
            else:
                settings = BrokerSettings.parse(broker, self.config.broker)
                gateway = MqttGateway(settings)
                gateway.connect()
        except (ConnectionError, ConfigError) as e:
            log_critical(f"Connection error: {e}")
            return False

        self._gateway = gateway
        self.broker = broker
        self.controller = RunController(gateway=gateway, config=self.config)
        self.controller.add_observer(self.broadcaster.publish)
        self.controller.attach()
        log_ok(f"Automation engine attached to {broker}")
        return True

    def disconnect(self) -> None:
        """Stop the line and disconnect from the bus."""
        if self.controller is not None:
            self.controller.stop()
            self.controller.remove_observer(self.broadcaster.publish)
        if hasattr(self._gateway, 'disconnect'):
            self._gateway.disconnect()
        self._gateway = None
        self.controller = None
        self.broker = None

    def get_status(self) -> Dict[str, Any]:
        """Get current status for API."""
        if self.controller:
            status = self.controller.get_status()
        else:
            status = {
                "run_mode": "STOPPED",
                "program_kind": None,
                "automation_state": None,
                "locked": False,
                "block_color": None,
                "last_color_sample": None,
                "pickup_target": None,
                "leg": None,
                "cycles_completed": 0,
            }
        status["connected"] = self.is_connected
        status["broker"] = self.broker
        return status

    def get_command_history(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Get recent command history."""
        if not self.controller:
            return []
        return [r.to_dict() for r in self.controller.get_command_history(limit)]


# Global instance
_app_state: Optional[AppState] = None


def get_app_state() -> AppState:
    """Get the global app state instance."""
    global _app_state
    if _app_state is None:
        _app_state = AppState()
    return _app_state


def require_controller() -> RunController:
    """Get controller, raising error if not connected."""
    from fastapi import HTTPException

    state = get_app_state()
    if not state.is_connected or state.controller is None:
        raise HTTPException(status_code=400, detail="Not connected to the line")
    return state.controller
