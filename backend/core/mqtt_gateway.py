"""
MQTT Gateway - Single responsibility: bus communication with the line

Subscriptions are re-issued on every (re)connect so a broker restart does
not silently drop the status feed.
"""

from __future__ import annotations

import threading
from typing import Iterable, List, Optional

import paho.mqtt.client as mqtt

from .config import BrokerSettings
from .gateway import MessageHandler, Payload, encode_payload
from .logger import log_bus, log_critical, log_ok, log_warn


class MqttGateway:
    """
    ActuatorGateway over MQTT (paho-mqtt, network loop on a background thread).

    Inbound messages are handed to the subscriber on the paho thread;
    the subscriber is responsible for serialising its own processing.
    """

    def __init__(self, settings: Optional[BrokerSettings] = None):
        self.settings = settings or BrokerSettings()
        self._client: Optional[mqtt.Client] = None
        self._connected = False
        self._topics: List[str] = []
        self._handler: Optional[MessageHandler] = None
        self._lock = threading.Lock()

    def connect(self) -> bool:
        """Connect to the broker and start the network loop"""
        client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=self.settings.client_id)
        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_message = self._on_message
        try:
            client.connect(self.settings.host, self.settings.port, self.settings.keepalive)
        except (OSError, ValueError) as e:
            self._connected = False
            raise ConnectionError(
                f"Failed to connect to {self.settings.host}:{self.settings.port}: {e}"
            )
        client.loop_start()
        self._client = client
        log_ok(f"Connecting to MQTT broker at {self.settings.host}:{self.settings.port}")
        return True

    def disconnect(self) -> None:
        """Stop the network loop and disconnect"""
        if self._client:
            self._client.loop_stop()
            self._client.disconnect()
            self._client = None
        self._connected = False

    def publish(self, topic: str, payload: Payload) -> None:
        if self._client is None:
            raise ConnectionError("Not connected")
        with self._lock:
            info = self._client.publish(topic, encode_payload(payload))
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise ConnectionError(f"Publish to {topic} failed: {mqtt.error_string(info.rc)}")

    def subscribe(self, topics: Iterable[str], handler: MessageHandler) -> None:
        self._topics = list(topics)
        self._handler = handler
        if self._client is not None and self._connected:
            self._subscribe_all(self._client)

    @property
    def is_connected(self) -> bool:
        return self._connected

    def _subscribe_all(self, client: mqtt.Client) -> None:
        for topic in self._topics:
            client.subscribe(topic)
        if self._topics:
            log_ok(f"Subscribed to {len(self._topics)} topics", {"topics": self._topics})

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            log_critical(f"MQTT connection refused: {reason_code}")
            self._connected = False
            return
        self._connected = True
        log_ok("Connected to MQTT broker")
        self._subscribe_all(client)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        self._connected = False
        log_warn(f"Disconnected from MQTT broker: {reason_code}")

    def _on_message(self, client, userdata, msg):
        text = msg.payload.decode("utf-8", errors="replace")
        log_bus("<<<", msg.topic, text)
        if self._handler is not None:
            self._handler(msg.topic, text)
