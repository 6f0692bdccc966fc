"""
Status Broadcaster - pushes the controller status projection to WebSocket clients

The controller calls publish() from whatever thread handled the event
(paho network thread, timer thread, request worker). Sends are handed to
the server's event loop and never block the caller.
"""

import asyncio
from typing import Any, Dict, List, Optional

from fastapi import WebSocket, WebSocketDisconnect

from core.logger import log_warn


class StatusBroadcaster:
    def __init__(self):
        self._clients: List[WebSocket] = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def register(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._loop = asyncio.get_running_loop()
        self._clients.append(websocket)

    def unregister(self, websocket: WebSocket) -> None:
        if websocket in self._clients:
            self._clients.remove(websocket)

    def publish(self, status: Dict[str, Any]) -> None:
        """Thread-safe, fire-and-forget."""
        loop = self._loop
        if loop is None or loop.is_closed() or not self._clients:
            return
        asyncio.run_coroutine_threadsafe(self._broadcast(dict(status)), loop)

    async def _broadcast(self, message: Dict[str, Any]) -> None:
        for client in list(self._clients):
            try:
                await client.send_json({"type": "ui_status_update", "payload": message})
            except (WebSocketDisconnect, RuntimeError, ConnectionError) as e:
                log_warn(f"Dropping status client: {e}")
                self.unregister(client)
