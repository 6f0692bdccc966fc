"""
Connection Routes - Connect/disconnect, status and command history
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..dependencies import get_app_state, AppState

router = APIRouter(tags=["connection"])


class ConnectRequest(BaseModel):
    broker: str


@router.get("/status")
def get_status(state: AppState = Depends(get_app_state)):
    """Get connection status and the automation status projection."""
    return state.get_status()


@router.get("/history")
def get_history(limit: int = 50, state: AppState = Depends(get_app_state)):
    """Get recent published commands."""
    return {"history": state.get_command_history(limit)}


@router.post("/connect")
def connect(req: ConnectRequest, state: AppState = Depends(get_app_state)):
    """Connect to the MQTT broker ("host[:port]") or "mock"."""
    success = state.connect(req.broker)
    return {"success": success, "message": "Connected" if success else "Connection failed"}


@router.post("/disconnect")
def disconnect(state: AppState = Depends(get_app_state)):
    """Stop the line and disconnect from the broker."""
    state.disconnect()
    return {"success": True}
