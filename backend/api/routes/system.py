"""
System Routes - run control (start/stop/program) and status push

All requests are fire-and-forget; only program switching reports
rejection.
"""

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from core.types import ProgramKind, RunMode
from ..dependencies import get_app_state, require_controller, AppState

router = APIRouter(prefix="/system", tags=["system"])
stream_router = APIRouter(tags=["system"])


class ProgramRequest(BaseModel):
    name: str


@router.post("/start")
def start_system():
    """Start the active program. No-op if already running."""
    ctrl = require_controller()
    started = ctrl.start()
    return {
        "success": True,
        "started": started,
        "message": "System started" if started else "System already RUNNING",
        "status": ctrl.get_status(),
    }


@router.post("/stop")
def stop_system():
    """Stop all actuators immediately. Always accepted."""
    ctrl = require_controller()
    ctrl.stop()
    return {"success": True, "status": ctrl.get_status()}


@router.post("/program")
def switch_program(req: ProgramRequest):
    """Select the active program. Rejected while running."""
    ctrl = require_controller()
    if not ctrl.switch_program(req.name):
        reason = "System is RUNNING" if ctrl.run_mode == RunMode.RUNNING else f"Unknown program: {req.name}"
        return {"success": False, "message": reason, "program_kind": ctrl.program_kind.value}
    return {"success": True, "program_kind": ctrl.program_kind.value}


@router.get("/programs")
def list_programs():
    """List selectable programs."""
    return {"programs": [kind.value for kind in ProgramKind]}


@stream_router.websocket("/ws/status")
async def status_stream(websocket: WebSocket, state: AppState = Depends(get_app_state)):
    """Push the status projection on every change. Sends a snapshot on connect."""
    await state.broadcaster.register(websocket)
    try:
        await websocket.send_json({"type": "ui_status_update", "payload": state.get_status()})
        while True:
            # Push-only channel; inbound frames are ignored
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        state.broadcaster.unregister(websocket)
