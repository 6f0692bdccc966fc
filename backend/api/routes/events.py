"""
Event Routes - manual event injection

Lets an operator nudge a stalled sequence by delivering a status event
by hand. Goes through the same gates as bus traffic.
"""

from typing import Any, Dict, Union

from fastapi import APIRouter
from pydantic import BaseModel

from ..dependencies import require_controller

router = APIRouter(prefix="/events", tags=["events"])


class EventRequest(BaseModel):
    topic: str
    payload: Union[Dict[str, Any], str]


@router.post("")
def inject_event(req: EventRequest):
    """Deliver one event to the engine as if it came from the bus."""
    ctrl = require_controller()
    accepted = ctrl.on_event(req.topic, req.payload)
    return {"success": True, "accepted": accepted, "status": ctrl.get_status()}
