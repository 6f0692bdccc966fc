"""
Assembly Line Automation - Main Entry Point

Run with: uvicorn main:app --port 3000

Set ASSEMBLYLINE_BROKER=host[:port] to attach to the line on startup,
otherwise connect later with POST /api/connect.
"""

import os
import sys
from pathlib import Path

# Add backend to path for imports
backend_path = Path(__file__).parent
sys.path.insert(0, str(backend_path))

import uvicorn

from api.app import create_app
from api.dependencies import get_app_state
from core.config import BROKER_ENV


VERSION = "1.0.0"

app = create_app()


# === Startup/Shutdown Events ===

@app.on_event("startup")
async def startup_event():
    """Print the bus layout and optionally attach to the broker"""
    state = get_app_state()
    config = state.config

    print("=" * 50)
    print(f"  Assembly Line Automation v{VERSION}")
    print("=" * 50)
    print("Listening on:")
    for topic in config.topics.state_topics():
        print(f"  <<< {topic}")
    print(f"Settle window: {config.lock_delay:.1f}s, color probe after {config.color_probe_delay:.1f}s")

    if os.environ.get(BROKER_ENV):
        broker = f"{config.broker.host}:{config.broker.port}"
        if state.connect(broker):
            print(f"Attached to broker {broker}")
        else:
            print(f"Broker {broker} unreachable - use POST /api/connect")
    print("API ready at http://localhost:3000 (docs at /docs)")


@app.on_event("shutdown")
async def shutdown_event():
    """Halt the line before the process exits"""
    state = get_app_state()
    if state.controller is not None:
        print("[SHUTDOWN] Sending STOP to all actuators...")
        state.disconnect()


# === Health Check ===

@app.get("/health")
def health_check():
    state = get_app_state()
    status = state.get_status()
    return {
        "status": "ok",
        "version": VERSION,
        "connected": status["connected"],
        "run_mode": status["run_mode"],
        "program_kind": status["program_kind"],
    }


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=3000)
