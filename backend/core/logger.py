"""
Structured console logging for the assembly line engine.

Lines look like:
  [12:00:01.250] ⇄  STATE    | [Basic] IDLE → WAITING_FOR_OBJECT | commands=1

Prefixes:
  ⚡ CRITICAL - Failed publishes, broker errors
  ⚠️  WARN     - Rejected requests, unknown colors, dropped clients
  ✓  OK       - Start, connect, program switch
  ℹ  INFO     - Events ignored while stopped
  ⇄  STATE    - Sequencer transitions
  🔄 CYCLE    - Steps inside a pick-and-place cycle
  ⬡  BUS      - Raw bus traffic (>>> out, <<< in)
  🔒 LOCK     - Settle window acquire/release
  🎨 COLOR    - Color classification
"""

from datetime import datetime
from enum import Enum
from typing import Optional


class LogLevel(Enum):
    CRITICAL = "⚡ CRITICAL"
    WARN = "⚠️  WARN    "
    OK = "✓  OK      "
    INFO = "ℹ  INFO    "
    STATE = "⇄  STATE   "
    CYCLE = "🔄 CYCLE   "
    BUS = "⬡  BUS     "
    LOCK = "🔒 LOCK    "
    COLOR = "🎨 COLOR   "


def _format_data(data: dict) -> str:
    return " ".join(f"{key}={value}" for key, value in data.items())


def log(level: LogLevel, message: str, data: Optional[dict] = None):
    """Print one log line. Safe to call from the bus and timer threads."""
    stamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
    parts = [f"[{stamp}] {level.value}", message]
    if data:
        parts.append(_format_data(data))
    print(" | ".join(parts), flush=True)


def log_critical(msg: str, data: Optional[dict] = None):
    log(LogLevel.CRITICAL, msg, data)

def log_warn(msg: str, data: Optional[dict] = None):
    log(LogLevel.WARN, msg, data)

def log_ok(msg: str, data: Optional[dict] = None):
    log(LogLevel.OK, msg, data)

def log_info(msg: str, data: Optional[dict] = None):
    log(LogLevel.INFO, msg, data)

def log_state(msg: str, data: Optional[dict] = None):
    log(LogLevel.STATE, msg, data)

def log_cycle(msg: str, data: Optional[dict] = None):
    log(LogLevel.CYCLE, msg, data)

def log_bus(direction: str, topic: str, payload: str):
    """direction is '>>>' (publish) or '<<<' (receive)"""
    log(LogLevel.BUS, f"{direction} {topic} {payload}")

def log_lock(msg: str, data: Optional[dict] = None):
    log(LogLevel.LOCK, msg, data)

def log_color(msg: str, data: Optional[dict] = None):
    log(LogLevel.COLOR, msg, data)
