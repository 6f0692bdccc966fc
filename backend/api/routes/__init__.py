"""API Routes - Domain-based routing"""

from .connection import router as connection_router
from .system import router as system_router, stream_router
from .events import router as events_router

__all__ = [
    'connection_router',
    'system_router',
    'stream_router',
    'events_router',
]
