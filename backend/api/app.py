"""
FastAPI App Factory - run control, manual events and status push for the line
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.logger import log_critical

from .routes import (
    connection_router,
    system_router,
    stream_router,
    events_router,
)


DASHBOARD_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


def create_app() -> FastAPI:
    app = FastAPI(
        title="Assembly Line Automation API",
        description="Start/stop, program selection and live status for the pick-and-place line",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=DASHBOARD_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # Unhandled errors still come back as JSON with CORS headers
    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        log_critical(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    for router in (connection_router, system_router, events_router, stream_router):
        app.include_router(router, prefix="/api")

    return app
