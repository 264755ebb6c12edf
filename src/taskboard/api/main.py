"""
Taskboard API Service
REST backend for creating, listing, filtering and mutating tasks.
"""

import time
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import Settings, get_settings
from ..service import TaskService
from ..store import TaskStore
from ..utils.envelope import setup_envelope_handlers, success_response
from ..utils.jsonl_logger import setup_logging
from ..utils.request_id_middleware import RequestIDMiddleware
from .routes import router as task_router


def create_app(
    settings: Optional[Settings] = None, store: Optional[TaskStore] = None
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Configuration; loaded from the environment when omitted
        store: Task store to serve; built from ``settings.store`` when omitted
    """
    settings = settings or get_settings()
    logger = setup_logging(
        settings.service_name,
        level=settings.logging.level,
        fmt=settings.logging.format,
        log_dir=settings.logging.dir,
        backup_count=settings.logging.backup_count,
    )

    app = FastAPI(
        title="Taskboard API",
        description="Task management REST service",
        version=__version__,
    )
    app.state.settings = settings
    app.state.started_at = time.monotonic()
    app.state.task_service = TaskService(store or TaskStore(settings.store.path))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware, service_name=settings.service_name)

    setup_envelope_handlers(app)
    app.include_router(task_router)

    @app.get("/", tags=["health"])
    def root():
        """Root endpoint."""
        return success_response(
            {
                "service": "Taskboard API",
                "version": __version__,
                "description": "Task management REST service",
            }
        )

    @app.get("/health", tags=["health"])
    def health(request: Request):
        """Liveness probe with uptime and environment metadata."""
        uptime = time.monotonic() - request.app.state.started_at
        return success_response(
            {
                "status": "healthy",
                "service": settings.service_name,
                "version": __version__,
                "environment": settings.environment,
                "uptime": round(uptime, 3),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        )

    logger.info(
        f"Taskboard API ready ({settings.environment}, "
        f"store={settings.store.path or 'memory'})"
    )
    return app


def run(settings: Optional[Settings] = None) -> None:
    """Serve the API with uvicorn."""
    settings = settings or get_settings()
    if settings.api.reload:
        uvicorn.run(
            "taskboard.api.main:create_app",
            factory=True,
            host=settings.api.host,
            port=settings.api.port,
            reload=True,
        )
    else:
        uvicorn.run(create_app(settings), host=settings.api.host, port=settings.api.port)


if __name__ == "__main__":
    run()
