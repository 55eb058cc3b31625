"""
FastAPI application entry point for the project tracker API.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tracker.config import get_settings
from tracker.errors import ProjectServiceError, UpstreamStoreError
from tracker.routes import router

logger = logging.getLogger(__name__)


async def _service_error_handler(request: Request, exc: ProjectServiceError):
    if isinstance(exc, UpstreamStoreError):
        logger.error(
            "%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc
        )
    return JSONResponse(
        status_code=exc.status_code, content={"error": exc.public_message}
    )


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    app = FastAPI(title="Project Tracker API", version="0.1.0")
    app.add_exception_handler(ProjectServiceError, _service_error_handler)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
