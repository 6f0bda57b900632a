"""Main entry point for the queueing service."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from qsys import __version__
from qsys.api.v1 import (
    admin_router,
    branches_router,
    display_router,
    register_router,
    staff_router,
    system_router,
    tickets_router,
)
from qsys.core.errors import InvalidInputError, QueueError
from qsys.core.log import configure_logging
from qsys.core.settings import settings
from qsys.db.session import create_tables
from qsys.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="QSys Queue API",
    description="Multi-branch restaurant queueing API",
    version=__version__,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(branches_router, prefix="/api/v1")
app.include_router(register_router, prefix="/api/v1")
app.include_router(tickets_router, prefix="/api/v1")
app.include_router(staff_router, prefix="/api/v1")
app.include_router(display_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.exception_handler(QueueError)
async def queue_error_handler(request: Request, exc: QueueError) -> JSONResponse:
    """Render domain failures as ``{"ok": false, "error": ..., "field": ...}``."""
    field = exc.field if isinstance(exc, InvalidInputError) else None
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    body = ErrorResponse(error=str(exc), field=field)
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(by_alias=True),
    )


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    if settings.auto_create_tables:
        await create_tables()
    logger.info("%s %s started", settings.app_name, settings.app_version)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": __version__,
        "description": "Multi-branch restaurant queueing API",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("qsys.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
