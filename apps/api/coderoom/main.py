"""FastAPI application for the collaborative code room."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .core.config import settings
from .routers import collab
from .schemas.health import HealthResponse
from .services.hub import ConnectionHub

logger = logging.getLogger(__name__)

app = FastAPI(title="Code Room Collaboration API", version="0.1.0")

if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

app.include_router(collab.router)


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    """Answer anything unexpected with a generic 500."""

    logger.error("Unhandled error on %s: %s", request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Something broke!"})


@app.get("/health", response_model=HealthResponse, tags=["meta"])
async def health(hub: ConnectionHub = Depends(collab.get_hub)) -> HealthResponse:
    """Liveness probe with connection and room counts."""

    return HealthResponse(
        status="ok",
        connections=hub.connection_count,
        rooms=hub.room_ids(),
        timestamp=datetime.now(timezone.utc),
    )


@app.head("/health", tags=["meta"])
async def health_head() -> Response:
    """Allow HEAD for uptime monitors that only need the status code."""

    return Response(status_code=200)
