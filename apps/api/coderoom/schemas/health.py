"""Data contracts for the liveness probe."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = Field(default="ok")
    connections: int = Field(..., ge=0, description="Open websocket connections")
    rooms: list[str] = Field(default_factory=list, description="Active room identifiers")
    timestamp: datetime
