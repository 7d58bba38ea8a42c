# This file defines the response schema for the health endpoint.
# It exists so operational monitors can rely on a stable payload.

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class HealthResponse(BaseModel):
    success: bool = True
    status: str
    timestamp: datetime
    uptime_seconds: float
    environment: str
    version: str
    database: str
    memory_max_rss_kb: int | None = None
    request_id: str
