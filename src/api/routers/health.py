# This file defines the liveness endpoint for API operations.
# It exists so orchestration and monitoring systems can verify service health quickly.
# The payload reports uptime, environment, version, database reachability, and peak memory.

from __future__ import annotations

import resource
import sys
import time
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.api.db_access import DatabaseClient
from src.api.dependencies import ConfigDep, get_database_client
from src.api.schemas.health_schemas import HealthResponse

router = APIRouter(tags=["health"])
DBDep = Annotated[DatabaseClient, Depends(get_database_client)]

_PROCESS_STARTED = time.monotonic()


def _max_rss_kb() -> int | None:
    usage = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # macOS reports bytes, Linux reports kilobytes.
    return int(usage / 1024) if sys.platform == "darwin" else int(usage)


@router.get("/health", response_model=HealthResponse)
def health(request: Request, config: ConfigDep, db: DBDep) -> dict[str, object]:
    db_connected = db.can_connect()
    return {
        "success": True,
        "status": "ok" if db_connected else "degraded",
        "timestamp": datetime.now(tz=UTC),
        "uptime_seconds": round(time.monotonic() - _PROCESS_STARTED, 3),
        "environment": config.environment,
        "version": config.app_version,
        "database": "reachable" if db_connected else "unreachable",
        "memory_max_rss_kb": _max_rss_kb(),
        "request_id": request.state.request_id,
    }
