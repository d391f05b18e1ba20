"""GET /health endpoint handler."""
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, status

from src.relay.liveness import LivenessMonitor
from src.relay.registry import SessionRegistry
from src.server.config import ServerConfig
from src.server.models.responses import HealthResponse


def _format_timestamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def create_health_router(
    config: ServerConfig, registry: SessionRegistry, monitor: Optional[LivenessMonitor],
) -> APIRouter:
    """Create health router with injected dependencies."""
    router = APIRouter()

    @router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK, tags=["status"])
    async def health_check() -> HealthResponse:
        """Report the session count and when the liveness monitor last ran."""
        timestamp = _format_timestamp(datetime.now(timezone.utc))
        last_run = monitor.last_run_at if monitor is not None else None
        last_sweep_at = _format_timestamp(last_run) if last_run is not None else None
        if config.liveness.enabled and (monitor is None or not monitor.running):
            return HealthResponse(
                status="degraded", version=config.version, sessions=registry.count(),
                timestamp=timestamp, last_sweep_at=last_sweep_at,
                message="Liveness monitor is not running",
            )
        return HealthResponse(
            status="healthy", version=config.version, sessions=registry.count(),
            timestamp=timestamp, last_sweep_at=last_sweep_at,
        )

    return router
