"""FastAPI application factory."""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from src.relay.engine import RelayEngine
from src.relay.errors import RelayError
from src.relay.liveness import LivenessMonitor
from src.relay.registry import SessionRegistry
from src.server.config import ServerConfig, load_config_from_env
from src.server.errors import status_code_for
from src.server.middleware.rate_limit import RateLimitMiddleware
from src.server.middleware.logging import RequestLoggingMiddleware
from src.server.models.responses import ErrorResponse, ErrorDetail
from src.server.polling import PollRelay
from src.server.routes.admin import create_admin_router
from src.server.routes.health import create_health_router
from src.server.routes.rooms import create_rooms_router
from src.server.routes.socket import create_socket_router

logger = logging.getLogger(__name__)


def create_app(config: Optional[ServerConfig] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    When called without arguments (e.g. via uvicorn --factory), loads
    configuration from environment variables. Every call builds its own
    registry, so independent apps never share sessions.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    if config is None:
        config = load_config_from_env()

    registry = SessionRegistry()
    engine = RelayEngine(registry)
    monitor = LivenessMonitor(
        engine,
        probe_interval=config.liveness.probe_interval,
        idle_timeout=config.liveness.idle_timeout,
    )
    poll = PollRelay(
        engine, max_queue_size=config.poll_queue_max_size, retention=config.liveness.idle_timeout,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if config.liveness.enabled:
            monitor.start()
        else:
            logger.info("Liveness monitor disabled")
        yield
        await monitor.stop()
        removed = await registry.clear()
        for removal in removed:
            await engine.evict(removal)
        logger.info("Relay shut down, dropped %d room(s)", len(removed))

    app = FastAPI(
        title="Game Session Relay",
        description="Pairs a host and a client under a short code and relays messages between them",
        version=config.version,
        lifespan=lifespan,
    )
    app.state.registry = registry
    app.state.engine = engine
    app.state.monitor = monitor
    app.state.poll = poll

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware, requests_per_minute=config.rate_limit.requests_per_minute)
    app.add_exception_handler(RelayError, _relay_error_handler)
    app.add_exception_handler(ValidationError, _validation_error_handler)
    app.include_router(create_socket_router(engine))
    app.include_router(create_rooms_router(poll))
    app.include_router(create_health_router(config, registry, monitor))

    if config.admin_secret:
        app.include_router(create_admin_router(engine, config.admin_secret))
        logger.info("Administrative close endpoint enabled")

    return app


async def _relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    details = {"code": exc.code} if exc.code else None
    response = ErrorResponse(error=ErrorDetail(code=exc.error_code, message=exc.message, details=details))
    return JSONResponse(status_code=status_code_for(exc), content=response.model_dump())


async def _validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    response = ErrorResponse(error=ErrorDetail(code="INVALID_FORMAT", message="Request validation failed", details={"validation_errors": exc.errors()}))
    return JSONResponse(status_code=400, content=response.model_dump())
