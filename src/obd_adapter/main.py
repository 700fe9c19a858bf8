"""Main application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from obd_adapter import __version__
from obd_adapter.api.dependencies import app_state
from obd_adapter.api.routes import router as api_router
from obd_adapter.core.cache import ResponseCache
from obd_adapter.core.config import Settings, setup_logging
from obd_adapter.core.models import HealthResponse
from obd_adapter.protocol.errors import AdapterResponseError
from obd_adapter.protocol.handler import ProtocolHandler
from obd_adapter.protocol.registry import default_registry
from obd_adapter.serial.connection import SerialConnection
from obd_adapter.serial.stream import StreamConnection

logger = logging.getLogger(__name__)


def create_connection(settings: Settings) -> SerialConnection | StreamConnection:
    """Build the adapter transport selected by ``settings.transport``."""
    if settings.transport == "tcp":
        return StreamConnection.tcp(settings.tcp_host, settings.tcp_port, timeout=settings.serial_timeout)
    return SerialConnection(
        port=settings.serial_port,
        baudrate=settings.serial_baud,
        timeout=settings.serial_timeout,
        reconnect_delay=settings.reconnect_delay,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    settings = app_state.settings or Settings()
    app_state.settings = settings

    setup_logging(settings.log_level)
    logger.info(f"Starting OBD Adapter Gateway v{__version__}")

    app_state.registry = default_registry()
    app_state.cache = ResponseCache(max_size=settings.cache_size, ttl=settings.cache_ttl)
    app_state.connection = create_connection(settings)
    app_state.handler = ProtocolHandler(app_state.connection, app_state.connection, cache=app_state.cache)

    connected = await app_state.connection.connect()
    if connected:
        logger.info(f"Connected to adapter via {settings.transport}")
        if settings.initialize_adapter:
            try:
                await app_state.handler.initialize(
                    max_retries=settings.max_retries,
                    retry_delay=settings.retry_delay,
                )
            except (AdapterResponseError, ConnectionError) as e:
                logger.warning(f"Adapter initialization failed: {e}")
    else:
        logger.warning("Failed to connect to adapter, will retry in background")

    if isinstance(app_state.connection, SerialConnection):
        await app_state.connection.start_reconnect_loop()

    yield

    logger.info("Shutting down...")
    if app_state.handler is not None:
        await app_state.handler.close()


app = FastAPI(
    title="OBD Adapter Gateway",
    description="Local REST API for ELM327-compatible OBD-II adapters",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(api_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "OBD Adapter Gateway",
        "version": __version__,
        "status": "running",
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    handler = app_state.handler
    cache = app_state.cache

    if handler is None or cache is None:
        return HealthResponse(status="unhealthy", adapter_connected=False, cached_responses=0)

    connected = handler.connected
    return HealthResponse(
        status="healthy" if connected else "unhealthy",
        adapter_connected=connected,
        cached_responses=cache.count,
    )


def main():
    """Run the application (for CLI entry point)."""
    import uvicorn

    settings = Settings()
    setup_logging(settings.log_level)
    app_state.settings = settings

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
