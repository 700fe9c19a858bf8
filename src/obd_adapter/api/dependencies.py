"""FastAPI dependency injection for shared application state."""

from obd_adapter.core.cache import ResponseCache
from obd_adapter.core.config import Settings
from obd_adapter.protocol.handler import ProtocolHandler
from obd_adapter.protocol.registry import CommandRegistry
from obd_adapter.serial.connection import SerialConnection
from obd_adapter.serial.stream import StreamConnection


class AppState:
    """Holds shared application state instances.

    Created during app startup and accessed via FastAPI dependencies.
    """

    def __init__(self) -> None:
        self.settings: Settings | None = None
        self.connection: SerialConnection | StreamConnection | None = None
        self.cache: ResponseCache | None = None
        self.handler: ProtocolHandler | None = None
        self.registry: CommandRegistry | None = None


# Global app state singleton
app_state = AppState()


def get_handler() -> ProtocolHandler:
    """Get the protocol handler instance."""
    assert app_state.handler is not None, "App not initialized"
    return app_state.handler


def get_registry() -> CommandRegistry:
    """Get the command registry instance."""
    assert app_state.registry is not None, "App not initialized"
    return app_state.registry


def get_settings() -> Settings:
    """Get the settings instance."""
    assert app_state.settings is not None, "App not initialized"
    return app_state.settings
