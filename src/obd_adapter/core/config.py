"""Application configuration using pydantic-settings."""

import logging
import sys
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables
    prefixed with OBD_ (e.g., OBD_SERIAL_PORT).
    """

    transport: Literal["serial", "tcp"] = "serial"
    serial_port: str = "/dev/ttyUSB0"
    serial_baud: int = 38400
    serial_timeout: float = 0.1
    tcp_host: str = "192.168.0.10"
    tcp_port: int = 35000
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"
    cache_size: int = Field(100, ge=1)
    cache_ttl: float | None = None
    max_retries: int = Field(5, ge=0)
    retry_delay: float = Field(0.5, ge=0)
    reconnect_delay: float = 5.0
    initialize_adapter: bool = True

    model_config = SettingsConfigDict(env_prefix="OBD_")


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
