"""Unit tests for configuration module."""

import logging
import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from obd_adapter.core.config import Settings, setup_logging


class TestSettings:
    """Tests for Settings class."""

    def test_default_values(self):
        """Test settings have sensible defaults."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings()

        assert settings.transport == "serial"
        assert settings.serial_port == "/dev/ttyUSB0"
        assert settings.serial_baud == 38400
        assert settings.tcp_host == "192.168.0.10"
        assert settings.tcp_port == 35000
        assert settings.api_port == 8000
        assert settings.log_level == "INFO"
        assert settings.cache_size == 100
        assert settings.cache_ttl is None
        assert settings.max_retries == 5
        assert settings.retry_delay == 0.5
        assert settings.initialize_adapter is True

    def test_env_override_transport(self):
        """Test TCP transport from environment."""
        with patch.dict(os.environ, {"OBD_TRANSPORT": "tcp", "OBD_TCP_HOST": "10.0.0.5", "OBD_TCP_PORT": "23"}):
            settings = Settings()

        assert settings.transport == "tcp"
        assert settings.tcp_host == "10.0.0.5"
        assert settings.tcp_port == 23

    def test_env_override_serial(self):
        """Test serial port and baud override from environment."""
        with patch.dict(os.environ, {"OBD_SERIAL_PORT": "/dev/rfcomm0", "OBD_SERIAL_BAUD": "9600"}):
            settings = Settings()

        assert settings.serial_port == "/dev/rfcomm0"
        assert settings.serial_baud == 9600

    def test_env_override_cache(self):
        """Test cache settings from environment."""
        with patch.dict(os.environ, {"OBD_CACHE_SIZE": "10", "OBD_CACHE_TTL": "2.5"}):
            settings = Settings()

        assert settings.cache_size == 10
        assert settings.cache_ttl == 2.5

    def test_env_override_initialize(self):
        """Test adapter set-up can be disabled."""
        with patch.dict(os.environ, {"OBD_INITIALIZE_ADAPTER": "false"}):
            settings = Settings()

        assert settings.initialize_adapter is False

    def test_invalid_transport(self):
        """Test unknown transports are rejected."""
        with patch.dict(os.environ, {"OBD_TRANSPORT": "usb"}):
            with pytest.raises(ValidationError):
                Settings()

    def test_invalid_cache_size(self):
        """Test cache size must be positive."""
        with pytest.raises(ValidationError):
            Settings(cache_size=0)

    def test_env_prefix(self):
        """Test that non-prefixed env vars are ignored."""
        with patch.dict(os.environ, {"SERIAL_PORT": "/dev/other"}, clear=True):
            settings = Settings()

        assert settings.serial_port == "/dev/ttyUSB0"


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_logging_info(self):
        """Test setting up INFO logging."""
        with patch("obd_adapter.core.config.logging.basicConfig") as basic_config:
            setup_logging("INFO")

        assert basic_config.call_args.kwargs["level"] == logging.INFO

    def test_setup_logging_case_insensitive(self):
        """Test log level is case insensitive."""
        with patch("obd_adapter.core.config.logging.basicConfig") as basic_config:
            setup_logging("debug")

        assert basic_config.call_args.kwargs["level"] == logging.DEBUG

    def test_setup_logging_invalid_defaults_to_info(self):
        """Test invalid level defaults to INFO."""
        with patch("obd_adapter.core.config.logging.basicConfig") as basic_config:
            setup_logging("INVALID")

        assert basic_config.call_args.kwargs["level"] == logging.INFO
