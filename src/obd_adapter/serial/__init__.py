"""Adapter transports."""

from obd_adapter.serial.connection import SerialConnection
from obd_adapter.serial.stream import StreamConnection

__all__ = ["SerialConnection", "StreamConnection"]
