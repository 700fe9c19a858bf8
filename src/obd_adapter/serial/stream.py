"""Stream based adapter connections (Wi-Fi adapters over TCP, serial via serial_asyncio)."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

import serial_asyncio
from serial import SerialException

logger = logging.getLogger(__name__)

StreamOpener = Callable[[], Awaitable[tuple[asyncio.StreamReader, asyncio.StreamWriter]]]


class StreamConnection:
    """Adapter connection over an asyncio StreamReader/StreamWriter pair.

    Exposes the same read/write/close surface as SerialConnection, so either
    can back a ProtocolHandler. Use :meth:`tcp` or :meth:`serial` to build one.
    """

    def __init__(self, opener: StreamOpener, name: str, timeout: float = 0.1):
        """
        Initialize stream connection.

        Args:
            opener: Coroutine function returning a (reader, writer) pair
            name: Endpoint description used in log messages
            timeout: Read timeout in seconds; an idle read returns b"" after it
        """
        self.name = name
        self.timeout = timeout

        self._opener = opener
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._connected = False
        self._lock = asyncio.Lock()

    @classmethod
    def tcp(cls, host: str, port: int, timeout: float = 0.1) -> "StreamConnection":
        """Connection to a Wi-Fi adapter (commonly 192.168.0.10:35000)."""
        return cls(lambda: asyncio.open_connection(host, port), f"{host}:{port}", timeout)

    @classmethod
    def serial(cls, port: str, baudrate: int = 38400, timeout: float = 0.1) -> "StreamConnection":
        """Connection to a serial adapter through serial_asyncio."""
        return cls(
            lambda: serial_asyncio.open_serial_connection(url=port, baudrate=baudrate),
            port,
            timeout,
        )

    @property
    def connected(self) -> bool:
        """Check if currently connected."""
        return self._connected and self._writer is not None and not self._writer.is_closing()

    async def connect(self) -> bool:
        """
        Open the stream pair.

        Returns:
            True if connection successful, False otherwise
        """
        async with self._lock:
            if self.connected:
                logger.debug("Already connected to %s", self.name)
                return True

            try:
                logger.info("Connecting to %s", self.name)
                self._reader, self._writer = await self._opener()
                self._connected = True
                logger.info("Successfully connected to %s", self.name)
                return True

            except (OSError, SerialException) as e:
                logger.error("Failed to connect to %s: %s", self.name, e)
                self._connected = False
                return False

    async def close(self) -> None:
        """Close the stream pair."""
        async with self._lock:
            if not self._connected:
                return

            logger.info("Disconnecting from %s", self.name)

            if self._writer:
                try:
                    self._writer.close()
                    await self._writer.wait_closed()
                except (OSError, SerialException) as e:
                    logger.error("Error closing writer: %s", e)

            self._reader = None
            self._writer = None
            self._connected = False
            logger.info("Disconnected from %s", self.name)

    async def read(self, n: int = -1) -> bytes:
        """
        Read up to ``n`` bytes.

        Returns:
            Bytes read, or b"" if nothing arrived within the timeout

        Raises:
            ConnectionError: If not connected or the peer closed the stream
        """
        if not self.connected or not self._reader:
            raise ConnectionError(f"Not connected to {self.name}")

        try:
            data = await asyncio.wait_for(self._reader.read(8192 if n == -1 else n), timeout=self.timeout)
        except TimeoutError:
            return b""
        except (OSError, SerialException) as e:
            logger.error("Read error: %s", e)
            self._connected = False
            raise ConnectionError(str(e)) from e

        if not data:
            # StreamReader.read() only returns b"" at EOF
            self._connected = False
            raise ConnectionError(f"Connection closed by {self.name}")
        return data

    async def write(self, data: bytes) -> None:
        """
        Write and drain.

        Raises:
            ConnectionError: If not connected or the write failed
        """
        if not self.connected or not self._writer:
            raise ConnectionError(f"Not connected to {self.name}")

        try:
            self._writer.write(data)
            await self._writer.drain()
        except (OSError, SerialException) as e:
            logger.error("Write error: %s", e)
            self._connected = False
            raise ConnectionError(str(e)) from e

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
