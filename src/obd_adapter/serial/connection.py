"""Serial port connection management using direct pyserial.

pyserial calls block, so every port operation runs on a single worker thread
via run_in_executor() and the event loop stays free while waiting on the
adapter.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor

import serial
from serial import SerialException

logger = logging.getLogger(__name__)

# Raised by some USB-serial drivers when a read races the device; not fatal
_TRANSIENT_ERRORS = ("reports readiness", "multiple access")


def _is_transient(error: Exception) -> bool:
    return any(marker in str(error) for marker in _TRANSIENT_ERRORS)


class SerialConnection:
    """Manages an adapter serial port with automatic reconnection.

    Uses direct pyserial with asyncio.run_in_executor() for async compatibility.
    The same instance serves as both input and output stream of a
    ProtocolHandler.
    """

    def __init__(
        self,
        port: str,
        baudrate: int = 38400,
        timeout: float = 0.1,
        reconnect_delay: float = 5.0,
    ):
        """
        Prepare an adapter port; nothing is opened until connect().

        Args:
            port: Serial port path (e.g., '/dev/ttyUSB0', '/dev/rfcomm0')
            baudrate: Communication speed (ELM327 default: 38400)
            timeout: Read timeout in seconds; an idle read returns b"" after it
            reconnect_delay: Delay between reconnection attempts in seconds
        """
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.reconnect_delay = reconnect_delay

        self._serial: serial.Serial | None = None
        self._connected = False
        self._reconnect_task: asyncio.Task | None = None
        self._lock = asyncio.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="serial")

    @property
    def connected(self) -> bool:
        """Check if currently connected."""
        return self._connected and self._serial is not None and self._serial.is_open

    async def connect(self) -> bool:
        """Open the adapter port; False means the device could not be opened."""
        async with self._lock:
            if self.connected:
                logger.debug("Adapter port %s already open", self.port)
                return True

            try:
                logger.info("Opening adapter on %s (%d baud)", self.port, self.baudrate)

                self._serial = serial.Serial()
                self._serial.port = self.port
                self._serial.baudrate = self.baudrate
                self._serial.timeout = self.timeout
                self._serial.open()

                self._connected = True
                logger.info("Adapter ready on %s", self.port)
                return True

            except (OSError, SerialException) as e:
                logger.error("Cannot open adapter on %s: %s", self.port, e)
                self._connected = False
                return False

    async def disconnect(self) -> None:
        """Release the port. The worker thread stays available for a later connect()."""
        async with self._lock:
            if not self._connected:
                return

            if self._serial and self._serial.is_open:
                try:
                    self._serial.close()
                except (OSError, SerialException) as e:
                    logger.error("Closing %s failed: %s", self.port, e)

            self._serial = None
            self._connected = False
            logger.info("Adapter on %s released", self.port)

    async def close(self) -> None:
        """Stop reconnecting, release the port and the worker thread.

        The connection cannot be reused afterwards.
        """
        await self.stop_reconnect_loop()
        await self.disconnect()
        self._executor.shutdown(wait=False)

    async def reconnect(self) -> bool:
        """Drop the port, wait ``reconnect_delay`` and open it again."""
        await self.disconnect()
        await asyncio.sleep(self.reconnect_delay)
        return await self.connect()

    async def start_reconnect_loop(self) -> None:
        """Watch the port in the background and reopen it whenever it drops."""
        if self._reconnect_task and not self._reconnect_task.done():
            logger.warning("Reconnect loop for %s is already running", self.port)
            return

        self._reconnect_task = asyncio.create_task(self._reconnect_loop())

    async def stop_reconnect_loop(self) -> None:
        if self._reconnect_task:
            self._reconnect_task.cancel()
            try:
                await self._reconnect_task
            except asyncio.CancelledError:
                pass
            self._reconnect_task = None

    async def _reconnect_loop(self) -> None:
        while True:
            try:
                if not self.connected:
                    logger.info("Adapter on %s went away, reopening", self.port)
                    if await self.reconnect():
                        logger.info("Adapter on %s is back", self.port)
                    else:
                        logger.warning("Adapter on %s still unavailable, next try in %ss", self.port, self.reconnect_delay)

                await asyncio.sleep(self.reconnect_delay)

            except asyncio.CancelledError:
                logger.debug("Reconnect loop for %s stopped", self.port)
                break
            except Exception as e:
                logger.error("Unexpected error while watching %s: %s", self.port, e)
                await asyncio.sleep(self.reconnect_delay)

    def _blocking_read(self, n: int) -> bytes:
        """Blocking read for use with run_in_executor.

        Waits up to the port timeout for the first byte, then takes whatever
        else is already buffered, never more than ``n`` bytes in total.
        """
        if not self._serial or not self._serial.is_open:
            raise ConnectionError("Not connected to serial port")
        try:
            first = self._serial.read(1)
            if not first or n == 1:
                return first

            available = min(self._serial.in_waiting, n - 1)
            if available > 0:
                return first + self._serial.read(available)

            return first
        except (OSError, SerialException) as e:
            if _is_transient(e):
                return b""
            raise

    async def read(self, n: int = -1) -> bytes:
        """
        Read from serial port.

        Args:
            n: Maximum number of bytes to read (-1 for available data up to 4096)

        Returns:
            Bytes read, or b"" if nothing arrived within the timeout

        Raises:
            ConnectionError: If not connected or the port failed
        """
        if not self.connected or not self._serial:
            raise ConnectionError("Not connected to serial port")

        try:
            read_size = 4096 if n == -1 else n
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(self._executor, self._blocking_read, read_size)

        except (OSError, SerialException) as e:
            if _is_transient(e):
                logger.warning("Transient serial error (will retry): %s", e)
                return b""
            logger.error("Read error: %s", e)
            self._connected = False
            raise ConnectionError(str(e)) from e

    async def write(self, data: bytes) -> None:
        """
        Write to serial port.

        Raises:
            ConnectionError: If not connected or the write failed
        """
        if not self.connected or not self._serial:
            raise ConnectionError("Not connected to serial port")

        try:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(self._executor, self._serial.write, data)
        except (OSError, SerialException) as e:
            logger.error("Write error: %s", e)
            self._connected = False
            raise ConnectionError(str(e)) from e

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
