"""Protocol handler for ELM327-style adapter communication.

Serializes commands onto the wire, reads replies up to the prompt with a
bounded idle-retry loop, and serves repeated requests from the response
cache.
"""

import asyncio
import logging
import time
from typing import Protocol

from obd_adapter.core.cache import ResponseCache
from obd_adapter.protocol.commands import INITIALIZATION_SEQUENCE, ObdCommand
from obd_adapter.protocol.constants import (
    COMMAND_TERMINATOR,
    MAX_RETRIES,
    PROMPT,
    RETRY_DELAY,
    SEARCHING_PATTERN,
)
from obd_adapter.protocol.errors import AdapterResponseError
from obd_adapter.protocol.response import RawResponse, Response

logger = logging.getLogger(__name__)


class InputStream(Protocol):
    async def read(self, n: int = -1) -> bytes: ...

    async def close(self) -> None: ...


class OutputStream(Protocol):
    async def write(self, data: bytes) -> None: ...

    async def close(self) -> None: ...


class ProtocolHandler:
    """Request/response engine for one adapter connection.

    Only one request is on the wire at a time; concurrent callers queue on
    an internal lock. Cache lookups happen before the lock is taken.
    """

    def __init__(
        self,
        input_stream: InputStream,
        output_stream: OutputStream,
        cache: ResponseCache | None = None,
    ):
        """Initialize protocol handler.

        Args:
            input_stream: Source of adapter bytes; ``read`` returns b"" when idle.
            output_stream: Sink for command bytes.
            cache: Response cache (a default sized one is created if omitted).
        """
        self._input = input_stream
        self._output = output_stream
        self._cache = cache if cache is not None else ResponseCache()
        self._lock = asyncio.Lock()

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def connected(self) -> bool:
        """Whether both streams report an open connection (streams without the flag count as open)."""
        return all(getattr(stream, "connected", True) for stream in (self._input, self._output))

    async def execute(
        self,
        command: ObdCommand,
        use_cache: bool = False,
        pre_delay: float = 0.0,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
    ) -> Response:
        """Run a command and return its parsed response.

        Args:
            command: Command to send.
            use_cache: Serve from and populate the response cache. Ignored for
                mutating commands, which always reach the adapter.
            pre_delay: Seconds to wait between writing and reading.
            max_retries: Consecutive empty reads tolerated before giving up.
            retry_delay: Seconds to wait after each empty read.

        Returns:
            Parsed response.

        Raises:
            AdapterResponseError: If the adapter replied with an error.
            ConnectionError: If the transport failed.
        """
        key = command.raw_command
        use_cache = use_cache and not command.mutating

        if use_cache:
            cached = await self._cache.get(key)
            if cached is not None:
                logger.debug("Cache hit for %s (%s)", command.tag, key)
                return command.handle_response(cached)

        async with self._lock:
            raw = await self._round_trip(command, pre_delay, max_retries, retry_delay)

        try:
            response = command.handle_response(raw)
        except AdapterResponseError as e:
            logger.warning("%s", e)
            raise

        if use_cache:
            await self._cache.put(key, raw)

        return response

    async def _round_trip(
        self,
        command: ObdCommand,
        pre_delay: float,
        max_retries: int,
        retry_delay: float,
    ) -> RawResponse:
        started = time.monotonic()

        logger.debug("Sending %s: %r", command.tag, command.raw_command)
        await self._output.write(f"{command.raw_command}{COMMAND_TERMINATOR}".encode("ascii"))

        if pre_delay > 0:
            await asyncio.sleep(pre_delay)

        text = await self._read_raw(max_retries, retry_delay)
        elapsed_ms = int((time.monotonic() - started) * 1000)

        logger.debug("Received for %s in %d ms: %r", command.tag, elapsed_ms, text)
        return RawResponse(text=text, elapsed_ms=elapsed_ms)

    async def _read_raw(self, max_retries: int, retry_delay: float) -> str:
        """Read one character at a time until the prompt or the idle budget runs out."""
        chars: list[str] = []
        retries = 0

        while retries <= max_retries:
            data = await self._input.read(1)
            if not data:
                retries += 1
                if retries > max_retries:
                    logger.debug("No prompt after %d empty reads, returning partial reply", retries)
                    break
                await asyncio.sleep(retry_delay)
                continue

            retries = 0
            char = data.decode("ascii", errors="replace")
            if char == PROMPT:
                break
            chars.append(char)

        return SEARCHING_PATTERN.sub("", "".join(chars)).strip()

    async def initialize(self, **options) -> list[Response]:
        """Send the adapter set-up sequence.

        Resets the adapter, turns echo, line feeds, spaces and headers off,
        and selects automatic protocol detection. Keyword options are passed
        to :meth:`execute`.
        """
        responses = []
        for command in INITIALIZATION_SEQUENCE:
            responses.append(await self.execute(command, **options))
        logger.info("Adapter initialized")
        return responses

    async def clear_cache(self) -> int:
        """Drop all cached replies; returns how many were removed."""
        return await self._cache.clear()

    async def close(self) -> None:
        """Clear the cache and close both streams.

        Stream failures are logged and ignored; the streams may already be
        closed.
        """
        await self._cache.clear()

        for stream in dict.fromkeys((self._input, self._output)):
            try:
                await stream.close()
            except Exception as e:
                logger.warning("Error closing stream: %s", e)

        logger.info("Protocol handler closed")
