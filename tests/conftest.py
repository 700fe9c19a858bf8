"""Shared test fixtures."""

import pytest

from obd_adapter.core.cache import ResponseCache
from obd_adapter.protocol.handler import ProtocolHandler


class FakeAdapter:
    """In-memory adapter: each write queues the next scripted reply.

    Replies are read back one byte per ``read`` call; once the pending
    reply is consumed, reads return b"" like an idle serial port.
    """

    def __init__(self, *replies: str):
        self.replies = list(replies)
        self.written: list[bytes] = []
        self.reads = 0
        self.closed = False
        self.connected = True
        self._pending = bytearray()

    async def write(self, data: bytes) -> None:
        self.written.append(data)
        if self.replies:
            self._pending.extend(self.replies.pop(0).encode("ascii"))

    async def read(self, n: int = -1) -> bytes:
        self.reads += 1
        size = len(self._pending) if n == -1 else n
        data = bytes(self._pending[:size])
        del self._pending[:size]
        return data

    async def close(self) -> None:
        self.closed = True
        self.connected = False


@pytest.fixture
def adapter() -> FakeAdapter:
    """Adapter with no scripted replies; tests append to ``replies``."""
    return FakeAdapter()


@pytest.fixture
def handler(adapter: FakeAdapter) -> ProtocolHandler:
    """Handler wired to the fake adapter for both directions."""
    return ProtocolHandler(adapter, adapter, cache=ResponseCache(max_size=10))
