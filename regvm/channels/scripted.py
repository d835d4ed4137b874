"""
regvm - Scripted Channel

In-memory channel for tests and embedding: input comes from bytes queued
with feed(), output accumulates in a buffer for inspection.

    chan = ScriptedChannel(b"AB\\r\\n")
    Machine(program, chan).run()
    chan.output   # everything PRINT wrote
"""

from collections import deque
from typing import Union

from ..errors import InputExhausted
from .base import ByteChannel


class ScriptedChannel(ByteChannel):
    """In-memory byte channel: queued input, captured output."""

    def __init__(self, data: Union[bytes, str] = b""):
        self._rx_queue: deque = deque()
        self.tx_buffer: bytearray = bytearray()
        self.feed(data)

    def feed(self, data: Union[bytes, str]):
        """Queue more input. ``str`` is encoded as latin-1, one byte per char."""
        if isinstance(data, str):
            data = data.encode('latin-1')
        for byte in data:
            self._rx_queue.append(byte & 0xFF)

    @property
    def pending(self) -> int:
        """Bytes queued but not yet read."""
        return len(self._rx_queue)

    def read_byte(self) -> int:
        if not self._rx_queue:
            raise InputExhausted("scripted input exhausted")
        return self._rx_queue.popleft()

    def write_char(self, byte: int):
        self.tx_buffer.append(byte & 0xFF)

    @property
    def output(self) -> bytes:
        """All bytes written since construction or the last reset()."""
        return bytes(self.tx_buffer)

    @property
    def text(self) -> str:
        return self.output.decode('latin-1')

    def reset(self):
        self.tx_buffer.clear()
        self._rx_queue.clear()
