"""
regvm - Stream Channel

Channel over binary file objects. With no arguments it talks to the
process's standard input and output, which is how a machine behaves when
constructed without an explicit channel.

A stream that fails underneath the machine (closed file, broken pipe, a
text stream where bytes were expected) surfaces as ChannelError, so INP
and PRINT fault the machine the same way a serial port failure does.
"""

from __future__ import annotations

import logging
import sys
from typing import BinaryIO, Optional

from ..errors import ChannelError, InputExhausted
from .base import ByteChannel

logger = logging.getLogger(__name__)


class StreamChannel(ByteChannel):
    """Byte channel over a binary reader/writer pair, stdio by default."""

    def __init__(self, reader: Optional[BinaryIO] = None, writer: Optional[BinaryIO] = None):
        self._reader = reader
        self._writer = writer

    # stdin/stdout are looked up lazily so tests that swap sys.stdin see the swap
    @property
    def reader(self) -> BinaryIO:
        return self._reader if self._reader is not None else sys.stdin.buffer

    @property
    def writer(self) -> BinaryIO:
        return self._writer if self._writer is not None else sys.stdout.buffer

    def read_byte(self) -> int:
        try:
            data = self.reader.read(1)
        except (OSError, ValueError) as e:
            logger.error(f"Read failed on input stream: {e}")
            raise ChannelError(f"stream read failed: {e}") from e
        if not isinstance(data, (bytes, bytearray)):
            logger.error(f"Input stream returned {type(data).__name__}, not bytes")
            raise ChannelError(f"input stream is not binary (read returned {type(data).__name__})")
        if not data:
            raise InputExhausted("end of input stream")
        return data[0]

    def write_char(self, byte: int):
        try:
            self.writer.write(bytes([byte & 0xFF]))
            self.writer.flush()
        except (OSError, ValueError, TypeError) as e:
            logger.error(f"Write failed on output stream: {e}")
            raise ChannelError(f"stream write failed: {e}") from e
