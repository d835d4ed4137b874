"""
regvm - Serial Channel

Runs a machine's INP/PRINT over a serial line using pyserial. Each INP
reads one byte from the port; a read that times out with no data is
treated as end of input. Each PRINT writes and flushes one byte.

Usage:
    chan = SerialChannel.open('/dev/ttyUSB0', baudrate=9600)
    Machine(program, chan).run()
    chan.close()

    # loopback, no hardware needed
    chan = SerialChannel.open('loop://')
"""

from __future__ import annotations

import logging

import serial

from ..config import SERIAL_BAUD, SERIAL_TIMEOUT
from ..errors import ChannelError, InputExhausted
from .base import ByteChannel

logger = logging.getLogger(__name__)


class SerialChannel(ByteChannel):
    """Byte channel over an open ``serial.Serial`` port."""

    def __init__(self, port: serial.SerialBase):
        self.port = port

    @classmethod
    def open(cls, url: str, baudrate: int = SERIAL_BAUD,
             timeout: float = SERIAL_TIMEOUT) -> "SerialChannel":
        """Open ``url`` (a device path or a pyserial URL such as ``loop://``)."""
        try:
            port = serial.serial_for_url(url, baudrate=baudrate, timeout=timeout,
                                         write_timeout=timeout)
        except serial.SerialException as e:
            logger.error(f"Cannot open {url}: {e}")
            raise ChannelError(f"cannot open {url}: {e}") from e
        logger.debug(f"Opened {url} at {baudrate} baud")
        return cls(port)

    def read_byte(self) -> int:
        try:
            data = self.port.read(1)
        except serial.SerialException as e:
            logger.error(f"Read failed on {self.port.port}: {e}")
            raise ChannelError(f"serial read failed: {e}") from e
        if not data:
            raise InputExhausted(f"no data on {self.port.port} within {self.port.timeout}s")
        return data[0]

    def write_char(self, byte: int):
        try:
            self.port.write(bytes([byte & 0xFF]))
            self.port.flush()
        except serial.SerialException as e:
            logger.error(f"Write failed on {self.port.port}: {e}")
            raise ChannelError(f"serial write failed: {e}") from e

    def close(self):
        if self.port.is_open:
            self.port.close()
