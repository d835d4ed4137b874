"""
regvm - Byte I/O Channel

The machine reads input one byte at a time (INP) and writes output one
character at a time (PRINT) through a channel it is handed at
construction. Channels are dumb byte sources and sinks: skipping
carriage returns on input is the machine's job, not the channel's.
"""

from abc import ABC, abstractmethod


class ByteChannel(ABC):
    """Byte source + character sink used by INP and PRINT."""

    @abstractmethod
    def read_byte(self) -> int:
        """Return the next input byte (0-255).

        Blocks until a byte is available. Raises InputExhausted when the
        source has nothing more to give.
        """

    @abstractmethod
    def write_char(self, byte: int):
        """Emit one character. No acknowledgement flows back to the machine."""

    def close(self):
        """Release the underlying transport, if any."""
