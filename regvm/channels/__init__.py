from .base import ByteChannel
from .scripted import ScriptedChannel
from .stream import StreamChannel
from .serial_port import SerialChannel

__all__ = ['ByteChannel', 'ScriptedChannel', 'StreamChannel', 'SerialChannel']
