"""
regvm - Exception Taxonomy

    VMError
    ├── ProgramError          malformed program handed to Machine()
    ├── MachineStateError     run()/step() on a halted or faulted machine
    ├── ChannelError          transport failure inside a byte channel
    └── Fault                 fatal execution fault
        ├── InvalidAddress
        ├── StackFault
        ├── ArithmeticFault
        └── InputExhausted

Faults are raised by the handlers that detect them; the run loop stamps
the faulting instruction's address onto the exception before re-raising.
"""

from typing import Optional

__all__ = [
    'VMError', 'ProgramError', 'MachineStateError', 'ChannelError',
    'Fault', 'InvalidAddress', 'StackFault', 'ArithmeticFault', 'InputExhausted',
]


class VMError(Exception):
    """Base class for everything raised by regvm."""


class ProgramError(VMError):
    """Raised at construction when an instruction is malformed."""
    def __init__(self, message: str, address: Optional[int] = None):
        self.address = address
        super().__init__(f"Instruction {address}: {message}" if address is not None else message)


class MachineStateError(VMError):
    """Raised when a terminal machine is asked to execute."""


class ChannelError(VMError):
    """Raised when the underlying transport of a channel fails."""


class Fault(VMError):
    """Fatal execution fault. ``address`` is the IP of the faulting instruction."""

    kind = 'FAULT'

    def __init__(self, message: str, address: Optional[int] = None):
        self.detail = message
        self.address = address
        super().__init__(message)

    def __str__(self) -> str:
        if self.address is None:
            return f"{self.kind}: {self.detail}"
        return f"{self.kind} at {self.address}: {self.detail}"


class InvalidAddress(Fault):
    """IP, or a jump/call/return target, outside the program."""
    kind = 'INVALID_ADDRESS'

    def __init__(self, message: str, target: Optional[int] = None, address: Optional[int] = None):
        self.target = target
        super().__init__(message, address)


class StackFault(Fault):
    """Push onto a full stack or pop from an empty one."""
    kind = 'STACK_FAULT'


class ArithmeticFault(Fault):
    """Division by zero, or a shift amount of at least the word width."""
    kind = 'ARITHMETIC_FAULT'


class InputExhausted(Fault):
    """INP requested a byte and the channel had none left."""
    kind = 'INPUT_EXHAUSTED'
