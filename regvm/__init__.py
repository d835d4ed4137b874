"""
regvm - Register Machine Bytecode Interpreter
=============================================
Four general-purpose registers (A-D), two control registers (IP, SP), a
fixed-capacity operand stack and a fetch/execute loop. Programs arrive as
lists of decoded ``Instruction`` values; input and output go through a
byte channel.

Layout:
    config.py          machine constants (word width, stack capacity, ...)
    errors.py          VMError / Fault taxonomy
    cpu/isa.py         Reg, Op, Instruction, program validation, listings
    cpu/regs.py        register file + operand stack
    cpu/alu.py         unsigned word arithmetic and comparisons
    channels/          ByteChannel and its scripted / stream / serial forms
    machine.py         Machine: dispatch, step(), run(), breakpoints, trace
"""

__version__ = "0.1.0"

from typing import Iterable, Optional

from .config import STACK_CAPACITY
from .errors import (
    VMError, ProgramError, MachineStateError, ChannelError,
    Fault, InvalidAddress, StackFault, ArithmeticFault, InputExhausted,
)
from .cpu.isa import Reg, Op, Instruction, listing
from .channels import ByteChannel, ScriptedChannel, StreamChannel, SerialChannel
from .machine import Machine, MachineState, StopReason


def run_program(program: Iterable[Instruction], channel: Optional[ByteChannel] = None, *,
                max_steps: Optional[int] = None,
                stack_capacity: int = STACK_CAPACITY) -> Machine:
    """Build a machine for ``program`` and run it.

    Returns the machine so callers can inspect registers, state and
    ``steps`` afterwards. Faults propagate as exceptions.
    """
    machine = Machine(program, channel, stack_capacity=stack_capacity)
    machine.run(max_steps=max_steps)
    return machine
