"""
regvm - Register File + Operand Stack

Register model:
  A, B, C, D - general purpose, no implicit meaning
  IP         - instruction pointer (index into the program)
  SP         - stack pointer (index of the next free stack cell)

All six are unsigned words of WORD_BITS bits. IP and SP are read and
written through the same get()/set() path as A-D, so programs may use
them as ordinary operands.

The operand stack grows upward from cell 0: push writes at SP then
increments, pop decrements then reads. Both check bounds before touching
anything, so a faulting push/pop leaves SP and the cells as they were.
"""

from typing import List

from ..config import WORD_MASK, STACK_CAPACITY
from ..errors import StackFault
from .isa import Reg


class StackMemory:
    """Fixed-capacity array of words backing the operand stack."""

    def __init__(self, capacity: int = STACK_CAPACITY):
        if capacity <= 0:
            raise ValueError(f"stack capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.cells: List[int] = [0] * capacity

    def __len__(self) -> int:
        return self.capacity

    def read(self, index: int) -> int:
        return self.cells[index]

    def write(self, index: int, value: int):
        self.cells[index] = value & WORD_MASK

    def reset(self):
        self.cells = [0] * self.capacity


class Registers:
    """Register file for the machine."""

    __slots__ = ('A', 'B', 'C', 'D', 'IP', 'SP')

    def __init__(self):
        self.A: int = 0
        self.B: int = 0
        self.C: int = 0
        self.D: int = 0
        self.IP: int = 0
        self.SP: int = 0

    def get(self, reg: Reg) -> int:
        return getattr(self, reg.value)

    def set(self, reg: Reg, value: int):
        setattr(self, reg.value, value & WORD_MASK)

    # --- Stack operations ---

    def push(self, stack: StackMemory, value: int):
        """Write ``value`` at SP, then increment SP."""
        if self.SP >= stack.capacity:
            raise StackFault(f"push with SP={self.SP} on a stack of {stack.capacity} cells")
        stack.write(self.SP, value)
        self.SP += 1

    def pop(self, stack: StackMemory) -> int:
        """Decrement SP, then read the cell it now points at."""
        value = self.peek(stack)
        self.SP -= 1
        return value

    def peek(self, stack: StackMemory) -> int:
        """Read the top of the stack without moving SP."""
        if self.SP == 0:
            raise StackFault("pop from an empty stack")
        if self.SP > stack.capacity:
            raise StackFault(f"pop with SP={self.SP} past a stack of {stack.capacity} cells")
        return stack.read(self.SP - 1)

    # --- Display ---

    def display(self) -> str:
        """One-line register dump for traces and fault reports."""
        return (f"IP={self.IP:04X} SP={self.SP:02X} "
                f"A={self.A:016X} B={self.B:016X} "
                f"C={self.C:016X} D={self.D:016X}")

    def reset(self):
        self.A = 0
        self.B = 0
        self.C = 0
        self.D = 0
        self.IP = 0
        self.SP = 0
