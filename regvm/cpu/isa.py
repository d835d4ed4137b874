"""
regvm - Instruction Set

Registers, opcodes, operand signatures and the decoded ``Instruction``
value handed to the machine by whatever supplies programs.

Operand kinds:
  IMM  - unsigned word immediate              e.g. PUSHI 5
  REG  - one of A, B, C, D, IP, SP            e.g. POP A
  ADDR - absolute program address             e.g. JMP 33
  OFF  - signed offset from the current IP    e.g. JMPREL 2

Building instructions: every ``Op`` member is callable and returns an
``Instruction`` with its operands checked against the signature table::

    from regvm.cpu.isa import Op, Reg
    program = [Op.PUSHI(5), Op.POP(Reg.A), Op.PRINT(Reg.A), Op.HALT()]
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Tuple

from ..config import WORD_MASK
from ..errors import ProgramError

__all__ = ['Reg', 'Op', 'Instruction', 'IMM', 'REG', 'ADDR', 'OFF',
           'OPERANDS', 'check_operands', 'validate_program', 'listing']

IMM = 'IMM'
REG = 'REG'
ADDR = 'ADDR'
OFF = 'OFF'


class Reg(Enum):
    A = 'A'
    B = 'B'
    C = 'C'
    D = 'D'
    IP = 'IP'
    SP = 'SP'


class Op(Enum):
    PUSHI = 'PUSHI'
    PUSHR = 'PUSHR'
    POP = 'POP'
    ADD = 'ADD'
    SUB = 'SUB'
    MUL = 'MUL'
    DIV = 'DIV'
    XOR = 'XOR'
    AND = 'AND'
    OR = 'OR'
    SHL = 'SHL'
    SHR = 'SHR'
    INP = 'INP'
    EQ = 'EQ'
    GT = 'GT'
    LT = 'LT'
    JMP = 'JMP'
    JMPREL = 'JMPREL'
    CALL = 'CALL'
    RET = 'RET'
    PRINT = 'PRINT'
    HALT = 'HALT'

    def __call__(self, *operands) -> 'Instruction':
        """Build an instruction of this opcode, e.g. ``Op.ADD(Reg.A, Reg.B)``."""
        check_operands(self, operands)
        return Instruction(self, tuple(operands))

    @property
    def signature(self) -> Tuple[str, ...]:
        return OPERANDS[self]


# Opcode → operand kinds, in order
OPERANDS = {
    Op.PUSHI:  (IMM,),
    Op.PUSHR:  (REG,),
    Op.POP:    (REG,),
    Op.ADD:    (REG, REG),
    Op.SUB:    (REG, REG),
    Op.MUL:    (REG, REG),
    Op.DIV:    (REG, REG),
    Op.XOR:    (REG, REG),
    Op.AND:    (REG, REG),
    Op.OR:     (REG, REG),
    Op.SHL:    (REG, REG),
    Op.SHR:    (REG, REG),
    Op.INP:    (REG,),
    Op.EQ:     (REG, REG),
    Op.GT:     (REG, REG),
    Op.LT:     (REG, REG),
    Op.JMP:    (ADDR,),
    Op.JMPREL: (OFF,),
    Op.CALL:   (ADDR,),
    Op.RET:    (),
    Op.PRINT:  (REG,),
    Op.HALT:   (),
}


@dataclass(frozen=True)
class Instruction:
    """One decoded instruction: opcode plus its operands."""
    op: Op
    operands: tuple = ()

    def __str__(self) -> str:
        if not self.operands:
            return self.op.value
        rendered = []
        for kind, value in zip(self.op.signature, self.operands):
            if kind == REG:
                rendered.append(value.value)
            elif kind == IMM and value > 0xFF:
                rendered.append(f"{value:#x}")
            else:
                rendered.append(str(value))
        return f"{self.op.value:6s} {', '.join(rendered)}"


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def check_operands(op: Op, operands: tuple, address: int = None):
    """Raise ProgramError unless ``operands`` match the signature of ``op``."""
    kinds = OPERANDS[op]
    if len(operands) != len(kinds):
        raise ProgramError(
            f"{op.value} takes {len(kinds)} operand(s), got {len(operands)}", address)

    for kind, value in zip(kinds, operands):
        if kind == REG:
            if not isinstance(value, Reg):
                raise ProgramError(f"{op.value}: expected a register, got {value!r}", address)
        elif kind == IMM:
            if not _is_int(value) or not 0 <= value <= WORD_MASK:
                raise ProgramError(f"{op.value}: immediate {value!r} is not an unsigned word", address)
        elif kind == ADDR:
            if not _is_int(value) or value < 0:
                raise ProgramError(f"{op.value}: address {value!r} is not a non-negative int", address)
        elif kind == OFF:
            if not _is_int(value):
                raise ProgramError(f"{op.value}: offset {value!r} is not an int", address)


def validate_program(instructions: Iterable[Instruction]) -> Tuple[Instruction, ...]:
    """Freeze a supplied program into a tuple, checking every instruction.

    Address ranges are not checked here: a jump past the end is a runtime
    InvalidAddress, not a malformed program.
    """
    program = tuple(instructions)
    for addr, instr in enumerate(program):
        if not isinstance(instr, Instruction):
            raise ProgramError(f"expected an Instruction, got {type(instr).__name__}", addr)
        check_operands(instr.op, instr.operands, addr)
    return program


def listing(program: Iterable[Instruction]) -> str:
    """Render a program one instruction per line, prefixed with its address."""
    return '\n'.join(f"{addr:4d}: {instr}" for addr, instr in enumerate(program))
