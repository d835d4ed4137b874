"""
regvm - Interpreter Core

Owns the register file, the operand stack and the program, and runs the
fetch/execute loop against a byte channel.

Execution model:
  1. Fetch the instruction at IP (InvalidAddress if IP is off the program)
  2. Dispatch to the opcode's handler
  3. HALT → stop with IP still on the HALT instruction
  4. Otherwise advance IP by one (a failed comparison has already
     advanced it once more, skipping the next instruction)

Control transfers follow from step 4: a jump to ``target`` stores
``target - 1`` in IP so the uniform advance lands exactly on ``target``.

States:
  READY    constructed or reset, nothing executed
  RUNNING  inside run() / step()
  PAUSED   run() stopped on a breakpoint or step limit, or step() returned
  HALTED   HALT executed (terminal)
  FAULTED  a fault was raised (terminal, state preserved for inspection)

Usage:
    chan = ScriptedChannel()
    vm = Machine([Op.PUSHI(72), Op.POP(Reg.A), Op.PRINT(Reg.A), Op.HALT()], chan)
    vm.run()          # StopReason.HALT
    chan.output       # b"H"
"""

import logging
from collections import deque
from enum import Enum
from typing import Iterable, Optional, Set

from .config import (WORD_MASK, BYTE_MASK, CARRIAGE_RETURN, STACK_CAPACITY,
                     DEFAULT_MAX_STEPS, TRACE_DEPTH)
from .errors import VMError, Fault, InvalidAddress, MachineStateError
from .cpu.isa import Instruction, Op, Reg, validate_program
from .cpu.regs import Registers, StackMemory
from .cpu import alu
from .channels.base import ByteChannel
from .channels.stream import StreamChannel

logger = logging.getLogger(__name__)


class MachineState(Enum):
    READY = 'READY'
    RUNNING = 'RUNNING'
    PAUSED = 'PAUSED'
    HALTED = 'HALTED'
    FAULTED = 'FAULTED'


class StopReason(Enum):
    HALT = 'HALT'
    BREAK = 'BREAK'
    LIMIT = 'LIMIT'


TERMINAL = (MachineState.HALTED, MachineState.FAULTED)


class Machine:
    """Register machine interpreter.

    Faults propagate out of run()/step() as exceptions; the machine keeps
    the fault in ``fault`` and its registers and stack as they were when
    the faulting instruction started.
    """

    def __init__(self, program: Iterable[Instruction], channel: Optional[ByteChannel] = None,
                 *, stack_capacity: int = STACK_CAPACITY, trace_depth: int = TRACE_DEPTH):
        self.program = validate_program(program)
        self.channel = channel if channel is not None else StreamChannel()

        self.regs = Registers()
        self.stack = StackMemory(stack_capacity)

        self.state = MachineState.READY
        self.fault: Optional[VMError] = None
        self.steps = 0

        self._breakpoints: Set[int] = set()
        self._trace = False
        self._trace_output: deque = deque(maxlen=trace_depth)
        self._break_at: Optional[int] = None

        self._dispatch = self._build_dispatch()

    def __repr__(self) -> str:
        return f"<Machine {self.state.value} {len(self.program)} instrs {self.regs.display()}>"

    @property
    def halted(self) -> bool:
        return self.state is MachineState.HALTED

    def get(self, reg: Reg) -> int:
        return self.regs.get(reg)

    def set(self, reg: Reg, value: int):
        self.regs.set(reg, value)

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> Optional[StopReason]:
        """Execute one instruction. Returns StopReason.HALT if it halted, else None."""
        self._enter()
        self._break_at = None
        reason = self._step()
        if reason is None:
            self.state = MachineState.PAUSED
        return reason

    def run(self, max_steps: Optional[int] = DEFAULT_MAX_STEPS) -> StopReason:
        """Run until HALT, a breakpoint, or ``max_steps`` instructions.

        Faults are raised, not returned. Breakpoints are checked before
        every fetch, including the first; the one exception is the
        breakpoint that just paused the machine, so run() after a BREAK
        moves on.
        """
        resume_at, self._break_at = self._break_at, None
        self._enter()
        logger.debug(f"Run from IP={self.regs.IP} (max_steps={max_steps})")

        executed = 0
        while True:
            ip = self.regs.IP
            if ip in self._breakpoints and not (executed == 0 and ip == resume_at):
                self.state = MachineState.PAUSED
                self._break_at = ip
                logger.debug(f"Breakpoint at {ip} after {self.steps} steps")
                return StopReason.BREAK
            if max_steps is not None and executed >= max_steps:
                self.state = MachineState.PAUSED
                logger.debug(f"Step limit {max_steps} reached at IP={self.regs.IP}")
                return StopReason.LIMIT

            reason = self._step()
            executed += 1
            if reason is StopReason.HALT:
                logger.debug(f"Halted at {self.regs.IP} after {self.steps} steps")
                return reason

    def _enter(self):
        if self.state in TERMINAL:
            raise MachineStateError(f"machine is {self.state.value}; reset() before running again")
        self.state = MachineState.RUNNING

    def _step(self) -> Optional[StopReason]:
        ip = self.regs.IP
        try:
            instr = self._fetch(ip)
            if self._trace:
                line = f"{ip:04d}: {str(instr):24s} {self.regs.display()}"
                self._trace_output.append(line)
                logger.debug(line)
            self._dispatch[instr.op](*instr.operands)
        except VMError as e:
            self._record_fault(e, ip)
            raise

        self.steps += 1
        if self.state is MachineState.HALTED:
            return StopReason.HALT

        self.regs.IP = (self.regs.IP + 1) & WORD_MASK
        return None

    def _fetch(self, ip: int) -> Instruction:
        if not 0 <= ip < len(self.program):
            raise InvalidAddress(f"fetch outside program of {len(self.program)} instructions",
                                 target=ip)
        return self.program[ip]

    def _record_fault(self, error: VMError, ip: int):
        if isinstance(error, Fault) and error.address is None:
            error.address = ip
        self.fault = error
        self.state = MachineState.FAULTED
        if self._trace:
            self._trace_output.append(f"  FAULT: {error}")
        logger.warning(f"{error} | {self.regs.display()}")

    # ══════════════════════════════════════════════
    # Primitives shared by the handlers
    # ══════════════════════════════════════════════

    def _check_target(self, target: int):
        if not 0 <= target < len(self.program):
            raise InvalidAddress(
                f"target {target} outside program of {len(self.program)} instructions",
                target=target)

    def _jump_to(self, target: int):
        """Make ``target`` the next instruction fetched."""
        self._check_target(target)
        self.regs.IP = (target - 1) & WORD_MASK

    def _skip(self):
        self.regs.IP = (self.regs.IP + 1) & WORD_MASK

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════

    def _build_dispatch(self) -> dict:
        """Opcode → handler. Handlers take the instruction's operands."""
        dispatch = {
            # ── Stack ──
            Op.PUSHI:  self._op_pushi,
            Op.PUSHR:  self._op_pushr,
            Op.POP:    self._op_pop,

            # ── I/O ──
            Op.INP:    self._op_inp,
            Op.PRINT:  self._op_print,

            # ── Control ──
            Op.JMP:    self._op_jmp,
            Op.JMPREL: self._op_jmprel,
            Op.CALL:   self._op_call,
            Op.RET:    self._op_ret,
            Op.HALT:   self._op_halt,
        }
        # ── Arithmetic / logic ──
        for op, fn in alu.BINARY_OPS.items():
            dispatch[op] = self._binary_handler(fn)
        # ── Skip-if-false comparisons ──
        for op, relation in alu.RELATIONS.items():
            dispatch[op] = self._compare_handler(relation)
        return dispatch

    def _op_pushi(self, imm: int):
        self.regs.push(self.stack, imm)

    def _op_pushr(self, reg: Reg):
        self.regs.push(self.stack, self.regs.get(reg))

    def _op_pop(self, reg: Reg):
        self.regs.set(reg, self.regs.pop(self.stack))

    def _binary_handler(self, fn):
        def handler(left: Reg, right: Reg):
            self.regs.set(left, fn(self.regs.get(left), self.regs.get(right)))
        handler.__name__ = f"_op_{fn.__name__.rstrip('_')}"
        return handler

    def _compare_handler(self, relation):
        def handler(left: Reg, right: Reg):
            if not relation(self.regs.get(left), self.regs.get(right)):
                self._skip()
        handler.__name__ = f"_op_{relation.__name__}"
        return handler

    def _op_inp(self, reg: Reg):
        byte = self.channel.read_byte()
        while byte == CARRIAGE_RETURN:
            byte = self.channel.read_byte()
        self.regs.set(reg, byte)

    def _op_print(self, reg: Reg):
        self.channel.write_char(self.regs.get(reg) & BYTE_MASK)

    def _op_jmp(self, addr: int):
        self._jump_to(addr)

    def _op_jmprel(self, off: int):
        self._jump_to(self.regs.IP + off)

    def _op_call(self, addr: int):
        self._check_target(addr)
        self.regs.push(self.stack, self.regs.IP + 1)
        self._jump_to(addr)

    def _op_ret(self):
        target = self.regs.peek(self.stack)
        self._check_target(target)
        self.regs.pop(self.stack)
        self._jump_to(target)

    def _op_halt(self):
        self.state = MachineState.HALTED

    # ══════════════════════════════════════════════
    # Breakpoint API
    # ══════════════════════════════════════════════

    def add_breakpoint(self, addr: int):
        """Stop run() before executing the instruction at ``addr``."""
        self._breakpoints.add(addr)

    def remove_breakpoint(self, addr: int):
        self._breakpoints.discard(addr)

    def clear_breakpoints(self):
        self._breakpoints.clear()

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Record every executed instruction with the registers before it ran."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def reset(self):
        """Back to READY: registers and stack zeroed, fault cleared. Breakpoints stay."""
        self.regs.reset()
        self.stack.reset()
        self.state = MachineState.READY
        self.fault = None
        self.steps = 0
        self._break_at = None
        self._trace_output.clear()
