"""
regvm - Machine Configuration
=============================

Fixed parameters of the register machine. Everything here is a plain
module-level constant; per-machine overrides go through the ``Machine``
constructor (``stack_capacity``) and ``Machine.run(max_steps=...)``.
"""

# =============================================================================
#  WORD / REGISTER WIDTH
# =============================================================================
WORD_BITS = 64
WORD_MASK = (1 << WORD_BITS) - 1   # 0xFFFF_FFFF_FFFF_FFFF
BYTE_MASK = 0xFF                   # PRINT emits the low 8 bits


# =============================================================================
#  OPERAND STACK
# =============================================================================
STACK_CAPACITY = 255               # cells, shared by data and return addresses


# =============================================================================
#  INPUT
# =============================================================================
CARRIAGE_RETURN = 0x0D             # INP discards CR and reads again


# =============================================================================
#  RUN LOOP
# =============================================================================
DEFAULT_MAX_STEPS = None           # None = run until HALT or a fault


# =============================================================================
#  SERIAL CHANNEL DEFAULTS (pyserial)
# =============================================================================
SERIAL_BAUD = 9600
SERIAL_TIMEOUT = 2.0               # seconds; an empty read counts as end of input


# =============================================================================
#  TRACE
# =============================================================================
TRACE_DEPTH = 10000                # trace lines kept; older lines drop off
