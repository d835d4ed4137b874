"""
regvm - Word ALU

Unsigned WORD_BITS-bit arithmetic for the two-register instructions.
Every function takes the left and right operand values and returns the
new value for the left register. Overflow wraps modulo 2**WORD_BITS;
the only faults are division by zero and shift amounts that reach the
word width.

The comparisons return True when the relation holds. The machine skips
the next instruction when they return False.
"""

from ..config import WORD_BITS, WORD_MASK
from ..errors import ArithmeticFault
from .isa import Op


# ══════════════════════════════════════════════
# Arithmetic / bitwise - return the new left value
# ══════════════════════════════════════════════

def add(a: int, b: int) -> int:
    return (a + b) & WORD_MASK


def sub(a: int, b: int) -> int:
    """a - b, borrowing through the top bit (0 - 1 = WORD_MASK)."""
    return (a - b) & WORD_MASK


def mul(a: int, b: int) -> int:
    return (a * b) & WORD_MASK


def div(a: int, b: int) -> int:
    """Unsigned truncating division."""
    if b == 0:
        raise ArithmeticFault(f"division of {a} by zero")
    return a // b


def xor(a: int, b: int) -> int:
    return a ^ b


def and_(a: int, b: int) -> int:
    return a & b


def or_(a: int, b: int) -> int:
    return a | b


def shl(a: int, b: int) -> int:
    """Logical shift left; bits shifted past the top are lost."""
    if b >= WORD_BITS:
        raise ArithmeticFault(f"shift left by {b} (word is {WORD_BITS} bits)")
    return (a << b) & WORD_MASK


def shr(a: int, b: int) -> int:
    """Logical shift right, zero fill."""
    if b >= WORD_BITS:
        raise ArithmeticFault(f"shift right by {b} (word is {WORD_BITS} bits)")
    return a >> b


# ══════════════════════════════════════════════
# Comparisons - True means "fall through"
# ══════════════════════════════════════════════

def eq(a: int, b: int) -> bool:
    return a == b


def gt(a: int, b: int) -> bool:
    return a > b


def lt(a: int, b: int) -> bool:
    return a < b


BINARY_OPS = {
    Op.ADD: add,
    Op.SUB: sub,
    Op.MUL: mul,
    Op.DIV: div,
    Op.XOR: xor,
    Op.AND: and_,
    Op.OR:  or_,
    Op.SHL: shl,
    Op.SHR: shr,
}

RELATIONS = {
    Op.EQ: eq,
    Op.GT: gt,
    Op.LT: lt,
}
