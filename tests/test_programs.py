"""
End-to-end program tests.

Whole programs run through run_program() against scripted input, checked
on what they print and how they stop.
"""

import pytest

from regvm import (
    run_program, Machine, Op, Reg, ScriptedChannel, StopReason,
    ArithmeticFault, InputExhausted, listing,
)

A, B, C, D, IP = Reg.A, Reg.B, Reg.C, Reg.D, Reg.IP


def _say(text: str) -> list:
    """PUSHI ch; POP A; PRINT A for every character."""
    out = []
    for ch in text:
        out += [Op.PUSHI(ord(ch)), Op.POP(A), Op.PRINT(A)]
    return out


def _password_check() -> list:
    """Read two bytes into C, XOR with 0x1337, compare with 0x7C5C ("ok")."""
    head = [
        Op.PUSHI(8), Op.POP(A),
        Op.INP(B), Op.OR(C, B), Op.SHL(C, A),
        Op.INP(B), Op.OR(C, B),
        Op.PUSHI(0x1337), Op.POP(D), Op.XOR(C, D),
        Op.PUSHI(0x7C5C), Op.POP(A),
        Op.EQ(A, C),
    ]
    lose = _say("No") + [Op.HALT()]
    win = len(head) + 1 + len(lose)
    return head + [Op.JMP(win)] + lose + _say("OK") + [Op.HALT()]


class TestScenarios:

    def test_subtract_and_print(self):
        """PUSHI 5; PUSHI 3; POP B; POP A; SUB A, B; PRINT A; HALT → prints chr(2)"""
        chan = ScriptedChannel()
        vm = run_program([Op.PUSHI(5), Op.PUSHI(3), Op.POP(B), Op.POP(A),
                          Op.SUB(A, B), Op.PRINT(A), Op.HALT()], chan)
        assert vm.halted
        assert vm.get(A) == 2
        assert chan.output == b"\x02"

    def test_divide_by_zero_never_halts(self):
        """PUSHI 0; POP B; DIV A, B; HALT → ArithmeticFault at 2"""
        vm = Machine([Op.PUSHI(0), Op.POP(B), Op.DIV(A, B), Op.HALT()], ScriptedChannel())
        with pytest.raises(ArithmeticFault) as exc:
            vm.run()
        assert exc.value.address == 2
        assert not vm.halted
        assert vm.steps == 2

    def test_hello(self):
        chan = ScriptedChannel()
        run_program(_say("Win") + [Op.HALT()], chan)
        assert chan.text == "Win"

    def test_countdown_loop(self):
        """
         8: PUSHR A        ; B = A + '0'
         9: POP   B
        10: ADD   B, D
        11: PRINT B
        12: SUB   A, C
        13: PUSHI 0
        14: POP   B
        15: GT    A, B     ; A > 0 → loop
        16: JMP   8
        17: HALT
        """
        program = [
            Op.PUSHI(3), Op.POP(A),
            Op.PUSHI(ord('0')), Op.POP(D),
            Op.PUSHI(1), Op.POP(C),
            Op.PUSHI(0), Op.POP(B),
            Op.PUSHR(A), Op.POP(B), Op.ADD(B, D), Op.PRINT(B),
            Op.SUB(A, C),
            Op.PUSHI(0), Op.POP(B),
            Op.GT(A, B), Op.JMP(8),
            Op.HALT(),
        ]
        chan = ScriptedChannel()
        vm = run_program(program, chan)
        assert chan.text == "321"
        assert vm.get(A) == 0


class TestPasswordCheck:

    def test_layout(self):
        program = _password_check()
        assert len(program) == 28
        assert program[13] == Op.JMP(21)

    def test_accepts(self):
        chan = ScriptedChannel(b"ok")
        run_program(_password_check(), chan)
        assert chan.output == b"OK"

    def test_rejects(self):
        chan = ScriptedChannel(b"no")
        run_program(_password_check(), chan)
        assert chan.output == b"No"

    def test_carriage_returns_ignored(self):
        chan = ScriptedChannel(b"\ro\r\rk")
        run_program(_password_check(), chan)
        assert chan.output == b"OK"

    def test_short_input(self):
        chan = ScriptedChannel(b"o")
        with pytest.raises(InputExhausted) as exc:
            run_program(_password_check(), chan)
        assert exc.value.address == 5
        assert chan.output == b""

    def test_step_limit(self):
        vm = run_program(_password_check(), ScriptedChannel(b"ok"), max_steps=5)
        assert vm.steps == 5
        assert not vm.halted
        assert vm.run() is StopReason.HALT

    def test_listing(self):
        text = listing(_password_check())
        lines = text.splitlines()
        assert len(lines) == 28
        assert lines[0] == "   0: PUSHI  8"
        assert lines[7] == "   7: PUSHI  0x1337"
        assert lines[12] == "  12: EQ     A, C"
        assert lines[27] == "  27: HALT"
