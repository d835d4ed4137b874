"""
Byte channel tests - scripted, stream (BytesIO) and serial (pyserial loop://).
"""

import io
import logging

import pytest
import serial

from regvm import (
    Machine, MachineState, Op, Reg, ScriptedChannel, StreamChannel, SerialChannel,
    InputExhausted, ChannelError, MachineStateError,
)


def _echo_program():
    """INP A; PRINT A; INP A; PRINT A; HALT"""
    return [Op.INP(Reg.A), Op.PRINT(Reg.A), Op.INP(Reg.A), Op.PRINT(Reg.A), Op.HALT()]


class TestScriptedChannel:

    def test_read_in_order(self):
        chan = ScriptedChannel(b"xy")
        assert chan.pending == 2
        assert chan.read_byte() == ord('x')
        assert chan.read_byte() == ord('y')
        with pytest.raises(InputExhausted):
            chan.read_byte()

    def test_feed_str(self):
        chan = ScriptedChannel()
        chan.feed("hi")
        chan.feed(b"!")
        assert [chan.read_byte() for _ in range(3)] == [0x68, 0x69, 0x21]

    def test_output(self):
        chan = ScriptedChannel()
        chan.write_char(0x141)
        chan.write_char(ord('b'))
        assert chan.output == b"Ab"
        assert chan.text == "Ab"
        chan.reset()
        assert chan.output == b""

    def test_does_not_skip_carriage_return(self):
        chan = ScriptedChannel(b"\r")
        assert chan.read_byte() == 0x0D


class TestStreamChannel:

    def test_echo(self):
        out = io.BytesIO()
        chan = StreamChannel(io.BytesIO(b"\rhi"), out)
        Machine(_echo_program(), chan).run()
        assert out.getvalue() == b"hi"

    def test_end_of_stream(self):
        chan = StreamChannel(io.BytesIO(b""), io.BytesIO())
        with pytest.raises(InputExhausted):
            chan.read_byte()

    def test_defaults_to_stdio(self, monkeypatch):
        class _Std:
            def __init__(self, data=b""):
                self.buffer = io.BytesIO(data)

        stdin, stdout = _Std(b"q"), _Std()
        monkeypatch.setattr("sys.stdin", stdin)
        monkeypatch.setattr("sys.stdout", stdout)
        chan = StreamChannel()
        assert chan.read_byte() == ord('q')
        chan.write_char(ord('z'))
        assert stdout.buffer.getvalue() == b"z"

    def test_closed_writer_faults_machine(self, caplog):
        """PRINT A; HALT against a closed writer → ChannelError, machine FAULTED"""
        writer = io.BytesIO()
        writer.close()
        vm = Machine([Op.PRINT(Reg.A), Op.HALT()], StreamChannel(io.BytesIO(b""), writer))
        with caplog.at_level(logging.ERROR, logger="regvm.channels.stream"):
            with pytest.raises(ChannelError):
                vm.run()
        assert vm.state is MachineState.FAULTED
        assert isinstance(vm.fault, ChannelError)
        assert not vm.halted
        assert "Write failed" in caplog.text
        with pytest.raises(MachineStateError):
            vm.run()

    def test_closed_reader_faults_machine(self):
        """INP A; HALT against a closed reader → ChannelError, machine FAULTED"""
        reader = io.BytesIO(b"a")
        reader.close()
        vm = Machine([Op.INP(Reg.A), Op.HALT()], StreamChannel(reader, io.BytesIO()))
        with pytest.raises(ChannelError):
            vm.run()
        assert vm.state is MachineState.FAULTED
        assert vm.get(Reg.IP) == 0

    def test_text_reader_is_channel_error(self):
        chan = StreamChannel(io.StringIO("a"), io.BytesIO())
        with pytest.raises(ChannelError):
            chan.read_byte()


class TestSerialChannel:

    def test_loopback(self):
        chan = SerialChannel.open("loop://", timeout=0.1)
        try:
            chan.write_char(ord('K'))
            assert chan.read_byte() == ord('K')
        finally:
            chan.close()

    def test_timeout_is_end_of_input(self):
        chan = SerialChannel.open("loop://", timeout=0.05)
        try:
            with pytest.raises(InputExhausted):
                chan.read_byte()
        finally:
            chan.close()

    def test_machine_over_loopback(self):
        """PUSHI 'x'; POP A; PRINT A; INP B; HALT → B reads back what A wrote"""
        chan = SerialChannel.open("loop://", timeout=0.1)
        try:
            vm = Machine([Op.PUSHI(ord('x')), Op.POP(Reg.A), Op.PRINT(Reg.A),
                          Op.INP(Reg.B), Op.HALT()], chan)
            vm.run()
            assert vm.get(Reg.B) == ord('x')
        finally:
            chan.close()

    def test_open_failure(self):
        with pytest.raises(ChannelError):
            SerialChannel.open("/dev/regvm-no-such-port")

    def test_write_failure(self):
        class _BrokenPort:
            port = "broken"
            is_open = True

            def write(self, data):
                raise serial.SerialException("device disconnected")

            def flush(self):
                pass

        chan = SerialChannel(_BrokenPort())
        with pytest.raises(ChannelError):
            chan.write_char(1)

    def test_close_is_idempotent(self):
        chan = SerialChannel.open("loop://")
        chan.close()
        chan.close()
        assert not chan.port.is_open
