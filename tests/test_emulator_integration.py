"""
Emulator Integration Tests
==========================

Tests for the Emulator orchestrator: loading images, running under a step
budget, single stepping, breakpoints, tracing and memory inspection.
"""

import pytest

from neander_sdk.assembler import ImageFormat, write_image
from neander_sdk.compiler import Compiler
from neander_sdk.emulator import Emulator, EmulatorConfig, BreakReason
from neander_sdk.errors import EmulatorError, ImageFormatError


def compiled_image(body: str) -> bytes:
    result = Compiler().compile_source(f'PROGRAM "t": BEGIN {body} END')
    result.raise_if_failed()
    return result.image


# 'RES = 1' compiles to:
#   $00 LDA 0x83 / $02 STA 0xC8 / $04 LDA 0xC8 / $06 HLT
RES_ONE = compiled_image("RES = 1")

# JMP $00
ENDLESS_LOOP = bytes([0x80, 0x00])


@pytest.fixture
def emu():
    emulator = Emulator()
    emulator.load_image(RES_ONE)
    return emulator


# =============================================================================
# Configuration and Loading
# =============================================================================

class TestConfiguration:
    """Test EmulatorConfig validation."""

    def test_defaults(self):
        config = EmulatorConfig()
        assert config.memory_size == 256
        assert config.max_steps == 1000

    def test_negative_steps(self):
        with pytest.raises(EmulatorError):
            EmulatorConfig(max_steps=-1)

    def test_zero_memory(self):
        with pytest.raises(EmulatorError):
            EmulatorConfig(memory_size=0)


class TestLoading:
    """Test image loading."""

    def test_load_resets_cpu(self, emu):
        emu.run()
        emu.load_image(ENDLESS_LOOP)
        assert emu.registers == {"ac": 0, "pc": 0, "n": False, "z": False}
        assert emu.steps == 0

    def test_load_short_image_clears_rest(self, emu):
        emu.load_image(bytes([0xF0]))
        assert emu.read_byte(0x80) == 0

    def test_load_mem_file(self, tmp_path):
        path = tmp_path / "prog.mem"
        write_image(str(path), RES_ONE, ImageFormat.MEM)
        emulator = Emulator()
        emulator.load_file(path)
        assert emulator.run().reason == BreakReason.HALTED
        assert emulator.registers["ac"] == 1

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Emulator().load_file(tmp_path / "missing.bin")

    def test_load_too_large(self):
        with pytest.raises(ImageFormatError):
            Emulator().load_image(bytes(300))

    def test_load_bytes_keeps_registers(self, emu):
        emu.run()
        emu.load_bytes(b"\x2A", address=0x90)
        assert emu.read_byte(0x90) == 0x2A
        assert emu.halted


# =============================================================================
# Execution
# =============================================================================

class TestRun:
    """Test run() and its stop reasons."""

    def test_run_to_halt(self, emu):
        event = emu.run()
        assert event.reason == BreakReason.HALTED
        assert event.address == 0x06
        assert str(event) == "Halted at $06 after 4 steps"
        assert emu.registers["ac"] == 1
        assert emu.halted

    def test_run_after_halt(self, emu):
        emu.run()
        event = emu.run()
        assert event.reason == BreakReason.HALTED
        assert emu.steps == 4

    def test_max_steps(self, caplog):
        emulator = Emulator(EmulatorConfig(max_steps=50))
        emulator.load_image(ENDLESS_LOOP)
        event = emulator.run()
        assert event.reason == BreakReason.MAX_STEPS
        assert str(event) == "Reached max steps (50)"
        assert emulator.steps == 50
        assert "step budget of 50 exhausted" in caplog.text

    def test_run_budget_overrides_config(self):
        emulator = Emulator()
        emulator.load_image(ENDLESS_LOOP)
        emulator.run(max_steps=7)
        assert emulator.steps == 7

    def test_unlimited(self, emu):
        assert emu.run(max_steps=0).reason == BreakReason.HALTED

    def test_reset_and_rerun(self, emu):
        emu.run()
        emu.reset()
        assert not emu.halted
        event = emu.run()
        assert event.reason == BreakReason.HALTED
        assert emu.steps == 4

    def test_anomalies(self):
        emulator = Emulator()
        emulator.load_image(bytes([0x70, 0xF0]))
        emulator.run()
        assert emulator.anomalies == 1


class TestStep:
    """Test single stepping."""

    def test_step(self, emu):
        event = emu.step()
        assert event.reason == BreakReason.STEP
        assert event.address == 0x02
        assert emu.registers["ac"] == 1

    def test_step_to_halt(self, emu):
        reasons = [emu.step().reason for _ in range(4)]
        assert reasons == [BreakReason.STEP] * 3 + [BreakReason.HALTED]

    def test_step_ignores_breakpoints(self, emu):
        emu.add_breakpoint(0x00)
        assert emu.step().reason == BreakReason.STEP
        assert emu.registers["pc"] == 0x02


class TestBreakpoints:
    """Test PC breakpoints during run()."""

    def test_stop_at_breakpoint(self, emu):
        emu.add_breakpoint(0x04)
        event = emu.run()
        assert event.reason == BreakReason.PC_BREAKPOINT
        assert event.address == 0x04
        assert str(event) == "Breakpoint at $04"
        assert emu.registers["pc"] == 0x04
        # the instruction at the breakpoint has not run
        assert emu.steps == 2

    def test_resume_from_breakpoint(self, emu):
        emu.add_breakpoint(0x04)
        emu.run()
        event = emu.run()
        assert event.reason == BreakReason.HALTED
        assert emu.registers["ac"] == 1

    def test_breakpoint_at_entry(self, emu):
        emu.add_breakpoint(0x00)
        assert emu.run().reason == BreakReason.PC_BREAKPOINT
        assert emu.steps == 0
        assert emu.run().reason == BreakReason.HALTED

    def test_breakpoint_in_loop_hits_every_time(self):
        emulator = Emulator()
        emulator.load_image(ENDLESS_LOOP)
        emulator.add_breakpoint(0x00)
        for expected_steps in (0, 1, 2):
            event = emulator.run()
            assert event.reason == BreakReason.PC_BREAKPOINT
            assert emulator.steps == expected_steps

    def test_resume_with_budget_of_one(self):
        emulator = Emulator()
        emulator.load_image(bytes([0x00, 0x00, 0x00, 0xF0]))
        emulator.add_breakpoint(0x01)
        emulator.run()
        event = emulator.run(max_steps=1)
        assert event.reason == BreakReason.MAX_STEPS
        assert emulator.registers["pc"] == 0x02

    def test_remove_and_clear(self, emu):
        emu.add_breakpoint(0x02)
        emu.add_breakpoint(0x04)
        emu.remove_breakpoint(0x02)
        assert emu.breakpoints.list_breakpoints() == [0x04]
        emu.clear_breakpoints()
        assert emu.run().reason == BreakReason.HALTED

    def test_step_mode(self, emu):
        emu.breakpoints.step_mode = True
        event = emu.run()
        assert event.reason == BreakReason.STEP
        assert emu.steps == 0


# =============================================================================
# Tracing and Inspection
# =============================================================================

class TestTrace:
    """Test the per-instruction trace."""

    def test_trace_callback(self, emu):
        lines = []
        emu.on_trace = lines.append
        emu.run()
        assert len(lines) == 4
        assert lines[0] == "$00: LDA 0x83   AC=$00 N=0 Z=0"
        assert lines[2].startswith("$04: LDA 0xC8")
        assert lines[3].startswith("$06: HLT")
        assert lines[3].endswith("AC=$01 N=0 Z=0")

    def test_step_traces(self, emu):
        lines = []
        emu.on_trace = lines.append
        emu.step()
        assert lines == ["$00: LDA 0x83   AC=$00 N=0 Z=0"]

    def test_no_trace_by_default(self, emu):
        emu.run()
        assert emu.on_trace is None


class TestInspection:
    """Test memory access and dumps."""

    def test_dump_memory(self, emu):
        emu.run()
        assert emu.dump_memory() == [
            "$80: 00 01 FF 01 00 00 00 00 00 00 00 00 00 00 00 00",
        ]

    def test_dump_multiple_lines(self, emu):
        lines = emu.dump_memory(0xC0, 0xD2)
        assert len(lines) == 2
        assert lines[1] == "$D0: 00 00"

    def test_dump_temporary_after_run(self, emu):
        emu.run()
        assert emu.dump_memory(0xC8, 0xC9) == ["$C8: 01"]

    def test_dump_out_of_range(self, emu):
        with pytest.raises(EmulatorError):
            emu.dump_memory(0x80, 0x101)
        with pytest.raises(EmulatorError):
            emu.dump_memory(0x90, 0x80)

    def test_read_write(self, emu):
        emu.write_byte(0x90, 0x1FF)
        assert emu.read_byte(0x90) == 0xFF
        assert emu.read_bytes(0x80, 4) == bytes([0x00, 0x01, 0xFF, 0x01])

    def test_disassemble_at(self, emu):
        assert emu.disassemble_at(0x00, 2) == [
            "$00: 20 83  LDA 0x83",
            "$02: 10 C8  STA 0xC8",
        ]

    def test_state(self, emu):
        emu.run()
        state = emu.state
        assert state.ac == 1
        assert state.halted

    def test_repr(self, emu):
        assert repr(emu) == "Emulator(pc=$00, ac=$00, steps=0, halted=False)"
