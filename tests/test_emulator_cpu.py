"""
Neander CPU Unit Tests
======================

Tests for the Neander CPU emulator, covering:
- Every instruction
- N and Z flag behavior
- Branches, HLT and unknown opcodes
- Program counter and operand wrap-around
- The on_instruction hook and step budget
"""

import pytest

from neander_sdk.cpu import INSTRUCTION_TABLE, Opcode
from neander_sdk.emulator import CPUState, Memory, NeanderCPU
from neander_sdk.errors import ImageFormatError


def make_cpu(code, data=None) -> NeanderCPU:
    """CPU with code loaded at $00 and data cells poked into memory."""
    memory = Memory()
    memory.load(bytes(code))
    for address, value in (data or {}).items():
        memory.write(address, value)
    return NeanderCPU(memory)


# =============================================================================
# Data Movement and Arithmetic
# =============================================================================

class TestLoadStore:
    """Test LDA and STA."""

    def test_lda(self):
        cpu = make_cpu([0x20, 0x80, 0xF0], {0x80: 0x2A})
        cpu.execute()
        assert cpu.ac == 0x2A
        assert not cpu.flag_n
        assert not cpu.flag_z

    def test_lda_zero_sets_z(self):
        cpu = make_cpu([0x20, 0x80, 0xF0])
        cpu.execute()
        assert cpu.flag_z
        assert not cpu.flag_n

    def test_lda_negative_sets_n(self):
        cpu = make_cpu([0x20, 0x80, 0xF0], {0x80: 0x80})
        cpu.execute()
        assert cpu.flag_n
        assert not cpu.flag_z

    def test_sta(self):
        cpu = make_cpu([0x20, 0x80, 0x10, 0x81, 0xF0], {0x80: 7})
        cpu.execute()
        assert cpu.memory.read(0x81) == 7

    def test_sta_leaves_flags(self):
        cpu = make_cpu([0x20, 0x80, 0x10, 0x81, 0xF0])
        cpu.execute()
        assert cpu.flag_z


class TestArithmeticLogic:
    """Test ADD, OR, AND and NOT."""

    def test_add(self):
        cpu = make_cpu([0x20, 0x80, 0x30, 0x81, 0xF0], {0x80: 40, 0x81: 2})
        cpu.execute()
        assert cpu.ac == 42

    def test_add_wraps(self):
        cpu = make_cpu([0x20, 0x80, 0x30, 0x81, 0xF0], {0x80: 0xF0, 0x81: 0x20})
        cpu.execute()
        assert cpu.ac == 0x10
        assert not cpu.flag_n

    def test_add_to_zero(self):
        cpu = make_cpu([0x20, 0x80, 0x30, 0x81, 0xF0], {0x80: 1, 0x81: 0xFF})
        cpu.execute()
        assert cpu.ac == 0
        assert cpu.flag_z

    def test_or(self):
        cpu = make_cpu([0x20, 0x80, 0x40, 0x81, 0xF0], {0x80: 0x0F, 0x81: 0xF0})
        cpu.execute()
        assert cpu.ac == 0xFF
        assert cpu.flag_n

    def test_and(self):
        cpu = make_cpu([0x20, 0x80, 0x50, 0x81, 0xF0], {0x80: 0x0F, 0x81: 0xF0})
        cpu.execute()
        assert cpu.ac == 0
        assert cpu.flag_z

    def test_not(self):
        cpu = make_cpu([0x20, 0x80, 0x60, 0xF0], {0x80: 0x0F})
        cpu.execute()
        assert cpu.ac == 0xF0
        assert cpu.flag_n

    def test_twos_complement_negation(self):
        """NOT then ADD 1 negates."""
        cpu = make_cpu([0x20, 0x80, 0x60, 0x30, 0x81, 0xF0], {0x80: 5, 0x81: 1})
        cpu.execute()
        assert cpu.ac == 251

    def test_nop(self):
        cpu = make_cpu([0x00, 0xF0])
        assert cpu.execute() == 2
        assert cpu.pc == 1


# =============================================================================
# Control Flow
# =============================================================================

class TestBranches:
    """Test JMP, JN and JZ."""

    def test_jmp(self):
        cpu = make_cpu([0x80, 0x04, 0x00, 0x00, 0xF0])
        cpu.execute()
        assert cpu.pc == 4
        assert cpu.steps == 2

    def test_jn_taken(self):
        # LDA $80 (negative); JN $06; NOP; NOP; HLT at $06
        cpu = make_cpu([0x20, 0x80, 0x90, 0x06, 0x00, 0x00, 0xF0], {0x80: 0xFE})
        cpu.execute()
        assert cpu.pc == 6
        assert cpu.steps == 3

    def test_jn_not_taken(self):
        cpu = make_cpu([0x20, 0x80, 0x90, 0x06, 0xF0, 0x00, 0xF0], {0x80: 1})
        cpu.execute()
        assert cpu.pc == 4

    def test_jz_taken(self):
        cpu = make_cpu([0x20, 0x80, 0xA0, 0x06, 0xF0, 0x00, 0xF0])
        cpu.execute()
        assert cpu.pc == 6

    def test_jz_not_taken(self):
        cpu = make_cpu([0x20, 0x80, 0xA0, 0x06, 0xF0, 0x00, 0xF0], {0x80: 3})
        cpu.execute()
        assert cpu.pc == 4

    def test_jumps_leave_flags(self):
        cpu = make_cpu([0x20, 0x80, 0x80, 0x04, 0xF0], {0x80: 0x90})
        cpu.execute()
        assert cpu.flag_n


class TestHalt:
    """Test HLT behavior."""

    def test_pc_stays_on_hlt(self):
        cpu = make_cpu([0x00, 0x00, 0xF0])
        cpu.execute()
        assert cpu.halted
        assert cpu.pc == 2

    def test_execute_after_halt_does_nothing(self):
        cpu = make_cpu([0xF0])
        cpu.execute()
        assert cpu.execute() == 0
        assert cpu.steps == 1

    def test_step_after_halt(self):
        cpu = make_cpu([0xF0])
        cpu.step()
        cpu.step()
        assert cpu.steps == 1
        assert cpu.pc == 0


class TestDecoding:
    """Test opcode decoding details."""

    def test_low_nibble_ignored(self):
        cpu = make_cpu([0x2F, 0x80, 0xF3], {0x80: 9})
        cpu.execute()
        assert cpu.ac == 9
        assert cpu.halted

    def test_unknown_opcode_skipped(self, caplog):
        cpu = make_cpu([0x70, 0xB0, 0xF0])
        cpu.execute()
        assert cpu.halted
        assert cpu.pc == 2
        assert cpu.anomalies == 2
        assert cpu.steps == 3
        assert "unknown opcode $70 at $00" in caplog.text

    def test_pc_wraps(self):
        memory = Memory()
        memory.write(0xFF, 0x00)   # NOP
        memory.write(0x00, 0xF0)   # HLT
        cpu = NeanderCPU(memory)
        cpu.pc = 0xFF
        cpu.execute()
        assert cpu.pc == 0
        assert cpu.steps == 2

    def test_operand_fetch_wraps(self):
        memory = Memory()
        memory.write(0xFF, 0x20)   # LDA, operand at $00
        memory.write(0x00, 0x80)
        memory.write(0x80, 0x33)
        cpu = NeanderCPU(memory)
        cpu.pc = 0xFF
        cpu.step()
        assert cpu.ac == 0x33
        assert cpu.pc == 1


class TestFlagUpdates:
    """Test that N and Z follow the instruction table."""

    def test_flag_setting_instructions(self):
        setting = {op for op, info in INSTRUCTION_TABLE.items() if info.updates_flags}
        assert setting == {Opcode.LDA, Opcode.ADD, Opcode.OR, Opcode.AND, Opcode.NOT}

    @pytest.mark.parametrize("opcode", [
        Opcode.NOP, Opcode.STA, Opcode.JMP, Opcode.JN, Opcode.JZ, Opcode.HLT,
    ])
    def test_other_instructions_keep_flags(self, opcode):
        cpu = make_cpu([opcode, 0x80])
        cpu.ac = 0x05
        cpu.state.flag_n = True
        cpu.state.flag_z = True
        cpu.step()
        assert cpu.flag_n
        assert cpu.flag_z

    @pytest.mark.parametrize("opcode", [
        Opcode.LDA, Opcode.ADD, Opcode.OR, Opcode.AND, Opcode.NOT,
    ])
    def test_flag_setting_instructions_recompute(self, opcode):
        cpu = make_cpu([opcode, 0x80], {0x80: 0x05})
        cpu.ac = 0x05
        cpu.state.flag_n = True
        cpu.state.flag_z = True
        cpu.step()
        assert cpu.flag_n == bool(cpu.ac & 0x80)
        assert cpu.flag_z == (cpu.ac == 0)


# =============================================================================
# Execution Control
# =============================================================================

class TestExecution:
    """Test the step budget, the hook and reset."""

    def test_max_steps(self):
        cpu = make_cpu([0x80, 0x00])   # JMP $00 forever
        assert cpu.execute(10) == 10
        assert not cpu.halted
        assert cpu.steps == 10

    def test_hook_sees_each_instruction(self):
        cpu = make_cpu([0x00, 0x60, 0xF0])
        seen = []
        cpu.on_instruction = lambda pc, opcode: seen.append((pc, opcode)) or True
        cpu.execute()
        assert seen == [(0, 0x00), (1, 0x60), (2, 0xF0)]

    def test_hook_can_stop(self):
        cpu = make_cpu([0x00, 0x00, 0x00, 0xF0])
        cpu.on_instruction = lambda pc, opcode: pc != 2
        assert cpu.execute() == 2
        assert cpu.pc == 2
        assert not cpu.halted

    def test_step_bypasses_hook(self):
        cpu = make_cpu([0x00, 0xF0])
        cpu.on_instruction = lambda pc, opcode: False
        cpu.step()
        assert cpu.pc == 1

    def test_register_setters_mask(self):
        cpu = make_cpu([])
        cpu.ac = 0x1FF
        cpu.pc = 0x102
        assert cpu.ac == 0xFF
        assert cpu.pc == 0x02

    def test_reset(self):
        cpu = make_cpu([0x20, 0x80, 0xF0], {0x80: 0x80})
        cpu.execute()
        cpu.reset()
        assert cpu.state == CPUState()
        assert cpu.steps == 0
        assert cpu.anomalies == 0
        # memory is kept
        assert cpu.memory.read(0x80) == 0x80


# =============================================================================
# Memory
# =============================================================================

class TestMemory:
    """Test the flat memory."""

    def test_read_write_wrap(self):
        memory = Memory()
        memory.write(0x100, 5)
        assert memory.read(0x00) == 5
        assert memory.read(0x100) == 5

    def test_write_masks_value(self):
        memory = Memory()
        memory.write(0x10, 0x1AB)
        assert memory.read(0x10) == 0xAB

    def test_load_and_dump(self):
        memory = Memory(16)
        memory.load(b"\x01\x02", address=4)
        assert memory.dump(3, 7) == b"\x00\x01\x02\x00"
        assert len(memory.dump()) == 16 == len(memory)

    def test_load_too_large(self):
        with pytest.raises(ImageFormatError):
            Memory(4).load(bytes(5))

    def test_clear(self):
        memory = Memory()
        memory.write(0x80, 1)
        memory.clear()
        assert memory.dump() == bytes(256)

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            Memory(0)
