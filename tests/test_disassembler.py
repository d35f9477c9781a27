"""
Unit Tests for the Disassembler Module
======================================

Tests for the Neander machine code disassembler.

Test coverage includes:
- Every instruction and its size
- Symbol annotations
- Unknown opcodes and operand wrap-around
- Range and count limits
- Code length detection
"""

import pytest

from neander_sdk.assembler import assemble
from neander_sdk.disassembler import (
    DisassembledInstruction,
    NeanderDisassembler,
    code_length,
)


class TestDisassembleOne:
    """Test decoding of single instructions."""

    def setup_method(self):
        self.disasm = NeanderDisassembler()

    def test_two_byte_instruction(self):
        instr = self.disasm.disassemble_one(bytes([0x20, 0x80]))
        assert isinstance(instr, DisassembledInstruction)
        assert instr.mnemonic == "LDA"
        assert instr.operand == 0x80
        assert instr.size == 2
        assert instr.raw_bytes == bytes([0x20, 0x80])
        assert instr.text == "LDA 0x80"
        assert str(instr) == "$00: 20 80  LDA 0x80"

    def test_one_byte_instruction(self):
        instr = self.disasm.disassemble_one(bytes([0x00, 0x60]), 1)
        assert instr.mnemonic == "NOT"
        assert instr.operand is None
        assert instr.size == 1
        assert str(instr) == "$01: 60     NOT"

    @pytest.mark.parametrize("byte,mnemonic,size", [
        (0x00, "NOP", 1),
        (0x10, "STA", 2),
        (0x20, "LDA", 2),
        (0x30, "ADD", 2),
        (0x40, "OR", 2),
        (0x50, "AND", 2),
        (0x60, "NOT", 1),
        (0x80, "JMP", 2),
        (0x90, "JN", 2),
        (0xA0, "JZ", 2),
        (0xF0, "HLT", 1),
    ])
    def test_instruction_set(self, byte, mnemonic, size):
        instr = self.disasm.disassemble_one(bytes([byte, 0x00]))
        assert instr.mnemonic == mnemonic
        assert instr.size == size

    def test_low_nibble_ignored(self):
        assert self.disasm.disassemble_one(bytes([0x35, 0x10])).mnemonic == "ADD"

    @pytest.mark.parametrize("byte", [0x70, 0xB0, 0xC0, 0xD0, 0xE0])
    def test_unknown_opcode(self, byte):
        instr = self.disasm.disassemble_one(bytes([byte]))
        assert instr.mnemonic == ".BYTE"
        assert instr.size == 1
        assert instr.text == f".BYTE 0x{byte:X}"
        assert instr.comment == "unknown opcode"

    def test_operand_wraps(self):
        data = bytearray(256)
        data[0xFF] = 0x80
        data[0x00] = 0x42
        instr = self.disasm.disassemble_one(bytes(data), 0xFF)
        assert instr.operand == 0x42

    def test_address_out_of_range(self):
        with pytest.raises(ValueError):
            self.disasm.disassemble_one(bytes([0xF0]), 1)
        with pytest.raises(ValueError):
            self.disasm.disassemble_one(b"")


class TestSymbols:
    """Test operand annotations."""

    def test_symbol_comment(self):
        disasm = NeanderDisassembler({0x80: "_zero"})
        instr = disasm.disassemble_one(bytes([0x20, 0x80]))
        assert instr.comment == "_zero"
        assert str(instr) == "$00: 20 80  LDA 0x80     ; _zero"

    def test_add_symbols(self):
        disasm = NeanderDisassembler()
        disasm.add_symbols({0x84: "x"})
        assert disasm.disassemble_one(bytes([0x10, 0x84])).comment == "x"


class TestDisassembleRange:
    """Test decoding of instruction sequences."""

    IMAGE = assemble(".CODE\nLDA 0x80\nNOT\nADD 0x81\nSTA 0x82\nHLT\n")

    def test_sequence_addresses(self):
        instrs = NeanderDisassembler().disassemble(self.IMAGE, end_address=8)
        assert [(i.address, i.text) for i in instrs] == [
            (0, "LDA 0x80"),
            (2, "NOT"),
            (3, "ADD 0x81"),
            (5, "STA 0x82"),
            (7, "HLT"),
        ]

    def test_count(self):
        instrs = NeanderDisassembler().disassemble(self.IMAGE, count=2)
        assert [i.mnemonic for i in instrs] == ["LDA", "NOT"]

    def test_start_address(self):
        instrs = NeanderDisassembler().disassemble(self.IMAGE, 3, count=1)
        assert instrs[0].text == "ADD 0x81"

    def test_to_text(self):
        text = NeanderDisassembler().disassemble_to_text(self.IMAGE, count=2)
        assert text == "$00: 20 80  LDA 0x80\n$02: 60     NOT"

    def test_whole_image(self):
        instrs = NeanderDisassembler().disassemble(self.IMAGE)
        # trailing zero bytes decode as NOP
        assert instrs[-1].address == 255
        assert instrs[-1].mnemonic == "NOP"

    def test_empty(self):
        assert NeanderDisassembler().disassemble(b"") == []


class TestCodeLength:
    """Test detection of the end of a program."""

    def test_up_to_hlt(self):
        image = assemble(".CODE\nLDA 0x80\nNOT\nHLT\n.DATA\n0x80 0xF0\n")
        assert code_length(image) == 4

    def test_from_start_address(self):
        image = assemble(".CODE\nNOP\nNOP\nLDA 0x80\nHLT\n")
        assert code_length(image, 2) == 3

    def test_without_hlt(self):
        assert code_length(bytes([0x00, 0x00, 0x20])) == 3
