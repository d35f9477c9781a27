"""
Neander Instruction Set Definition
==================================

This module defines the Neander instruction set with opcodes, mnemonics
and instruction sizes. Neander is an 8-bit educational accumulator
machine with 256 bytes of flat memory shared by code and data.

Encoding
--------
Every opcode lives in the high nibble of the first byte; the low nibble
is reserved and written as 0. Instructions that reference memory carry
one extra byte holding an absolute 8-bit address.

| Mnemonic | Opcode | Size | Operation                      | Flags |
|----------|--------|------|--------------------------------|-------|
| NOP      | $00    | 1    | no operation                   | -     |
| STA addr | $10    | 2    | MEM[addr] <- AC                | -     |
| LDA addr | $20    | 2    | AC <- MEM[addr]                | N Z   |
| ADD addr | $30    | 2    | AC <- AC + MEM[addr] (mod 256) | N Z   |
| OR  addr | $40    | 2    | AC <- AC | MEM[addr]           | N Z   |
| AND addr | $50    | 2    | AC <- AC & MEM[addr]           | N Z   |
| NOT      | $60    | 1    | AC <- ~AC                      | N Z   |
| JMP addr | $80    | 2    | PC <- addr                     | -     |
| JN  addr | $90    | 2    | if N: PC <- addr               | -     |
| JZ  addr | $A0    | 2    | if Z: PC <- addr               | -     |
| HLT      | $F0    | 1    | stop                           | -     |

Both the compiler (which sizes instructions to resolve jump targets),
the encoder, the disassembler and the CPU use this single table so that
they can never disagree about the machine.

Copyright (c) 2026 neander-sdk Contributors
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional


# =============================================================================
# Machine Constants
# =============================================================================

MEMORY_SIZE = 256       # Bytes of flat memory
OPCODE_MASK = 0xF0      # Opcode lives in the high nibble
BYTE_MASK = 0xFF
SIGN_BIT = 0x80


# =============================================================================
# Opcode Enumeration
# =============================================================================

class Opcode(IntEnum):
    """Neander opcodes (high-nibble values, bit-exact)."""
    NOP = 0x00
    STA = 0x10
    LDA = 0x20
    ADD = 0x30
    OR = 0x40
    AND = 0x50
    NOT = 0x60
    JMP = 0x80
    JN = 0x90
    JZ = 0xA0
    HLT = 0xF0


# =============================================================================
# Instruction Information
# =============================================================================

@dataclass(frozen=True)
class InstructionInfo:
    """
    Information about a single instruction encoding.

    Attributes:
        opcode: The opcode byte
        size: Total instruction size in bytes (1 or 2)
        has_operand: True if an address byte follows the opcode
        updates_flags: True if N and Z are recomputed after execution
        is_branch: True if the operand is a code address
    """
    opcode: Opcode
    size: int
    has_operand: bool
    updates_flags: bool = False
    is_branch: bool = False

    @property
    def mnemonic(self) -> str:
        return self.opcode.name

    def __repr__(self) -> str:
        return f"InstructionInfo({self.mnemonic}, opcode=${self.opcode:02X}, size={self.size})"


INSTRUCTION_TABLE: dict[Opcode, InstructionInfo] = {
    Opcode.NOP: InstructionInfo(Opcode.NOP, 1, False),
    Opcode.STA: InstructionInfo(Opcode.STA, 2, True),
    Opcode.LDA: InstructionInfo(Opcode.LDA, 2, True, updates_flags=True),
    Opcode.ADD: InstructionInfo(Opcode.ADD, 2, True, updates_flags=True),
    Opcode.OR: InstructionInfo(Opcode.OR, 2, True, updates_flags=True),
    Opcode.AND: InstructionInfo(Opcode.AND, 2, True, updates_flags=True),
    Opcode.NOT: InstructionInfo(Opcode.NOT, 1, False, updates_flags=True),
    Opcode.JMP: InstructionInfo(Opcode.JMP, 2, True, is_branch=True),
    Opcode.JN: InstructionInfo(Opcode.JN, 2, True, is_branch=True),
    Opcode.JZ: InstructionInfo(Opcode.JZ, 2, True, is_branch=True),
    Opcode.HLT: InstructionInfo(Opcode.HLT, 1, False),
}

MNEMONICS: frozenset[str] = frozenset(op.name for op in Opcode)


# =============================================================================
# Lookup Functions
# =============================================================================

def get_instruction_info(opcode: int) -> Optional[InstructionInfo]:
    """
    Look up instruction information by opcode byte.

    The low nibble is ignored, as on the real machine.

    Returns:
        InstructionInfo if the opcode is defined, None otherwise
    """
    try:
        return INSTRUCTION_TABLE[Opcode(opcode & OPCODE_MASK)]
    except ValueError:
        return None


def lookup_mnemonic(mnemonic: str) -> Optional[InstructionInfo]:
    """Look up instruction information by (case-insensitive) mnemonic."""
    name = mnemonic.upper()
    if name not in MNEMONICS:
        return None
    return INSTRUCTION_TABLE[Opcode[name]]
