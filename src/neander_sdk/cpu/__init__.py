"""
Neander SDK CPU Package
=======================

This package contains the Neander architecture definitions used by every
tool in the SDK: the compiler (to size instructions when resolving jump
targets), the encoder, the disassembler and the emulator.

Keeping the instruction set in one place guarantees that the tools agree
on opcodes and instruction sizes.

Usage:
    from neander_sdk.cpu import Opcode, get_instruction_info, MEMORY_SIZE

Copyright (c) 2026 neander-sdk Contributors
"""

from neander_sdk.cpu.neander import (
    # Machine constants
    MEMORY_SIZE,
    OPCODE_MASK,
    BYTE_MASK,
    SIGN_BIT,
    # Core types
    Opcode,
    InstructionInfo,
    # Instruction database
    INSTRUCTION_TABLE,
    MNEMONICS,
    # Lookup functions
    get_instruction_info,
    lookup_mnemonic,
)

__all__ = [
    "MEMORY_SIZE",
    "OPCODE_MASK",
    "BYTE_MASK",
    "SIGN_BIT",
    "Opcode",
    "InstructionInfo",
    "INSTRUCTION_TABLE",
    "MNEMONICS",
    "get_instruction_info",
    "lookup_mnemonic",
]
