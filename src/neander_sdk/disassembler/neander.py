"""
Neander Disassembler
====================

Decodes Neander machine code back into assembly mnemonics. This is the
inverse of the encoder and is used for execution traces and listings.

Only the high nibble of an opcode byte selects the instruction, so a byte
such as $21 decodes as LDA. Bytes whose high nibble is not a Neander
opcode ($70, $B0-$E0) are shown as data.

Usage:
    disasm = NeanderDisassembler()
    for instr in disasm.disassemble(image, count=5):
        print(instr)

    $00: 20 80  LDA 0x80

Copyright (c) 2026 neander-sdk Contributors
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from neander_sdk.cpu import get_instruction_info


@dataclass
class DisassembledInstruction:
    """
    A single decoded Neander instruction.

    Attributes:
        address: Memory address of the instruction
        opcode: The raw opcode byte
        mnemonic: Instruction mnemonic, or ".BYTE" for unknown opcodes
        operand: Address operand (None if the instruction has none)
        size: Instruction size in bytes
        raw_bytes: All bytes comprising this instruction
        comment: Optional annotation (symbol name of the operand)
    """
    address: int
    opcode: int
    mnemonic: str
    operand: Optional[int]
    size: int
    raw_bytes: bytes
    comment: str = ""

    @property
    def text(self) -> str:
        """Assembly text in the compiler's output syntax."""
        if self.mnemonic == ".BYTE":
            return f".BYTE 0x{self.opcode:X}"
        if self.operand is None:
            return self.mnemonic
        return f"{self.mnemonic} 0x{self.operand:X}"

    def __str__(self) -> str:
        hex_bytes = " ".join(f"{b:02X}" for b in self.raw_bytes).ljust(5)
        if self.comment:
            return f"${self.address:02X}: {hex_bytes}  {self.text:<12} ; {self.comment}"
        return f"${self.address:02X}: {hex_bytes}  {self.text}"


class NeanderDisassembler:
    """
    Disassembler for Neander machine code.

    Args:
        symbol_table: Optional mapping of addresses to names, used to
                      annotate operands
    """

    def __init__(self, symbol_table: Optional[Dict[int, str]] = None):
        self._symbol_table = symbol_table or {}

    def disassemble_one(self, data: bytes, address: int = 0) -> DisassembledInstruction:
        """
        Decode the instruction at ``address``.

        Operand fetches wrap around the end of ``data`` the way the CPU's
        program counter does.

        Raises:
            ValueError: If data is empty or address is out of range
        """
        if not 0 <= address < len(data):
            raise ValueError(f"Address {address} beyond data length {len(data)}")

        opcode = data[address]
        info = get_instruction_info(opcode)
        if info is None:
            return DisassembledInstruction(
                address=address,
                opcode=opcode,
                mnemonic=".BYTE",
                operand=None,
                size=1,
                raw_bytes=bytes([opcode]),
                comment="unknown opcode",
            )

        if not info.has_operand:
            return DisassembledInstruction(
                address, opcode, info.mnemonic, None, 1, bytes([opcode])
            )

        operand = data[(address + 1) % len(data)]
        return DisassembledInstruction(
            address=address,
            opcode=opcode,
            mnemonic=info.mnemonic,
            operand=operand,
            size=info.size,
            raw_bytes=bytes([opcode, operand]),
            comment=self._symbol_table.get(operand, ""),
        )

    def disassemble(
        self,
        data: bytes,
        start_address: int = 0,
        count: Optional[int] = None,
        end_address: Optional[int] = None,
    ) -> List[DisassembledInstruction]:
        """
        Decode consecutive instructions.

        Args:
            data: Memory image
            start_address: Address of the first instruction
            count: Maximum number of instructions (None = no limit)
            end_address: Stop before this address (None = end of data)
        """
        end = len(data) if end_address is None else min(end_address, len(data))
        result = []
        address = start_address

        while address < end:
            if count is not None and len(result) >= count:
                break
            instr = self.disassemble_one(data, address)
            result.append(instr)
            address += instr.size

        return result

    def disassemble_to_text(
        self,
        data: bytes,
        start_address: int = 0,
        count: Optional[int] = None,
        end_address: Optional[int] = None,
    ) -> str:
        """Disassemble and return a multi-line listing."""
        instructions = self.disassemble(data, start_address, count, end_address)
        return "\n".join(str(instr) for instr in instructions)

    def add_symbols(self, symbols: Dict[int, str]) -> None:
        """Add address annotations."""
        self._symbol_table.update(symbols)


def code_length(data: bytes, start_address: int = 0) -> int:
    """
    Length of the code starting at ``start_address``, up to and including
    the first HLT. Returns the remaining length if there is no HLT.
    """
    address = start_address
    disasm = NeanderDisassembler()
    while address < len(data):
        instr = disasm.disassemble_one(data, address)
        address += instr.size
        if instr.mnemonic == "HLT":
            break
    return min(address, len(data)) - start_address
