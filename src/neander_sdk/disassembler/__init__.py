"""
Neander SDK Disassembler Module
===============================

Decodes Neander memory images into assembly listings, for execution
traces and for inspecting compiler output.

Usage:
    from neander_sdk.disassembler import NeanderDisassembler

    disasm = NeanderDisassembler()
    print(disasm.disassemble_to_text(image, end_address=0x20))

Copyright (c) 2026 neander-sdk Contributors
"""

from .neander import NeanderDisassembler, DisassembledInstruction, code_length

__all__ = [
    "NeanderDisassembler",
    "DisassembledInstruction",
    "code_length",
]
