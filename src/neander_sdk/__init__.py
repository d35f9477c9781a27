"""
Neander SDK - Compiler and Emulator for the Neander Machine
===========================================================

This package provides a small toolchain for the Neander, an 8-bit
educational accumulator machine with 256 bytes of memory and eleven
instructions.

Main Components
---------------
- **compiler**: Neander source compiler (ndcc)
    Compiles PROGRAM/BEGIN/END programs with arithmetic assignments to
    .DATA/.CODE assembly, synthesizing multiplication, division and
    subtraction from add, complement and conditional jumps

- **assembler**: Encoder (ndasm)
    Converts assembly text to memory images (raw, .mem, bit-text)

- **emulator**: Neander emulator (ndemu)
    Executes memory images under a step budget, with breakpoints and tracing

- **disassembler**: Decodes memory images back to mnemonics

Quick Start
-----------
Compile, encode and run a program:
    >>> from neander_sdk import Compiler, Assembler, Emulator
    >>> result = Compiler().compile_source('''
    ... PROGRAM "demo":
    ... BEGIN
    ...     x = 6
    ...     y = 7
    ...     RES = x * y
    ... END
    ... ''')
    >>> image = Assembler().assemble_string(result.assembly)
    >>> emu = Emulator()
    >>> emu.load_image(image)
    >>> emu.run().reason.name
    'HALTED'
    >>> emu.registers["ac"]
    42

Or use the command-line tools:
    $ ndcc demo.txt -o demo.asm
    $ ndasm demo.asm -o demo.bin
    $ ndemu demo.bin
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from neander_sdk.errors import (
    NeanderError,
    SourceLocation,
    AssemblerError,
    AssemblySyntaxError,
    EmulatorError,
    ImageFormatError,
)
from neander_sdk.compiler import (
    Compiler,
    CompilerOptions,
    CompilerResult,
    CompilerError,
    CompilationError,
    compile_source,
)
from neander_sdk.assembler import Assembler, ImageFormat, assemble
from neander_sdk.emulator import Emulator, EmulatorConfig, BreakReason
from neander_sdk.disassembler import NeanderDisassembler

__all__ = [
    "__version__",
    # Errors
    "NeanderError",
    "SourceLocation",
    "AssemblerError",
    "AssemblySyntaxError",
    "EmulatorError",
    "ImageFormatError",
    # Compiler
    "Compiler",
    "CompilerOptions",
    "CompilerResult",
    "CompilerError",
    "CompilationError",
    "compile_source",
    # Assembler
    "Assembler",
    "ImageFormat",
    "assemble",
    # Emulator
    "Emulator",
    "EmulatorConfig",
    "BreakReason",
    # Disassembler
    "NeanderDisassembler",
]
