"""
Neander Compiler Main Module
============================

This module provides the main compiler interface. It orchestrates the
complete compilation process:

    Source → Lex → Parse + Generate → Assembly / Image

Usage
-----
Command line:
    $ ndcc program.txt -o program.asm

Programmatic:
    >>> from neander_sdk.compiler import compile_source
    >>> asm = compile_source('PROGRAM "p": BEGIN RES = 6 * 7 END')

Each compilation works on its own CompilationUnit, so a Compiler can be
reused and compiling the same source twice gives identical output.

Error Handling
--------------
Syntax errors do not stop the parser; they are collected and returned in
the CompilerResult together with the instructions generated so far. A
full table (symbols, temporaries, instructions, code space) aborts the
compilation. In both cases ``success`` is False and neither assembly text
nor an image is produced.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from neander_sdk.cpu import MEMORY_SIZE
from neander_sdk.compiler.codegen import CompilationUnit, CodeGenerator, Instruction
from neander_sdk.compiler.errors import (
    CompilerError,
    CompilationError,
    ErrorCollector,
)
from neander_sdk.compiler.lexer import Lexer
from neander_sdk.compiler.parser import Parser
from neander_sdk.compiler.symbols import Symbol


logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        data_base: First address of the symbol region (code must end below it)
        temp_base: First address of the temporary region
        code_base: Address of the first instruction
        memory_size: Size of target memory in bytes
        max_symbols: Capacity of the symbol table
        max_instructions: Capacity of the instruction buffer
        max_errors: Syntax errors collected before the parser gives up
    """
    data_base: int = 0x80
    temp_base: int = 0xC8
    code_base: int = 0x00
    memory_size: int = MEMORY_SIZE
    max_symbols: int = 100
    max_instructions: int = 1000
    max_errors: int = 100

    def __post_init__(self):
        if not (self.code_base < self.data_base < self.temp_base <= self.memory_size):
            raise ValueError(
                "memory layout must satisfy code_base < data_base < temp_base <= memory_size"
            )


@dataclass
class CompilerResult:
    """
    Result of a compilation.

    Attributes:
        filename: Source filename
        success: True if compilation succeeded
        program_name: Name given in the PROGRAM header (if it parsed)
        assembly: Generated .DATA/.CODE text (only on success)
        image: Flat memory image (only on success)
        instructions: Generated instructions, partial when compilation failed
        symbols: Symbol table entries in address order
        errors: Compiler errors
        warnings: Warning messages
    """
    filename: str = ""
    success: bool = False
    program_name: Optional[str] = None
    assembly: Optional[str] = None
    image: Optional[bytes] = None
    instructions: list[Instruction] = field(default_factory=list)
    symbols: list[Symbol] = field(default_factory=list)
    errors: list[CompilerError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def symbol(self, name: str) -> Optional[Symbol]:
        """Find a symbol by name, preferring a program variable over a constant."""
        matches = [symbol for symbol in self.symbols if symbol.name == name]
        matches.sort(key=lambda symbol: symbol.is_synthetic)
        return matches[0] if matches else None

    def report(self) -> str:
        """Formatted errors and warnings."""
        collector = ErrorCollector()
        collector.errors.extend(self.errors)
        collector.warnings.extend(self.warnings)
        return collector.report()

    def raise_if_failed(self) -> None:
        """Raise a CompilationError if the compilation failed."""
        if not self.success:
            raise CompilationError(self.report())

    def listing(self) -> str:
        """
        Address-annotated listing of the generated code.

        Example line::

            $04  10 C8   STA 0xC8
        """
        lines = []
        for instruction in self.instructions:
            if instruction.is_resolved:
                encoded = " ".join(f"{b:02X}" for b in instruction.encode())
                text = instruction.to_assembly()
            else:
                encoded = f"{int(instruction.opcode):02X} ??"
                text = f"{instruction.opcode.name} ?"
            lines.append(f"${instruction.address:02X}  {encoded:<6} {text}")
        return "\n".join(lines) + "\n" if lines else ""


class Compiler:
    """
    Compiler for the Neander source language.

    Example:
        compiler = Compiler()
        result = compiler.compile_file("program.txt")
        if result.success:
            print(result.assembly)

    Attributes:
        options: Compiler configuration options
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()

    def compile_source(self, source: str, filename: str = "<input>") -> CompilerResult:
        """
        Compile program source.

        Args:
            source: Program source text
            filename: Source filename for error messages

        Returns:
            CompilerResult with the outcome and diagnostics
        """
        opts = self.options
        errors = ErrorCollector(opts.max_errors)
        unit = CompilationUnit.create(
            data_base=opts.data_base,
            temp_base=opts.temp_base,
            code_base=opts.code_base,
            memory_size=opts.memory_size,
            max_symbols=opts.max_symbols,
            max_instructions=opts.max_instructions,
        )
        result = CompilerResult(filename=filename)
        lexer = Lexer(source, filename)

        try:
            gen = CodeGenerator(unit)
            parsed = Parser(lexer, gen, errors).parse()
            if parsed:
                gen.finish()
        except CompilerError as e:
            # Resource exhaustion or a generator failure ends the compilation
            logger.debug(f"compilation aborted: {e.message}")
            errors.add(e)
            parsed = False

        for token in lexer.skipped:
            errors.add_warning(f"skipped unrecognized character {token.text!r}", token.location)

        result.success = parsed and not errors.has_errors()
        result.program_name = unit.program_name
        result.instructions = list(unit.code)
        result.symbols = list(unit.symbols)
        result.errors = list(errors.errors)
        result.warnings = list(errors.warnings)

        if result.success:
            result.assembly = unit.to_assembly()
            result.image = unit.to_image()
            logger.debug(
                f"compiled {filename}: {len(unit.code)} instructions, "
                f"{unit.code.size_bytes} code bytes, {len(unit.symbols)} symbols, "
                f"{len(unit.temps)} temporaries"
            )
        else:
            logger.debug(f"compilation of {filename} failed with {errors.error_count()} error(s)")

        return result

    def compile_file(self, filepath: str) -> CompilerResult:
        """
        Compile a source file.

        Raises:
            FileNotFoundError: If the source file does not exist
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {filepath}")
        return self.compile_source(path.read_text(encoding="utf-8"), str(filepath))


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_source(
    source: str,
    filename: str = "<input>",
    options: Optional[CompilerOptions] = None,
) -> str:
    """
    Compile program source to Neander assembly text.

    Raises:
        CompilationError: If compilation fails

    Example:
        >>> asm = compile_source('PROGRAM "p": BEGIN x = 1 END')
        >>> asm.splitlines()[0]
        '.DATA'
    """
    result = Compiler(options).compile_source(source, filename)
    result.raise_if_failed()
    return result.assembly


def compile_file(filepath: str, output_path: Optional[str] = None) -> str:
    """
    Compile a source file to Neander assembly text, optionally writing it.

    Raises:
        CompilationError: If compilation fails
        FileNotFoundError: If the source file does not exist
    """
    result = Compiler().compile_file(filepath)
    result.raise_if_failed()
    if output_path:
        Path(output_path).write_text(result.assembly, encoding="utf-8")
    return result.assembly
