"""
Neander SDK Error Hierarchy
===========================

This module defines the exception hierarchy for the entire Neander SDK.
All exceptions inherit from NeanderError, allowing callers to catch all
SDK-related errors with a single except clause if desired.

Exception Hierarchy
-------------------
NeanderError (base)
├── CompilerError (compiler-related, see neander_sdk.compiler.errors)
├── AssemblerError (encoder-related)
│   └── AssemblySyntaxError - malformed .DATA/.CODE line
└── EmulatorError (executor-related)
    └── ImageFormatError - memory image has the wrong size or header

Design Philosophy
-----------------
Each exception captures source location information (filename, line, column)
when applicable. This allows for detailed error messages that help users
quickly locate and fix issues in their source code.

Error messages follow this format:
    filename:line:column: error: description
    source_line_text
        ^ (pointer to error location)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class NeanderError(Exception):
    """
    Base exception for all Neander SDK errors.

    All exceptions in the SDK inherit from this class, allowing callers
    to catch all SDK-related errors with a single except clause:

        try:
            image = assemble(text)
        except NeanderError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Used by the compiler and the encoder to track where tokens, lines
    and errors occur. The frozen design ensures locations cannot be
    accidentally modified.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        offset: Character offset from the start of the source (0-indexed)
    """
    filename: str
    line: int
    column: int
    offset: int = 0

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


def format_diagnostic(
    message: str,
    location: Optional[SourceLocation] = None,
    hint: Optional[str] = None,
    source_line: Optional[str] = None,
) -> str:
    """
    Format a diagnostic with location, source context, and hint.

    Example output:
        prog.txt:3:9: error: expected '='
            x 5 + 1
              ^
        hint: assignments have the form NAME = expression
    """
    parts = []

    if location:
        parts.append(f"{location}: error: {message}")
    else:
        parts.append(f"error: {message}")

    # Source context with caret pointer
    if source_line is not None and location is not None:
        parts.append(f"    {source_line}")
        if location.column > 0:
            padding = " " * (4 + location.column - 1)
            parts.append(f"{padding}^")

    if hint:
        parts.append(f"hint: {hint}")

    return "\n".join(parts)


# =============================================================================
# Assembler (Encoder) Exceptions
# =============================================================================

class AssemblerError(NeanderError):
    """
    Base exception for all encoder-related errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The actual source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(format_diagnostic(message, location, hint, source_line))


class AssemblySyntaxError(AssemblerError):
    """
    Syntax error in textual assembly.

    Examples:
        - Unknown mnemonic
        - Missing or malformed operand
        - Line outside of a .DATA/.CODE section
        - Address outside of machine memory
    """
    pass


# =============================================================================
# Emulator Exceptions
# =============================================================================

class EmulatorError(NeanderError):
    """Base exception for executor errors (bad configuration or input)."""
    pass


class ImageFormatError(EmulatorError):
    """
    Memory image cannot be loaded.

    Raised when an image is larger than machine memory or a Neander
    .mem file has a damaged header or odd length.
    """
    pass
