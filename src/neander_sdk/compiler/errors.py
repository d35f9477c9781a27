"""
Compiler Error Hierarchy
========================

This module defines the exception hierarchy for the Neander compiler.
All exceptions inherit from CompilerError, which itself inherits from
the base NeanderError for consistent error handling across the SDK.

Exception Hierarchy
-------------------
CompilerError (base for all compiler errors)
├── CompilerSyntaxError - grammar mismatch
│   ├── UnexpectedTokenError - token cannot start the expected construct
│   └── MissingTokenError - required keyword or punctuation absent
├── ResourceExhaustedError - a fixed-capacity table is full
├── CodeGenError - invalid back-patch or internal generator error
└── CompilationError - aggregate report of a failed compilation

Syntax errors are not raised while parsing. The parser records them in an
ErrorCollector and keeps going so that one pass surfaces every problem;
only resource exhaustion aborts a compilation.

Error Message Format
--------------------
    prog.txt:4:5: error: unexpected token ')'
        y = )
            ^
    hint: expected a number, variable, '(' or '-'
"""

from typing import Optional, List

from neander_sdk.errors import NeanderError, SourceLocation, format_diagnostic


# =============================================================================
# Base Compiler Exception
# =============================================================================

class CompilerError(NeanderError):
    """
    Base exception for all compiler errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred
        hint: A suggestion for fixing the error
        source_line: The actual source text at the error location
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
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        return format_diagnostic(self.message, self.location, self.hint, self.source_line)


class CompilationError(CompilerError):
    """
    Aggregate compilation error containing multiple errors.

    The message is already a formatted report from ErrorCollector and
    is passed through unchanged.
    """

    def _format_message(self) -> str:
        """Return message as-is - it's already a formatted aggregate report."""
        return self.message


# =============================================================================
# Syntax Errors
# =============================================================================

class CompilerSyntaxError(CompilerError):
    """
    Syntax error in program source.

    Examples:
        - Missing PROGRAM, BEGIN or END keyword
        - Missing '=' in an assignment
        - Unmatched parenthesis
        - Operator without operand
    """
    pass


class UnexpectedTokenError(CompilerSyntaxError):
    """Token that does not fit the grammar rule being parsed."""

    def __init__(
        self,
        found: str,
        expected: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.found = found
        self.expected = expected

        hint = None
        if expected:
            hint = f"expected {expected}"

        super().__init__(
            f"unexpected {found}",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class MissingTokenError(CompilerSyntaxError):
    """Required token is missing where the grammar demands it."""

    def __init__(
        self,
        expected: str,
        found: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        self.expected = expected
        self.found = found

        message = f"expected {expected}"
        if found:
            message = f"{message}, found {found}"

        super().__init__(
            message,
            location=location,
            hint=hint,
            source_line=source_line,
        )


# =============================================================================
# Resource and Generator Errors
# =============================================================================

class ResourceExhaustedError(CompilerError):
    """
    A fixed-capacity table cannot accept another entry.

    Raised by the symbol table, the temporary pool and the instruction
    buffer. The table is left unchanged; the compiler aborts.
    """

    def __init__(self, resource: str, limit: int, hint: Optional[str] = None):
        self.resource = resource
        self.limit = limit
        super().__init__(f"too many {resource} (limit is {limit})", hint=hint)


class CodeGenError(CompilerError):
    """
    Internal code generator error.

    Raised when a back-patch refers to an instruction that was never
    emitted, or would change an instruction's encoded size.
    """
    pass


# =============================================================================
# Error Collection (for multi-error reporting)
# =============================================================================

class ErrorCollector:
    """
    Collects multiple errors for batch reporting.

    The parser uses this to continue after a syntax error, collecting all
    errors before reporting them together.

    Example:
        collector = ErrorCollector(max_errors=100)
        collector.add(MissingTokenError("'END'"))
        if collector.has_errors():
            print(collector.report())
    """

    def __init__(self, max_errors: int = 100):
        """
        Initialize the error collector.

        Args:
            max_errors: Maximum errors to collect before stopping
        """
        self.errors: List[CompilerError] = []
        self.warnings: List[str] = []
        self.max_errors = max_errors

    def add(self, error: CompilerError) -> None:
        """Add an error to the collection."""
        self.errors.append(error)

    def add_warning(self, message: str, location: Optional[SourceLocation] = None) -> None:
        """Add a warning message."""
        if location:
            self.warnings.append(f"{location}: warning: {message}")
        else:
            self.warnings.append(f"warning: {message}")

    def has_errors(self) -> bool:
        """Return True if any errors have been collected."""
        return len(self.errors) > 0

    def should_stop(self) -> bool:
        """Return True if max_errors has been reached."""
        return len(self.errors) >= self.max_errors

    def error_count(self) -> int:
        return len(self.errors)

    def report(self) -> str:
        """Format all errors and warnings for display."""
        lines = []

        for error in self.errors:
            lines.append(str(error))
            lines.append("")

        for warning in self.warnings:
            lines.append(warning)

        error_word = "error" if len(self.errors) == 1 else "errors"
        warning_word = "warning" if len(self.warnings) == 1 else "warnings"
        lines.append(
            f"\n{len(self.errors)} {error_word}, {len(self.warnings)} {warning_word}"
        )

        return "\n".join(lines)
