"""
Neander Source Lexer (Tokenizer)
================================

This module implements the lexer for the Neander source language.
It converts source text into a stream of tokens for the parser.

Token Categories
----------------
- Keywords: PROGRAM, BEGIN, END, RES (case-sensitive)
- Identifiers: variable and program names
- Numbers: maximal runs of decimal digits
- Operators: + - * / =
- Punctuation: ( ) : "

Whitespace, including newlines, only separates tokens. Statements are
told apart by the grammar, not by line breaks.

Characters that do not start any token produce an UNKNOWN token instead
of an exception. The cursor used by the parser (``advance``) skips them
and records each one so the compiler can report it as a warning.

Example Usage
-------------
>>> from neander_sdk.compiler.lexer import Lexer
>>> lexer = Lexer('PROGRAM "demo": BEGIN x = 1 END')
>>> for token in lexer.tokenize():
...     print(token)
Token(PROGRAM, 'PROGRAM', 1:1)
Token(QUOTE, '"', 1:9)
Token(IDENTIFIER, 'demo', 1:10)
Token(QUOTE, '"', 1:14)
Token(COLON, ':', 1:15)
Token(BEGIN, 'BEGIN', 1:17)
Token(IDENTIFIER, 'x', 1:23)
Token(ASSIGN, '=', 1:25)
Token(NUMBER, '1', 1:27)
Token(END, 'END', 1:29)
Token(EOF, 1:32)
"""

import logging
import string
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional

from neander_sdk.cpu import BYTE_MASK
from neander_sdk.errors import SourceLocation


logger = logging.getLogger(__name__)


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token types for the Neander source language."""

    # === Structural Tokens ===
    EOF = auto()            # End of input (repeats forever)
    UNKNOWN = auto()        # Unrecognized character, skipped by the cursor

    # === Identifiers and Literals ===
    IDENTIFIER = auto()     # Variable or program name
    NUMBER = auto()         # Decimal integer literal

    # === Keywords ===
    PROGRAM = auto()        # PROGRAM
    BEGIN = auto()          # BEGIN
    END = auto()            # END
    RES = auto()            # RES

    # === Operators ===
    PLUS = auto()           # +
    MINUS = auto()          # -
    STAR = auto()           # *
    SLASH = auto()          # /
    ASSIGN = auto()         # =

    # === Punctuation ===
    LPAREN = auto()         # (
    RPAREN = auto()         # )
    COLON = auto()          # :
    QUOTE = auto()          # "


# Map keyword strings to their token types
KEYWORDS: dict[str, TokenType] = {
    "PROGRAM": TokenType.PROGRAM,
    "BEGIN": TokenType.BEGIN,
    "END": TokenType.END,
    "RES": TokenType.RES,
}

SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "=": TokenType.ASSIGN,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ":": TokenType.COLON,
    '"': TokenType.QUOTE,
}


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token from program source.

    Attributes:
        type: The TokenType classification
        text: The exact source text of the token ("" for EOF)
        offset: Character offset of the token in the source (0-indexed)
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    type: TokenType
    text: str
    offset: int
    line: int
    column: int
    filename: str = "<input>"

    def __repr__(self) -> str:
        if self.type == TokenType.EOF:
            return f"Token(EOF, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.text!r}, {self.line}:{self.column})"

    @property
    def numeral(self) -> Optional[str]:
        """Digits of a NUMBER token without leading zeros, None for every other type."""
        if self.type == TokenType.NUMBER:
            return self.text.lstrip("0") or "0"
        return None

    @property
    def value(self) -> Optional[int]:
        """
        Value of a NUMBER token reduced to 8 bits, None for every other type.

        The digits are folded one at a time so numerals of any length are
        accepted.
        """
        if self.type != TokenType.NUMBER:
            return None
        value = 0
        for digit in self.text:
            value = (value * 10 + ord(digit) - ord("0")) & BYTE_MASK
        return value

    @property
    def overflows(self) -> bool:
        """True for a NUMBER token whose value does not fit in 8 bits."""
        numeral = self.numeral
        return numeral is not None and (len(numeral) > 3 or int(numeral) > BYTE_MASK)

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column, self.offset)

    def describe(self) -> str:
        """Human-readable description used in diagnostics."""
        if self.type == TokenType.EOF:
            return "end of input"
        if self.type in KEYWORDS.values():
            return f"keyword '{self.text}'"
        if self.type == TokenType.NUMBER:
            return f"number {self.text}"
        if self.type == TokenType.IDENTIFIER:
            return f"identifier '{self.text}'"
        return f"'{self.text}'"


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes Neander program source.

    Two interfaces are offered:

    - ``next()`` scans and returns the next raw token, UNKNOWN included.
      At end of input it returns EOF, and keeps returning EOF.
    - ``current`` / ``advance()`` form the single-token lookahead cursor
      used by the parser. ``advance()`` skips UNKNOWN tokens and keeps
      them in ``skipped`` for later reporting.

    Usage:
        lexer = Lexer(source_text, filename)
        lexer.advance()                 # prime the cursor
        while lexer.current.type != TokenType.EOF:
            ...

    Attributes:
        source: The source code being tokenized
        filename: Name of the source file (for error reporting)
        current: Token under the cursor (EOF until advance() is called)
        skipped: UNKNOWN tokens passed over by advance()
    """

    IDENT_START = string.ascii_letters + "_"
    IDENT_CHARS = string.ascii_letters + string.digits + "_"
    WHITESPACE = " \t\r\n"

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename

        # Current position in source
        self._pos = 0
        self._line = 1
        self._column = 1

        self.current = Token(TokenType.EOF, "", 0, 1, 1, filename)
        self.skipped: list[Token] = []

    def tokenize(self) -> Iterator[Token]:
        """
        Generate every token from the source, ending with a single EOF.

        Yields:
            Token objects, UNKNOWN tokens included
        """
        while True:
            token = self.next()
            yield token
            if token.type == TokenType.EOF:
                return

    # =========================================================================
    # Parser Cursor
    # =========================================================================

    def advance(self) -> Token:
        """
        Move the cursor to the next meaningful token and return it.

        UNKNOWN tokens are skipped and recorded in ``skipped``.
        """
        token = self.next()
        while token.type == TokenType.UNKNOWN:
            logger.warning(f"{token.location}: skipping unrecognized character {token.text!r}")
            self.skipped.append(token)
            token = self.next()
        self.current = token
        return token

    def check(self, *types: TokenType) -> bool:
        """Check if the cursor token is one of the given types."""
        return self.current.type in types

    def match(self, *types: TokenType) -> Optional[Token]:
        """
        Consume the cursor token if it matches one of the types.

        Returns:
            The consumed token, or None if no match
        """
        if self.check(*types):
            token = self.current
            self.advance()
            return token
        return None

    # =========================================================================
    # Scanning
    # =========================================================================

    def next(self) -> Token:
        """Scan and return the next raw token."""
        self._skip_whitespace()

        if self._at_end():
            return self._make_token(TokenType.EOF, "", self._pos, self._line, self._column)

        start = self._pos
        start_line = self._line
        start_column = self._column
        char = self._peek()

        # Numbers
        if char in string.digits:
            while self._peek() and self._peek() in string.digits:
                self._advance_char()
            return self._make_token(
                TokenType.NUMBER, self.source[start:self._pos], start, start_line, start_column
            )

        # Identifiers and keywords
        if char in self.IDENT_START:
            while self._peek() and self._peek() in self.IDENT_CHARS:
                self._advance_char()
            text = self.source[start:self._pos]
            token_type = KEYWORDS.get(text, TokenType.IDENTIFIER)
            return self._make_token(token_type, text, start, start_line, start_column)

        # Operators and punctuation (anything else is UNKNOWN)
        self._advance_char()
        token_type = SINGLE_CHAR_TOKENS.get(char, TokenType.UNKNOWN)
        return self._make_token(token_type, char, start, start_line, start_column)

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self) -> str:
        """Current character, or empty string past the end."""
        if self._at_end():
            return ""
        return self.source[self._pos]

    def _advance_char(self) -> str:
        """Consume one character, updating line and column tracking."""
        char = self.source[self._pos]
        self._pos += 1
        if char == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1
        return char

    def _skip_whitespace(self) -> None:
        while not self._at_end() and self._peek() in self.WHITESPACE:
            self._advance_char()

    def _make_token(
        self,
        token_type: TokenType,
        text: str,
        offset: int,
        line: int,
        column: int,
    ) -> Token:
        return Token(token_type, text, offset, line, column, self.filename)

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def source_line(self, line: int) -> Optional[str]:
        """Get the text of a 1-indexed source line for error reporting."""
        lines = self.source.splitlines()
        if 0 < line <= len(lines):
            return lines[line - 1]
        return None
