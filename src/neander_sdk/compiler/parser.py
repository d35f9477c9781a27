"""
Neander Source Parser
=====================

This module implements a single-pass recursive descent parser for the
Neander source language. No syntax tree is built: every grammar rule
drives the CodeGenerator directly and returns the address of the memory
cell that holds its value.

Grammar (EBNF)
--------------
module      ::= 'PROGRAM' '"' IDENTIFIER '"' ':' 'BEGIN'
                assignment* result? 'END'
assignment  ::= IDENTIFIER '=' expr
result      ::= 'RES' '=' expr
expr        ::= term (('+' | '-') term)*
term        ::= factor (('*' | '/') factor)*
factor      ::= NUMBER | IDENTIFIER | '(' expr ')' | '-' factor

Operators of the same level associate to the left, and '*' '/' bind
tighter than '+' '-'.

Error Recovery
--------------
Syntax errors are recorded in the ErrorCollector and parsing goes on,
so a single run reports every problem it can find:

- A malformed header skips ahead to BEGIN.
- A token that cannot start a statement is reported and skipped.
- A token that cannot start a factor is reported and skipped, unless it
  is END or end of input, which the enclosing rules still need.
- A missing '=' or ')' is reported without consuming anything.

Each pass through the statement loop consumes at least one token or stops,
so parsing terminates on any input.

Example Usage
-------------
>>> from neander_sdk.compiler.lexer import Lexer
>>> from neander_sdk.compiler.codegen import CompilationUnit, CodeGenerator
>>> from neander_sdk.compiler.errors import ErrorCollector
>>> unit = CompilationUnit.create()
>>> parser = Parser(Lexer('PROGRAM "p": BEGIN RES = 2 + 3 END'),
...                 CodeGenerator(unit), ErrorCollector())
>>> parser.parse()
True
"""

import logging
from typing import Optional

from neander_sdk.compiler.codegen import CodeGenerator
from neander_sdk.compiler.errors import (
    ErrorCollector,
    CompilerSyntaxError,
    MissingTokenError,
    UnexpectedTokenError,
)
from neander_sdk.compiler.lexer import Lexer, Token, TokenType
from neander_sdk.compiler.symbols import ZERO


logger = logging.getLogger(__name__)


class Parser:
    """
    Recursive descent parser and code generation driver.

    Attributes:
        lexer: Token source, used through its lookahead cursor
        gen: Code generator receiving the emitted code
        errors: Collector for syntax errors and warnings
    """

    def __init__(self, lexer: Lexer, gen: CodeGenerator, errors: ErrorCollector):
        self.lexer = lexer
        self.gen = gen
        self.errors = errors
        self.unit = gen.unit

    def parse(self) -> bool:
        """
        Parse a complete module, emitting its code.

        The terminating HLT is not emitted here; the caller decides
        whether the module was clean enough to finish.

        Returns:
            True if the module parsed without syntax errors

        Raises:
            ResourceExhaustedError: If a symbol, temporary or instruction
                                    table overflows
        """
        start_errors = self.errors.error_count()
        self.lexer.advance()

        self._parse_header()
        if not self._expect(TokenType.BEGIN, "'BEGIN'"):
            return False

        self._parse_statements()
        if self.errors.should_stop():
            return False

        if self.lexer.match(TokenType.RES):
            self._parse_result()

        if self._expect(TokenType.END, "'END'"):
            if not self.lexer.check(TokenType.EOF):
                self.errors.add_warning(
                    f"ignoring {self.lexer.current.describe()} after 'END'",
                    self.lexer.current.location,
                )

        return self.errors.error_count() == start_errors

    # =========================================================================
    # Module Structure
    # =========================================================================

    def _parse_header(self) -> None:
        """
        Parse 'PROGRAM "name" :'.

        On a mismatch the rest of the header is skipped up to BEGIN.
        """
        steps = (
            (TokenType.PROGRAM, "'PROGRAM'"),
            (TokenType.QUOTE, "'\"' before the program name"),
            (TokenType.IDENTIFIER, "program name"),
            (TokenType.QUOTE, "'\"' after the program name"),
            (TokenType.COLON, "':'"),
        )
        for token_type, description in steps:
            token = self.lexer.match(token_type)
            if token is None:
                self._report_missing(description)
                self._synchronize_to_begin()
                return
            if token_type == TokenType.IDENTIFIER:
                self.unit.program_name = token.text
                logger.debug(f"program name: {token.text}")

    def _parse_statements(self) -> None:
        """Parse assignments until RES, END or end of input."""
        while not self.lexer.check(TokenType.RES, TokenType.END, TokenType.EOF):
            if self.errors.should_stop():
                return
            if self.lexer.check(TokenType.IDENTIFIER):
                self._parse_assignment()
            else:
                self._report_unexpected("an assignment, 'RES' or 'END'")
                self.lexer.advance()

    def _parse_assignment(self) -> None:
        name_token = self.lexer.current
        self.lexer.advance()
        self._expect(TokenType.ASSIGN, "'='",
                     hint=f"assignments have the form {name_token.text} = expression")

        value = self._parse_expr()
        variable = self.unit.symbols.assign(name_token.text)
        self.gen.copy_to(value, variable.address)

    def _parse_result(self) -> None:
        """Parse the tail of 'RES = expr', leaving the value in the accumulator."""
        self._expect(TokenType.ASSIGN, "'='", hint="the result has the form RES = expression")
        value = self._parse_expr()
        self.gen.emit_load(value)

    # =========================================================================
    # Expressions
    # =========================================================================

    def _parse_expr(self) -> int:
        left = self._parse_term()
        while self.lexer.check(TokenType.PLUS, TokenType.MINUS):
            operator = self.lexer.current.type
            self.lexer.advance()
            right = self._parse_term()
            result = self.gen.new_temp()
            if operator == TokenType.PLUS:
                left = self.gen.add(left, right, result)
            else:
                left = self.gen.subtract(left, right, result)
        return left

    def _parse_term(self) -> int:
        left = self._parse_factor()
        while self.lexer.check(TokenType.STAR, TokenType.SLASH):
            operator = self.lexer.current.type
            self.lexer.advance()
            right = self._parse_factor()
            result = self.gen.new_temp()
            if operator == TokenType.STAR:
                left = self.gen.multiply(left, right, result)
            else:
                left = self.gen.divide(left, right, result)
        return left

    def _parse_factor(self) -> int:
        """
        Parse a factor and return the temporary holding its value.

        After a syntax error the address of the _zero constant is returned
        so the enclosing rules can carry on.
        """
        token = self.lexer.current

        if token.type == TokenType.NUMBER:
            self.lexer.advance()
            return self.gen.copy_to(self._literal(token), self.gen.new_temp())

        if token.type == TokenType.IDENTIFIER:
            self.lexer.advance()
            symbol = self.unit.symbols.reference(token.text)
            return self.gen.copy_to(symbol.address, self.gen.new_temp())

        if token.type == TokenType.LPAREN:
            result = self.gen.new_temp()
            self.lexer.advance()
            inner = self._parse_expr()
            self._expect(TokenType.RPAREN, "')'", hint=f"to close '(' at {token.location}")
            return self.gen.copy_to(inner, result)

        if token.type == TokenType.MINUS:
            result = self.gen.new_temp()
            self.lexer.advance()
            operand = self._parse_factor()
            return self.gen.negate(operand, result)

        self._report_unexpected("a number, variable, '(' or '-'")
        if not self.lexer.check(TokenType.END, TokenType.EOF):
            self.lexer.advance()
        return self.unit.symbols.lookup(ZERO, synthetic=True).address

    def _literal(self, token: Token) -> int:
        """Intern a numeric literal and return its address."""
        numeral = token.numeral
        if token.overflows:
            shown = numeral if len(numeral) <= 20 else f"{numeral[:8]}... ({len(numeral)} digits)"
            self.errors.add_warning(
                f"literal {shown} does not fit in 8 bits, truncated to {token.value}",
                token.location,
            )
        return self.unit.symbols.constant(token.value, numeral).address

    # =========================================================================
    # Error Reporting
    # =========================================================================

    def _expect(self, token_type: TokenType, description: str,
                hint: Optional[str] = None) -> bool:
        """
        Consume a required token, or report it missing without consuming.

        Returns:
            True if the token was present
        """
        if self.lexer.match(token_type):
            return True
        self._report_missing(description, hint)
        return False

    def _report_missing(self, description: str, hint: Optional[str] = None) -> None:
        current = self.lexer.current
        self._add(MissingTokenError(
            description,
            found=current.describe(),
            location=current.location,
            source_line=self.lexer.source_line(current.line),
            hint=hint,
        ))

    def _report_unexpected(self, expected: str) -> None:
        current = self.lexer.current
        self._add(UnexpectedTokenError(
            current.describe(),
            expected=expected,
            location=current.location,
            source_line=self.lexer.source_line(current.line),
        ))

    def _add(self, error: CompilerSyntaxError) -> None:
        logger.debug(f"syntax error: {error.message}")
        self.errors.add(error)

    def _synchronize_to_begin(self) -> None:
        """Skip tokens until BEGIN or end of input."""
        while not self.lexer.check(TokenType.BEGIN, TokenType.EOF):
            self.lexer.advance()
