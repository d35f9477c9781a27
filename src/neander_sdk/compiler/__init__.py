"""
Neander Compiler Package
========================

Compiles the Neander source language to Neander assembly and machine
code::

    PROGRAM "demo":
    BEGIN
        x = 6
        y = 7
        z = x * y
        RES = z - 2
    END

Only assignments and a final RES expression exist. Expressions support
+ - * / with parentheses and unary minus over 8-bit wrapping integers;
multiplication and division are expanded into loops because the machine
has neither.

Usage:
    from neander_sdk.compiler import Compiler, compile_source

    result = Compiler().compile_source(text, "demo.txt")
    if result.success:
        print(result.assembly)
"""

from neander_sdk.compiler.compiler import (
    Compiler,
    CompilerOptions,
    CompilerResult,
    compile_source,
    compile_file,
)
from neander_sdk.compiler.codegen import (
    Instruction,
    InstructionBuffer,
    CompilationUnit,
    CodeGenerator,
)
from neander_sdk.compiler.errors import (
    CompilerError,
    CompilerSyntaxError,
    UnexpectedTokenError,
    MissingTokenError,
    ResourceExhaustedError,
    CodeGenError,
    CompilationError,
    ErrorCollector,
)
from neander_sdk.compiler.lexer import Lexer, Token, TokenType
from neander_sdk.compiler.parser import Parser
from neander_sdk.compiler.symbols import Symbol, SymbolTable, TempPool

__all__ = [
    "Compiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_source",
    "compile_file",
    "Instruction",
    "InstructionBuffer",
    "CompilationUnit",
    "CodeGenerator",
    "CompilerError",
    "CompilerSyntaxError",
    "UnexpectedTokenError",
    "MissingTokenError",
    "ResourceExhaustedError",
    "CodeGenError",
    "CompilationError",
    "ErrorCollector",
    "Lexer",
    "Token",
    "TokenType",
    "Parser",
    "Symbol",
    "SymbolTable",
    "TempPool",
]
