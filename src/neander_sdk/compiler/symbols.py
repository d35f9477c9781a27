"""
Symbol and Temporary Storage Allocation
=======================================

The Neander has no registers besides the accumulator, so every value the
compiler handles lives at a fixed memory address. This module hands those
addresses out.

Memory Layout
-------------
::

    $00 .. data_base-1        generated code
    data_base .. temp_base-1  symbols: variables, literals, compiler constants
    temp_base .. $FF          temporaries for intermediate results

Both allocators are monotonic. An address is never reused or freed for the
life of a compilation, which keeps the single-pass generator free of any
liveness analysis at the cost of memory.

Symbols
-------
A symbol is created the first time a name is seen. A variable used before
it is assigned is created uninitialized with value 0; a later assignment
marks it initialized but keeps its address. Numeric literals are interned
under ``_const_<value>`` so that every use of the same numeral shares one
cell.

Compiler constants and interned literals are synthetic symbols kept in a
name space of their own. A program variable spelled ``_one`` or
``_const_5`` gets a cell of its own and never aliases them.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Union

from neander_sdk.cpu import BYTE_MASK
from neander_sdk.compiler.errors import ResourceExhaustedError


logger = logging.getLogger(__name__)

# Names of the constants every compilation seeds before parsing
ZERO = "_zero"
ONE = "_one"
NEG_ONE = "_neg_one"


@dataclass
class Symbol:
    """
    A named memory cell.

    Attributes:
        name: Variable name, or a synthetic name for constants
        address: Fixed memory address of the cell
        value: Initial value written to the cell by the data section
        initialized: False while a variable has only been read
        is_synthetic: True for compiler constants and interned literals
    """
    name: str
    address: int
    value: int = 0
    initialized: bool = False
    is_synthetic: bool = False


def constant_name(value: Union[int, str]) -> str:
    """Synthetic symbol name under which a literal is interned."""
    return f"_const_{value}"


class SymbolTable:
    """
    Maps names to fixed data addresses.

    Iteration yields symbols in allocation order, which is also address
    order, so output derived from the table is deterministic.

    Attributes:
        base: First address handed out
        limit: First address that may not be used (start of temporaries)
        max_symbols: Maximum number of entries
    """

    def __init__(self, base: int = 0x80, limit: int = 0xC8, max_symbols: int = 100):
        self.base = base
        self.limit = limit
        self.max_symbols = max_symbols
        # keyed by (name, is_synthetic)
        self._symbols: dict[tuple[str, bool], Symbol] = {}
        self._next_address = base

    def __len__(self) -> int:
        return len(self._symbols)

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._symbols.values())

    def lookup(self, name: str, synthetic: Optional[bool] = None) -> Optional[Symbol]:
        """
        Return the symbol for name, or None if it was never seen.

        With synthetic left as None a program variable is preferred over a
        synthetic symbol of the same name.
        """
        if synthetic is None:
            return self._symbols.get((name, False)) or self._symbols.get((name, True))
        return self._symbols.get((name, synthetic))

    def declare(self, name: str, value: int = 0, initialized: bool = False,
                synthetic: bool = False) -> Symbol:
        """
        Return the symbol for name, creating it if needed.

        An existing uninitialized symbol that is now declared initialized
        takes the new value. Its address never changes.

        Raises:
            ResourceExhaustedError: If the table or the data region is full
        """
        key = (name, synthetic)
        symbol = self._symbols.get(key)
        if symbol is not None:
            if initialized and not symbol.initialized:
                symbol.value = value
                symbol.initialized = True
            return symbol

        if len(self._symbols) >= self.max_symbols:
            raise ResourceExhaustedError("symbols", self.max_symbols)
        if self._next_address >= self.limit:
            raise ResourceExhaustedError(
                "symbols",
                self.limit - self.base,
                hint=f"data region ${self.base:02X}-${self.limit - 1:02X} is full",
            )

        symbol = Symbol(name, self._next_address, value, initialized, synthetic)
        self._symbols[key] = symbol
        self._next_address += 1
        logger.debug(f"symbol {name} -> ${symbol.address:02X}")
        return symbol

    def reference(self, name: str) -> Symbol:
        """Symbol for a variable being read (created uninitialized if new)."""
        return self.declare(name)

    def assign(self, name: str) -> Symbol:
        """Symbol for a variable being assigned."""
        return self.declare(name, 0, initialized=True)

    def seed(self, name: str, value: int) -> Symbol:
        """Synthetic symbol for a compiler constant."""
        return self.declare(name, value & BYTE_MASK, initialized=True, synthetic=True)

    def constant(self, value: int, numeral: Optional[str] = None) -> Symbol:
        """
        Interned symbol holding a literal value (truncated to 8 bits).

        The symbol is named after numeral when given, so the name keeps the
        literal as written even when its value was truncated.
        """
        return self.seed(constant_name(numeral if numeral is not None else value), value)


class TempPool:
    """
    Strictly increasing allocator for temporary cells.

    Temporaries are never freed, so two live intermediate values can
    never share a cell.
    """

    def __init__(self, base: int = 0xC8, limit: int = 0x100):
        self.base = base
        self.limit = limit
        self._next_address = base

    def __len__(self) -> int:
        return self._next_address - self.base

    def allocate(self) -> int:
        """
        Return a fresh temporary address.

        Raises:
            ResourceExhaustedError: If the temporary region is full
        """
        if self._next_address >= self.limit:
            raise ResourceExhaustedError(
                "temporaries",
                self.limit - self.base,
                hint="split long expressions across several assignments",
            )
        address = self._next_address
        self._next_address += 1
        return address
