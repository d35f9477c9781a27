"""
Symbol Table and Temporary Pool Tests
=====================================

Tests for address allocation of variables, interned literals and
temporaries.
"""

import pytest

from neander_sdk.compiler.errors import ResourceExhaustedError
from neander_sdk.compiler.symbols import (
    SymbolTable,
    TempPool,
    constant_name,
)


class TestSymbolTable:
    """Test symbol creation and lookup."""

    def test_addresses_are_sequential(self):
        table = SymbolTable()
        a = table.declare("a")
        b = table.declare("b")
        assert (a.address, b.address) == (0x80, 0x81)

    def test_declare_is_idempotent(self):
        table = SymbolTable()
        first = table.declare("x")
        second = table.declare("x")
        assert first is second
        assert len(table) == 1

    def test_reference_creates_uninitialized(self):
        table = SymbolTable()
        symbol = table.reference("y")
        assert symbol.value == 0
        assert not symbol.initialized

    def test_assign_after_reference_keeps_address(self):
        table = SymbolTable()
        read = table.reference("y")
        written = table.assign("y")
        assert written.address == read.address
        assert written.initialized

    def test_lookup(self):
        table = SymbolTable()
        table.declare("x")
        assert table.lookup("x").name == "x"
        assert table.lookup("missing") is None
        assert "x" in table
        assert "missing" not in table

    def test_iteration_order(self):
        table = SymbolTable()
        for name in ("c", "a", "b"):
            table.declare(name)
        assert [s.name for s in table] == ["c", "a", "b"]

    def test_custom_base(self):
        table = SymbolTable(base=0x40, limit=0x50)
        assert table.declare("x").address == 0x40


class TestConstants:
    """Test literal interning."""

    def test_constant_is_interned(self):
        table = SymbolTable()
        first = table.constant(5)
        second = table.constant(5)
        assert first is second
        assert first.name == constant_name(5) == "_const_5"
        assert first.value == 5
        assert first.initialized
        assert first.is_synthetic

    def test_distinct_constants(self):
        table = SymbolTable()
        assert table.constant(1).address != table.constant(2).address

    def test_large_constant_is_truncated(self):
        table = SymbolTable()
        symbol = table.constant(300)
        assert symbol.name == "_const_300"
        assert symbol.value == 300 & 0xFF

    def test_user_variable_is_not_synthetic(self):
        assert not SymbolTable().declare("x").is_synthetic

    def test_constant_named_after_numeral(self):
        table = SymbolTable()
        symbol = table.constant(44, "300")
        assert symbol.name == "_const_300"
        assert symbol.value == 44


class TestNameSpaces:
    """Test that program variables and synthetic symbols never share a cell."""

    def test_variable_does_not_alias_seeded_constant(self):
        table = SymbolTable()
        one = table.seed("_one", 1)
        variable = table.assign("_one")
        assert variable is not one
        assert variable.address != one.address
        assert one.value == 1
        assert len(table) == 2

    def test_variable_does_not_alias_literal(self):
        table = SymbolTable()
        variable = table.reference("_const_5")
        literal = table.constant(5)
        assert literal.address != variable.address
        assert literal.is_synthetic and not variable.is_synthetic
        assert table.constant(5) is literal
        assert table.reference("_const_5") is variable

    def test_lookup_by_kind(self):
        table = SymbolTable()
        constant = table.seed("_zero", 0)
        variable = table.assign("_zero")
        assert table.lookup("_zero") is variable
        assert table.lookup("_zero", synthetic=True) is constant
        assert table.lookup("_zero", synthetic=False) is variable

    def test_lookup_falls_back_to_synthetic(self):
        table = SymbolTable()
        constant = table.constant(3)
        assert table.lookup("_const_3") is constant
        assert "_const_3" in table


class TestSymbolLimits:
    """Test symbol table capacity checks."""

    def test_max_symbols(self):
        table = SymbolTable(max_symbols=2)
        table.declare("a")
        table.declare("b")
        with pytest.raises(ResourceExhaustedError) as exc_info:
            table.declare("c")
        assert exc_info.value.resource == "symbols"
        assert len(table) == 2
        assert "c" not in table

    def test_data_region_limit(self):
        table = SymbolTable(base=0x80, limit=0x82)
        table.declare("a")
        table.declare("b")
        with pytest.raises(ResourceExhaustedError):
            table.declare("c")

    def test_existing_symbol_still_found_when_full(self):
        table = SymbolTable(max_symbols=1)
        table.declare("a")
        assert table.declare("a").address == 0x80


class TestTempPool:
    """Test temporary allocation."""

    def test_strictly_increasing(self):
        pool = TempPool()
        addresses = [pool.allocate() for _ in range(5)]
        assert addresses == [0xC8, 0xC9, 0xCA, 0xCB, 0xCC]
        assert len(pool) == 5

    def test_exhaustion(self):
        pool = TempPool(base=0xFE, limit=0x100)
        pool.allocate()
        pool.allocate()
        with pytest.raises(ResourceExhaustedError) as exc_info:
            pool.allocate()
        assert exc_info.value.resource == "temporaries"
        assert "limit is 2" in str(exc_info.value)
